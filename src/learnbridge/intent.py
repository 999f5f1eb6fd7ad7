"""Keyword intent classifier for free-text Gradescope requests.

Pure business logic: receives a query string, returns a QueryAnalysis. No
knowledge of HTTP, caching, or MCP. The classification is a heuristic used
only to route an ambiguous request to the right structured call.
"""

from __future__ import annotations

from learnbridge.models.gradescope import QueryAnalysis

GUIDANCE_MESSAGE = (
    "I'm not sure what you're asking about Gradescope. "
    "Try asking about your courses or assignments."
)

# Checked in order; the first rule with a keyword in the query wins.
_RULES: tuple[tuple[str, float, tuple[str, ...]], ...] = (
    ("get_courses", 0.9, ("my courses", "list courses", "show courses", "what courses")),
    ("get_assignments", 0.8, ("assignments", "homework", "due dates")),
    ("get_submission", 0.7, ("submission", "submitted", "grade", "feedback", "score")),
)


def analyze_query(query: str) -> QueryAnalysis:
    """Classify ``query`` as a courses, assignments or submission request.

    Unmatched queries return ``type=None`` with zero confidence and a
    guidance message for the agent.
    """
    lowered = query.lower()
    for intent, confidence, keywords in _RULES:
        if any(keyword in lowered for keyword in keywords):
            return QueryAnalysis(type=intent, confidence=confidence)
    return QueryAnalysis(type=None, confidence=0.0, message=GUIDANCE_MESSAGE)
