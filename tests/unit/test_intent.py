"""Unit tests for learnbridge.intent."""

from __future__ import annotations

import pytest

from learnbridge.intent import GUIDANCE_MESSAGE, analyze_query


class TestAnalyzeQuery:
    @pytest.mark.parametrize(
        "query",
        ["Show my courses", "LIST COURSES please", "what courses am I in?"],
    )
    def test_course_queries(self, query: str) -> None:
        analysis = analyze_query(query)
        assert analysis.type == "get_courses"
        assert analysis.confidence == 0.9
        assert analysis.message is None

    @pytest.mark.parametrize("query", ["upcoming homework", "assignments for CS 101", "due dates"])
    def test_assignment_queries(self, query: str) -> None:
        analysis = analyze_query(query)
        assert analysis.type == "get_assignments"
        assert analysis.confidence == 0.8

    @pytest.mark.parametrize("query", ["what was my grade", "any feedback?", "my score"])
    def test_submission_queries(self, query: str) -> None:
        analysis = analyze_query(query)
        assert analysis.type == "get_submission"
        assert analysis.confidence == 0.7

    def test_earlier_rule_wins(self) -> None:
        # Mentions both courses and grades; the course rule is checked first
        assert analyze_query("list courses with a grade").type == "get_courses"

    def test_unmatched_query_returns_guidance(self) -> None:
        analysis = analyze_query("hello there")
        assert analysis.type is None
        assert analysis.confidence == 0.0
        assert analysis.message == GUIDANCE_MESSAGE
