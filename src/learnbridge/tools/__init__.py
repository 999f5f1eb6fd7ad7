"""Tool handlers.

Each handler receives AppState, calls one client operation and renders the
result as text for the agent. No MCP or FastMCP imports: server.py handles
the MCP wiring.
"""

from __future__ import annotations

from typing import Any

from pydantic import TypeAdapter

_ANY = TypeAdapter(Any)


def render(value: Any) -> str:
    """Serialise models, lists, dicts and datetimes as indented JSON."""
    return _ANY.dump_json(value, indent=2).decode()
