"""Cookie jar and authentication session for the Gradescope client.

Every Gradescope request targets one fixed origin, so the jar ignores cookie
attributes (path, domain, expiry) and keeps only ``name=value``. Its lifetime
is bounded by the AuthSession that owns it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


class CookieJar:
    """Accumulates ``Set-Cookie`` values into a request-ready header."""

    def __init__(self) -> None:
        # dict preserves insertion order; re-setting a name keeps its slot
        self._cookies: dict[str, str] = {}

    def ingest(self, headers: httpx.Headers) -> None:
        """Upsert every ``Set-Cookie`` line of a response."""
        for raw in headers.get_list("set-cookie"):
            pair = raw.split(";", 1)[0]
            name, sep, value = pair.partition("=")
            name = name.strip()
            if not sep or not name:
                continue
            self._cookies[name] = value.strip()

    def serialize(self) -> str:
        """Return ``name=value; name2=value2`` in insertion order."""
        return "; ".join(f"{name}={value}" for name, value in self._cookies.items())

    def get(self, name: str) -> str | None:
        return self._cookies.get(name)

    def clear(self) -> None:
        self._cookies.clear()

    def __len__(self) -> int:
        return len(self._cookies)

    def __contains__(self, name: object) -> bool:
        return name in self._cookies


class AuthState(StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


@dataclass
class AuthSession:
    """Gradescope login state.

    Transitions:
      UNAUTHENTICATED -> AUTHENTICATED   login handshake got a 302
      AUTHENTICATED   -> UNAUTHENTICATED an authenticated request got a 401
    ``reset()`` runs before every handshake and on logout.
    """

    cookies: CookieJar = field(default_factory=CookieJar)
    csrf_token: str | None = None
    state: AuthState = AuthState.UNAUTHENTICATED

    @property
    def is_authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED

    def mark_authenticated(self, csrf_token: str | None) -> None:
        self.csrf_token = csrf_token
        self.state = AuthState.AUTHENTICATED

    def invalidate(self) -> None:
        """Force the next call to log in again. Cookies are replaced then."""
        self.state = AuthState.UNAUTHENTICATED

    def reset(self) -> None:
        self.cookies.clear()
        self.csrf_token = None
        self.state = AuthState.UNAUTHENTICATED

    def request_headers(self) -> dict[str, str]:
        """Cookie and CSRF headers for the next request to the site."""
        headers: dict[str, str] = {}
        cookie_header = self.cookies.serialize()
        if cookie_header:
            headers["Cookie"] = cookie_header
        if self.csrf_token:
            headers["X-CSRF-Token"] = self.csrf_token
        return headers
