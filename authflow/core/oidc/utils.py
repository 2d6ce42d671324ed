"""Redirect parameter parsing and location access.

The authorization server returns its payload in the query string or the
fragment of the redirect target. These helpers read it back.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol
from urllib.parse import unquote, urlsplit

_LEADING_DELIMITERS = ("?", "#", "&")


def parse_query_string(raw: str) -> dict[str, str]:
    """Parse a query string or fragment into decoded key/value pairs.

    Parsing is lenient: segments without ``=`` and segments with an empty
    value are dropped rather than reported. Only the first ``=`` splits a
    segment, so values may contain ``=``. When a key repeats, the last
    occurrence wins.

    Args:
        raw: Query string or fragment, with or without its leading
            ``?``, ``#`` or ``&`` (at most one is stripped).

    Returns:
        Mapping of percent-decoded keys to percent-decoded values.
    """
    params = raw.strip()
    if params.startswith(_LEADING_DELIMITERS):
        params = params[1:]

    result: dict[str, str] = {}
    for segment in params.split("&"):
        parts = segment.split("=")
        if len(parts) < 2:
            continue
        key = unquote(parts[0])
        value = "=".join(parts[1:])
        if value:
            result[key] = unquote(value)
    return result


class Location(Protocol):
    """The current URL of the embedding environment.

    ``search`` and ``hash`` keep their leading ``?`` / ``#``, and are empty
    strings when absent. ``assign`` navigates away.
    """

    @property
    def href(self) -> str: ...

    @property
    def search(self) -> str: ...

    @property
    def hash(self) -> str: ...

    def assign(self, url: str) -> None: ...


@dataclass
class UrlLocation:
    """Location backed by a plain URL string.

    ``assign`` replaces the URL, so after dispatch ``href`` holds the
    authorization URL the user must be sent to.
    """

    href: str = ""

    @property
    def search(self) -> str:
        query = urlsplit(self.href).query
        return f"?{query}" if query else ""

    @property
    def hash(self) -> str:
        fragment = urlsplit(self.href).fragment
        return f"#{fragment}" if fragment else ""

    def assign(self, url: str) -> None:
        self.href = url
