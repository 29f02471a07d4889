"""
Navigation helpers — URL parameters, page paths and an in-memory history.

Recovery parameters may arrive in the query string (``?type=recovery``) or
in the fragment (``#type=recovery``). Both carriers are merged by name; the
query string wins and the first non-empty value is kept.
"""
from collections.abc import Iterable
from typing import Callable, Optional
from urllib.parse import parse_qsl, unquote_plus, urlsplit, urlunsplit

from .models import Page
from .ports import Disposer


def _pairs(component: str) -> list[tuple[str, str]]:
    return parse_qsl(component.lstrip("#"), keep_blank_values=True)


def query_params(location: str) -> dict[str, str]:
    """First non-empty value per name in the query string."""
    return _first_non_empty(_pairs(urlsplit(location).query))


def fragment_params(location: str) -> dict[str, str]:
    """First non-empty value per name in the fragment."""
    return _first_non_empty(_pairs(urlsplit(location).fragment))


def _first_non_empty(pairs: Iterable[tuple[str, str]]) -> dict[str, str]:
    params: dict[str, str] = {}
    for name, value in pairs:
        if value and name not in params:
            params[name] = value
    return params


def read_params(location: str) -> dict[str, str]:
    """Merge query and fragment parameters, query string first."""
    params = fragment_params(location)
    params.update(query_params(location))
    return params


def strip_params(
    location: str,
    names: Iterable[str],
    path: Optional[str] = None
) -> str:
    """Return ``location`` without ``names`` in either query or fragment.

    When ``path`` is given it replaces the location path. Applying this
    twice gives the same URL as applying it once.
    """
    drop = set(names)
    parts = urlsplit(location)
    query = _without(parts.query, drop)
    fragment = _without(parts.fragment, drop)
    return urlunsplit((
        parts.scheme,
        parts.netloc,
        path if path is not None else parts.path,
        query,
        fragment,
    ))


def _without(component: str, drop: set[str]) -> str:
    # other pieces keep their raw text (``#top`` stays ``#top``)
    return "&".join(
        piece for piece in component.split("&")
        if piece and unquote_plus(piece.split("=", 1)[0]) not in drop
    )


def path_of(location: str) -> str:
    return urlsplit(location).path or "/"


def page_for_path(path: str) -> Optional[Page]:
    """Map a location path to a page; unknown paths map to None."""
    if path in ("", "/"):
        return Page.LANDING
    try:
        return Page(path.rstrip("/"))
    except ValueError:
        return None


class HistoryNavigation:
    """In-memory browser-like history.

    Implements the ``Navigation`` port for headless use. ``back`` and
    ``forward`` move through the stack and notify pop-state listeners.
    """

    def __init__(self, location: str = "/"):
        self._stack: list[str] = [location]
        self._index = 0
        self._listeners: list[Callable[[str], None]] = []

    def current_location(self) -> str:
        return self._stack[self._index]

    @property
    def entries(self) -> list[str]:
        return list(self._stack)

    def replace(self, url: str) -> None:
        self._stack[self._index] = url

    def push(self, url: str) -> None:
        del self._stack[self._index + 1:]
        self._stack.append(url)
        self._index += 1

    def back(self) -> None:
        if self._index > 0:
            self._index -= 1
            self._pop_state()

    def forward(self) -> None:
        if self._index < len(self._stack) - 1:
            self._index += 1
            self._pop_state()

    def on_pop_state(self, handler: Callable[[str], None]) -> Disposer:
        self._listeners.append(handler)

        def dispose() -> None:
            if handler in self._listeners:
                self._listeners.remove(handler)

        return dispose

    def _pop_state(self) -> None:
        path = path_of(self.current_location())
        for handler in list(self._listeners):
            handler(path)
