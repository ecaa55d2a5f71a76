"""
Window Tracker
==============

Pagination over a match set uses two cursors at once:

* the **header** page: the first page currently rendered.  Absolute
  navigation (page number buttons) sets it, and "Load Previous" moves it back
  one page at a time;
* the **footer** page: the last page currently rendered.  "Load More" moves
  it forward one page at a time.

A third value, the **anchor** page, remembers where the last absolute jump
landed.  The "showing X-Y of N" indicator is computed from it, so incremental
loading in either direction never changes what the indicator says.

All transitions are pure: ``reduce(state, action, total_count)`` returns the
next state plus the ``Window`` (1-based, inclusive positions) the caller must
fetch and how to splice it into what is already shown.

Invariant: ``1 <= header <= anchor <= footer <= total_pages`` or all three are
0 when there is nothing to show.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from enum import Enum

from ..config import DEFAULT_CATALOG_CONFIG
from ..errors import InvalidFilterError


class ActionType(str, Enum):
    set_filter = "set_filter"
    goto_page = "goto_page"
    load_more = "load_more"
    load_previous = "load_previous"
    change_page_size = "change_page_size"


# Transitions that discard the current cursors.
ABSOLUTE_ACTIONS = frozenset({ActionType.set_filter, ActionType.goto_page})


class WindowMode(str, Enum):
    replace = "replace"
    append = "append"
    prepend = "prepend"
    none = "none"


@dataclass(frozen=True)
class WindowAction:
    type: ActionType
    page: int | None = None
    page_size: int | None = None

    @classmethod
    def set_filter(cls) -> WindowAction:
        return cls(ActionType.set_filter)

    @classmethod
    def goto_page(cls, page: int) -> WindowAction:
        return cls(ActionType.goto_page, page=page)

    @classmethod
    def load_more(cls) -> WindowAction:
        return cls(ActionType.load_more)

    @classmethod
    def load_previous(cls) -> WindowAction:
        return cls(ActionType.load_previous)

    @classmethod
    def change_page_size(cls, page_size: int) -> WindowAction:
        return cls(ActionType.change_page_size, page_size=page_size)


@dataclass(frozen=True)
class WindowState:
    page_size: int
    header_page: int
    footer_page: int
    anchor_page: int

    @classmethod
    def initial(cls, page_size: int, total_count: int) -> WindowState:
        _check_page_size(page_size)
        page = 1 if total_count > 0 else 0
        return cls(page_size=page_size, header_page=page, footer_page=page, anchor_page=page)


@dataclass(frozen=True)
class Window:
    start: int
    end: int
    mode: WindowMode

    @classmethod
    def empty(cls, mode: WindowMode = WindowMode.none) -> Window:
        return cls(start=0, end=0, mode=mode)

    @property
    def is_empty(self) -> bool:
        return self.start == 0

    @property
    def offset(self) -> int:
        return max(self.start - 1, 0)

    @property
    def size(self) -> int:
        return 0 if self.is_empty else self.end - self.start + 1


def _check_page_size(page_size: int) -> None:
    if page_size is None or page_size <= 0:
        raise InvalidFilterError("page size must be a positive integer")


def total_pages(total_count: int, page_size: int) -> int:
    if total_count <= 0:
        return 0
    return (total_count + page_size - 1) // page_size


def page_window(page: int, page_size: int, total_count: int, mode: WindowMode) -> Window:
    """Positions ``[(page-1)*size+1, page*size]`` clipped to *total_count*."""
    if total_count <= 0 or page <= 0:
        return Window.empty(mode)
    start = (page - 1) * page_size + 1
    if start > total_count:
        return Window.empty(mode)
    return Window(start=start, end=min(page * page_size, total_count), mode=mode)


def clamp_state(state: WindowState, total_count: int) -> WindowState:
    """Pull cursors back inside ``[1, total_pages]`` after the match set changed size."""
    pages = total_pages(total_count, state.page_size)
    if pages == 0:
        return replace(state, header_page=0, footer_page=0, anchor_page=0)
    header = min(max(state.header_page, 1), pages)
    anchor = min(max(state.anchor_page, header), pages)
    footer = min(max(state.footer_page, anchor), pages)
    return replace(state, header_page=header, footer_page=footer, anchor_page=anchor)


def can_load_more(state: WindowState, total_count: int) -> bool:
    return total_count > 0 and state.footer_page * state.page_size < total_count


def can_load_previous(state: WindowState, total_count: int) -> bool:
    return total_count > 0 and state.header_page > 1


def header_range(state: WindowState, total_count: int) -> tuple[int, int]:
    """``(range_start, range_end)`` for the "showing X-Y of N" indicator."""
    window = page_window(state.anchor_page, state.page_size, total_count, WindowMode.none)
    return window.start, window.end


def page_numbers(
    current_page: int,
    pages: int,
    width: int = DEFAULT_CATALOG_CONFIG.page_strip_width,
) -> list[int]:
    """At most *width* page numbers centred on *current_page*."""
    if pages <= 0:
        return []
    if pages <= width:
        return list(range(1, pages + 1))

    half = width // 2
    start = current_page - half
    end = start + width - 1
    if start < 1:
        start, end = 1, width
    if end > pages:
        start, end = pages - width + 1, pages
    return list(range(start, end + 1))


def _absolute(page: int, page_size: int, total_count: int) -> tuple[WindowState, Window]:
    pages = total_pages(total_count, page_size)
    if pages == 0:
        return WindowState.initial(page_size, 0), Window.empty(WindowMode.replace)
    page = min(max(page, 1), pages)
    state = WindowState(page_size=page_size, header_page=page, footer_page=page, anchor_page=page)
    return state, page_window(page, page_size, total_count, WindowMode.replace)


def reduce(state: WindowState, action: WindowAction, total_count: int) -> tuple[WindowState, Window]:
    """Apply *action* and return ``(next_state, window_to_fetch)``."""
    page_size = state.page_size

    if action.type is ActionType.set_filter:
        return _absolute(1, page_size, total_count)

    if action.type is ActionType.goto_page:
        return _absolute(action.page if action.page is not None else 1, page_size, total_count)

    if action.type is ActionType.change_page_size:
        new_size = action.page_size
        _check_page_size(new_size)
        # First item of the current header page stays in view.
        offset = max(state.header_page - 1, 0) * page_size
        return _absolute(offset // new_size + 1, new_size, total_count)

    state = clamp_state(state, total_count)

    if action.type is ActionType.load_more:
        if not can_load_more(state, total_count):
            return state, Window.empty()
        footer = state.footer_page + 1
        return (
            replace(state, footer_page=footer),
            page_window(footer, page_size, total_count, WindowMode.append),
        )

    if action.type is ActionType.load_previous:
        if not can_load_previous(state, total_count):
            return state, Window.empty()
        header = state.header_page - 1
        return (
            replace(state, header_page=header),
            page_window(header, page_size, total_count, WindowMode.prepend),
        )

    raise InvalidFilterError(f"unsupported window action: {action.type}")


# ---------------------------------------------------------------------------
# Session registry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WindowRecord:
    context_id: str
    state: WindowState
    total_count: int


class WindowRegistry:
    """Browse session -> window record for the session's active filter context.

    Registering a record for a new context replaces the old one, so stale
    window state never outlives its filter.  Each session also tracks the
    highest sequence token applied; older or repeated tokens are refused.
    """

    def __init__(self) -> None:
        self._records: dict[str, WindowRecord] = {}
        self._tokens: dict[str, int] = {}
        self._lock = threading.Lock()

    def active(self, session_id: str, context_id: str) -> WindowRecord | None:
        with self._lock:
            record = self._records.get(session_id)
        if record is None or record.context_id != context_id:
            return None
        return record

    def current(self, session_id: str) -> WindowRecord | None:
        with self._lock:
            return self._records.get(session_id)

    def last_token(self, session_id: str) -> int:
        with self._lock:
            return self._tokens.get(session_id, 0)

    def is_stale(self, session_id: str, token: int) -> bool:
        return token <= self.last_token(session_id)

    def commit(self, session_id: str, record: WindowRecord, token: int) -> bool:
        """Store *record* unless a newer token was applied in the meantime."""
        with self._lock:
            if token <= self._tokens.get(session_id, 0):
                return False
            self._records[session_id] = record
            self._tokens[session_id] = token
            return True

    def discard(self, session_id: str) -> None:
        with self._lock:
            self._records.pop(session_id, None)
            self._tokens.pop(session_id, None)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()
            self._tokens.clear()


_registry = WindowRegistry()


def get_registry() -> WindowRegistry:
    return _registry
