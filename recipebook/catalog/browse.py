from __future__ import annotations

import logging
import time

from ..analytics.store import record_event
from ..config import DEFAULT_CATALOG_CONFIG
from .evaluator import fetch_rows, match_spec
from .filters import FilterSpec, build_filter_spec
from .models import RecipeOut, RecipeQueryRequest, RecipeQueryResponse
from .url_state import to_url
from .window import (
    ABSOLUTE_ACTIONS,
    Window,
    WindowMode,
    WindowRecord,
    WindowRegistry,
    WindowState,
    can_load_more,
    can_load_previous,
    get_registry,
    header_range,
    page_numbers,
    reduce,
    total_pages,
)

logger = logging.getLogger(__name__)


def spec_from_request(body: RecipeQueryRequest, actor_id: int | None) -> FilterSpec:
    return build_filter_spec(
        search=body.search,
        tags=body.tags,
        personal_tags=body.personal_tags,
        numeric=body.numeric_filters,
        authored_by_me=body.authored_by_me,
        actor_id=actor_id,
    )


def _build_response(
    spec: FilterSpec,
    state: WindowState,
    total_count: int,
    window: Window,
    recipes: list[RecipeOut],
    seq: int,
    *,
    stale: bool = False,
    cache_hit: bool = False,
    dropped: tuple[str, ...] = (),
) -> RecipeQueryResponse:
    range_start, range_end = header_range(state, total_count)
    pages = total_pages(total_count, state.page_size)
    return RecipeQueryResponse(
        recipes=recipes,
        mode=window.mode,
        total_count=total_count,
        header_page=state.header_page,
        footer_page=state.footer_page,
        page_size=state.page_size,
        total_pages=pages,
        range_start=range_start,
        range_end=range_end,
        page_numbers=page_numbers(state.anchor_page, pages),
        can_load_more=can_load_more(state, total_count),
        can_load_previous=can_load_previous(state, total_count),
        seq=seq,
        stale=stale,
        cache_hit=cache_hit,
        dropped_predicates=list(dropped),
        url=to_url(spec, max(state.header_page, 1), state.page_size),
    )


def _stale_response(
    spec: FilterSpec,
    session_id: str,
    seq: int,
    registry: WindowRegistry,
    page_size: int | None = None,
) -> RecipeQueryResponse:
    """Report the session's current window without touching it.

    With no window on record yet, the requested filter's first page is
    described instead; nothing is registered.
    """
    record = registry.current(session_id)
    if record is None:
        result, _ = match_spec(spec)
        total = result.total_count
        state = WindowState.initial(page_size or DEFAULT_CATALOG_CONFIG.default_page_size, total)
    else:
        state, total = record.state, record.total_count
    return _build_response(spec, state, total, Window.empty(), [], seq, stale=True)


def run_query(
    body: RecipeQueryRequest,
    actor_id: int | None,
    session_id: str,
    registry: WindowRegistry | None = None,
) -> RecipeQueryResponse:
    """One evaluation + window round trip for a browse session.

    The window state is committed only after evaluation succeeded, so a
    store failure leaves the session exactly where it was.
    """
    registry = registry or get_registry()
    start_time = time.time()

    spec = spec_from_request(body, actor_id)
    context_id = spec.context_id()

    seq = body.seq if body.seq is not None else registry.last_token(session_id) + 1
    if registry.is_stale(session_id, seq):
        logger.info("Discarding stale request seq=%d for session %s", seq, session_id)
        return _stale_response(spec, session_id, seq, registry, body.page_size)

    result, cache_hit = match_spec(spec)

    page_size = body.page_size or DEFAULT_CATALOG_CONFIG.default_page_size
    action = body.action.to_action(fallback_page_size=body.page_size)
    record = registry.active(session_id, context_id)
    if record is None:
        # New filter context for this session: start over at page 1
        state = WindowState.initial(page_size, result.total_count)
    elif (
        body.page_size is not None
        and body.page_size != record.state.page_size
        and action.type in ABSOLUTE_ACTIONS
    ):
        # Absolute navigation at an explicit size, e.g. a shared list URL
        state = WindowState.initial(body.page_size, result.total_count)
    else:
        state = record.state

    new_state, window = reduce(state, action, result.total_count)

    recipes: list[RecipeOut] = []
    if not window.is_empty:
        ids = result.ordered_ids[window.offset:window.end]
        recipes = [RecipeOut.from_row(row) for _, row in fetch_rows(ids).iterrows()]

    committed = registry.commit(
        session_id,
        WindowRecord(context_id=context_id, state=new_state, total_count=result.total_count),
        seq,
    )
    if not committed:
        logger.info("Request seq=%d for session %s was overtaken", seq, session_id)
        return _stale_response(spec, session_id, seq, registry, body.page_size)

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    record_event("query", {
        "action": action.type.value,
        "search": spec.search,
        "author_tags": sorted(spec.author_tags),
        "personal_tags": len(spec.personal_tags),
        "numeric_fields": sorted(n for n, f in spec.numeric_filters.items() if f.is_active),
        "authored_by_me": spec.authored_by_me,
        "anonymous": actor_id is None,
        "total_count": result.total_count,
        "results_returned": len(recipes),
        "response_time_ms": elapsed_ms,
        "cache_hit": cache_hit,
    })

    if window.mode is WindowMode.none:
        logger.debug("No-op %s for context %s", action.type.value, context_id)

    return _build_response(
        spec,
        new_state,
        result.total_count,
        window,
        recipes,
        seq,
        cache_hit=cache_hit,
        dropped=result.dropped,
    )
