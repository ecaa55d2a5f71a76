from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd

from ..errors import StoreError
from .cache import cache_get, cache_set, current_generation
from .data_store import TEXT_COLUMNS, get_dataframe
from .filters import FilterSpec
from .numeric import numeric_mask
from .tag_scope import resolve_scope

logger = logging.getLogger(__name__)

# created_at DESC, id ASC
SORT_COLUMNS = ["created_at", "id"]
SORT_ASCENDING = [False, True]


@dataclass(frozen=True)
class MatchResult:
    ordered_ids: tuple[int, ...]
    total_count: int
    dropped: tuple[str, ...] = ()


def _search_mask(df: pd.DataFrame, search: str) -> pd.Series:
    needle = search.lower()
    mask = pd.Series(False, index=df.index)
    for col in TEXT_COLUMNS:
        mask = mask | df[f"{col}_lower"].str.contains(needle, regex=False, na=False)
    return mask


def evaluate(spec: FilterSpec, df: pd.DataFrame | None = None) -> MatchResult:
    """Apply every active predicate (AND) and order the survivors.

    Pure with respect to the collection: nothing is written back.
    """
    if df is None:
        df = get_dataframe()
    scope = resolve_scope(spec)

    if df.empty:
        return MatchResult(ordered_ids=(), total_count=0, dropped=scope.dropped)

    # --- Hard filters ---
    mask = pd.Series(True, index=df.index)
    if spec.search:
        mask = mask & _search_mask(df, spec.search)
    mask = mask & scope.author_tag_mask(df)
    mask = mask & scope.personal_tag_mask(df)
    mask = mask & scope.authored_mask(df)
    mask = mask & numeric_mask(df, spec.numeric_filters)

    matches = df.loc[mask, SORT_COLUMNS].sort_values(
        SORT_COLUMNS, ascending=SORT_ASCENDING, kind="mergesort",
    )
    ordered_ids = tuple(int(i) for i in matches["id"])
    return MatchResult(ordered_ids=ordered_ids, total_count=len(ordered_ids), dropped=scope.dropped)


def match_spec(spec: FilterSpec) -> tuple[MatchResult, bool]:
    """Return ``(result, cache_hit)`` for *spec*, evaluating on a miss."""
    key = spec.context_id()
    cached = cache_get(key)
    if cached is not None:
        return cached, True

    generation = current_generation()
    try:
        result = evaluate(spec)
    except StoreError:
        raise
    except Exception as exc:
        logger.exception("Recipe evaluation failed for context %s", key)
        raise StoreError("recipe evaluation failed") from exc

    if not cache_set(key, result, generation=generation):
        logger.debug("Collection changed while evaluating context %s; result not cached", key)
    return result, False


def fetch_rows(ordered_ids: tuple[int, ...] | list[int]) -> pd.DataFrame:
    """Recipe rows for *ordered_ids*, in that order."""
    df = get_dataframe()
    if not ordered_ids:
        return df.iloc[0:0]
    indexed = df.set_index("id", drop=False)
    present = [i for i in ordered_ids if i in indexed.index]
    return indexed.loc[present]
