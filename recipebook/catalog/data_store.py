from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Iterable

import numpy as np
import pandas as pd

from ..config import DEFAULT_CATALOG_CONFIG
from ..errors import InvalidTagError, RecipeNotFoundError, StoreError
from .cache import invalidate

logger = logging.getLogger(__name__)

RECIPE_COLUMNS = [
    "id",
    "title",
    "ingredients",
    "instructions",
    "prep_time",
    "cook_time",
    "calories",
    "author_id",
    "created_at",
    "tags",
]
TEXT_COLUMNS = ("title", "ingredients", "instructions")
NUMERIC_COLUMNS = ("prep_time", "cook_time", "calories")

_df: pd.DataFrame | None = None
_df_lock = threading.Lock()

# user id -> recipe id -> personal tag names
_personal_tags: dict[int, dict[int, set[str]]] = {}
_row_locks: dict[tuple[int, int], threading.Lock] = {}
_row_locks_guard = threading.Lock()


def normalize_tag(name: Any) -> str:
    return str(name).strip().lower()


def split_tags(raw: Any) -> list[str]:
    """Parse a comma-separated string (or an iterable) into normalized tag names."""
    if raw is None or (isinstance(raw, float) and pd.isna(raw)):
        return []
    items = raw.split(",") if isinstance(raw, str) else raw
    tags: list[str] = []
    for item in items:
        tag = normalize_tag(item)
        if tag and tag not in tags:
            tags.append(tag)
    return tags


def _prepare(df: pd.DataFrame) -> pd.DataFrame:
    missing = [c for c in RECIPE_COLUMNS if c not in df.columns]
    if missing:
        raise StoreError(f"recipe data is missing columns: {', '.join(missing)}")

    df = df[RECIPE_COLUMNS].copy()
    df["id"] = df["id"].astype(np.int64)
    df["author_id"] = df["author_id"].astype(np.int64)

    # Lowercase text columns once for case-insensitive search
    for col in TEXT_COLUMNS:
        df[col] = df[col].fillna("").astype(str)
        df[f"{col}_lower"] = df[col].str.lower()

    for col in NUMERIC_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0).astype(np.int64)

    df["created_at"] = pd.to_datetime(df["created_at"], utc=True)
    df["tags_list"] = df["tags"].apply(split_tags)
    df["tags"] = df["tags_list"].apply(",".join)

    if df["id"].duplicated().any():
        raise StoreError("recipe ids must be unique")
    return df.reset_index(drop=True)


def _load(path: Path) -> pd.DataFrame:
    try:
        raw = pd.read_csv(path)
    except (OSError, ValueError) as exc:
        raise StoreError(f"could not load recipes from {path}") from exc
    return _prepare(raw)


def get_dataframe() -> pd.DataFrame:
    """Return the in-memory recipe DataFrame, loading it on first call."""
    global _df
    if _df is None:
        with _df_lock:
            if _df is None:
                _df = _load(DEFAULT_CATALOG_CONFIG.data_path)
                logger.info("Loaded %d recipes from %s", len(_df), DEFAULT_CATALOG_CONFIG.data_path)
    return _df


def load_recipes(records: Iterable[dict[str, Any]]) -> pd.DataFrame:
    """Replace the whole collection, e.g. from fixtures or a fresh import."""
    global _df
    rows = list(records)
    frame = pd.DataFrame(rows, columns=RECIPE_COLUMNS) if rows else pd.DataFrame(columns=RECIPE_COLUMNS)
    prepared = _prepare(frame)
    with _df_lock:
        _df = prepared
    invalidate()
    return prepared


def reset_store() -> None:
    """Forget the loaded collection and every personal tag."""
    global _df
    with _df_lock:
        _df = None
    with _row_locks_guard:
        _personal_tags.clear()
        _row_locks.clear()
    invalidate()


def get_recipe(recipe_id: int) -> pd.Series:
    df = get_dataframe()
    rows = df.loc[df["id"] == recipe_id]
    if rows.empty:
        raise RecipeNotFoundError(recipe_id)
    return rows.iloc[0]


def all_author_tags() -> list[str]:
    tags: set[str] = set()
    for tag_list in get_dataframe()["tags_list"]:
        tags.update(tag_list)
    return sorted(tags)


# ── Personal tags ────────────────────────────────────────────────────────


def _row_lock(recipe_id: int, user_id: int) -> threading.Lock:
    key = (recipe_id, user_id)
    with _row_locks_guard:
        lock = _row_locks.get(key)
        if lock is None:
            lock = _row_locks[key] = threading.Lock()
    return lock


def add_personal_tag(recipe_id: int, user_id: int, name: str) -> str:
    """Attach *name* to (recipe, user). Adding an existing tag is a no-op."""
    tag = normalize_tag(name)
    if not tag:
        raise InvalidTagError("tag name cannot be empty")
    get_recipe(recipe_id)

    with _row_lock(recipe_id, user_id):
        with _row_locks_guard:
            tags = _personal_tags.setdefault(user_id, {}).setdefault(recipe_id, set())
        created = tag not in tags
        tags.add(tag)

    if created:
        invalidate()
        logger.info("Personal tag %r added to recipe %d for user %d", tag, recipe_id, user_id)
    return tag


def remove_personal_tag(recipe_id: int, user_id: int, name: str) -> bool:
    tag = normalize_tag(name)
    get_recipe(recipe_id)

    with _row_lock(recipe_id, user_id):
        tags = _personal_tags.get(user_id, {}).get(recipe_id)
        removed = bool(tags) and tag in tags
        if removed:
            tags.discard(tag)

    if removed:
        invalidate()
        logger.info("Personal tag %r removed from recipe %d for user %d", tag, recipe_id, user_id)
    return removed


def get_personal_tags(recipe_id: int, user_id: int) -> list[str]:
    return sorted(_personal_tags.get(user_id, {}).get(recipe_id, ()))


def recipes_with_personal_tags(user_id: int, required: frozenset[str]) -> set[int]:
    """Ids of recipes whose personal tags for *user_id* include every required tag."""
    rows = list(_personal_tags.get(user_id, {}).items())
    return {recipe_id for recipe_id, names in rows if required <= names}
