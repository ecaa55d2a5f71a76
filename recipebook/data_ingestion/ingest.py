from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List

import pandas as pd

from ..catalog.data_store import RECIPE_COLUMNS, split_tags
from ..errors import StoreError
from .config import DEFAULT_INGESTION_CONFIG, IngestionConfig

logger = logging.getLogger(__name__)

CANONICAL_COLUMNS: List[str] = list(RECIPE_COLUMNS)


def _to_minutes(value: float | int | str | None) -> int:
    """Parse ``45``, ``"45"``, ``"45 min"`` or ``"1h 30m"`` into whole minutes."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return 0
    raw = str(value).strip().lower()
    if not raw:
        return 0
    try:
        return max(0, int(float(raw)))
    except ValueError:
        pass

    minutes = 0
    number = ""
    for ch in raw:
        if ch.isdigit() or ch == ".":
            number += ch
            continue
        if number and ch == "h":
            minutes += int(float(number) * 60)
            number = ""
        elif number and ch == "m":
            minutes += int(float(number))
            number = ""
    if number:
        minutes += int(float(number))
    return minutes


def _to_calories(value: float | int | str | None) -> int:
    if value is None:
        return 0
    raw = str(value).lower().replace("kcal", "").replace("cal", "").strip()
    try:
        return max(0, int(round(float(raw))))
    except (TypeError, ValueError):
        return 0


def _join_tags(value) -> str:
    return ",".join(split_tags(value))


def normalize_recipes(df: pd.DataFrame, default_author_id: int = 1) -> pd.DataFrame:
    """Map raw columns onto :data:`CANONICAL_COLUMNS`."""

    # Raw exports name the same field differently; take the first that exists.
    def _first_present(columns: List[str]) -> str | None:
        for col in columns:
            if col in df.columns:
                return col
        return None

    col_id = _first_present(["id", "recipe_id", "RecipeId"])
    col_title = _first_present(["title", "name", "recipe_name", "Name"])
    col_ingredients = _first_present(["ingredients", "ingredient_list", "RecipeIngredientParts"])
    col_instructions = _first_present(["instructions", "directions", "steps", "RecipeInstructions"])
    col_prep = _first_present(["prep_time", "prep_minutes", "PrepTime"])
    col_cook = _first_present(["cook_time", "cook_minutes", "CookTime"])
    col_calories = _first_present(["calories", "kcal", "Calories"])
    col_author = _first_present(["author_id", "user_id", "AuthorId"])
    col_created = _first_present(["created_at", "date_published", "submitted", "DatePublished"])
    col_tags = _first_present(["tags", "keywords", "Keywords", "categories"])

    if col_title is None:
        raise StoreError("raw recipe data has no title column")

    canonical = pd.DataFrame()
    if col_id:
        canonical["id"] = pd.to_numeric(df[col_id], errors="coerce")
    else:
        canonical["id"] = pd.Series(range(1, len(df) + 1), index=df.index)

    canonical["title"] = df[col_title].fillna("").astype(str).str.strip()
    canonical["ingredients"] = df[col_ingredients].fillna("").astype(str) if col_ingredients else ""
    canonical["instructions"] = df[col_instructions].fillna("").astype(str) if col_instructions else ""
    canonical["prep_time"] = df[col_prep].apply(_to_minutes) if col_prep else 0
    canonical["cook_time"] = df[col_cook].apply(_to_minutes) if col_cook else 0
    canonical["calories"] = df[col_calories].apply(_to_calories) if col_calories else 0

    if col_author:
        canonical["author_id"] = pd.to_numeric(df[col_author], errors="coerce").fillna(default_author_id)
    else:
        canonical["author_id"] = default_author_id

    epoch = pd.Timestamp("1970-01-01", tz="UTC")
    if col_created:
        canonical["created_at"] = pd.to_datetime(df[col_created], errors="coerce", utc=True).fillna(epoch)
    else:
        canonical["created_at"] = epoch

    canonical["tags"] = df[col_tags].apply(_join_tags) if col_tags else ""

    # Rows without an id or a title cannot be browsed
    canonical = canonical.dropna(subset=["id"])
    canonical = canonical[canonical["title"] != ""].copy()
    canonical["id"] = canonical["id"].astype(int)
    canonical["author_id"] = canonical["author_id"].astype(int)
    canonical = canonical.drop_duplicates(subset=["id"], keep="first")

    return canonical[CANONICAL_COLUMNS].reset_index(drop=True)


def run_ingestion(config: IngestionConfig = DEFAULT_INGESTION_CONFIG) -> Path:
    """
    Execute the ingestion pipeline.

    Steps:
    - Read the raw recipe export.
    - Map raw fields into the canonical recipe schema.
    - Persist cleaned data as CSV for the catalog.
    """
    try:
        raw = pd.read_csv(config.raw_path)
    except (OSError, ValueError) as exc:
        raise StoreError(f"could not read raw recipes from {config.raw_path}") from exc

    canonical = normalize_recipes(raw, default_author_id=config.default_author_id)

    config.processed_data_dir.mkdir(parents=True, exist_ok=True)
    output_path = config.processed_path
    canonical.to_csv(output_path, index=False)
    logger.info("Wrote %d of %d raw recipes to %s", len(canonical), len(raw), output_path)
    return output_path


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Normalize a raw recipe export")
    parser.add_argument("raw_path", nargs="?", type=Path, default=DEFAULT_INGESTION_CONFIG.raw_path)
    parser.add_argument("--out-dir", type=Path, default=DEFAULT_INGESTION_CONFIG.processed_data_dir)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    path = run_ingestion(IngestionConfig(raw_path=args.raw_path, processed_data_dir=args.out_dir))
    print(f"Ingestion complete. Processed data saved to: {path}")
