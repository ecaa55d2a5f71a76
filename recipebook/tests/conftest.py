from __future__ import annotations

import pytest

from recipebook.analytics.store import clear_events
from recipebook.catalog.cache import clear_cache
from recipebook.catalog.data_store import reset_store
from recipebook.catalog.window import get_registry


@pytest.fixture(autouse=True)
def _fresh_state():
    """Every test starts from the seed CSV with empty caches and sessions."""
    reset_store()
    clear_cache()
    clear_events()
    get_registry().clear()
    yield
    reset_store()
    get_registry().clear()


def make_recipe(recipe_id: int, **overrides) -> dict:
    row = {
        "id": recipe_id,
        "title": f"Recipe {recipe_id}",
        "ingredients": "",
        "instructions": "",
        "prep_time": 0,
        "cook_time": 0,
        "calories": 0,
        "author_id": 1,
        "created_at": f"2024-01-{recipe_id:02d}T12:00:00Z",
        "tags": "",
    }
    row.update(overrides)
    return row
