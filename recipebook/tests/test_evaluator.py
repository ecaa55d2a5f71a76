from __future__ import annotations

from unittest.mock import patch

import pytest

from recipebook.catalog import evaluator
from recipebook.catalog.data_store import add_personal_tag, load_recipes
from recipebook.catalog.evaluator import evaluate, fetch_rows, match_spec
from recipebook.catalog.filters import FilterSpec, build_filter_spec
from recipebook.catalog.tag_scope import AUTHORED_BY_ME, PERSONAL_TAGS, resolve_scope
from recipebook.errors import StoreError
from recipebook.tests.conftest import make_recipe


@pytest.fixture
def scenario():
    """R1{vegetarian,quick}, R2{meat,slow-cook}, R3{dessert,healthy}."""
    return load_recipes([
        make_recipe(1, title="Veggie Wrap", tags="vegetarian,quick", calories=200, prep_time=5, author_id=1,
                    ingredients="Tortilla, fresh BASIL"),
        make_recipe(2, title="Beef Stew", tags="meat,slow-cook", calories=800, prep_time=30, author_id=2),
        make_recipe(3, title="Fruit Cup", tags="dessert,healthy", calories=150, prep_time=15, author_id=1),
    ])


# ── Author tags ──────────────────────────────────────────────────────────


def test_single_author_tag(scenario):
    assert evaluate(build_filter_spec(tags=["vegetarian"])).ordered_ids == (1,)


def test_author_tags_are_anded(scenario):
    assert evaluate(build_filter_spec(tags=["vegetarian", "quick"])).ordered_ids == (1,)
    assert evaluate(build_filter_spec(tags=["vegetarian", "healthy"])).total_count == 0


def test_healthy_tag(scenario):
    assert evaluate(build_filter_spec(tags=["healthy"])).ordered_ids == (3,)


# ── Numeric + search ─────────────────────────────────────────────────────


def test_calories_less_than(scenario):
    spec = FilterSpec().set_numeric_filter("calories", "lt", 300)
    assert evaluate(spec).ordered_ids == (3, 1)


def test_prep_time_at_least(scenario):
    spec = FilterSpec().set_numeric_filter("prep_time", "gte", 15)
    assert evaluate(spec).ordered_ids == (3, 2)


def test_numeric_filters_combine(scenario):
    spec = (
        FilterSpec()
        .set_numeric_filter("calories", "lt", 300)
        .set_numeric_filter("prep_time", "gte", 15)
    )
    assert evaluate(spec).ordered_ids == (3,)


def test_search_is_case_insensitive_over_ingredients(scenario):
    assert evaluate(build_filter_spec(search="basil")).ordered_ids == (1,)
    assert evaluate(build_filter_spec(search="BEEF")).ordered_ids == (2,)


def test_search_does_not_match_tags(scenario):
    assert evaluate(build_filter_spec(search="dessert")).total_count == 0


def test_empty_spec_returns_everything_newest_first(scenario):
    result = evaluate(FilterSpec())
    assert result.ordered_ids == (3, 2, 1)
    assert result.total_count == 3


def test_ties_on_created_at_break_by_id():
    load_recipes([
        make_recipe(5, created_at="2024-02-01T10:00:00Z"),
        make_recipe(4, created_at="2024-02-01T10:00:00Z"),
        make_recipe(6, created_at="2024-01-01T10:00:00Z"),
    ])
    assert evaluate(FilterSpec()).ordered_ids == (4, 5, 6)


def test_empty_collection():
    load_recipes([])
    result = evaluate(build_filter_spec(tags=["vegan"]))
    assert result.total_count == 0
    assert result.ordered_ids == ()


# ── Identity-scoped predicates ───────────────────────────────────────────


def test_authored_by_me(scenario):
    spec = build_filter_spec(authored_by_me=True, actor_id=1)
    assert evaluate(spec).ordered_ids == (3, 1)


def test_authored_by_me_dropped_for_anonymous(scenario):
    result = evaluate(build_filter_spec(authored_by_me=True))
    assert result.total_count == 3
    assert result.dropped == (AUTHORED_BY_ME,)


def test_personal_tags_are_isolated_per_user(scenario):
    add_personal_tag(1, user_id=1, name="favorite")
    mine = build_filter_spec(personal_tags=["favorite"], actor_id=1)
    theirs = build_filter_spec(personal_tags=["favorite"], actor_id=2)
    assert evaluate(mine).ordered_ids == (1,)
    assert evaluate(theirs).ordered_ids == ()


def test_personal_tags_dropped_for_anonymous(scenario):
    add_personal_tag(1, user_id=1, name="favorite")
    result = evaluate(build_filter_spec(personal_tags=["favorite"], tags=["dessert"]))
    assert result.ordered_ids == (3,)
    assert result.dropped == (PERSONAL_TAGS,)


def test_resolve_scope_keeps_author_tags_for_anonymous():
    scope = resolve_scope(build_filter_spec(tags=["vegan"], personal_tags=["mine"], authored_by_me=True))
    assert scope.author_tags == {"vegan"}
    assert scope.personal_tags == frozenset()
    assert scope.author_id is None
    assert set(scope.dropped) == {PERSONAL_TAGS, AUTHORED_BY_ME}


def test_resolve_scope_binds_actor():
    scope = resolve_scope(build_filter_spec(personal_tags=["mine"], authored_by_me=True, actor_id=7))
    assert scope.personal_owner_id == 7
    assert scope.author_id == 7
    assert scope.dropped == ()


# ── Cached matching ──────────────────────────────────────────────────────


def test_match_spec_caches_by_context(scenario):
    spec = build_filter_spec(tags=["healthy"])
    _, hit1 = match_spec(spec)
    result, hit2 = match_spec(build_filter_spec(tags=["Healthy"]))
    assert (hit1, hit2) == (False, True)
    assert result.ordered_ids == (3,)


def test_personal_tag_write_invalidates_matches(scenario):
    spec = build_filter_spec(personal_tags=["favorite"], actor_id=1)
    assert match_spec(spec)[0].total_count == 0
    add_personal_tag(3, user_id=1, name="Favorite")
    result, hit = match_spec(spec)
    assert hit is False
    assert result.ordered_ids == (3,)


def test_tag_write_during_evaluation_is_not_cached(scenario):
    spec = build_filter_spec(personal_tags=["favorite"], actor_id=1)
    real_evaluate = evaluator.evaluate

    def evaluate_then_tag(s):
        result = real_evaluate(s)
        add_personal_tag(1, user_id=1, name="favorite")
        return result

    with patch("recipebook.catalog.evaluator.evaluate", side_effect=evaluate_then_tag):
        first, _ = match_spec(spec)
    assert first.total_count == 0

    result, hit = match_spec(spec)
    assert hit is False
    assert result.ordered_ids == (1,)


def test_match_spec_wraps_evaluation_failures(scenario):
    with patch("recipebook.catalog.evaluator.evaluate", side_effect=RuntimeError("boom")):
        with pytest.raises(StoreError):
            match_spec(FilterSpec())


def test_fetch_rows_preserves_order(scenario):
    rows = fetch_rows((3, 1))
    assert rows["id"].tolist() == [3, 1]
