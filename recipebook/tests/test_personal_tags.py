from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient

from recipebook.app import app
from recipebook.catalog.data_store import (
    add_personal_tag,
    get_personal_tags,
    load_recipes,
    remove_personal_tag,
)
from recipebook.errors import InvalidTagError, RecipeNotFoundError
from recipebook.tests.conftest import make_recipe


def _login_alice(c):
    c.post("/auth/login", json={"username": "alice", "password": "alice123"})


# ── Store operations ─────────────────────────────────────────────────────


def test_add_is_get_or_create():
    load_recipes([make_recipe(1)])
    assert add_personal_tag(1, 1, " Favorite ") == "favorite"
    assert add_personal_tag(1, 1, "favorite") == "favorite"
    assert get_personal_tags(1, 1) == ["favorite"]


def test_tags_are_per_user():
    load_recipes([make_recipe(1)])
    add_personal_tag(1, 1, "favorite")
    assert get_personal_tags(1, 2) == []


def test_remove_absent_tag_is_noop():
    load_recipes([make_recipe(1)])
    assert remove_personal_tag(1, 1, "never-added") is False
    add_personal_tag(1, 1, "weeknight")
    assert remove_personal_tag(1, 1, "WEEKNIGHT") is True
    assert get_personal_tags(1, 1) == []


def test_empty_tag_rejected():
    load_recipes([make_recipe(1)])
    with pytest.raises(InvalidTagError):
        add_personal_tag(1, 1, "   ")


def test_unknown_recipe():
    load_recipes([make_recipe(1)])
    with pytest.raises(RecipeNotFoundError):
        add_personal_tag(99, 1, "favorite")


def test_concurrent_adds_on_one_row():
    load_recipes([make_recipe(1)])
    names = [f"tag-{i % 10}" for i in range(200)]
    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda n: add_personal_tag(1, 1, n), names))
    assert get_personal_tags(1, 1) == sorted({n for n in names})


# ── Endpoints ────────────────────────────────────────────────────────────


def test_add_list_remove_via_api():
    c = TestClient(app)
    _login_alice(c)
    assert c.get("/recipes/5/personal-tags").json() == {"recipe_id": 5, "tags": []}

    c.post("/recipes/5/personal-tags", json={"name": "Date Night"})
    resp = c.post("/recipes/5/personal-tags", json={"name": "date night"})
    assert resp.status_code == 200
    assert resp.json()["tags"] == ["date night"]

    resp = c.delete("/recipes/5/personal-tags/Date Night")
    assert resp.status_code == 200
    assert resp.json()["tags"] == []


def test_unknown_recipe_via_api():
    c = TestClient(app)
    _login_alice(c)
    assert c.get("/recipes/999/personal-tags").status_code == 404
    resp = c.post("/recipes/999/personal-tags", json={"name": "favorite"})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Recipe 999 not found"


def test_blank_tag_via_api():
    c = TestClient(app)
    _login_alice(c)
    assert c.post("/recipes/1/personal-tags", json={"name": ""}).status_code == 422
    assert c.post("/recipes/1/personal-tags", json={"name": "   "}).status_code == 422
