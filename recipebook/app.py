from __future__ import annotations

import logging
import uuid

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.sessions import SessionMiddleware

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events
from .auth.dependencies import get_actor_id, require_admin, require_user
from .auth.users import authenticate
from .catalog.browse import run_query
from .catalog.cache import get_cache_stats
from .catalog.data_store import (
    add_personal_tag,
    all_author_tags,
    get_personal_tags,
    get_recipe,
    remove_personal_tag,
)
from .catalog.models import (
    LoginRequest,
    PersonalTagRequest,
    PersonalTagsResponse,
    RecipeQueryRequest,
    RecipeQueryResponse,
    WindowActionIn,
)
from .catalog.numeric import NUMERIC_FIELDS, OPERATORS
from .catalog.url_state import from_query_params
from .catalog.window import ActionType, get_registry
from .config import DEFAULT_CATALOG_CONFIG, DEFAULT_SESSION_CONFIG
from .errors import InvalidFilterError, InvalidTagError, RecipeNotFoundError, StoreError

logger = logging.getLogger(__name__)

app = FastAPI(title="Recipe Book API", version="1.0.0")
app.add_middleware(SessionMiddleware, secret_key=DEFAULT_SESSION_CONFIG.secret_key)


def _browse_session_id(request: Request) -> str:
    """Random per-session id that keys window state."""
    sid = request.session.get(DEFAULT_SESSION_CONFIG.browse_key)
    if not sid:
        sid = uuid.uuid4().hex
        request.session[DEFAULT_SESSION_CONFIG.browse_key] = sid
    return sid


# ── Error mapping ────────────────────────────────────────────────────────


@app.exception_handler(StoreError)
def store_error(request: Request, exc: StoreError) -> JSONResponse:
    logger.warning("Store failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(RecipeNotFoundError)
def recipe_not_found(request: Request, exc: RecipeNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidFilterError)
@app.exception_handler(InvalidTagError)
def invalid_input(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    return {
        "author_tags": all_author_tags(),
        "numeric_fields": list(NUMERIC_FIELDS),
        "operators": list(OPERATORS),
        "page_sizes": list(DEFAULT_CATALOG_CONFIG.page_sizes),
        "default_page_size": DEFAULT_CATALOG_CONFIG.default_page_size,
    }


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session[DEFAULT_SESSION_CONFIG.user_key] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    sid = request.session.get(DEFAULT_SESSION_CONFIG.browse_key)
    if sid:
        get_registry().discard(sid)
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── Browse endpoints ─────────────────────────────────────────────────────


@app.post("/recipes/query", response_model=RecipeQueryResponse)
def query_recipes(body: RecipeQueryRequest, request: Request) -> RecipeQueryResponse:
    return run_query(body, get_actor_id(request), _browse_session_id(request))


@app.get("/recipes", response_model=RecipeQueryResponse)
def list_recipes(request: Request) -> RecipeQueryResponse:
    """Restore a shared list view from its query string."""
    state = from_query_params(request.query_params)
    spec = state.spec
    body = RecipeQueryRequest(
        search=spec.search,
        tags=sorted(spec.author_tags),
        personal_tags=sorted(spec.personal_tags),
        numeric_filters=dict(spec.numeric_filters),
        authored_by_me=spec.authored_by_me,
        action=WindowActionIn(type=ActionType.goto_page, page=state.page),
        page_size=state.page_size,
    )
    return run_query(body, get_actor_id(request), _browse_session_id(request))


# ── Personal tags ────────────────────────────────────────────────────────


@app.get("/recipes/{recipe_id}/personal-tags", response_model=PersonalTagsResponse)
def list_personal_tags(recipe_id: int, user: dict = Depends(require_user)) -> PersonalTagsResponse:
    get_recipe(recipe_id)
    return PersonalTagsResponse(recipe_id=recipe_id, tags=get_personal_tags(recipe_id, user["id"]))


@app.post("/recipes/{recipe_id}/personal-tags", response_model=PersonalTagsResponse)
def create_personal_tag(
    recipe_id: int,
    body: PersonalTagRequest,
    user: dict = Depends(require_user),
) -> PersonalTagsResponse:
    add_personal_tag(recipe_id, user["id"], body.name)
    return PersonalTagsResponse(recipe_id=recipe_id, tags=get_personal_tags(recipe_id, user["id"]))


@app.delete("/recipes/{recipe_id}/personal-tags/{tag}", response_model=PersonalTagsResponse)
def delete_personal_tag(
    recipe_id: int,
    tag: str,
    user: dict = Depends(require_user),
) -> PersonalTagsResponse:
    remove_personal_tag(recipe_id, user["id"], tag)
    return PersonalTagsResponse(recipe_id=recipe_id, tags=get_personal_tags(recipe_id, user["id"]))


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/analytics")
def analytics(user: dict = Depends(require_admin)) -> dict:
    return compute_analytics(get_events())


@app.get("/cache/stats")
def cache_stats(user: dict = Depends(require_admin)) -> dict:
    return get_cache_stats()
