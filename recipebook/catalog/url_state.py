from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping
from urllib.parse import urlencode

from ..config import DEFAULT_CATALOG_CONFIG
from ..errors import InvalidFilterError
from .filters import FilterSpec, build_filter_spec
from .numeric import NUMERIC_FIELDS, active_filters

LIST_PATH = "/recipes"


@dataclass(frozen=True)
class ListState:
    """Filter and page state decoded from a list-view query string."""

    spec: FilterSpec
    page: int = 1
    page_size: int = DEFAULT_CATALOG_CONFIG.default_page_size


def _positive_int(raw: str | None, default: int) -> int:
    try:
        value = int(raw) if raw is not None else default
    except ValueError:
        return default
    return value if value > 0 else default


def to_query_params(
    spec: FilterSpec,
    page: int = 1,
    page_size: int = DEFAULT_CATALOG_CONFIG.default_page_size,
) -> dict[str, str]:
    """Encode *spec* plus page state; default values are left out."""
    params: dict[str, str] = {}
    if page > 1:
        params["page"] = str(page)
    if page_size != DEFAULT_CATALOG_CONFIG.default_page_size:
        params["page_size"] = str(page_size)
    if spec.search:
        params["search"] = spec.search
    if spec.author_tags:
        params["tags"] = ",".join(sorted(spec.author_tags))
    if spec.personal_tags:
        params["user_tags"] = ",".join(sorted(spec.personal_tags))
    if spec.authored_by_me:
        params["authored_by_me"] = "1"
    for name, f in sorted(active_filters(spec.numeric_filters).items()):
        params[f"{name}_op"] = f.operator
        params[f"{name}_value"] = str(f.value)
    return params


def to_url(
    spec: FilterSpec,
    page: int = 1,
    page_size: int = DEFAULT_CATALOG_CONFIG.default_page_size,
) -> str:
    params = to_query_params(spec, page, page_size)
    if not params:
        return LIST_PATH
    return f"{LIST_PATH}?{urlencode(params)}"


def from_query_params(params: Mapping[str, str], actor_id: int | None = None) -> ListState:
    """Decode a query string mapping back into a :class:`ListState`.

    Malformed page numbers fall back to their defaults; an unknown numeric
    operator raises :class:`InvalidFilterError`.
    """
    numeric: dict[str, dict[str, object]] = {}
    for name in NUMERIC_FIELDS:
        op = params.get(f"{name}_op")
        raw_value = params.get(f"{name}_value")
        if not op and not raw_value:
            continue
        try:
            value = int(raw_value) if raw_value not in (None, "") else None
        except ValueError as exc:
            raise InvalidFilterError(f"{name}_value must be an integer") from exc
        numeric[name] = {"operator": op or None, "value": value}

    spec = build_filter_spec(
        search=params.get("search"),
        tags=params.get("tags"),
        personal_tags=params.get("user_tags"),
        numeric=numeric,
        authored_by_me=params.get("authored_by_me") in ("1", "true", "on"),
        actor_id=actor_id,
    )
    page_size = min(
        _positive_int(params.get("page_size"), DEFAULT_CATALOG_CONFIG.default_page_size),
        DEFAULT_CATALOG_CONFIG.max_page_size,
    )
    return ListState(spec=spec, page=_positive_int(params.get("page"), 1), page_size=page_size)
