from __future__ import annotations

import hashlib
import json
from typing import Any, Iterable, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..errors import InvalidFilterError
from .data_store import split_tags
from .numeric import NUMERIC_FIELDS, NumericFilter, active_filters


def _normalize_search(v: Any) -> str | None:
    if v is None:
        return None
    v = str(v).strip()
    return v or None


class FilterSpec(BaseModel):
    """Immutable, normalized set of filter predicates for one viewer.

    Every builder method returns a new spec; ``numeric_filters`` is never
    mutated in place.
    """

    model_config = ConfigDict(frozen=True)

    search: str | None = None
    author_tags: frozenset[str] = frozenset()
    personal_tags: frozenset[str] = frozenset()
    numeric_filters: dict[str, NumericFilter] = Field(default_factory=dict)
    authored_by_me: bool = False
    actor_id: int | None = None

    @field_validator("search", mode="before")
    @classmethod
    def _strip_search(cls, v):
        return _normalize_search(v)

    @field_validator("author_tags", "personal_tags", mode="before")
    @classmethod
    def _normalize_tags(cls, v):
        return frozenset(split_tags(v))

    @field_validator("numeric_filters")
    @classmethod
    def _known_fields(cls, v: dict[str, NumericFilter]) -> dict[str, NumericFilter]:
        unknown = set(v) - set(NUMERIC_FIELDS)
        if unknown:
            raise ValueError(f"unknown numeric field(s): {', '.join(sorted(unknown))}")
        return v

    # ── Builder operations ───────────────────────────────────────────────

    def set_search(self, text: str | None) -> FilterSpec:
        return self.model_copy(update={"search": _normalize_search(text)})

    def toggle_author_tag(self, tag: str) -> FilterSpec:
        names = split_tags([tag])
        if not names:
            return self
        return self.model_copy(update={"author_tags": self.author_tags ^ {names[0]}})

    def set_personal_tag_filter(self, tag: str) -> FilterSpec:
        return self.model_copy(update={"personal_tags": self.personal_tags | set(split_tags([tag]))})

    def remove_personal_tag_filter(self, tag: str) -> FilterSpec:
        return self.model_copy(update={"personal_tags": self.personal_tags - set(split_tags([tag]))})

    def set_numeric_filter(
        self,
        field: str,
        operator: str | None = None,
        value: int | None = None,
    ) -> FilterSpec:
        if field not in NUMERIC_FIELDS:
            raise InvalidFilterError(f"unknown numeric field: {field}")
        try:
            numeric = NumericFilter(operator=operator, value=value)
        except ValueError as exc:
            raise InvalidFilterError(str(exc)) from exc
        filters = dict(self.numeric_filters)
        filters[field] = numeric
        return self.model_copy(update={"numeric_filters": filters})

    def set_authored_by_me(self, enabled: bool) -> FilterSpec:
        return self.model_copy(update={"authored_by_me": bool(enabled)})

    def with_actor(self, actor_id: int | None) -> FilterSpec:
        return self.model_copy(update={"actor_id": actor_id})

    def clear(self) -> FilterSpec:
        """Reset every predicate; the actor is not part of the filter intent."""
        return FilterSpec(actor_id=self.actor_id)

    # ── Identity ─────────────────────────────────────────────────────────

    def canonical(self) -> dict[str, Any]:
        return {
            "search": self.search.lower() if self.search else None,
            "author_tags": sorted(self.author_tags),
            "personal_tags": sorted(self.personal_tags),
            "numeric": {
                name: [f.operator, f.value]
                for name, f in sorted(active_filters(self.numeric_filters).items())
            },
            "authored_by_me": self.authored_by_me,
            "actor": self.actor_id,
        }

    def context_id(self) -> str:
        """Stable digest; specs that select the same rows share an id."""
        normalized = json.dumps(self.canonical(), sort_keys=True)
        return hashlib.sha256(normalized.encode()).hexdigest()[:16]

    @property
    def is_empty(self) -> bool:
        c = self.canonical()
        return not (c["search"] or c["author_tags"] or c["personal_tags"] or c["numeric"] or c["authored_by_me"])


def build_filter_spec(
    search: str | None = None,
    tags: Iterable[str] | str | None = None,
    personal_tags: Iterable[str] | str | None = None,
    numeric: Mapping[str, NumericFilter | Mapping[str, Any]] | None = None,
    authored_by_me: bool = False,
    actor_id: int | None = None,
) -> FilterSpec:
    """Build a spec from raw request fields in one step."""
    try:
        return FilterSpec(
            search=search,
            author_tags=tags or (),
            personal_tags=personal_tags or (),
            numeric_filters=dict(numeric or {}),
            authored_by_me=authored_by_me,
            actor_id=actor_id,
        )
    except ValueError as exc:
        raise InvalidFilterError(str(exc)) from exc
