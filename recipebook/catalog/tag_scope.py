"""
Tag Scope Resolver
==================

Every predicate whose meaning depends on *who is asking* goes through
``resolve_scope``:

* **author tags** are public, so they pass through unchanged;
* **personal tags** are matched only against the acting user's own
  (recipe, user) rows;
* **authored by me** compares ``recipe.author_id`` with the acting user.

An anonymous actor cannot hold personal tags or author recipes, so both of
those predicate families are dropped here regardless of what the request
carried.  The evaluator only ever sees a ``ResolvedScope`` and never inspects
the actor itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import pandas as pd

from .data_store import recipes_with_personal_tags
from .filters import FilterSpec

logger = logging.getLogger(__name__)

PERSONAL_TAGS = "personal_tags"
AUTHORED_BY_ME = "authored_by_me"


@dataclass(frozen=True)
class ResolvedScope:
    author_tags: frozenset[str] = frozenset()
    personal_tags: frozenset[str] = frozenset()
    personal_owner_id: int | None = None
    author_id: int | None = None
    dropped: tuple[str, ...] = ()

    def author_tag_mask(self, df: pd.DataFrame) -> pd.Series:
        """Recipe's author tags must be a superset of the requested tags."""
        if not self.author_tags:
            return pd.Series(True, index=df.index)
        required = self.author_tags
        return df["tags_list"].apply(lambda tags: required.issubset(tags)).astype(bool)

    def personal_tag_mask(self, df: pd.DataFrame) -> pd.Series:
        if not self.personal_tags or self.personal_owner_id is None:
            return pd.Series(True, index=df.index)
        ids = recipes_with_personal_tags(self.personal_owner_id, self.personal_tags)
        return df["id"].isin(ids)

    def authored_mask(self, df: pd.DataFrame) -> pd.Series:
        if self.author_id is None:
            return pd.Series(True, index=df.index)
        return df["author_id"] == self.author_id


def resolve_scope(spec: FilterSpec) -> ResolvedScope:
    """Single capability-checked entry point for identity-scoped predicates."""
    actor = spec.actor_id
    dropped: list[str] = []

    personal_tags = spec.personal_tags
    if personal_tags and actor is None:
        dropped.append(PERSONAL_TAGS)
        personal_tags = frozenset()

    author_id = None
    if spec.authored_by_me:
        if actor is None:
            dropped.append(AUTHORED_BY_ME)
        else:
            author_id = actor

    if dropped:
        logger.debug("Dropping %s for anonymous actor", ", ".join(dropped))

    return ResolvedScope(
        author_tags=spec.author_tags,
        personal_tags=personal_tags,
        personal_owner_id=actor if personal_tags else None,
        author_id=author_id,
        dropped=tuple(dropped),
    )
