from __future__ import annotations

from datetime import datetime

import pandas as pd
from pydantic import BaseModel, Field

from ..config import DEFAULT_CATALOG_CONFIG
from .numeric import NumericField, NumericFilter
from .window import ActionType, WindowAction, WindowMode


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class WindowActionIn(BaseModel):
    type: ActionType = ActionType.set_filter
    page: int | None = Field(default=None, description="Target page for goto_page; clipped into range")
    page_size: int | None = Field(default=None, ge=1, le=DEFAULT_CATALOG_CONFIG.max_page_size)

    def to_action(self, fallback_page_size: int | None = None) -> WindowAction:
        return WindowAction(
            type=self.type,
            page=self.page,
            page_size=self.page_size if self.page_size is not None else fallback_page_size,
        )


class RecipeQueryRequest(BaseModel):
    search: str | None = None
    tags: list[str] = Field(default_factory=list, description="Author tags; a recipe must carry all of them")
    personal_tags: list[str] = Field(default_factory=list)
    numeric_filters: dict[NumericField, NumericFilter] = Field(default_factory=dict)
    authored_by_me: bool = False
    action: WindowActionIn = Field(default_factory=WindowActionIn)
    page_size: int | None = Field(default=None, ge=1, le=DEFAULT_CATALOG_CONFIG.max_page_size)
    seq: int | None = Field(default=None, ge=1, description="Client sequence token")


class RecipeOut(BaseModel):
    id: int
    title: str
    ingredients: str
    instructions: str
    prep_time: int
    cook_time: int
    calories: int
    author_id: int
    created_at: datetime
    tags: list[str]

    @classmethod
    def from_row(cls, row: pd.Series) -> RecipeOut:
        return cls(
            id=int(row["id"]),
            title=row["title"],
            ingredients=row["ingredients"],
            instructions=row["instructions"],
            prep_time=int(row["prep_time"]),
            cook_time=int(row["cook_time"]),
            calories=int(row["calories"]),
            author_id=int(row["author_id"]),
            created_at=row["created_at"].to_pydatetime(),
            tags=list(row["tags_list"]),
        )


class RecipeQueryResponse(BaseModel):
    recipes: list[RecipeOut]
    mode: WindowMode
    total_count: int
    header_page: int
    footer_page: int
    page_size: int
    total_pages: int
    range_start: int
    range_end: int
    page_numbers: list[int]
    can_load_more: bool
    can_load_previous: bool
    seq: int
    stale: bool = False
    cache_hit: bool = False
    dropped_predicates: list[str] = Field(default_factory=list)
    url: str


class PersonalTagRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)


class PersonalTagsResponse(BaseModel):
    recipe_id: int
    tags: list[str]
