from __future__ import annotations

import operator
from typing import Callable, Literal, Mapping

import pandas as pd
from pydantic import BaseModel, ConfigDict, field_validator

NumericField = Literal["calories", "prep_time", "cook_time"]
NumericOperator = Literal["lt", "lte", "eq", "gte", "gt"]

NUMERIC_FIELDS: tuple[str, ...] = ("calories", "prep_time", "cook_time")

OPERATORS: dict[str, Callable[[pd.Series, int], pd.Series]] = {
    "lt": operator.lt,
    "lte": operator.le,
    "eq": operator.eq,
    "gte": operator.ge,
    "gt": operator.gt,
}


class NumericFilter(BaseModel):
    """One ``(operator, value)`` pair for a numeric recipe field.

    A filter only takes part in evaluation once both halves are present, so a
    half-filled control (operator picked, value not yet typed) narrows nothing.
    """

    model_config = ConfigDict(frozen=True)

    operator: NumericOperator | None = None
    value: int | None = None

    @field_validator("operator", "value", mode="before")
    @classmethod
    def _blank_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def is_active(self) -> bool:
        return self.operator is not None and self.value is not None

    def mask(self, column: pd.Series) -> pd.Series:
        if not self.is_active:
            return pd.Series(True, index=column.index)
        return OPERATORS[self.operator](column, self.value)


def active_filters(filters: Mapping[str, NumericFilter]) -> dict[str, NumericFilter]:
    return {name: f for name, f in filters.items() if f.is_active}


def numeric_mask(df: pd.DataFrame, filters: Mapping[str, NumericFilter]) -> pd.Series:
    """AND together every active field filter."""
    mask = pd.Series(True, index=df.index)
    for name, f in active_filters(filters).items():
        mask = mask & f.mask(df[name])
    return mask
