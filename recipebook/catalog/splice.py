"""
Result splicer
==============

Reference model of what a rendering client does with each query response:

* ``replace`` swaps the rendered list wholesale;
* ``append`` adds the window after what is shown (Load More);
* ``prepend`` adds it before (Load Previous);
* ``none`` leaves the list untouched.

Responses are applied in sequence-token order only; one whose token is not
newer than the last applied token is discarded, so a slow response for an
earlier filter can never overwrite a newer one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from .window import WindowMode


@dataclass
class RenderedList:
    items: list[Any] = field(default_factory=list)
    last_seq: int = 0

    def apply(self, seq: int, mode: WindowMode | str, items: Sequence[Any]) -> bool:
        """Splice *items* in; returns ``False`` when the response was stale."""
        if seq <= self.last_seq:
            return False
        mode = WindowMode(mode)
        if mode is WindowMode.replace:
            self.items = list(items)
        elif mode is WindowMode.append:
            self.items = self.items + list(items)
        elif mode is WindowMode.prepend:
            self.items = list(items) + self.items
        self.last_seq = seq
        return True

    def apply_response(self, response: Any) -> bool:
        """Apply a ``RecipeQueryResponse``-shaped object, ignoring server-flagged stale ones."""
        if getattr(response, "stale", False):
            return False
        return self.apply(response.seq, response.mode, response.recipes)
