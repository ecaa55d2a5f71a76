from __future__ import annotations

import threading
import time
from typing import Any

from ..config import DEFAULT_CATALOG_CONFIG

_cache: dict[str, dict[str, Any]] = {}
_lock = threading.Lock()
_hits: int = 0
_misses: int = 0
# Bumped on every invalidation; results computed under an older generation are not stored.
_generation: int = 0


def cache_get(key: str, ttl: float = DEFAULT_CATALOG_CONFIG.cache_ttl) -> Any | None:
    global _hits, _misses
    with _lock:
        entry = _cache.get(key)
        if entry and time.time() - entry["created_at"] < ttl:
            _hits += 1
            return entry["value"]
        if entry:
            del _cache[key]
        _misses += 1
        return None


def current_generation() -> int:
    with _lock:
        return _generation


def cache_set(key: str, value: Any, generation: int | None = None) -> bool:
    """Store *value*; refused when *generation* predates the last invalidation."""
    with _lock:
        if generation is not None and generation != _generation:
            return False
        _cache[key] = {"value": value, "created_at": time.time()}
        return True


def invalidate() -> None:
    """Drop cached match results; hit/miss counters are kept."""
    global _generation
    with _lock:
        _cache.clear()
        _generation += 1


def get_cache_stats() -> dict:
    total = _hits + _misses
    return {
        "size": len(_cache),
        "hits": _hits,
        "misses": _misses,
        "hit_rate": round(_hits / total * 100, 1) if total > 0 else 0.0,
    }


def clear_cache() -> None:
    global _hits, _misses, _generation
    with _lock:
        _cache.clear()
        _generation += 1
        _hits = 0
        _misses = 0
