from __future__ import annotations

from collections import Counter
from typing import Any


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    queries = [e for e in events if e["type"] == "query"]
    total = len(queries)

    # Average response time
    times = [q["response_time_ms"] for q in queries if "response_time_ms" in q]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    # Navigation actions
    action_counts = dict(Counter(q.get("action", "unknown") for q in queries))

    # Top author tags
    tag_counter: Counter[str] = Counter()
    for q in queries:
        for t in q.get("author_tags", []) or []:
            tag_counter[t] += 1
    top_tags = [{"name": n, "count": c} for n, c in tag_counter.most_common(10)]

    # Filter usage rates
    filter_counts = {"search": 0, "author_tags": 0, "personal_tags": 0, "numeric": 0, "authored_by_me": 0}
    for q in queries:
        if q.get("search"):
            filter_counts["search"] += 1
        if q.get("author_tags"):
            filter_counts["author_tags"] += 1
        if q.get("personal_tags", 0) > 0:
            filter_counts["personal_tags"] += 1
        if q.get("numeric_fields"):
            filter_counts["numeric"] += 1
        if q.get("authored_by_me"):
            filter_counts["authored_by_me"] += 1
    filter_usage = {
        k: round(v / total * 100, 1) if total else 0.0
        for k, v in filter_counts.items()
    }

    anonymous = sum(1 for q in queries if q.get("anonymous"))
    empty_results = sum(1 for q in queries if q.get("total_count", 0) == 0)

    # Cache stats
    cache_hits = sum(1 for q in queries if q.get("cache_hit"))
    cache_misses = total - cache_hits

    return {
        "total_queries": total,
        "avg_response_time_ms": avg_time,
        "action_counts": action_counts,
        "top_author_tags": top_tags,
        "filter_usage": filter_usage,
        "anonymous_queries": anonymous,
        "empty_result_queries": empty_results,
        "cache_stats": {
            "hits": cache_hits,
            "misses": cache_misses,
            "hit_rate": round(cache_hits / total * 100, 1) if total else 0.0,
        },
    }
