"""
Aggregator (group by event class, sum, rank, top-N)
===================================================

- `totals` groups normalized records by event class and sums casualties
  and damage. Groups keep first-encountered order.
- `aggregate` ranks those groups by one metric (descending) and returns
  the first `top_n`. Python's sort is stable, so equal values keep
  encounter order.

Sums are associative, so the work can also be split:
- `partial_totals` on each contiguous shard,
- `merge_totals` to add the partials key by key (in shard order),
- `aggregate_sharded` does both on a thread pool and ranks the result.
Merging contiguous shards in order preserves first-encounter order, so the
sharded ranking equals the single-pass one, ties included.
"""

from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Sequence
from .models import NormalizedRecord, AggregateRow

METRICS = ("casualties", "damage")

def metric_name(metric: str) -> str:
    """Canonical metric name for `metric` or one of its aliases."""
    m = metric.lower().strip()
    if m in ("casualties", "casualty", "health"):
        return "casualties"
    if m in ("damage", "damages", "economic"):
        return "damage"
    raise ValueError("metric must be: casualties, damage")

def partial_totals(records: Iterable[NormalizedRecord]) -> Dict[str, AggregateRow]:
    """Per-class sums in first-encountered order."""
    cas: Dict[str, int] = {}
    dmg: Dict[str, float] = {}
    for r in records:
        cas[r.event_class] = cas.get(r.event_class, 0) + r.casualties
        dmg[r.event_class] = dmg.get(r.event_class, 0.0) + r.damage
    return {k: AggregateRow(k, cas[k], dmg[k]) for k in cas}

def merge_totals(partials: Iterable[Dict[str, AggregateRow]]) -> Dict[str, AggregateRow]:
    merged: Dict[str, AggregateRow] = {}
    for part in partials:
        for k, row in part.items():
            prev = merged.get(k)
            if prev is None:
                merged[k] = row
            else:
                merged[k] = AggregateRow(k, prev.casualties + row.casualties, prev.damage + row.damage)
    return merged

def totals(records: Iterable[NormalizedRecord]) -> List[AggregateRow]:
    return list(partial_totals(records).values())

def rank(rows: Iterable[AggregateRow], metric: str, top_n: int) -> List[AggregateRow]:
    """Sort rows descending by `metric` (stable) and keep the first `top_n`."""
    if top_n < 0:
        raise ValueError("top_n must be >= 0")
    m = metric_name(metric)
    return sorted(rows, key=lambda r: r.value(m), reverse=True)[:top_n]

def aggregate(records: Iterable[NormalizedRecord], metric: str, top_n: int = 5) -> List[AggregateRow]:
    """Top-N event classes by summed `metric` ("casualties" or "damage").

    Fewer than `top_n` classes -> all of them; no records -> [].
    """
    metric_name(metric)
    return rank(totals(records), metric, top_n)

def aggregate_sharded(
    records: Sequence[NormalizedRecord],
    metric: str,
    top_n: int = 5,
    shards: int = 4,
) -> List[AggregateRow]:
    metric_name(metric)
    if shards < 1:
        raise ValueError("shards must be >= 1")
    size = max(1, -(-len(records) // shards))
    chunks = [records[i:i + size] for i in range(0, len(records), size)]
    with ThreadPoolExecutor(max_workers=shards) as pool:
        partials = list(pool.map(partial_totals, chunks))
    return rank(merge_totals(partials).values(), metric, top_n)
