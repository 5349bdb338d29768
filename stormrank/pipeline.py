"""
Pipeline (load -> normalize -> aggregate -> rank)
================================================

`StormRanker` ties the core together for one run:

1) Load raw records (from a local CSV or the cached download)
2) Normalize them once (filter, classify, decode damage)
3) Sum per event class once
4) Rank the same totals twice: by casualties and by damage

Results are (event class, value) pairs ready for charts or tables.
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
import csv
import json
import structlog
from .models import RawRecord, NormalizedRecord, AggregateRow
from .config import PipelineConfig
from .taxonomy import OTHER, DEFAULT_RULES, TaxonomyMapper, load_rules
from .normalizer import NormalizationStats, normalize_with_stats
from .aggregate import METRICS, metric_name, rank, totals as group_totals
from .loader import load_storm_csv
from .cache import SourceCache

log = structlog.get_logger(__name__)

Ranking = List[Tuple[str, float]]

@dataclass
class StormRanker:
    """One run over an in-memory record set."""
    records: Sequence[RawRecord]
    mapper: TaxonomyMapper = field(default_factory=TaxonomyMapper)
    strict: bool = True
    source: Optional[str] = None

    normalized: List[NormalizedRecord] = field(init=False, default_factory=list)
    stats: NormalizationStats = field(init=False, default_factory=NormalizationStats)
    _totals: List[AggregateRow] = field(init=False, default_factory=list)

    def __post_init__(self) -> None:
        self.normalized, self.stats = normalize_with_stats(self.records, self.mapper, strict=self.strict)
        self._totals = group_totals(self.normalized)

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "StormRanker":
        if config.csv_path:
            path = config.csv_path
        else:
            path = SourceCache(config.cache_dir, ttl_hours=config.cache_ttl_hours).fetch(config.source_url)
        rules = load_rules(config.rules_path) if config.rules_path else DEFAULT_RULES
        return cls(
            records=load_storm_csv(path),
            mapper=TaxonomyMapper(rules),
            strict=config.strict_scale_codes,
            source=path,
        )

    def totals(self) -> List[AggregateRow]:
        """All classes, unranked, in first-encountered order."""
        return list(self._totals)

    def top(self, metric: str, top_n: int = 5) -> List[AggregateRow]:
        return rank(self._totals, metric, top_n)

    def ranking(self, metric: str, top_n: int = 5) -> Ranking:
        """Top-N as (event class, summed value) pairs."""
        rows = self.top(metric, top_n)
        m = metric_name(metric)
        return [(r.event_class, r.value(m)) for r in rows]

    def rankings(self, top_n: int = 5) -> Dict[str, Ranking]:
        return {m: self.ranking(m, top_n) for m in METRICS}

    def other_labels(self, n: int = 20) -> List[Tuple[str, int]]:
        """Most frequent labels that no rule matched."""
        c = Counter(r.label for r in self.normalized if r.event_class == OTHER)
        return c.most_common(n)

    def export_csv(self, path: str) -> None:
        with open(path, "w", newline="", encoding="utf-8") as f:
            w = csv.writer(f)
            w.writerow(["event_class", "casualties", "damage_usd"])
            for r in rank(self._totals, "damage", len(self._totals)):
                w.writerow([r.event_class, r.casualties, r.damage])

    def export_json(self, path: str, top_n: int = 5) -> None:
        """Write both rankings plus the full per-class table as JSON."""
        payload = {
            "source": self.source,
            "records_kept": self.stats.kept,
            "rankings": {m: [{"event_class": k, m: v} for k, v in pairs]
                         for m, pairs in self.rankings(top_n).items()},
            "totals": [
                {"event_class": r.event_class, "casualties": r.casualties, "damage": r.damage}
                for r in self._totals
            ],
        }
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        log.info("exported json", path=path)
