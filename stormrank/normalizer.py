"""
Record normalizer (RawRecord -> NormalizedRecord)
=================================================

Per record, in order:
1) Filter: keep only rows with some impact, and drop rows whose scale code
   is one of the "unknown/estimated" sentinels (+, -, ?).
2) Normalize the label (upper, trim, collapse whitespace) and classify it.
3) Normalize both scale codes (trim, upper; empty means 10^0).
4) casualties = fatalities + injuries
5) damage = decoded property + decoded crop damage

Survivors keep their input order. Negative counts are not clamped; they are
counted and reported once per run, as are unrecognized scale codes in
lenient mode.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict, field
from typing import Dict, Iterable, List, Optional, Tuple
import structlog
from .models import RawRecord, NormalizedRecord
from .magnitude import EXPONENTS, SENTINEL_CODES, decode_magnitude
from .taxonomy import TaxonomyMapper, normalize_label

log = structlog.get_logger(__name__)

@dataclass
class NormalizationStats:
    seen: int = 0
    kept: int = 0
    dropped_zero: int = 0
    dropped_sentinel: int = 0
    # kept records with a negative count or coefficient
    negative: int = 0
    # lenient mode: unrecognized scale code -> fields decoded as 10^0
    unknown_codes: Dict[str, int] = field(default_factory=dict)

def normalize_code(code: Optional[str]) -> str:
    return str(code or "").strip().upper()

def normalize_record(rec: RawRecord, mapper: TaxonomyMapper, strict: bool = True) -> NormalizedRecord:
    """Classify and decode one record that already passed the filter."""
    label = normalize_label(rec.event_type)
    damage = (decode_magnitude(rec.prop_dmg, normalize_code(rec.prop_dmg_exp), strict=strict)
              + decode_magnitude(rec.crop_dmg, normalize_code(rec.crop_dmg_exp), strict=strict))
    return NormalizedRecord(
        event_class=mapper.classify(label),
        casualties=int(rec.fatalities + rec.injuries),
        damage=float(damage),
        label=label,
    )

def _drop_reason(rec: RawRecord) -> Optional[str]:
    if not rec.has_impact():
        return "zero"
    if normalize_code(rec.prop_dmg_exp) in SENTINEL_CODES or normalize_code(rec.crop_dmg_exp) in SENTINEL_CODES:
        return "sentinel"
    return None

def normalize_with_stats(
    records: Iterable[RawRecord],
    mapper: Optional[TaxonomyMapper] = None,
    *,
    strict: bool = True,
) -> Tuple[List[NormalizedRecord], NormalizationStats]:
    """Normalize records and return them with filter statistics.

    Raises `InvalidScaleCodeError` (strict mode) on the first unrecognized
    scale code of a surviving record.
    """
    mapper = mapper or TaxonomyMapper()
    stats = NormalizationStats()
    out: List[NormalizedRecord] = []

    for rec in records:
        stats.seen += 1
        reason = _drop_reason(rec)
        if reason == "zero":
            stats.dropped_zero += 1
            continue
        if reason == "sentinel":
            stats.dropped_sentinel += 1
            continue
        if min(rec.fatalities, rec.injuries, rec.prop_dmg, rec.crop_dmg) < 0:
            stats.negative += 1
        if not strict:
            for code in (normalize_code(rec.prop_dmg_exp), normalize_code(rec.crop_dmg_exp)):
                if code not in EXPONENTS:
                    stats.unknown_codes[code] = stats.unknown_codes.get(code, 0) + 1
        out.append(normalize_record(rec, mapper, strict=strict))

    stats.kept = len(out)
    if stats.negative:
        log.warning("negative impact values passed through unclamped", records=stats.negative)
    if stats.unknown_codes:
        log.warning("unrecognized scale codes decoded as 10^0", codes=stats.unknown_codes)
    log.info("normalized records", labels=mapper.cache_size(), **asdict(stats))
    return out, stats

def normalize(
    records: Iterable[RawRecord],
    mapper: Optional[TaxonomyMapper] = None,
    *,
    strict: bool = True,
) -> List[NormalizedRecord]:
    out, _ = normalize_with_stats(records, mapper, strict=strict)
    return out
