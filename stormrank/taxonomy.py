"""
Taxonomy mapper (free-text EVTYPE -> canonical event class)
==========================================================

The raw `EVTYPE` column holds ~985 distinct spellings ("TSTM WIND",
"THUNDERSTORM WINDS/HAIL", "URBAN/SML STREAM FLD", ...). The mapper reduces
them to the 48 NWS Storm Data event classes plus "Other".

How it works:
- A rule table is an ordered list of (regex pattern, canonical class).
- `classify` tests the label against each pattern with `re.search`
  (substring semantics) and returns the class of the FIRST match.
- A label no rule matches (including "?" or "0" under the default table)
  is "Other".
- Results are memoized per label: the same few hundred labels repeat
  across hundreds of thousands of rows.

Order matters in DEFAULT_RULES: specific classes come before the generic
ones that would also match them (marine before land, flash flood before
flood, extreme cold before cold, thunderstorm wind before hail/high wind).
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Sequence, Tuple
import re
import pandas as pd
import structlog
from .models import TaxonomyRule

log = structlog.get_logger(__name__)

OTHER = "Other"

CANONICAL_CLASSES = (
    "Astronomical Low Tide", "Avalanche", "Blizzard", "Coastal Flood",
    "Cold/Wind Chill", "Debris Flow", "Dense Fog", "Dense Smoke", "Drought",
    "Dust Devil", "Dust Storm", "Excessive Heat", "Extreme Cold/Wind Chill",
    "Flash Flood", "Flood", "Frost/Freeze", "Funnel Cloud", "Freezing Fog",
    "Hail", "Heat", "Heavy Rain", "Heavy Snow", "High Surf", "High Wind",
    "Hurricane (Typhoon)", "Ice Storm", "Lake-Effect Snow", "Lakeshore Flood",
    "Lightning", "Marine Hail", "Marine High Wind", "Marine Strong Wind",
    "Marine Thunderstorm Wind", "Rip Current", "Seiche", "Sleet",
    "Storm Surge/Tide", "Strong Wind", "Thunderstorm Wind", "Tornado",
    "Tropical Depression", "Tropical Storm", "Tsunami", "Volcanic Ash",
    "Waterspout", "Wildfire", "Winter Storm", "Winter Weather",
)

_TSTM = r"TSTM|THUNDERSTORM|THUNDERSTROM|THUNDESTORM|THUNDERTORM|THUNERSTORM|TUNDERSTORM|THUNDEERSTORM|THUDERSTORM"

DEFAULT_RULES: Tuple[TaxonomyRule, ...] = tuple(TaxonomyRule(p, c) for p, c in [
    # Marine and coastal
    (r"ASTRONOMICAL LOW", "Astronomical Low Tide"),
    (r"MARINE HAIL", "Marine Hail"),
    (r"MARINE HIGH WIND", "Marine High Wind"),
    (r"MARINE STRONG WIND", "Marine Strong Wind"),
    (r"MARINE (" + _TSTM + r")", "Marine Thunderstorm Wind"),
    (r"TSUNAMI", "Tsunami"),
    (r"SEICHE", "Seiche"),
    (r"RIP CURRENT", "Rip Current"),
    (r"STORM SURGE|STORM TIDE|COASTAL SURGE|HIGH TIDE", "Storm Surge/Tide"),
    # Tropical systems
    (r"HURRICANE|TYPHOON", "Hurricane (Typhoon)"),
    (r"TROPICAL DEPRESSION", "Tropical Depression"),
    (r"TROPICAL STORM", "Tropical Storm"),
    # Rotating / convective
    (r"WATERSPOUT|WATER SPOUT", "Waterspout"),
    (r"FUNNEL", "Funnel Cloud"),
    (r"TORNADO|TORNDAO|LANDSPOUT", "Tornado"),
    (r"DUST DEVIL", "Dust Devil"),
    (r"DUST STORM|DUSTSTORM|BLOWING DUST|SAHARAN DUST", "Dust Storm"),
    (r"VOLCANIC", "Volcanic Ash"),
    (r"WILD|FOREST FIRE|BRUSH FIRE|GRASS FIRE", "Wildfire"),
    (r"SMOKE", "Dense Smoke"),
    (r"FREEZING FOG|ICE FOG", "Freezing Fog"),
    (r"FOG", "Dense Fog"),
    (r"AVALANC", "Avalanche"),
    # Water
    (r"LAKE.?EFFECT", "Lake-Effect Snow"),
    (r"LAKE.?SHORE FLOOD|LAKE FLOOD", "Lakeshore Flood"),
    (r"COASTAL|CSTL|BEACH|TIDAL FLOOD", "Coastal Flood"),
    (r"FLASH|DAM BREAK|DAM FAILURE", "Flash Flood"),
    (r"FLOOD|FLD|URBAN|STREAM|RISING WATER|HIGH WATER", "Flood"),
    (r"MUD|LANDSLIDE|LANDSLUMP|DEBRIS|ROCK ?SLIDE", "Debris Flow"),
    (r"SURF|SWELL|HIGH SEAS|ROUGH SEAS|HEAVY SEAS|HIGH WAVES|ROGUE WAVE", "High Surf"),
    # Cold and winter
    (r"EXTREME COLD|EXTREME WIND ?CHILL|RECORD COLD|SEVERE COLD|EXTENDED COLD|HYPOTHERMIA", "Extreme Cold/Wind Chill"),
    (r"FROST|FREEZE", "Frost/Freeze"),
    (r"ICE STORM|GLAZE", "Ice Storm"),
    (r"BLIZZARD", "Blizzard"),
    (r"SLEET|FREEZING RAIN|FREEZING DRIZZLE", "Sleet"),
    (r"WINTER STORM", "Winter Storm"),
    (r"WINTER WEATHER|WINTRY|MIXED PRECIP|ICY ROADS|BLACK ICE|ICE ON ROAD|FREEZING SPRAY|^ICE$", "Winter Weather"),
    (r"SNOW", "Heavy Snow"),
    (r"COLD|WIND ?CHILL|LOW TEMP", "Cold/Wind Chill"),
    # Heat and dryness
    (r"EXCESSIVE HEAT|EXTREME HEAT|RECORD HEAT|HEAT WAVE", "Excessive Heat"),
    (r"HEAT|WARM|HYPERTHERMIA|HIGH TEMP", "Heat"),
    (r"DROUGHT|DRY SPELL|DRYNESS|DRY CONDITIONS|DRY WEATHER|DRY PATTERN", "Drought"),
    # Thunderstorm family
    (_TSTM + r"|MICROBURST|DOWNBURST|GUSTNADO", "Thunderstorm Wind"),
    (r"LIGHTN|LIGNTNING|LIGHTING", "Lightning"),
    (r"HAIL", "Hail"),
    # Wind and rain
    (r"STRONG WIND", "Strong Wind"),
    (r"WIND|WND|GUSTY", "High Wind"),
    (r"RAIN|PRECIP|SHOWER|WET", "Heavy Rain"),
])

_WS = re.compile(r"\s+")

def normalize_label(label: str) -> str:
    """Uppercase, trim and collapse internal whitespace."""
    return _WS.sub(" ", str(label or "")).strip().upper()

class TaxonomyMapper:
    """Ordered rule-scan classifier with a per-label memo.

    The rule table is fixed at construction; first matching rule wins.
    """

    def __init__(self, rules: Iterable[TaxonomyRule] = DEFAULT_RULES):
        self.rules: Tuple[TaxonomyRule, ...] = tuple(rules)
        self._compiled: List[Tuple[re.Pattern, str]] = [
            (_compile(r.pattern, i), r.event_class) for i, r in enumerate(self.rules)
        ]
        self._memo: Dict[str, str] = {}

    def classify(self, label: str) -> str:
        """Return the canonical class for a pre-normalized label."""
        cls = self._memo.get(label)
        if cls is None:
            cls = self.classify_uncached(label)
            self._memo[label] = cls
        return cls

    def classify_uncached(self, label: str) -> str:
        for pattern, event_class in self._compiled:
            if pattern.search(label):
                return event_class
        return OTHER

    def cache_size(self) -> int:
        return len(self._memo)

def _compile(pattern: str, index: int) -> re.Pattern:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ValueError(f"Invalid pattern in taxonomy rule {index}: {pattern!r} ({e})") from e

def load_rules(path: str) -> List[TaxonomyRule]:
    """Load an ordered rule table from a CSV with columns `pattern,event_class`.

    Row order in the file is rule order.
    """
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.rename(columns={c: str(c).strip().lower() for c in df.columns}, inplace=True)
    missing = [c for c in ("pattern", "event_class") if c not in df.columns]
    if missing:
        raise KeyError(f"Rule table {path} is missing columns {missing}. Available={list(df.columns)}")

    rules: List[TaxonomyRule] = []
    for i, (pattern, event_class) in enumerate(zip(df["pattern"], df["event_class"])):
        pattern = pattern.strip()
        event_class = event_class.strip()
        if not pattern or not event_class:
            raise ValueError(f"Rule {i} in {path} has an empty pattern or class")
        _compile(pattern, i)
        rules.append(TaxonomyRule(pattern, event_class))
    log.info("loaded taxonomy rules", path=path, count=len(rules))
    return rules

def rules_from_pairs(pairs: Sequence[Tuple[str, str]]) -> List[TaxonomyRule]:
    return [TaxonomyRule(p, c) for p, c in pairs]
