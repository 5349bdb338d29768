"""
Run configuration
=================

One dataclass holds every knob of a run. The CLI fills it from its
arguments; library callers can build it directly.
"""

from dataclasses import dataclass
from typing import Optional
import os

DEFAULT_SOURCE_URL = "https://d396qusza40orc.cloudfront.net/repdata%2Fdata%2FStormData.csv.bz2"

def _default_cache_dir() -> str:
    return os.environ.get("STORMRANK_CACHE_DIR", os.path.join(os.path.expanduser("~"), ".cache", "stormrank"))

@dataclass
class PipelineConfig:
    source_url: str = DEFAULT_SOURCE_URL
    # local CSV; when set, no download happens
    csv_path: Optional[str] = None
    cache_dir: str = ""
    # None = cached file never expires (checksum is still verified)
    cache_ttl_hours: Optional[float] = None
    rules_path: Optional[str] = None
    top_n: int = 5
    # unrecognized scale codes raise instead of decoding to 10^0
    strict_scale_codes: bool = True

    def __post_init__(self) -> None:
        if not self.cache_dir:
            self.cache_dir = _default_cache_dir()
        if self.top_n < 0:
            raise ValueError("top_n must be >= 0")
