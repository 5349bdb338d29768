"""
stormrank package
=================

Ranks severe-weather event classes by human casualties and economic damage
from the NOAA Storm Data table.

- The CLI entry point is in `stormrank/cli.py`.
- The core (decode, classify, normalize, aggregate) is in `magnitude.py`,
  `taxonomy.py`, `normalizer.py` and `aggregate.py`.
- Dataset loading and download caching are in `loader.py` and `cache.py`.
"""

__version__ = '0.1.0'
