"""
Magnitude decoder
=================

Storm Data stores damage as a coefficient plus a scale letter:
`PROPDMG=25, PROPDMGEXP="K"` means US$25,000.

- `decode_exponent` turns the letter into a power of ten.
- `decode_magnitude` applies it to the coefficient.

Codes `+`, `-` and `?` mean the source itself flagged the magnitude as
unknown. They are never decoded: the normalizer drops those rows first.
"""

from __future__ import annotations
import structlog

log = structlog.get_logger(__name__)

EXPONENTS = {"H": 2, "K": 3, "M": 6, "B": 9, "": 0}

SENTINEL_CODES = frozenset({"+", "-", "?"})

class InvalidScaleCodeError(ValueError):
    """Raised for a scale code outside H/K/M/B/empty."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(f"Unrecognized scale code: {code!r} (expected one of H, K, M, B or empty)")

def decode_exponent(code: str, strict: bool = True) -> int:
    """Return the power of ten for a scale code (case-insensitive).

    With `strict=False` an unrecognized code decodes to 0 instead of raising
    `InvalidScaleCodeError`. Callers that decode many rows count the codes
    and warn once (see `normalizer.normalize_with_stats`).
    """
    key = (code or "").upper()
    try:
        return EXPONENTS[key]
    except KeyError:
        if strict:
            raise InvalidScaleCodeError(code) from None
        log.debug("unrecognized scale code, using exponent 0", code=code)
        return 0

def decode_magnitude(coefficient: float, code: str, strict: bool = True) -> float:
    return coefficient * 10 ** decode_exponent(code, strict=strict)
