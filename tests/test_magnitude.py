"""
Tests for the damage magnitude decoder.
"""

import pytest

from stormrank.magnitude import InvalidScaleCodeError, decode_exponent, decode_magnitude


class TestDecodeExponent:

    @pytest.mark.parametrize("code,expected", [
        ("H", 2), ("h", 2),
        ("K", 3), ("k", 3),
        ("M", 6), ("m", 6),
        ("B", 9), ("b", 9),
        ("", 0),
    ])
    def test_known_codes(self, code, expected):
        assert decode_exponent(code) == expected

    def test_none_is_no_exponent(self):
        assert decode_exponent(None) == 0

    @pytest.mark.parametrize("code", ["X", "5", "+", "?", "KM"])
    def test_unrecognized_code_raises(self, code):
        with pytest.raises(InvalidScaleCodeError) as exc:
            decode_exponent(code)
        assert exc.value.code == code
        assert isinstance(exc.value, ValueError)

    def test_lenient_mode_falls_back_to_zero(self):
        assert decode_exponent("7", strict=False) == 0


class TestDecodeMagnitude:

    def test_applies_power_of_ten(self):
        assert decode_magnitude(25, "K") == 25_000
        assert decode_magnitude(1.5, "m") == 1_500_000
        assert decode_magnitude(2, "B") == 2_000_000_000
        assert decode_magnitude(3, "h") == 300
        assert decode_magnitude(42, "") == 42

    def test_zero_coefficient(self):
        assert decode_magnitude(0, "B") == 0

    def test_strict_propagates(self):
        with pytest.raises(InvalidScaleCodeError):
            decode_magnitude(10, "Q")
        assert decode_magnitude(10, "Q", strict=False) == 10
