"""
Tests for the record normalizer.
"""

from unittest.mock import patch

import pytest

from stormrank.magnitude import InvalidScaleCodeError
from stormrank.models import RawRecord
from stormrank.normalizer import normalize, normalize_code, normalize_with_stats
from stormrank.taxonomy import TaxonomyMapper, rules_from_pairs


def rec(event_type="TSTM WIND", fat=0, inj=0, prop=0, pexp="", crop=0, cexp=""):
    return RawRecord(event_type, fat, inj, prop, pexp, crop, cexp)


class TestNormalize:

    @pytest.fixture
    def mapper(self):
        return TaxonomyMapper(rules_from_pairs([
            ("TSTM WIND", "Thunderstorm Wind"),
            ("TORNADO", "Tornado"),
        ]))

    def test_all_zero_record_is_dropped(self, mapper):
        assert normalize([rec()], mapper) == []

    @pytest.mark.parametrize("kwargs", [
        {"fat": 1}, {"inj": 2}, {"prop": 5}, {"crop": 0.5},
    ])
    def test_any_nonzero_field_keeps_record(self, mapper, kwargs):
        assert len(normalize([rec(**kwargs)], mapper)) == 1

    @pytest.mark.parametrize("code", ["+", "-", "?", " ? "])
    def test_sentinel_prop_code_is_dropped(self, mapper, code):
        assert normalize([rec(fat=10, inj=3, prop=5, pexp=code)], mapper) == []

    def test_sentinel_crop_code_is_dropped(self, mapper):
        assert normalize([rec(fat=1, crop=5, cexp="?")], mapper) == []

    def test_sentinel_with_zero_coefficient_still_dropped(self, mapper):
        assert normalize([rec(fat=1, prop=0, pexp="-")], mapper) == []

    def test_casualties_and_damage(self, mapper):
        [out] = normalize([rec("TORNADO", fat=5, inj=20, prop=1, pexp="M", crop=2, cexp="k")], mapper)
        assert out.event_class == "Tornado"
        assert out.casualties == 25
        assert out.damage == 1_002_000

    def test_label_and_code_normalization(self, mapper):
        [out] = normalize([rec("  tstm    wind ", prop=10, pexp=" k ")], mapper)
        assert out.event_class == "Thunderstorm Wind"
        assert out.label == "TSTM WIND"
        assert out.damage == 10_000

    def test_blank_code_means_no_exponent(self, mapper):
        [out] = normalize([rec(prop=7, pexp="   ")], mapper)
        assert out.damage == 7

    def test_unmatched_label_goes_to_other(self, mapper):
        [out] = normalize([rec("VOLCANO", inj=1)], mapper)
        assert out.event_class == "Other"

    def test_unrecognized_code_raises_in_strict_mode(self, mapper):
        with pytest.raises(InvalidScaleCodeError):
            normalize([rec(prop=3, pexp="5")], mapper)

    def test_unrecognized_code_lenient(self, mapper):
        [out] = normalize([rec(prop=3, pexp="5")], mapper, strict=False)
        assert out.damage == 3

    def test_unrecognized_codes_counted_and_warned_once(self, mapper):
        records = [
            rec(prop=3, pexp="5"),
            rec(prop=1, pexp="5", crop=2, cexp="7"),
            rec(prop=4, pexp="K"),
        ]
        with patch("stormrank.normalizer.log") as log:
            out, stats = normalize_with_stats(records, mapper, strict=False)
        assert [r.damage for r in out] == [3, 3, 4000]
        assert stats.unknown_codes == {"5": 2, "7": 1}
        log.warning.assert_called_once_with("unrecognized scale codes decoded as 10^0", codes={"5": 2, "7": 1})

    def test_strict_mode_records_no_unknown_codes(self, mapper):
        _, stats = normalize_with_stats([rec(prop=4, pexp="K")], mapper)
        assert stats.unknown_codes == {}

    def test_order_preserved_among_survivors(self, mapper):
        records = [
            rec("TORNADO", fat=1),
            rec("TSTM WIND"),
            rec("TSTM WIND", inj=2),
            rec("TORNADO", prop=1, pexp="?"),
            rec("OTHER THING", crop=1),
        ]
        out = normalize(records, mapper)
        assert [r.event_class for r in out] == ["Tornado", "Thunderstorm Wind", "Other"]

    def test_negative_values_pass_through(self, mapper):
        out, stats = normalize_with_stats([rec(fat=-1, inj=3)], mapper)
        assert out[0].casualties == 2
        assert stats.negative == 1

    def test_stats(self, mapper):
        records = [rec(fat=1), rec(), rec(prop=1, pexp="+"), rec(inj=1)]
        out, stats = normalize_with_stats(records, mapper)
        assert len(out) == 2
        assert (stats.seen, stats.kept, stats.dropped_zero, stats.dropped_sentinel) == (4, 2, 1, 1)

    def test_empty_input(self, mapper):
        assert normalize([], mapper) == []

    def test_default_mapper(self):
        [out] = normalize([rec("FLASH FLOOD", fat=1)])
        assert out.event_class == "Flash Flood"


def test_normalize_code():
    assert normalize_code(" m ") == "M"
    assert normalize_code(None) == ""
