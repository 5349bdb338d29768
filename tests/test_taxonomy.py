"""
Tests for the event-type taxonomy mapper.
"""

import pytest

from stormrank.models import TaxonomyRule
from stormrank.taxonomy import (
    CANONICAL_CLASSES,
    DEFAULT_RULES,
    OTHER,
    TaxonomyMapper,
    load_rules,
    normalize_label,
    rules_from_pairs,
)


class TestNormalizeLabel:

    def test_upper_trim_collapse(self):
        assert normalize_label("  tstm   wind\t/hail ") == "TSTM WIND /HAIL"

    def test_none_and_empty(self):
        assert normalize_label(None) == ""
        assert normalize_label("   ") == ""


class TestTaxonomyMapper:

    @pytest.fixture
    def mapper(self):
        return TaxonomyMapper()

    def test_first_match_wins(self):
        mapper = TaxonomyMapper(rules_from_pairs([
            ("WIND", "Thunderstorm Wind"),
            ("WIND", "High Wind"),
        ]))
        assert mapper.classify("STRONG WIND") == "Thunderstorm Wind"

    def test_rule_order_reversed_changes_result(self):
        mapper = TaxonomyMapper(rules_from_pairs([
            ("WIND", "High Wind"),
            ("WIND", "Thunderstorm Wind"),
        ]))
        assert mapper.classify("STRONG WIND") == "High Wind"

    def test_substring_match(self):
        mapper = TaxonomyMapper(rules_from_pairs([("TORNADO", "Tornado")]))
        assert mapper.classify("TORNADOES, TSTM WIND, HAIL") == "Tornado"

    def test_no_alpha_is_other(self, mapper):
        assert mapper.classify("???") == OTHER
        assert mapper.classify("") == OTHER

    def test_rules_apply_to_labels_without_letters(self):
        mapper = TaxonomyMapper(rules_from_pairs([
            (r"^\d+$", "Numeric Code"),
            (r"\?", "Unknown"),
        ]))
        assert mapper.classify("123") == "Numeric Code"
        assert mapper.classify("???") == "Unknown"
        assert mapper.classify("-") == OTHER
        assert mapper.classify_uncached("123") == "Numeric Code"

    def test_no_alpha_label_without_matching_rule_is_other(self):
        mapper = TaxonomyMapper(rules_from_pairs([(r"^\d+$", "Numeric Code")]))
        assert mapper.classify("???") == OTHER

    def test_unmatched_is_other(self, mapper):
        assert mapper.classify("MARINE ACCIDENT") == OTHER

    @pytest.mark.parametrize("label,expected", [
        ("TSTM WIND", "Thunderstorm Wind"),
        ("THUNDERSTORM WINDS", "Thunderstorm Wind"),
        ("TSTM WIND/HAIL", "Thunderstorm Wind"),
        ("MARINE TSTM WIND", "Marine Thunderstorm Wind"),
        ("HAIL", "Hail"),
        ("MARINE HAIL", "Marine Hail"),
        ("TORNADO", "Tornado"),
        ("FLASH FLOOD", "Flash Flood"),
        ("FLOOD/FLASH FLOOD", "Flash Flood"),
        ("FLOOD", "Flood"),
        ("URBAN/SML STREAM FLD", "Flood"),
        ("COASTAL FLOODING", "Coastal Flood"),
        ("EXCESSIVE HEAT", "Excessive Heat"),
        ("HEAT", "Heat"),
        ("EXTREME COLD/WIND CHILL", "Extreme Cold/Wind Chill"),
        ("COLD/WIND CHILL", "Cold/Wind Chill"),
        ("HURRICANE/TYPHOON", "Hurricane (Typhoon)"),
        ("HURRICANE OPAL", "Hurricane (Typhoon)"),
        ("STORM SURGE", "Storm Surge/Tide"),
        ("RIP CURRENTS", "Rip Current"),
        ("WILD/FOREST FIRE", "Wildfire"),
        ("ICE STORM", "Ice Storm"),
        ("WINTER STORM", "Winter Storm"),
        ("HEAVY SNOW", "Heavy Snow"),
        ("LAKE-EFFECT SNOW", "Lake-Effect Snow"),
        ("HIGH WIND", "High Wind"),
        ("STRONG WIND", "Strong Wind"),
        ("LIGHTNING", "Lightning"),
        ("DENSE FOG", "Dense Fog"),
        ("FREEZING FOG", "Freezing Fog"),
        ("FROST/FREEZE", "Frost/Freeze"),
        ("FREEZING RAIN", "Sleet"),
        ("HEAVY RAIN", "Heavy Rain"),
        ("LANDSLIDE", "Debris Flow"),
        ("HEAVY SURF/HIGH SURF", "High Surf"),
        ("TROPICAL STORM", "Tropical Storm"),
        ("TSUNAMI", "Tsunami"),
        ("AVALANCHE", "Avalanche"),
        ("DROUGHT", "Drought"),
    ])
    def test_default_table(self, mapper, label, expected):
        assert mapper.classify(label) == expected

    def test_default_table_targets_canonical_classes(self):
        targets = {r.event_class for r in DEFAULT_RULES}
        assert targets == set(CANONICAL_CLASSES)
        assert len(CANONICAL_CLASSES) == 48

    def test_memo_agrees_with_uncached(self, mapper):
        labels = ["TSTM WIND", "FLOOD", "???", "TSTM WIND", "SOMETHING ODD", "HAIL 75"]
        for label in labels:
            assert mapper.classify(label) == mapper.classify_uncached(label)
        # repeated label is memoized once
        assert mapper.cache_size() == 5

    def test_deterministic(self, mapper):
        assert {mapper.classify("TSTM WIND") for _ in range(10)} == {"Thunderstorm Wind"}

    def test_invalid_pattern_raises(self):
        with pytest.raises(ValueError, match="rule 1"):
            TaxonomyMapper(rules_from_pairs([("OK", "Ok"), ("(BROKEN", "Broken")]))


class TestLoadRules:

    def test_reads_rules_in_file_order(self, tmp_path):
        path = tmp_path / "rules.csv"
        path.write_text("pattern,event_class\nTSTM WIND,Thunderstorm Wind\nTORNADO,Tornado\nWIND,High Wind\n")
        rules = load_rules(str(path))
        assert rules == [
            TaxonomyRule("TSTM WIND", "Thunderstorm Wind"),
            TaxonomyRule("TORNADO", "Tornado"),
            TaxonomyRule("WIND", "High Wind"),
        ]

    def test_missing_columns(self, tmp_path):
        path = tmp_path / "rules.csv"
        path.write_text("regex,class\nA,B\n")
        with pytest.raises(KeyError):
            load_rules(str(path))

    def test_bad_regex(self, tmp_path):
        path = tmp_path / "rules.csv"
        path.write_text("pattern,event_class\n[,Broken\n")
        with pytest.raises(ValueError):
            load_rules(str(path))
