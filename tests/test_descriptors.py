"""Tests for parsing raw catalog compatibility JSON and the year helpers."""

import json

from vehicle_fitment.models.compatibility import YearRange
from vehicle_fitment.services.descriptors import descriptor_to_dict, parse_descriptor
from vehicle_fitment.utils.converters import parse_year_span, safe_bool, safe_int, safe_year


# =============================================================================
# Converters
# =============================================================================


class TestConverters:
    def test_safe_int(self):
        assert safe_int("42") == 42
        assert safe_int("3.0") == 3
        assert safe_int(None) == 0
        assert safe_int("abc", default=-1) == -1
        assert safe_int(True) == 0

    def test_safe_year(self):
        assert safe_year("2015") == 2015
        assert safe_year(2015) == 2015
        assert safe_year("3 Series") is None
        assert safe_year(15) is None

    def test_safe_bool(self):
        assert safe_bool(True) is True
        assert safe_bool("Yes") is True
        assert safe_bool("да") is True
        assert safe_bool("false") is False
        assert safe_bool(None) is False
        assert safe_bool(1) is True
        assert safe_bool("maybe") is None
        assert safe_bool(2) is None

    def test_parse_year_span(self):
        assert parse_year_span("2012-2019") == (2012, 2019)
        assert parse_year_span("2012 – 2019") == (2012, 2019)
        assert parse_year_span("2012 to 2019") == (2012, 2019)
        assert parse_year_span(2015) == (2015, 2015)
        assert parse_year_span("2015") == (2015, 2015)
        assert parse_year_span("2019+") == (2019, None)
        assert parse_year_span("2019-") == (2019, None)

    def test_parse_year_span_rejects_garbage(self):
        assert parse_year_span("soon") is None
        assert parse_year_span(None) is None
        assert parse_year_span(True) is None
        assert parse_year_span("19-20") is None


# =============================================================================
# Descriptor parsing
# =============================================================================


class TestParseDescriptor:
    def test_missing_data_is_universal(self):
        for raw in (None, "", {}, "null", "{}"):
            descriptor = parse_descriptor(raw)
            assert descriptor.universal_fit is True
            assert descriptor.notes == ()

    def test_plain_lists(self):
        descriptor = parse_descriptor(
            {"makes": ["BMW", "Audi"], "models": ["3 Series"], "years": ["2012-2019", 2021]}
        )
        assert descriptor.makes == frozenset({"BMW", "Audi"})
        assert descriptor.models == frozenset({"3 Series"})
        assert descriptor.year_ranges == (
            YearRange(start=2012, end=2019),
            YearRange(start=2021, end=2021),
        )
        assert descriptor.universal_fit is False
        assert not descriptor.is_malformed

    def test_json_string_and_camel_case(self):
        raw = json.dumps(
            {
                "brands": ["BMW"],
                "yearRanges": [[2012, 2019], {"from": 2020, "to": None}],
                "engineCodes": ["N47D20"],
                "engines": ["318d"],
            }
        )
        descriptor = parse_descriptor(raw)
        assert descriptor.makes == frozenset({"BMW"})
        assert descriptor.year_ranges == (
            YearRange(start=2012, end=2019),
            YearRange(start=2020, end=None),
        )
        assert descriptor.engines == frozenset({"N47D20", "318d"})

    def test_universal_flag(self):
        assert parse_descriptor({"universalFit": True}).universal_fit is True
        assert parse_descriptor({"universal_fit": True}).universal_fit is True

    def test_universal_flag_strings(self):
        assert parse_descriptor({"makes": ["BMW"], "universalFit": "true"}).universal_fit is True
        descriptor = parse_descriptor({"makes": ["BMW"], "universalFit": "false"})
        assert descriptor.universal_fit is False
        assert not descriptor.is_malformed
        assert parse_descriptor({"makes": ["BMW"], "universalFit": 0}).universal_fit is False

    def test_unrecognized_universal_flag_is_noted(self):
        descriptor = parse_descriptor({"makes": ["BMW"], "universalFit": "sometimes"})
        assert descriptor.universal_fit is False
        assert descriptor.notes == ("universal_fit value 'sometimes' is not a flag",)

    def test_single_string_is_one_name(self):
        assert parse_descriptor({"makes": "BMW"}).makes == frozenset({"BMW"})

    def test_excludes_as_object_or_list(self):
        single = parse_descriptor({"makes": ["BMW"], "excludes": {"engines": ["M57"]}})
        assert len(single.excludes) == 1
        assert single.excludes[0].engines == frozenset({"M57"})

        several = parse_descriptor(
            {"exclude": [{"models": ["X5"]}, {"years": ["2010-2011"]}]}
        )
        assert len(several.excludes) == 2
        assert several.excludes[1].year_ranges == (YearRange(start=2010, end=2011),)

    def test_invalid_json_is_noted(self):
        descriptor = parse_descriptor("{broken")
        assert descriptor.notes == ("compatibility is not valid JSON",)
        assert descriptor.is_malformed

    def test_non_object_is_noted(self):
        assert parse_descriptor([1, 2]).notes == ("compatibility is not an object",)

    def test_unreadable_entries_are_noted(self):
        descriptor = parse_descriptor(
            {"makes": ["BMW", {"x": 1}], "years": ["recent"], "excludes": ["nope"]}
        )
        assert descriptor.makes == frozenset({"BMW"})
        assert descriptor.year_ranges == ()
        assert len(descriptor.notes) == 3
        assert descriptor.is_malformed

    def test_reversed_range_kept_and_reported(self):
        descriptor = parse_descriptor({"years": [[2019, 2012]]})
        assert descriptor.year_ranges == (YearRange(start=2019, end=2012),)
        assert descriptor.problems() == ["year range 2019-2012 ends before it starts"]

    def test_existing_descriptor_passes_through(self):
        descriptor = parse_descriptor({"makes": ["BMW"]})
        assert parse_descriptor(descriptor) is descriptor

    def test_to_dict_round_trips_through_parser(self):
        descriptor = parse_descriptor(
            {"makes": ["BMW"], "years": ["2012-2019"], "excludes": {"engines": ["M57"]}}
        )
        assert parse_descriptor(descriptor_to_dict(descriptor)) == descriptor
