"""Tests for chart aggregation."""

from __future__ import annotations

from typing import Any

import pytest

from vizsync.aggregator import (
    DEFAULT_DOMAIN_MAX,
    CategoryTotal,
    extract_pairs,
    mean_by_country,
    stringify,
    sum_by_category,
    to_number,
    unmatched_countries,
)


class TestToNumber:
    """Test numeric coercion of record fields."""

    def test_numbers(self) -> None:
        """Ints, floats and numeric strings become floats."""
        assert to_number(5) == 5.0
        assert to_number(2.5) == 2.5
        assert to_number(" 40 ") == 40.0

    def test_non_numbers(self) -> None:
        """Blanks, text, booleans and non-finite values are not numbers."""
        assert to_number(None) is None
        assert to_number("") is None
        assert to_number("n/a") is None
        assert to_number(True) is None
        assert to_number(float("nan")) is None
        assert to_number(float("inf")) is None
        assert to_number([1]) is None


class TestStringify:
    """Test rendering of group labels."""

    def test_values(self) -> None:
        """None is blank and integral floats drop the decimal."""
        assert stringify(None) == ""
        assert stringify("Oil") == "Oil"
        assert stringify(2030) == "2030"
        assert stringify(2030.0) == "2030"
        assert stringify(False) == "false"


class TestSumByCategory:
    """Test the bar chart aggregation."""

    def test_energy_and_oil_totals(self) -> None:
        """Intensity sums per topic: Energy 100, Oil 10."""
        records = [
            {"topic": "Energy", "intensity": 40},
            {"topic": "Energy", "intensity": 60},
            {"topic": "Oil", "intensity": 10},
        ]
        result = sum_by_category(records, "topic", "intensity")
        assert result == [
            CategoryTotal(key="Energy", value=100),
            CategoryTotal(key="Oil", value=10),
        ]
        assert [r.to_dict() for r in result] == [
            {"key": "Energy", "value": 100},
            {"key": "Oil", "value": 10},
        ]

    def test_first_encounter_order(self) -> None:
        """Groups appear in the order they are first seen."""
        records = [
            {"topic": "b", "intensity": 1},
            {"topic": "a", "intensity": 1},
            {"topic": "c", "intensity": 1},
            {"topic": "a", "intensity": 1},
        ]
        assert [r.key for r in sum_by_category(records, "topic", "intensity")] == ["b", "a", "c"]

    def test_zero_fills_missing_and_non_numeric(self) -> None:
        """Missing or non-numeric values add nothing to the group."""
        records = [
            {"topic": "Gas", "intensity": ""},
            {"topic": "Gas", "intensity": "n/a"},
            {"topic": "Gas"},
            {"topic": "Gas", "intensity": "7"},
        ]
        assert sum_by_category(records, "topic", "intensity") == [CategoryTotal("Gas", 7.0)]

    def test_conserves_field_total(self, sample_records: list[dict[str, Any]]) -> None:
        """The group sums add up to the field total over all records."""
        totals = sum_by_category(sample_records, "region", "intensity")
        expected = sum(to_number(r.get("intensity")) or 0.0 for r in sample_records)
        assert sum(t.value for t in totals) == pytest.approx(expected)

    def test_missing_group_field_kept_in_blank_group(self) -> None:
        """Records without the group field land in the "" group."""
        records = [{"intensity": 5}, {"topic": "Oil", "intensity": 1}]
        result = sum_by_category(records, "topic", "intensity")
        assert result == [CategoryTotal("", 5.0), CategoryTotal("Oil", 1.0)]

    def test_numeric_group_values_stringified(self) -> None:
        """2030 and "2030" are the same group."""
        records = [{"end_year": 2030, "intensity": 1}, {"end_year": "2030", "intensity": 2}]
        assert sum_by_category(records, "end_year", "intensity") == [CategoryTotal("2030", 3.0)]

    def test_skips_non_dict_records(self) -> None:
        """Entries that are not dicts are skipped."""
        records: list[Any] = [None, "junk", {"topic": "Oil", "intensity": 3}]
        assert sum_by_category(records, "topic", "intensity") == [CategoryTotal("Oil", 3.0)]

    def test_non_sequence_returns_empty(self) -> None:
        """Input that is not a list or tuple gives no groups."""
        assert sum_by_category(None, "topic", "intensity") == []
        assert sum_by_category({"topic": "Oil"}, "topic", "intensity") == []
        assert sum_by_category("Oil", "topic", "intensity") == []

    def test_empty_input(self) -> None:
        """No records, no groups."""
        assert sum_by_category([], "topic", "intensity") == []


class TestExtractPairs:
    """Test the scatter plot projection."""

    def test_projects_points(self) -> None:
        """Each record becomes an (x, y, weight) point."""
        points = extract_pairs(
            [{"intensity": 6, "likelihood": 3, "relevance": 50}],
            "intensity", "likelihood", "relevance",
        )
        assert len(points) == 1
        assert (points[0].x, points[0].y, points[0].weight) == (6.0, 3.0, 0.5)

    def test_drops_non_numeric_axes(self, sample_records: list[dict[str, Any]]) -> None:
        """Records with a non-numeric x or y are dropped, not zeroed."""
        points = extract_pairs(sample_records, "intensity", "likelihood", "relevance")
        # The Gas record has blank intensity and "n/a" likelihood.
        assert len(points) == len(sample_records) - 1
        assert all(p.x != 0 or p.y != 0 for p in points)

    def test_weight_clamped(self) -> None:
        """Weights are clamped to [0, 1]."""
        records = [
            {"x": 1, "y": 1, "w": 150},
            {"x": 1, "y": 1, "w": -20},
        ]
        weights = [p.weight for p in extract_pairs(records, "x", "y", "w")]
        assert weights == [1.0, 0.0]

    def test_non_numeric_weight_is_zero(self) -> None:
        """A missing weight keeps the point with weight 0."""
        points = extract_pairs([{"x": 1, "y": 2, "w": None}], "x", "y", "w")
        assert points[0].weight == 0.0

    def test_zero_values_kept(self) -> None:
        """A point at the origin is valid."""
        points = extract_pairs([{"x": 0, "y": 0, "w": 0}], "x", "y", "w")
        assert len(points) == 1

    def test_non_sequence_returns_empty(self) -> None:
        """Input that is not a list or tuple gives no points."""
        assert extract_pairs(42, "x", "y", "w") == []


class TestMeanByCountry:
    """Test the choropleth aggregation."""

    def test_usa_reconciled_mean(self) -> None:
        """Two USA records average to 30 under "United States"."""
        records = [
            {"country": "USA", "intensity": 20},
            {"country": "USA", "intensity": 40},
        ]
        geo = mean_by_country(records)
        assert len(geo.countries) == 1
        assert geo.countries[0].country_key == "United States"
        assert geo.countries[0].mean_intensity == 30
        assert geo.get("United States") == 30
        assert geo.countries[0].to_dict()["countryKey"] == "United States"

    def test_aliases_merge_into_one_country(self, sample_records: list[dict[str, Any]]) -> None:
        """Different spellings of one country share a mean."""
        geo = mean_by_country(sample_records)
        keys = [c.country_key for c in geo.countries]
        assert keys == ["United States", "Saudi Arabia"]
        assert geo.get("United States") == 50
        assert geo.domain == (0.0, 50.0)

    def test_empty_country_excluded(self) -> None:
        """Blank country labels are not bucketed."""
        geo = mean_by_country([{"country": "", "intensity": 99}, {"country": "  ", "intensity": 1}])
        assert geo.countries == []

    def test_non_numeric_intensity_excluded_from_mean(self) -> None:
        """Only numeric values count toward the mean."""
        records = [
            {"country": "India", "intensity": 10},
            {"country": "India", "intensity": ""},
            {"country": "India"},
        ]
        geo = mean_by_country(records)
        assert geo.get("India") == 10
        assert geo.countries[0].record_count == 1

    def test_country_without_numeric_data_absent(self) -> None:
        """A country with no numeric value has no entry."""
        geo = mean_by_country([{"country": "Chile", "intensity": None}])
        assert geo.get("Chile") is None
        assert geo.domain == (0.0, DEFAULT_DOMAIN_MAX)

    def test_every_country_has_a_contributor(self, sample_records: list[dict[str, Any]]) -> None:
        """Each output country is backed by at least one record."""
        geo = mean_by_country(sample_records)
        for entry in geo.countries:
            assert entry.record_count >= 1

    def test_domain_max_is_largest_mean(self) -> None:
        """The color domain tops out at the largest mean."""
        records = [
            {"country": "India", "intensity": 4},
            {"country": "India", "intensity": 8},
            {"country": "China", "intensity": 5},
        ]
        geo = mean_by_country(records)
        assert geo.domain == (0.0, 6.0)

    def test_empty_domain_uses_default(self) -> None:
        """With no data the domain is (0, 10)."""
        assert mean_by_country([]).domain == (0.0, DEFAULT_DOMAIN_MAX)

    def test_unknown_label_passes_through(self) -> None:
        """Unmatched labels keep their own key."""
        geo = mean_by_country([{"country": "Atlantis", "intensity": 3}])
        assert geo.get("Atlantis") == 3

    def test_custom_reconciler(self) -> None:
        """A custom reconciler is used for keys."""
        geo = mean_by_country(
            [{"country": "x", "intensity": 2}], reconcile=lambda label: label.upper()
        )
        assert geo.get("X") == 2

    def test_non_sequence_returns_empty(self) -> None:
        """Input that is not a list or tuple gives the default aggregate."""
        geo = mean_by_country(None)
        assert geo.countries == []
        assert geo.domain == (0.0, DEFAULT_DOMAIN_MAX)


class TestUnmatchedCountries:
    """Test the report of labels with no geometry feature."""

    def test_reports_labels_without_geometry(self) -> None:
        """Unknown labels are counted in first-seen order."""
        records = [
            {"country": "USA"},
            {"country": "Atlantis"},
            {"country": "Atlantis"},
            {"country": "Wakanda"},
            {"country": ""},
        ]
        assert unmatched_countries(records) == [("Atlantis", 2), ("Wakanda", 1)]

    def test_all_matched(self, sample_records: list[dict[str, Any]]) -> None:
        """Sample records all reconcile to known features."""
        assert unmatched_countries(sample_records) == []
