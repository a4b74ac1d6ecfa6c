"""Tests for best-match release selection."""

import random

import pytest

from jdkfetch.download.resolver import resolve_version, sort_versions
from jdkfetch.download.version import (
    Exact,
    Latest,
    LatestLts,
    Major,
    Range,
    parse_version_spec,
)
from jdkfetch.exceptions import NoCandidatesError, VersionNotFoundError

pytestmark = [pytest.mark.unit, pytest.mark.core_downloads]


@pytest.fixture
def catalog(version_factory):
    return [
        version_factory("8.0.422", is_lts=True, tag_name="jdk8u422-b05"),
        version_factory("11.0.24", is_lts=True),
        version_factory("17.0.12", is_lts=True),
        version_factory("17.0.8", is_lts=True, release_name="Temurin 17.0.8 GA"),
        version_factory("21.0.4", is_lts=True),
        version_factory("22.0.2"),
        version_factory("23.0.1"),
    ]


class TestSortVersions:
    def test_newest_first_with_missing_components_lowest(self, version_factory):
        versions = [
            version_factory("21"),
            version_factory("21.0.4"),
            version_factory("21.0"),
            version_factory("17.0.12"),
        ]

        ordered = [v.version for v in sort_versions(versions)]

        assert ordered == ["21.0.4", "21.0", "21", "17.0.12"]


class TestResolveVersion:
    def test_major_prefers_lts(self, version_factory):
        versions = [
            version_factory("21.0.5"),
            version_factory("21.0.4", is_lts=True),
        ]

        assert resolve_version(Major(21), versions).version == "21.0.4"

    def test_major_falls_back_to_newest_non_lts(self, catalog):
        assert resolve_version(Major(22), catalog).version == "22.0.2"

    def test_major_newest_lts_within_major(self, catalog):
        assert resolve_version(Major(17), catalog).version == "17.0.12"

    def test_range_picks_newest_major_within_bounds(self, catalog):
        assert resolve_version(Range(11, 17), catalog).version == "17.0.12"

    def test_open_range(self, catalog):
        assert resolve_version(parse_version_spec("17+"), catalog).version == "23.0.1"

    def test_inverted_range_matches_nothing(self, catalog):
        with pytest.raises(VersionNotFoundError):
            resolve_version(Range(21, 11), catalog)

    def test_latest_and_latest_lts(self, catalog):
        assert resolve_version(Latest(), catalog).version == "23.0.1"
        assert resolve_version(LatestLts(), catalog).version == "21.0.4"

    def test_lts_over_17_21_23(self, version_factory):
        versions = [
            version_factory("17.0.12", is_lts=True),
            version_factory("21.0.4", is_lts=True),
            version_factory("23.0.1"),
        ]

        assert resolve_version(parse_version_spec("lts"), versions).major == 21

    def test_exact_version_equality(self, catalog):
        assert resolve_version(Exact("17.0.8"), catalog).version == "17.0.8"

    def test_exact_tag_substring(self, catalog):
        assert resolve_version(Exact("8u422"), catalog).version == "8.0.422"

    def test_exact_release_name_substring_is_case_insensitive(self, catalog):
        assert resolve_version(Exact("ga"), catalog).version == "17.0.8"

    def test_exact_falls_back_to_leading_major(self, catalog):
        """An unknown update of a known major resolves to that major's newest release."""
        assert resolve_version(Exact("17.0.99"), catalog).version == "17.0.12"

    def test_exact_rules_apply_across_whole_catalog_in_order(self, version_factory):
        """Version equality on an older record beats a tag substring on a newer one."""
        versions = [
            version_factory("21.0.4", tag_name="jdk-21.0.4+7-17.0.8"),
            version_factory("17.0.8"),
        ]

        assert resolve_version(Exact("17.0.8"), versions).version == "17.0.8"

    def test_unknown_exact_raises(self, catalog):
        with pytest.raises(VersionNotFoundError) as exc_info:
            resolve_version(Exact("zulu"), catalog, source="github")
        assert exc_info.value.source == "github"

    def test_empty_catalog_raises(self):
        with pytest.raises(NoCandidatesError):
            resolve_version(Latest(), [])

    def test_result_does_not_depend_on_input_order(self, catalog):
        specs = [Major(17), Range(8, 21), Latest(), LatestLts(), Exact("11")]
        expected = [resolve_version(spec, catalog) for spec in specs]
        shuffled = list(catalog)
        rng = random.Random(1234)
        for _ in range(5):
            rng.shuffle(shuffled)
            assert [resolve_version(spec, shuffled) for spec in specs] == expected
