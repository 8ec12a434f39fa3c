"""
Tests for the ordering and feature-splitting helpers.
"""

import pytest

from crate_index.domain.index_utils import (
    dependency_sort_key,
    parse_semver,
    split_features,
    strip_nulls,
    version_sort_key,
)
from crate_index.domain.models import DependencyKind, IndexDependency

from conftest import make_version


# ============================================================================
# Version ordering
# ============================================================================


def test_versions_sort_by_creation_time_first():
    later_lower = make_version(1, "0.1.0", minutes=5)
    earlier_higher = make_version(2, "9.0.0", minutes=0)

    ordered = sorted([later_lower, earlier_higher], key=version_sort_key)

    assert [v.num for v in ordered] == ["9.0.0", "0.1.0"]


def test_equal_timestamps_fall_back_to_semver_not_string_order():
    versions = [
        make_version(1, "0.10.0"),
        make_version(2, "0.9.0"),
        make_version(3, "0.9.0-alpha.1"),
    ]

    ordered = sorted(versions, key=version_sort_key)

    assert [v.num for v in ordered] == ["0.9.0-alpha.1", "0.9.0", "0.10.0"]


def test_unparsable_versions_sort_before_parsable_ones_at_equal_timestamps():
    versions = [
        make_version(1, "0.1.0"),
        make_version(2, "not-a-version"),
        make_version(3, "1.0"),
        make_version(4, "0.0.1"),
    ]

    ordered = sorted(versions, key=version_sort_key)

    assert [v.num for v in ordered] == ["1.0", "not-a-version", "0.0.1", "0.1.0"]


def test_unparsable_version_does_not_jump_ahead_of_earlier_timestamp():
    versions = [
        make_version(1, "garbage", minutes=1),
        make_version(2, "5.0.0", minutes=0),
    ]

    ordered = sorted(versions, key=version_sort_key)

    assert [v.num for v in ordered] == ["5.0.0", "garbage"]


def test_parse_semver():
    assert parse_semver("1.2.3").major == 1
    assert parse_semver("1.2") is None
    assert parse_semver("v1.2.3") is None


# ============================================================================
# Feature splitting
# ============================================================================


def test_split_features_legacy_only():
    legacy, extended = split_features({"std": [], "default": ["std", "serde/std"]})

    assert legacy == {"default": ["std", "serde/std"], "std": []}
    assert extended == {}


def test_split_features_moves_dep_and_weak_entries():
    raw = {
        "default": ["std"],
        "std": [],
        "serde": ["dep:serde"],
        "weak": ["std", "serde?/std"],
    }

    legacy, extended = split_features(raw)

    assert legacy == {"default": ["std"], "std": []}
    assert extended == {"serde": ["dep:serde"], "weak": ["std", "serde?/std"]}


def test_split_features_sorts_keys():
    legacy, extended = split_features({"zeta": [], "alpha": [], "mid": ["dep:x"], "beta": ["dep:y"]})

    assert list(legacy) == ["alpha", "zeta"]
    assert list(extended) == ["beta", "mid"]


def test_split_features_empty():
    assert split_features({}) == ({}, {})


# ============================================================================
# Dependency ordering
# ============================================================================


def test_dependency_sort_key_orders_fieldwise():
    deps = [
        IndexDependency(name="b", req="^1"),
        IndexDependency(name="a", req="^2"),
        IndexDependency(name="a", req="^1", kind=DependencyKind.DEV),
        IndexDependency(name="a", req="^1", kind=DependencyKind.NORMAL),
        IndexDependency(name="a", req="^1", kind=DependencyKind.BUILD),
    ]

    ordered = sorted(deps, key=dependency_sort_key)

    assert [(d.name, d.req, d.kind) for d in ordered] == [
        ("a", "^1", DependencyKind.NORMAL),
        ("a", "^1", DependencyKind.BUILD),
        ("a", "^1", DependencyKind.DEV),
        ("a", "^2", None),
        ("b", "^1", None),
    ]


def test_dependency_sort_key_absent_target_and_package_first():
    with_target = IndexDependency(name="a", req="^1", target="cfg(unix)")
    without_target = IndexDependency(name="a", req="^1")
    renamed = IndexDependency(name="c", req="^1", package="real-c")
    plain = IndexDependency(name="c", req="^1")

    ordered = sorted([renamed, with_target, plain, without_target], key=dependency_sort_key)

    assert ordered == [without_target, with_target, plain, renamed]


# ============================================================================
# strip_nulls
# ============================================================================


@pytest.mark.parametrize(
    "value,expected",
    [
        ({"a": None, "b": None}, {"b": None}),
        ({"a": 1, "nested": [{"a": None, "c": None}]}, {"a": 1, "nested": [{"c": None}]}),
        ([None, {"a": None}], [None, {}]),
    ],
)
def test_strip_nulls_only_drops_listed_keys(value, expected):
    assert strip_nulls(value, {"a"}) == expected


def test_build_metadata_falls_back_to_raw_string_order():
    # semver precedence ignores build metadata, so these tie and the raw
    # strings decide: "+10" sorts before "+2".
    versions = [make_version(1, "1.0.0+2"), make_version(2, "1.0.0+10")]

    ordered = sorted(versions, key=version_sort_key)

    assert [v.num for v in ordered] == ["1.0.0+10", "1.0.0+2"]


# ============================================================================
# Dependency kinds
# ============================================================================


def test_dependency_kind_rank_round_trip():
    assert [DependencyKind.from_rank(k.rank) for k in DependencyKind] == list(DependencyKind)


@pytest.mark.parametrize("rank", [-1, 3])
def test_dependency_kind_rejects_unknown_rank(rank):
    with pytest.raises(ValueError, match=f"Unknown dependency kind: {rank}"):
        DependencyKind.from_rank(rank)
