from typing import Any, Collection, Dict, List, Optional, Tuple

import semver

from crate_index.domain.models import IndexDependency, Version


def strip_nulls(value: Any, keys: Collection[str]) -> Any:
    """
    Recursively remove the given keys from dictionaries when their value is None.

    Keys not listed are kept even when None, since some index fields are
    always written (e.g. `links` and `target`). Lists are preserved, but
    their elements are also cleaned.
    """
    if isinstance(value, dict):
        return {
            k: strip_nulls(v, keys)
            for k, v in value.items()
            if not (v is None and k in keys)
        }
    if isinstance(value, list):
        return [strip_nulls(v, keys) for v in value]
    return value


def _uses_extended_syntax(values: List[str]) -> bool:
    return any(v.startswith("dep:") or "?/" in v for v in values)


def split_features(
    features: Dict[str, List[str]],
) -> Tuple[Dict[str, List[str]], Dict[str, List[str]]]:
    """
    Partition a raw feature table into (legacy, extended) subsets.

    A feature belongs to the extended subset when any of its values uses
    `dep:name` or `name?/feature`; older index readers reject those entries.
    Both mappings come back with sorted keys.
    """
    legacy: Dict[str, List[str]] = {}
    extended: Dict[str, List[str]] = {}
    for name in sorted(features):
        values = list(features[name])
        if _uses_extended_syntax(values):
            extended[name] = values
        else:
            legacy[name] = values
    return legacy, extended


def parse_semver(num: str) -> Optional[semver.Version]:
    try:
        return semver.Version.parse(num)
    except ValueError:
        return None


def _optional_key(value: Any) -> tuple:
    # None sorts before any present value.
    if value is None:
        return (0,)
    return (1, value)


def version_sort_key(version: Version) -> tuple:
    """
    Sort key for the versions of one package.

    Versions are ordered by creation time, then by parsed SemVer. A version
    string that does not parse has no SemVer value and sorts *before* every
    version that does at the same timestamp. The raw string is the final
    tie-break so that the order is total; it also decides between versions
    that differ only in build metadata, which SemVer precedence ignores.
    """
    return (
        version.created_at,
        _optional_key(parse_semver(version.num)),
        version.num,
    )


def dependency_sort_key(dep: IndexDependency) -> tuple:
    return (
        dep.name,
        dep.req,
        dep.features,
        dep.optional,
        dep.default_features,
        _optional_key(dep.target),
        _optional_key(dep.kind.rank if dep.kind is not None else None),
        _optional_key(dep.package),
    )
