from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class DependencyKind(str, Enum):
    """
    How a dependency is used by the dependent version.

    Declaration order is the index sort order (normal < build < dev) and the
    position is also the integer stored by the sqlite backend.
    """

    NORMAL = "normal"
    BUILD = "build"
    DEV = "dev"

    @property
    def rank(self) -> int:
        return list(DependencyKind).index(self)

    @classmethod
    def from_rank(cls, rank: int) -> "DependencyKind":
        kinds = list(cls)
        if not 0 <= rank < len(kinds):
            raise ValueError(f"Unknown dependency kind: {rank}")
        return kinds[rank]


class IndexConfig(BaseModel):
    """
    Process-level configuration for the index service.
    Resolved from the environment by crate_index.core.dependencies.
    """

    backend: Literal["sqlite", "json"] = Field(
        default="sqlite",
        description="Storage backend used to read packages, versions and dependencies.",
    )
    database_path: Path = Field(
        description="Path to the sqlite database file or the JSON document.",
    )


class Package(BaseModel):
    """
    A named package. Lookup is by exact, case-sensitive name.
    """

    id: int
    name: str


class Version(BaseModel):
    """
    One published version of a package.
    """

    id: int
    package_id: int
    num: str
    created_at: datetime
    checksum: str
    yanked: bool = False
    links: Optional[str] = None
    rust_version: Optional[str] = None

    # Raw feature table, mixing legacy entries and entries that use the
    # `dep:` / `?/` activation syntax.
    features: Dict[str, List[str]] = Field(default_factory=dict)

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, value: datetime) -> datetime:
        # Timestamps are compared across rows, so aware values are stored as naive UTC.
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value


class Dependency(BaseModel):
    """
    A requirement of one version (version_id) on another package (package_id).
    """

    id: int
    version_id: int
    package_id: int
    req: str
    # Name the dependent uses for the package in its manifest, when it differs
    # from the registered package name.
    explicit_name: Optional[str] = None
    features: List[str] = Field(default_factory=list)
    optional: bool = False
    default_features: bool = True
    kind: DependencyKind = DependencyKind.NORMAL
    target: Optional[str] = None


class IndexDependency(BaseModel):
    """
    Dependency entry as written into an index record.
    Field order is the wire order and the sort order.
    """

    name: str
    req: str
    features: List[str] = Field(default_factory=list)
    optional: bool = False
    default_features: bool = True
    target: Optional[str] = None
    kind: Optional[DependencyKind] = None
    package: Optional[str] = Field(
        default=None,
        description="Registered package name when `name` is a rename; omitted otherwise.",
    )


class IndexRecord(BaseModel):
    """
    One line of a package's index file, derived from a single version.
    """

    name: str
    vers: str
    deps: List[IndexDependency] = Field(default_factory=list)
    cksum: str
    features: Dict[str, List[str]] = Field(default_factory=dict)
    features2: Optional[Dict[str, List[str]]] = None
    yanked: Optional[bool] = None
    links: Optional[str] = None
    rust_version: Optional[str] = None
    v: Optional[int] = Field(
        default=None,
        description="Index format version; set to 2 when features2 is present.",
    )


class IndexDocument(BaseModel):
    """
    On-disk layout used by the JSON storage backend.
    """

    packages: List[Package] = Field(default_factory=list)
    versions: List[Version] = Field(default_factory=list)
    dependencies: List[Dependency] = Field(default_factory=list)
