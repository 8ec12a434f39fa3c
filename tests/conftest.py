"""
Shared fixtures for the index tests.
"""

from datetime import datetime, timedelta
from typing import List, Tuple

import pytest

from crate_index.domain.models import Dependency, DependencyKind, Package, Version
from crate_index.services.anomaly import AnomalySink, Severity


BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


class RecordingSink(AnomalySink):
    """Anomaly sink that keeps every message for assertions."""

    def __init__(self):
        self.messages: List[Tuple[str, Severity]] = []

    def capture_message(self, message: str, severity: Severity) -> None:
        self.messages.append((message, severity))


def make_version(
    id: int,
    num: str,
    package_id: int = 1,
    minutes: int = 0,
    **kwargs,
) -> Version:
    kwargs.setdefault("checksum", f"cksum-{id}")
    return Version(
        id=id,
        package_id=package_id,
        num=num,
        created_at=BASE_TIME + timedelta(minutes=minutes),
        **kwargs,
    )


def make_dependency(
    id: int,
    version_id: int,
    package_id: int,
    req: str = "^1.0",
    **kwargs,
) -> Dependency:
    return Dependency(id=id, version_id=version_id, package_id=package_id, req=req, **kwargs)


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def demo_rows():
    """
    Package "demo" with versions 0.1.0 and 0.2.0 (created later); 0.2.0
    depends on "left-pad" under the name "pad".
    """
    packages = [Package(id=1, name="demo"), Package(id=2, name="left-pad")]
    versions = [
        make_version(11, "0.2.0", minutes=10),
        make_version(10, "0.1.0", minutes=0),
        make_version(20, "1.3.0", package_id=2),
    ]
    dependencies = [
        make_dependency(100, 11, 2, req="^1.3", explicit_name="pad", kind=DependencyKind.NORMAL),
    ]
    return packages, versions, dependencies
