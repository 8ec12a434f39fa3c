from typing import Dict, List, Optional, Sequence, Tuple
import logging

from crate_index.storage.db_manager import DatabaseManager
from crate_index.domain.models import (
    Dependency,
    IndexDependency,
    IndexRecord,
    Package,
    Version,
)
from crate_index.domain.index_utils import dependency_sort_key, split_features, version_sort_key
from crate_index.services.anomaly import AnomalySink, LoggingAnomalySink, Severity, report_anomaly
from crate_index.services.index_writer import IndexEncodingError, write_records

logger = logging.getLogger(__name__)

# Index format version announced when a record carries features2.
FEATURES2_FORMAT_VERSION = 2


def build_index_dependency(dep: Dependency, target_name: str) -> IndexDependency:
    # With an explicit rename, `name` is what the dependent imports the
    # package as and `package` is the registered name to resolve.
    if dep.explicit_name is not None:
        name, package = dep.explicit_name, target_name
    else:
        name, package = target_name, None

    return IndexDependency(
        name=name,
        req=dep.req,
        features=list(dep.features),
        optional=dep.optional,
        default_features=dep.default_features,
        target=dep.target,
        kind=dep.kind,
        package=package,
    )


def build_index_record(
    package_name: str,
    version: Version,
    dependencies: Sequence[Tuple[Dependency, str]],
) -> IndexRecord:
    """
    Turn one version and its (dependency, target package name) pairs into
    an index record.
    """
    deps = sorted(
        (build_index_dependency(dep, target_name) for dep, target_name in dependencies),
        key=dependency_sort_key,
    )

    features, features2 = split_features(version.features)

    # Readers that predate features2 only understand the legacy layout, so
    # neither features2 nor `v` may appear unless there is something to put there.
    if features2:
        v: Optional[int] = FEATURES2_FORMAT_VERSION
    else:
        features2, v = None, None

    return IndexRecord(
        name=package_name,
        vers=version.num,
        deps=deps,
        cksum=version.checksum,
        features=features,
        features2=features2,
        yanked=version.yanked,
        links=version.links,
        rust_version=version.rust_version,
        v=v,
    )


class IndexRepository:
    """
    Builds the index file for a package from the storage backend.
    """

    def __init__(self, db: DatabaseManager, anomalies: Optional[AnomalySink] = None):
        self.db = db
        self.anomalies = anomalies if anomalies is not None else LoggingAnomalySink()

    def get_index_data(self, name: str) -> Optional[str]:
        """
        Return the index file contents for the package with exactly this
        name, or None if there is nothing to publish.
        """
        logger.debug(f"Looking up package by name: {name}")
        package = self.db.find_package_by_name(name)
        if package is None:
            logger.debug(f"Package not found: {name}")
            return None

        logger.debug("Gathering remaining index data")
        records = self.index_metadata(package)

        # Versions can be deleted on owner request without anyone noticing
        # that the package is left with none. Clients get the same answer as
        # for a missing package; operators get told so the row can be cleaned up.
        if not records:
            report_anomaly(self.anomalies, f"Package `{name}` has no versions left", Severity.WARNING)
            return None

        logger.debug("Serializing index data")
        data = write_records(records)

        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise IndexEncodingError("Failed to decode index metadata as utf8") from e

    def index_metadata(self, package: Package) -> List[IndexRecord]:
        """
        Gather every version of the package and its dependencies in bulk and
        build one index record per version, oldest first.
        """
        versions = sorted(self.db.get_versions(package.id), key=version_sort_key)
        if not versions:
            return []

        grouped: Dict[int, List[Tuple[Dependency, str]]] = {v.id: [] for v in versions}
        for dep, target_name in self.db.get_dependencies([v.id for v in versions]):
            grouped[dep.version_id].append((dep, target_name))

        return [build_index_record(package.name, version, grouped[version.id]) for version in versions]
