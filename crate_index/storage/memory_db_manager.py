from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import logging

from crate_index.storage.db_manager import DatabaseManager
from crate_index.domain.models import Dependency, IndexDocument, Package, Version

logger = logging.getLogger(__name__)


class MemoryDatabaseManager(DatabaseManager):
    """
    Keeps all rows in memory. Used directly in tests and as the base of the
    JSON file backend.
    """

    def __init__(
        self,
        packages: Iterable[Package] = (),
        versions: Iterable[Version] = (),
        dependencies: Iterable[Dependency] = (),
    ):
        self._load_document(
            IndexDocument(
                packages=list(packages),
                versions=list(versions),
                dependencies=list(dependencies),
            )
        )

    def _load_document(self, document: IndexDocument) -> None:
        self._packages_by_name: Dict[str, Package] = {p.name: p for p in document.packages}
        self._packages_by_id: Dict[int, Package] = {p.id: p for p in document.packages}
        self._versions: List[Version] = list(document.versions)
        self._dependencies: List[Dependency] = list(document.dependencies)

    def initialize(self) -> None:
        pass

    def find_package_by_name(self, name: str) -> Optional[Package]:
        return self._packages_by_name.get(name)

    def get_versions(self, package_id: int) -> List[Version]:
        return [v for v in self._versions if v.package_id == package_id]

    def get_dependencies(self, version_ids: Sequence[int]) -> List[Tuple[Dependency, str]]:
        wanted = set(version_ids)
        rows: List[Tuple[Dependency, str]] = []
        for dep in self._dependencies:
            if dep.version_id not in wanted:
                continue
            target = self._packages_by_id.get(dep.package_id)
            if target is None:
                logger.debug(f"Skipping dependency {dep.id}: target package {dep.package_id} does not exist")
                continue
            rows.append((dep, target.name))
        return rows
