from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

from crate_index.domain.models import Dependency, Package, Version


class DatabaseManager(ABC):
    """
    Abstract read access to packages, versions and dependencies.

    The index service only reads. Snapshot consistency across the three
    calls, retries and timeouts are the backend's business.
    """

    @abstractmethod
    def initialize(self) -> None:
        """Initialize the storage subsystem (e.g. open or load the database)."""
        pass

    @abstractmethod
    def find_package_by_name(self, name: str) -> Optional[Package]:
        """Get the package with exactly this name, or None."""
        pass

    @abstractmethod
    def get_versions(self, package_id: int) -> List[Version]:
        """Get every version of a package, in no particular order."""
        pass

    @abstractmethod
    def get_dependencies(self, version_ids: Sequence[int]) -> List[Tuple[Dependency, str]]:
        """
        Get all dependencies owned by any of the given versions in one read.
        Each dependency is paired with the current name of the package it
        targets; dependencies whose target package is missing are skipped.
        """
        pass
