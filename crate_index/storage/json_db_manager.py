from pathlib import Path
import logging

from crate_index.storage.memory_db_manager import MemoryDatabaseManager
from crate_index.domain.models import IndexDocument

logger = logging.getLogger(__name__)


class JsonDatabaseManager(MemoryDatabaseManager):
    """
    Reads a JSON document with `packages`, `versions` and `dependencies`
    arrays and serves it from memory.
    """

    def __init__(self, path: Path):
        super().__init__()
        self._path = path

    def initialize(self) -> None:
        if not self._path.exists():
            logger.error(f"Index document not found: {self._path}")
            raise FileNotFoundError(f"Index document not found: {self._path}")

        logger.debug(f"Loading index document: {self._path}")
        document = IndexDocument.model_validate_json(self._path.read_text(encoding="utf-8"))
        self._load_document(document)
        logger.info(
            f"Loaded {len(document.packages)} packages, {len(document.versions)} versions "
            f"and {len(document.dependencies)} dependencies from {self._path}"
        )
