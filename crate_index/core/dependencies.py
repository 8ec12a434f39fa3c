from pathlib import Path
from typing import Optional
import logging
import os

from crate_index.storage.db_manager import DatabaseManager
from crate_index.storage.json_db_manager import JsonDatabaseManager
from crate_index.storage.sqlite_db_manager import SqliteDatabaseManager
from crate_index.domain.entities import IndexRepository
from crate_index.domain.models import IndexConfig

logger = logging.getLogger(__name__)

BACKEND_ENV_VAR = "CRATE_INDEX_BACKEND"
DATABASE_ENV_VAR = "CRATE_INDEX_DATABASE"
_REPO_ROOT = Path(__file__).resolve().parents[2]
_DEFAULT_DATA_DIR = _REPO_ROOT / "data"
_DEFAULT_FILENAMES = {
    "sqlite": "crate_index.sqlite3",
    "json": "crate_index.json",
}

_config: Optional[IndexConfig] = None
_db_manager: Optional[DatabaseManager] = None
_index_repository: Optional[IndexRepository] = None


def get_config() -> IndexConfig:
    """
    Resolve configuration from the environment.

    Priority for the database location:
    1. Environment variable CRATE_INDEX_DATABASE
    2. '<repo root>/data/<default file for the backend>'
    """
    global _config
    if _config is None:
        backend = os.environ.get(BACKEND_ENV_VAR, "sqlite")
        env_path = os.environ.get(DATABASE_ENV_VAR)
        if env_path:
            database_path = Path(env_path).expanduser()
        else:
            database_path = _DEFAULT_DATA_DIR / _DEFAULT_FILENAMES.get(backend, "crate_index")
        _config = IndexConfig(backend=backend, database_path=database_path)
        logger.info(f"Using {_config.backend} backend at {_config.database_path}")
    return _config


def get_db_manager() -> DatabaseManager:
    global _db_manager
    if _db_manager is None:
        config = get_config()
        if config.backend == "json":
            _db_manager = JsonDatabaseManager(config.database_path)
        else:
            _db_manager = SqliteDatabaseManager(config.database_path)
        _db_manager.initialize()
    return _db_manager


def get_index_repository() -> IndexRepository:
    global _index_repository
    if _index_repository is None:
        _index_repository = IndexRepository(get_db_manager())
    return _index_repository
