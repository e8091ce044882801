from .config import BackupConfig, StorageConfig, DevToolConfig
from .base import BaseTableStorage, TableNotFoundError
from .dbtool import DbService

__version__ = "0.3.0"
__author__ = "dev-tool contributors"
__url__ = "https://github.com/dev-tool/dev-tool"

__all__ = [
    "BackupConfig",
    "StorageConfig",
    "DevToolConfig",
    "BaseTableStorage",
    "TableNotFoundError",
    "DbService",
]
