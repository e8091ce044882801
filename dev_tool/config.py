"""Configuration management for dev-tool."""

import os
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Mapping, Optional


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _split_tables(value: str) -> List[str]:
    return [t.strip() for t in value.split(",") if t.strip()]


@dataclass(frozen=True)
class BackupConfig:
    """Backup subsystem configuration."""
    auto_backup: bool = False
    interval: float = 24  # hours
    dir: str = "./data/backups"
    keep_backups: int = 7  # 0 keeps everything
    single_file: bool = False
    tables: List[str] = field(default_factory=list)  # special (e.g. upper-case) table names

    # Option names as exposed to the host's plugin configuration
    OPTION_NAMES = {
        "autoBackup": "auto_backup",
        "interval": "interval",
        "dir": "dir",
        "keepBackups": "keep_backups",
        "singleFile": "single_file",
        "tables": "tables",
    }

    @classmethod
    def from_env(cls) -> 'BackupConfig':
        """Create config from environment variables."""
        return cls(
            auto_backup=_env_bool("BACKUP_AUTO", "false"),
            interval=float(os.getenv("BACKUP_INTERVAL", "24")),
            dir=os.getenv("BACKUP_DIR", "./data/backups"),
            keep_backups=int(os.getenv("BACKUP_KEEP", "7")),
            single_file=_env_bool("BACKUP_SINGLE_FILE", "false"),
            tables=_split_tables(os.getenv("BACKUP_TABLES", "")),
        )

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> 'BackupConfig':
        """Create config from a camelCase or snake_case option mapping."""
        kwargs = {}
        for key, value in options.items():
            name = cls.OPTION_NAMES.get(key, key)
            if name not in cls.OPTION_NAMES.values():
                raise ValueError(f"Unknown backup option: {key}")
            kwargs[name] = list(value) if name == "tables" else value
        return cls(**kwargs)

    def __post_init__(self):
        """Validate configuration."""
        if self.interval < 1:
            raise ValueError(f"interval must be at least 1 hour, got {self.interval}")
        if self.keep_backups < 0:
            raise ValueError(f"keep_backups must be non-negative, got {self.keep_backups}")
        if not self.dir:
            raise ValueError("dir must not be empty")


@dataclass(frozen=True)
class StorageConfig:
    """Table storage backend configuration."""
    backend: str = "memory"  # memory, json, redis
    namespace: str = "default"
    working_dir: str = "./data"

    # Primary key columns per table; tables not listed use ["id"]
    primary_keys: Dict[str, List[str]] = field(default_factory=dict)

    # Redis specific settings
    redis_url: str = "redis://localhost:6379"
    redis_password: Optional[str] = None
    redis_max_connections: int = 50
    redis_socket_timeout: float = 5.0

    ALLOWED_BACKENDS = {"memory", "json", "redis"}

    @classmethod
    def from_env(cls) -> 'StorageConfig':
        """Create config from environment variables."""
        return cls(
            backend=os.getenv("STORAGE_BACKEND", "memory"),
            namespace=os.getenv("STORAGE_NAMESPACE", "default"),
            working_dir=os.getenv("STORAGE_WORKING_DIR", "./data"),
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379"),
            redis_password=os.getenv("REDIS_PASSWORD", None),
            redis_max_connections=int(os.getenv("REDIS_MAX_CONNECTIONS", "50")),
            redis_socket_timeout=float(os.getenv("REDIS_SOCKET_TIMEOUT", "5.0")),
        )

    def __post_init__(self):
        """Validate configuration."""
        if self.backend not in self.ALLOWED_BACKENDS:
            raise ValueError(
                f"Unknown storage backend: {self.backend}. Allowed: {sorted(self.ALLOWED_BACKENDS)}"
            )
        if self.redis_max_connections <= 0:
            raise ValueError(f"redis_max_connections must be positive, got {self.redis_max_connections}")


@dataclass(frozen=True)
class DevToolConfig:
    """Main dev-tool configuration."""
    backup: BackupConfig = field(default_factory=BackupConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    @classmethod
    def from_env(cls) -> 'DevToolConfig':
        """Create complete config from environment variables."""
        return cls(
            backup=BackupConfig.from_env(),
            storage=StorageConfig.from_env(),
        )

    def to_dict(self) -> dict:
        """Flatten storage settings into the global_config dict storages expect."""
        return asdict(self.storage)
