"""Configuration for FastAPI application."""

from pydantic_settings import BaseSettings
from pydantic import validator
from typing import List, Optional, Union
import json


class Settings(BaseSettings):
    # API Configuration
    api_prefix: str = "/api/v1"
    api_title: str = "dev-tool API"
    api_version: str = "1.0.0"
    allowed_origins: Union[str, List[str]] = ["*"]

    @validator('allowed_origins', pre=True)
    def parse_allowed_origins(cls, v):
        """Parse allowed_origins from string or list."""
        if isinstance(v, str):
            if v.startswith('['):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    return [v]
            return [v]
        return v

    # Storage backend
    storage_backend: str = "memory"
    storage_namespace: str = "default"
    storage_working_dir: str = "./data"

    redis_url: Optional[str] = None
    redis_password: Optional[str] = None

    # Backup directory override
    backup_dir: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
