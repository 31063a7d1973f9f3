"""
Application configuration.

Settings are read once at startup from a JSON or YAML file (the original
camelCase keys such as ``urlPrefix`` or ``dbAccessControl`` are accepted) and
from ``MONGO_REST_*`` environment variables. Duck-typed options are resolved
here into canonical types so that call sites never inspect their shape.
"""
import json
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Literal, Mapping, Optional
from urllib.parse import unquote, urlsplit

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from mongo_rest.core.access_control import AccessControl

DEFAULT_MONGO_URI = "mongodb://localhost:27017"
CONFIG_PATH_ENV = "MONGO_REST_CONFIG"
DEFAULT_CONFIG_PATH = "config.json"

# Sections whose keys are data (database names), not option names
_VERBATIM_SECTIONS = {"db_access_control"}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


class ConnectionDescriptor(BaseModel):
    """
    Canonical store connection descriptor.

    ``uri`` is handed to the driver as is; ``database`` is the database named
    in the URI path (or the ``database`` key of the structured form), if any.
    """

    model_config = ConfigDict(frozen=True)

    uri: str = DEFAULT_MONGO_URI
    database: Optional[str] = None

    @classmethod
    def from_uri(cls, uri: str) -> "ConnectionDescriptor":
        parts = urlsplit(uri)
        if parts.scheme not in ("mongodb", "mongodb+srv") or not parts.netloc:
            raise ValueError(f"Invalid MongoDB connection URI: {uri!r}")
        database = unquote(parts.path.lstrip("/")) or None
        return cls(uri=uri, database=database)

    @classmethod
    def parse(cls, raw: Any) -> "ConnectionDescriptor":
        """
        Accept a URI string, a ``{host, port[, database]}`` mapping or nothing.

        Raises:
            ValueError: If the value has none of the accepted shapes
        """
        if raw is None:
            return cls()
        if isinstance(raw, ConnectionDescriptor):
            return raw
        if isinstance(raw, str):
            return cls.from_uri(raw)
        if isinstance(raw, Mapping):
            if "uri" in raw:
                return cls(uri=raw["uri"], database=raw.get("database"))
            host = raw.get("host") or "localhost"
            port = int(raw.get("port") or 27017)
            return cls(uri=f"mongodb://{host}:{port}", database=raw.get("database") or None)
        raise ValueError("db must be a connection URI or a {host, port} mapping")


class ServerSettings(BaseModel):
    """HTTP bind address."""
    address: str = "0.0.0.0"
    port: int = 3000


class CorsSettings(BaseModel):
    """Cross-origin headers (``accessControl`` in the config file)."""
    allow_origin: Optional[str] = None
    allow_methods: str = "GET,POST,PUT,DELETE,HEAD,OPTIONS"

    @property
    def methods(self) -> list[str]:
        return [method.strip().upper() for method in self.allow_methods.split(",") if method.strip()]


class AuthSettings(BaseModel):
    """Token authentication; the gate is installed only when this section exists."""
    users_db_connection: str = "mongodb://localhost:27017/mongo_rest_auth"
    token_db_connection: str = "mongodb://localhost:27017/mongo_rest_auth"
    universal_auth_token: Optional[str] = None
    users_collection: str = "users"
    tokens_collection: str = "tokens"

    token_secret: str = "CHANGE_ME_IN_PRODUCTION_USE_STRONG_SECRET"
    token_algorithm: str = "HS256"
    token_expire_minutes: int = 60 * 24


class Settings(BaseSettings):
    """Process-wide settings, immutable once loaded."""

    db: Annotated[ConnectionDescriptor, NoDecode] = Field(default_factory=ConnectionDescriptor)
    server: ServerSettings = Field(default_factory=ServerSettings)
    access_control: CorsSettings = Field(default_factory=CorsSettings)

    url_prefix: str = ""
    endpoint_root: Literal["collection", "database"] = "collection"
    db_access_control: AccessControl = Field(default_factory=AccessControl)
    access_denied_status: int = 403

    collection_output_type: Literal["json", "csv"] = "json"
    human_readable_output: bool = False

    debug: bool = False
    log_level: str = "INFO"
    json_logs: bool = False

    auth: Optional[AuthSettings] = None

    model_config = SettingsConfigDict(
        env_prefix="MONGO_REST_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    @field_validator("db", mode="before")
    @classmethod
    def _parse_db(cls, value: Any) -> ConnectionDescriptor:
        return ConnectionDescriptor.parse(value)

    @field_validator("db_access_control", mode="before")
    @classmethod
    def _parse_access_control(cls, value: Any) -> AccessControl:
        return AccessControl.parse(value)

    @field_validator("url_prefix")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if value and not value.startswith("/"):
            value = "/" + value
        return value

    @model_validator(mode="after")
    def _check_database_endpoint(self) -> "Settings":
        if self.endpoint_root == "database" and not self.db.database:
            raise ValueError(
                "endpoint_root 'database' requires a database name in the db connection"
            )
        return self

    @property
    def is_database_endpoint(self) -> bool:
        return self.endpoint_root == "database"

    @classmethod
    def from_file(cls, path: str | Path, **overrides: Any) -> "Settings":
        """Load settings from a JSON or YAML file; a missing file means defaults."""
        data = load_config_file(path)
        data.update(overrides)
        return cls(**data)


def to_snake_case(name: str) -> str:
    """``usersDBConnection`` -> ``users_db_connection``."""
    return _CAMEL_BOUNDARY.sub("_", name).replace("-", "_").lower()


def normalize_keys(data: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively convert option names to snake_case."""
    normalized = {}
    for key, value in data.items():
        field = to_snake_case(str(key))
        if isinstance(value, Mapping) and field not in _VERBATIM_SECTIONS:
            value = normalize_keys(value)
        normalized[field] = value
    return normalized


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Read a configuration file into a dict of snake_case options."""
    path = Path(path)
    if not path.exists():
        return {}

    with open(path) as f:
        if path.suffix in (".yml", ".yaml"):
            data = yaml.safe_load(f) or {}
        else:
            data = json.load(f)

    if not isinstance(data, Mapping):
        raise ValueError(f"Configuration file {path} must contain an object")
    return normalize_keys(data)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings.from_file(os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH))
