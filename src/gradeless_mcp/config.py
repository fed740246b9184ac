"""Server configuration via environment variables."""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

PACKAGE_DIR = Path(__file__).parent
DEFAULT_LESSONS_PATH = PACKAGE_DIR / "data" / "lessons.json"
DEFAULT_STATIC_DIR = PACKAGE_DIR / "static"
DEFAULT_PORT = 3000

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _resolve_tracing_enabled(flag_value: str, tracking_uri: str) -> bool:
    """Derive tracing_enabled from env vars.

    - ``GRADELESS_TRACING_ENABLED=false`` → always disabled (explicit opt-out).
    - Otherwise enabled when ``MLFLOW_TRACKING_URI`` is non-empty.
    """
    if flag_value.lower() == "false":
        return False
    return bool(tracking_uri)


class ServerConfig(BaseModel):
    """Runtime configuration resolved from environment.

    ``public_base_url`` is used to build the absolute "watch here" links
    returned to assistant hosts. When left empty it resolves to
    ``http://localhost:<port>``.
    """

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=DEFAULT_PORT)
    lessons_path: str = Field(default=str(DEFAULT_LESSONS_PATH))
    static_dir: str = Field(default=str(DEFAULT_STATIC_DIR))
    public_base_url: str = Field(default="")
    log_level: str = Field(default="INFO")
    server_name: str = Field(default="gradeless-mcp")
    server_version: str = Field(default="1.0.0")
    tracing_enabled: bool = Field(default=False)
    mlflow_tracking_uri: str = Field(default="")
    mlflow_experiment_name: str = Field(default="gradeless-mcp")

    @field_validator("port")
    @classmethod
    def validate_port(cls, value: int) -> int:
        if not 1 <= value <= 65535:
            raise ValueError(f"Invalid port {value}. Must be between 1 and 65535")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in VALID_LOG_LEVELS:
            allowed = ", ".join(sorted(VALID_LOG_LEVELS))
            raise ValueError(f"Invalid log level '{value}'. Allowed: {allowed}")
        return level

    @field_validator("public_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @property
    def base_url(self) -> str:
        """Public URL of this server, without a trailing slash."""
        return self.public_base_url or f"http://localhost:{self.port}"

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Build config from environment variables."""
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT") or DEFAULT_PORT),
            lessons_path=os.getenv("GRADELESS_LESSONS_PATH") or str(DEFAULT_LESSONS_PATH),
            static_dir=os.getenv("GRADELESS_STATIC_DIR") or str(DEFAULT_STATIC_DIR),
            public_base_url=os.getenv("GRADELESS_PUBLIC_URL", ""),
            log_level=os.getenv("GRADELESS_LOG_LEVEL", "INFO"),
            tracing_enabled=_resolve_tracing_enabled(
                os.getenv("GRADELESS_TRACING_ENABLED", ""),
                os.getenv("MLFLOW_TRACKING_URI", ""),
            ),
            mlflow_tracking_uri=os.getenv("MLFLOW_TRACKING_URI", ""),
            mlflow_experiment_name=os.getenv("MLFLOW_EXPERIMENT_NAME", "gradeless-mcp"),
        )


# Singleton, initialised once on first access.
_config: ServerConfig | None = None


def get_config() -> ServerConfig:
    """Return the global config singleton, creating it on first access.

    Loads ``~/.config/gradeless-mcp/.env`` before reading env vars.
    Process environment always takes precedence over the config file.
    """
    global _config
    if _config is None:
        import logging

        from .dotenv import load_dotenv

        injected = load_dotenv()
        if injected:
            logger = logging.getLogger(__name__)
            logger.info(
                "Loaded %d var(s) from config: %s",
                len(injected),
                ", ".join(injected.keys()),
            )
        _config = ServerConfig.from_env()
    return _config


def update_config(**overrides: object) -> ServerConfig:
    """Patch the live config."""
    global _config
    cfg = get_config()
    data = cfg.model_dump()
    data.update({k: v for k, v in overrides.items() if v is not None})
    _config = ServerConfig(**data)
    return _config
