"""Client settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. Explicit keyword arguments, or values read by ``from_yaml()``
  2. Environment variables (EVERYTHING_ prefix)
  3. ``.env`` file
  4. Default values

A ``ClientSettings`` value is passed to ``create_client()`` and scoped to the
client it builds; nothing here is process-global.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

AdapterName = Literal["cli", "ipc", "http", "auto"]


class CLISettings(BaseModel):
    """``es.exe`` adapter configuration."""

    cli_path: str | None = Field(default=None, description="Path to es.exe (defaults to bundled copy or PATH)")
    timeout: float = Field(default=10.0, gt=0, description="Per-invocation timeout in seconds")
    poll_interval: float = Field(default=10.0, gt=0, description="File monitoring interval in seconds")


class IPCSettings(BaseModel):
    """Native SDK adapter configuration."""

    dll_path: str | None = Field(default=None, description="Path to Everything64.dll / Everything32.dll")
    timeout: float = Field(default=5.0, gt=0, description="Native query timeout in seconds")
    poll_interval: float = Field(default=5.0, gt=0, description="File monitoring interval in seconds")
    default_max_results: int = Field(default=1000, ge=1, description="Result cap when a search sets none")


class HTTPSettings(BaseModel):
    """HTTP adapter configuration."""

    server_url: str = Field(default="http://localhost:8080", description="Everything HTTP server URL")
    username: str | None = Field(default=None, description="Basic-auth username")
    password: str | None = Field(default=None, description="Basic-auth password")
    timeout: float = Field(default=5.0, gt=0, description="HTTP request timeout in seconds")
    poll_interval: float = Field(default=1.0, gt=0, description="File monitoring interval in seconds")


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="console", description="Log format: json, console")


class ClientSettings(BaseSettings):
    """Root client settings.

    Configuration is loaded from environment variables with the EVERYTHING_ prefix.
    Nested settings use double underscores.

    Example:
        EVERYTHING_ADAPTER=http
        EVERYTHING_HTTP__SERVER_URL=http://192.168.1.10:8080
        EVERYTHING_CLI__CLI_PATH=C:\\Tools\\es.exe
    """

    model_config = {
        "env_prefix": "EVERYTHING_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    adapter: AdapterName = Field(default="auto", description="Transport to use: cli, ipc, http or auto")

    cli: CLISettings = Field(default_factory=CLISettings)
    ipc: IPCSettings = Field(default_factory=IPCSettings)
    http: HTTPSettings = Field(default_factory=HTTPSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    def adapter_kwargs(self, name: str) -> dict[str, Any]:
        """Constructor keyword arguments for the named built-in adapter."""
        section: BaseModel | None = getattr(self, name, None) if name in ("cli", "ipc", "http") else None
        return section.model_dump() if section is not None else {}

    @classmethod
    def from_yaml(cls, path: str | Path, **overrides: Any) -> ClientSettings:
        """Load settings from a YAML configuration file.

        Args:
            path: Path to the YAML config file.
            **overrides: Values that take precedence over the file.

        Returns:
            Populated ClientSettings instance.
        """
        import yaml  # type: ignore[import-untyped]

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        data.update(overrides)
        return cls(**data)
