"""Client settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. YAML config file (if specified)
  2. Environment variables (BRIGHT_ prefix)
  3. Default values
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class ClientSettings(BaseSettings):
    """Root client settings.

    Configuration is loaded from environment variables with the BRIGHT_ prefix.
    Nested settings use double underscores.

    Example:
        BRIGHT_BASE_URL=http://search.internal:3000
        BRIGHT_API_KEY=sk-...
        BRIGHT_OBSERVABILITY__LOG_FORMAT=console
    """

    model_config = {
        "env_prefix": "BRIGHT_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    base_url: str = Field(default="http://localhost:3000", description="Bright server URL")
    api_key: str = Field(default="", description="API key sent as a bearer token (empty = none)")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")

    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @classmethod
    def from_yaml(cls, path: str | Path) -> ClientSettings:
        """Load settings from a YAML configuration file.

        Values from the YAML file take precedence over environment variables;
        keys absent from the file still come from the environment.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated ClientSettings instance.
        """
        import yaml  # type: ignore[import-untyped]

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)
