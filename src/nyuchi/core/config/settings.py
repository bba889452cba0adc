"""Configuration management for Nyuchi."""
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..models.contribution import ContributionType
from ..models.submission import SubmissionType
from ..scoring.constants import LEVEL_THRESHOLDS, UBUNTU_POINTS, UbuntuLevel
from ..security.access import DEFAULT_PIPELINE_ACCESS, AccessPolicy, Capability

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class NyuchiConfig(BaseSettings):
    """Main configuration for the Nyuchi pipeline service.

    Configuration can be loaded from:
    1. Environment variables (prefixed with NYUCHI_)
    2. YAML configuration file (nyuchi.yaml)
    3. Default values
    """

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host address")
    api_port: int = Field(default=8000, description="API port")

    # Database Configuration
    storage: str = Field(default="sqlite", description="Storage backend (sqlite or postgresql)")
    db_path: str = Field(default="./nyuchi.db", description="Database file path for SQLite")
    db_url: Optional[str] = Field(default=None, description="Database URL for PostgreSQL")

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_file: Optional[str] = Field(default=None, description="Log file path")

    # Pipeline Configuration
    pipeline_access: dict[SubmissionType, list[Capability]] = Field(
        default_factory=lambda: {
            kind: sorted(caps, key=lambda c: c.value)
            for kind, caps in DEFAULT_PIPELINE_ACCESS.items()
        },
        description="Capabilities allowed to act on each pipeline type"
    )
    sync_max_attempts: int = Field(
        default=5, ge=1, description="Attempts before a source sync event is marked failed"
    )
    max_page_size: int = Field(default=100, ge=1, description="Largest page a listing returns")

    # Scoring Configuration
    level_thresholds: dict[UbuntuLevel, int] = Field(
        default_factory=lambda: dict(LEVEL_THRESHOLDS),
        description="Inclusive lower bound of each Ubuntu level"
    )
    contribution_points: dict[ContributionType, int] = Field(
        default_factory=lambda: dict(UBUNTU_POINTS),
        description="Default points per contribution type"
    )
    auto_award_on_publish: bool = Field(
        default=False,
        description="Credit the submitter automatically when a submission is published"
    )
    leaderboard_default_limit: int = Field(default=100, ge=1, description="Default leaderboard size")

    model_config = SettingsConfigDict(
        env_prefix="NYUCHI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @field_validator("level_thresholds")
    @classmethod
    def validate_level_thresholds(cls, v: dict[UbuntuLevel, int]) -> dict[UbuntuLevel, int]:
        """Every level needs a bound and bounds must rise with the tier."""
        missing = [level.value for level in UbuntuLevel if level not in v]
        if missing:
            raise ValueError(f"Missing level thresholds: {', '.join(missing)}")
        bounds = [v[level] for level in UbuntuLevel]
        if bounds[0] != 0 or bounds != sorted(set(bounds)):
            raise ValueError("Level thresholds must start at 0 and strictly increase")
        return v

    @field_validator("contribution_points")
    @classmethod
    def validate_contribution_points(cls, v: dict[ContributionType, int]) -> dict[ContributionType, int]:
        if any(points < 0 for points in v.values()):
            raise ValueError("Contribution points must be non-negative")
        return {**UBUNTU_POINTS, **v}

    def get_database_url(self) -> str:
        """Get the database URL based on configuration.

        Returns:
            Database URL string
        """
        if self.db_url:
            return self.db_url

        if self.storage == "sqlite":
            if self.db_path == ":memory:":
                return "sqlite+aiosqlite:///:memory:"
            # Ensure path is absolute
            db_path = Path(self.db_path)
            if not db_path.is_absolute():
                db_path = Path.cwd() / db_path
            return f"sqlite+aiosqlite:///{db_path}"
        elif self.storage == "postgresql":
            raise ValueError(
                "PostgreSQL selected but db_url not provided. "
                "Set NYUCHI_DB_URL or db_url in config file."
            )
        else:
            raise ValueError(f"Unknown storage backend: {self.storage}")

    def access_policy(self) -> AccessPolicy:
        """Freeze the configured pipeline access into an AccessPolicy."""
        return AccessPolicy(rules={kind: frozenset(caps) for kind, caps in self.pipeline_access.items()})

    def configure_logging(self) -> None:
        """Apply log level and optional log file to the root logger."""
        handlers: list[logging.Handler] = [logging.StreamHandler()]
        if self.log_file:
            handlers.append(logging.FileHandler(self.log_file))
        logging.basicConfig(
            level=self.log_level.upper(),
            format=LOG_FORMAT,
            handlers=handlers,
            force=True,
        )

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "NyuchiConfig":
        """Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            NyuchiConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Invalid configuration file: {config_path}")

        return cls(**data)

    def to_yaml(self, config_path: str | Path) -> None:
        """Save configuration to YAML file.

        Args:
            config_path: Path to save configuration file
        """
        config_path = Path(config_path)

        # Convert to plain values and remove None values
        data = self.model_dump(mode="json", exclude_none=True)

        with open(config_path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def create_default_config(cls, config_path: str | Path) -> "NyuchiConfig":
        """Create a default configuration file.

        Args:
            config_path: Path to save configuration file

        Returns:
            NyuchiConfig instance with default values
        """
        config = cls()
        config.to_yaml(config_path)
        return config


# Global configuration instance
_config: Optional[NyuchiConfig] = None


def init_config(config_path: Optional[str | Path] = None) -> NyuchiConfig:
    """Initialize the global configuration.

    Args:
        config_path: Optional path to YAML configuration file.
                    If not provided, uses environment variables and defaults.

    Returns:
        NyuchiConfig instance
    """
    global _config

    if config_path:
        _config = NyuchiConfig.from_yaml(config_path)
    else:
        # Try to load from default location
        default_paths = [
            Path("nyuchi.yaml"),
            Path("nyuchi.yml"),
            Path(".nyuchi.yaml"),
            Path.home() / ".nyuchi" / "config.yaml",
        ]

        for path in default_paths:
            if path.exists():
                _config = NyuchiConfig.from_yaml(path)
                return _config

        # No config file found, use defaults and env vars
        _config = NyuchiConfig()

    return _config


def get_config() -> NyuchiConfig:
    """Get the global configuration instance.

    Auto-initializes from defaults when init_config has not been called.
    """
    if _config is None:
        return init_config()
    return _config
