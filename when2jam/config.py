"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.exceptions import ConfigurationFault
from .domain.models import SlotGrid


class GridConfig(BaseModel):
    """Slot grid shared by events that do not carry their own."""
    start_hour: int = 8
    end_hour: int = 22
    slots_per_hour: int = 2
    max_days: int = 7

    @field_validator("start_hour", "end_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 24."""
        if not 0 <= v <= 24:
            raise ValueError(f"Hour must be between 0 and 24, got {v}")
        return v

    @field_validator("max_days")
    @classmethod
    def validate_max_days(cls, value: int) -> int:
        """Ensure at least a single day can be selected."""
        if value < 1:
            raise ValueError("max_days must be at least 1")
        return value

    @model_validator(mode="after")
    def validate_grid(self) -> "GridConfig":
        """Reject grids the slot model cannot represent."""
        # ConfigurationFault is a ValueError, so pydantic reports it as a validation error
        self.to_slot_grid()
        return self

    def to_slot_grid(self) -> SlotGrid:
        return SlotGrid(
            start_hour=self.start_hour,
            end_hour=self.end_hour,
            slots_per_hour=self.slots_per_hour,
        )


class StoreConfig(BaseModel):
    """Hosted data store connection."""
    url: str = ""
    api_key: str = ""
    events_table: str = "events"
    responses_table: str = "responses"
    timeout_seconds: float = 10.0
    persist_grid: bool = False  # needs start_hour/end_hour/slots_per_hour columns
    mock_data_file: Path = Field(
        default_factory=lambda: Path.home() / ".when2jam_mock_store.json"
    )

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("mock_data_file")
    @classmethod
    def expand_home(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        return value

    def require_remote(self) -> None:
        """
        Ensure the remote store is configured.

        Raises:
            ConfigurationFault: If url or api_key is missing
        """
        if not self.url or not self.api_key:
            raise ConfigurationFault(
                "store.url and store.api_key must be set to use the remote store "
                "(or pass --mock)."
            )


class AppConfig(BaseModel):
    """Application configuration."""
    grid: GridConfig = Field(default_factory=GridConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    default_event_name: str = "Untitled Jam"
    default_span_days: int = 3
    share_base_url: str = "http://localhost:3000/"
    timezone: str = "UTC"

    @field_validator("default_event_name")
    @classmethod
    def validate_default_event_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("default_event_name must not be blank")
        return value

    @model_validator(mode="after")
    def validate_default_span(self) -> "AppConfig":
        """Ensure the preset range fits the maximum span."""
        if not 1 <= self.default_span_days <= self.grid.max_days:
            raise ValueError(
                f"default_span_days must be between 1 and grid.max_days ({self.grid.max_days})"
            )
        return self

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path


def load_config(config_path: Path | None = None) -> AppConfig:
    """
    Load an explicit config file, or the default one if it exists.

    Without an explicit path a missing default file yields built-in defaults.
    """
    if config_path is not None:
        return AppConfig.load_from_yaml(config_path)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)
    return AppConfig()
