"""Configuration manager for loading and saving pullapod preferences."""

from pathlib import Path

import yaml

from pullapod.config.schema import GlobalConfig
from pullapod.utils.errors import InvalidConfigError

CONFIG_FILENAME = "config.yaml"


class ConfigManager:
    """Manages the optional ``config.yaml`` next to the favorites file."""

    def __init__(self, config_dir: Path) -> None:
        """Initialize the config manager.

        Args:
            config_dir: pullapod configuration directory
        """
        self.config_dir = config_dir
        self.config_file = config_dir / CONFIG_FILENAME

    def load_config(self) -> GlobalConfig:
        """Load and validate preferences.

        A missing file yields the defaults; nothing is written.

        Raises:
            InvalidConfigError: If the file is not valid YAML or fails validation
        """
        if not self.config_file.exists():
            return GlobalConfig()

        try:
            with open(self.config_file, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            return GlobalConfig(**data)
        except Exception as e:
            raise InvalidConfigError(
                f"Invalid configuration in {self.config_file}: {e}",
                suggestion=f"Fix or delete {self.config_file}",
            ) from e

    def save_config(self, config: GlobalConfig) -> None:
        """Save preferences.

        Args:
            config: GlobalConfig instance to save
        """
        data = config.model_dump(mode="json")

        self.config_dir.mkdir(parents=True, exist_ok=True)

        with open(self.config_file, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    def set_value(self, key: str, value: str) -> GlobalConfig:
        """Set a single preference from its string form and save.

        Raises:
            InvalidConfigError: Unknown key or a value that fails validation
        """
        config = self.load_config()
        if key not in GlobalConfig.model_fields or key == "version":
            known = ", ".join(k for k in GlobalConfig.model_fields if k != "version")
            raise InvalidConfigError(
                f"Unknown config key: {key}",
                suggestion=f"Available keys: {known}",
            )

        data = config.model_dump()
        current = data[key]
        converted: object
        if isinstance(current, bool):
            converted = value.lower() in ("true", "yes", "1")
        else:
            converted = value
        data[key] = converted

        try:
            updated = GlobalConfig(**data)
        except Exception as e:
            raise InvalidConfigError(f"Invalid value for {key}: {value}") from e

        self.save_config(updated)
        return updated
