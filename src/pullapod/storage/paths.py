"""Location and validation of the favorites file."""

import sys
from pathlib import Path

from pullapod.config.settings import Settings
from pullapod.utils.errors import InvalidInputError

APP_DIR_NAME = "pullapod"
FAVORITES_FILENAME = "favorites.json"


def get_config_dir(settings: Settings, platform: str = sys.platform) -> Path:
    """Resolve the pullapod configuration directory.

    Priority:
        1. ``$XDG_CONFIG_HOME/pullapod`` when XDG_CONFIG_HOME is set
        2. ``~/.pullapod`` on Windows
        3. ``~/.config/pullapod`` when ``~/.config`` exists
        4. ``~/.pullapod``

    Args:
        settings: Runtime settings
        platform: Platform identifier (``sys.platform`` by default)

    Returns:
        Path to the configuration directory
    """
    if settings.xdg_config_home:
        return settings.xdg_config_home / APP_DIR_NAME

    home = settings.home_dir
    if platform == "win32":
        return home / f".{APP_DIR_NAME}"

    config_root = home / ".config"
    if config_root.is_dir():
        return config_root / APP_DIR_NAME

    return home / f".{APP_DIR_NAME}"


def get_favorites_path(settings: Settings, platform: str = sys.platform) -> Path:
    """Default location of ``favorites.json``."""
    return get_config_dir(settings, platform) / FAVORITES_FILENAME


def get_valid_prefixes(settings: Settings) -> list[Path]:
    """Directories an explicit favorites path must live under."""
    home = settings.home_dir
    prefixes = [
        (home / f".{APP_DIR_NAME}").resolve(),
        (home / ".config" / APP_DIR_NAME).resolve(),
    ]
    if settings.xdg_config_home:
        prefixes.append((settings.xdg_config_home / APP_DIR_NAME).resolve())
    return prefixes


def validate_favorites_path(path: Path, settings: Settings) -> Path:
    """Validate an explicitly supplied favorites path.

    Any ``..`` component is rejected. Outside test mode the resolved path must
    also sit inside one of the pullapod configuration directories.

    Args:
        path: Candidate path
        settings: Runtime settings (home, XDG and test mode)

    Returns:
        The path unchanged when valid

    Raises:
        InvalidInputError: If the path is not allowed
    """
    if ".." in Path(path).parts:
        raise InvalidInputError(
            "Invalid favorites file path: path traversal not allowed",
            path=path,
        )

    if settings.test_mode:
        return path

    resolved = Path(path).resolve()
    for prefix in get_valid_prefixes(settings):
        if resolved == prefix or resolved.is_relative_to(prefix):
            return path

    raise InvalidInputError(
        "Invalid favorites file path: must be within pullapod config directory",
        path=path,
    )
