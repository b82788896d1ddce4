import json
import os
from pathlib import Path
from typing import Any, Dict

# Package defaults (bundled with code)
PACKAGE_CONFIG_DIR = Path(__file__).parent / "defaults"

# User configs (in project root, gitignored)
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
DEFAULT_USER_CONFIG_DIR = PROJECT_ROOT / "config"


def user_config_dir() -> Path:
    """User config directory, overridable with TRANSACTION_RULES_CONFIG_DIR"""
    override = os.getenv("TRANSACTION_RULES_CONFIG_DIR")
    return Path(override) if override else DEFAULT_USER_CONFIG_DIR


class ConfigLoader:
    """Load configuration with user overrides"""

    @staticmethod
    def load_config(config_name: str) -> Dict[str, Any]:
        """
        Load config with fallback: user config -> default config

        Args:
            config_name: Name of the config file (e.g., 'rules.json')

        Raises:
            FileNotFoundError: If no config file was found

        Returns:
            Parsed JSON configuration
        """
        user_config_path = user_config_dir() / config_name
        if user_config_path.exists():
            with open(user_config_path) as f:
                return json.load(f)

        default_config_path = PACKAGE_CONFIG_DIR / config_name
        if default_config_path.exists():
            with open(default_config_path) as f:
                return json.load(f)

        raise FileNotFoundError(
            f"Config file '{config_name}' not found in:\n"
            f" - {user_config_path}\n"
            f" - {default_config_path}"
        )

    @staticmethod
    def load_file(path: Path | str) -> Dict[str, Any]:
        """Load a JSON config document from an explicit path"""
        with open(path) as f:
            return json.load(f)

    @staticmethod
    def load_parsers_config():
        """Load statement parsers registry configuration"""
        return ConfigLoader.load_config('parsers.json')

    @staticmethod
    def load_rules_config():
        """Load the rule set configuration"""
        return ConfigLoader.load_config('rules.json')
