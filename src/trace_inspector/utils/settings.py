"""
Settings management for trace-inspector
"""

import json
import os
from dataclasses import dataclass, asdict
from typing import Optional

from .logger import warn

CONFIG_DIR = os.path.expanduser("~/.config/trace-inspector")
CONFIG_FILE = os.path.join(CONFIG_DIR, "settings.json")


@dataclass
class Settings:
    """Application settings"""

    # Upper bound on observations accepted per request.
    # The builders themselves never truncate; callers reject larger traces.
    max_observations: int = 50_000

    # Severity threshold applied to tree requests that don't send minLevel
    # (None keeps every level)
    default_min_level: Optional[str] = None

    def save(self):
        """Save settings to config file"""
        os.makedirs(CONFIG_DIR, exist_ok=True)
        with open(CONFIG_FILE, "w") as f:
            json.dump(asdict(self), f, indent=2)

    @classmethod
    def load(cls) -> "Settings":
        """Load settings from config file, or return defaults"""
        if not os.path.exists(CONFIG_FILE):
            return cls()

        try:
            with open(CONFIG_FILE, "r") as f:
                data = json.load(f)

            # Filter to only known fields (ignore obsolete settings)
            valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
            filtered_data = {k: v for k, v in data.items() if k in valid_fields}

            return cls(**filtered_data)
        except (OSError, ValueError, TypeError) as e:
            warn(f"[Settings] Ignoring unreadable {CONFIG_FILE}: {e}")
            return cls()


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def save_settings():
    """Save the global settings"""
    if _settings is not None:
        _settings.save()
