"""Configuration persistence manager for the raster editor.

This module handles loading and saving of editor configuration to/from JSON files.
The editor itself never reads files; hosts that want persisted settings load an
EditorConfig here and hand it to `Editor(config=...)`.
"""

import json
import logging
from dataclasses import asdict, fields
from pathlib import Path
from typing import Optional, Tuple

from .models import CONFIG_FILE, EditorConfig

logger = logging.getLogger(__name__)


class ConfigManager:
    """Handles loading and saving of editor configuration."""

    def __init__(self, config_path: Path = CONFIG_FILE):
        """Initialize config manager.

        Args:
            config_path: Path to configuration file (defaults to ~/.raster_editor_config.json)
        """
        self.config_path = Path(config_path)

    def load(self) -> EditorConfig:
        """Load configuration from file, returning defaults if not found.

        Returns:
            EditorConfig with loaded or default values
        """
        config = EditorConfig()

        try:
            if self.config_path.exists():
                with open(self.config_path, "r") as f:
                    data = json.load(f)
                # Update config with loaded values (fallback to defaults)
                for field in fields(EditorConfig):
                    setattr(config, field.name, data.get(field.name, getattr(config, field.name)))
                logger.info("Loaded configuration from %s", self.config_path)
        except Exception as e:
            logger.warning("Could not load config file %s: %s", self.config_path, e)
            config = EditorConfig()

        return config

    def save(self, config: EditorConfig) -> Tuple[bool, Optional[str]]:
        """Save configuration to file.

        Args:
            config: EditorConfig to save

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        try:
            with open(self.config_path, "w") as f:
                json.dump(asdict(config), f, indent=2)
            return True, None
        except Exception as e:
            return False, str(e)
