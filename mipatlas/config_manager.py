"""Configuration persistence manager for the mipmap atlas generator.

This module handles loading and saving of generator configuration to/from JSON files.
"""

import json
from dataclasses import asdict
from pathlib import Path
from typing import Optional, Tuple

from mipatlas.models import CONFIG_FILE, FilterMode, MipmapConfig


class ConfigManager:
    """Handles loading and saving of generator configuration."""

    def __init__(self, config_path: Path = CONFIG_FILE):
        """Initialize config manager.

        Args:
            config_path: Path to configuration file (defaults to ~/.mipatlas_config.json)
        """
        self.config_path = Path(config_path)

    def load(self) -> MipmapConfig:
        """Load configuration from file, returning defaults if not found.

        Returns:
            MipmapConfig with loaded or default values
        """
        config = MipmapConfig()

        try:
            if self.config_path.exists():
                with open(self.config_path, "r") as f:
                    data = json.load(f)
                    # Update config with loaded values (fallback to defaults)
                    config.default_input = data.get("default_input", config.default_input)
                    config.output_suffix = data.get("output_suffix", config.output_suffix)
                    config.default_filter = FilterMode(
                        data.get("default_filter", config.default_filter.value)
                    )
                    config.device = data.get("device", config.device)
                    config.max_image_dimension = int(
                        data.get("max_image_dimension", config.max_image_dimension)
                    )
                    config.row_alignment = int(data.get("row_alignment", config.row_alignment))
                    config.sync_after_build = bool(
                        data.get("sync_after_build", config.sync_after_build)
                    )
                print(f"✓ Loaded configuration from {self.config_path}")
        except (OSError, ValueError, TypeError, AttributeError) as e:
            print(f"Warning: Could not load config file: {e}")
            config = MipmapConfig()

        return config

    def save(self, config: MipmapConfig) -> Tuple[bool, Optional[str]]:
        """Save configuration to file.

        Args:
            config: MipmapConfig to save

        Returns:
            Tuple of (success: bool, error_message: Optional[str])
        """
        data = asdict(config)
        data["default_filter"] = config.default_filter.value
        try:
            with open(self.config_path, "w") as f:
                json.dump(data, f, indent=2)
            return True, None
        except OSError as e:
            return False, str(e)
