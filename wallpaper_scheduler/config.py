#!/usr/bin/env python3
import json
from pathlib import Path

from .constants import DEFAULT_POLL_SECONDS, RotationMode
from .logger import setup_logger
from .solar import validate_coordinates
from .utils import get_config_dir
from .wallpaper_set import discover, discover_tagged

logger = setup_logger('wallpaper_scheduler.config')


class Config:
    """Configuration manager for the wallpaper scheduler."""

    def __init__(self, config_dir=None):
        self.config_dir = Path(config_dir) if config_dir else get_config_dir()
        self.config_file = self.config_dir / 'config.json'
        self.default_config = {
            'directory': None,
            'mode': RotationMode.INTERVAL.value,
            'latitude': None,
            'longitude': None,
            'scaling_mode': 'auto',
            'poll_seconds': DEFAULT_POLL_SECONDS,
            'log_file': None
        }
        self.config = self.load_config()

    @property
    def schedule_file(self) -> Path:
        """Path of the persisted interval schedule."""
        return self.config_dir / 'schedule.json'

    @property
    def mode(self) -> RotationMode:
        return RotationMode(self.config.get('mode', RotationMode.INTERVAL.value))

    @property
    def is_configured(self) -> bool:
        return bool(self.config.get('directory'))

    def load_config(self):
        """Load configuration from file."""
        config = self.default_config.copy()

        if self.config_file.exists():
            try:
                with open(self.config_file, 'r') as f:
                    saved_config = json.load(f)
                    config.update(saved_config)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Could not load config file: {e}")

        return config

    def save_config(self):
        """Save configuration to file."""
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, 'w') as f:
                json.dump(self.config, f, indent=2)
        except OSError as e:
            logger.warning(f"Could not save config file: {e}")

    def get(self, key, default=None):
        """Get a configuration value."""
        return self.config.get(key, default)

    def set(self, key, value):
        """Set a configuration value and save to file."""
        self.config[key] = value
        self.save_config()

    def update(self, **kwargs):
        """Update multiple configuration values and save to file."""
        self.config.update(kwargs)
        self.save_config()

    def configure_interval(self, directory):
        """Switch to even-interval rotation over a directory.

        The directory is discovered first so a bad directory is never saved.
        """
        wallpapers = discover(directory)
        self.update(directory=str(wallpapers.directory), mode=RotationMode.INTERVAL.value)
        logger.info(f"Configured interval rotation for {wallpapers.directory}")
        return wallpapers

    def configure_solar(self, directory, latitude, longitude):
        """Switch to sunrise/sunset rotation over a directory of DAY/NIGHT wallpapers."""
        validate_coordinates(latitude, longitude)
        wallpapers = discover_tagged(directory)
        self.update(directory=str(wallpapers.directory), mode=RotationMode.SOLAR.value,
                    latitude=latitude, longitude=longitude)
        logger.info(f"Configured solar rotation for {wallpapers.directory} at lat {latitude}, lon {longitude}")
        return wallpapers
