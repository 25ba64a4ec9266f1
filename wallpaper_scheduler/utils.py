#!/usr/bin/env python3
import os
from pathlib import Path
import shutil
import sys

from .constants import APP_NAME
from .logger import setup_logger

logger = setup_logger('wallpaper_scheduler.utils')


def get_config_dir():
    """Get the per-user configuration directory for the current OS.

    Returns:
        Path: Directory holding config.json and schedule.json. Common locations:
        - Windows: %APPDATA%\\wallpaper-scheduler
        - macOS: ~/Library/Application Support/wallpaper-scheduler
        - Linux: $XDG_CONFIG_HOME/wallpaper-scheduler or ~/.config/wallpaper-scheduler
    """
    system = sys.platform.lower()

    if system.startswith('win'):
        base = Path(os.environ.get('APPDATA') or os.path.expandvars('%USERPROFILE%'))
    elif system.startswith('darwin'):
        base = Path.home() / 'Library' / 'Application Support'
    else:
        xdg_config = os.environ.get('XDG_CONFIG_HOME')
        base = Path(xdg_config) if xdg_config else Path.home() / '.config'
    return base / APP_NAME


def check_linux_dependencies():
    """Log a warning for wallpaper tools that are not installed.

    Returns:
        list: Names of the missing tools.
    """
    missing_tools = [tool for tool in ('gsettings', 'dconf', 'feh') if shutil.which(tool) is None]

    if missing_tools:
        logger.warning(f"The following tools are not installed: {', '.join(missing_tools)}. "
                       "You may need them for wallpapers to be set on your desktop.")
    return missing_tools


def format_duration(seconds) -> str:
    """Format a number of seconds as a short string like '2h 05m' or '40s'."""
    seconds = int(round(seconds))
    if seconds < 60:
        return f"{seconds}s"
    hours, remainder = divmod(seconds, 3600)
    minutes = remainder // 60
    if hours == 0:
        return f"{minutes}m"
    return f"{hours}h {minutes:02d}m"
