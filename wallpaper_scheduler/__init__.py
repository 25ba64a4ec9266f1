from .core import set_wallpaper, SetError
from .config import Config
from .constants import Phase, RotationMode, ScalingMode
from .rotator import Rotator, RotationState, build_rotator, run_from_config
from .schedule import ScheduleConfig, ConfigError
from .solar import SolarClock, SolarError, compute
from .wallpaper_set import WallpaperSet, DiscoveryError, discover, discover_tagged

__all__ = ['set_wallpaper', 'SetError', 'Config', 'Phase', 'RotationMode', 'ScalingMode',
           'Rotator', 'RotationState', 'build_rotator', 'run_from_config', 'ScheduleConfig',
           'ConfigError', 'SolarClock', 'SolarError', 'compute', 'WallpaperSet', 'DiscoveryError',
           'discover', 'discover_tagged']
