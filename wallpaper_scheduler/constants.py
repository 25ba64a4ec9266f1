from enum import Enum, auto

MINUTES_PER_DAY = 24 * 60

SUPPORTED_FORMATS = {'.jpg', '.jpeg', '.png', '.bmp', '.webp'}

APP_NAME = 'wallpaper-scheduler'

PRESETS = {
    'lake': 'https://bucket-more.s3.ap-south-1.amazonaws.com/uploads/lake.tar.gz',
}

# Upper bound for a single sleep, so a suspended machine resyncs soon after resume
DEFAULT_POLL_SECONDS = 60


class ScalingMode(Enum):
    """Enum for wallpaper scaling modes."""
    FILL = auto()    # Fill the screen, may crop
    FIT = auto()     # Fit the screen, may have letterboxing
    STRETCH = auto() # Stretch to fill, may distort

    def get_macos_option(self) -> str:
        """Get the corresponding macOS desktop picture scaling option."""
        return {
            ScalingMode.FILL: 'fill',
            ScalingMode.FIT: 'fit',
            ScalingMode.STRETCH: 'stretch'
        }[self]

    def get_gnome_option(self) -> str:
        """Get the corresponding GNOME/Cinnamon/MATE picture-options value."""
        return {
            ScalingMode.FILL: 'zoom',
            ScalingMode.FIT: 'scaled',
            ScalingMode.STRETCH: 'stretched'
        }[self]

    def get_xfce_style(self) -> int:
        """Get the corresponding xfce4-desktop image-style.

        XFCE styles: 1 = Centered, 2 = Tiled, 3 = Stretched, 4 = Scaled, 5 = Zoomed
        """
        return {
            ScalingMode.FILL: 5,
            ScalingMode.FIT: 4,
            ScalingMode.STRETCH: 3
        }[self]

    def get_feh_option(self) -> str:
        """Get the corresponding feh scaling option."""
        return {
            ScalingMode.FILL: '--bg-fill',
            ScalingMode.FIT: '--bg-max',
            ScalingMode.STRETCH: '--bg-scale'
        }[self]

    def get_windows_style(self) -> int:
        """Get the corresponding Windows wallpaper style.

        Windows styles:
        0 = Center
        1 = Stretch
        2 = Tile
        3 = Fit
        4 = Fill
        5 = Span
        """
        return {
            ScalingMode.FILL: 4,
            ScalingMode.FIT: 3,
            ScalingMode.STRETCH: 1
        }[self]

    @classmethod
    def from_string(cls, mode_str: str) -> 'ScalingMode':
        """Convert string to ScalingMode enum value.

        Returns None for 'auto', meaning the mode is picked per image.
        """
        mode_map = {
            'fill': cls.FILL,
            'fit': cls.FIT,
            'stretch': cls.STRETCH,
            'auto': None
        }
        mode_str = mode_str.lower()
        if mode_str not in mode_map:
            raise ValueError(f"Invalid scaling mode: {mode_str}. Must be one of: {', '.join(mode_map.keys())}")
        return mode_map[mode_str]


class Phase(Enum):
    """Half of the solar cycle a tagged wallpaper belongs to."""
    DAY = 'DAY'
    NIGHT = 'NIGHT'


class RotationMode(Enum):
    """How the day is divided between wallpapers."""
    INTERVAL = 'interval'  # equal slices of 24 hours
    SOLAR = 'solar'        # day images between sunrise and sunset, night images otherwise
