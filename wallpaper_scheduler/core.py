#!/usr/bin/env python3
import os
from pathlib import Path
import platform
import subprocess

from PIL import Image, UnidentifiedImageError

from .constants import ScalingMode
from .logger import setup_logger

logger = setup_logger('wallpaper_scheduler.core')

GNOME_COMPATIBLE = ('GNOME', 'UNITY', 'PANTHEON', 'BUDGIE')


class SetError(Exception):
    """Raised when the desktop wallpaper could not be changed."""


def get_scaling_mode(image_path):
    """Determine the appropriate scaling mode based on image aspect ratio.
    Returns FILL if the image cannot be read or is landscape."""
    try:
        with Image.open(image_path) as img:
            width, height = img.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        logger.debug(f"Could not read image size of {image_path}: {str(e)}")
        return ScalingMode.FILL
    # Portrait images use FIT to avoid cropping most of the picture
    if width < height:
        return ScalingMode.FIT
    return ScalingMode.FILL


def _run(cmd, **kwargs):
    """Run a wallpaper command, turning any failure into SetError."""
    try:
        return subprocess.run(cmd, check=True, capture_output=True, text=True, **kwargs)
    except FileNotFoundError as e:
        raise SetError(f"Command not found: {cmd[0]}") from e
    except subprocess.CalledProcessError as e:
        raise SetError(f"{cmd[0]} failed: {(e.stderr or '').strip() or e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise SetError(f"Could not run {cmd[0]}: {e}") from e


def set_windows_wallpaper(image_path, scaling_mode=ScalingMode.FILL):
    """Set wallpaper on Windows using PowerShell."""
    abs_path = str(Path(image_path).resolve())
    style = scaling_mode.get_windows_style()

    ps_command = f'''
    Set-ItemProperty -Path 'HKCU:\\Control Panel\\Desktop' -Name WallpaperStyle -Value {style}
    Set-ItemProperty -Path 'HKCU:\\Control Panel\\Desktop' -Name TileWallpaper -Value 0
    Add-Type @"
    using System;
    using System.Runtime.InteropServices;
    public class Wallpaper {{
        [DllImport("user32.dll", CharSet=CharSet.Auto)]
        public static extern int SystemParametersInfo(int uAction, int uParam, string lpvParam, int fuWinIni);
    }}
"@
    $SPI_SETDESKWALLPAPER = 0x0014
    $UpdateIniFile = 0x01
    $SendChangeEvent = 0x02
    $fWinIni = $UpdateIniFile -bor $SendChangeEvent
    [Wallpaper]::SystemParametersInfo($SPI_SETDESKWALLPAPER, 0, "{abs_path}", $fWinIni) | Out-Null
    '''
    _run(['powershell', '-NoProfile', '-Command', ps_command])


def set_macos_wallpaper(image_path, scaling_mode=ScalingMode.FILL):
    """Set wallpaper on macOS using osascript."""
    abs_path = str(Path(image_path).resolve())

    script = f'''
    tell application "Finder"
        set desktop picture to POSIX file "{abs_path}"
        set desktop picture options to {{scaling: {scaling_mode.get_macos_option()}}}
    end tell
    '''
    _run(['osascript', '-e', script])


def _kde_script(abs_path):
    return f'''
    var allDesktops = desktops();
    for (var i = 0; i < allDesktops.length; i++) {{
        var desktop = allDesktops[i];
        desktop.wallpaperPlugin = "org.kde.image";
        desktop.currentConfigGroup = ["Wallpaper", "org.kde.image", "General"];
        desktop.writeConfig("Image", "file://{abs_path}");
    }}
    '''


def _xfce_image_properties():
    """List the xfconf properties holding the desktop image of every XFCE monitor/workspace."""
    result = _run(['xfconf-query', '-c', 'xfce4-desktop', '-p', '/backdrop', '-l'])
    properties = [line.strip() for line in result.stdout.splitlines() if line.strip().endswith('last-image')]
    return properties or ['/backdrop/screen0/monitor0/workspace0/last-image']


def get_desktop_environment():
    """Get the current desktop environment name in upper case, e.g. 'GNOME' or 'X-CINNAMON'."""
    desktop = os.environ.get('XDG_CURRENT_DESKTOP') or os.environ.get('DESKTOP_SESSION') or ''
    return desktop.upper()


def set_linux_wallpaper(image_path, scaling_mode=ScalingMode.FILL):
    """Set wallpaper on Linux for the running desktop environment, falling back to feh."""
    abs_path = str(Path(image_path).resolve())
    uri = f'file://{abs_path}'
    desktop = get_desktop_environment()
    logger.debug(f"Detected desktop environment: {desktop or 'unknown'}")

    if any(name in desktop for name in GNOME_COMPATIBLE):
        _run(['gsettings', 'set', 'org.gnome.desktop.background', 'picture-options',
              scaling_mode.get_gnome_option()])
        _run(['gsettings', 'set', 'org.gnome.desktop.background', 'picture-uri', uri])
        try:
            _run(['gsettings', 'set', 'org.gnome.desktop.background', 'picture-uri-dark', uri])
        except SetError:
            pass  # key only exists on GNOME 42 and later
    elif 'CINNAMON' in desktop:
        _run(['dconf', 'write', '/org/cinnamon/desktop/background/picture-options',
              f"'{scaling_mode.get_gnome_option()}'"])
        _run(['dconf', 'write', '/org/cinnamon/desktop/background/picture-uri', f"'{uri}'"])
    elif 'MATE' in desktop:
        _run(['dconf', 'write', '/org/mate/desktop/background/picture-options',
              f"'{scaling_mode.get_gnome_option()}'"])
        _run(['dconf', 'write', '/org/mate/desktop/background/picture-filename', f"'{abs_path}'"])
    elif 'DEEPIN' in desktop:
        _run(['dconf', 'write', '/com/deepin/wrap/gnome/desktop/background/picture-uri', f"'{uri}'"])
    elif 'XFCE' in desktop:
        for prop in _xfce_image_properties():
            _run(['xfconf-query', '-c', 'xfce4-desktop', '-p', prop, '-s', abs_path])
            style_prop = prop.rsplit('/', 1)[0] + '/image-style'
            _run(['xfconf-query', '-c', 'xfce4-desktop', '-p', style_prop, '-s',
                  str(scaling_mode.get_xfce_style())])
    elif 'KDE' in desktop:
        _run(['qdbus', 'org.kde.plasmashell', '/PlasmaShell', 'org.kde.PlasmaShell.evaluateScript',
              _kde_script(abs_path)])
    else:
        _run(['feh', scaling_mode.get_feh_option(), abs_path])


def set_wallpaper(image_path, scaling_mode=None):
    """Set wallpaper based on the current operating system.

    Safe to call repeatedly with the same image.

    Args:
        image_path: Path to the image file
        scaling_mode: Optional ScalingMode enum value. If None, the mode will be
                     determined automatically based on the image aspect ratio.

    Raises:
        SetError: If the image is missing or unreadable, the OS is unsupported,
            or the platform command fails.
    """
    logger.info(f"Setting wallpaper: {image_path}")
    if not os.path.exists(image_path):
        raise SetError(f"Image file not found: {image_path}")

    if not os.access(image_path, os.R_OK):
        raise SetError(f"Cannot read image file: {image_path}")

    if scaling_mode is None:
        scaling_mode = get_scaling_mode(image_path)
        logger.debug(f"Auto-determined scaling mode: {scaling_mode}")

    system = platform.system().lower()

    if system == 'windows':
        set_windows_wallpaper(image_path, scaling_mode)
    elif system == 'darwin':
        set_macos_wallpaper(image_path, scaling_mode)
    elif system == 'linux':
        set_linux_wallpaper(image_path, scaling_mode)
    else:
        raise SetError(f"Unsupported operating system: {system}")

    logger.info(f"Successfully set wallpaper to: {image_path}")
