#!/usr/bin/env python3
import os
from pathlib import Path
import tarfile

import requests

from .constants import PRESETS
from .logger import setup_logger

logger = setup_logger('wallpaper_scheduler.presets')

CHUNK_SIZE = 64 * 1024


class PresetError(Exception):
    """Raised when a preset archive cannot be downloaded or unpacked."""


def download_archive(url, archive_path, timeout=30):
    """Download a file to archive_path, streaming it to disk."""
    logger.info(f"Downloading preset archive from {url}")
    try:
        with requests.get(url, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            with open(archive_path, 'wb') as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
    except requests.RequestException as e:
        raise PresetError(f"Could not download preset from {url}: {e}") from e
    except OSError as e:
        raise PresetError(f"Could not write preset archive {archive_path}: {e}") from e
    logger.info(f"Downloaded {archive_path}")


def unpack_archive(archive_path, dest_dir):
    """Extract a .tar.gz archive into dest_dir.

    Raises:
        PresetError: If the archive is unreadable or a member would land
            outside dest_dir.
    """
    dest = Path(dest_dir).resolve()
    logger.info(f"Unpacking {archive_path} into {dest}")
    try:
        with tarfile.open(archive_path, 'r:gz') as archive:
            members = archive.getmembers()
            for member in members:
                target = (dest / member.name).resolve()
                if os.path.commonpath([str(dest), str(target)]) != str(dest):
                    raise PresetError(f"Archive member escapes the destination: {member.name}")
                if member.issym() or member.islnk():
                    raise PresetError(f"Archive member is a link: {member.name}")
            if hasattr(tarfile, 'data_filter'):
                archive.extractall(dest, members=members, filter='data')
            else:
                archive.extractall(dest, members=members)
    except (tarfile.TarError, OSError) as e:
        raise PresetError(f"Could not unpack preset archive {archive_path}: {e}") from e


def fetch_preset(dest_dir, name='lake', url=None):
    """Download a preset wallpaper archive and unpack it.

    Args:
        dest_dir: Directory the preset folder is extracted into
        name: Name of the preset, also the folder the archive contains
        url: Location of the .tar.gz archive, defaults to the known URL of the preset

    Returns:
        Path: The extracted preset directory.
    """
    if url is None:
        if name not in PRESETS:
            raise PresetError(f"Unknown preset '{name}'. Available presets: {', '.join(sorted(PRESETS))}")
        url = PRESETS[name]

    dest = Path(dest_dir)
    dest.mkdir(parents=True, exist_ok=True)
    archive_path = dest / f"{name}.tar.gz"

    try:
        download_archive(url, archive_path)
        unpack_archive(archive_path, dest)
    finally:
        if archive_path.exists():
            archive_path.unlink()

    preset_dir = dest / name
    if not preset_dir.is_dir():
        raise PresetError(f"Preset archive did not contain a '{name}' folder")
    logger.info(f"Preset '{name}' ready in {preset_dir}")
    return preset_dir
