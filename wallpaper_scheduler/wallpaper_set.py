#!/usr/bin/env python3
"""Discovery of sequentially named wallpapers.

A wallpaper directory holds files such as ``lake-01.jpg``, ``lake-02.jpg``. The
number embedded in each name (its ordinal) fixes the display order. For solar
rotation the names also carry a ``DAY`` or ``NIGHT`` token, e.g.
``lake_DAY_01.jpg`` or ``night-03.png``.

Tag matching rule: the file stem is split into runs of letters and runs of
digits, and a tag matches when one of the letter runs equals ``DAY`` or
``NIGHT`` ignoring case. Substrings never match, so ``TODAY-01.jpg`` or
``daylight-02.jpg`` are untagged. A name carrying both tokens is rejected as
ambiguous.
"""
from dataclasses import dataclass
import hashlib
from pathlib import Path
import re
from typing import List, Optional, Tuple

from .constants import Phase, SUPPORTED_FORMATS
from .logger import setup_logger

logger = setup_logger('wallpaper_scheduler.wallpaper_set')

_TOKEN_RE = re.compile(r'[A-Za-z]+|\d+')


class DiscoveryError(Exception):
    """Raised when a wallpaper directory cannot be turned into a WallpaperSet."""

    def __init__(self, message, path=None):
        super().__init__(message)
        self.path = path


class DirectoryNotFoundError(DiscoveryError):
    """The wallpaper directory does not exist."""


class EmptyDirectoryError(DiscoveryError):
    """The directory holds no supported images."""


class NoOrdinalError(DiscoveryError):
    """A filename has no sequence number."""


class UntaggedFileError(DiscoveryError):
    """A filename carries neither the DAY nor the NIGHT token."""


class AmbiguousTagError(UntaggedFileError):
    """A filename carries both the DAY and the NIGHT token."""


class EmptyTagError(DiscoveryError):
    """One of the DAY/NIGHT groups has no images."""


@dataclass(frozen=True)
class ParsedName:
    ordinal: int
    tag: Optional[Phase] = None


@dataclass(frozen=True)
class Image:
    """A discovered wallpaper file."""
    path: Path
    ordinal: int
    tag: Optional[Phase] = None

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class WallpaperSet:
    """Wallpapers of one directory, ordered by ordinal.

    Tagged sets (built by discover_tagged) are guaranteed to have at least one
    DAY and one NIGHT image.
    """
    directory: Path
    images: Tuple[Image, ...]
    tagged: bool = False

    def __len__(self):
        return len(self.images)

    def __iter__(self):
        return iter(self.images)

    @property
    def day_images(self) -> Tuple[Image, ...]:
        return self.phase_images(Phase.DAY)

    @property
    def night_images(self) -> Tuple[Image, ...]:
        return self.phase_images(Phase.NIGHT)

    def phase_images(self, phase: Phase) -> Tuple[Image, ...]:
        """Images of one phase, in ordinal order."""
        return tuple(image for image in self.images if image.tag is phase)

    @property
    def filenames(self) -> List[str]:
        return [image.name for image in self.images]

    @property
    def fingerprint(self) -> str:
        """Hash of the sorted filename list, changes whenever files are added, removed or renamed."""
        digest = hashlib.sha1()
        for name in sorted(self.filenames):
            digest.update(name.encode('utf-8'))
            digest.update(b'\0')
        return digest.hexdigest()


def list_images(directory) -> List[Tuple[Path, str]]:
    """List the supported image files of a directory as (path, filename) pairs."""
    image_dir = Path(directory).expanduser()
    if not image_dir.is_dir():
        raise DirectoryNotFoundError(f"Wallpaper directory not found: {image_dir}", image_dir)

    images = []
    for entry in sorted(image_dir.iterdir()):
        if entry.name.startswith('.') or not entry.is_file():
            continue
        if entry.suffix.lower() in SUPPORTED_FORMATS:
            images.append((entry, entry.name))
    return images


def parse_filename(filename: str, tagged: bool = False) -> ParsedName:
    """Extract the ordinal and, for tagged names, the DAY/NIGHT phase from a filename.

    The ordinal is the last group of digits in the file stem.

    Raises:
        NoOrdinalError: The stem contains no digits.
        UntaggedFileError: tagged is set and no DAY/NIGHT token is present.
        AmbiguousTagError: tagged is set and both tokens are present.
    """
    stem = Path(filename).stem
    tokens = _TOKEN_RE.findall(stem)

    digits = [token for token in tokens if token.isdigit()]
    if not digits:
        raise NoOrdinalError(f"No sequence number in filename: {filename}", filename)
    ordinal = int(digits[-1])

    if not tagged:
        return ParsedName(ordinal)

    words = {token.upper() for token in tokens if token.isalpha()}
    phases = [phase for phase in Phase if phase.value in words]
    if not phases:
        raise UntaggedFileError(f"Filename is tagged neither DAY nor NIGHT: {filename}", filename)
    if len(phases) > 1:
        raise AmbiguousTagError(f"Filename is tagged both DAY and NIGHT: {filename}", filename)
    return ParsedName(ordinal, phases[0])


def _discover(directory, tagged):
    entries = list_images(directory)
    if not entries:
        raise EmptyDirectoryError(f"No supported images found in {directory}", Path(directory))

    images = []
    for path, filename in entries:
        try:
            parsed = parse_filename(filename, tagged=tagged)
        except DiscoveryError as e:
            e.path = path
            raise
        images.append(Image(path=path, ordinal=parsed.ordinal, tag=parsed.tag))

    images.sort(key=lambda image: (image.ordinal, image.name))
    return WallpaperSet(directory=Path(directory).expanduser().resolve(), images=tuple(images), tagged=tagged)


def discover(directory) -> WallpaperSet:
    """Build an untagged WallpaperSet from a directory."""
    wallpapers = _discover(directory, tagged=False)
    logger.info(f"Discovered {len(wallpapers)} wallpapers in {wallpapers.directory}")
    return wallpapers


def discover_tagged(directory) -> WallpaperSet:
    """Build a WallpaperSet whose images are split into DAY and NIGHT groups."""
    wallpapers = _discover(directory, tagged=True)
    for phase in Phase:
        if not wallpapers.phase_images(phase):
            raise EmptyTagError(f"No {phase.value} wallpapers found in {wallpapers.directory}",
                                wallpapers.directory)
    logger.info(f"Discovered {len(wallpapers.day_images)} day and "
                f"{len(wallpapers.night_images)} night wallpapers in {wallpapers.directory}")
    return wallpapers
