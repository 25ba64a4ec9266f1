#!/usr/bin/env python3
"""Sunrise and sunset times from latitude and longitude.

Uses the NOAA solar calculator equations (from Jean Meeus, "Astronomical
Algorithms"). Times are measured in Julian days and Julian centuries since
J2000.0, and event offsets in minutes from midnight UTC.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
import math
from typing import Dict, Optional, Union

from .constants import Phase
from .logger import setup_logger

logger = setup_logger('wallpaper_scheduler.solar')

# Apparent elevation of the sun's centre at sunrise/sunset, refraction included
SUNRISE_ELEVATION = -0.833

UNIX_EPOCH_JD = 2440587.5
J2000_JD = 2451545.0


class SolarError(Exception):
    """Raised when sunrise and sunset cannot be computed."""


class InvalidCoordinateError(SolarError):
    """Latitude or longitude out of range."""


class NoTransitionError(SolarError):
    """The sun does not rise or set on the given day (polar day or night).

    Attributes:
        phase: Phase.DAY if the sun stays up all day, Phase.NIGHT if it stays down.
    """

    def __init__(self, message, phase: Phase):
        super().__init__(message)
        self.phase = phase


@dataclass(frozen=True)
class SolarTimes:
    day: date
    sunrise: datetime
    sunset: datetime

    @property
    def day_length(self) -> timedelta:
        return self.sunset - self.sunrise


def validate_coordinates(lat: float, lon: float) -> None:
    """Raise InvalidCoordinateError unless -90 <= lat <= 90 and -180 <= lon <= 180."""
    if not isinstance(lat, (int, float)) or math.isnan(lat) or not -90.0 <= lat <= 90.0:
        raise InvalidCoordinateError(f"Latitude must be between -90 and 90 degrees, got {lat}")
    if not isinstance(lon, (int, float)) or math.isnan(lon) or not -180.0 <= lon <= 180.0:
        raise InvalidCoordinateError(f"Longitude must be between -180 and 180 degrees, got {lon}")


def _jcent_from_jd(jd):
    return (jd - J2000_JD) / 36525.0


def _geom_mean_lon(t):
    """Geometric mean longitude of the sun, radians."""
    return math.radians((280.46646 + t * (36000.76983 + t * 0.0003032)) % 360.0)


def _geom_mean_anomaly(t):
    """Geometric mean anomaly of the sun, radians."""
    return math.radians(357.52911 + t * (35999.05029 - t * 0.0001537))


def _orbit_eccentricity(t):
    return 0.016708634 - t * (0.000042037 + t * 0.0000001267)


def _equation_of_center(t):
    m = _geom_mean_anomaly(t)
    center = (math.sin(m) * (1.914602 - t * (0.004817 + 0.000014 * t))
              + math.sin(2 * m) * (0.019993 - 0.000101 * t)
              + math.sin(3 * m) * 0.000289)
    return math.radians(center)


def _apparent_lon(t):
    true_lon = math.degrees(_geom_mean_lon(t) + _equation_of_center(t))
    omega = 125.04 - 1934.136 * t
    return math.radians(true_lon - 0.00569 - 0.00478 * math.sin(math.radians(omega)))


def _obliquity_corrected(t):
    seconds = 21.448 - t * (46.815 + t * (0.00059 - t * 0.001813))
    mean_obliquity = 23.0 + (26.0 + seconds / 60.0) / 60.0
    omega = 125.04 - 1934.136 * t
    return math.radians(mean_obliquity + 0.00256 * math.cos(math.radians(omega)))


def solar_declination(t) -> float:
    """Declination of the sun in radians, t in Julian centuries since J2000.0."""
    return math.asin(math.sin(_obliquity_corrected(t)) * math.sin(_apparent_lon(t)))


def equation_of_time(t) -> float:
    """Difference between true and mean solar time, in minutes."""
    epsilon = _obliquity_corrected(t)
    l0 = _geom_mean_lon(t)
    e = _orbit_eccentricity(t)
    m = _geom_mean_anomaly(t)
    y = math.tan(epsilon / 2.0) ** 2

    result = (y * math.sin(2 * l0)
              - 2 * e * math.sin(m)
              + 4 * e * y * math.sin(m) * math.cos(2 * l0)
              - 0.5 * y * y * math.sin(4 * l0)
              - 1.25 * e * e * math.sin(2 * m))
    return 4.0 * math.degrees(result)


def _hour_angle(lat, decl, day):
    """Hour angle of sunrise in degrees.

    Raises:
        NoTransitionError: If the sun never crosses the horizon.
    """
    phi = math.radians(lat)
    cos_h = ((math.sin(math.radians(SUNRISE_ELEVATION)) - math.sin(phi) * math.sin(decl))
             / (math.cos(phi) * math.cos(decl)))
    if cos_h > 1.0:
        raise NoTransitionError(f"The sun does not rise at latitude {lat} on {day}", Phase.NIGHT)
    if cos_h < -1.0:
        raise NoTransitionError(f"The sun does not set at latitude {lat} on {day}", Phase.DAY)
    return math.degrees(math.acos(cos_h))


def _solar_noon(jd_midnight, lon):
    """Apparent solar noon in minutes after midnight UTC."""
    # First pass estimates noon from the longitude alone
    noon = 720.0 - 4.0 * lon - equation_of_time(_jcent_from_jd(jd_midnight + 0.5 - lon / 360.0))
    return 720.0 - 4.0 * lon - equation_of_time(_jcent_from_jd(jd_midnight + noon / 1440.0))


def _event_offset(jd_midnight, noon, lat, lon, rising, day):
    """Sunrise (rising=True) or sunset in minutes after midnight UTC."""
    sign = 1.0 if rising else -1.0
    offset = noon
    # First pass at solar noon, second at the estimated event
    for _ in range(2):
        t = _jcent_from_jd(jd_midnight + offset / 1440.0)
        hour_angle = _hour_angle(lat, solar_declination(t), day)
        offset = 720.0 - 4.0 * (lon + sign * hour_angle) - equation_of_time(t)
    return offset


def compute(day: Union[date, datetime], lat: float, lon: float, tz: Optional[timezone] = None) -> SolarTimes:
    """Compute sunrise and sunset for a calendar day.

    Args:
        day: The date (a datetime is truncated to its date)
        lat: Latitude in degrees, north positive
        lon: Longitude in degrees, east positive
        tz: Time zone of the returned times. None returns naive local time.

    Returns:
        SolarTimes with both events rounded to the second.

    Raises:
        InvalidCoordinateError: If lat or lon is out of range.
        NoTransitionError: If the sun does not rise or does not set that day.
    """
    validate_coordinates(lat, lon)
    if isinstance(day, datetime):
        day = day.date()

    midnight_epoch = datetime(day.year, day.month, day.day, tzinfo=timezone.utc).timestamp()
    jd_midnight = midnight_epoch / 86400.0 + UNIX_EPOCH_JD

    noon = _solar_noon(jd_midnight, lon)
    sunrise = _event_offset(jd_midnight, noon, lat, lon, True, day)
    sunset = _event_offset(jd_midnight, noon, lat, lon, False, day)

    def to_local(offset_minutes):
        return datetime.fromtimestamp(round(midnight_epoch + offset_minutes * 60.0), tz)

    return SolarTimes(day=day, sunrise=to_local(sunrise), sunset=to_local(sunset))


class SolarClock:
    """Sunrise and sunset for a fixed location, computed once per calendar day."""

    def __init__(self, lat: float, lon: float, tz: Optional[timezone] = None):
        validate_coordinates(lat, lon)
        self.lat = lat
        self.lon = lon
        self.tz = tz
        self._cache: Dict[date, Union[SolarTimes, NoTransitionError]] = {}

    def times_for(self, day: date) -> SolarTimes:
        """Get the solar times of a day.

        Raises:
            NoTransitionError: On polar days, every time the day is asked for.
        """
        if day not in self._cache:
            try:
                self._cache[day] = compute(day, self.lat, self.lon, self.tz)
                logger.debug(f"Solar times for {day}: sunrise {self._cache[day].sunrise}, "
                             f"sunset {self._cache[day].sunset}")
            except NoTransitionError as e:
                self._cache[day] = e
            # Only a few days around today are ever asked for
            for old_day in [d for d in self._cache if (day - d).days > 3]:
                del self._cache[old_day]

        result = self._cache[day]
        if isinstance(result, NoTransitionError):
            raise NoTransitionError(str(result), result.phase)
        return result
