"""
Location resolution for citizen reports

Chooses between coordinates embedded in the photo and the device's own
position fix, then merges a reverse-geocoded address into the result.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol, runtime_checkable

from civiceye.core.exceptions import LocationError
from civiceye.core.geo_utils import is_valid_coordinate
from civiceye.crowdsource.models import LocationData
from civiceye.crowdsource.photo_metadata import extract_gps_coordinates

logger = logging.getLogger(__name__)


class LocationStatus(str, Enum):
    """Where the resolver's current location came from."""
    IDLE = "idle"
    LOCATING = "locating"
    FOUND = "found"          # device fix
    EXTRACTED = "extracted"  # photo metadata
    ERROR = "error"


@dataclass(frozen=True)
class DevicePosition:
    """Position fix reported by the device."""
    latitude: float
    longitude: float
    accuracy: Optional[float] = None


@runtime_checkable
class DeviceLocator(Protocol):
    """Source of device position fixes."""

    async def locate(self) -> DevicePosition:
        """Return the current position or raise LocationError."""
        ...


class StaticDeviceLocator:
    """
    Locator over a fix supplied by the client.

    A browser shares its geolocation with the request; no fix means the
    user denied or the device could not provide one.
    """

    def __init__(self, position: Optional[DevicePosition] = None):
        self.position = position

    async def locate(self) -> DevicePosition:
        if self.position is None:
            raise LocationError("Device location unavailable or permission denied")
        if not is_valid_coordinate(self.position.latitude, self.position.longitude):
            raise LocationError(
                f"Device reported invalid coordinates: "
                f"({self.position.latitude}, {self.position.longitude})"
            )
        return self.position


class LocationResolver:
    """
    Resolves the location of one report draft.

    Photo metadata wins over the device: once a location was extracted from
    the photo, device fixes are ignored until the next upload cycle. Every
    reset starts a new cycle, and results that belong to an older cycle
    are dropped.
    """

    def __init__(
        self,
        locator: DeviceLocator,
        timeout_seconds: float = 10.0,
        exif_accuracy_m: float = 5.0
    ):
        """
        Initialize resolver.

        Args:
            locator: Device position source
            timeout_seconds: Limit for a single device lookup
            exif_accuracy_m: Accuracy recorded for photo-derived locations
        """
        self.locator = locator
        self.timeout_seconds = timeout_seconds
        self.exif_accuracy_m = exif_accuracy_m

        self.status = LocationStatus.IDLE
        self.location: Optional[LocationData] = None
        self.error: Optional[str] = None

        self._cycle = 0
        self._device_task: Optional[asyncio.Task] = None

    @property
    def cycle(self) -> int:
        """Current upload cycle token."""
        return self._cycle

    @property
    def has_fix(self) -> bool:
        return self.status in (LocationStatus.FOUND, LocationStatus.EXTRACTED)

    async def request_device_location(self) -> Optional[LocationData]:
        """
        Ask the device for a position fix.

        Returns the resolver's location afterwards. Does nothing while a
        photo-derived location is held; joins a lookup that is already
        running instead of issuing a second one.
        """
        if self.status == LocationStatus.EXTRACTED:
            logger.debug("Photo location held; skipping device lookup")
            return self.location

        if self._device_task is None or self._device_task.done():
            self.status = LocationStatus.LOCATING
            self.error = None
            self._device_task = asyncio.ensure_future(self._locate(self._cycle))

        await asyncio.shield(self._device_task)
        return self.location

    async def retry(self) -> Optional[LocationData]:
        """Retry the device lookup after an error."""
        if self.status != LocationStatus.ERROR:
            return self.location
        logger.info("Retrying device location")
        return await self.request_device_location()

    def apply_image_metadata(self, image_bytes: bytes) -> bool:
        """
        Use the photo's geotag as the location, if it has one.

        Returns:
            True if a location was extracted
        """
        coordinates = extract_gps_coordinates(image_bytes)
        if coordinates is None:
            return False

        latitude, longitude = coordinates
        self.location = LocationData(
            latitude=latitude,
            longitude=longitude,
            accuracy=self.exif_accuracy_m,
        )
        self.status = LocationStatus.EXTRACTED
        self.error = None

        logger.info(f"Location extracted from photo: ({latitude:.6f}, {longitude:.6f})")
        return True

    async def handle_upload(self, image_bytes: bytes) -> LocationStatus:
        """
        Resolve the location for a newly uploaded photo.

        Photo metadata first; without it, fall back to the device unless a
        device fix is already held.
        """
        if self.apply_image_metadata(image_bytes):
            return self.status

        if self.status != LocationStatus.FOUND:
            await self.request_device_location()

        return self.status

    def enrich(
        self,
        address: Optional[str],
        maps_url: Optional[str],
        cycle: Optional[int] = None
    ) -> Optional[LocationData]:
        """
        Merge a reverse-geocoded address into the current location.

        Coordinates are left untouched. Ignored when no location is held
        or when the lookup belongs to an older cycle.
        """
        if cycle is not None and cycle != self._cycle:
            logger.debug(f"Discarding address from stale cycle {cycle}")
            return self.location

        if self.location is None:
            return None

        self.location = self.location.with_address(address, maps_url)
        return self.location

    def reset(self) -> None:
        """Start a new upload cycle."""
        self._cycle += 1
        self.status = LocationStatus.IDLE
        self.location = None
        self.error = None
        self._device_task = None

    async def _locate(self, cycle: int) -> None:
        try:
            position = await asyncio.wait_for(
                self.locator.locate(),
                timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            self._fail(cycle, f"Device location timed out after {self.timeout_seconds}s")
            return
        except LocationError as e:
            self._fail(cycle, str(e))
            return

        if self._superseded(cycle):
            logger.debug("Discarding device fix: photo location or newer cycle wins")
            return

        self.location = LocationData(
            latitude=position.latitude,
            longitude=position.longitude,
            accuracy=position.accuracy,
        )
        self.status = LocationStatus.FOUND

        logger.info(
            f"Device location found: ({position.latitude:.6f}, {position.longitude:.6f}) "
            f"accuracy={position.accuracy}"
        )

    def _fail(self, cycle: int, message: str) -> None:
        if self._superseded(cycle):
            return
        self.status = LocationStatus.ERROR
        self.error = message
        logger.warning(f"Device location failed: {message}")

    def _superseded(self, cycle: int) -> bool:
        return cycle != self._cycle or self.status == LocationStatus.EXTRACTED
