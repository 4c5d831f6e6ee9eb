"""
Tests for location resolution
"""
import asyncio
import pytest

import sys
sys.path.insert(0, '.')

from civiceye.crowdsource.location_resolver import (
    DevicePosition,
    LocationResolver,
    LocationStatus,
    StaticDeviceLocator,
)


class GatedLocator:
    """Device locator that answers only once released."""

    def __init__(self, position, release=None):
        self.position = position
        self.release = release
        self.calls = 0

    async def locate(self):
        self.calls += 1
        await self.release.wait()
        return self.position


class HangingLocator:
    """Device locator that never answers."""

    async def locate(self):
        await asyncio.sleep(3600)


class TestStaticDeviceLocator:
    """Test suite for client-supplied fixes."""

    def test_no_fix_is_an_error(self):
        resolver = LocationResolver(StaticDeviceLocator(None))

        asyncio.run(resolver.request_device_location())

        assert resolver.status == LocationStatus.ERROR
        assert resolver.location is None
        assert "unavailable" in resolver.error

    def test_invalid_fix_is_an_error(self):
        resolver = LocationResolver(StaticDeviceLocator(DevicePosition(120.0, 10.0)))

        asyncio.run(resolver.request_device_location())

        assert resolver.status == LocationStatus.ERROR

    def test_valid_fix_found(self):
        resolver = LocationResolver(StaticDeviceLocator(DevicePosition(48.8584, 2.2945, 12.0)))

        location = asyncio.run(resolver.request_device_location())

        assert resolver.status == LocationStatus.FOUND
        assert location.latitude == 48.8584
        assert location.accuracy == 12.0
        assert resolver.has_fix


class TestLocationResolver:
    """Test suite for the location resolver."""

    def test_photo_location_wins_over_late_device_fix(self, jpeg_with_gps):
        """Test a device fix arriving after extraction does not overwrite it."""
        async def scenario():
            locator = GatedLocator(DevicePosition(1.0, 2.0, 30.0), asyncio.Event())
            resolver = LocationResolver(locator)

            pending = asyncio.ensure_future(resolver.request_device_location())
            await asyncio.sleep(0)
            assert resolver.status == LocationStatus.LOCATING

            assert resolver.apply_image_metadata(jpeg_with_gps)
            locator.release.set()
            await pending
            return resolver

        resolver = asyncio.run(scenario())

        assert resolver.status == LocationStatus.EXTRACTED
        assert resolver.location.latitude == pytest.approx(40.446111, abs=1e-5)
        assert resolver.location.longitude == pytest.approx(-79.982222, abs=1e-5)
        assert resolver.location.accuracy == 5.0

    def test_device_request_skipped_while_extracted(self, jpeg_with_gps):
        locator = GatedLocator(DevicePosition(1.0, 2.0))
        resolver = LocationResolver(locator)
        resolver.apply_image_metadata(jpeg_with_gps)

        asyncio.run(resolver.request_device_location())

        assert locator.calls == 0
        assert resolver.status == LocationStatus.EXTRACTED

    def test_timeout_sets_error(self):
        resolver = LocationResolver(HangingLocator(), timeout_seconds=0.01)

        asyncio.run(resolver.request_device_location())

        assert resolver.status == LocationStatus.ERROR
        assert "timed out" in resolver.error

    def test_retry_after_error(self):
        """Test retry re-issues the lookup from the error state."""
        locator = StaticDeviceLocator(None)
        resolver = LocationResolver(locator)

        async def scenario():
            await resolver.request_device_location()
            assert resolver.status == LocationStatus.ERROR
            locator.position = DevicePosition(40.0, -80.0, 20.0)
            return await resolver.retry()

        location = asyncio.run(scenario())

        assert resolver.status == LocationStatus.FOUND
        assert resolver.error is None
        assert (location.latitude, location.longitude) == (40.0, -80.0)

    def test_retry_ignored_without_error(self):
        locator = GatedLocator(DevicePosition(40.0, -80.0))
        resolver = LocationResolver(locator)

        location = asyncio.run(resolver.retry())

        assert location is None
        assert locator.calls == 0
        assert resolver.status == LocationStatus.IDLE

    def test_concurrent_requests_share_one_lookup(self):
        async def scenario():
            locator = GatedLocator(DevicePosition(40.0, -80.0), asyncio.Event())
            resolver = LocationResolver(locator)

            first = asyncio.ensure_future(resolver.request_device_location())
            second = asyncio.ensure_future(resolver.request_device_location())
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            locator.release.set()
            await asyncio.gather(first, second)
            return locator, resolver

        locator, resolver = asyncio.run(scenario())

        assert locator.calls == 1
        assert resolver.status == LocationStatus.FOUND

    def test_fix_from_previous_cycle_discarded(self):
        """Test a fix arriving after reset is dropped."""
        async def scenario():
            locator = GatedLocator(DevicePosition(40.0, -80.0), asyncio.Event())
            resolver = LocationResolver(locator)

            pending = asyncio.ensure_future(resolver.request_device_location())
            await asyncio.sleep(0)
            task = resolver._device_task
            resolver.reset()
            locator.release.set()
            await pending
            await task
            return resolver

        resolver = asyncio.run(scenario())

        assert resolver.status == LocationStatus.IDLE
        assert resolver.location is None
        assert resolver.cycle == 1

    def test_upload_without_geotag_keeps_device_fix(self, jpeg_without_gps):
        locator = GatedLocator(DevicePosition(40.0, -80.0))
        resolver = LocationResolver(StaticDeviceLocator(DevicePosition(40.0, -80.0)))

        async def scenario():
            await resolver.request_device_location()
            resolver.locator = locator
            return await resolver.handle_upload(jpeg_without_gps)

        status = asyncio.run(scenario())

        assert status == LocationStatus.FOUND
        assert locator.calls == 0

    def test_upload_with_geotag_extracts(self, jpeg_with_gps):
        resolver = LocationResolver(StaticDeviceLocator(None))

        status = asyncio.run(resolver.handle_upload(jpeg_with_gps))

        assert status == LocationStatus.EXTRACTED
        assert resolver.error is None

    def test_enrich_keeps_coordinates(self, jpeg_with_gps):
        resolver = LocationResolver(StaticDeviceLocator(None))
        resolver.apply_image_metadata(jpeg_with_gps)
        before = resolver.location

        enriched = resolver.enrich("Forbes Ave, Pittsburgh", "https://maps.example/1", cycle=resolver.cycle)

        assert enriched.address == "Forbes Ave, Pittsburgh"
        assert enriched.maps_url == "https://maps.example/1"
        assert (enriched.latitude, enriched.longitude) == (before.latitude, before.longitude)

    def test_enrich_from_stale_cycle_ignored(self, jpeg_with_gps):
        resolver = LocationResolver(StaticDeviceLocator(None))
        stale_cycle = resolver.cycle
        resolver.reset()
        resolver.apply_image_metadata(jpeg_with_gps)

        resolver.enrich("Somewhere else", None, cycle=stale_cycle)

        assert resolver.location.address is None

    def test_enrich_without_location(self):
        resolver = LocationResolver(StaticDeviceLocator(None))
        assert resolver.enrich("Anywhere", None) is None

    def test_reset(self, jpeg_with_gps):
        resolver = LocationResolver(StaticDeviceLocator(None))
        resolver.apply_image_metadata(jpeg_with_gps)

        resolver.reset()

        assert resolver.status == LocationStatus.IDLE
        assert resolver.location is None
        assert resolver.cycle == 1
