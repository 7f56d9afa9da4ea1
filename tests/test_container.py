"""Tests for container wiring."""

import asyncio

from badge_relay.containers import build_container
from badge_relay.domain.dispatch import DispatchMode


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)

    assert container.photo_service is not None
    assert container.photo_intake is None
    assert container.dispatch_controller.mode is DispatchMode.DISABLED
    asyncio.run(container.close_resources())


def test_build_container_with_realtime(settings) -> None:
    container = build_container(settings.model_copy(update={"realtime_enabled": True}))

    assert container.photo_intake is not None
    assert container.photo_intake.running is False
    asyncio.run(container.close_resources())
