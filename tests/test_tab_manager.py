"""Tests for the armed tab manager."""

import asyncio

from badge_relay.services.tabs import TabHandleManager, TabStatus
from tests.conftest import FakeTabOpener


def test_arm_opens_blank_tab(tab_opener: FakeTabOpener) -> None:
    manager = TabHandleManager(tab_opener)

    assert asyncio.run(manager.arm()) is TabStatus.OK
    assert manager.has_live_handle is True
    assert tab_opener.opened[0].urls == []


def test_arm_reuses_live_tab(tab_opener: FakeTabOpener) -> None:
    manager = TabHandleManager(tab_opener)

    asyncio.run(manager.arm())
    asyncio.run(manager.arm())

    assert len(tab_opener.opened) == 1


def test_arm_replaces_closed_tab(tab_opener: FakeTabOpener) -> None:
    manager = TabHandleManager(tab_opener)
    asyncio.run(manager.arm())
    tab_opener.opened[0].closed = True

    asyncio.run(manager.arm())

    assert len(tab_opener.opened) == 2
    assert manager.has_live_handle is True


def test_arm_popup_blocked(tab_opener: FakeTabOpener) -> None:
    tab_opener.block_popups = True
    manager = TabHandleManager(tab_opener)

    assert asyncio.run(manager.arm()) is TabStatus.POPUP_BLOCKED
    assert manager.has_live_handle is False


def test_navigate_redirects_and_focuses(tab_opener: FakeTabOpener) -> None:
    manager = TabHandleManager(tab_opener)
    asyncio.run(manager.arm())

    status = asyncio.run(manager.navigate("https://badges.example.com/?photo=x"))

    tab = tab_opener.opened[0]
    assert status is TabStatus.OK
    assert tab.urls == ["https://badges.example.com/?photo=x"]
    assert tab.focus_count == 1


def test_navigate_without_handle_reports_closed(tab_opener: FakeTabOpener) -> None:
    manager = TabHandleManager(tab_opener)

    assert asyncio.run(manager.navigate("https://x")) is TabStatus.TAB_CLOSED


def test_navigate_closed_tab_reports_closed(tab_opener: FakeTabOpener) -> None:
    manager = TabHandleManager(tab_opener)
    asyncio.run(manager.arm())
    tab_opener.opened[0].closed = True

    assert asyncio.run(manager.navigate("https://x")) is TabStatus.TAB_CLOSED
    assert tab_opener.opened[0].urls == []
    assert manager.has_live_handle is False


def test_open_fresh_is_not_retained(tab_opener: FakeTabOpener) -> None:
    manager = TabHandleManager(tab_opener)

    result = asyncio.run(manager.open_fresh("https://x"))

    assert result.status is TabStatus.OK
    assert result.handle is tab_opener.opened[0]
    assert tab_opener.opened[0].urls == ["https://x"]
    assert manager.has_live_handle is False


def test_open_fresh_popup_blocked(tab_opener: FakeTabOpener) -> None:
    tab_opener.block_popups = True
    manager = TabHandleManager(tab_opener)

    result = asyncio.run(manager.open_fresh("https://x"))

    assert result.status is TabStatus.POPUP_BLOCKED
    assert result.handle is None


def test_disarm_closes_and_is_idempotent(tab_opener: FakeTabOpener) -> None:
    manager = TabHandleManager(tab_opener)
    asyncio.run(manager.arm())

    asyncio.run(manager.disarm())
    asyncio.run(manager.disarm())

    assert tab_opener.opened[0].closed is True
    assert manager.has_live_handle is False


def test_navigation_on_replaced_tab_leaves_new_handle(
    tab_opener: FakeTabOpener,
) -> None:
    manager = TabHandleManager(tab_opener)

    async def scenario() -> TabStatus:
        await manager.arm()
        first = tab_opener.opened[0]
        started = asyncio.Event()
        release = asyncio.Event()

        async def held_navigate(url: str) -> None:
            started.set()
            await release.wait()

        first.navigate = held_navigate  # type: ignore[method-assign]
        pending = asyncio.create_task(manager.navigate("https://x"))
        await started.wait()
        await manager.disarm()
        await manager.arm()
        release.set()
        return await pending

    assert asyncio.run(scenario()) is TabStatus.REPLACED
    assert manager.has_live_handle is True
    assert tab_opener.opened[1].focus_count == 0


def test_open_fresh_failure_is_reported(tab_opener: FakeTabOpener) -> None:
    tab_opener.open_error = RuntimeError("net::ERR_NAME_NOT_RESOLVED")
    manager = TabHandleManager(tab_opener)

    result = asyncio.run(manager.open_fresh("https://x"))

    assert result.status is TabStatus.OPEN_FAILED
    assert result.handle is None
