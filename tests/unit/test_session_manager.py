"""Tests for the in-process SessionManager registry."""

import pytest

from src.core.exceptions import InvalidContributorError, SessionNotFoundError
from src.core.models import CaptureState
from src.services.session import manager as manager_module
from src.services.session.manager import SessionManager, get_session_manager, reset_session_manager


@pytest.fixture
def manager(catalog, store):
    """A manager whose sessions use the in-memory catalog and store."""
    return SessionManager(catalog_factory=lambda: catalog, store_factory=lambda: store)


async def test_create_session_initialises_controller(manager):
    session_id, controller = await manager.create_session()
    assert len(session_id) == 32
    assert controller.contributor == "ann"
    assert controller.state is CaptureState.idle
    assert manager.get_controller(session_id) is controller
    assert len(manager) == 1


async def test_create_session_for_contributor(manager):
    _, controller = await manager.create_session("bob")
    assert controller.contributor == "bob"


async def test_create_session_unknown_contributor(manager):
    with pytest.raises(InvalidContributorError):
        await manager.create_session("zoe")
    assert len(manager) == 0


async def test_sessions_are_independent(manager):
    first_id, first = await manager.create_session()
    second_id, second = await manager.create_session()
    assert first_id != second_id
    first.jump_to(3)
    assert second.sentence_index == 0


def test_get_unknown_session(manager):
    with pytest.raises(SessionNotFoundError):
        manager.get_controller("missing")


async def test_close_session(manager):
    session_id, controller = await manager.create_session()
    await controller.start_capture()
    manager.close_session(session_id)
    assert len(manager) == 0
    with pytest.raises(SessionNotFoundError):
        manager.get_controller(session_id)
    with pytest.raises(SessionNotFoundError):
        manager.close_session(session_id)


async def test_cleanup_closes_everything(manager):
    await manager.create_session()
    await manager.create_session()
    manager.cleanup()
    assert len(manager) == 0


def test_build_controller_uses_settings(manager):
    controller = manager.build_controller("abc")
    assert controller.session_id == "abc"
    assert controller.state is CaptureState.idle


def test_process_wide_manager_is_cached():
    reset_session_manager()
    try:
        assert get_session_manager() is get_session_manager()
    finally:
        reset_session_manager()
    assert manager_module._manager is None
