"""Tests for DashboardController."""

import asyncio

import pytest

from conftest import break_store, make_study_set
from src.controllers.base import LOGIN_PATH, ViewState
from src.controllers.dashboard import DashboardController
from src.services import study_set_service
from src.utils.errors import NotFoundError
from src.utils.result import Result


def test_no_session_redirects(store, auth):
    async def scenario():
        async with DashboardController(store, auth) as dashboard:
            return await dashboard.mount(None), dashboard.redirect_to

    state, redirect_to = asyncio.run(scenario())
    assert state == ViewState.REDIRECT
    assert redirect_to == LOGIN_PATH


def test_invalid_token_redirects(store, auth):
    dashboard = DashboardController(store, auth)
    assert asyncio.run(dashboard.mount("bogus")) == ViewState.REDIRECT


def test_auth_store_failure_redirects(store, auth, token):
    break_store(store, "auth_sessions")
    dashboard = DashboardController(store, auth)
    assert asyncio.run(dashboard.mount(token)) == ViewState.REDIRECT


def test_ready_with_sets(store, auth, user, token, biology):
    dashboard = DashboardController(store, auth)
    assert asyncio.run(dashboard.mount(token)) == ViewState.READY
    assert dashboard.user == user
    assert [(s.title, s.flashcard_count) for s in dashboard.study_sets] == [("Biology", 3)]


def test_ready_with_no_sets(store, auth, token):
    dashboard = DashboardController(store, auth)
    assert asyncio.run(dashboard.mount(token)) == ViewState.READY
    assert dashboard.study_sets == []
    assert dashboard.error is None


def test_query_failure_reaches_error_state(store, auth, token, biology):
    break_store(store, "starred_flashcards", "flashcards", "study_sets")
    dashboard = DashboardController(store, auth)
    assert asyncio.run(dashboard.mount(token)) == ViewState.ERROR
    assert dashboard.error is not None
    assert dashboard.snapshot()["error"]


def test_subscription_released_on_every_exit(store, auth, token):
    async def failing():
        async with DashboardController(store, auth) as dashboard:
            assert dashboard.subscribed
            assert auth.listener_count == 1
            raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        asyncio.run(failing())
    assert auth.listener_count == 0


def test_sign_out_redirects_mounted_dashboard(store, auth, token):
    async def scenario():
        async with DashboardController(store, auth) as dashboard:
            await dashboard.mount(token)
            assert dashboard.state == ViewState.READY
            await auth.sign_out(token)
            return dashboard.state

    assert asyncio.run(scenario()) == ViewState.REDIRECT


def test_create_then_refetch(store, auth, token):
    async def scenario():
        dashboard = DashboardController(store, auth)
        await dashboard.mount(token)
        created = await dashboard.create_study_set("Spanish", "Verbs")
        return dashboard, created

    dashboard, created = asyncio.run(scenario())
    assert created.ok
    assert [s.id for s in dashboard.study_sets] == [created.value.id]
    assert dashboard.state == ViewState.READY


def test_create_rejected_keeps_list(store, auth, token, biology):
    async def scenario():
        dashboard = DashboardController(store, auth)
        await dashboard.mount(token)
        return dashboard, await dashboard.create_study_set("  ")

    dashboard, result = asyncio.run(scenario())
    assert not result.ok
    assert len(dashboard.study_sets) == 1


def test_delete_then_refetch(store, auth, token, biology):
    study_set, _ = biology

    async def scenario():
        dashboard = DashboardController(store, auth)
        await dashboard.mount(token)
        return dashboard, await dashboard.delete_study_set(study_set.id)

    dashboard, result = asyncio.run(scenario())
    assert result.unwrap() is True
    assert dashboard.study_sets == []


def test_delete_other_users_set(store, auth, token, other_user):
    foreign, _ = make_study_set(store, other_user.id, "Not yours", ["x"])

    async def scenario():
        dashboard = DashboardController(store, auth)
        await dashboard.mount(token)
        return await dashboard.delete_study_set(foreign.id)

    result = asyncio.run(scenario())
    assert isinstance(result.error, NotFoundError)
    assert asyncio.run(study_set_service.get_study_set(store, foreign.id)).ok


def test_mutations_require_session(store, auth):
    async def scenario():
        dashboard = DashboardController(store, auth)
        await dashboard.mount(None)
        return await dashboard.create_study_set("Nope"), await dashboard.refresh()

    created, state = asyncio.run(scenario())
    assert not created.ok
    assert state == ViewState.REDIRECT


def test_late_response_after_unmount_is_discarded(store, auth, token, monkeypatch):
    gate = {}

    async def slow_list(store_, user_id):
        await gate["release"].wait()
        return Result.success(["stale"])

    monkeypatch.setattr(study_set_service, "list_study_sets", slow_list)

    async def scenario():
        gate["release"] = asyncio.Event()
        dashboard = DashboardController(store, auth)
        task = asyncio.create_task(dashboard.mount(token))
        while dashboard.state != ViewState.LOADING_SETS:
            await asyncio.sleep(0)
        dashboard.unmount()
        gate["release"].set()
        await task
        return dashboard

    dashboard = asyncio.run(scenario())
    assert dashboard.study_sets == []
    assert dashboard.state == ViewState.LOADING_SETS


def _gate(monkeypatch, name):
    """Hold study_set_service.<name> until gate["release"] is set."""
    gate = {}
    real = getattr(study_set_service, name)

    async def gated(*args):
        await gate["release"].wait()
        return await real(*args)

    monkeypatch.setattr(study_set_service, name, gated)
    return gate


def test_create_finishing_after_unmount_does_not_refetch(store, auth, user, token, monkeypatch):
    gate = _gate(monkeypatch, "create_study_set")

    async def scenario():
        gate["release"] = asyncio.Event()
        dashboard = DashboardController(store, auth)
        await dashboard.mount(token)
        task = asyncio.create_task(dashboard.create_study_set("Late"))
        await asyncio.sleep(0)
        dashboard.unmount()
        gate["release"].set()
        return dashboard, await task

    dashboard, created = asyncio.run(scenario())
    assert created.ok
    assert dashboard.study_sets == []
    assert dashboard.state == ViewState.READY
    # The write itself still happened
    titles = [s.title for s in asyncio.run(study_set_service.list_study_sets(store, user.id)).unwrap()]
    assert titles == ["Late"]


def test_create_finishing_after_sign_out_stays_redirected(store, auth, token, monkeypatch):
    gate = _gate(monkeypatch, "create_study_set")

    async def scenario():
        gate["release"] = asyncio.Event()
        async with DashboardController(store, auth) as dashboard:
            await dashboard.mount(token)
            task = asyncio.create_task(dashboard.create_study_set("Late"))
            await asyncio.sleep(0)
            await auth.sign_out(token)
            gate["release"].set()
            await task
            return dashboard

    dashboard = asyncio.run(scenario())
    assert dashboard.state == ViewState.REDIRECT
    assert dashboard.redirect_to == LOGIN_PATH
    assert dashboard.study_sets == []


def test_delete_finishing_after_sign_out_stays_redirected(store, auth, token, biology, monkeypatch):
    study_set, _ = biology
    gate = _gate(monkeypatch, "delete_study_set")

    async def scenario():
        gate["release"] = asyncio.Event()
        async with DashboardController(store, auth) as dashboard:
            await dashboard.mount(token)
            task = asyncio.create_task(dashboard.delete_study_set(study_set.id))
            await asyncio.sleep(0)
            await auth.sign_out(token)
            gate["release"].set()
            return dashboard, await task

    dashboard, result = asyncio.run(scenario())
    assert result.unwrap() is True
    assert dashboard.state == ViewState.REDIRECT
    assert [s.id for s in dashboard.study_sets] == [study_set.id]


def test_refresh_after_unmount_is_a_no_op(store, auth, token, biology):
    async def scenario():
        dashboard = DashboardController(store, auth)
        await dashboard.mount(token)
        dashboard.unmount()
        await study_set_service.create_study_set(store, dashboard.user.id, "Added later")
        return dashboard, await dashboard.refresh()

    dashboard, state = asyncio.run(scenario())
    assert state == ViewState.READY
    assert [s.title for s in dashboard.study_sets] == ["Biology"]
