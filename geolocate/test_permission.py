import asyncio

import pytest

from geolocate import DESIRED_ACCURACY_IN_METERS, UPDATE_DISTANCE_IN_METERS
from geolocate.models import LocationFix, PermissionKind, PermissionOutcome, Platform, ServiceStatus
from geolocate.permission import PermissionCoordinator
from geolocate.permissions import RemotePermissionService, StaticPermissionService

INIT = ServiceStatus.INITIALIZING
RUNNING = ServiceStatus.RUNNING
FAILED = ServiceStatus.FAILED


class Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, outcome):
        self.calls.append(outcome)


@pytest.mark.asyncio
async def test_simulated_platform_grants_zero_fix(context, clock, service):
    on_complete = Recorder()
    coordinator = PermissionCoordinator(context, clock, Platform.SIMULATED)

    outcome = await coordinator.request_permission(on_complete)

    assert outcome == PermissionOutcome(granted=True, fix=LocationFix.zero())
    assert on_complete.calls == [outcome]
    assert service.starts == []
    assert clock.ticks == 0


@pytest.mark.asyncio
async def test_service_running_on_second_tick(context, clock, service):
    service.statuses = [INIT, INIT, RUNNING]
    on_complete = Recorder()
    coordinator = PermissionCoordinator(context, clock)

    outcome = await coordinator.request_permission(on_complete)

    assert outcome.granted == True
    assert outcome.fix == service.fix
    assert outcome.as_tuple() == (True, 52.0, 4.0, 1.0, 5.0)
    assert on_complete.calls == [outcome]
    assert service.starts == [(DESIRED_ACCURACY_IN_METERS, UPDATE_DISTANCE_IN_METERS)]
    assert clock.ticks == 2


@pytest.mark.asyncio
async def test_initialization_timeout(context, clock, service):
    service.statuses = [INIT]
    on_complete = Recorder()
    coordinator = PermissionCoordinator(context, clock)

    outcome = await coordinator.request_permission(on_complete)

    assert outcome.as_tuple() == (False, 0.0, 0.0, 0.0, 0.0)
    assert on_complete.calls == [outcome]
    assert clock.ticks == 5


@pytest.mark.asyncio
async def test_running_on_last_budgeted_tick_times_out(context, clock, service):
    service.statuses = [INIT] * 5 + [RUNNING]
    coordinator = PermissionCoordinator(context, clock)

    outcome = await coordinator.request_permission()

    assert outcome == PermissionOutcome.denied()
    assert clock.ticks == 5


@pytest.mark.asyncio
async def test_running_before_budget_is_spent(context, clock, service):
    service.statuses = [INIT] * 4 + [RUNNING]
    coordinator = PermissionCoordinator(context, clock)

    outcome = await coordinator.request_permission()

    assert outcome.granted == True
    assert outcome.fix == service.fix
    assert clock.ticks == 4


@pytest.mark.asyncio
@pytest.mark.parametrize("statuses", [[FAILED], [INIT, INIT, FAILED]])
async def test_service_failed(context, clock, service, statuses):
    service.statuses = statuses
    on_complete = Recorder()
    coordinator = PermissionCoordinator(context, clock)

    outcome = await coordinator.request_permission(on_complete)

    assert outcome == PermissionOutcome.denied()
    assert outcome.fix == LocationFix.zero()
    assert len(on_complete.calls) == 1


@pytest.mark.asyncio
async def test_service_is_not_stopped(context, clock, service):
    coordinator = PermissionCoordinator(context, clock)

    await coordinator.request_permission()

    assert service.stops == 0
    assert service.status == RUNNING


@pytest.mark.asyncio
async def test_gated_denied_without_answer(context, clock, service):
    permissions = RemotePermissionService()
    on_complete = Recorder()
    coordinator = PermissionCoordinator(
        context, clock, Platform.PERMISSION_GATED, permissions
    )

    outcome = await coordinator.request_permission(on_complete)

    assert outcome == PermissionOutcome.denied()
    assert on_complete.calls == [outcome]
    assert permissions.pending == [PermissionKind.FINE_LOCATION]
    assert clock.ticks == 1
    assert service.starts == []


@pytest.mark.asyncio
async def test_gated_granted_on_request(context, clock, service):
    permissions = StaticPermissionService(granted=False, grant_on_request=True)
    coordinator = PermissionCoordinator(
        context, clock, Platform.PERMISSION_GATED, permissions
    )

    outcome = await coordinator.request_permission()

    assert outcome.granted == True
    assert outcome.fix == service.fix
    assert clock.ticks == 1


@pytest.mark.asyncio
async def test_gated_already_granted_skips_request(context, clock, service):
    permissions = RemotePermissionService()
    permissions.respond(PermissionKind.FINE_LOCATION, True)
    coordinator = PermissionCoordinator(
        context, clock, Platform.PERMISSION_GATED, permissions
    )

    outcome = await coordinator.request_permission()

    assert outcome.granted == True
    assert permissions.pending == []
    assert clock.ticks == 0


@pytest.mark.asyncio
async def test_gated_operator_answers_during_wait(context, clock, service):
    permissions = RemotePermissionService()
    coordinator = PermissionCoordinator(
        context, clock, Platform.PERMISSION_GATED, permissions
    )

    async def operator():
        while not permissions.pending:
            await asyncio.sleep(0)
        permissions.respond(PermissionKind.FINE_LOCATION, True)

    answer = asyncio.create_task(operator())
    outcome = await coordinator.request_permission()
    await answer

    assert outcome.granted == True


@pytest.mark.asyncio
async def test_gated_denied_is_not_retried(context, clock, service):
    permissions = StaticPermissionService(granted=False, grant_on_request=False)
    coordinator = PermissionCoordinator(
        context, clock, Platform.PERMISSION_GATED, permissions
    )

    first = await coordinator.request_permission()
    second = await coordinator.request_permission()

    assert first.granted == False
    assert second.granted == False
    assert clock.ticks == 2


@pytest.mark.asyncio
async def test_failing_callback_does_not_break_flow(context, clock, service):
    calls = []

    def on_complete(outcome):
        calls.append(outcome)
        raise RuntimeError("boom")

    coordinator = PermissionCoordinator(context, clock)
    outcome = await coordinator.request_permission(on_complete)

    assert outcome.granted == True
    assert calls == [outcome]


@pytest.mark.asyncio
async def test_cancelled_request_completes_once(context, clock, service):
    service.statuses = [INIT]
    on_complete = Recorder()
    coordinator = PermissionCoordinator(context, clock)

    task = coordinator.request_permission(on_complete)
    await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert on_complete.calls == [PermissionOutcome.denied()]


@pytest.mark.asyncio
async def test_service_error_reports_denied(context, clock, service):
    def broken_start(desired_accuracy, min_update_distance):
        raise OSError("sensor unavailable")

    service.start = broken_start
    on_complete = Recorder()
    coordinator = PermissionCoordinator(context, clock)

    outcome = await coordinator.request_permission(on_complete)

    assert outcome == PermissionOutcome.denied()
    assert on_complete.calls == [outcome]


def test_permission_status_is_not_cached(context, clock, service):
    coordinator = PermissionCoordinator(context, clock)

    assert coordinator.get_permission_status() == True
    service.enabled = False
    assert coordinator.get_permission_status() == False


def test_gated_platform_requires_permission_service(context, clock):
    with pytest.raises(ValueError):
        PermissionCoordinator(context, clock, Platform.PERMISSION_GATED)
