# tests/test_task_list_controller.py

from __future__ import annotations

import asyncio

import pytest
import pytz

from config.config import EXPIRED_MARKER, PENDING_MARKER
from models.errors import StoreError, ValidationError
from models.form_result import Cancelled
from models.task import Task, TaskState
from services.task_list_controller import ActionStatus, TaskListController

from .conftest import NOW
from .fakes import BlockingTaskStore, InMemoryTaskStore, RecordingNotifier, ScriptedDialog, submitted


# ---- load ----


@pytest.mark.asyncio
async def test_load_replaces_list_in_store_order(store, notifier) -> None:
    ctrl = TaskListController(store, notifier=notifier, tz=pytz.UTC)
    result = await ctrl.load()

    assert result.ok
    assert [t.id for t in ctrl.tasks] == ["a", "b"]


@pytest.mark.asyncio
async def test_load_failure_keeps_last_known_good(controller, store, notifier, seed_tasks) -> None:
    store.fail_on.add("list_tasks")

    result = await controller.load()

    assert result.status == ActionStatus.FAILED
    assert isinstance(result.error, StoreError)
    assert controller.tasks == seed_tasks
    assert notifier.errors


# ---- add ----


@pytest.mark.asyncio
async def test_add_task_blank_text_fails_without_store_call(controller, store, notifier) -> None:
    result = await controller.add_task("", "2099-01-01T00:00")

    assert result.status == ActionStatus.FAILED
    assert isinstance(result.error, ValidationError)
    assert store.calls == []
    assert notifier.errors == [("Invalid task", "All fields are required!")]


@pytest.mark.asyncio
@pytest.mark.parametrize("text,deadline", [("Buy milk", ""), ("   ", "2099-01-01T00:00"), ("Buy milk", "soon")])
async def test_add_task_invalid_fields_never_reach_store(controller, store, text, deadline) -> None:
    result = await controller.add_task(text, deadline)

    assert isinstance(result.error, ValidationError)
    assert store.calls == []


@pytest.mark.asyncio
async def test_add_task_creates_and_reloads() -> None:
    store = InMemoryTaskStore()
    notifier = RecordingNotifier()
    ctrl = TaskListController(store, notifier=notifier, tz=pytz.UTC)

    result = await ctrl.add_task("Buy milk", "2099-01-01T00:00")

    assert result.ok
    assert store.ops() == ["create_task", "list_tasks"]
    assert len(ctrl.tasks) == 1
    task = ctrl.tasks[0]
    assert (task.text, task.deadline, task.completed) == ("Buy milk", "2099-01-01T00:00", False)
    assert notifier.successes == [("Success!", "Task added.")]
    assert ctrl.is_adding is False


@pytest.mark.asyncio
async def test_add_task_store_failure_leaves_list_unchanged(controller, store, notifier, seed_tasks) -> None:
    store.fail_on.add("create_task")

    result = await controller.add_task("Buy milk", "2099-01-01T00:00")

    assert result.status == ActionStatus.FAILED
    assert isinstance(result.error, StoreError)
    assert controller.tasks == seed_tasks
    assert notifier.errors == [("Error!", "Failed to add the task.")]
    assert controller.is_adding is False


@pytest.mark.asyncio
async def test_only_one_add_in_flight() -> None:
    store = BlockingTaskStore()
    ctrl = TaskListController(store, tz=pytz.UTC)

    first = asyncio.create_task(ctrl.add_task("First", "2099-01-01T00:00"))
    await store.entered.wait()
    assert ctrl.is_adding is True

    second = await ctrl.add_task("Second", "2099-01-01T00:00")
    assert second.status == ActionStatus.BUSY

    store.release.set()
    assert (await first).ok
    assert [t.text for t in ctrl.tasks] == ["First"]
    assert ctrl.is_adding is False


@pytest.mark.asyncio
async def test_request_add_task_uses_dialog(store, notifier) -> None:
    dialog = ScriptedDialog(forms=[submitted("  Buy milk ", "2099-01-01 08:00")])
    ctrl = TaskListController(store, dialog=dialog, notifier=notifier, tz=pytz.UTC)

    result = await ctrl.request_add_task()

    assert result.ok
    assert dialog.prompts == [("Add a new task", "", "")]
    assert ("create_task", ("Buy milk", "2099-01-01 08:00")) in store.calls


@pytest.mark.asyncio
async def test_request_add_task_cancelled(controller, store, dialog) -> None:
    dialog.forms = [Cancelled()]

    result = await controller.request_add_task()

    assert result.status == ActionStatus.CANCELLED
    assert store.calls == []


# ---- toggle ----


@pytest.mark.asyncio
async def test_toggle_flips_only_completed(controller, store) -> None:
    before = controller.get_task("a")

    result = await controller.toggle_completion("a")

    assert result.ok
    after = controller.get_task("a")
    assert after.completed is True
    assert (after.text, after.deadline) == (before.text, before.deadline)
    assert store.calls == [("update_task_fields", ("a", {"completed": True}))]


@pytest.mark.asyncio
async def test_toggle_twice_restores_original(controller, store) -> None:
    original = controller.get_task("b")

    await controller.toggle_completion("b")
    await controller.toggle_completion("b")

    assert controller.get_task("b") == original
    assert store.records["b"]["completed"] is True


@pytest.mark.asyncio
async def test_toggle_missing_task_is_noop(controller, store) -> None:
    result = await controller.toggle_completion("nope")

    assert result.status == ActionStatus.NOOP
    assert store.calls == []


@pytest.mark.asyncio
async def test_toggle_failure_leaves_record_unchanged(controller, store, notifier, seed_tasks) -> None:
    store.fail_on.add("update_task_fields")

    result = await controller.toggle_completion("a")

    assert result.status == ActionStatus.FAILED
    assert controller.tasks == seed_tasks
    assert notifier.errors == [("Error!", "Failed to change the task status.")]


# ---- delete ----


@pytest.mark.asyncio
async def test_delete_missing_task_is_noop(controller, store, dialog) -> None:
    result = await controller.delete_task("nope")

    assert result.status == ActionStatus.NOOP
    assert store.calls == []
    assert dialog.confirms == []


@pytest.mark.asyncio
async def test_delete_requires_confirmation(controller, store, dialog, seed_tasks) -> None:
    dialog.confirmations = [False]

    result = await controller.delete_task("a")

    assert result.status == ActionStatus.CANCELLED
    assert store.calls == []
    assert controller.tasks == seed_tasks


@pytest.mark.asyncio
async def test_delete_confirmed_removes_task(controller, store, dialog, notifier) -> None:
    dialog.confirmations = [True]

    result = await controller.delete_task("a")

    assert result.ok
    assert [t.id for t in controller.tasks] == ["b"]
    assert "a" not in store.records
    assert notifier.successes == [("Deleted!", "Task deleted.")]


@pytest.mark.asyncio
async def test_delete_failure_leaves_list_unchanged(controller, store, dialog, seed_tasks) -> None:
    dialog.confirmations = [True]
    store.fail_on.add("delete_task")

    result = await controller.delete_task("a")

    assert result.status == ActionStatus.FAILED
    assert controller.tasks == seed_tasks


# ---- edit ----


@pytest.mark.asyncio
async def test_edit_presents_current_values_and_reloads(controller, store, dialog, notifier) -> None:
    dialog.forms = [submitted("Write final report", "2099-02-01T10:00")]

    result = await controller.edit_task("a")

    assert result.ok
    assert dialog.prompts == [("Edit task", "Write report", "2099-01-01T00:00")]
    assert store.ops() == ["update_task_fields", "list_tasks"]
    assert store.calls[0] == (
        "update_task_fields",
        ("a", {"text": "Write final report", "deadline": "2099-02-01T10:00"}),
    )
    edited = controller.get_task("a")
    assert (edited.text, edited.deadline, edited.completed) == ("Write final report", "2099-02-01T10:00", False)
    assert notifier.successes == [("Success!", "Task updated.")]


@pytest.mark.asyncio
async def test_edit_store_failure_leaves_list_identical(controller, store, dialog, seed_tasks) -> None:
    dialog.forms = [submitted("Changed", "2099-02-01T10:00")]
    store.fail_on.add("update_task_fields")
    before = list(controller.tasks)

    result = await controller.edit_task("a")

    assert result.status == ActionStatus.FAILED
    assert controller.tasks == before == seed_tasks
    assert [repr(t) for t in controller.tasks] == [repr(t) for t in before]


@pytest.mark.asyncio
async def test_edit_blank_submission_is_validation_error(controller, store, dialog) -> None:
    dialog.forms = [submitted("Changed", "  ")]

    result = await controller.edit_task("a")

    assert isinstance(result.error, ValidationError)
    assert store.calls == []


@pytest.mark.asyncio
async def test_edit_cancelled_and_missing(controller, store, dialog) -> None:
    dialog.forms = [Cancelled()]

    assert (await controller.edit_task("a")).status == ActionStatus.CANCELLED
    assert (await controller.edit_task("nope")).status == ActionStatus.NOOP
    assert len(dialog.prompts) == 1
    assert store.calls == []


# ---- derived state / countdown ----


def test_snapshot_before_first_tick_shows_pending_marker(controller) -> None:
    rows = controller.snapshot(NOW)

    assert [r.countdown for r in rows] == [PENDING_MARKER, PENDING_MARKER]
    assert [r.state for r in rows] == [TaskState.ACTIVE, TaskState.COMPLETED]


def test_refresh_countdowns_covers_every_task(controller) -> None:
    controller.tasks.append(Task(id="c", text="Call mom", deadline="2029-12-31T23:00"))

    remaining = controller.refresh_countdowns(NOW)

    assert remaining["c"] == EXPIRED_MARKER
    assert remaining["b"] == EXPIRED_MARKER
    assert remaining["a"].endswith("s")
    assert controller.snapshot(NOW)[2].state == TaskState.EXPIRED


@pytest.mark.asyncio
async def test_countdown_ticks_until_cancelled(controller) -> None:
    ticks: list[dict[str, str]] = []

    handle = controller.start_countdown(interval=0.01, on_tick=ticks.append)
    assert controller.start_countdown(interval=0.01) is handle
    await asyncio.sleep(0.05)
    handle.cancel()
    await asyncio.sleep(0.02)
    count = len(ticks)
    await asyncio.sleep(0.03)

    assert count >= 2
    assert len(ticks) == count
    assert not handle.active
    assert set(ticks[0]) == {"a", "b"}


@pytest.mark.asyncio
async def test_dispose_stops_timer_and_ignores_late_results(controller, store, seed_tasks) -> None:
    handle = controller.start_countdown(interval=0.01)
    controller.dispose()
    await asyncio.sleep(0.02)

    assert not handle.active
    await controller.toggle_completion("a")
    await controller.load()
    assert controller.tasks == seed_tasks


@pytest.mark.asyncio
async def test_notifier_failure_does_not_escape(store, seed_tasks) -> None:
    class BrokenNotifier(RecordingNotifier):
        async def success(self, title: str, message: str) -> None:
            raise RuntimeError("toast service down")

    ctrl = TaskListController(store, notifier=BrokenNotifier(), tz=pytz.UTC)
    ctrl.tasks = list(seed_tasks)

    result = await ctrl.toggle_completion("a")

    assert result.ok


def test_validate_fields_strips_values() -> None:
    assert TaskListController.validate_fields("  Buy milk ", " 2099-01-01T00:00 ") == ("Buy milk", "2099-01-01T00:00")
    with pytest.raises(ValidationError):
        TaskListController.validate_fields(None, "2099-01-01T00:00")


@pytest.mark.asyncio
async def test_add_announces_in_flight_state_before_store_call(controller, store) -> None:
    seen: list[tuple[bool, list[str]]] = []

    async def on_change() -> None:
        seen.append((controller.is_adding, store.ops()))

    controller.on_change = on_change
    result = await controller.add_task("Buy milk", "2099-01-01T00:00")

    assert result.ok
    assert seen == [(True, [])]
    assert controller.is_adding is False


@pytest.mark.asyncio
async def test_failing_change_callback_does_not_block_add(controller, store) -> None:
    async def on_change() -> None:
        raise RuntimeError("board gone")

    controller.on_change = on_change
    result = await controller.add_task("Buy milk", "2099-01-01T00:00")

    assert result.ok
    assert "create_task" in store.ops()


@pytest.mark.asyncio
async def test_results_after_dispose_are_silent(controller, store, dialog, notifier, seed_tasks) -> None:
    dialog.confirmations = [True]
    dialog.forms = [submitted("Changed", "2099-02-01T10:00")]
    controller.dispose()

    assert (await controller.toggle_completion("a")).ok
    assert (await controller.delete_task("b")).ok
    assert (await controller.edit_task("a")).ok
    assert (await controller.add_task("Buy milk", "2099-01-01T00:00")).ok

    assert controller.tasks == seed_tasks
    assert notifier.successes == []
    assert notifier.errors == []
