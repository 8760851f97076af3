"""Task list controller: the in-memory task collection and the user actions."""
import asyncio
import datetime
import inspect
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from config.config import COUNTDOWN_INTERVAL_SECONDS, PENDING_MARKER
from models.errors import StoreError, ValidationError
from models.form_result import Cancelled
from models.task import Task, TaskState
from services.ports import Notifier, TaskDialog, TaskStore
from utils.countdown import Countdown
from utils.logging_util import get_logger

logger = get_logger("task_list_controller")


class ActionStatus(str, Enum):
    OK = "ok"
    CANCELLED = "cancelled"
    NOOP = "noop"
    BUSY = "busy"
    FAILED = "failed"


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a user action. Errors are reported here, never raised."""
    status: ActionStatus
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status == ActionStatus.OK


@dataclass(frozen=True)
class TaskView:
    """One rendered row of the task list."""
    task: Task
    state: TaskState
    countdown: str
    deadline_display: str


class LoggingNotifier:
    """Notifier used when no UI is attached: messages only go to the log."""

    async def success(self, title: str, message: str) -> None:
        logger.info(f"{title} {message}")

    async def error(self, title: str, message: str) -> None:
        logger.warning(f"{title} {message}")


class CountdownHandle:
    """Cancel handle for the recurring countdown task."""

    def __init__(self, task: "asyncio.Task[None]"):
        self._task = task

    @property
    def active(self) -> bool:
        return not self._task.done()

    def cancel(self) -> None:
        if not self._task.done():
            self._task.cancel()


class TaskListController:
    """
    Owns the in-memory task list for the lifetime of a view.

    Every action calls the store first and only then updates the in-memory
    list, so a failed call leaves the list exactly as it was.
    """

    def __init__(
        self,
        store: TaskStore,
        dialog: Optional[TaskDialog] = None,
        notifier: Optional[Notifier] = None,
        tz: Optional[datetime.tzinfo] = None,
    ):
        self.store = store
        self.dialog = dialog
        self.notifier = notifier or LoggingNotifier()
        self.tz = tz or Countdown.get_timezone()
        self.tasks: List[Task] = []
        self.time_remaining: Dict[str, str] = {}
        self.is_adding = False
        # Awaited when an add starts, so views can show the in-flight state
        self.on_change: Optional[Callable[[], Awaitable[None]]] = None
        self._disposed = False
        self._countdown: Optional[CountdownHandle] = None

    # ---- queries ----

    @property
    def disposed(self) -> bool:
        return self._disposed

    def get_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def snapshot(self, now: Optional[datetime.datetime] = None) -> List[TaskView]:
        """Rows for the renderer, in store order."""
        now = now or Countdown.now(self.tz)
        return [
            TaskView(
                task=task,
                state=Countdown.task_state(task, now),
                countdown=self.time_remaining.get(task.id, PENDING_MARKER),
                deadline_display=Countdown.format_for_display(task.deadline),
            )
            for task in self.tasks
        ]

    @staticmethod
    def validate_fields(text: Optional[str], deadline: Optional[str]) -> Tuple[str, str]:
        """Strip and check the form values. Raises ValidationError."""
        text = (text or "").strip()
        deadline = (deadline or "").strip()
        if not text or not deadline:
            raise ValidationError("All fields are required!")
        if Countdown.parse_deadline(deadline) is None:
            raise ValidationError(f"Deadline '{deadline}' is not a valid date/time (use YYYY-MM-DD HH:MM).")
        return text, deadline

    # ---- countdown ----

    def refresh_countdowns(self, now: Optional[datetime.datetime] = None) -> Dict[str, str]:
        """Recompute the time remaining of every task from the full list."""
        now = now or Countdown.now(self.tz)
        self.time_remaining = {task.id: Countdown.time_remaining(task, now) for task in self.tasks}
        return self.time_remaining

    def start_countdown(
        self,
        interval: float = COUNTDOWN_INTERVAL_SECONDS,
        on_tick: Optional[Callable[[Dict[str, str]], Any]] = None,
    ) -> CountdownHandle:
        """Start the recurring countdown. Must be called from a running event loop."""
        if self._countdown is not None and self._countdown.active:
            return self._countdown
        self._countdown = CountdownHandle(asyncio.create_task(self._run_countdown(interval, on_tick)))
        logger.info(f"Countdown started (every {interval}s)")
        return self._countdown

    async def _run_countdown(self, interval: float, on_tick: Optional[Callable[[Dict[str, str]], Any]]) -> None:
        while not self._disposed:
            remaining = self.refresh_countdowns()
            if on_tick is not None:
                try:
                    result = on_tick(remaining)
                    if inspect.isawaitable(result):
                        await result
                except Exception as e:
                    logger.error(f"Countdown tick callback failed: {e}")
            await asyncio.sleep(interval)

    def dispose(self) -> None:
        """Stop the countdown; store results arriving afterwards are ignored."""
        self._disposed = True
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None
        logger.info("Task list controller disposed")

    # ---- actions ----

    async def load(self, *, notifier: Optional[Notifier] = None) -> ActionResult:
        """Replace the in-memory list with the store contents."""
        try:
            await self._reload()
        except StoreError as e:
            logger.error(f"Failed to load tasks: {e}")
            await self._notify_error(notifier, "Error!", "Failed to load tasks.")
            return ActionResult(ActionStatus.FAILED, e)
        logger.info(f"Loaded {len(self.tasks)} tasks")
        return ActionResult(ActionStatus.OK)

    async def request_add_task(
        self,
        *,
        dialog: Optional[TaskDialog] = None,
        notifier: Optional[Notifier] = None,
    ) -> ActionResult:
        """Open the empty task form, then add the submitted task."""
        if self.is_adding:
            logger.warning("Add task rejected: another add is in progress")
            return ActionResult(ActionStatus.BUSY)
        result = await self._dialog(dialog).prompt_task("Add a new task")
        if isinstance(result, Cancelled):
            return ActionResult(ActionStatus.CANCELLED)
        return await self.add_task(result.text, result.deadline, notifier=notifier)

    async def add_task(self, text: str, deadline: str, *, notifier: Optional[Notifier] = None) -> ActionResult:
        if self.is_adding:
            logger.warning("Add task rejected: another add is in progress")
            return ActionResult(ActionStatus.BUSY)
        try:
            text, deadline = self.validate_fields(text, deadline)
        except ValidationError as e:
            await self._notify_error(notifier, "Invalid task", str(e))
            return ActionResult(ActionStatus.FAILED, e)

        self.is_adding = True
        try:
            await self._emit_change()
            task_id = await self.store.create_task(text, deadline)
            await self._reload()
        except StoreError as e:
            logger.error(f"Error adding task: {e}")
            await self._notify_error(notifier, "Error!", "Failed to add the task.")
            return ActionResult(ActionStatus.FAILED, e)
        finally:
            self.is_adding = False

        if self._disposed:
            return self._ignored(f"add of task {task_id}")
        logger.info(f"Task {task_id} added")
        await self._notify_success(notifier, "Success!", "Task added.")
        return ActionResult(ActionStatus.OK)

    async def toggle_completion(self, task_id: str, *, notifier: Optional[Notifier] = None) -> ActionResult:
        task = self.get_task(task_id)
        if task is None:
            return ActionResult(ActionStatus.NOOP)

        completed = not task.completed
        try:
            await self.store.update_task_fields(task.id, {'completed': completed})
        except StoreError as e:
            logger.error(f"Error toggling task {task.id}: {e}")
            await self._notify_error(notifier, "Error!", "Failed to change the task status.")
            return ActionResult(ActionStatus.FAILED, e)

        if self._disposed:
            return self._ignored(f"toggle of task {task.id}")
        self.tasks = [replace(t, completed=completed) if t.id == task.id else t for t in self.tasks]
        logger.info(f"Task {task.id} completed={completed}")
        await self._notify_success(
            notifier, "Success!", "Task marked as done." if completed else "Task marked as not done."
        )
        return ActionResult(ActionStatus.OK)

    async def delete_task(
        self,
        task_id: str,
        *,
        dialog: Optional[TaskDialog] = None,
        notifier: Optional[Notifier] = None,
    ) -> ActionResult:
        task = self.get_task(task_id)
        if task is None:
            return ActionResult(ActionStatus.NOOP)

        confirmed = await self._dialog(dialog).confirm("Delete this task?", f'"{task.text}" will be removed.')
        if not confirmed:
            return ActionResult(ActionStatus.CANCELLED)

        try:
            await self.store.delete_task(task.id)
        except StoreError as e:
            logger.error(f"Error deleting task {task.id}: {e}")
            await self._notify_error(notifier, "Error!", "Failed to delete the task.")
            return ActionResult(ActionStatus.FAILED, e)

        if self._disposed:
            return self._ignored(f"delete of task {task.id}")
        self.tasks = [t for t in self.tasks if t.id != task.id]
        self.time_remaining.pop(task.id, None)
        logger.info(f"Task {task.id} deleted")
        await self._notify_success(notifier, "Deleted!", "Task deleted.")
        return ActionResult(ActionStatus.OK)

    async def edit_task(
        self,
        task_id: str,
        *,
        dialog: Optional[TaskDialog] = None,
        notifier: Optional[Notifier] = None,
    ) -> ActionResult:
        task = self.get_task(task_id)
        if task is None:
            return ActionResult(ActionStatus.NOOP)

        result = await self._dialog(dialog).prompt_task(
            "Edit task", text=task.text, deadline=Countdown.format_for_input(task.deadline)
        )
        if isinstance(result, Cancelled):
            return ActionResult(ActionStatus.CANCELLED)

        try:
            text, deadline = self.validate_fields(result.text, result.deadline)
        except ValidationError as e:
            await self._notify_error(notifier, "Invalid task", str(e))
            return ActionResult(ActionStatus.FAILED, e)

        try:
            await self.store.update_task_fields(task.id, {'text': text, 'deadline': deadline})
            await self._reload()
        except StoreError as e:
            logger.error(f"Error updating task {task.id}: {e}")
            await self._notify_error(notifier, "Error!", "Failed to update the task.")
            return ActionResult(ActionStatus.FAILED, e)

        if self._disposed:
            return self._ignored(f"update of task {task.id}")
        logger.info(f"Task {task.id} updated")
        await self._notify_success(notifier, "Success!", "Task updated.")
        return ActionResult(ActionStatus.OK)

    # ---- helpers ----

    async def _reload(self) -> None:
        tasks = await self.store.list_tasks()
        if self._disposed:
            logger.debug("Ignoring task list loaded after disposal")
            return
        self.tasks = list(tasks)

    def _ignored(self, what: str) -> ActionResult:
        logger.debug(f"Ignoring {what} finished after disposal")
        return ActionResult(ActionStatus.OK)

    async def _emit_change(self) -> None:
        if self.on_change is None:
            return
        try:
            await self.on_change()
        except Exception as e:
            logger.error(f"Change callback failed: {e}")

    def _dialog(self, dialog: Optional[TaskDialog]) -> TaskDialog:
        dialog = dialog or self.dialog
        if dialog is None:
            raise RuntimeError("No task dialog configured")
        return dialog

    async def _notify_success(self, notifier: Optional[Notifier], title: str, message: str) -> None:
        try:
            await (notifier or self.notifier).success(title, message)
        except Exception as e:
            logger.error(f"Failed to show notification '{title}': {e}")

    async def _notify_error(self, notifier: Optional[Notifier], title: str, message: str) -> None:
        try:
            await (notifier or self.notifier).error(title, message)
        except Exception as e:
            logger.error(f"Failed to show notification '{title}': {e}")
