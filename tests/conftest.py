# tests/conftest.py

from __future__ import annotations

import datetime
import os

# Settings are read at import time; pin them before any project module loads.
os.environ["TODO_TIMEZONE"] = "UTC"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
import pytz

from models.task import Task
from services.task_list_controller import TaskListController

from .fakes import InMemoryTaskStore, RecordingNotifier, ScriptedDialog

NOW = datetime.datetime(2030, 1, 1, 12, 0, 0, tzinfo=pytz.UTC)


@pytest.fixture()
def seed_tasks() -> list[Task]:
    return [
        Task(id="a", text="Write report", completed=False, deadline="2099-01-01T00:00"),
        Task(id="b", text="Pay rent", completed=True, deadline="2020-05-01T09:30"),
    ]


@pytest.fixture()
def store(seed_tasks: list[Task]) -> InMemoryTaskStore:
    return InMemoryTaskStore(seed_tasks)


@pytest.fixture()
def dialog() -> ScriptedDialog:
    return ScriptedDialog()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def controller(
    store: InMemoryTaskStore,
    dialog: ScriptedDialog,
    notifier: RecordingNotifier,
    seed_tasks: list[Task],
) -> TaskListController:
    """
    Controller whose in-memory list already matches the store,
    as if load() had run on startup.
    """
    ctrl = TaskListController(store, dialog=dialog, notifier=notifier, tz=pytz.UTC)
    ctrl.tasks = list(seed_tasks)
    return ctrl
