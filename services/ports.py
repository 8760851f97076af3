"""
Ports (interfaces) used by the task list controller.

The controller depends on Protocols instead of Firestore or Discord directly,
so the store and the dialogs can be swapped for fakes in tests.
"""
from typing import Any, Dict, List, Protocol

from models.form_result import FormResult
from models.task import Task


class TaskStore(Protocol):
    """CRUD surface over the tasks collection. Failures raise StoreError."""

    async def list_tasks(self) -> List[Task]: ...

    async def create_task(self, text: str, deadline: str) -> str: ...

    async def update_task_fields(self, task_id: str, fields: Dict[str, Any]) -> None: ...

    async def delete_task(self, task_id: str) -> None: ...


class TaskDialog(Protocol):
    """Input collaborator: the two-field task form and the yes/no confirmation."""

    async def prompt_task(self, title: str, text: str = "", deadline: str = "") -> FormResult: ...

    async def confirm(self, title: str, message: str) -> bool: ...


class Notifier(Protocol):
    """Informational success/error messages shown to the user."""

    async def success(self, title: str, message: str) -> None: ...

    async def error(self, title: str, message: str) -> None: ...
