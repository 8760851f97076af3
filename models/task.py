"""Task model for the to-do bot."""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any


class TaskState(str, Enum):
    """Display status of a task, derived from its fields and the clock."""

    ACTIVE = "active"
    EXPIRED = "expired"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Task:
    """A to-do item stored as one document in the tasks collection.

    Attributes:
        id: Document id assigned by Firestore on creation
        text: The task label
        completed: Whether the task was marked as done
        deadline: ISO-8601 date/time string
    """
    id: str
    text: str
    completed: bool = False
    deadline: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert the task to a dictionary for storage.

        The id is not part of the payload; it is the document id.

        Returns:
            dict: The task fields as stored in Firestore
        """
        return {
            'text': self.text,
            'completed': self.completed,
            'deadline': self.deadline
        }

    @classmethod
    def from_dict(cls, task_id: str, data: Dict[str, Any]) -> 'Task':
        """Create a task from a Firestore document.

        Args:
            task_id: The document id
            data: The document fields

        Returns:
            Task: A new task instance
        """
        return cls(
            id=task_id,
            text=str(data.get('text') or ''),
            completed=bool(data.get('completed', False)),
            deadline=str(data.get('deadline') or '')
        )
