"""Result of the add/edit task form."""
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Cancelled:
    """The user dismissed the form or it timed out."""


@dataclass(frozen=True)
class Submitted:
    """The user submitted the form with these raw values."""
    text: str
    deadline: str


FormResult = Union[Cancelled, Submitted]
