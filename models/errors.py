"""Errors raised by the task store and the task list actions."""


class ValidationError(ValueError):
    """A required task field is blank or malformed. Raised before any store call."""


class StoreError(RuntimeError):
    """A Firestore call failed (network, permission or missing document)."""
