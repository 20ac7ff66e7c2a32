"""Error taxonomy shared by the services and the HTTP layer."""

from typing import List, Optional


class TaskboardError(Exception):
    """Base class. `kind` is the stable error name returned to clients."""

    kind = "error"
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(TaskboardError):
    """Bad or missing input (empty title, malformed or unregistered assignee)."""

    kind = "validation_error"
    status_code = 400

    def __init__(self, detail: str, invalid: Optional[List[str]] = None):
        super().__init__(detail)
        self.invalid = invalid or []


class Forbidden(TaskboardError):
    kind = "forbidden"
    status_code = 403


class NotFound(TaskboardError):
    kind = "not_found"
    status_code = 404


class SweepInProgress(TaskboardError):
    kind = "sweep_in_progress"
    status_code = 409


class DependencyFailure(TaskboardError):
    """The store or an external collaborator failed on a primary write."""

    kind = "dependency_failure"
    status_code = 503
