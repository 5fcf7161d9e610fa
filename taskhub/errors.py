# taskhub/errors.py

"""
Typed failures raised by the services.

    TaskHubError
    ├── NotFoundError
    │   └── AccessDeniedError     (row exists but belongs to another user)
    ├── AlreadyCompletedError
    ├── NotCompletedError
    ├── AlreadyPromotedError
    ├── CannotPromoteError
    ├── ValidationError
    └── TransientStoreError       (retryable infrastructure failure)

AccessDeniedError is a NotFoundError so the web layer answers both with the
same 404 and never reveals that somebody else's row exists.
"""

from __future__ import annotations

from typing import Any, Dict


class TaskHubError(Exception):
    status_code = 400

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context: Dict[str, Any] = context
        self.error_type = self.__class__.__name__
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.error_type,
            "message": self.message,
            "context": {k: str(v) for k, v in self.context.items()},
        }


class NotFoundError(TaskHubError):
    status_code = 404


class AccessDeniedError(NotFoundError):
    pass


class AlreadyCompletedError(TaskHubError):
    pass


class NotCompletedError(TaskHubError):
    pass


class AlreadyPromotedError(TaskHubError):
    pass


class CannotPromoteError(TaskHubError):
    pass


class ValidationError(TaskHubError):
    pass


class TransientStoreError(TaskHubError):
    status_code = 503
