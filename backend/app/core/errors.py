"""Error taxonomy for the visibility filter.

Filter services catch every :class:`ScopeError` on lenient read paths and
degrade to an empty result; strict callers receive the exception itself.
"""


class ScopeError(Exception):
    """Base class for failures while computing a user's visible scope."""


class CallerError(ScopeError):
    """The request itself is unusable (no user, unknown user)."""


class MissingUserIdError(CallerError):
    def __init__(self) -> None:
        super().__init__("missing required userId")


class UnknownUserError(CallerError):
    def __init__(self, user_id: str) -> None:
        super().__init__(f"user {user_id!r} has no home department")
        self.user_id = user_id


class DepartmentNotFoundError(ScopeError, LookupError):
    def __init__(self, department_id: int) -> None:
        super().__init__(f"department {department_id} does not exist")
        self.department_id = department_id


class StructuralIntegrityError(ScopeError):
    """The department tree contains a cycle."""

    def __init__(self, message: str, path: list[int] | None = None) -> None:
        super().__init__(message)
        self.path = list(path or [])


class TransientInfrastructureError(ScopeError):
    """A read against the persistence layer failed."""

    def __init__(self, operation: str, cause: BaseException | None = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{operation} failed{detail}")
        self.operation = operation
