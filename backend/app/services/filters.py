"""Department / project / task pickers scoped to what a user may see.

Each call is independent: it derives the caller's visible departments, narrows
them with the optional id filter through the project-department junction and
returns rows deduplicated by id and sorted by name.

Read paths default to a lenient failure policy: any :class:`ScopeError` is
logged with the user id and an empty list is returned, so the UI shows "no
results" rather than an error. Pass ``strict=True`` (or construct the service
with ``strict=True``) when the caller has to tell a failure apart from an
empty scope; the original exception is then re-raised after logging.
"""
import logging
import math
import unicodedata
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from app.core.errors import ScopeError, StructuralIntegrityError
from app.core.logging import log_event
from app.db.models import Department, Project, Task
from app.db.repository import ScopeRepository
from app.services.access import AccessScopeCalculator


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Largest value a signed 64-bit id column can hold.
MAX_FILTER_ID = 2**63 - 1


@dataclass(frozen=True)
class FilterIds:
    valid: tuple[int, ...]
    invalid: tuple[Any, ...]


def _in_id_range(number: int) -> int | None:
    return number if 0 < number <= MAX_FILTER_ID else None


def coerce_filter_id(value: Any) -> int | None:
    """Return ``value`` as a positive int that fits a BIGINT column, or ``None``."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return _in_id_range(value)
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return _in_id_range(int(value))
        return None
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdigit():
            return _in_id_range(int(text))
    return None


def validate_filter_ids(
    values: Iterable[Any],
    *,
    field: str,
    user_id: str | None = None,
    log: logging.Logger | None = None,
) -> FilterIds:
    valid: dict[int, None] = {}
    invalid: list[Any] = []
    for value in values:
        number = coerce_filter_id(value)
        if number is None:
            invalid.append(value)
        else:
            valid.setdefault(number)

    result = FilterIds(valid=tuple(valid), invalid=tuple(invalid))
    if result.invalid:
        log_event(
            log or logger,
            logging.WARNING,
            f"dropped invalid {field}",
            field=field,
            user_id=user_id,
            valid=list(result.valid),
            invalid=[repr(item) for item in result.invalid],
        )
    return result


def name_sort_key(name: str) -> tuple[str, str]:
    """Case-insensitive, accent-insensitive key; ties fall back to the raw name."""
    decomposed = unicodedata.normalize("NFKD", name or "")
    folded = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()
    return folded, name or ""


def dedupe_and_sort(items: Iterable[T], attr: str = "name") -> list[T]:
    unique: dict[Any, T] = {}
    for item in items:
        unique.setdefault(item.id, item)
    return sorted(unique.values(), key=lambda item: (name_sort_key(getattr(item, attr)), item.id))


class _ScopedFilter:
    def __init__(
        self,
        repository: ScopeRepository,
        calculator: AccessScopeCalculator | None = None,
        log: logging.Logger | None = None,
        strict: bool = False,
    ) -> None:
        self.repository = repository
        self.calculator = calculator or AccessScopeCalculator(repository)
        self.logger = log or logger
        self.strict = strict

    def _run(self, operation: str, user_id: Any, strict: bool | None, compute: Callable[[str], list[T]]) -> list[T]:
        if not isinstance(user_id, str) or not user_id.strip():
            log_event(self.logger, logging.WARNING, "missing required userId", operation=operation)
            return []

        user_id = user_id.strip()
        strict = self.strict if strict is None else strict
        try:
            return compute(user_id)
        except StructuralIntegrityError as exc:
            log_event(
                self.logger,
                logging.ERROR,
                "department tree contains a cycle",
                operation=operation,
                user_id=user_id,
                error=str(exc),
                cycle=exc.path,
            )
            if strict:
                raise
            return []
        except ScopeError as exc:
            log_event(
                self.logger,
                logging.ERROR,
                f"{operation} failed",
                operation=operation,
                user_id=user_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            if strict:
                raise
            return []

    def _validated(self, values: Sequence[Any] | None, field: str, user_id: str) -> FilterIds | None:
        """``None`` means no filter was supplied."""
        if values is None:
            return None
        values = list(values)
        if not values:
            return None
        return validate_filter_ids(values, field=field, user_id=user_id, log=self.logger)


class DepartmentFilterService(_ScopedFilter):
    def filter_departments(
        self,
        user_id: str | None,
        project_ids: Sequence[Any] | None = None,
        *,
        strict: bool | None = None,
    ) -> list[Department]:
        def compute(uid: str) -> list[Department]:
            projects = self._validated(project_ids, "project_ids", uid)
            if projects is not None and not projects.valid:
                return []

            visible = self.calculator.visible_departments(uid)
            if projects is None:
                wanted = set(visible)
            else:
                linked = {
                    department_id
                    for _, department_id in self.repository.project_department_links(project_ids=projects.valid)
                }
                wanted = visible & linked

            return dedupe_and_sort(self.repository.departments_by_ids(wanted))

        return self._run("filter_departments", user_id, strict, compute)


class ProjectFilterService(_ScopedFilter):
    def filter_projects(
        self,
        user_id: str | None,
        department_ids: Sequence[Any] | None = None,
        *,
        strict: bool | None = None,
    ) -> list[Project]:
        def compute(uid: str) -> list[Project]:
            departments = self._validated(department_ids, "department_ids", uid)
            if departments is not None and not departments.valid:
                return []

            visible = self.calculator.visible_departments(uid)
            wanted = set(visible) if departments is None else visible & set(departments.valid)
            if not wanted:
                return []

            linked = {
                project_id for project_id, _ in self.repository.project_department_links(department_ids=wanted)
            }
            projects = self.repository.projects_by_ids(linked)
            return dedupe_and_sort(project for project in projects if not project.is_archived)

        return self._run("filter_projects", user_id, strict, compute)


class TaskFilterService(_ScopedFilter):
    """Tasks with at least one assignee whose home department is visible.

    Tasks that are archived, or that belong to an archived project, never appear.
    """

    def filter_tasks(
        self,
        user_id: str | None,
        department_ids: Sequence[Any] | None = None,
        project_ids: Sequence[Any] | None = None,
        *,
        strict: bool | None = None,
    ) -> list[Task]:
        def compute(uid: str) -> list[Task]:
            departments = self._validated(department_ids, "department_ids", uid)
            projects = self._validated(project_ids, "project_ids", uid)
            if departments is not None and not departments.valid:
                return []
            if projects is not None and not projects.valid:
                return []

            visible = self.calculator.visible_departments(uid)
            wanted = set(visible) if departments is None else visible & set(departments.valid)

            tasks = (task for task, _ in self.repository.tasks_for_assignee_departments(wanted))
            if projects is not None:
                allowed_projects = set(projects.valid)
                tasks = (task for task in tasks if task.project_id in allowed_projects)
            return dedupe_and_sort((task for task in tasks if not task.is_archived), attr="title")

        return self._run("filter_tasks", user_id, strict, compute)
