"""Read-only queries the visibility filter depends on.

The repository never writes. Any ``SQLAlchemyError`` raised by a read is
re-raised as :class:`TransientInfrastructureError` so that callers deal with a
single failure type regardless of the driver underneath.
"""
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from sqlalchemy import and_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from app.core.errors import TransientInfrastructureError
from app.db.models import Department, Project, ProjectDepartment, Task, TaskAssignment, User, UserRole


@contextmanager
def _reading(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise TransientInfrastructureError(operation, exc) from exc


class ScopeRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def home_department(self, user_id: str) -> int | None:
        with _reading("home_department"):
            return self.db.execute(select(User.department_id).where(User.id == user_id)).scalar_one_or_none()

    def roles(self, user_id: str) -> set[str]:
        with _reading("roles"):
            return set(self.db.execute(select(UserRole.role).where(UserRole.user_id == user_id)).scalars())

    def department_rows(self) -> list[Department]:
        with _reading("department_rows"):
            return list(self.db.execute(select(Department)).scalars())

    def departments_by_ids(self, ids: Iterable[int]) -> list[Department]:
        ids = set(ids)
        if not ids:
            return []
        with _reading("departments_by_ids"):
            return list(self.db.execute(select(Department).where(Department.id.in_(ids))).scalars())

    def co_assignee_departments(self, user_id: str) -> set[int]:
        mine = aliased(TaskAssignment)
        theirs = aliased(TaskAssignment)
        stmt = (
            select(User.department_id)
            .select_from(mine)
            .join(theirs, and_(theirs.task_id == mine.task_id, theirs.assignee_id != mine.assignee_id))
            .join(User, User.id == theirs.assignee_id)
            .where(mine.assignee_id == user_id, User.department_id.is_not(None))
            .distinct()
        )
        with _reading("co_assignee_departments"):
            return set(self.db.execute(stmt).scalars())

    def project_department_links(
        self,
        project_ids: Iterable[int] | None = None,
        department_ids: Iterable[int] | None = None,
    ) -> list[tuple[int, int]]:
        stmt = select(ProjectDepartment.project_id, ProjectDepartment.department_id)
        if project_ids is not None:
            stmt = stmt.where(ProjectDepartment.project_id.in_(set(project_ids)))
        if department_ids is not None:
            stmt = stmt.where(ProjectDepartment.department_id.in_(set(department_ids)))
        with _reading("project_department_links"):
            return [(row.project_id, row.department_id) for row in self.db.execute(stmt)]

    def projects_by_ids(self, ids: Iterable[int], include_archived: bool = False) -> list[Project]:
        ids = set(ids)
        if not ids:
            return []
        stmt = select(Project).where(Project.id.in_(ids))
        if not include_archived:
            stmt = stmt.where(Project.is_archived.is_(False))
        with _reading("projects_by_ids"):
            return list(self.db.execute(stmt).scalars())

    def tasks_for_assignee_departments(self, department_ids: Iterable[int]) -> list[tuple[Task, int]]:
        department_ids = set(department_ids)
        if not department_ids:
            return []
        stmt = (
            select(Task, User.department_id)
            .join(TaskAssignment, TaskAssignment.task_id == Task.id)
            .join(User, User.id == TaskAssignment.assignee_id)
            .join(Project, Project.id == Task.project_id)
            .where(
                User.department_id.in_(department_ids),
                Task.is_archived.is_(False),
                Project.is_archived.is_(False),
            )
        )
        with _reading("tasks_for_assignee_departments"):
            return [(row[0], row[1]) for row in self.db.execute(stmt)]
