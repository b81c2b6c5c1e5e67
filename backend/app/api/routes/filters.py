from fastapi import APIRouter, Depends, Query

from app.core.deps import get_current_user, get_department_filter, get_project_filter, get_task_filter
from app.db.models import User
from app.db.schemas import DepartmentOut, ProjectOut, TaskOut
from app.services.filters import DepartmentFilterService, ProjectFilterService, TaskFilterService


router = APIRouter(prefix="/filters", tags=["filters"])

# Ids stay raw strings here; the filter services drop invalid ones with a logged warning.


@router.get("/departments", response_model=list[DepartmentOut])
def filter_departments(
    project_ids: list[str] | None = Query(default=None),
    service: DepartmentFilterService = Depends(get_department_filter),
    current_user: User = Depends(get_current_user),
):
    return service.filter_departments(current_user.id, project_ids)


@router.get("/projects", response_model=list[ProjectOut])
def filter_projects(
    department_ids: list[str] | None = Query(default=None),
    service: ProjectFilterService = Depends(get_project_filter),
    current_user: User = Depends(get_current_user),
):
    return service.filter_projects(current_user.id, department_ids)


@router.get("/tasks", response_model=list[TaskOut])
def filter_tasks(
    department_ids: list[str] | None = Query(default=None),
    project_ids: list[str] | None = Query(default=None),
    service: TaskFilterService = Depends(get_task_filter),
    current_user: User = Depends(get_current_user),
):
    return service.filter_tasks(current_user.id, department_ids, project_ids)
