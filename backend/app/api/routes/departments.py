import logging

from fastapi import APIRouter, Depends, HTTPException

from app.core.deps import get_current_user, get_repository, get_scope_calculator
from app.core.errors import DepartmentNotFoundError, ScopeError, StructuralIntegrityError
from app.core.logging import log_event
from app.db.models import User
from app.db.repository import ScopeRepository
from app.db.schemas import DepartmentOut
from app.services.access import AccessScopeCalculator
from app.services.filters import dedupe_and_sort
from app.services.hierarchy import DepartmentGraph, HierarchyResolver


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/departments", tags=["departments"])


@router.get("/{department_id}/hierarchy", response_model=list[DepartmentOut])
def department_hierarchy(
    department_id: int,
    repository: ScopeRepository = Depends(get_repository),
    calculator: AccessScopeCalculator = Depends(get_scope_calculator),
    current_user: User = Depends(get_current_user),
):
    """Descendants of a department, limited to what the caller may see.

    Unknown and out-of-scope ids both answer 403.
    """
    try:
        graph = DepartmentGraph.from_rows(repository.department_rows())
        calculator.graph = graph
        visible = calculator.visible_departments(current_user.id)
        if department_id not in visible:
            raise HTTPException(status_code=403, detail="Forbidden")

        closure = HierarchyResolver(graph).closure(department_id) & visible
        departments = repository.departments_by_ids(closure)
    except DepartmentNotFoundError:
        raise HTTPException(status_code=404, detail="Department not found")
    except StructuralIntegrityError as exc:
        log_event(logger, logging.ERROR, "department tree contains a cycle", department_id=department_id, cycle=exc.path)
        raise HTTPException(status_code=500, detail="Department hierarchy is inconsistent")
    except ScopeError as exc:
        log_event(logger, logging.ERROR, "department hierarchy failed", user_id=current_user.id, error=str(exc))
        raise HTTPException(status_code=503, detail="Department hierarchy unavailable")

    return dedupe_and_sort(departments)
