import logging

from fastapi import APIRouter, Depends, HTTPException

from app.core.deps import get_current_user, get_repository
from app.core.errors import ScopeError
from app.core.logging import log_event
from app.db.models import User
from app.db.repository import ScopeRepository
from app.db.schemas import RolesOut


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me/roles", response_model=RolesOut)
def my_roles(
    repository: ScopeRepository = Depends(get_repository),
    current_user: User = Depends(get_current_user),
):
    try:
        roles = repository.roles(current_user.id)
    except ScopeError as exc:
        log_event(logger, logging.ERROR, "role lookup failed", user_id=current_user.id, error=str(exc))
        raise HTTPException(status_code=503, detail="Roles unavailable")

    return RolesOut(user_id=current_user.id, roles=sorted(roles))
