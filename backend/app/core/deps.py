from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.security import decode_token
from app.db.models import User
from app.db.repository import ScopeRepository
from app.db.session import get_db
from app.services.access import AccessScopeCalculator
from app.services.filters import DepartmentFilterService, ProjectFilterService, TaskFilterService


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

__all__ = [
    "get_current_user",
    "get_db",
    "get_department_filter",
    "get_project_filter",
    "get_repository",
    "get_scope_calculator",
    "get_task_filter",
]


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    username = decode_token(token)
    if not username:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = db.query(User).filter(User.username == username).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown user")
    return user


def get_repository(db: Session = Depends(get_db)) -> ScopeRepository:
    return ScopeRepository(db)


def get_scope_calculator(repository: ScopeRepository = Depends(get_repository)) -> AccessScopeCalculator:
    return AccessScopeCalculator(repository)


def get_department_filter(repository: ScopeRepository = Depends(get_repository)) -> DepartmentFilterService:
    return DepartmentFilterService(repository, strict=get_settings().filter_strict_default)


def get_project_filter(repository: ScopeRepository = Depends(get_repository)) -> ProjectFilterService:
    return ProjectFilterService(repository, strict=get_settings().filter_strict_default)


def get_task_filter(repository: ScopeRepository = Depends(get_repository)) -> TaskFilterService:
    return TaskFilterService(repository, strict=get_settings().filter_strict_default)
