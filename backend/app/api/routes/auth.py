import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.deps import get_current_user
from app.core.logging import log_event
from app.core.security import create_access_token, verify_password
from app.db.models import User
from app.db.schemas import LoginRequest, TokenResponse, UserOut
from app.db.session import get_db


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.username == payload.username).first()
    if not user or not verify_password(payload.password, user.password_hash):
        log_event(logger, logging.WARNING, "login rejected", username=payload.username, known_user=user is not None)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    if user.department_id is None:
        # The account can sign in, but every filter will come back empty.
        log_event(logger, logging.WARNING, "login without home department", user_id=user.id)

    token = create_access_token(subject=user.username)
    return TokenResponse(access_token=token)


@router.get("/me", response_model=UserOut)
def me(current_user: User = Depends(get_current_user)):
    return current_user
