from fastapi import APIRouter

from app.api.routes import auth, departments, filters, users


api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(filters.router)
api_router.include_router(departments.router)
