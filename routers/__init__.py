# routers/__init__.py

from fastapi import APIRouter

from .roles import router as roles_router
from .permissions import router as permissions_router
from .users import router as users_router
from .health import router as health_router


api_router = APIRouter()

# RBAC
api_router.include_router(roles_router)
api_router.include_router(permissions_router)
api_router.include_router(users_router)

# Health
api_router.include_router(health_router)

__all__ = ["api_router"]
