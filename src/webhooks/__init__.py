from .retell import router as retell_router
from fastapi import APIRouter

# Combine routers
router = APIRouter()
router.include_router(retell_router)

__all__ = ["router"]
