from fastapi import APIRouter
from .auth import router as auth_router
from .farms import router as farms_router
from .rows import router as rows_router
from .hutches import router as hutches_router
from .rabbits import router as rabbits_router
from .breeding import router as breeding_router
from .earnings import router as earnings_router
from .alerts import router as alerts_router
from .migrate import router as migrate_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(farms_router)
api_router.include_router(rows_router)
api_router.include_router(hutches_router)
api_router.include_router(rabbits_router)
api_router.include_router(breeding_router)
api_router.include_router(earnings_router)
api_router.include_router(alerts_router)
api_router.include_router(migrate_router)
