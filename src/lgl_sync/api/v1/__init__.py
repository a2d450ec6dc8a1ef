from fastapi import APIRouter

from .endpoints import email_blocking, health, renewals, sync

router = APIRouter()
router.include_router(health.router, tags=["Health"])
router.include_router(sync.router)
router.include_router(renewals.router)
router.include_router(email_blocking.router)
