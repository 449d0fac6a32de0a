"""API v1 routes."""

from fastapi import APIRouter

from cashflowops.api.v1 import alerts, auth, billing, health, profile, realtime, strategies, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(profile.router, prefix="/profile", tags=["profile"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(alerts.router, prefix="/alerts", tags=["alerts"])
router.include_router(strategies.router, prefix="/strategies", tags=["strategies"])
router.include_router(billing.router, prefix="/billing", tags=["billing"])
router.include_router(realtime.router, prefix="/ws", tags=["realtime"])
