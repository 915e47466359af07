from fastapi import APIRouter, Depends

from restaurant.app.middleware.auth import require_admin
from restaurant.app.middleware.rate_limit import RateLimit

# Admission runs before authentication, so failed logins count against the quota.
router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(RateLimit("admin")), Depends(require_admin)],
)

from . import catering, rate_limits, reservations, stats  # noqa: E402

router.include_router(reservations.router, prefix="/reservations", tags=["admin-reservations"])
router.include_router(catering.router, prefix="/catering", tags=["admin-catering"])
router.include_router(stats.router, prefix="/stats", tags=["admin-stats"])
router.include_router(rate_limits.router, prefix="/rate-limits", tags=["admin-rate-limits"])
