"""Admin view of the admission controller."""

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Query, Request

from restaurant.app.exceptions import ValidationFailedError
from restaurant.app.middleware.rate_limit import RequestMeta, get_admission_controller

router = APIRouter()


@router.get("")
async def rate_limit_stats(request: Request) -> dict:
    """Store-wide counters per endpoint."""
    stats = await get_admission_controller(request).stats()
    return asdict(stats)


@router.get("/status")
async def rate_limit_status(
    request: Request,
    endpoint: str = Query(...),
    identifier: Optional[str] = Query(None),
) -> dict:
    """Standing of one client (the caller when omitted) on one endpoint."""
    controller = get_admission_controller(request)
    if endpoint not in controller.policies.names():
        raise ValidationFailedError(f"Unknown endpoint: {endpoint}")

    if identifier:
        status = await controller.status(endpoint, identifier=identifier)
    else:
        status = await controller.status(endpoint, meta=RequestMeta.from_request(request))
    return asdict(status)


@router.delete("/{endpoint}/{identifier}")
async def reset_rate_limit(request: Request, endpoint: str, identifier: str) -> dict:
    """Forget a client's recorded requests on an endpoint."""
    await get_admission_controller(request).reset(identifier, endpoint)
    return {"success": True, "endpoint": endpoint, "identifier": identifier}
