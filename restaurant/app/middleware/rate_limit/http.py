"""HTTP glue for admission control.

- ``RateLimit(endpoint)``: FastAPI dependency placed first on every write
  route. Rejections raise RateLimitExceededError, rendered as HTTP 429.
- ``release_on_success(request, session)``: called by a handler once its
  operation succeeded and its session committed, gives the slot back on
  endpoints that skip successful requests.
- ``DDoSGuardMiddleware``: always-on per-client flood guard ahead of routing.
"""

from typing import Iterable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant.app.exceptions import RateLimitExceededError
from restaurant.app.middleware.rate_limit.admission import AdmissionController
from restaurant.app.middleware.rate_limit.client import RequestMeta
from restaurant.app.middleware.rate_limit.models import Allowed, Rejected


def get_admission_controller(request: Request) -> AdmissionController:
    """Return the controller owned by the running application."""
    controller = getattr(request.app.state, "admission", None)
    if controller is None:
        raise RuntimeError("Admission controller not initialized on app.state")
    return controller


def rate_limit_response(rejection: Rejected) -> JSONResponse:
    """Render a rejection as HTTP 429."""
    return JSONResponse(
        status_code=429,
        content=rejection.to_response(),
        headers=rejection.headers(),
    )


class RateLimit:
    """FastAPI dependency enforcing an endpoint policy.

    Usage:
        @router.post("", dependencies=[Depends(RateLimit("reservations"))])
    """

    def __init__(self, endpoint: str = "general"):
        self.endpoint = endpoint

    async def __call__(self, request: Request, response: Response) -> Allowed:
        controller = get_admission_controller(request)
        user_id = getattr(request.state, "user_id", None)
        result = await controller.admit(self.endpoint, RequestMeta.from_request(request), user_id=user_id)

        if isinstance(result, Rejected):
            raise RateLimitExceededError(result)

        response.headers.update(result.headers())
        request.state.rate_limit = result
        return result


async def release_on_success(request: Request, session: Optional[AsyncSession] = None) -> bool:
    """Release the slot recorded for this request, if its policy allows.

    When the handler's session is passed it is committed first, so a request
    whose commit fails keeps its slot.
    """
    if session is not None:
        await session.commit()

    result: Optional[Allowed] = getattr(request.state, "rate_limit", None)
    if result is None:
        return False
    return await get_admission_controller(request).release(result.release_token)


class DDoSGuardMiddleware(BaseHTTPMiddleware):
    """Middleware applying the fixed per-client flood policy to all requests.

    Runs independently of the endpoint policies: either one can block.
    """

    def __init__(self, app, exempt_paths: Iterable[str] = ("/health",)):
        super().__init__(app)
        self.exempt_paths = frozenset(exempt_paths)

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.exempt_paths or request.method == "OPTIONS":
            return await call_next(request)

        controller = get_admission_controller(request)
        result = await controller.ddos_check(RequestMeta.from_request(request))
        if isinstance(result, Rejected):
            return rate_limit_response(result)

        return await call_next(request)
