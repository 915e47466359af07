"""Guest feedback submission."""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request, status

from restaurant.app.db import crud
from restaurant.app.db.dependencies import SessionDep
from restaurant.app.exceptions import ValidationFailedError
from restaurant.app.middleware.rate_limit import RateLimit, release_on_success
from restaurant.app.services.sanitization import sanitize_feedback_data
from restaurant.app.services.validation import validate_feedback_data

router = APIRouter(prefix="/api/feedback", tags=["feedback"])


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(RateLimit("feedback"))],
)
async def submit_feedback(
    request: Request,
    session: SessionDep,
    data: Dict[str, Any] = Body(...),
) -> dict:
    """Store feedback. Accepted submissions are not counted against the quota."""
    result = validate_feedback_data(data)
    if not result.is_valid:
        raise ValidationFailedError("Invalid feedback data", result.errors)

    feedback = await crud.create_feedback(session, **sanitize_feedback_data(data))
    await release_on_success(request, session)

    return {
        "success": True,
        "message": "Thank you for your feedback",
        "feedbackId": feedback.id,
    }
