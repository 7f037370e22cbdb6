"""
Retention sweep endpoint.

Called by an external scheduler; deletes artifacts older than the
retention window.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from visual_tutor.api.dependencies import get_sweeper
from visual_tutor.retention import RetentionSweeper

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/sweep", response_class=PlainTextResponse)
def sweep_expired_artifacts(
    sweeper: RetentionSweeper = Depends(get_sweeper),
) -> PlainTextResponse:
    """Delete expired artifacts and their uploaded images."""
    result = sweeper.sweep()
    if not result.success:
        logger.error(f"Retention sweep failed: {'; '.join(result.errors)}")
        return PlainTextResponse("Error", status_code=500)
    return PlainTextResponse("Old images deleted successfully", status_code=200)
