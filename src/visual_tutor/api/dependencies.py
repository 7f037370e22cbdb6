"""
Route dependencies.

Services are created once by the app factory and kept on ``app.state``;
these helpers hand them to route functions via ``Depends``.
"""

from fastapi import Request

from visual_tutor.retention import RetentionSweeper
from visual_tutor.service import TutorService, VisualExplanationService


def get_visual_service(request: Request) -> VisualExplanationService:
    return request.app.state.visual_service


def get_tutor_service(request: Request) -> TutorService:
    return request.app.state.tutor_service


def get_sweeper(request: Request) -> RetentionSweeper:
    return request.app.state.sweeper
