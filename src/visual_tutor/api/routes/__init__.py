"""
API route handlers.
"""

from visual_tutor.api.routes import health, retention, tutor, visual

__all__ = [
    "health",
    "retention",
    "tutor",
    "visual",
]
