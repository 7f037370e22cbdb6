"""
Visual Tutor API Module.

REST API for visual explanations, tutor answers and retention sweeps.
"""

from visual_tutor.api.app import create_app

__all__ = ["create_app"]
