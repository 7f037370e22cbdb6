"""
Visual Tutor - educational image generation with explanations.

Turns a learner's subject and topic into an illustrative image from the
first working provider in a configurable chain, paired with a written
explanation.
"""

__version__ = "0.1.0"

# API module is available but not exported by default
# Import explicitly: from visual_tutor.api import create_app

__all__ = []
