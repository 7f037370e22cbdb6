"""
Visual Tutor LLM Module.

Provides the text-generation client used for explanations and tutor answers.
"""

__all__ = ["LLMClient", "LLMConfig", "LLMProvider", "LLMRequest", "LLMResponse", "load_llm_config"]

from visual_tutor.llm.client import (
    LLMClient,
    LLMConfig,
    LLMProvider,
    LLMRequest,
    LLMResponse,
    load_llm_config,
)
