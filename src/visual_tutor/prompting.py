"""
Prompt composition for image, explanation and tutor requests.

Every function here is pure: the same inputs always produce the same
strings, so whichever provider handles a request sees an identical prompt.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ExplanationPrompt:
    """System and user messages for the explanation call."""

    system: str
    user: str


@dataclass(frozen=True)
class ComposedPrompts:
    """Both prompts derived from one request."""

    image_prompt: str
    explanation: ExplanationPrompt


def compose_image_prompt(subject: str, topic: str, description: str = "") -> str:
    """Build the image-generation prompt."""
    details = f"Additional details: {description}. " if description else ""
    return (
        f"Create an educational diagram or illustration about {topic} "
        f"in the context of {subject}. {details}"
        "Make it visually clear, educational, and suitable for learning. "
        "Style: clean, modern educational illustration with clear labels and "
        "visual elements that explain the concept effectively."
    )


def compose_explanation_prompt(
    subject: str, topic: str, description: str = ""
) -> ExplanationPrompt:
    """Build the structured explanation prompt."""
    system = (
        f"You are an expert educator specializing in {subject}. Provide "
        "comprehensive, clear explanations that help students understand "
        "complex concepts through visual learning."
    )
    context = f"Additional context: {description}. " if description else ""
    user = (
        f'Provide a detailed explanation about "{topic}" in the context of {subject}. '
        f"{context}\n\n"
        "Please structure your response with:\n"
        "1. A clear definition or overview\n"
        "2. Key components or elements\n"
        "3. How it works or why it's important\n"
        "4. Real-world applications or examples\n"
        "5. Common misconceptions or things to remember\n\n"
        "Make it educational, engaging, and suitable for visual learning. "
        "The explanation should complement a visual diagram or illustration."
    )
    return ExplanationPrompt(system=system, user=user)


def compose_prompts(subject: str, topic: str, description: str = "") -> ComposedPrompts:
    """Build the image prompt and explanation prompt for one request."""
    return ComposedPrompts(
        image_prompt=compose_image_prompt(subject, topic, description),
        explanation=compose_explanation_prompt(subject, topic, description),
    )


def fallback_explanation(subject: str, topic: str) -> str:
    """Fixed explanation used when text generation is unavailable."""
    return f"This image shows an educational illustration about {topic} in the context of {subject}."


def compose_tutor_prompt(subject: str, question: str) -> str:
    """Build the single-turn tutoring prompt."""
    return (
        f"You are an expert AI tutor specializing in {subject}. "
        "A student has asked you the following question:\n\n"
        f'"{question}"\n\n'
        "Please provide a clear, educational response that:\n"
        "1. Directly answers their question\n"
        "2. Explains the concepts in an easy-to-understand way\n"
        "3. Provides examples or analogies when helpful\n"
        "4. Encourages further learning\n"
        f"5. Is appropriate for a student learning {subject}\n\n"
        "Keep your response informative but concise (around 200-400 words)."
    )
