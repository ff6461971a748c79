"""
Rule-based prompt insights.

Deterministic reading of the raw prompt that does not need the query
analyzer: an intent description, a cleaned-up or expanded prompt for the
asset analyzer, improvement hints, a 1-10 clarity score and content flags.
"""

import re
from typing import Any, Dict, List, Optional

from .state_machine import OutputIntent, PromptInsights, RequestOptions

VAGUE_MARKERS = ("build", "biul")
SPECIFIC_WORDS = ("style", "color", "mood", "tone", "scene", "action", "character", "setting")

EXPANDED_PROMPTS = {
    OutputIntent.VIDEO: (
        "Create an engaging video content that captures attention and tells a compelling story. "
        "Focus on visual appeal, smooth transitions, and professional quality that works well "
        "for social media platforms."
    ),
    OutputIntent.IMAGE: (
        "Create a visually striking image with strong composition, appealing colors, and "
        "professional quality that stands out on social media platforms."
    ),
    OutputIntent.AUDIO: (
        "Create high-quality audio content with clear sound, engaging rhythm, and professional "
        "production value suitable for various platforms."
    ),
}

_DISALLOWED = re.compile(r"[^\w\s.,!?-]")


def _number(value: Optional[float]) -> str:
    if value is None:
        return ""
    return str(int(value)) if float(value).is_integer() else str(value)


def _any(text: str, *words: str) -> bool:
    return any(word in text for word in words)


def describe_intent(prompt: str, intent: OutputIntent, options: RequestOptions) -> str:
    duration = f"{_number(options.duration_seconds)}s" if options.duration_seconds else ""
    aspect_ratio = options.aspect_ratio or "16:9"
    platform = options.platform or "social"
    lower = prompt.lower()

    if intent is OutputIntent.VIDEO:
        if _any(lower, "trailer", "promo"):
            kind, verb = "video trailer/promo", "based on"
        elif _any(lower, "tutorial", "how to"):
            kind, verb = "tutorial video", "explaining"
        elif _any(lower, "story", "narrative"):
            kind, verb = "narrative video story", "about"
        else:
            kind, verb = "video content", "featuring"
        return f'Create a {duration} {aspect_ratio} {kind} for {platform} platform {verb}: "{prompt}"'

    if intent is OutputIntent.IMAGE:
        if _any(lower, "logo", "brand"):
            kind, verb = "logo/brand image", "representing"
        elif _any(lower, "poster", "banner"):
            kind, verb = "poster/banner image", "showcasing"
        elif _any(lower, "illustration", "art"):
            kind, verb = "illustration/artwork", "depicting"
        else:
            kind, verb = "image", "featuring"
        return f'Create a {aspect_ratio} {kind} for {platform} platform {verb}: "{prompt}"'

    if intent is OutputIntent.AUDIO:
        return f'Create audio content for {platform} platform based on: "{prompt}"'

    return f'Create {intent.value} content for {platform} platform based on: "{prompt}"'


def reformulate(prompt: str, intent: OutputIntent) -> str:
    """Expand vague prompts, otherwise strip stray symbols"""
    if len(prompt) < 10 or _any(prompt.lower(), *VAGUE_MARKERS):
        expanded = EXPANDED_PROMPTS.get(intent)
        if expanded:
            return expanded
    return _DISALLOWED.sub("", prompt).strip() or f"Create {intent.value} content"


def suggest_improvements(prompt: str, intent: OutputIntent) -> List[str]:
    lower = prompt.lower()
    improvements = []

    if len(prompt) < 10:
        improvements.append("Add more specific details about what you want to create")
    if not _any(lower, "style", "mood", "tone"):
        improvements.append("Specify the style, mood, or tone you prefer")
    if intent is OutputIntent.VIDEO and not _any(lower, "scene", "action"):
        improvements.append("Describe the scenes or actions you want to include")
    if intent is OutputIntent.IMAGE and not _any(lower, "color", "composition"):
        improvements.append("Mention preferred colors or composition style")

    return improvements or ["Prompt is clear and detailed"]


def clarity_score(prompt: str) -> int:
    lower = prompt.lower()
    score = 5
    if len(prompt) > 20:
        score += 2
    if len(prompt) > 50:
        score += 1
    score += sum(1 for word in SPECIFIC_WORDS if word in lower)
    if len(prompt) < 10:
        score -= 3
    if _any(lower, *VAGUE_MARKERS):
        score -= 2
    return max(1, min(10, score))


def content_category(prompt: str) -> str:
    lower = prompt.lower()
    if _any(lower, "marketing", "promo", "advertisement"):
        return "marketing"
    if _any(lower, "educational", "tutorial", "course"):
        return "educational"
    if _any(lower, "business", "presentation", "report"):
        return "business"
    if _any(lower, "entertainment", "fun", "creative"):
        return "entertainment"
    if _any(lower, "news", "update", "announcement"):
        return "informational"
    return "general"


def _complexity(prompt: str) -> str:
    length = len(prompt)
    if length < 10:
        return "very_simple"
    if length < 30:
        return "simple"
    if length < 100:
        return "moderate"
    return "complex"


def analyze_content_type(prompt: str) -> Dict[str, Any]:
    lower = prompt.lower()
    return {
        "needs_explanation": _any(lower, "explain", "what is", "how to", "why", "tutorial", "guide"),
        "needs_charts": _any(lower, "chart", "graph", "data", "statistics", "analytics", "visualization"),
        "needs_diagrams": _any(lower, "diagram", "flowchart", "process", "workflow", "architecture"),
        "needs_educational_content": _any(lower, "learn", "teach", "education", "training", "course"),
        "content_complexity": _complexity(prompt),
        "requires_visual_aids": _any(lower, "show", "demonstrate", "illustrate", "visual", "example"),
        "is_instructional": _any(lower, "step", "instruction", "procedure", "method"),
        "needs_data_visualization": _any(lower, "compare", "analysis", "trend", "pattern"),
        "requires_interactive_elements": _any(lower, "interactive", "click", "hover", "animation"),
        "content_category": content_category(prompt),
    }


def analyze_prompt(prompt: str, intent: OutputIntent, options: RequestOptions) -> PromptInsights:
    return PromptInsights(
        user_intent_description=describe_intent(prompt, intent, options),
        reformulated_prompt=reformulate(prompt, intent),
        suggested_improvements=suggest_improvements(prompt, intent),
        clarity_score=clarity_score(prompt),
        content_type_analysis=analyze_content_type(prompt),
    )
