"""Prompt construction for the text and image generators."""

from ..schemas.generation import (
    GenerationAction,
    GenerationPayload,
    LengthClass,
    RewriteMode,
)

HOUSE_STYLE_PROMPT = """\
You are a senior wealth advisor writing for a wealth management firm.
Tone: Professional, educational, authoritative, yet accessible. NOT salesy.
Formatting:
- Put the article title alone on the first line.
- Use clear, bold headers.
- DO NOT use bullet points with dashes/hyphens. Use cohesive paragraphs or numbered lists if absolutely necessary.
- Write in a flowing, human narrative.
- No "AI-isms" (e.g., avoid "In conclusion", "Delve", "In the dynamic world of", "Tapestry").
- Focus on wealth preservation, endowments, and alternative investments.
"""

VISUAL_STYLE_PROMPT = """\
You are a creative director for a high-end financial firm.
Task: Describe a "Poster Style" visual asset or video script.
Style: Clean, bold font, high contrast, professional financial aesthetic.
Output: Put a short title on the first line, then a detailed visual description or script.
Do not output markdown code blocks unless it's a script.
"""

LENGTH_GUIDES = {
    LengthClass.SHORT: "Length: Concise, around 300-500 words.",
    LengthClass.MEDIUM: "Length: Balanced, around 600-1000 words.",
    LengthClass.LONG: "Length: Comprehensive deep-dive, around 1200+ words.",
}

REWRITE_INSTRUCTIONS = {
    RewriteMode.REWRITE: "Rephrase and rewrite the following passage while keeping the same meaning, tone, and style.",
    RewriteMode.SHORTEN: "Make the following passage significantly more concise without losing key information.",
    RewriteMode.EXPAND: "Expand the following passage with more depth and educational detail.",
    RewriteMode.FIX_COMPLIANCE: (
        'Rewrite the following passage to address this compliance concern: "{note}". '
        "Ensure it is fully SEC/FINRA compliant. Do not use promissory language or guarantees."
    ),
}

VISUAL_CONTENT_TYPES = frozenset({"ad", "video_script"})


def length_guide(length_class: LengthClass) -> str:
    return LENGTH_GUIDES.get(length_class, LENGTH_GUIDES[LengthClass.MEDIUM])


def is_visual(content_type: str) -> bool:
    return content_type.lower() in VISUAL_CONTENT_TYPES


def _generate_prompt(payload: GenerationPayload) -> tuple[str, str]:
    if is_visual(payload.content_type):
        return VISUAL_STYLE_PROMPT, (
            f"Create a visual description or video script for: {payload.topic}.\n\n"
            f"Context: {payload.instructions}"
        )
    return HOUSE_STYLE_PROMPT, (
        f"Write a {payload.content_type} about {payload.topic}.\n\n"
        f"Length Requirement: {length_guide(payload.length_class)}\n\n"
        f"Specific Instructions: {payload.instructions}"
    )


def _extend_prompt(payload: GenerationPayload) -> tuple[str, str]:
    return HOUSE_STYLE_PROMPT, f'''You are rewriting and expanding an existing draft.
Current Draft:
"""
{payload.current_content or ""}
"""

Task:
1. Keep the core message and tone of the original draft.
2. Significantly expand the content (make it at least 50% longer).
3. Add more depth, examples, and educational value to key points.
4. Keep the house style (authoritative, educational, no salesy language).
5. Ensure the new length aligns with: {length_guide(payload.length_class)}

Return the FULL expanded article, title on the first line.
'''


def _rewrite_prompt(payload: GenerationPayload) -> tuple[str, str]:
    mode = payload.rewrite_mode or RewriteMode.REWRITE
    instruction = REWRITE_INSTRUCTIONS[mode].format(note=payload.compliance_note or "")
    return HOUSE_STYLE_PROMPT, f'''{instruction}
Passage to rewrite:
"""
{payload.current_content or ""}
"""
IMPORTANT: Return ONLY the rewritten passage as plain text, without a title or formatting.
'''


def build_messages(payload: GenerationPayload) -> list[dict]:
    """Chat messages for one generator call."""
    if payload.action == GenerationAction.EXTEND:
        system, user = _extend_prompt(payload)
    elif payload.action == GenerationAction.REWRITE:
        system, user = _rewrite_prompt(payload)
    else:
        system, user = _generate_prompt(payload)
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]


def build_image_prompt(payload: GenerationPayload) -> str:
    """Prompt for a poster-style visual asset on the request's topic."""
    prompt = (
        f"Poster style visual for a wealth management firm about: {payload.topic}. "
        "Clean, bold typography, high contrast, professional financial aesthetic."
    )
    if payload.instructions:
        prompt += f" {payload.instructions}"
    return prompt
