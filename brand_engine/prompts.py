"""
prompts.py — Instruction text for every outbound generation call.

Pure functions of their inputs: the same category, profile, theme and
instruction always produce the same text, so a request can be checked
without touching the network.
"""

from __future__ import annotations

from typing import Optional

from .models import GenerationRequest, StyleProfile


ANALYSIS_PROMPT = """\
Analyze this brand asset image deeply.
Extract the 'Brand DNA' in a structured format.
I need:
1. A color palette (hex codes), most dominant color first.
2. A description of the visual style (e.g., 'Minimalist', 'Grunge', 'Luxury').
3. Approximate font styles detected (e.g., 'Sans-serif bold', 'Script').
4. Key visual keywords.
5. A concise description of the logo/graphic for reproduction.

Return ONLY valid JSON. No explanation, no markdown fences."""


def build_analysis_prompt() -> str:
    return ANALYSIS_PROMPT


def _brand_block(profile: StyleProfile) -> str:
    keywords = ", ".join(profile.keywords) if profile.keywords else "none"
    return (
        "Apply this Brand DNA exactly:\n"
        f"- Logo/Graphic Source: {profile.description}\n"
        f"- Primary Colors: {', '.join(profile.palette)}\n"
        f"- Visual Style: {profile.style}\n"
        f"- Typography: {profile.fonts}\n"
        f"- Keywords: {keywords}\n"
    )


def _theme_block(theme: Optional[str]) -> str:
    theme = (theme or "").strip()
    if not theme:
        return ""
    return f"\nCampaign theme: {theme}\nLet the theme shape the setting, props and mood.\n"


def build_image_prompt(request: GenerationRequest) -> str:
    """Mockup prompt for one image-class category."""
    cat = request.category
    return (
        f"Create a photorealistic 4K product mockup for: {cat.product}.\n\n"
        + _brand_block(request.profile)
        + "- Mood: Professional, commercial photography, studio lighting, depth of field.\n"
        + _theme_block(request.theme)
        + "\nEnsure the branding is clearly visible, correctly perspective-warped, and "
        "integrated naturally onto the physical material (fabric texture, paper grain, "
        "ceramic gloss).\n"
        f"Aspect ratio: {cat.aspect_ratio}."
    )


def build_video_prompt(request: GenerationRequest) -> str:
    """Veo prompt for one video-class category."""
    cat = request.category
    orientation = "vertical" if cat.aspect_ratio == "9:16" else "horizontal"
    return (
        f"{cat.product}, shot as a cinematic {orientation} {cat.aspect_ratio} video.\n\n"
        + _brand_block(request.profile)
        + _theme_block(request.theme)
        + "\nSmooth camera movement, premium commercial lighting, the brand mark stays "
        "legible and on-palette in every frame. No on-screen captions, no watermarks."
    )


def build_refinement_prompt(instruction: str) -> str:
    """
    Masked-edit prompt. The current image is attached first, the mask second:
    white pixels mark the editable region, black pixels must not change.
    """
    return (
        "You are editing an existing brand mockup. Two images are attached:\n"
        "  1. the CURRENT image\n"
        "  2. a black-and-white MASK of the same size\n\n"
        f"EDIT INSTRUCTION (apply this change ONLY inside the white mask area): {instruction.strip()}\n\n"
        "STRICT RULES:\n"
        "- Pixels under the black part of the mask must stay exactly as they are\n"
        "- PRESERVE the composition, lighting, perspective and brand colors\n"
        "- Blend the edit seamlessly into the surrounding material and lighting\n"
        "- Return the full image at the same framing, not a crop"
    )
