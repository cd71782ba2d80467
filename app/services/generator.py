"""
Prompt-to-design generator.

Turns a free-text prompt into a `Layout`: a background color plus a few
styled text elements. The configured enhancer (an external generation
service) gets the first chance; when it declines, local heuristics build
the layout from color keywords and quoted or salient words in the prompt.

The heuristics are deliberately literal. Keywords are plain substring
matches and quoted spans use a simple pattern without escape handling,
so the same prompt always produces the same text layout.
"""

from __future__ import annotations

import asyncio
import logging
import os
import random
import re
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from app.api.v1.schemas import AUTO_FORMAT, DesignFormat
from app.models.design import Layout, TextElement, VariationPalette
from app.services.enhancer import Enhancer, get_enhancer
from app.services.variations import get_variation

logger = logging.getLogger(__name__)

# Checked in order; the first category with a matching keyword wins.
FORMAT_KEYWORDS: Tuple[Tuple[DesignFormat, Tuple[str, ...]], ...] = (
    (DesignFormat.YOUTUBE, ("youtube", "thumbnail", "video")),
    (DesignFormat.INSTAGRAM, ("instagram", "post", "square")),
    (DesignFormat.QUOTE, ("quote", "text", "saying")),
)
DEFAULT_FORMAT = DesignFormat.INSTAGRAM

# Declaration order is the tie-break when a prompt names several colors.
COLOR_KEYWORDS: Dict[str, str] = {
    "red": "#FF6B6B",
    "blue": "#4ECDC4",
    "green": "#96CEB4",
    "purple": "#DDA0DD",
    "yellow": "#FFEAA7",
    "orange": "#F39C12",
    "pink": "#FF69B4",
    "black": "#2C3E50",
    "white": "#FFFFFF",
    "dark": "#34495E",
    "light": "#ECF0F1",
    "gradient": "linear-gradient(135deg, #667eea 0%, #764ba2 100%)",
}
DEFAULT_BACKGROUND = "#FFFFFF"

STOP_WORDS = frozenset({"with", "and", "the", "for", "this", "that", "from", "have", "design"})
MIN_KEYWORD_LENGTH = 4
TITLE_WORDS = 3

DOUBLE_QUOTED_RE = re.compile(r'"[^"]*"')
SINGLE_QUOTED_RE = re.compile(r"'[^']*'")
QUOTE_CHARS_RE = re.compile(r"['\"]")

SERIF_FONT = "Georgia"
SANS_FONT = "Arial"

FALLBACK_TITLES = {
    DesignFormat.YOUTUBE: "AWESOME VIDEO",
    DesignFormat.INSTAGRAM: "INSTAGRAM POST",
    DesignFormat.QUOTE: "INSPIRING QUOTE",
}

SIMULATED_DELAY_RANGE = (1.5, 2.5)  # seconds


def resolve_format(prompt: str, requested: str | DesignFormat | None = AUTO_FORMAT) -> DesignFormat:
    """
    Return the design format for a request.

    Explicit formats pass through unchanged. For "auto" (or no format) the
    prompt is scanned case-insensitively for YouTube, then Instagram, then
    quote keywords, defaulting to Instagram.
    """
    if requested and requested != AUTO_FORMAT:
        return DesignFormat(requested)

    lowered = (prompt or "").lower()
    for design_format, keywords in FORMAT_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return design_format
    return DEFAULT_FORMAT


def extract_background_color(
    prompt: str,
    palette_options: Sequence[str],
    rng: Optional[random.Random] = None,
) -> str:
    """
    Pick a background color for the prompt.

    The first color keyword found (in `COLOR_KEYWORDS` order, not prompt
    order) decides the color. Without a keyword, one of `palette_options`
    is chosen uniformly at random from `rng`.
    """
    lowered = (prompt or "").lower()
    for keyword, color in COLOR_KEYWORDS.items():
        if keyword in lowered:
            return color

    if not palette_options:
        return DEFAULT_BACKGROUND
    return (rng or random).choice(list(palette_options))


def find_quoted_spans(prompt: str) -> List[str]:
    """
    Return quoted spans in order of appearance, quote characters removed.

    Double-quoted spans win; single-quoted spans are only considered when
    there are no double quotes at all. Spans that are blank once the quotes
    are stripped are skipped.
    """
    matches = DOUBLE_QUOTED_RE.findall(prompt) or SINGLE_QUOTED_RE.findall(prompt)
    spans = [QUOTE_CHARS_RE.sub("", match) for match in matches]
    return [span for span in spans if span.strip()]


def extract_keywords(prompt: str) -> List[str]:
    """Whitespace tokens longer than three characters that are not stop words."""
    return [
        word
        for word in prompt.split()
        if len(word) >= MIN_KEYWORD_LENGTH and word.lower() not in STOP_WORDS
    ]


def _font_family(design_format: DesignFormat) -> str:
    return SERIF_FONT if design_format == DesignFormat.QUOTE else SANS_FONT


def _quoted_elements(
    spans: List[str], design_format: DesignFormat, palette: VariationPalette
) -> List[TextElement]:
    elements: List[TextElement] = []
    for index, text in enumerate(spans):
        if design_format == DesignFormat.YOUTUBE:
            if index == 0:
                x, y, font_size = 640, 180, palette.font_sizes[0]
            else:
                x, y, font_size = 640, 360 + (index - 1) * 100, palette.font_sizes[2]
        else:
            if index == 0:
                x, y, font_size = 540, 400, palette.font_sizes[1]
            else:
                x, y, font_size = 540, 500 + (index - 1) * 80, palette.font_sizes[3]

        elements.append(
            TextElement(
                text=text,
                x=x,
                y=y,
                font_size=font_size,
                font_family=_font_family(design_format),
                font_weight=palette.font_weights[index % len(palette.font_weights)],
                color=palette.text_colors[index % len(palette.text_colors)],
                align="center",
            )
        )
    return elements


def _keyword_elements(
    keywords: List[str], design_format: DesignFormat, palette: VariationPalette
) -> List[TextElement]:
    title = " ".join(keywords[:TITLE_WORDS]).upper() or FALLBACK_TITLES[design_format]
    subtitle = " ".join(keywords[TITLE_WORDS : TITLE_WORDS * 2]) if len(keywords) > TITLE_WORDS else ""
    family = _font_family(design_format)

    if design_format == DesignFormat.YOUTUBE:
        title_anchor, title_size = (640, 200), palette.font_sizes[0]
        subtitle_anchor, subtitle_size = (640, 400), palette.font_sizes[2]
    else:
        title_anchor, title_size = (540, 400), palette.font_sizes[1]
        subtitle_anchor, subtitle_size = (540, 500), palette.font_sizes[3]

    if design_format == DesignFormat.QUOTE:
        title = f'"{title}"'
        title_weight = palette.font_weights[1]
        subtitle = f"- {subtitle}" if subtitle else ""
    else:
        title_weight = palette.font_weights[0]

    elements = [
        TextElement(
            text=title,
            x=title_anchor[0],
            y=title_anchor[1],
            font_size=title_size,
            font_family=family,
            font_weight=title_weight,
            color=palette.text_colors[0],
            align="center",
        )
    ]
    if subtitle:
        elements.append(
            TextElement(
                text=subtitle,
                x=subtitle_anchor[0],
                y=subtitle_anchor[1],
                font_size=subtitle_size,
                font_family=family,
                font_weight=palette.font_weights[1],
                color=palette.text_colors[1],
                align="center",
            )
        )
    return elements


def extract_text_elements(
    prompt: str, design_format: DesignFormat, palette: VariationPalette
) -> List[TextElement]:
    """
    Build text elements for the prompt.

    Quoted spans become one element each (title first, then stacked
    secondary lines). Without quotes, the first three keywords form an
    upper-cased title and the next three a subtitle. Always returns at
    least one element.
    """
    prompt = prompt or ""
    spans = find_quoted_spans(prompt)
    if spans:
        return _quoted_elements(spans, design_format, palette)
    return _keyword_elements(extract_keywords(prompt), design_format, palette)


def build_heuristic_layout(
    prompt: str,
    design_format: DesignFormat,
    variation_index: int = 0,
    rng: Optional[random.Random] = None,
) -> Layout:
    """Build a layout from local heuristics only."""
    palette = get_variation(variation_index)
    return Layout(
        format=design_format,
        background_color=extract_background_color(prompt, palette.bg_colors, rng),
        text_elements=tuple(extract_text_elements(prompt, design_format, palette)),
        variation_index=variation_index,
        enhanced=False,
    )


def simulated_delay_enabled() -> bool:
    return os.getenv("DESIGN_SIMULATED_DELAY", "0").lower() in ("1", "true", "yes")


async def generate_design(
    prompt: str,
    design_format: str | DesignFormat | None = AUTO_FORMAT,
    variation_index: int = 0,
    *,
    enhancer: Optional[Enhancer] = None,
    rng: Optional[random.Random] = None,
    simulate_delay: Optional[bool] = None,
) -> Layout:
    """
    Generate a design layout for a prompt.

    Args:
        prompt: Free-text description; may be empty.
        design_format: "youtube", "instagram", "quote" or "auto".
        variation_index: Style preset index (used modulo 4).
        enhancer: Layout source tried first; defaults to the configured one.
        rng: Random source for background selection.
        simulate_delay: Sleep 1.5-2.5s before answering. Defaults to the
            DESIGN_SIMULATED_DELAY setting.

    Returns:
        A layout; `enhanced` tells whether the enhancer supplied it.
    """
    prompt = prompt or ""
    resolved = resolve_format(prompt, design_format)

    if simulate_delay is None:
        simulate_delay = simulated_delay_enabled()
    if simulate_delay:
        await asyncio.sleep(random.uniform(*SIMULATED_DELAY_RANGE))

    enhancer = enhancer or get_enhancer()
    enhanced = await asyncio.to_thread(enhancer.enhance, prompt, resolved)
    if enhanced is not None:
        logger.info(f"Generated {resolved.value} design via enhancer (variation {variation_index})")
        return replace(enhanced, variation_index=variation_index)

    layout = build_heuristic_layout(prompt, resolved, variation_index, rng)
    logger.info(
        f"Generated {resolved.value} design from heuristics "
        f"(variation {variation_index}, {get_variation(variation_index).name} style, "
        f"{len(layout.text_elements)} text elements)"
    )
    return layout


async def generate_variations(
    prompt: str,
    design_format: str | DesignFormat | None = AUTO_FORMAT,
    count: int = 4,
    start_index: int = 0,
    *,
    enhancer: Optional[Enhancer] = None,
    rng: Optional[random.Random] = None,
    simulate_delay: Optional[bool] = None,
) -> List[Layout]:
    """Generate `count` independent layouts with consecutive variation indices, concurrently."""
    return list(
        await asyncio.gather(
            *(
                generate_design(
                    prompt,
                    design_format,
                    start_index + offset,
                    enhancer=enhancer,
                    rng=rng,
                    simulate_delay=simulate_delay,
                )
                for offset in range(count)
            )
        )
    )
