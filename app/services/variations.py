"""
Style presets for generated designs.

Each preset carries four background colors, four text colors, four font
sizes (largest first) and four font weights (boldest first, with "bold"
counted as 700). A design's variation index selects a preset modulo the
table size, so index 5 looks exactly like index 1.
"""

from __future__ import annotations

from typing import Tuple

from app.models.design import VariationPalette


VARIATIONS: Tuple[VariationPalette, ...] = (
    VariationPalette(
        name="bold",
        bg_colors=("#FF6B6B", "#6B66FF", "#66FFB8", "#FFD166"),
        text_colors=("#FFFFFF", "#F8F9FA", "#E9ECEF", "#DEE2E6"),
        font_sizes=(72, 64, 56, 48),
        font_weights=("900", "800", "bold", "600"),
    ),
    VariationPalette(
        name="elegant",
        bg_colors=("#212529", "#343A40", "#495057", "#6C757D"),
        text_colors=("#F8F9FA", "#E9ECEF", "#DEE2E6", "#CED4DA"),
        font_sizes=(56, 48, 40, 36),
        font_weights=("500", "400", "300", "200"),
    ),
    VariationPalette(
        name="playful",
        bg_colors=("#4CC9F0", "#4361EE", "#3A0CA3", "#7209B7"),
        text_colors=("#FFFFFF", "#F8F9FA", "#F0F0F0", "#E8E8E8"),
        font_sizes=(64, 56, 48, 42),
        font_weights=("800", "bold", "600", "500"),
    ),
    VariationPalette(
        name="professional",
        bg_colors=("#FFFFFF", "#F8F9FA", "#E9ECEF", "#DEE2E6"),
        text_colors=("#212529", "#343A40", "#495057", "#6C757D"),
        font_sizes=(48, 42, 36, 32),
        font_weights=("600", "500", "400", "300"),
    ),
)

VARIATION_COUNT = len(VARIATIONS)


def get_variation(index: int) -> VariationPalette:
    """Return the preset for `index`; any integer, including negatives, is valid."""
    return VARIATIONS[index % VARIATION_COUNT]
