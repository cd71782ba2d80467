"""
Optional layout generation through the Gemini API.

The generator asks an enhancer for a layout before running its own
heuristics. An enhancer returns a normalized `Layout` or `None`; it never
raises, so every failure (no API key, network error, rate limit, prose
without usable JSON) simply sends the request down the heuristic path.
"""

from __future__ import annotations

import json
import logging
import math
import os
import re
from typing import Any, Dict, List, Optional, Protocol

import requests

from app.api.v1.schemas import MAX_FONT_SIZE, DesignFormat
from app.models.design import Dimensions, Layout, TextElement
from app.services.rate_limiter import EnhancementRateLimiter, get_rate_limiter

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-1.5-flash"
REQUEST_TIMEOUT = 20  # seconds
RATE_LIMIT_WAIT = 2.0  # seconds to wait for a limiter token before giving up

DEFAULT_FONT_FAMILY = "Arial"
DEFAULT_FONT_WEIGHT = "bold"
DEFAULT_TEXT_COLOR = "#FFFFFF"
ALIGNMENTS = ("left", "center", "right")

INSTRUCTION_TEMPLATE = """You are a graphic designer laying out a {label} ({width}x{height} pixels).
Design brief: {prompt}

Reply with a single JSON object and nothing else, shaped like:
{{
  "backgroundColor": "#RRGGBB or a CSS linear-gradient(...)",
  "textElements": [
    {{"text": "HEADLINE", "x": {cx}, "y": {cy}, "fontSize": 64, "fontFamily": "Arial",
      "fontWeight": "bold", "color": "#FFFFFF", "align": "center"}}
  ]
}}
Coordinates are the anchor point of each text in pixels. Use at most 4 text elements."""

FORMAT_LABELS = {
    DesignFormat.YOUTUBE: "YouTube thumbnail",
    DesignFormat.INSTAGRAM: "Instagram post",
    DesignFormat.QUOTE: "quote card",
}

CODE_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")


class Enhancer(Protocol):
    """Anything that can propose a layout for a prompt, or decline with None."""

    def enhance(self, prompt: str, design_format: DesignFormat) -> Optional[Layout]:
        ...


class NullEnhancer:
    """Enhancer used when no generation service is configured."""

    def enhance(self, prompt: str, design_format: DesignFormat) -> Optional[Layout]:
        return None


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    Pull the first JSON object out of free-form model output.

    Tolerates markdown fences, prose before and after the object and
    trailing commas. Returns None when nothing parses to a JSON object.
    """
    if not text:
        return None

    cleaned = CODE_FENCE_RE.sub("", text)
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        return None

    candidate = TRAILING_COMMA_RE.sub(r"\1", cleaned[start : end + 1])
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        logger.warning("Enhancement response contained no parsable JSON object")
        return None

    return parsed if isinstance(parsed, dict) else None


def _coerce_int(value: Any, default: int) -> int:
    if isinstance(value, bool) or value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if not math.isfinite(number):
        return default
    return int(number)


def _clamp(value: int, upper: int) -> int:
    return max(0, min(value, upper))


def normalize_layout(candidate: Dict[str, Any], design_format: DesignFormat) -> Optional[Layout]:
    """
    Validate a layout proposed by the generation service and fill in defaults.

    Missing coordinates default to the canvas center, missing sizes to 64px
    (YouTube) or 48px, and missing family/weight/color to Arial, bold and
    white. Elements without text are dropped. Returns None if the candidate
    lacks a background color or ends up with no text elements.
    """
    background = candidate.get("backgroundColor")
    raw_elements = candidate.get("textElements")
    if not isinstance(background, str) or not background.strip():
        return None
    if not isinstance(raw_elements, list):
        return None

    dimensions = Dimensions.for_format(design_format)
    center_x, center_y = dimensions.center
    default_size = 64 if design_format == DesignFormat.YOUTUBE else 48

    elements: List[TextElement] = []
    for raw in raw_elements:
        if not isinstance(raw, dict):
            continue
        text = raw.get("text")
        if not isinstance(text, str) or not text.strip():
            continue

        font_size = _coerce_int(raw.get("fontSize"), default_size)
        if font_size <= 0:
            font_size = default_size
        font_size = min(font_size, MAX_FONT_SIZE)
        weight = raw.get("fontWeight")
        family = raw.get("fontFamily")
        color = raw.get("color")
        align = raw.get("align")

        elements.append(
            TextElement(
                text=text,
                x=_clamp(_coerce_int(raw.get("x"), center_x), dimensions.width),
                y=_clamp(_coerce_int(raw.get("y"), center_y), dimensions.height),
                font_size=font_size,
                font_family=family if isinstance(family, str) and family else DEFAULT_FONT_FAMILY,
                font_weight=str(weight) if weight not in (None, "") else DEFAULT_FONT_WEIGHT,
                color=color if isinstance(color, str) and color else DEFAULT_TEXT_COLOR,
                align=align if align in ALIGNMENTS else "center",
            )
        )

    if not elements:
        return None

    return Layout(
        format=design_format,
        background_color=background.strip(),
        text_elements=tuple(elements),
        enhanced=True,
    )


class GeminiEnhancer:
    """
    Enhancer backed by the Gemini `generateContent` REST endpoint.

    Makes exactly one HTTP attempt per call; retrying is left to callers.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        rate_limiter: Optional[EnhancementRateLimiter] = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        """
        Args:
            api_key: Gemini API key. If not provided, reads GEMINI_API_KEY.
            model: Model name. If not provided, reads GEMINI_MODEL.
            rate_limiter: Limiter shared across calls; defaults to the global one.
            timeout: HTTP timeout in seconds.
        """
        self.api_key = api_key or os.environ.get("GEMINI_API_KEY")
        self.model = model or os.environ.get("GEMINI_MODEL", DEFAULT_MODEL)
        self.timeout = timeout
        self._rate_limiter = rate_limiter

        if not self.api_key:
            logger.warning("GEMINI_API_KEY not set. Designs will use local heuristics only.")
            self.available = False
            return

        self.available = True
        logger.info(f"Gemini enhancer initialized (model: {self.model})")

    @property
    def rate_limiter(self) -> EnhancementRateLimiter:
        if self._rate_limiter is None:
            self._rate_limiter = get_rate_limiter()
        return self._rate_limiter

    @property
    def endpoint(self) -> str:
        return f"{GEMINI_BASE_URL}/models/{self.model}:generateContent"

    def is_available(self) -> bool:
        return self.available and bool(self.api_key)

    def build_instruction(self, prompt: str, design_format: DesignFormat) -> str:
        dimensions = Dimensions.for_format(design_format)
        center_x, center_y = dimensions.center
        return INSTRUCTION_TEMPLATE.format(
            label=FORMAT_LABELS[design_format],
            width=dimensions.width,
            height=dimensions.height,
            prompt=prompt.strip() or "(no brief given)",
            cx=center_x,
            cy=center_y,
        )

    def enhance(self, prompt: str, design_format: DesignFormat) -> Optional[Layout]:
        if not self.is_available():
            return None

        if not self.rate_limiter.acquire(timeout=RATE_LIMIT_WAIT):
            return None

        payload = {
            "contents": [
                {"parts": [{"text": self.build_instruction(prompt, design_format)}]},
            ],
            "generationConfig": {"temperature": 0.8},
        }

        try:
            response = requests.post(
                self.endpoint,
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            logger.error(f"Gemini request failed: {exc}")
            return None

        if response.status_code == 429:
            self.rate_limiter.report_429()
            return None
        if not response.ok:
            logger.error(f"Gemini returned HTTP {response.status_code}: {response.text[:200]}")
            return None

        self.rate_limiter.report_success()

        try:
            body = response.json()
        except ValueError:
            logger.error("Gemini response body is not JSON")
            return None

        candidate = extract_json_object(_response_text(body))
        if candidate is None:
            return None

        layout = normalize_layout(candidate, design_format)
        if layout is None:
            logger.warning("Gemini layout rejected: missing backgroundColor or usable textElements")
        return layout


def _response_text(body: Any) -> str:
    """Concatenate the text parts of the first candidate in a generateContent reply."""
    try:
        parts = body["candidates"][0]["content"]["parts"]
    except (KeyError, IndexError, TypeError):
        return ""
    if not isinstance(parts, list):
        return ""
    return "".join(str(part.get("text") or "") for part in parts if isinstance(part, dict))


_enhancer: Optional[Enhancer] = None


def get_enhancer() -> Enhancer:
    """
    Return the process-wide enhancer.

    A `GeminiEnhancer` when GEMINI_API_KEY is configured, otherwise a
    `NullEnhancer`.
    """
    global _enhancer
    if _enhancer is None:
        gemini = GeminiEnhancer()
        _enhancer = gemini if gemini.is_available() else NullEnhancer()
    return _enhancer
