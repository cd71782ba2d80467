"""
Test suite for the Gemini layout enhancer.

All HTTP traffic is mocked; no API key or network access is needed.
"""

import asyncio
import json
import logging
from unittest.mock import MagicMock, patch

import pytest
import requests

from app.api.v1.schemas import MAX_FONT_SIZE, DesignFormat
from app.services.enhancer import (
    GeminiEnhancer,
    NullEnhancer,
    extract_json_object,
    normalize_layout,
)
from app.services.generator import generate_design
from app.services.rate_limiter import EnhancementRateLimiter

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def make_enhancer(**kwargs) -> GeminiEnhancer:
    limiter = kwargs.pop("rate_limiter", None) or EnhancementRateLimiter(
        max_requests_per_minute=600, burst_capacity=10
    )
    return GeminiEnhancer(api_key="test-key", model="test-model", rate_limiter=limiter, **kwargs)


def gemini_reply(text: str, status_code: int = 200) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text
    response.json.return_value = {
        "candidates": [{"content": {"parts": [{"text": text}]}}],
    }
    return response


LAYOUT_JSON = json.dumps(
    {
        "backgroundColor": "#101820",
        "textElements": [
            {"text": "BIG NEWS", "x": 640, "y": 200, "fontSize": 80, "color": "#FEE715"},
            {"text": "details inside"},
        ],
    }
)


def test_null_enhancer_declines():
    assert NullEnhancer().enhance("anything", DesignFormat.QUOTE) is None


def test_enhancer_unavailable_without_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    enhancer = GeminiEnhancer(api_key=None)

    assert not enhancer.is_available()
    with patch("app.services.enhancer.requests.post") as mock_post:
        assert enhancer.enhance("prompt", DesignFormat.YOUTUBE) is None
        mock_post.assert_not_called()
    logger.info("✓ Enhancer is disabled without an API key")


def test_extract_json_object_tolerates_prose_and_fences():
    text = "Sure! Here is your layout:\n```json\n" + LAYOUT_JSON + "\n```\nEnjoy."
    parsed = extract_json_object(text)
    assert parsed["backgroundColor"] == "#101820"


def test_extract_json_object_fixes_trailing_commas():
    parsed = extract_json_object('{"backgroundColor": "#000", "textElements": [{"text": "A",},],}')
    assert parsed == {"backgroundColor": "#000", "textElements": [{"text": "A"}]}


def test_extract_json_object_rejects_non_objects():
    assert extract_json_object("") is None
    assert extract_json_object("no json here") is None
    assert extract_json_object("{not: valid}") is None


def test_normalize_layout_fills_defaults():
    layout = normalize_layout(json.loads(LAYOUT_JSON), DesignFormat.YOUTUBE)

    assert layout.enhanced is True
    assert layout.background_color == "#101820"
    first, second = layout.text_elements
    assert (first.x, first.y, first.font_size, first.color) == (640, 200, 80, "#FEE715")
    assert first.font_family == "Arial"
    assert first.font_weight == "bold"
    assert (second.x, second.y) == (640, 360)
    assert second.font_size == 64
    assert second.color == "#FFFFFF"
    assert second.align == "center"


def test_normalize_layout_square_defaults_and_clamping():
    candidate = {
        "backgroundColor": "white",
        "textElements": [
            {"text": "Q", "x": "5000", "y": -20, "fontSize": "bad", "fontWeight": 700, "align": "middle"},
        ],
    }
    element = normalize_layout(candidate, DesignFormat.QUOTE).text_elements[0]

    assert (element.x, element.y) == (1080, 0)
    assert element.font_size == 48
    assert element.font_weight == "700"
    assert element.align == "center"


def test_normalize_layout_rejects_incomplete_candidates():
    assert normalize_layout({"textElements": [{"text": "A"}]}, DesignFormat.INSTAGRAM) is None
    assert normalize_layout({"backgroundColor": "#000"}, DesignFormat.INSTAGRAM) is None
    assert normalize_layout(
        {"backgroundColor": "#000", "textElements": "A"}, DesignFormat.INSTAGRAM
    ) is None
    assert normalize_layout(
        {"backgroundColor": "#000", "textElements": [{"text": "  "}, 3]}, DesignFormat.INSTAGRAM
    ) is None


def test_enhance_with_mocked_api():
    enhancer = make_enhancer()

    with patch("app.services.enhancer.requests.post", return_value=gemini_reply(LAYOUT_JSON)) as mock_post:
        layout = enhancer.enhance("breaking news thumbnail", DesignFormat.YOUTUBE)

    assert mock_post.call_count == 1
    args, kwargs = mock_post.call_args
    assert args[0].endswith("/models/test-model:generateContent")
    assert kwargs["params"] == {"key": "test-key"}
    assert "breaking news thumbnail" in kwargs["json"]["contents"][0]["parts"][0]["text"]

    assert layout is not None
    assert layout.enhanced is True
    assert layout.format == DesignFormat.YOUTUBE
    assert [element.text for element in layout.text_elements] == ["BIG NEWS", "details inside"]
    logger.info("✓ Enhancer returns normalized layout from mocked API")


def test_enhance_returns_none_on_malformed_reply():
    enhancer = make_enhancer()
    with patch(
        "app.services.enhancer.requests.post",
        return_value=gemini_reply("I cannot help with that {broken json"),
    ):
        assert enhancer.enhance("prompt", DesignFormat.INSTAGRAM) is None


def test_enhance_returns_none_on_transport_error():
    enhancer = make_enhancer()
    with patch(
        "app.services.enhancer.requests.post",
        side_effect=requests.exceptions.ConnectionError("network down"),
    ):
        assert enhancer.enhance("prompt", DesignFormat.INSTAGRAM) is None


def test_enhance_returns_none_on_http_error():
    enhancer = make_enhancer()
    with patch("app.services.enhancer.requests.post", return_value=gemini_reply("oops", 500)) as mock_post:
        assert enhancer.enhance("prompt", DesignFormat.INSTAGRAM) is None
    # exactly one attempt, no retry
    assert mock_post.call_count == 1


def test_enhance_reports_rate_limit():
    limiter = EnhancementRateLimiter(max_requests_per_minute=600, burst_capacity=10)
    enhancer = make_enhancer(rate_limiter=limiter)

    with patch("app.services.enhancer.requests.post", return_value=gemini_reply("", 429)):
        assert enhancer.enhance("prompt", DesignFormat.INSTAGRAM) is None

    assert limiter.consecutive_429s == 1
    assert limiter.get_stats()["is_rate_limited"] is True


def test_enhance_skips_call_when_limiter_has_no_tokens():
    limiter = EnhancementRateLimiter(max_requests_per_minute=1, burst_capacity=1)
    limiter.report_429()
    enhancer = make_enhancer(rate_limiter=limiter)

    with patch("app.services.rate_limiter.time.sleep"), patch(
        "app.services.enhancer.RATE_LIMIT_WAIT", 0.0
    ), patch("app.services.enhancer.requests.post") as mock_post:
        assert enhancer.enhance("prompt", DesignFormat.INSTAGRAM) is None
        mock_post.assert_not_called()


def test_enhance_ignores_unexpected_body_shape():
    enhancer = make_enhancer()
    response = gemini_reply("")
    response.json.return_value = {"promptFeedback": {"blockReason": "SAFETY"}}

    with patch("app.services.enhancer.requests.post", return_value=response):
        assert enhancer.enhance("prompt", DesignFormat.QUOTE) is None


def test_normalize_layout_replaces_non_finite_numbers():
    candidate = {
        "backgroundColor": "#000",
        "textElements": [
            {"text": "A", "x": float("inf"), "y": float("nan"), "fontSize": float("inf")},
            {"text": "B", "x": "-inf", "y": 10**400, "fontSize": "Infinity"},
        ],
    }
    first, second = normalize_layout(candidate, DesignFormat.INSTAGRAM).text_elements

    assert (first.x, first.y, first.font_size) == (540, 540, 48)
    assert (second.x, second.y, second.font_size) == (540, 540, 48)
    logger.info("✓ Non-finite coordinates and sizes fall back to defaults")


def test_normalize_layout_caps_font_size():
    candidate = {"backgroundColor": "#000", "textElements": [{"text": "A", "fontSize": 2000000}]}
    element = normalize_layout(candidate, DesignFormat.YOUTUBE).text_elements[0]
    assert element.font_size == MAX_FONT_SIZE


def test_enhance_with_overflowing_numbers_in_reply():
    enhancer = make_enhancer()
    reply = '{"backgroundColor": "#000", "textElements": [{"text": "HI", "x": 1e999, "fontSize": 1e999}]}'

    with patch("app.services.enhancer.requests.post", return_value=gemini_reply(reply)):
        layout = enhancer.enhance("prompt", DesignFormat.YOUTUBE)

    element = layout.text_elements[0]
    assert (element.text, element.x, element.font_size) == ("HI", 640, 64)


@pytest.mark.parametrize(
    "reply",
    [
        "I'd love to help, but I can only describe the design in words.",
        '{"backgroundColor": "#000" "textElements": [{"text": "HI"}]}',
        '```json\n{"backgroundColor": "#000", "textElements": []}\n```',
        '{"backgroundColor": 1e999, "textElements": [{"text": "HI", "x": 1e999}]}',
    ],
)
def test_generate_design_falls_back_on_unusable_gemini_reply(reply):
    enhancer = make_enhancer()

    with patch("app.services.enhancer.requests.post", return_value=gemini_reply(reply)) as mock_post:
        layout = asyncio.run(
            generate_design('"SALE" red post', "auto", 2, enhancer=enhancer, simulate_delay=False)
        )

    mock_post.assert_called_once()
    assert layout.enhanced is False
    assert layout.format == DesignFormat.INSTAGRAM
    assert layout.text_elements[0].text == "SALE"
    assert layout.variation_index == 2


def test_generate_design_survives_non_finite_numbers_from_gemini():
    enhancer = make_enhancer()
    reply = '{"backgroundColor": "#000", "textElements": [{"text": "HI", "x": 1e999, "fontSize": Infinity}]}'

    with patch("app.services.enhancer.requests.post", return_value=gemini_reply(reply)):
        layout = asyncio.run(
            generate_design("video intro", "auto", 1, enhancer=enhancer, simulate_delay=False)
        )

    assert layout.enhanced is True
    assert layout.variation_index == 1
    element = layout.text_elements[0]
    assert (element.text, element.x, element.font_size) == ("HI", 640, 64)
    logger.info("✓ Gemini reply with non-finite numbers still produces a layout")


if __name__ == "__main__":
    raise SystemExit(pytest.main([__file__, "-v"]))
