"""Tests for the raster preview renderer."""

import io
from unittest.mock import patch

from PIL import Image

from app.api.v1.schemas import MAX_FONT_SIZE, DesignFormat
from app.models.design import Layout, TextElement
from app.services.renderer import (
    font_file_name,
    load_font,
    parse_color,
    parse_gradient,
    render_layout,
    render_layout_png,
)


def layout_with(background: str, *elements: TextElement, design_format=DesignFormat.YOUTUBE) -> Layout:
    return Layout(format=design_format, background_color=background, text_elements=elements)


def test_parse_color():
    assert parse_color("#FF6B6B") == (255, 107, 107)
    assert parse_color("white") == (255, 255, 255)
    assert parse_color("definitely-not-a-color") == (0, 0, 0)


def test_parse_gradient():
    angle, stops = parse_gradient("linear-gradient(135deg, #667eea 0%, #764ba2 100%)")
    assert angle == 135.0
    assert stops == [(0.0, (102, 126, 234)), (1.0, (118, 75, 162))]

    _, even = parse_gradient("linear-gradient(90deg, red, lime, blue)")
    assert [position for position, _ in even] == [0.0, 0.5, 1.0]

    assert parse_gradient("#FFFFFF") is None
    assert parse_gradient("linear-gradient(90deg, red)") is None


def test_solid_background_fills_canvas():
    image = render_layout(layout_with("#4ECDC4", TextElement("A", 10, 10, 12, "Arial", "400", "#000000")))
    assert image.size == (1280, 720)
    assert image.getpixel((1279, 719)) == (78, 205, 196)


def test_horizontal_gradient_runs_left_to_right():
    layout = layout_with(
        "linear-gradient(90deg, #000000 0%, #FFFFFF 100%)",
        TextElement("x", 640, 700, 10, "Arial", "400", "#FF0000"),
        design_format=DesignFormat.INSTAGRAM,
    )
    image = render_layout(layout)
    left = image.getpixel((0, 10))
    right = image.getpixel((1079, 10))
    assert left == (0, 0, 0)
    assert right == (255, 255, 255)


def test_text_is_drawn_around_anchor():
    element = TextElement("WWWW", 640, 360, 80, "Arial", "bold", "#FF0000")
    image = render_layout(layout_with("#FFFFFF", element))

    red_pixels = [
        (x, y)
        for x in range(400, 880, 4)
        for y in range(300, 420, 4)
        if image.getpixel((x, y))[0] > 200 and image.getpixel((x, y))[1] < 80
    ]
    assert red_pixels
    xs = [x for x, _ in red_pixels]
    assert min(xs) < 640 < max(xs)


def test_render_png_bytes():
    png = render_layout_png(
        layout_with("#000000", TextElement("Hi", 540, 540, 48, "Georgia", "600", "#FFFFFF"),
                    design_format=DesignFormat.QUOTE)
    )
    assert Image.open(io.BytesIO(png)).size == (1080, 1080)


def test_font_family_must_be_a_plain_name():
    assert font_file_name("Georgia") == "Georgia.ttf"
    assert font_file_name("Open Sans") == "Open Sans.ttf"
    assert font_file_name("../../etc/fonts/private") is None
    assert font_file_name("/usr/share/fonts/x") is None
    assert font_file_name("") is None


def test_load_font_skips_path_like_family():
    element = TextElement("A", 10, 10, 20, "../private/font", "400", "#000000")
    font = object()
    with patch("app.services.renderer.ImageFont.truetype", return_value=font) as truetype:
        assert load_font(element) is font
    truetype.assert_called_once_with("DejaVuSans.ttf", 20)


def test_load_font_caps_size():
    element = TextElement("A", 10, 10, 2_000_000, "Arial", "bold", "#000000")
    with patch("app.services.renderer.ImageFont.truetype", return_value=object()) as truetype:
        load_font(element)
    assert truetype.call_args.args == ("Arial.ttf", MAX_FONT_SIZE)


def test_oversized_text_still_renders():
    element = TextElement("BIG", 540, 540, 2_000_000, "Arial", "bold", "#FFFFFF")
    png = render_layout_png(layout_with("#000000", element, design_format=DesignFormat.QUOTE))
    assert png.startswith(b"\x89PNG")
