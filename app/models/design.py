from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from app.api.v1.schemas import DesignFormat


def utcnow() -> datetime:
    """Return an explicit, timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


# Canvas size per format. Instagram posts and quotes share the square canvas.
FORMAT_DIMENSIONS: Dict[DesignFormat, Tuple[int, int]] = {
    DesignFormat.YOUTUBE: (1280, 720),
    DesignFormat.INSTAGRAM: (1080, 1080),
    DesignFormat.QUOTE: (1080, 1080),
}


@dataclass(slots=True, frozen=True)
class Dimensions:
    """Canvas size in pixels."""

    width: int
    height: int

    @classmethod
    def for_format(cls, design_format: DesignFormat) -> "Dimensions":
        width, height = FORMAT_DIMENSIONS[DesignFormat(design_format)]
        return cls(width=width, height=height)

    @property
    def center(self) -> Tuple[int, int]:
        return self.width // 2, self.height // 2

    def to_dict(self) -> Dict[str, int]:
        return {"width": self.width, "height": self.height}


@dataclass(slots=True, frozen=True)
class TextElement:
    """
    One styled line of text on the design canvas.

    `x`/`y` is the anchor point; the editor extends the text around it
    according to `align`.
    """

    text: str
    x: int
    y: int
    font_size: int
    font_family: str
    font_weight: str
    color: str
    align: str = "center"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "x": self.x,
            "y": self.y,
            "fontSize": self.font_size,
            "fontFamily": self.font_family,
            "fontWeight": self.font_weight,
            "color": self.color,
            "align": self.align,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TextElement":
        return cls(
            text=data["text"],
            x=int(data["x"]),
            y=int(data["y"]),
            font_size=int(data["fontSize"]),
            font_family=data["fontFamily"],
            font_weight=str(data["fontWeight"]),
            color=data["color"],
            align=data.get("align", "center"),
        )


@dataclass(slots=True, frozen=True)
class VariationPalette:
    """
    Style preset applied to a generated design.

    Font sizes and weights are ordered from most to least prominent; the
    generator picks from them by element role (title, subtitle, ...).
    """

    name: str
    bg_colors: Tuple[str, ...]
    text_colors: Tuple[str, ...]
    font_sizes: Tuple[int, ...]
    font_weights: Tuple[str, ...]


@dataclass(slots=True, frozen=True)
class Layout:
    """
    Generated design: background plus text elements in paint order.

    Layouts are immutable values. Dimensions are never stored; they are
    always derived from the format so the two cannot disagree.
    """

    format: DesignFormat
    background_color: str
    text_elements: Tuple[TextElement, ...]
    variation_index: int = 0
    # True only when the external generation service supplied the layout.
    enhanced: bool = False

    @property
    def dimensions(self) -> Dimensions:
        return Dimensions.for_format(self.format)

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-compatible form using the editor's camelCase keys."""
        return {
            "format": self.format.value,
            "backgroundColor": self.background_color,
            "textElements": [element.to_dict() for element in self.text_elements],
            "dimensions": self.dimensions.to_dict(),
            "variationIndex": self.variation_index,
            "enhanced": self.enhanced,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Layout":
        return cls(
            format=DesignFormat(data["format"]),
            background_color=data["backgroundColor"],
            text_elements=tuple(TextElement.from_dict(item) for item in data["textElements"]),
            variation_index=int(data.get("variationIndex", 0)),
            enhanced=bool(data.get("enhanced", False)),
        )


@dataclass(slots=True)
class DesignRecord:
    """
    A saved design owned by a user.

    `canvas_data` is the editor's own serialized scene; it is stored and
    returned untouched.
    """

    id: str
    user_id: str
    title: str
    layout: Layout
    prompt: str = ""
    canvas_data: Dict[str, Any] | None = None
    downloads: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "prompt": self.prompt,
            "layout": self.layout.to_dict(),
            "canvasData": self.canvas_data,
            "downloads": self.downloads,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DesignRecord":
        return cls(
            id=data["id"],
            user_id=data["userId"],
            title=data.get("title", ""),
            prompt=data.get("prompt", ""),
            layout=Layout.from_dict(data["layout"]),
            canvas_data=data.get("canvasData"),
            downloads=int(data.get("downloads", 0)),
            created_at=datetime.fromisoformat(data["createdAt"]),
            updated_at=datetime.fromisoformat(data["updatedAt"]),
        )
