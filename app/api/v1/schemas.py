from enum import Enum
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, PositiveInt


class DesignFormat(str, Enum):
    """Target shape of a generated design."""

    YOUTUBE = "youtube"
    INSTAGRAM = "instagram"
    QUOTE = "quote"


AUTO_FORMAT = "auto"

# Largest font size accepted anywhere; the height of the tallest canvas.
MAX_FONT_SIZE = 1080

RequestedFormat = Literal["youtube", "instagram", "quote", "auto"]
TextAlign = Literal["left", "center", "right"]


class DimensionsSchema(BaseModel):
    """Canvas size in pixels, fixed per design format."""

    width: PositiveInt = Field(..., description="Canvas width in pixels.")
    height: PositiveInt = Field(..., description="Canvas height in pixels.")


class TextElementSchema(BaseModel):
    """A single styled text element anchored on the canvas."""

    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(..., min_length=1, description="Display text.")
    x: int = Field(..., description="Anchor x coordinate in pixels.")
    y: int = Field(..., description="Anchor y coordinate in pixels.")
    font_size: PositiveInt = Field(
        ...,
        alias="fontSize",
        le=MAX_FONT_SIZE,
        description="Font size in pixels.",
    )
    font_family: str = Field(..., alias="fontFamily", description="Font family name.")
    font_weight: str = Field(
        ...,
        alias="fontWeight",
        description="Font weight token, e.g. 'bold' or '600'.",
    )
    color: str = Field(..., description="Text color (hex string).")
    align: TextAlign = Field(
        default="center",
        description="Horizontal alignment around the anchor point.",
    )


class LayoutSchema(BaseModel):
    """Serialized design layout consumed by the editor canvas."""

    model_config = ConfigDict(populate_by_name=True)

    format: DesignFormat = Field(..., description="Resolved design format (never 'auto').")
    background_color: str = Field(
        ...,
        alias="backgroundColor",
        min_length=1,
        description="Background color: hex string or CSS linear-gradient descriptor.",
    )
    text_elements: List[TextElementSchema] = Field(
        ...,
        alias="textElements",
        min_length=1,
        description="Text elements in paint order.",
    )
    dimensions: DimensionsSchema = Field(..., description="Canvas size derived from the format.")
    variation_index: int = Field(
        default=0,
        alias="variationIndex",
        description="Style preset index; only the value modulo 4 matters.",
    )
    enhanced: bool = Field(
        default=False,
        description="True when the layout came from the external generation service.",
    )


class GenerateDesignRequest(BaseModel):
    """Request body for a single design generation."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(default="", description="Free-text description of the design.")
    format: RequestedFormat = Field(
        default="auto",
        description="Target format, or 'auto' to detect it from the prompt.",
    )
    variation_index: int = Field(
        default=0,
        alias="variationIndex",
        description="Style preset index.",
    )


class GenerateVariationsRequest(BaseModel):
    """Request body for generating several style variations at once."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(default="", description="Free-text description of the design.")
    format: RequestedFormat = Field(default="auto", description="Target format or 'auto'.")
    count: int = Field(default=4, ge=1, le=8, description="Number of variations to generate.")
    start_index: int = Field(
        default=0,
        alias="startIndex",
        description="Variation index of the first generated layout.",
    )


class PromptCategory(BaseModel):
    """Group of example prompts shown next to the prompt box."""

    key: str = Field(..., description="Category identifier.")
    label: str = Field(..., description="Human-readable category name.")
    suggestions: List[str] = Field(default_factory=list, description="Example prompts.")


class DesignCreateRequest(BaseModel):
    """Request body for saving a generated design."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId", min_length=1, description="Owner of the design.")
    title: str = Field(default="Untitled design", description="Display title.")
    prompt: str = Field(default="", description="Prompt the layout was generated from.")
    layout: LayoutSchema = Field(..., description="Generated layout.")
    canvas_data: dict | None = Field(
        default=None,
        alias="canvasData",
        description="Opaque serialized editor scene, stored as-is.",
    )


class DesignUpdateRequest(BaseModel):
    """Partial update of a saved design; omitted fields are left unchanged."""

    model_config = ConfigDict(populate_by_name=True)

    title: str | None = Field(default=None, description="New display title.")
    layout: LayoutSchema | None = Field(default=None, description="Replacement layout.")
    canvas_data: dict | None = Field(
        default=None,
        alias="canvasData",
        description="Replacement editor scene; an explicit null clears it.",
    )


class DesignDetail(BaseModel):
    """Detailed view of a saved design."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Unique design identifier.")
    user_id: str = Field(..., alias="userId", description="Owner of the design.")
    title: str = Field(..., description="Display title.")
    prompt: str = Field(default="", description="Prompt the layout was generated from.")
    layout: LayoutSchema = Field(..., description="Stored layout.")
    canvas_data: dict | None = Field(default=None, alias="canvasData", description="Editor scene.")
    downloads: int = Field(default=0, ge=0, description="Number of recorded exports.")
    created_at: str = Field(
        ...,
        alias="createdAt",
        description="Creation timestamp in ISO 8601 format (UTC).",
    )
    updated_at: str = Field(
        ...,
        alias="updatedAt",
        description="Last modification timestamp in ISO 8601 format (UTC).",
    )


class DesignSummary(BaseModel):
    """Lightweight view of a design suitable for listings."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Unique design identifier.")
    title: str = Field(..., description="Display title.")
    format: DesignFormat = Field(..., description="Design format.")
    downloads: int = Field(default=0, description="Number of recorded exports.")
    updated_at: str = Field(..., alias="updatedAt", description="Last modification timestamp.")


class YouTubeThumbnailRequest(BaseModel):
    """Request body for looking up a video's thumbnails."""

    url: str = Field(..., description="Any YouTube video URL.")


class YouTubeThumbnailResponse(BaseModel):
    """Thumbnail URLs for a YouTube video, best quality first."""

    model_config = ConfigDict(populate_by_name=True)

    video_id: str = Field(..., alias="videoId", description="11-character video identifier.")
    urls: List[str] = Field(default_factory=list, description="Thumbnail URLs, best quality first.")
