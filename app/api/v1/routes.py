from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.api.v1.schemas import (
    DesignCreateRequest,
    DesignDetail,
    DesignSummary,
    DesignUpdateRequest,
    GenerateDesignRequest,
    GenerateVariationsRequest,
    LayoutSchema,
    PromptCategory,
    YouTubeThumbnailRequest,
    YouTubeThumbnailResponse,
)
from app.models.design import DesignRecord, Layout
from app.services.designs import DesignStorageError, DesignStore, get_design_store
from app.services.enhancer import Enhancer, get_enhancer
from app.services.generator import generate_design, generate_variations
from app.services.renderer import render_layout_png
from app.services.suggestions import list_prompt_categories
from app.services.youtube import get_youtube_thumbnail_urls, parse_youtube_url

router = APIRouter(prefix="/api/v1")


def to_layout_schema(layout: Layout) -> LayoutSchema:
    return LayoutSchema.model_validate(layout.to_dict())


def to_layout(schema: LayoutSchema) -> Layout:
    return Layout.from_dict(schema.model_dump(mode="json", by_alias=True))


def to_design_detail(record: DesignRecord) -> DesignDetail:
    return DesignDetail.model_validate(record.to_dict())


def _storage_failure() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Failed to persist design.",
    )


def _design_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Design not found.",
    )


@router.get("/health", tags=["health"])
async def health_check() -> dict:
    """API v1 health check endpoint."""
    return {"status": "ok", "api_version": "v1"}


@router.post(
    "/designs/generate",
    response_model=LayoutSchema,
    tags=["generation"],
    summary="Generate a design layout from a prompt",
)
async def generate(
    request: GenerateDesignRequest,
    enhancer: Enhancer = Depends(get_enhancer),
) -> LayoutSchema:
    """
    Generate one layout.

    Always succeeds: when the external generation service is unavailable or
    returns something unusable, the layout is built from local heuristics
    and `enhanced` is false.
    """
    layout = await generate_design(
        request.prompt,
        request.format,
        request.variation_index,
        enhancer=enhancer,
    )
    return to_layout_schema(layout)


@router.post(
    "/designs/variations",
    response_model=list[LayoutSchema],
    tags=["generation"],
    summary="Generate several style variations of a design",
)
async def variations(
    request: GenerateVariationsRequest,
    enhancer: Enhancer = Depends(get_enhancer),
) -> list[LayoutSchema]:
    """Generate `count` layouts with consecutive variation indices, concurrently."""
    layouts = await generate_variations(
        request.prompt,
        request.format,
        request.count,
        request.start_index,
        enhancer=enhancer,
    )
    return [to_layout_schema(layout) for layout in layouts]


@router.post(
    "/designs/render",
    tags=["generation"],
    summary="Render a layout to PNG",
    response_class=Response,
)
async def render(layout: LayoutSchema) -> Response:
    """Rasterize a layout; useful for previews and quick exports."""
    return Response(content=render_layout_png(to_layout(layout)), media_type="image/png")


@router.get(
    "/prompts/suggestions",
    response_model=list[PromptCategory],
    tags=["generation"],
    summary="Example prompts grouped by theme",
)
async def prompt_suggestions() -> list[PromptCategory]:
    return [PromptCategory.model_validate(category) for category in list_prompt_categories()]


@router.post(
    "/designs",
    response_model=DesignDetail,
    status_code=status.HTTP_201_CREATED,
    tags=["designs"],
    summary="Save a design",
)
async def create_design(
    request: DesignCreateRequest,
    store: DesignStore = Depends(get_design_store),
) -> DesignDetail:
    try:
        record = await store.create_design(
            user_id=request.user_id,
            layout=to_layout(request.layout),
            title=request.title,
            prompt=request.prompt,
            canvas_data=request.canvas_data,
        )
    except DesignStorageError as exc:
        raise _storage_failure() from exc
    return to_design_detail(record)


@router.get(
    "/designs",
    response_model=list[DesignSummary],
    tags=["designs"],
    summary="List a user's designs",
)
async def list_designs(
    user_id: str = Query(..., alias="userId", min_length=1, description="Owner of the designs."),
    store: DesignStore = Depends(get_design_store),
) -> list[DesignSummary]:
    """List the user's designs, most recently created first."""
    records = await store.list_designs(user_id)
    return [
        DesignSummary(
            id=record.id,
            title=record.title,
            format=record.layout.format,
            downloads=record.downloads,
            updated_at=record.updated_at.isoformat(),
        )
        for record in records
    ]


@router.get(
    "/designs/{design_id}",
    response_model=DesignDetail,
    tags=["designs"],
    summary="Get a saved design",
)
async def get_design(
    design_id: str,
    store: DesignStore = Depends(get_design_store),
) -> DesignDetail:
    record = await store.get_design(design_id)
    if record is None:
        raise _design_not_found()
    return to_design_detail(record)


@router.patch(
    "/designs/{design_id}",
    response_model=DesignDetail,
    tags=["designs"],
    summary="Update a saved design",
)
async def update_design(
    design_id: str,
    request: DesignUpdateRequest,
    store: DesignStore = Depends(get_design_store),
) -> DesignDetail:
    try:
        record = await store.update_design(
            design_id,
            title=request.title,
            layout=to_layout(request.layout) if request.layout is not None else None,
            canvas_data=request.canvas_data,
            clear_canvas_data="canvas_data" in request.model_fields_set and request.canvas_data is None,
        )
    except DesignStorageError as exc:
        raise _storage_failure() from exc
    if record is None:
        raise _design_not_found()
    return to_design_detail(record)


@router.delete(
    "/designs/{design_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["designs"],
    summary="Delete a saved design",
)
async def delete_design(
    design_id: str,
    store: DesignStore = Depends(get_design_store),
) -> Response:
    try:
        deleted = await store.delete_design(design_id)
    except DesignStorageError as exc:
        raise _storage_failure() from exc
    if not deleted:
        raise _design_not_found()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/designs/{design_id}/downloads",
    response_model=DesignDetail,
    tags=["designs"],
    summary="Record an export of a design",
)
async def record_download(
    design_id: str,
    store: DesignStore = Depends(get_design_store),
) -> DesignDetail:
    try:
        record = await store.increment_downloads(design_id)
    except DesignStorageError as exc:
        raise _storage_failure() from exc
    if record is None:
        raise _design_not_found()
    return to_design_detail(record)


@router.get(
    "/designs/{design_id}/preview.png",
    tags=["designs"],
    summary="Render a saved design to PNG",
    response_class=Response,
)
async def design_preview(
    design_id: str,
    store: DesignStore = Depends(get_design_store),
) -> Response:
    record = await store.get_design(design_id)
    if record is None:
        raise _design_not_found()
    return Response(content=render_layout_png(record.layout), media_type="image/png")


@router.post(
    "/youtube/thumbnails",
    response_model=YouTubeThumbnailResponse,
    tags=["youtube"],
    summary="Look up thumbnail URLs for a YouTube video",
)
async def youtube_thumbnails(request: YouTubeThumbnailRequest) -> YouTubeThumbnailResponse:
    video_id = parse_youtube_url(request.url)
    if video_id is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Invalid YouTube URL. Please check the URL and try again.",
        )
    return YouTubeThumbnailResponse(video_id=video_id, urls=get_youtube_thumbnail_urls(video_id))
