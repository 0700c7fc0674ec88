import logging
import uuid

from fastapi import APIRouter, Depends, File, HTTPException, Request, Response, UploadFile

from scrapbook.models.page import PageElement, ScrapbookPage
from scrapbook.models.schemas import (
    MoveRequest,
    PagesResponse,
    ScaleRequest,
    ScrapbookCreate,
    ScrapbookSummary,
    ScrapbookUpdate,
    SlideshowInfo,
    TextElementCreate,
    TextElementUpdate,
)
from scrapbook.services.document_editor import DocumentEditor
from scrapbook.services.drawing_codec import drawing_codec
from scrapbook.services.image_processor import image_processor
from scrapbook.services.page_codec import BodyEncodeError
from scrapbook.services.recovery_archive import recovery_archive
from scrapbook.services.scrapbook_store import ScrapbookNotFoundError, ScrapbookStore, get_store
from scrapbook.services.slideshow import Slideshow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/scrapbooks", tags=["scrapbooks"])


ALLOWED_CONTENT_TYPES = {
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/webp",
    "image/gif",
}


async def _read_image_upload(file: UploadFile) -> bytes:
    if file.content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type. Allowed: {', '.join(sorted(ALLOWED_CONTENT_TYPES))}",
        )

    image_data = await file.read()

    if not image_data:
        raise HTTPException(status_code=400, detail="Empty file uploaded")

    if image_processor.load_image(image_data) is None:
        raise HTTPException(status_code=400, detail="Unreadable image")

    return image_data


def _summary(store: ScrapbookStore, scrapbook_id: uuid.UUID) -> ScrapbookSummary:
    scrapbook = store.get(scrapbook_id)
    if scrapbook is None:
        raise HTTPException(status_code=404, detail=f"Scrapbook {scrapbook_id} not found")
    return ScrapbookSummary.model_validate(scrapbook.model_dump())


def _open_editor(
    store: ScrapbookStore, scrapbook_id: uuid.UUID
) -> tuple[DocumentEditor, bytes | None]:
    """Load and decode a scrapbook body. Returns the editor and the raw stored bytes."""
    try:
        body = store.load(scrapbook_id)
    except ScrapbookNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return DocumentEditor.open(body), body


def _open_page(
    store: ScrapbookStore, scrapbook_id: uuid.UUID, index: int
) -> tuple[DocumentEditor, bytes | None]:
    editor, body = _open_editor(store, scrapbook_id)
    try:
        editor.select_page(index)
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return editor, body


def _find_element(editor: DocumentEditor, element_id: uuid.UUID) -> PageElement:
    try:
        return editor.find_element(element_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Element {element_id} not found")


def _commit(
    store: ScrapbookStore,
    scrapbook_id: uuid.UUID,
    editor: DocumentEditor,
    original_body: bytes | None,
) -> None:
    """Encode the editor pages and replace the stored body."""
    try:
        body = editor.encode()
    except BodyEncodeError as e:
        raise HTTPException(status_code=500, detail=str(e))

    if not store.save(scrapbook_id, body):
        raise HTTPException(status_code=404, detail=f"Scrapbook {scrapbook_id} not found")

    if editor.recovered and original_body:
        recovery_archive.archive(str(scrapbook_id), original_body, editor.decode_error)


# --- Scrapbooks ---


@router.get("", response_model=list[ScrapbookSummary])
def list_scrapbooks(
    search: str | None = None, store: ScrapbookStore = Depends(get_store)
) -> list[ScrapbookSummary]:
    """List scrapbooks, newest first, optionally filtered by title."""
    return [
        ScrapbookSummary.model_validate(book.model_dump())
        for book in store.list_scrapbooks(search)
    ]


@router.post("", response_model=ScrapbookSummary, status_code=201)
def create_scrapbook(
    request: ScrapbookCreate, store: ScrapbookStore = Depends(get_store)
) -> ScrapbookSummary:
    scrapbook = store.create(title=request.title, page_style=request.page_style)
    return ScrapbookSummary.model_validate(scrapbook.model_dump())


@router.get("/{scrapbook_id}", response_model=ScrapbookSummary)
def get_scrapbook(
    scrapbook_id: uuid.UUID, store: ScrapbookStore = Depends(get_store)
) -> ScrapbookSummary:
    return _summary(store, scrapbook_id)


@router.patch("/{scrapbook_id}", response_model=ScrapbookSummary)
def update_scrapbook(
    scrapbook_id: uuid.UUID,
    request: ScrapbookUpdate,
    store: ScrapbookStore = Depends(get_store),
) -> ScrapbookSummary:
    try:
        scrapbook = store.update(scrapbook_id, title=request.title, page_style=request.page_style)
    except ScrapbookNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ScrapbookSummary.model_validate(scrapbook.model_dump())


@router.delete("/{scrapbook_id}", status_code=204)
def delete_scrapbook(scrapbook_id: uuid.UUID, store: ScrapbookStore = Depends(get_store)) -> Response:
    if not store.delete(scrapbook_id):
        raise HTTPException(status_code=404, detail=f"Scrapbook {scrapbook_id} not found")
    return Response(status_code=204)


@router.get("/{scrapbook_id}/cover")
def get_cover(scrapbook_id: uuid.UUID, store: ScrapbookStore = Depends(get_store)) -> Response:
    scrapbook = store.get(scrapbook_id)
    if scrapbook is None or scrapbook.cover_image is None:
        raise HTTPException(status_code=404, detail=f"No cover for scrapbook {scrapbook_id}")
    return Response(content=scrapbook.cover_image, media_type="image/jpeg")


@router.put("/{scrapbook_id}/cover", response_model=ScrapbookSummary)
async def set_cover(
    scrapbook_id: uuid.UUID,
    file: UploadFile = File(...),
    store: ScrapbookStore = Depends(get_store),
) -> ScrapbookSummary:
    image_data = await _read_image_upload(file)
    try:
        scrapbook = store.update(scrapbook_id, cover_image=image_data)
    except ScrapbookNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return ScrapbookSummary.model_validate(scrapbook.model_dump())


# --- Pages ---


@router.get("/{scrapbook_id}/pages", response_model=PagesResponse)
def get_pages(scrapbook_id: uuid.UUID, store: ScrapbookStore = Depends(get_store)) -> PagesResponse:
    editor, _ = _open_editor(store, scrapbook_id)
    return PagesResponse(pages=editor.pages, recovered=editor.recovered)


@router.post("/{scrapbook_id}/pages", response_model=ScrapbookPage, status_code=201)
def add_page(scrapbook_id: uuid.UUID, store: ScrapbookStore = Depends(get_store)) -> ScrapbookPage:
    editor, body = _open_editor(store, scrapbook_id)
    page = editor.add_page()
    _commit(store, scrapbook_id, editor, body)
    return page


@router.delete("/{scrapbook_id}/pages/{index}")
def delete_page(
    scrapbook_id: uuid.UUID, index: int, store: ScrapbookStore = Depends(get_store)
) -> dict:
    """Delete a page. Deleting the only remaining page does nothing."""
    editor, body = _open_editor(store, scrapbook_id)
    if not 0 <= index < len(editor.pages):
        raise HTTPException(status_code=404, detail=f"Page {index} does not exist")

    deleted = editor.delete_page(index)
    if deleted:
        _commit(store, scrapbook_id, editor, body)
    return {"deleted": deleted, "page_count": len(editor.pages)}


@router.put("/{scrapbook_id}/pages/{index}/drawing", response_model=ScrapbookPage)
async def set_drawing(
    scrapbook_id: uuid.UUID,
    index: int,
    request: Request,
    store: ScrapbookStore = Depends(get_store),
) -> ScrapbookPage:
    drawing_data = await request.body()
    if drawing_codec.decode(drawing_data) is None:
        raise HTTPException(status_code=400, detail="Unreadable drawing")

    editor, body = _open_page(store, scrapbook_id, index)
    editor.set_drawing(drawing_data)
    _commit(store, scrapbook_id, editor, body)
    return editor.current_page


@router.delete("/{scrapbook_id}/pages/{index}/drawing", response_model=ScrapbookPage)
def clear_drawing(
    scrapbook_id: uuid.UUID, index: int, store: ScrapbookStore = Depends(get_store)
) -> ScrapbookPage:
    editor, body = _open_page(store, scrapbook_id, index)
    editor.clear_drawing()
    _commit(store, scrapbook_id, editor, body)
    return editor.current_page


# --- Elements ---


@router.post(
    "/{scrapbook_id}/pages/{index}/elements/text", response_model=PageElement, status_code=201
)
def add_text_element(
    scrapbook_id: uuid.UUID,
    index: int,
    request: TextElementCreate,
    store: ScrapbookStore = Depends(get_store),
) -> PageElement:
    editor, body = _open_page(store, scrapbook_id, index)
    element = editor.add_text(
        request.text,
        text_color=request.text_color,
        font_size=request.font_size,
        font_name=request.font_name,
    )
    if element is None:
        raise HTTPException(status_code=400, detail="Text must not be empty")

    _commit(store, scrapbook_id, editor, body)
    return element


@router.post(
    "/{scrapbook_id}/pages/{index}/elements/image", response_model=PageElement, status_code=201
)
async def add_image_element(
    scrapbook_id: uuid.UUID,
    index: int,
    file: UploadFile = File(...),
    store: ScrapbookStore = Depends(get_store),
) -> PageElement:
    image_data = await _read_image_upload(file)

    editor, body = _open_page(store, scrapbook_id, index)
    element = editor.add_image(image_data)
    _commit(store, scrapbook_id, editor, body)
    return element


@router.patch(
    "/{scrapbook_id}/pages/{index}/elements/{element_id}/text", response_model=PageElement
)
def update_text_element(
    scrapbook_id: uuid.UUID,
    index: int,
    element_id: uuid.UUID,
    request: TextElementUpdate,
    store: ScrapbookStore = Depends(get_store),
) -> PageElement:
    editor, body = _open_page(store, scrapbook_id, index)
    element = _find_element(editor, element_id)
    if element.text is None:
        raise HTTPException(status_code=400, detail=f"Element {element_id} is not a text element")

    editor.update_text(
        element_id,
        text=request.text,
        text_color=request.text_color,
        font_size=request.font_size,
        font_name=request.font_name,
    )
    _commit(store, scrapbook_id, editor, body)
    return element


@router.post(
    "/{scrapbook_id}/pages/{index}/elements/{element_id}/move", response_model=PageElement
)
def move_element(
    scrapbook_id: uuid.UUID,
    index: int,
    element_id: uuid.UUID,
    request: MoveRequest,
    store: ScrapbookStore = Depends(get_store),
) -> PageElement:
    """Commit the net translation of a finished drag."""
    editor, body = _open_page(store, scrapbook_id, index)
    _find_element(editor, element_id)
    try:
        element = editor.move_element(element_id, request.dx, request.dy)
    except ValueError:
        raise HTTPException(status_code=422, detail="Move would take the element out of range")
    _commit(store, scrapbook_id, editor, body)
    return element


@router.post(
    "/{scrapbook_id}/pages/{index}/elements/{element_id}/scale", response_model=PageElement
)
def scale_element(
    scrapbook_id: uuid.UUID,
    index: int,
    element_id: uuid.UUID,
    request: ScaleRequest,
    store: ScrapbookStore = Depends(get_store),
) -> PageElement:
    editor, body = _open_page(store, scrapbook_id, index)
    _find_element(editor, element_id)
    element = editor.scale_element(element_id, request.magnification)
    _commit(store, scrapbook_id, editor, body)
    return element


@router.post(
    "/{scrapbook_id}/pages/{index}/elements/{element_id}/front", response_model=PageElement
)
def bring_element_to_front(
    scrapbook_id: uuid.UUID,
    index: int,
    element_id: uuid.UUID,
    store: ScrapbookStore = Depends(get_store),
) -> PageElement:
    editor, body = _open_page(store, scrapbook_id, index)
    _find_element(editor, element_id)
    element = editor.bring_to_front(element_id)
    _commit(store, scrapbook_id, editor, body)
    return element


@router.delete("/{scrapbook_id}/pages/{index}/elements/{element_id}", status_code=204)
def delete_element(
    scrapbook_id: uuid.UUID,
    index: int,
    element_id: uuid.UUID,
    store: ScrapbookStore = Depends(get_store),
) -> Response:
    editor, body = _open_page(store, scrapbook_id, index)
    _find_element(editor, element_id)
    editor.remove_element(element_id)
    _commit(store, scrapbook_id, editor, body)
    return Response(status_code=204)


# --- Slideshow ---


def _slideshow(store: ScrapbookStore, scrapbook_id: uuid.UUID) -> Slideshow:
    scrapbook = store.get(scrapbook_id)
    if scrapbook is None:
        raise HTTPException(status_code=404, detail=f"Scrapbook {scrapbook_id} not found")
    editor = DocumentEditor.open(scrapbook.body)
    return Slideshow(editor.pages, scrapbook.page_style)


@router.get("/{scrapbook_id}/slideshow", response_model=SlideshowInfo)
def get_slideshow(scrapbook_id: uuid.UUID, store: ScrapbookStore = Depends(get_store)) -> SlideshowInfo:
    slideshow = _slideshow(store, scrapbook_id)
    return SlideshowInfo(
        page_count=slideshow.page_count,
        interval=slideshow.interval,
        page_ids=[page.id for page in slideshow.pages],
    )


@router.get("/{scrapbook_id}/slideshow/{index}.png")
async def render_slide(
    scrapbook_id: uuid.UUID, index: int, store: ScrapbookStore = Depends(get_store)
) -> Response:
    """Render one page of the slideshow as PNG, drawing layer included."""
    slideshow = _slideshow(store, scrapbook_id)
    try:
        slideshow.go_to(index)
    except IndexError as e:
        raise HTTPException(status_code=404, detail=str(e))

    await slideshow.prerender_drawings()
    image = slideshow.render()
    return Response(content=image_processor.encode_png(image), media_type="image/png")
