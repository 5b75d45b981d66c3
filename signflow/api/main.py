"""FastAPI application for the signflow REST API."""

from typing import List, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, UploadFile
from fastapi.responses import Response

from ..config import get_app_name, get_app_version, get_store_path
from ..config.profile_manager import get_profile
from ..models.mark import MarkDecodeError
from ..models.signed_document import DocumentRecord
from ..pipeline.embedder import PageOutOfRangeError
from ..pipeline.pdf_renderer import PDFRenderError, render_page_png
from ..pipeline.placement_store import PlacementNotFoundError
from ..pipeline.reader import DocumentDecodeError
from ..storage import DocumentNotFoundError, DocumentStore
from ..workflow import SigningSession, export_bytes, export_filename, ingest_document
from .models import DeleteResponse, DocumentResponse, DocumentSummaryResponse, PlacementResponse

app = FastAPI(
    title=f"{get_app_name()} API",
    description="Upload PDFs, attach signature marks to detected placeholders, download signed copies",
    version=get_app_version(),
)


def get_store() -> DocumentStore:
    """Document store dependency (overridden in tests)."""
    return DocumentStore(get_store_path())


def _load(store: DocumentStore, document_id: str) -> DocumentRecord:
    try:
        return store.get(document_id)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


def _summary_fields(record: DocumentRecord) -> dict:
    return {
        "id": record.id,
        "title": record.title,
        "filename": record.filename,
        "uploaded_at": record.uploaded_at,
        "status": record.status.value,
        "summary": record.summary,
        "tags": list(record.tags),
        "page_count": record.page_count,
        "signed_count": record.signed_count,
        "placement_count": len(record.placements),
        "has_signed_pdf": record.signed_pdf is not None,
    }


def _to_response(record: DocumentRecord) -> DocumentResponse:
    placements = [
        PlacementResponse(
            id=p.id,
            page_index=p.page_index,
            x=p.position.x,
            y=p.position.y,
            width=p.position.width,
            height=p.position.height,
            signed=p.is_signed,
        )
        for p in record.placements
    ]
    return DocumentResponse(placements=placements, **_summary_fields(record))


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": f"{get_app_name()} API",
        "version": get_app_version(),
        "docs": "/docs",
    }


@app.post("/api/documents", response_model=DocumentResponse)
async def upload_document(
    file: UploadFile = File(...),
    analyze: bool = Query(True, description="Run AI metadata analysis"),
    store: DocumentStore = Depends(get_store),
):
    """Upload a PDF, detect placeholders and store the document."""
    if not (file.filename or "").lower().endswith(".pdf"):
        raise HTTPException(
            status_code=400,
            detail="File must be a PDF (.pdf extension required)"
        )
    content = await file.read()
    try:
        record = ingest_document(content, file.filename, analyze=analyze, profile=get_profile())
    except DocumentDecodeError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    store.put(record)
    return _to_response(record)


@app.get("/api/documents", response_model=List[DocumentSummaryResponse])
async def list_documents(
    query: Optional[str] = Query(None, description="Search title or filename"),
    status: str = Query("all", pattern="^(all|signed|unsigned)$"),
    store: DocumentStore = Depends(get_store),
):
    """List documents, newest first."""
    return [DocumentSummaryResponse(**_summary_fields(r)) for r in store.list(query=query, status=status)]


@app.get("/api/documents/{document_id}", response_model=DocumentResponse)
async def get_document(document_id: str, store: DocumentStore = Depends(get_store)):
    """Get a document with its placements."""
    return _to_response(_load(store, document_id))


@app.post("/api/documents/{document_id}/placements/{placement_id}/mark", response_model=DocumentResponse)
async def attach_mark(
    document_id: str,
    placement_id: str,
    file: Optional[UploadFile] = File(None),
    data_url: Optional[str] = Form(None),
    store: DocumentStore = Depends(get_store),
):
    """Attach a mark (image upload or base64 data URL) to a placement."""
    if file is not None:
        mark = await file.read()
    elif data_url:
        mark = data_url
    else:
        raise HTTPException(status_code=422, detail="Provide a mark image file or data_url")

    session = SigningSession(_load(store, document_id))
    try:
        session.attach_mark(placement_id, mark)
    except PlacementNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except MarkDecodeError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    record = session.current_record()
    store.put(record)
    return _to_response(record)


@app.post("/api/documents/{document_id}/finalize", response_model=DocumentResponse)
async def finalize_document(document_id: str, store: DocumentStore = Depends(get_store)):
    """Embed all attached marks and store the signed PDF."""
    session = SigningSession(_load(store, document_id))
    try:
        record = session.finalize()
    except (DocumentDecodeError, MarkDecodeError) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except PageOutOfRangeError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    store.put(record)
    return _to_response(record)


@app.get("/api/documents/{document_id}/download")
async def download_document(document_id: str, store: DocumentStore = Depends(get_store)):
    """Download the signed PDF, or the original if not finalized."""
    record = _load(store, document_id)
    return Response(
        content=export_bytes(record),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(record)}"'},
    )


@app.get("/api/documents/{document_id}/pages/{page_index}")
async def render_document_page(
    document_id: str,
    page_index: int,
    scale: Optional[float] = Query(None, gt=0, le=8),
    store: DocumentStore = Depends(get_store),
):
    """Render a page preview (PNG) with placement boxes."""
    record = _load(store, document_id)
    if not 0 <= page_index < record.page_count:
        raise HTTPException(status_code=404, detail=f"Page {page_index} not found")
    try:
        png = render_page_png(
            record.original_pdf,
            page_index,
            scale=scale or get_profile().render_scale,
            placements=record.placements,
        )
    except (PDFRenderError, MarkDecodeError) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return Response(content=png, media_type="image/png")


@app.delete("/api/documents/{document_id}", response_model=DeleteResponse)
async def delete_document(document_id: str, store: DocumentStore = Depends(get_store)):
    """Delete a document."""
    return DeleteResponse(id=document_id, deleted=store.delete(document_id))
