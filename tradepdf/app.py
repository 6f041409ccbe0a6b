"""
FastAPI application for the trades document PDF service.

Provides REST API endpoints for rendering generic exports, job documents
and job packs, with error handling, logging, and health checks.

License: MIT
"""

import time
import logging
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import Response, JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from tradepdf.documents import (
    document_filename, job_pack_filename, normalize_document_type, render_job_document,
    render_job_pack,
)
from tradepdf.models import ExportDocument, JobDocumentRequest, JobPackRequest
from tradepdf.renderer import PdfDocument, render_document
from tradepdf.settings import settings

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version="1.0.0",
    description="Paginated PDF exports for trades businesses: quotes, job packs, SWMS, variations and claims",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests with timing information."""
    start_time = time.time()

    response = await call_next(request)

    duration = time.time() - start_time
    logger.info(
        f"{request.method} {request.url.path} "
        f"completed in {duration:.3f}s with status {response.status_code}"
    )

    return response


async def _read_body(request: Request) -> bytes:
    """Raw request body, refusing anything above the configured limit."""
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > settings.max_body_bytes:
        raise HTTPException(status_code=413, detail="Request body exceeds maximum size")

    body = await request.body()
    if len(body) > settings.max_body_bytes:
        raise HTTPException(status_code=413, detail="Request body exceeds maximum size")
    return body


def _pdf_response(pdf: PdfDocument, filename: str, render_time: float) -> Response:
    return Response(
        content=pdf.to_bytes(),
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Render-Time": f"{render_time:.3f}",
            "X-Page-Count": str(pdf.page_count),
        }
    )


@app.get("/health")
async def health_check() -> Dict[str, str]:
    """
    Health check endpoint.

    Returns:
        Status dictionary indicating service health
    """
    return {"status": "ok"}


@app.post("/render")
async def render_pdf(request: Request) -> Response:
    """
    Render an export document to PDF.

    Args:
        request: FastAPI request object; body is an ``ExportDocument``

    Returns:
        PDF file as binary response

    Raises:
        HTTPException: On validation or rendering errors
    """
    try:
        start_time = time.time()

        document = ExportDocument.model_validate_json(await _read_body(request))
        pdf = render_document(document)

        render_time = time.time() - start_time
        logger.info(f"Rendered document with {len(document.blocks)} blocks in {render_time:.3f}s")

        return _pdf_response(pdf, document_filename(document.document_type, document.record_id), render_time)

    except HTTPException:
        raise

    except ValidationError as e:
        logger.error(f"Validation error: {str(e)}")
        raise HTTPException(status_code=400, detail=f"Validation error: {str(e)}")

    except ValueError as e:
        logger.error(f"Value error: {str(e)}")
        raise HTTPException(status_code=400, detail=f"Validation error: {str(e)}")

    except Exception as e:
        logger.error(f"Rendering error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Rendering error: {str(e)}")


@app.post("/render-base64")
async def render_pdf_base64(request: Request) -> Dict[str, Any]:
    """
    Render an export document and return it as a base64 data URI.

    Useful for clients that preview the PDF inline instead of downloading it.

    Args:
        request: FastAPI request object; body is an ``ExportDocument``

    Returns:
        JSON with the data URI and metadata

    Raises:
        HTTPException: On validation or rendering errors
    """
    try:
        start_time = time.time()

        document = ExportDocument.model_validate_json(await _read_body(request))
        pdf = render_document(document)
        pdf_bytes = pdf.to_bytes()

        render_time = time.time() - start_time
        logger.info(f"Rendered document (base64) with {len(document.blocks)} blocks in {render_time:.3f}s")

        return {
            "success": True,
            "data_uri": pdf.to_data_string(),
            "filename": document_filename(document.document_type, document.record_id),
            "size_bytes": len(pdf_bytes),
            "page_count": pdf.page_count,
            "render_time_seconds": round(render_time, 3),
        }

    except HTTPException:
        raise

    except ValidationError as e:
        logger.error(f"Validation error: {str(e)}")
        raise HTTPException(status_code=400, detail=f"Validation error: {str(e)}")

    except ValueError as e:
        logger.error(f"Value error: {str(e)}")
        raise HTTPException(status_code=400, detail=f"Validation error: {str(e)}")

    except Exception as e:
        logger.error(f"Rendering error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Rendering error: {str(e)}")


@app.post("/documents/{doc_type}/render")
async def render_job_document_pdf(doc_type: str, request: Request) -> Response:
    """
    Render a confirmed job document (SWMS, variation, EOT, progress claim,
    handover, maintenance).

    Args:
        doc_type: Document type, case-insensitive
        request: FastAPI request object; body is a ``JobDocumentRequest``

    Returns:
        PDF file as binary response

    Raises:
        HTTPException: 400 for unknown types or invalid payloads
    """
    try:
        start_time = time.time()

        normalized = normalize_document_type(doc_type)
        payload = JobDocumentRequest.model_validate_json(await _read_body(request))
        pdf = render_job_document(normalized, payload, default_issuer=settings.default_issuer_name)
        pdf.to_bytes()

        render_time = time.time() - start_time
        return _pdf_response(pdf, document_filename(normalized, payload.job.id), render_time)

    except HTTPException:
        raise

    except ValidationError as e:
        logger.error(f"Validation error: {str(e)}")
        raise HTTPException(status_code=400, detail=f"Validation error: {str(e)}")

    except ValueError as e:
        logger.error(f"Value error: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))

    except Exception as e:
        logger.error(f"Rendering error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Rendering error: {str(e)}")


@app.post("/job-pack/render")
async def render_job_pack_pdf(request: Request) -> Response:
    """
    Render the job pack (quote, scope, materials, acceptance) for one job.

    Args:
        request: FastAPI request object; body is a ``JobPackRequest``

    Returns:
        PDF file as binary response

    Raises:
        HTTPException: 400 for invalid payloads or unreconciled materials totals
    """
    try:
        start_time = time.time()

        payload = JobPackRequest.model_validate_json(await _read_body(request))
        pdf = render_job_pack(payload)
        pdf.to_bytes()

        render_time = time.time() - start_time
        return _pdf_response(pdf, job_pack_filename(payload.job.id), render_time)

    except HTTPException:
        raise

    except ValidationError as e:
        logger.error(f"Validation error: {str(e)}")
        raise HTTPException(status_code=400, detail=f"Validation error: {str(e)}")

    except ValueError as e:
        logger.error(f"Value error: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))

    except Exception as e:
        logger.error(f"Rendering error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Rendering error: {str(e)}")


@app.exception_handler(413)
async def payload_too_large_handler(request: Request, exc: Any):
    """Handle payload too large errors."""
    return JSONResponse(
        status_code=413,
        content={"error": "Payload too large", "detail": "Request body exceeds maximum size"}
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors."""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": str(exc)}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
