"""
FastAPI application for the ZUGFeRD reader.

Endpoints
---------
- GET /health
- POST /extract-xml  (uploaded CII XML file)
- POST /extract-pdf  (uploaded ZUGFeRD / Factur-X PDF)
"""

from __future__ import annotations

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from ..config import configure_logging, get_settings
from ..errors import ZugferdReaderError
from ..extractor import extract_invoice_from_pdf, parse_zugferd_xml
from ..schema import InvoiceData

settings = get_settings()
configure_logging(settings)

app = FastAPI(title="ZUGFeRD Reader", version=settings.service_version)

# Basic CORS configuration (can be tightened in production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


async def _read_upload(file: UploadFile) -> bytes:
    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"Upload exceeds {settings.max_upload_bytes} bytes.",
        )
    return content


@app.get("/health")
async def health() -> dict:
    """
    Simple health-check endpoint.
    """
    return {"status": "ok", "service": settings.service_name}


@app.post("/extract-xml", response_model=InvoiceData, response_model_by_alias=True)
async def extract_xml(
    file: UploadFile = File(..., description="CII / ZUGFeRD XML file."),
) -> InvoiceData:
    """
    Extract invoice data from an uploaded XML document.
    """
    content = await _read_upload(file)
    try:
        return parse_zugferd_xml(content)
    except ZugferdReaderError as e:
        raise HTTPException(status_code=422, detail=f"{file.filename}: {e}")


@app.post("/extract-pdf", response_model=InvoiceData, response_model_by_alias=True)
async def extract_pdf(
    file: UploadFile = File(..., description="ZUGFeRD / Factur-X PDF file."),
) -> InvoiceData:
    """
    Extract invoice data from the XML embedded in an uploaded PDF.
    """
    content = await _read_upload(file)
    try:
        invoice = extract_invoice_from_pdf(content)
    except ZugferdReaderError as e:
        raise HTTPException(status_code=422, detail=f"{file.filename}: {e}")
    if invoice is None:
        raise HTTPException(
            status_code=404, detail=f'No ZUGFeRD XML found in "{file.filename}"'
        )
    return invoice


# For local development convenience:
#   uvicorn zugferd_reader.api.main:app --reload
