"""
Top-level package for the ZUGFeRD reader.

This package exposes:
- CII XML extraction into a flat invoice model
- Embedded-XML lookup for ZUGFeRD / Factur-X PDFs
- CLI entrypoints
- HTTP API (FastAPI)
"""

from .errors import DocumentUnrecognizedError, MalformedSourceError, ZugferdReaderError
from .extractor import is_zugferd_xml, parse_zugferd_xml
from .pdf_reader import extract_xml_attachment
from .schema import InvoiceAddress, InvoiceData, InvoiceLineItem, InvoiceTaxBreakdown

__all__ = [
    "DocumentUnrecognizedError",
    "InvoiceAddress",
    "InvoiceData",
    "InvoiceLineItem",
    "InvoiceTaxBreakdown",
    "MalformedSourceError",
    "ZugferdReaderError",
    "extract_xml_attachment",
    "is_zugferd_xml",
    "parse_zugferd_xml",
]
