"""
Locate the invoice XML attached to a ZUGFeRD / Factur-X PDF.

The PDF is opened with pdfplumber and navigated through the pdfminer object
graph it exposes (``pdf.doc``):

    catalog -> Names -> EmbeddedFiles -> Names -> [name, filespec, ...]
    filespec -> EF -> F -> embedded file stream

Only the flat ``Names`` array is read; balanced name trees using ``Kids``
are not walked.
"""

from __future__ import annotations

import io
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple, Union

import pdfplumber
from pdfminer.pdfdocument import PDFDocument
from pdfminer.pdftypes import PDFStream, resolve1
from pdfminer.utils import decode_text

from .errors import MalformedSourceError

PdfSource = Union[str, Path, bytes, bytearray, io.BufferedIOBase, io.BytesIO]


@contextmanager
def open_pdf_document(source: PdfSource) -> Iterator[PDFDocument]:
    """
    Open a PDF from a path, raw bytes or a binary file object and yield its
    pdfminer document. The file is closed when the block exits.
    """
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    try:
        pdf = pdfplumber.open(source)
    except Exception as e:
        raise MalformedSourceError(f"Could not open PDF: {e}") from e
    try:
        yield pdf.doc
    finally:
        pdf.close()


def _dict_entry(obj: Any, key: str) -> Any:
    obj = resolve1(obj)
    if not isinstance(obj, dict):
        return None
    return resolve1(obj.get(key))


def _decode_name(obj: Any) -> str:
    """
    Decode a PDF text string (literal or hex form; pdfminer hands both over
    as bytes).
    """
    obj = resolve1(obj)
    if isinstance(obj, bytes):
        return decode_text(obj)
    if isinstance(obj, str):
        return obj
    return ""


def _embedded_file_pairs(document: Any) -> List[Tuple[Any, Any]]:
    catalog = getattr(document, "catalog", None)
    try:
        embedded = _dict_entry(_dict_entry(catalog, "Names"), "EmbeddedFiles")
        names = _dict_entry(embedded, "Names")
    except Exception as e:
        logging.debug(f"Could not resolve EmbeddedFiles name array: {e}")
        return []
    if not isinstance(names, list):
        return []
    return [(names[i], names[i + 1] if i + 1 < len(names) else None) for i in range(0, len(names), 2)]


def list_attachment_names(document: Any) -> List[str]:
    """
    Return the names of all files in the document's EmbeddedFiles array.
    """
    names = []
    for name_obj, _ in _embedded_file_pairs(document):
        try:
            names.append(_decode_name(name_obj))
        except Exception as e:
            logging.debug(f"Skipping unreadable attachment name: {e}")
    return names


def _read_attachment(file_spec: Any) -> Optional[str]:
    stream = _dict_entry(_dict_entry(file_spec, "EF"), "F")
    if not isinstance(stream, PDFStream):
        return None
    data = stream.get_data()
    if data is None:
        return None
    return data.decode("utf-8-sig", errors="replace")


def extract_xml_attachment(document: Any) -> Optional[str]:
    """
    Return the text of the first embedded file whose name ends in ``.xml``.

    ``document`` is anything exposing a pdfminer-style ``catalog`` dict,
    normally the ``PDFDocument`` yielded by :func:`open_pdf_document`.
    Missing objects anywhere along the way mean "keep looking"; ``None`` is
    returned once every entry has been tried. This function does not raise.
    """
    for name_obj, file_spec in _embedded_file_pairs(document):
        try:
            file_name = _decode_name(name_obj)
            if not file_name.lower().endswith(".xml"):
                logging.debug(f"Skipping non-XML attachment {file_name!r}")
                continue
            content = _read_attachment(file_spec)
        except Exception as e:
            logging.debug(f"Could not read attachment: {e}")
            continue
        if content is not None:
            logging.debug(f"Found embedded invoice XML {file_name!r}")
            return content
    return None
