"""
Exception types raised by the ZUGFeRD reader.

Only two conditions are treated as errors. Everything else an invoice may be
missing is surfaced as an empty or absent field on the data model.
"""

from __future__ import annotations


class ZugferdReaderError(Exception):
    """
    Base class for all reader errors.
    """


class DocumentUnrecognizedError(ZugferdReaderError):
    """
    The XML parsed fine but is not a CII / ZUGFeRD / Factur-X document.
    """


class MalformedSourceError(ZugferdReaderError):
    """
    The XML could not be tokenized or the PDF could not be opened.
    """
