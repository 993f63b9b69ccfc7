"""
CII (ZUGFeRD / Factur-X) invoice extraction.

Parses Cross Industry Invoice XML with xmltodict and maps the resulting tree
onto the flat `InvoiceData` model from .schema.

Features:
- Namespace prefixes (rsm:, ram:, udt:, qdt:) are stripped while parsing
- Repeatable elements are normalized to lists at every point of use
- Profile and payment-means codes are translated to readable labels
- Missing optional elements never fail the extraction; only a document that
  is not CII at all (or not XML at all) raises
- High-level helpers for PDF files, XML files and whole directories
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Optional, Tuple, Union
from xml.parsers.expat import ExpatError

import xmltodict

from .errors import DocumentUnrecognizedError, MalformedSourceError, ZugferdReaderError
from .pdf_reader import PdfSource, extract_xml_attachment, open_pdf_document
from .schema import InvoiceAddress, InvoiceData, InvoiceLineItem, InvoiceTaxBreakdown
from .tree import GenericNode, as_sequence, attribute, dig, text

ROOT_ELEMENT = "CrossIndustryInvoice"

# Elements that may occur several times and are always parsed into lists.
# Other repeatable elements are normalized with as_sequence() where read.
REPEATABLE_ELEMENTS = frozenset(
    {
        "IncludedSupplyChainTradeLineItem",
        "ApplicableTradeTax",
        "SpecifiedTaxRegistration",
        "IncludedNote",
    }
)

PROFILE_NAMES = MappingProxyType(
    {
        "A1": "MINIMUM",
        "A2": "BASIC WL",
        "A3": "BASIC",
        "A4": "EN 16931",
        "A5": "EXTENDED",
        "urn:factur-x.eu:1p0:minimum": "MINIMUM",
        "urn:factur-x.eu:1p0:basicwl": "BASIC WL",
        "urn:factur-x.eu:1p0:basic": "BASIC",
        "urn:cen.eu:en16931:2017": "EN 16931",
        "urn:cen.eu:en16931:2017#compliant#urn:factur-x.eu:1p0:extended": "EXTENDED",
    }
)

# UNTDID 4461 payment means codes
PAYMENT_MEANS_NAMES = MappingProxyType(
    {
        "10": "Cash",
        "20": "Cheque",
        "30": "Credit transfer",
        "42": "Payment to bank account",
        "48": "Card payment",
        "49": "Direct debit",
        "57": "Standing agreement",
        "58": "SEPA credit transfer",
        "59": "SEPA direct debit",
    }
)

VAT_SCHEME = "VA"
FISCAL_SCHEME = "FC"

_DATE_102 = re.compile(r"^\d{8}$")

# ---------------- XML parsing ----------------


def _strip_namespace(path, key: str, value: Any) -> Optional[Tuple[str, Any]]:
    """
    xmltodict postprocessor: ``ram:LineOne`` -> ``LineOne``,
    ``@xsi:schemaLocation`` -> ``@schemaLocation``; namespace declarations
    are dropped.
    """
    prefix = "@" if key.startswith("@") else ""
    local = key[len(prefix):]
    if prefix and (local == "xmlns" or local.startswith("xmlns:")):
        return None
    return prefix + local.rpartition(":")[2], value


def parse_xml(xml: Union[str, bytes]) -> Dict[str, Any]:
    """
    Parse XML text into a generic tree.

    Raises MalformedSourceError when the input is not well-formed XML.
    """
    try:
        return xmltodict.parse(
            xml,
            postprocessor=_strip_namespace,
            force_list=REPEATABLE_ELEMENTS,
        )
    except (ExpatError, ValueError) as e:
        raise MalformedSourceError(f"Could not parse XML: {e}") from e


def is_zugferd_xml(xml: Union[str, bytes]) -> bool:
    """
    Check whether ``xml`` is a ZUGFeRD / Factur-X / CII document, i.e. its
    root element is ``CrossIndustryInvoice``. Malformed XML yields False.
    """
    try:
        parsed = parse_xml(xml)
    except MalformedSourceError:
        return False
    return ROOT_ELEMENT in parsed


# ---------------- Field helpers ----------------


def format_date(raw: str) -> str:
    """
    Rewrite a format-102 date (``YYYYMMDD``) as ``DD.MM.YYYY``.
    Anything else is returned unchanged.
    """
    if _DATE_102.match(raw):
        return f"{raw[6:8]}.{raw[4:6]}.{raw[0:4]}"
    return raw


def _first(value: GenericNode) -> GenericNode:
    items = as_sequence(value)
    return items[0] if items else None


def _optional(value: str) -> Optional[str]:
    return value or None


def _parse_address(party: GenericNode) -> InvoiceAddress:
    return InvoiceAddress(
        name=text(party, "Name"),
        street=text(party, "PostalTradeAddress.LineOne"),
        postal_code=text(party, "PostalTradeAddress.PostcodeCode"),
        city=text(party, "PostalTradeAddress.CityName"),
        country=text(party, "PostalTradeAddress.CountryID"),
    )


def _seller_tax_ids(seller: GenericNode) -> Tuple[str, str]:
    """
    Return (fiscal number, VAT id). Every registration is visited, so a
    later entry with the same scheme overrides an earlier one.
    """
    tax_id = ""
    vat_id = ""
    for reg in as_sequence(dig(seller, "SpecifiedTaxRegistration")):
        scheme = attribute(dig(reg, "ID"), "schemeID")
        value = text(reg, "ID")
        if scheme == VAT_SCHEME:
            vat_id = value
        elif scheme == FISCAL_SCHEME:
            tax_id = value
    return tax_id, vat_id


def _buyer_vat_id(buyer: GenericNode) -> str:
    """
    Return the first VAT id registered for the buyer.
    """
    for reg in as_sequence(dig(buyer, "SpecifiedTaxRegistration")):
        if attribute(dig(reg, "ID"), "schemeID") == VAT_SCHEME:
            return text(reg, "ID")
    return ""


def _parse_line_item(item: GenericNode) -> InvoiceLineItem:
    quantity = dig(item, "SpecifiedLineTradeDelivery.BilledQuantity")
    tax_percent = text(
        item, "SpecifiedLineTradeSettlement.ApplicableTradeTax.0.RateApplicablePercent"
    ) or text(item, "SpecifiedLineTradeSettlement.ApplicableTradeTax.RateApplicablePercent")

    return InvoiceLineItem(
        position=text(item, "AssociatedDocumentLineDocument.LineID"),
        description=text(item, "SpecifiedTradeProduct.Name"),
        quantity=text(item, "SpecifiedLineTradeDelivery.BilledQuantity"),
        unit=attribute(quantity, "unitCode") or "",
        unit_price=text(
            item, "SpecifiedLineTradeAgreement.NetPriceProductTradePrice.ChargeAmount"
        ),
        # An empty rate means "not stated", which is not the same as 0%.
        tax_rate=f"{tax_percent}%" if tax_percent else "",
        total=text(
            item,
            "SpecifiedLineTradeSettlement.SpecifiedTradeSettlementLineMonetarySummation.LineTotalAmount",
        ),
    )


def _parse_tax_breakdown(settlement: GenericNode) -> List[InvoiceTaxBreakdown]:
    return [
        InvoiceTaxBreakdown(
            rate=f"{text(tax, 'RateApplicablePercent')}%",
            basis=text(tax, "BasisAmount"),
            amount=text(tax, "CalculatedAmount"),
        )
        for tax in as_sequence(dig(settlement, "ApplicableTradeTax"))
    ]


def _payment_means_label(type_code: str) -> Optional[str]:
    if not type_code:
        return None
    return PAYMENT_MEANS_NAMES.get(type_code, type_code)


def _profile_label(profile: str) -> Optional[str]:
    if not profile:
        return None
    return PROFILE_NAMES.get(profile, profile)


def _parse_notes(document: GenericNode) -> Optional[str]:
    notes = [text(note, "Content") for note in as_sequence(dig(document, "IncludedNote"))]
    return "\n".join(n for n in notes if n) or None


# ---------------- Extraction ----------------


def parse_zugferd_xml(xml: Union[str, bytes]) -> InvoiceData:
    """
    Map a CII XML document onto `InvoiceData`.

    Parameters
    ----------
    xml:
        XML text (or bytes, letting the XML declaration pick the encoding).

    Returns
    -------
    InvoiceData
        The extracted invoice. Fields missing from the document come back
        empty or None.

    Raises
    ------
    MalformedSourceError
        The input is not well-formed XML.
    DocumentUnrecognizedError
        The root element is not ``CrossIndustryInvoice``.
    """
    parsed = parse_xml(xml)
    if ROOT_ELEMENT not in parsed:
        raise DocumentUnrecognizedError("Not a valid ZUGFeRD/CII XML document")

    root = parsed[ROOT_ELEMENT]
    document = dig(root, "ExchangedDocument")
    context = dig(root, "ExchangedDocumentContext")
    transaction = dig(root, "SupplyChainTradeTransaction")
    agreement = dig(transaction, "ApplicableHeaderTradeAgreement")
    delivery = dig(transaction, "ApplicableHeaderTradeDelivery")
    settlement = dig(transaction, "ApplicableHeaderTradeSettlement")
    totals = dig(settlement, "SpecifiedTradeSettlementHeaderMonetarySummation")

    seller = dig(agreement, "SellerTradeParty")
    buyer = dig(agreement, "BuyerTradeParty")
    seller_tax_id, seller_vat_id = _seller_tax_ids(seller)
    seller_contact = _first(dig(seller, "DefinedTradeContact"))

    line_items = [
        _parse_line_item(item)
        for item in as_sequence(dig(transaction, "IncludedSupplyChainTradeLineItem"))
    ]
    tax_breakdown = _parse_tax_breakdown(settlement)

    payment_means = _first(dig(settlement, "SpecifiedTradeSettlementPaymentMeans"))
    terms = _first(dig(settlement, "SpecifiedTradePaymentTerms"))
    due_date = text(terms, "DueDateDateTime.DateTimeString")
    delivery_date = text(
        delivery, "ActualDeliverySupplyChainEvent.OccurrenceDateTime.DateTimeString"
    )

    invoice = InvoiceData(
        zugferd_version=_optional(
            text(context, "GuidelineSpecifiedDocumentContextParameter.ID")
        ),
        zugferd_profile=_profile_label(
            text(context, "BusinessProcessSpecifiedDocumentContextParameter.ID")
        ),
        seller=_parse_address(seller),
        seller_tax_id=_optional(seller_tax_id),
        seller_vat_id=_optional(seller_vat_id),
        seller_contact=_optional(text(seller_contact, "PersonName")),
        seller_email=_optional(text(seller_contact, "EmailURIUniversalCommunication.URIID")),
        seller_phone=_optional(
            text(seller_contact, "TelephoneUniversalCommunication.CompleteNumber")
        ),
        buyer=_parse_address(buyer),
        buyer_vat_id=_optional(_buyer_vat_id(buyer)),
        buyer_reference=_optional(text(agreement, "BuyerReference")),
        invoice_number=text(document, "ID"),
        invoice_date=format_date(text(document, "IssueDateTime.DateTimeString")),
        due_date=_optional(format_date(due_date)),
        delivery_date=_optional(format_date(delivery_date)),
        order_reference=_optional(
            text(agreement, "BuyerOrderReferencedDocument.IssuerAssignedID")
        ),
        currency=text(settlement, "InvoiceCurrencyCode"),
        line_items=line_items,
        total_net=text(totals, "TaxBasisTotalAmount"),
        total_tax=text(totals, "TaxTotalAmount"),
        total_gross=text(totals, "GrandTotalAmount"),
        tax_breakdown=tax_breakdown or None,
        payment_terms=_optional(text(terms, "Description")),
        payment_means_type=_payment_means_label(text(payment_means, "TypeCode")),
        bank_name=_optional(
            text(payment_means, "PayeeSpecifiedCreditorFinancialInstitution.Name")
        ),
        iban=_optional(text(payment_means, "PayeePartyCreditorFinancialAccount.IBANID")),
        bic=_optional(
            text(payment_means, "PayeeSpecifiedCreditorFinancialInstitution.BICID")
        ),
        payment_reference=_optional(text(settlement, "PaymentReference")),
        notes=_parse_notes(document),
    )
    logging.debug(
        f"Extracted invoice {invoice.invoice_number!r} with {len(line_items)} line items"
    )
    return invoice


# ---------------- High-level API ----------------


def extract_invoice_from_pdf(source: PdfSource) -> Optional[InvoiceData]:
    """
    Extract the invoice embedded in a ZUGFeRD / Factur-X PDF.

    Returns None when the PDF carries no XML attachment. Raises
    DocumentUnrecognizedError when the attachment is not CII and
    MalformedSourceError when the PDF (or the XML) cannot be parsed.
    """
    with open_pdf_document(source) as document:
        xml = extract_xml_attachment(document)
    if xml is None:
        logging.info("No ZUGFeRD XML found in PDF")
        return None
    return parse_zugferd_xml(xml)


def extract_invoice_from_file(path: Union[str, Path]) -> Optional[InvoiceData]:
    """
    Extract an invoice from a ``.pdf`` or ``.xml`` file.
    """
    file_path = Path(path)
    suffix = file_path.suffix.lower()
    if suffix == ".pdf":
        return extract_invoice_from_pdf(file_path)
    if suffix == ".xml":
        return parse_zugferd_xml(file_path.read_bytes())
    raise MalformedSourceError(f"Unsupported file type: {file_path.name}")


def extract_invoices_from_directory(directory: Union[str, Path]) -> List[InvoiceData]:
    """
    Extract every invoice found in the ``*.pdf`` and ``*.xml`` files of a
    directory. Files that fail or carry no invoice are logged and skipped.
    """
    directory = Path(directory)
    invoices: List[InvoiceData] = []
    paths = sorted(p for p in directory.iterdir() if p.suffix.lower() in (".pdf", ".xml"))
    for path in paths:
        try:
            logging.info(f"Processing {path}")
            invoice = extract_invoice_from_file(path)
        except (ZugferdReaderError, OSError) as e:
            logging.warning(f"Failed to extract {path}: {e}")
            continue
        if invoice is None:
            logging.warning(f"No embedded invoice in {path}")
            continue
        invoices.append(invoice)
    return invoices
