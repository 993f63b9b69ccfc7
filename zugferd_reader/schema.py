"""
Data models for invoices extracted from ZUGFeRD / Factur-X documents.

All external components (extractor, CLI, API) use these Pydantic models to
ensure a consistent contract with whatever renders the invoice. Values are
kept as text exactly as they appear in the XML so no precision is lost or
invented on the way.

The models are frozen: they are built once per extraction call and never
modified afterwards. They serialize with camelCase aliases
(``invoiceNumber``, ``lineItems``, ...) when dumped with ``by_alias=True``.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _InvoiceModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class InvoiceAddress(_InvoiceModel):
    """
    Postal address of a trade party.
    """

    name: str = Field(default="", description="Legal name of the party.")
    street: str = Field(default="", description="First address line.")
    postal_code: str = Field(default="", description="Postcode.")
    city: str = Field(default="", description="City name.")
    country: str = Field(default="", description="ISO 3166 country code.")


class InvoiceLineItem(_InvoiceModel):
    """
    Represents a single line item in an invoice.
    """

    position: str = Field(default="", description="Line number as stated in the document.")
    description: str = Field(default="", description="Product or service name.")
    quantity: str = Field(default="", description="Billed quantity.")
    unit: str = Field(default="", description="UN/ECE unit code, e.g. 'C62' or 'HUR'.")
    unit_price: str = Field(default="", description="Net price per unit.")
    tax_rate: str = Field(
        default="",
        description="Tax rate with a trailing '%', or empty when the line states no rate.",
    )
    total: str = Field(default="", description="Net line total.")


class InvoiceTaxBreakdown(_InvoiceModel):
    """
    One document-level tax entry (category / rate pair).
    """

    rate: str = Field(..., description="Tax rate with a trailing '%'.")
    basis: str = Field(default="", description="Taxable basis amount.")
    amount: str = Field(default="", description="Calculated tax amount.")


class InvoiceData(_InvoiceModel):
    """
    Flat, render-ready view of a CII invoice.

    ``invoice_number``, ``invoice_date``, ``currency``, the three totals and
    both parties are always present (possibly as empty strings). Everything
    else is ``None`` when the document does not provide it.
    """

    zugferd_version: Optional[str] = Field(
        default=None, description="Guideline identifier (specification version)."
    )
    zugferd_profile: Optional[str] = Field(
        default=None, description="Readable profile name, e.g. 'EN 16931'."
    )

    seller: InvoiceAddress = Field(default_factory=InvoiceAddress)
    seller_tax_id: Optional[str] = Field(
        default=None, description="Seller fiscal number (scheme 'FC')."
    )
    seller_vat_id: Optional[str] = Field(
        default=None, description="Seller VAT identifier (scheme 'VA')."
    )
    seller_contact: Optional[str] = Field(default=None, description="Seller contact person.")
    seller_email: Optional[str] = Field(default=None, description="Seller contact e-mail.")
    seller_phone: Optional[str] = Field(default=None, description="Seller contact phone.")

    buyer: InvoiceAddress = Field(default_factory=InvoiceAddress)
    buyer_vat_id: Optional[str] = Field(
        default=None, description="Buyer VAT identifier (scheme 'VA')."
    )
    buyer_reference: Optional[str] = Field(
        default=None, description="Buyer reference, e.g. a Leitweg-ID."
    )

    invoice_number: str = Field(default="", description="Invoice identifier.")
    invoice_date: str = Field(default="", description="Issue date, DD.MM.YYYY when known.")
    due_date: Optional[str] = Field(default=None, description="Payment due date.")
    delivery_date: Optional[str] = Field(default=None, description="Actual delivery date.")
    order_reference: Optional[str] = Field(
        default=None, description="Buyer order number."
    )
    currency: str = Field(default="", description="Invoice currency code, e.g. 'EUR'.")

    line_items: List[InvoiceLineItem] = Field(
        default_factory=list, description="Line items in document order."
    )

    total_net: str = Field(default="", description="Sum of net amounts (tax basis).")
    total_tax: str = Field(default="", description="Total tax amount.")
    total_gross: str = Field(default="", description="Grand total including tax.")
    tax_breakdown: Optional[List[InvoiceTaxBreakdown]] = Field(
        default=None, description="Document-level tax entries."
    )

    payment_terms: Optional[str] = Field(default=None, description="Payment terms text.")
    payment_means_type: Optional[str] = Field(
        default=None, description="Readable payment means, e.g. 'SEPA credit transfer'."
    )
    bank_name: Optional[str] = Field(default=None, description="Payee bank name.")
    iban: Optional[str] = Field(default=None, description="Payee IBAN.")
    bic: Optional[str] = Field(default=None, description="Payee BIC.")
    payment_reference: Optional[str] = Field(
        default=None, description="Remittance information."
    )
    notes: Optional[str] = Field(
        default=None, description="Document notes joined by newlines."
    )
