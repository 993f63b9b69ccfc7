"""
Command-line interface for the ZUGFeRD reader.

Usage examples:
    py -m zugferd_reader.cli extract --input invoices/rechnung.pdf
    py -m zugferd_reader.cli extract --input invoices --output output/extracted.json
    py -m zugferd_reader.cli check --input factur-x.xml
    py -m zugferd_reader.cli attachments --pdf invoices/rechnung.pdf
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer

from .config import configure_logging, get_settings
from .errors import ZugferdReaderError
from .extractor import extract_invoice_from_file, extract_invoices_from_directory, is_zugferd_xml
from .pdf_reader import extract_xml_attachment, list_attachment_names, open_pdf_document

app = typer.Typer(help="Read invoice data from ZUGFeRD / Factur-X PDFs and CII XML files.")

EXIT_NOT_FOUND = 1
EXIT_UNREADABLE = 2
EXIT_NO_INVOICE = 3


@app.callback()
def main_callback() -> None:
    """
    Configure logging before any command runs.
    """
    configure_logging(get_settings())


def _ensure_parent_directory(path: Path) -> None:
    """
    Ensure the parent directory for a file path exists.
    """
    if path.parent and not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)


def _write_json(payload: Any, output: Optional[str]) -> None:
    rendered = json.dumps(payload, indent=2, ensure_ascii=False)
    if output is None:
        typer.echo(rendered)
        return
    output_path = Path(output)
    _ensure_parent_directory(output_path)
    output_path.write_text(rendered + "\n", encoding="utf-8")
    typer.echo(f"Wrote {output_path}")


def _require_file(path: Path) -> None:
    if not path.exists():
        typer.echo(f"Input not found: {path}", err=True)
        raise typer.Exit(code=EXIT_NOT_FOUND)


@app.command()
def extract(
    input: str = typer.Option(
        ...,
        "--input",
        help="PDF or XML invoice, or a directory containing several.",
    ),
    output: Optional[str] = typer.Option(
        None,
        "--output",
        help="Path to write the extracted invoice data as JSON (default: stdout).",
    ),
) -> None:
    """
    Extract structured invoice data from a file or a directory.
    """
    input_path = Path(input)
    _require_file(input_path)

    if input_path.is_dir():
        invoices = extract_invoices_from_directory(input_path)
        _write_json([inv.model_dump(by_alias=True) for inv in invoices], output)
        typer.echo(f"Extracted {len(invoices)} invoices from {input_path}", err=True)
        return

    try:
        invoice = extract_invoice_from_file(input_path)
    except (ZugferdReaderError, OSError) as e:
        typer.echo(f"{input_path.name}: {e}", err=True)
        raise typer.Exit(code=EXIT_UNREADABLE)

    if invoice is None:
        typer.echo(f'No ZUGFeRD XML found in "{input_path.name}"', err=True)
        raise typer.Exit(code=EXIT_NO_INVOICE)

    _write_json(invoice.model_dump(by_alias=True), output)


@app.command()
def check(
    input: str = typer.Option(
        ...,
        "--input",
        help="XML file, or PDF whose embedded XML should be checked.",
    ),
) -> None:
    """
    Report whether a file is (or embeds) a ZUGFeRD / Factur-X document.
    """
    input_path = Path(input)
    _require_file(input_path)

    if input_path.suffix.lower() == ".pdf":
        try:
            with open_pdf_document(input_path) as document:
                xml = extract_xml_attachment(document)
        except ZugferdReaderError as e:
            typer.echo(f"{input_path.name}: {e}", err=True)
            raise typer.Exit(code=EXIT_UNREADABLE)
        if xml is None:
            typer.echo(f'No ZUGFeRD XML found in "{input_path.name}"')
            raise typer.Exit(code=EXIT_NO_INVOICE)
    else:
        try:
            xml = input_path.read_bytes()
        except OSError as e:
            typer.echo(f"{input_path.name}: {e}", err=True)
            raise typer.Exit(code=EXIT_UNREADABLE)

    if not is_zugferd_xml(xml):
        typer.echo(f'"{input_path.name}" is not a valid ZUGFeRD/Factur-X document.')
        raise typer.Exit(code=EXIT_UNREADABLE)

    typer.echo(f'"{input_path.name}" is a ZUGFeRD/Factur-X document.')


@app.command()
def attachments(
    pdf: str = typer.Option(..., "--pdf", help="PDF file to inspect."),
) -> None:
    """
    List the files embedded in a PDF.
    """
    pdf_path = Path(pdf)
    _require_file(pdf_path)

    try:
        with open_pdf_document(pdf_path) as document:
            names = list_attachment_names(document)
    except ZugferdReaderError as e:
        typer.echo(f"{pdf_path.name}: {e}", err=True)
        raise typer.Exit(code=EXIT_UNREADABLE)

    if not names:
        typer.echo("No embedded files.")
        return
    for name in names:
        typer.echo(name)


def main() -> None:
    """
    Entrypoint used when executing as a module.
    """
    app()


if __name__ == "__main__":
    main()
