#!/usr/bin/env python3
"""Auto-fill an invoice from a plain-English description and export it.

Seeds a fresh invoice without line items, runs one extraction, merges the
result and writes the exported document (PDF, or print-ready HTML if PDF generation fails).

Usage:
    python scripts/autofill_invoice.py "Bill Acme Corp $500 for Design"
    python scripts/autofill_invoice.py "..." --output out/ --json

Requirements:
    - OPENAI_API_KEY environment variable set for the OpenAI provider, or
    - APP_EXTRACTION_PROVIDER=ollama with a running Ollama server
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from invoice_editor.export.service import export_invoice
from invoice_editor.extraction.factory import create_extraction_service
from invoice_editor.model.calculations import format_money
from invoice_editor.model.schema import initial_invoice
from invoice_editor.shared.config import Settings, get_settings
from invoice_editor.state.session import FormSession

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Auto-fill and export an invoice")
    parser.add_argument("text", help="Natural-language description of the invoice")
    parser.add_argument(
        "--output",
        type=Path,
        default=Path.cwd(),
        help="Directory to write the exported document into (default: current directory)",
    )
    parser.add_argument(
        "--json", action="store_true", help="Print the merged invoice as JSON instead of totals"
    )
    return parser.parse_args(argv)


async def run(args: argparse.Namespace, settings: Settings) -> int:
    """Run auto-fill and export; returns the process exit status."""
    seed = initial_invoice(settings.default_currency, settings.default_payment_terms)
    session = FormSession(
        create_extraction_service(settings), settings, invoice=seed.model_copy(update={"items": ()})
    )

    try:
        result = await session.autofill(args.text)
    finally:
        await session.aclose()

    if not result.success:
        print(f"Auto-fill failed: {result.error}", file=sys.stderr)
        return 1

    invoice = session.invoice
    if args.json:
        print(invoice.model_dump_json(by_alias=True, indent=2))
    else:
        totals = session.totals
        symbol = totals.currency_symbol
        print(f"Invoice #{invoice.invoice_number} ({len(invoice.items)} items)")
        print(f"  Subtotal: {symbol}{format_money(totals.subtotal)}")
        if totals.show_tax:
            print(f"  Tax ({invoice.tax_rate:g}%): {symbol}{format_money(totals.tax_amount)}")
        print(f"  TOTAL:    {symbol}{format_money(totals.total)}")

    document = export_invoice(invoice)
    args.output.mkdir(parents=True, exist_ok=True)
    path = args.output / document.filename
    path.write_bytes(document.content)
    if document.fallback:
        logger.warning(f"PDF export failed ({document.error}); wrote printable HTML instead")
    print(f"Wrote {path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    return asyncio.run(run(parse_args(argv), settings))


if __name__ == "__main__":
    sys.exit(main())
