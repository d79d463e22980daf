"""FastAPI application serving one invoice editing session.

The process holds a single in-memory ``FormSession``; every editing
endpoint applies one operation and returns the new invoice value.

Endpoints:
- Health, readiness and Prometheus metrics
- Field and line-item edits
- Auto-fill from free text (one request at a time)
- HTML preview and PDF export (print-ready HTML fallback)
"""

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from invoice_editor.api import metrics
from invoice_editor.export.preview import render_invoice_html
from invoice_editor.export.service import export_invoice
from invoice_editor.extraction.factory import create_extraction_service
from invoice_editor.model.calculations import format_money, parse_number
from invoice_editor.model.schema import CURRENCY_SYMBOLS, InvoiceData, InvoiceFragment
from invoice_editor.shared.config import get_settings
from invoice_editor.state.session import FormSession

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

session = FormSession(create_extraction_service(settings), settings)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Close the extraction client on shutdown."""
    yield
    await session.aclose()
    logger.info("Extraction client closed")


app = FastAPI(
    title="Invoice Editor",
    description="Single-session invoice editor with live preview and AI auto-fill",
    version=settings.service_version,
    lifespan=lifespan,
)

NUMERIC_FIELDS = {"taxRate", "tax_rate", "quantity", "price"}

_AUTOFILL_STATUS = {
    "empty_prompt": status.HTTP_400_BAD_REQUEST,
    "busy": status.HTTP_409_CONFLICT,
    "configuration": status.HTTP_503_SERVICE_UNAVAILABLE,
    "extraction": status.HTTP_502_BAD_GATEWAY,
}


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Record request count and duration for every endpoint except /metrics."""
    if request.url.path == "/metrics":
        return await call_next(request)

    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    metrics.http_requests_total.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code,
    ).inc()

    metrics.http_request_duration_seconds.labels(
        method=request.method,
        endpoint=request.url.path,
    ).observe(duration)

    return response


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    service: str


class ReadinessResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    autofill_available: bool


class FieldUpdate(BaseModel):
    """Invoice field edit; ``field`` names the party field when ``section`` is a party."""

    section: str
    field: str = ""
    value: Any = None


class ItemUpdate(BaseModel):
    field: str
    value: Any = None


class AutofillRequest(BaseModel):
    text: str


class AutofillResponse(BaseModel):
    invoice: InvoiceData
    extracted: InvoiceFragment


class TotalsResponse(BaseModel):
    """Totals view with display strings."""

    currency: str
    currency_symbol: str
    subtotal: float
    tax_rate: float
    tax_amount: float
    total: float
    show_tax: bool
    display: dict[str, str]


def _coerce(field: str, value: Any) -> Any:
    return parse_number(value) if field in NUMERIC_FIELDS else value


def _apply(operation, *args: Any) -> InvoiceData:  # type: ignore[no-untyped-def]
    try:
        return operation(*args)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e


@app.get("/health", response_model=HealthResponse, tags=["Health"])
def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy", version=settings.service_version, service=settings.service_name
    )


@app.get("/ready", response_model=ReadinessResponse, tags=["Health"])
def readiness_check() -> ReadinessResponse:
    return ReadinessResponse(
        ready=True, autofill_available=session.extraction.provider.is_available()
    )


@app.get("/metrics", tags=["Monitoring"])
def get_metrics() -> Response:
    """Prometheus metrics endpoint."""
    metrics_data, content_type = metrics.get_metrics()
    return Response(content=metrics_data, media_type=content_type)


@app.get("/api/v1/currencies", tags=["Invoice"])
def list_currencies() -> dict[str, str]:
    """Supported currency codes and their display symbols, in selector order."""
    return CURRENCY_SYMBOLS


@app.get("/api/v1/invoice", response_model=InvoiceData, tags=["Invoice"])
def get_invoice() -> InvoiceData:
    return session.invoice


@app.post("/api/v1/invoice/reset", response_model=InvoiceData, tags=["Invoice"])
def reset_invoice() -> InvoiceData:
    return session.reset()


@app.get("/api/v1/invoice/totals", response_model=TotalsResponse, tags=["Invoice"])
def get_totals() -> TotalsResponse:
    totals = session.totals
    symbol = totals.currency_symbol
    return TotalsResponse(
        currency=session.invoice.currency,
        currency_symbol=symbol,
        subtotal=totals.subtotal,
        tax_rate=session.invoice.tax_rate,
        tax_amount=totals.tax_amount,
        total=totals.total,
        show_tax=totals.show_tax,
        display={
            "subtotal": f"{symbol}{format_money(totals.subtotal)}",
            "tax_amount": f"{symbol}{format_money(totals.tax_amount)}",
            "total": f"{symbol}{format_money(totals.total)}",
        },
    )


@app.patch("/api/v1/invoice/fields", response_model=InvoiceData, tags=["Invoice"])
def update_field(update: FieldUpdate) -> InvoiceData:
    """Replace one top-level field or one sender/recipient field.

    Numeric fields accept text; unparseable input becomes 0.
    """
    value = _coerce(update.section, update.value)
    return _apply(session.set_field, update.section, update.field, value)


@app.post(
    "/api/v1/invoice/items",
    response_model=InvoiceData,
    status_code=status.HTTP_201_CREATED,
    tags=["Items"],
)
def add_item() -> InvoiceData:
    return session.add_item()


@app.patch("/api/v1/invoice/items/{item_id}", response_model=InvoiceData, tags=["Items"])
def update_item(item_id: str, update: ItemUpdate) -> InvoiceData:
    """Replace one field of an item; unknown ids leave the invoice unchanged."""
    value = _coerce(update.field, update.value)
    return _apply(session.update_item, item_id, update.field, value)


@app.delete("/api/v1/invoice/items/{item_id}", response_model=InvoiceData, tags=["Items"])
def remove_item(item_id: str) -> InvoiceData:
    return session.remove_item(item_id)


@app.post("/api/v1/invoice/autofill", response_model=AutofillResponse, tags=["Auto-fill"])
async def autofill(request: AutofillRequest) -> AutofillResponse:
    """Extract invoice details from free text and merge them into the invoice.

    ## Error Handling

    - 400 if the text is blank
    - 409 if another auto-fill request is still pending
    - 503 if the extraction provider is not configured (e.g., missing OPENAI_API_KEY)
    - 502 if the extraction call or its response parsing failed

    The invoice is unchanged whenever an error is returned.
    """
    start = time.time()
    result = await session.autofill(request.text)
    metrics.extraction_processing_duration_seconds.observe(time.time() - start)
    metrics.extraction_requests_total.labels(status=result.error_kind or "success").inc()

    if not result.success:
        raise HTTPException(
            status_code=_AUTOFILL_STATUS.get(result.error_kind or "", 500),
            detail=result.error,
        )

    return AutofillResponse(
        invoice=session.invoice,
        extracted=result.fragment or InvoiceFragment(),
    )


@app.get("/api/v1/invoice/preview", response_class=HTMLResponse, tags=["Export"])
def preview() -> HTMLResponse:
    return HTMLResponse(render_invoice_html(session.invoice))


@app.get("/api/v1/invoice/export", tags=["Export"])
def export() -> Response:
    """Download the invoice as PDF, or as print-ready HTML if PDF generation fails."""
    document = export_invoice(session.invoice)
    metrics.invoice_exports_total.labels(format="print" if document.fallback else "pdf").inc()

    headers = {"Content-Disposition": f'attachment; filename="{document.filename}"'}
    if document.fallback:
        headers["X-Export-Fallback"] = "print"
    return Response(content=document.content, media_type=document.media_type, headers=headers)
