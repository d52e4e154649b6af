from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from aurelo.billing.catalog import FeatureKey, LimitKey
from aurelo.core.db import get_db
from aurelo.crud.clients import get_client
from aurelo.crud.invoices import (
    create_invoice,
    delete_invoice,
    get_invoice,
    list_invoices,
    update_invoice_status,
)
from aurelo.entitlements.enforcement import clamp_range, require_feature
from aurelo.schemas.invoices import InvoiceBatchCreate, InvoiceCreate, InvoiceRead, InvoiceStatusUpdate
from aurelo.workspaces.context import RequestContext
from aurelo.workspaces.dependencies import require_workspace


router = APIRouter(prefix="/invoices", tags=["invoices"])


def _require_client(db: Session, workspace_id: int, client_id: int) -> None:
    if not get_client(db, workspace_id, client_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")


def _invoice_kwargs(payload: InvoiceCreate) -> dict:
    return {
        "client_id": payload.client_id,
        "line_items": [item.model_dump() for item in payload.line_items],
        "due_date": payload.due_date,
        "tax_rate": payload.tax_rate,
        "currency": payload.currency,
        "issued_date": payload.issued_date,
        "notes": payload.notes,
        "payment_terms": payload.payment_terms,
        "created_from_sessions": payload.created_from_sessions,
    }


@router.get("", response_model=list[InvoiceRead])
def list_invoices_endpoint(
    response: Response,
    status_filter: str | None = None,
    issued_from: datetime | None = None,
    issued_to: datetime | None = None,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_workspace),
):
    # History older than the plan's retention window is never returned.
    window = clamp_range(ctx.entitlements, LimitKey.DATA_RETENTION_DAYS, issued_from, issued_to)
    if window.max_days is not None:
        response.headers["X-History-Limit-Days"] = str(window.max_days)
    if window.clamped:
        response.headers["X-History-Clamped"] = "true"
        response.headers["X-History-Notice"] = window.notice
    if window.empty:
        return []
    return list_invoices(
        db,
        ctx.workspace_id,
        status=status_filter,
        issued_from=window.from_ts,
        issued_to=window.to_ts,
    )


@router.post("", response_model=InvoiceRead, status_code=status.HTTP_201_CREATED)
def create_invoice_endpoint(
    payload: InvoiceCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_workspace),
):
    require_feature(ctx.entitlements, FeatureKey.CLIENT_INVOICING)
    _require_client(db, ctx.workspace_id, payload.client_id)
    return create_invoice(db, ctx.workspace_id, **_invoice_kwargs(payload))


@router.post("/batch", response_model=list[InvoiceRead], status_code=status.HTTP_201_CREATED)
def create_invoice_batch(
    payload: InvoiceBatchCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_workspace),
):
    require_feature(ctx.entitlements, FeatureKey.BATCH_INVOICING)
    for item in payload.invoices:
        _require_client(db, ctx.workspace_id, item.client_id)
    invoices = [
        create_invoice(db, ctx.workspace_id, commit=False, **_invoice_kwargs(item))
        for item in payload.invoices
    ]
    db.commit()
    for invoice in invoices:
        db.refresh(invoice)
    return invoices


@router.patch("/{invoice_id}", response_model=InvoiceRead)
def update_invoice_endpoint(
    invoice_id: int,
    payload: InvoiceStatusUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_workspace),
):
    invoice = get_invoice(db, ctx.workspace_id, invoice_id)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return update_invoice_status(db, invoice, payload.status, paid_date=payload.paid_date)


@router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_invoice_endpoint(
    invoice_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_workspace),
):
    invoice = get_invoice(db, ctx.workspace_id, invoice_id)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    delete_invoice(db, invoice)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
