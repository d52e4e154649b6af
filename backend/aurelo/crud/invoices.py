from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from sqlalchemy.orm import Session

from aurelo.core.config import settings
from aurelo.core.time import to_naive_utc, utcnow
from aurelo.models.enums import InvoiceStatusEnum
from aurelo.models.invoices import Invoice


_CENTS = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP)


def build_line_items(items: Iterable[dict[str, Any]]) -> tuple[list[dict[str, Any]], Decimal]:
    lines: list[dict[str, Any]] = []
    subtotal = Decimal("0")
    for index, item in enumerate(items, start=1):
        quantity = Decimal(str(item.get("quantity", 0)))
        rate = Decimal(str(item.get("rate", 0)))
        amount = _money(quantity * rate)
        subtotal += amount
        lines.append(
            {
                "id": item.get("id") or f"line-{index}",
                "description": item.get("description", ""),
                "quantity": float(quantity),
                "rate": float(rate),
                "amount": float(amount),
                "session_ids": list(item.get("session_ids") or []),
            }
        )
    return lines, _money(subtotal)


def next_invoice_number(db: Session, workspace_id: int) -> str:
    prefix = settings.INVOICE_NUMBER_PREFIX
    numbers = (
        db.query(Invoice.number)
        .filter(Invoice.workspace_id == workspace_id, Invoice.number.like(f"{prefix}%"))
        .all()
    )
    highest = settings.INVOICE_NUMBER_START - 1
    for (number,) in numbers:
        suffix = number[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return f"{prefix}{highest + 1}"


def list_invoices(
    db: Session,
    workspace_id: int,
    *,
    status: str | None = None,
    issued_from: datetime | None = None,
    issued_to: datetime | None = None,
) -> list[Invoice]:
    query = db.query(Invoice).filter(Invoice.workspace_id == workspace_id)
    if status:
        query = query.filter(Invoice.status == status)
    if issued_from is not None:
        query = query.filter(Invoice.issued_date >= issued_from)
    if issued_to is not None:
        query = query.filter(Invoice.issued_date <= issued_to)
    return query.order_by(Invoice.id.desc()).all()


def get_invoice(db: Session, workspace_id: int, invoice_id: int) -> Invoice | None:
    return (
        db.query(Invoice)
        .filter(Invoice.workspace_id == workspace_id, Invoice.id == invoice_id)
        .first()
    )


def create_invoice(
    db: Session,
    workspace_id: int,
    *,
    client_id: int,
    line_items: Iterable[dict[str, Any]],
    due_date: datetime,
    tax_rate: float | Decimal = 0,
    currency: str = "USD",
    issued_date: datetime | None = None,
    notes: str | None = None,
    payment_terms: str | None = None,
    created_from_sessions: list[str] | None = None,
    commit: bool = True,
) -> Invoice:
    lines, subtotal = build_line_items(line_items)
    rate = Decimal(str(tax_rate))
    tax_amount = _money(subtotal * rate)
    invoice = Invoice(
        workspace_id=workspace_id,
        client_id=client_id,
        number=next_invoice_number(db, workspace_id),
        status=InvoiceStatusEnum.DRAFT.value,
        line_items=lines,
        subtotal=subtotal,
        tax_rate=rate,
        tax_amount=tax_amount,
        total=_money(subtotal + tax_amount),
        currency=currency.upper(),
        issued_date=to_naive_utc(issued_date) or utcnow(),
        due_date=to_naive_utc(due_date),
        notes=notes,
        payment_terms=payment_terms,
        created_from_sessions=created_from_sessions,
    )
    db.add(invoice)
    if commit:
        db.commit()
        db.refresh(invoice)
    else:
        db.flush()
    return invoice


def update_invoice_status(
    db: Session,
    invoice: Invoice,
    status: InvoiceStatusEnum,
    *,
    paid_date: datetime | None = None,
) -> Invoice:
    invoice.status = status.value
    if status is InvoiceStatusEnum.PAID:
        invoice.paid_date = to_naive_utc(paid_date) or utcnow()
    db.commit()
    db.refresh(invoice)
    return invoice


def delete_invoice(db: Session, invoice: Invoice) -> None:
    db.delete(invoice)
    db.commit()
