from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, Numeric, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from aurelo.core.db import Base
from aurelo.models.enums import InvoiceStatusEnum
from aurelo.models.mixins import TimestampMixin


JSON_TYPE = JSONB().with_variant(JSON, "sqlite")


class Invoice(TimestampMixin, Base):
    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("workspace_id", "number", name="uq_invoices_workspace_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    workspace_id = Column(
        Integer,
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    client_id = Column(
        Integer,
        ForeignKey("clients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    number = Column(String, nullable=False)
    status = Column(String, nullable=False, default=InvoiceStatusEnum.DRAFT.value, index=True)
    line_items = Column(JSON_TYPE, nullable=False, default=list)
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    tax_rate = Column(Numeric(6, 4), nullable=False, default=0)
    tax_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="USD")
    issued_date = Column(DateTime, nullable=False)
    due_date = Column(DateTime, nullable=False)
    paid_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    payment_terms = Column(String, nullable=True)
    stripe_invoice_id = Column(String, nullable=True)
    stripe_customer_id = Column(String, nullable=True)
    stripe_payment_url = Column(String, nullable=True)
    created_from_sessions = Column(JSON_TYPE, nullable=True)

    workspace = relationship("Workspace", back_populates="invoices", lazy="noload")
    client = relationship("Client", back_populates="invoices", lazy="selectin")
