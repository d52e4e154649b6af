from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String
from sqlalchemy.orm import relationship

from aurelo.core.db import Base
from aurelo.core.time import utcnow
from aurelo.models.mixins import TimestampMixin


class Workspace(TimestampMixin, Base):
    __tablename__ = "workspaces"
    __table_args__ = (
        Index("ix_workspaces_stripe_customer", "stripe_customer_id"),
        Index("ix_workspaces_stripe_subscription", "stripe_subscription_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    owner_id = Column(String, nullable=False, index=True)
    owner_email = Column(String, nullable=True)

    # Billing-authoritative plan record. Tier literals double as persistence keys.
    plan_id = Column(String, nullable=False, default="starter")
    plan_activated_at = Column(DateTime, nullable=False, default=utcnow)
    plan_period_end = Column(DateTime, nullable=True)
    stripe_customer_id = Column(String, nullable=True)
    stripe_subscription_id = Column(String, nullable=True)
    is_trial = Column(Boolean, nullable=False, default=False)
    trial_end = Column(DateTime, nullable=True)

    clients = relationship("Client", back_populates="workspace", lazy="selectin")
    invoices = relationship("Invoice", back_populates="workspace", lazy="noload")
