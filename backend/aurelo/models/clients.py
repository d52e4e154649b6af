from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from aurelo.core.db import Base
from aurelo.models.enums import ClientStatusEnum
from aurelo.models.mixins import TimestampMixin


class Client(TimestampMixin, Base):
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, index=True)
    workspace_id = Column(
        Integer,
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    status = Column(String, nullable=False, default=ClientStatusEnum.ACTIVE.value, index=True)

    workspace = relationship("Workspace", back_populates="clients", lazy="selectin")
    invoices = relationship("Invoice", back_populates="client", lazy="noload")
