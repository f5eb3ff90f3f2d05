from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from loyalty_ledger.core.database import Base


class TenantLedger(Base):
    """
    One row per tenant. Customers and settings are stored as JSON text and
    always loaded/saved whole; `version` guards concurrent writers.
    """
    __tablename__ = "tenant_ledgers"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String(64), unique=True, index=True, nullable=False)
    business_name = Column(String(200), nullable=False)

    customers_json = Column(Text, nullable=False, default="[]")
    tier_settings_json = Column(Text, nullable=True)
    discount_settings_json = Column(Text, nullable=True)
    deadline_settings_json = Column(Text, nullable=True)

    version = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    sms_logs = relationship("SmsLogRow", back_populates="ledger", order_by="SmsLogRow.id.desc()")


class SmsLogRow(Base):
    __tablename__ = "sms_logs"

    id = Column(Integer, primary_key=True, index=True)
    ledger_id = Column(Integer, ForeignKey("tenant_ledgers.id"), nullable=False, index=True)

    sent_at = Column(DateTime, nullable=False)
    recipient_mobile = Column(String(32), nullable=False)
    recipient_name = Column(String(120), nullable=False, default="")
    message = Column(Text, nullable=False)

    ledger = relationship("TenantLedger", back_populates="sms_logs")
