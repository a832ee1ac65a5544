"""SQLAlchemy ORM models for ingested messages, transactions and derived records"""

import uuid
from sqlalchemy import Column, String, BigInteger, Boolean, Float, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class RawMessageRecord(Base):
    """Raw SMS/email kept for audit and re-parsing"""

    __tablename__ = "raw_message"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    external_id = Column(Text, nullable=True)
    sender = Column(Text, nullable=False)
    body = Column(Text, nullable=False)
    received_at = Column(BigInteger, nullable=False)
    source = Column(String(16), nullable=False, default="sms")
    parsed_transaction_id = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class TransactionRecord(Base):
    """Structured transaction; amount sign agrees with type"""

    __tablename__ = "transactions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    timestamp = Column(BigInteger, nullable=False, index=True)
    amount = Column(Float, nullable=False)
    type = Column(String(8), nullable=False)
    merchant = Column(Text, nullable=True)
    category = Column(Text, nullable=True, default="other")
    source = Column(String(16), nullable=False)
    raw_message_id = Column(UUID(as_uuid=True), ForeignKey("raw_message.id", ondelete="SET NULL"), nullable=True)
    is_recurring = Column(Boolean, nullable=False, default=False)
    account = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    raw_message = relationship("RawMessageRecord")


class UserProfileRecord(Base):
    """Profile fields used by buffer planning"""

    __tablename__ = "user_profile"

    user_id = Column(Text, primary_key=True)
    risk_tolerance = Column(String(8), nullable=True)
    custom_buffer_target = Column(Float, nullable=True)
    custom_current_buffer = Column(Float, nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class SubscriptionRecord(Base):
    """Detected or manually added subscription, one per merchant"""

    __tablename__ = "subscription"
    __table_args__ = (UniqueConstraint("user_id", "merchant", name="uq_subscription_user_merchant"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    merchant = Column(Text, nullable=False)
    amount = Column(Float, nullable=False)
    frequency = Column(String(8), nullable=False)
    last_payment = Column(BigInteger, nullable=False)
    next_payment = Column(BigInteger, nullable=True)
    status = Column(String(16), nullable=False, default="active")
    category = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class EventRecord(Base):
    """Upcoming bill, recurring payment or one-off event"""

    __tablename__ = "event"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    type = Column(String(16), nullable=False)
    date = Column(BigInteger, nullable=False, index=True)
    amount = Column(Float, nullable=False)
    description = Column(Text, nullable=False)
    merchant = Column(Text, nullable=True)
    category = Column(Text, nullable=True)
    is_recurring = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
