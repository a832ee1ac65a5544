"""Data access layer for messages, transactions, profiles, subscriptions and events"""

import uuid
from typing import Iterable, List, Optional
from sqlalchemy.orm import Session
from fincognia_gateway.infrastructure.database.models import (
    EventRecord,
    RawMessageRecord,
    SubscriptionRecord,
    TransactionRecord,
    UserProfileRecord,
)
from fincognia_gateway.domain.exceptions import NotFoundError
from fincognia_gateway.domain.models import RawMessage, RecurrencePattern, Transaction, UserProfile


def _parse_id(record_id: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(record_id))
    except ValueError:
        return None


def transaction_to_domain(record: TransactionRecord) -> Transaction:
    return Transaction(
        id=str(record.id),
        user_id=record.user_id,
        timestamp=record.timestamp,
        amount=record.amount,
        type=record.type,
        merchant=record.merchant,
        category=record.category,
        source=record.source,
        raw_message_id=str(record.raw_message_id) if record.raw_message_id else None,
        is_recurring=record.is_recurring,
        account=record.account,
    )


class RawMessageRepository:
    """Repository for raw messages"""

    def __init__(self, db: Session):
        self.db = db

    def create_raw_message(self, user_id: str, message: RawMessage) -> RawMessageRecord:
        """Persist a raw message, not yet linked to a transaction"""
        db_message = RawMessageRecord(
            user_id=user_id,
            external_id=message.message_id,
            sender=message.sender,
            body=message.body,
            received_at=message.received_at,
            source=message.source_channel,
        )
        self.db.add(db_message)
        self.db.flush()
        return db_message

    def link_transaction(self, raw_message_id: str, transaction_id: str) -> None:
        record_id = _parse_id(raw_message_id)
        db_message = self.db.get(RawMessageRecord, record_id) if record_id else None
        if db_message is None:
            raise NotFoundError(f"Raw message {raw_message_id} not found")
        db_message.parsed_transaction_id = _parse_id(transaction_id)
        self.db.flush()


class TransactionRepository:
    """Repository for transactions"""

    def __init__(self, db: Session):
        self.db = db

    def create_transaction(self, transaction: Transaction) -> TransactionRecord:
        db_transaction = TransactionRecord(
            user_id=transaction.user_id,
            timestamp=transaction.timestamp,
            amount=transaction.amount,
            type=transaction.type,
            merchant=transaction.merchant,
            category=transaction.category,
            source=transaction.source,
            raw_message_id=_parse_id(transaction.raw_message_id) if transaction.raw_message_id else None,
            is_recurring=transaction.is_recurring,
            account=transaction.account,
        )
        self.db.add(db_transaction)
        self.db.flush()  # Get ID without committing
        return db_transaction

    def get_transaction(self, user_id: str, transaction_id: str) -> TransactionRecord:
        """Fetch a transaction owned by the user"""
        record_id = _parse_id(transaction_id)
        db_transaction = self.db.get(TransactionRecord, record_id) if record_id else None
        if db_transaction is None or db_transaction.user_id != user_id:
            raise NotFoundError("Transaction not found")
        return db_transaction

    def update_transaction(
        self,
        user_id: str,
        transaction_id: str,
        category: Optional[str] = None,
        is_recurring: Optional[bool] = None,
    ) -> TransactionRecord:
        """Only category and recurring flag are mutable"""
        db_transaction = self.get_transaction(user_id, transaction_id)
        if category is not None:
            db_transaction.category = category
        if is_recurring is not None:
            db_transaction.is_recurring = is_recurring
        self.db.flush()
        return db_transaction

    def mark_recurring(self, user_id: str, merchants: Iterable[str]) -> int:
        """Flag every transaction of the given merchants as recurring"""
        merchant_list = list(merchants)
        if not merchant_list:
            return 0
        return (
            self.db.query(TransactionRecord)
            .filter(TransactionRecord.user_id == user_id, TransactionRecord.merchant.in_(merchant_list))
            .update({TransactionRecord.is_recurring: True}, synchronize_session=False)
        )

    def list_transactions(
        self,
        user_id: str,
        since: Optional[int] = None,
        until: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[Transaction]:
        """Transactions for a user in [since, until], newest first"""
        query = self.db.query(TransactionRecord).filter(TransactionRecord.user_id == user_id)
        if since is not None:
            query = query.filter(TransactionRecord.timestamp >= since)
        if until is not None:
            query = query.filter(TransactionRecord.timestamp <= until)
        query = query.order_by(TransactionRecord.timestamp.desc())
        if limit:
            query = query.limit(limit)
        return [transaction_to_domain(record) for record in query.all()]


class SqlIngestionStore:
    """
    Ingestion writes with per-call commits.

    Every write is durable on return, so a failure later in the batch never
    rolls back messages that were already saved.
    """

    def __init__(self, db: Session):
        self.db = db
        self.raw_messages = RawMessageRepository(db)
        self.transactions = TransactionRepository(db)

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def save_raw_message(self, user_id: str, message: RawMessage) -> str:
        try:
            record = self.raw_messages.create_raw_message(user_id, message)
        except Exception:
            self.db.rollback()
            raise
        self._commit()
        return str(record.id)

    def save_transaction(self, transaction: Transaction) -> str:
        try:
            record = self.transactions.create_transaction(transaction)
        except Exception:
            self.db.rollback()
            raise
        self._commit()
        return str(record.id)

    def link_raw_message(self, raw_message_id: str, transaction_id: str) -> None:
        try:
            self.raw_messages.link_transaction(raw_message_id, transaction_id)
        except Exception:
            self.db.rollback()
            raise
        self._commit()


class ProfileRepository:
    """Repository for user profiles"""

    def __init__(self, db: Session):
        self.db = db

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        db_profile = self.db.get(UserProfileRecord, user_id)
        if db_profile is None:
            return None
        return UserProfile(
            user_id=db_profile.user_id,
            risk_tolerance=db_profile.risk_tolerance or "medium",
            custom_buffer_target=db_profile.custom_buffer_target,
            custom_current_buffer=db_profile.custom_current_buffer,
        )

    def update_profile(self, user_id: str, **fields) -> UserProfileRecord:
        """Create-or-update; only keys passed with a non-None value change"""
        db_profile = self.db.get(UserProfileRecord, user_id)
        if db_profile is None:
            db_profile = UserProfileRecord(user_id=user_id)
            self.db.add(db_profile)
        for key, value in fields.items():
            if value is not None:
                setattr(db_profile, key, value)
        self.db.flush()
        return db_profile


class SubscriptionRepository:
    """Repository for subscriptions, deduplicated by merchant"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_merchant(self, user_id: str, merchant: str) -> Optional[SubscriptionRecord]:
        return (
            self.db.query(SubscriptionRecord)
            .filter(SubscriptionRecord.user_id == user_id, SubscriptionRecord.merchant == merchant)
            .first()
        )

    def upsert_detected(self, user_id: str, pattern: RecurrencePattern) -> SubscriptionRecord:
        """Create a subscription for a new merchant, refresh amount and dates otherwise"""
        db_subscription = self.get_by_merchant(user_id, pattern.merchant)
        if db_subscription is None:
            db_subscription = SubscriptionRecord(
                user_id=user_id,
                merchant=pattern.merchant,
                amount=pattern.average_amount,
                frequency=pattern.frequency,
                last_payment=pattern.last_payment,
                next_payment=pattern.next_payment,
                status="active",
            )
            self.db.add(db_subscription)
        else:
            db_subscription.amount = pattern.average_amount
            db_subscription.last_payment = pattern.last_payment
            db_subscription.next_payment = pattern.next_payment
        self.db.flush()
        return db_subscription

    def create_subscription(
        self,
        user_id: str,
        merchant: str,
        amount: float,
        frequency: str,
        last_payment: int,
        next_payment: Optional[int],
        status: str = "active",
        category: Optional[str] = None,
    ) -> SubscriptionRecord:
        db_subscription = SubscriptionRecord(
            user_id=user_id,
            merchant=merchant,
            amount=amount,
            frequency=frequency,
            last_payment=last_payment,
            next_payment=next_payment,
            status=status,
            category=category,
        )
        self.db.add(db_subscription)
        self.db.flush()
        return db_subscription

    def list_subscriptions(self, user_id: str) -> List[SubscriptionRecord]:
        return (
            self.db.query(SubscriptionRecord)
            .filter(SubscriptionRecord.user_id == user_id)
            .order_by(SubscriptionRecord.created_at.desc(), SubscriptionRecord.merchant)
            .all()
        )

    def update_status(self, user_id: str, subscription_id: str, status: str) -> SubscriptionRecord:
        record_id = _parse_id(subscription_id)
        db_subscription = self.db.get(SubscriptionRecord, record_id) if record_id else None
        if db_subscription is None or db_subscription.user_id != user_id:
            raise NotFoundError("Subscription not found")
        db_subscription.status = status
        self.db.flush()
        return db_subscription


class EventRepository:
    """Repository for calendar events"""

    def __init__(self, db: Session):
        self.db = db

    def create_event(
        self,
        user_id: str,
        type: str,
        date: int,
        amount: float,
        description: str,
        merchant: Optional[str] = None,
        category: Optional[str] = None,
        is_recurring: bool = False,
    ) -> EventRecord:
        db_event = EventRecord(
            user_id=user_id,
            type=type,
            date=date,
            amount=amount,
            description=description,
            merchant=merchant,
            category=category,
            is_recurring=is_recurring,
        )
        self.db.add(db_event)
        self.db.flush()
        return db_event

    def list_upcoming(self, user_id: str, from_date: int, limit: int = 10) -> List[EventRecord]:
        return (
            self.db.query(EventRecord)
            .filter(EventRecord.user_id == user_id, EventRecord.date >= from_date)
            .order_by(EventRecord.date.asc())
            .limit(limit)
            .all()
        )

    def delete_event(self, user_id: str, event_id: str) -> None:
        record_id = _parse_id(event_id)
        db_event = self.db.get(EventRecord, record_id) if record_id else None
        if db_event is None or db_event.user_id != user_id:
            raise NotFoundError("Event not found")
        self.db.delete(db_event)
        self.db.flush()
