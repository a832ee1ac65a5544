"""Unit tests for the per-user insights service"""

from sqlalchemy.orm import Session
from fincognia_gateway.infrastructure.database.repositories import TransactionRepository
from fincognia_gateway.services.insights import money_weather


def test_money_weather_reads_every_part_on_one_session(db: Session, now, sample_transactions, auth_headers):
    repo = TransactionRepository(db)
    for transaction in sample_transactions:
        repo.create_transaction(transaction)
    db.commit()

    snapshot = money_weather(db, auth_headers["X-User-ID"], "7d", now=now)

    assert set(snapshot) == {"forecast", "subscriptions", "buffer", "events"}
    assert snapshot["forecast"].period == "7d"
    assert snapshot["forecast"].points[0].predicted_balance == 75000.0
    assert snapshot["buffer"].current_buffer == 75000.0
    assert snapshot["subscriptions"] == []
    # rent and salary are monthly but both next payments fall before the 15th
    assert snapshot["events"] == []
