from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app.core.config import settings
from app.core.errors import InvalidInput, RateUnavailable, StaleRates
from app.models.metal_rate import MetalRate, MetalRateSnapshot
from app.services import rate_provider

from conftest import TEST_RATES


NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def test_current_rates_cover_every_purity(db, rates):
    current = rate_provider.get_current_rates(db)

    assert set(current.rates) == {"22K", "18K", "14K", "Silver", "Platinum"}
    assert current.rates["22K"] == Decimal("6000")
    assert current.source == "Test"
    assert current.stale is False


def test_current_rates_response_shape(db, rates):
    body = rate_provider.get_current_rates(db).as_response()
    assert body["22K"] == 6000.0
    assert body["Silver"] == 85.0
    assert body["source"] == "Test"
    assert "last_updated" in body


def test_missing_purity_raises(db):
    rate_provider.record_rates(db, {"22K": 6000, "18K": 4900}, source="Partial")
    with pytest.raises(RateUnavailable):
        rate_provider.get_current_rates(db)


def test_no_rates_raises(db):
    with pytest.raises(RateUnavailable):
        rate_provider.get_current_rates(db)
    assert rate_provider.get_rates_or_none(db) is None


def test_record_rates_updates_in_place_and_appends_history(db, rates):
    rate_provider.record_rates(db, {"22k": 6100}, source="Manual - desk")

    assert db.query(MetalRate).count() == 5
    assert db.query(MetalRateSnapshot).count() == 6
    current = rate_provider.get_current_rates(db)
    assert current.rates["22K"] == Decimal("6100")
    assert current.source == "Manual - desk"


@pytest.mark.parametrize("bad", [{"22K": 0}, {"22K": -5}, {"24K": 7000}, {}])
def test_record_rates_rejects_bad_values(db, bad):
    with pytest.raises(InvalidInput):
        rate_provider.record_rates(db, bad, source="Bad")


def test_stale_rates_are_flagged(db):
    rate_provider.record_rates(db, TEST_RATES, source="Old", observed_at=NOW - timedelta(hours=1))

    assert rate_provider.get_current_rates(db, now=NOW).stale is True
    assert rate_provider.get_current_rates(db, now=NOW - timedelta(minutes=50)).stale is False


def test_require_fresh_only_when_enforced(db, monkeypatch):
    rate_provider.record_rates(db, TEST_RATES, source="Old", observed_at=datetime.now(timezone.utc) - timedelta(hours=2))
    current = rate_provider.get_current_rates(db)
    assert current.stale is True

    assert rate_provider.require_fresh(current) is current
    monkeypatch.setattr(settings, "enforce_fresh_rates", True)
    with pytest.raises(StaleRates):
        rate_provider.require_fresh(current)


def _seed_history(db, days: int):
    for back in range(days):
        day = NOW - timedelta(days=back)
        morning = day.replace(hour=9)
        evening = day.replace(hour=11)
        rate_provider.record_rates(db, {"22K": 6000 + back}, source="Morning", observed_at=morning)
        rate_provider.record_rates(db, {"22K": 6500 + back, "18K": 5000 + back}, source="Evening", observed_at=evening)


def test_history_is_daily_newest_first_and_bounded(db):
    _seed_history(db, 10)

    history = rate_provider.get_rate_history(db, 7, now=NOW)

    assert len(history) == 7
    dates = [entry["date"] for entry in history]
    assert dates == sorted(dates, reverse=True)
    assert len(set(dates)) == len(dates)
    assert dates[0] == "2026-10-19"
    assert dates[-1] == "2026-10-13"


def test_history_keeps_latest_snapshot_of_each_day(db):
    _seed_history(db, 3)

    today = rate_provider.get_rate_history(db, 1, now=NOW)
    assert len(today) == 1
    assert today[0]["22K"] == 6500.0
    assert today[0]["18K"] == 5000.0
    assert today[0]["source"] == "Evening"
    assert "Silver" not in today[0]


def test_history_with_sparse_days(db):
    rate_provider.record_rates(db, TEST_RATES, source="A", observed_at=NOW - timedelta(days=2))
    history = rate_provider.get_rate_history(db, 7, now=NOW)
    assert [entry["date"] for entry in history] == ["2026-10-17"]


@pytest.mark.parametrize("days", [0, -3])
def test_history_requires_positive_days(db, days):
    with pytest.raises(InvalidInput):
        rate_provider.get_rate_history(db, days)


def test_trend_up(db):
    rate_provider.record_rates(db, {"22K": 6000}, source="A", observed_at=NOW - timedelta(days=3))
    rate_provider.record_rates(db, {"22K": 6300}, source="B", observed_at=NOW)

    trend = rate_provider.get_rate_trend(db, "22K", days=7, now=NOW)
    assert trend["direction"] == "up"
    assert trend["amount"] == Decimal("300")
    assert trend["percentage"] == Decimal("5")


def test_trend_down_and_same(db):
    rate_provider.record_rates(db, {"Silver": 90}, source="A", observed_at=NOW - timedelta(days=1))
    rate_provider.record_rates(db, {"Silver": 81}, source="B", observed_at=NOW)
    trend = rate_provider.get_rate_trend(db, "silver", days=7, now=NOW)
    assert trend["direction"] == "down"
    assert trend["amount"] == Decimal("9")

    rate_provider.record_rates(db, {"Platinum": 3200}, source="A", observed_at=NOW)
    assert rate_provider.get_rate_trend(db, "Platinum", days=7, now=NOW)["direction"] == "same"


def test_trend_without_history_raises(db):
    with pytest.raises(RateUnavailable):
        rate_provider.get_rate_trend(db, "14K", days=7, now=NOW)


def test_stale_message_reports_oldest_rate(db, monkeypatch):
    rate_provider.record_rates(db, TEST_RATES, source="Old", observed_at=datetime.now(timezone.utc) - timedelta(hours=2))
    rate_provider.record_rates(db, {"22K": 6100}, source="Fresh")
    monkeypatch.setattr(settings, "enforce_fresh_rates", True)

    current = rate_provider.get_current_rates(db)
    assert current.stale is True
    with pytest.raises(StaleRates) as exc:
        rate_provider.require_fresh(current)
    assert "120 minutes" in exc.value.message
