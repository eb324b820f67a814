import logging
from decimal import Decimal

import httpx

from app.core.config import settings
from app.models.metal_rate import MetalRate, MetalRateSnapshot
from app.services import scheduler
from app.services.rate_feed import RateFeed, TROY_OUNCE_GRAMS


def test_failed_refresh_is_logged_not_raised(db, caplog):
    with caplog.at_level(logging.WARNING, logger="pricing.scheduler"):
        scheduler.auto_update_rates()

    assert db.query(MetalRate).count() == 0
    assert db.query(MetalRateSnapshot).count() == 0
    assert "Scheduled rate update failed" in caplog.text


def test_refresh_records_rates(db, monkeypatch):
    monkeypatch.setattr(settings, "goldapi_key", "gold-key")
    per_oz = {"XAU": 6800, "XAG": 85, "XPT": 3200}

    def handler(request):
        symbol = request.url.path.split("/")[-2]
        return httpx.Response(200, json={"price": float(Decimal(per_oz[symbol]) * TROY_OUNCE_GRAMS)})

    monkeypatch.setattr(
        scheduler, "RateFeed", lambda: RateFeed(client=httpx.Client(transport=httpx.MockTransport(handler)))
    )

    scheduler.auto_update_rates()

    assert db.query(MetalRate).count() == 5
    assert {row.source for row in db.query(MetalRateSnapshot).all()} == {"GoldAPI"}


def test_unexpected_error_is_logged_not_raised(db, monkeypatch, caplog):
    class BrokenFeed:
        def fetch(self):
            raise RuntimeError("boom")

        def close(self):
            pass

    monkeypatch.setattr(scheduler, "RateFeed", BrokenFeed)

    with caplog.at_level(logging.ERROR, logger="pricing.scheduler"):
        scheduler.auto_update_rates()

    assert "Scheduled rate update error" in caplog.text
    assert db.query(MetalRate).count() == 0


def test_build_scheduler_registers_refresh_job(monkeypatch):
    monkeypatch.setattr(settings, "rate_refresh_minutes", 7)

    job = scheduler.build_scheduler().get_job("rate_update")

    assert job is not None
    assert job.func is scheduler.auto_update_rates
    assert job.trigger.interval.total_seconds() == 7 * 60
