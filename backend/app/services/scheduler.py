"""
Background refresh of metal rates.
"""
import logging

from apscheduler.schedulers.background import BackgroundScheduler

from app.core.config import settings
from app.core.database import SessionLocal
from app.core.errors import PricingError
from app.services.rate_feed import RateFeed
from app.services.rate_provider import refresh_rates

scheduler_logger = logging.getLogger("pricing.scheduler")


def auto_update_rates() -> None:
    """Job: pull rates from the feeds. Failures are logged; the next run retries."""
    db = SessionLocal()
    feed = RateFeed()
    try:
        snapshots = refresh_rates(db, feed)
        scheduler_logger.info("Updated %d rates from %s", len(snapshots), snapshots[0].source)
    except PricingError as e:
        db.rollback()
        scheduler_logger.warning("Scheduled rate update failed: %s", e.message)
    except Exception:
        db.rollback()
        scheduler_logger.exception("Scheduled rate update error")
    finally:
        feed.close()
        db.close()


def build_scheduler() -> BackgroundScheduler:
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        auto_update_rates,
        "interval",
        minutes=settings.rate_refresh_minutes,
        id="rate_update",
        max_instances=1,
        coalesce=True,
    )
    return scheduler
