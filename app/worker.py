"""
Worker du sweep des deadlines.

Lance notify puis reset toutes les SWEEP_INTERVAL_SECONDS:
    python -m app.worker          # boucle
    python -m app.worker --once   # un seul passage (cron)
"""

import argparse
import logging
import time
from typing import Optional, Tuple

from sqlalchemy.orm import sessionmaker

from app.core.config import settings
from app.core.database import Base, default_session_factory
from app.core.errors import SweepError
from app.core.logging_setup import setup_logging
from app.services.deadline_service import SweepResult, notify_upcoming_deadlines, reset_notification_flags
from app.services.notifier import Notifier, build_notifier
from app.services.task_store import TaskStore
from app.services.user_store import UserStore

logger = logging.getLogger(__name__)


def run_sweep_once(
    session_factory: sessionmaker, notifier: Notifier
) -> Tuple[Optional[SweepResult], Optional[SweepResult]]:
    """Un passage notify puis reset; une passe en échec est loggée et vaut None"""
    notified = reset = None
    db = session_factory()
    try:
        tasks = TaskStore(db)
        try:
            notified = notify_upcoming_deadlines(tasks, UserStore(db), notifier)
        except SweepError as e:
            # rien n'a été flaggé, le prochain passage retentera
            logger.error(f"Deadline notify pass failed: {e}")
            tasks.rollback()

        try:
            reset = reset_notification_flags(tasks)
        except SweepError as e:
            logger.error(f"Notification flag reset pass failed: {e}")
    finally:
        db.close()

    if notified:
        logger.info(
            f"Reminders: {notified.processed}/{notified.candidates} sent ({notified.failed} failed)"
        )
    if reset:
        logger.info(f"Flags reset: {reset.processed}/{reset.candidates}")
    return notified, reset


def run_forever(session_factory: sessionmaker, notifier: Notifier, interval: int) -> None:
    logger.info(f"Deadline sweep started, every {interval}s")
    while True:
        run_sweep_once(session_factory, notifier)
        time.sleep(interval)


def main() -> None:
    parser = argparse.ArgumentParser(description="Deadline reminder sweep")
    parser.add_argument("--once", action="store_true", help="run a single pass and exit")
    parser.add_argument("--interval", type=int, default=settings.SWEEP_INTERVAL_SECONDS)
    args = parser.parse_args()

    setup_logging(settings.LOG_LEVEL)

    session_factory = default_session_factory()
    Base.metadata.create_all(bind=session_factory.kw["bind"])
    notifier = build_notifier(settings)

    if args.once:
        run_sweep_once(session_factory, notifier)
        return

    try:
        run_forever(session_factory, notifier, args.interval)
    except KeyboardInterrupt:
        logger.info("Deadline sweep stopped")


if __name__ == "__main__":
    main()
