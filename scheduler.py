"""
Partner Directory Monitor - Scheduled Runner
Runs the weekly digest using APScheduler
"""
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger
from datetime import datetime
import logging
import sys
import os

# Add the current directory to the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import settings
from main import run as run_monitor

logger = logging.getLogger(__name__)


def scheduled_job():
    """Execute one monitoring run; failures are logged, never raised."""
    logger.info("="*80)
    logger.info(f"Starting scheduled partner check at {datetime.now()}")
    logger.info("="*80)

    try:
        summary = run_monitor()
        logger.info(f"Partner check completed successfully: {summary}")
    except Exception as e:
        logger.error(f"Error during partner check: {str(e)}", exc_info=True)

    logger.info("="*80)
    logger.info(f"Scheduled job finished at {datetime.now()}")
    logger.info("="*80)


def build_trigger():
    return CronTrigger(
        day_of_week=settings.SCHEDULE_DAY_OF_WEEK,
        hour=settings.SCHEDULE_HOUR,
        minute=settings.SCHEDULE_MINUTE,
        timezone=settings.TIMEZONE,
    )


def main():
    """Set up and start the scheduler"""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(settings.LOG_FILE),
            logging.StreamHandler()
        ]
    )

    scheduler = BlockingScheduler(timezone=settings.TIMEZONE)
    scheduler.add_job(scheduled_job, build_trigger())

    logger.info("Partner Directory Monitor Scheduler Started")
    logger.info(
        f"Current schedule: every {settings.SCHEDULE_DAY_OF_WEEK} at "
        f"{settings.SCHEDULE_HOUR:02d}:{settings.SCHEDULE_MINUTE:02d} {settings.TIMEZONE}"
    )
    logger.info("Press Ctrl+C to exit")

    try:
        # Run once immediately on startup
        logger.info("Running initial check...")
        scheduled_job()

        # Then start the scheduler
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped by user")
        scheduler.shutdown()


if __name__ == "__main__":
    main()
