import logging
from datetime import datetime
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from program_guide.config import CustomSettings
from program_guide.services.sync_service import run_sync
from program_guide.services.sync_types import SyncSetupError


logger = logging.getLogger(__name__)

class SyncScheduler:
    """Scheduler for periodic full syncs, one run at a time"""

    def __init__(self, settings: CustomSettings):
        self.settings = settings
        self.scheduler: BlockingScheduler | None = None

    def _sync_job(self) -> None:
        """Job that runs one full sync"""
        logger.info("Scheduled program guide sync triggered")
        try:
            report = run_sync(self.settings)
            logger.info("Scheduled sync finished: %s", report.summary_line())
        except SyncSetupError as e:
            logger.error(f"Scheduled sync aborted: {e}")
        except Exception as e:
            logger.error(f"Exception in scheduled sync: {e}", exc_info=True)

    def build(self) -> BlockingScheduler:
        """Create the scheduler with the sync job registered"""
        try:
            trigger = CronTrigger.from_crontab(self.settings.sync_cron, timezone="UTC")
        except (ValueError, KeyError) as exc:
            logger.error("Invalid cron expression '%s': %s", self.settings.sync_cron, exc)
            raise

        self.scheduler = BlockingScheduler(timezone='UTC')
        self.scheduler.add_job(
            self._sync_job,
            trigger=trigger,
            id='program_guide_sync',
            max_instances=1,
            coalesce=True,
            misfire_grace_time=self.settings.sync_misfire_grace_sec
        )
        return self.scheduler

    def start(self) -> None:
        """Run the scheduler until interrupted; blocks the calling thread"""
        scheduler = self.build()
        next_time = self.get_next_run_time()
        logger.info(
            "Scheduler starting. Next sync: %s",
            next_time.isoformat() if next_time else "unknown"
        )
        try:
            scheduler.start()
        except (KeyboardInterrupt, SystemExit):
            logger.info("Scheduler interrupted")
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        """Shutdown the scheduler"""
        if self.scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
        self.scheduler = None

    def get_next_run_time(self) -> datetime | None:
        """Get next scheduled sync time"""
        if not self.scheduler:
            return None
        job = self.scheduler.get_job('program_guide_sync')
        if job is None:
            return None
        # Jobs added before start() carry no next_run_time yet
        next_run = getattr(job, "next_run_time", None)
        if next_run is None:
            next_run = job.trigger.get_next_fire_time(None, datetime.now(job.trigger.timezone))
        return next_run
