from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import tzinfo
from typing import Optional

import requests

from app.config import AppConfig
from app.services.application.community_service import CommunityService
from app.services.application.cost_service import CostService
from app.services.application.farm_service import FarmService
from app.services.application.irrigation_completion_service import IrrigationCompletionService
from app.services.application.irrigation_reminder_service import IrrigationReminderService
from app.services.application.notification_store import NotificationStore
from app.services.application.schedule_service import ScheduleService
from app.services.application.soil_moisture_service import SoilMoistureService
from app.services.utilities.sms_service import SmsService
from app.utils.persistent_store import JsonFileStore, KeyValueStore
from app.utils.time import Clock, resolve_timezone, utc_now
from app.workers.unified_scheduler import UnifiedScheduler
from infrastructure.database.repositories.farms import FarmRepository
from infrastructure.database.repositories.irrigation_logs import IrrigationLogRepository
from infrastructure.database.repositories.schedules import ScheduleRepository
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Aggregate and manage core backend services."""

    config: AppConfig
    timezone: tzinfo
    database: SQLiteDatabaseHandler
    farm_repo: FarmRepository
    schedule_repo: ScheduleRepository
    irrigation_log_repo: IrrigationLogRepository
    kv_store: KeyValueStore
    notification_store: NotificationStore
    sms_service: SmsService
    scheduler: UnifiedScheduler
    irrigation_reminder_service: IrrigationReminderService
    irrigation_completion_service: IrrigationCompletionService
    schedule_service: ScheduleService
    farm_service: FarmService
    soil_moisture_service: SoilMoistureService
    cost_service: CostService
    community_service: CommunityService

    @classmethod
    def build(
        cls,
        config: AppConfig,
        *,
        start_scheduler: Optional[bool] = None,
        kv_store: Optional[KeyValueStore] = None,
        sms_session: Optional[requests.Session] = None,
        clock: Clock = utc_now,
    ) -> "ServiceContainer":
        """Construct the service container with all dependencies.

        Args:
            config: Application configuration
            start_scheduler: Register and start the reminder scan jobs.
                Defaults to ``config.enable_scheduler``.
            kv_store: Document store override (tests pass a MemoryStore)
            sms_session: requests session used for the SMS gateway
            clock: Source of the current time for every service
        """
        logger.info("Building ServiceContainer...")
        tz = resolve_timezone(config.timezone)

        database = SQLiteDatabaseHandler(config.database_path)
        database.create_tables()
        farm_repo = FarmRepository(database)
        schedule_repo = ScheduleRepository(database)
        log_repo = IrrigationLogRepository(database, clock=clock)

        store = kv_store if kv_store is not None else JsonFileStore(config.storage_dir)
        notification_store = NotificationStore(store, clock=clock)
        sms_service = SmsService.from_config(config, session=sms_session)

        container = cls(
            config=config,
            timezone=tz,
            database=database,
            farm_repo=farm_repo,
            schedule_repo=schedule_repo,
            irrigation_log_repo=log_repo,
            kv_store=store,
            notification_store=notification_store,
            sms_service=sms_service,
            scheduler=UnifiedScheduler(clock=clock),
            irrigation_reminder_service=IrrigationReminderService(
                schedule_repo,
                notification_store,
                sms_service,
                clock=clock,
                tz=tz,
                due_soon_window_minutes=config.due_soon_window_minutes,
                retention_days=config.notification_retention_days,
            ),
            irrigation_completion_service=IrrigationCompletionService(
                schedule_repo=schedule_repo,
                log_repo=log_repo,
                notification_store=notification_store,
                clock=clock,
                tz=tz,
            ),
            schedule_service=ScheduleService(
                schedule_repo=schedule_repo,
                farm_repo=farm_repo,
                notification_store=notification_store,
                clock=clock,
                tz=tz,
            ),
            farm_service=FarmService(
                farm_repo=farm_repo,
                schedule_repo=schedule_repo,
                notification_store=notification_store,
            ),
            soil_moisture_service=SoilMoistureService(store, notification_store, clock=clock),
            cost_service=CostService(store, farm_repo, clock=clock),
            community_service=CommunityService(store, clock=clock),
        )

        if start_scheduler is None:
            start_scheduler = config.enable_scheduler
        if start_scheduler:
            # Tasks need the full container, so the scheduler is configured last
            from app.workers.scheduled_tasks import configure_scheduler

            try:
                configure_scheduler(container.scheduler, container)
                logger.info("UnifiedScheduler initialized and started")
            except Exception as e:
                raise RuntimeError("Failed to initialize UnifiedScheduler") from e

        logger.info("ServiceContainer built successfully.")
        return container

    def shutdown(self) -> None:
        """Release external resources before process exit."""
        try:
            self.scheduler.shutdown()
            logger.info("UnifiedScheduler stopped")
        except Exception as e:
            logger.warning("Failed to stop UnifiedScheduler: %s", e)

        self.database.close_db()
        logger.info("ServiceContainer shutdown complete.")
