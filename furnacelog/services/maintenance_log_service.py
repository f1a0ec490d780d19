"""Maintenance log service: append-only record of performed work."""
from sqlmodel import Session, select
from typing import List, Optional
from datetime import date
import logging

from furnacelog.events.publisher import EventPublisher, event_publisher
from furnacelog.models.maintenance_log import MaintenanceLog
from furnacelog.schemas.maintenance import MaintenanceLogCreate
from furnacelog.utils.logger import maintenance_logger
from furnacelog.utils.metrics import metrics_collector

logger = logging.getLogger(__name__)


class MaintenanceLogService:
    """Service class for creating and reading maintenance log entries."""

    def __init__(self, session: Session, publisher: Optional[EventPublisher] = None):
        self.session = session
        self.publisher = publisher or event_publisher

    def build(self, home_id: int, data: MaintenanceLogCreate, occurrence_id: Optional[int] = None) -> MaintenanceLog:
        """Build an unsaved log entry."""
        return MaintenanceLog(
            home_id=home_id,
            occurrence_id=occurrence_id,
            **data.model_dump(),
        )

    def record(self, home_id: int, data: MaintenanceLogCreate, occurrence_id: Optional[int] = None) -> MaintenanceLog:
        """Append a log entry for work already performed."""
        log = self.build(home_id, data, occurrence_id)
        self.session.add(log)
        self.session.commit()
        self.session.refresh(log)

        metrics_collector.increment_counter("maintenance_logs_created_total")
        maintenance_logger.info(
            "Recorded maintenance",
            home_id=home_id,
            log_id=log.id,
            system_id=log.system_id,
            performed_on=log.performed_on,
            total_cost=round(log.total_cost, 2),
        )
        try:
            self.publisher.publish_maintenance_logged({
                "log_id": log.id,
                "home_id": home_id,
                "system_id": log.system_id,
                "performed_on": log.performed_on.isoformat(),
                "total_cost": round(log.total_cost, 2),
            })
        except Exception as e:
            logger.error(f"Failed to publish maintenance.logged event: {str(e)}")
        return log

    def list_for_home(
        self,
        home_id: int,
        system_id: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[MaintenanceLog]:
        """Log entries of a home ordered by the date the work was performed."""
        statement = select(MaintenanceLog).where(MaintenanceLog.home_id == home_id)

        if system_id:
            statement = statement.where(MaintenanceLog.system_id == system_id)
        if start:
            statement = statement.where(MaintenanceLog.performed_on >= start)
        if end:
            statement = statement.where(MaintenanceLog.performed_on <= end)

        statement = statement.order_by(MaintenanceLog.performed_on, MaintenanceLog.id)
        return list(self.session.exec(statement).all())
