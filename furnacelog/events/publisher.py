"""Publishes schedule and maintenance events via the Dapr sidecar."""
import json
import logging
import uuid
from datetime import datetime
from typing import Any, Dict

from dapr.clients import DaprClient

from furnacelog import config

logger = logging.getLogger(__name__)

SCHEDULE_TOPIC = "schedule-events"
MAINTENANCE_TOPIC = "maintenance-events"


class EventPublisher:
    """
    Publishes domain events to a Dapr pub/sub component.

    Completing an occurrence publishes ``occurrence.completed``; the
    maintenance-log and notification services consume it.
    """

    def __init__(self, enabled: bool = None, pubsub_name: str = None):
        self.enabled = config.DAPR_ENABLED if enabled is None else enabled
        self.pubsub_name = pubsub_name or config.DAPR_PUBSUB_NAME
        if not self.enabled:
            logger.info("Event publishing disabled; events will only be logged.")

    def publish_event(self, topic: str, event_type: str, data: Dict[str, Any], source: str = "furnacelog-schedule"):
        """Publish an event envelope to a topic."""
        envelope = {
            "event_id": str(uuid.uuid4()),
            "type": event_type,
            "timestamp": datetime.utcnow().isoformat(),
            "source": source,
            "data": data,
        }

        if not self.enabled:
            logger.info("[DEV MODE] Would publish %s to topic '%s': %s", event_type, topic, data)
            return {"success": True, "event_id": envelope["event_id"], "published": False}

        try:
            with DaprClient() as client:
                client.publish_event(
                    pubsub_name=self.pubsub_name,
                    topic_name=topic,
                    data=json.dumps(envelope, default=str),
                    data_content_type="application/json",
                )
        except Exception as e:
            logger.error("Failed to publish %s to topic %s: %s", event_type, topic, e)
            raise

        logger.info("Published event %s to topic %s", event_type, topic)
        return {"success": True, "event_id": envelope["event_id"], "published": True}

    def publish_series_created(self, series_data: Dict[str, Any]):
        return self.publish_event(SCHEDULE_TOPIC, "series.created", series_data)

    def publish_occurrence_rescheduled(self, occurrence_data: Dict[str, Any]):
        return self.publish_event(SCHEDULE_TOPIC, "occurrence.rescheduled", occurrence_data)

    def publish_occurrence_cancelled(self, occurrence_data: Dict[str, Any]):
        return self.publish_event(SCHEDULE_TOPIC, "occurrence.cancelled", occurrence_data)

    def publish_occurrence_completed(self, completion_data: Dict[str, Any]):
        return self.publish_event(SCHEDULE_TOPIC, "occurrence.completed", completion_data)

    def publish_maintenance_logged(self, log_data: Dict[str, Any]):
        return self.publish_event(MAINTENANCE_TOPIC, "maintenance.logged", log_data)


# Global instance
event_publisher = EventPublisher()
