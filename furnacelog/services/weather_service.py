"""Weather history service: daily observations per community."""
from sqlmodel import Session, select
from typing import List, Optional, Sequence, Tuple
from datetime import date
import logging

from furnacelog.models.weather import WeatherObservation
from furnacelog.schemas.weather import WeatherObservationCreate

logger = logging.getLogger(__name__)


class WeatherService:
    """Service class for storing and reading weather observations."""

    def __init__(self, session: Session):
        self.session = session

    def record_observations(
        self, community: str, observations: Sequence[WeatherObservationCreate]
    ) -> Tuple[int, int]:
        """
        Upsert daily observations for a community.

        Returns:
            ``(inserted, updated)`` counts
        """
        inserted = 0
        updated = 0
        for data in observations:
            values = data.model_dump()
            statement = select(WeatherObservation).where(
                WeatherObservation.community == community,
                WeatherObservation.observed_on == data.observed_on,
            )
            existing = self.session.exec(statement).first()
            if existing is None:
                self.session.add(WeatherObservation(community=community, **values))
                inserted += 1
            else:
                for key, value in values.items():
                    setattr(existing, key, value)
                self.session.add(existing)
                updated += 1

        self.session.commit()
        logger.info(f"Recorded weather for {community}: {inserted} inserted, {updated} updated")
        return inserted, updated

    def for_range(
        self, community: str, start: Optional[date] = None, end: Optional[date] = None
    ) -> List[WeatherObservation]:
        """Observations for a community ordered by date."""
        statement = select(WeatherObservation).where(WeatherObservation.community == community)
        if start:
            statement = statement.where(WeatherObservation.observed_on >= start)
        if end:
            statement = statement.where(WeatherObservation.observed_on <= end)
        statement = statement.order_by(WeatherObservation.observed_on)
        return list(self.session.exec(statement).all())
