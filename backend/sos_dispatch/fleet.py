import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from .errors import Conflict, ValidationError
from .models import Ambulance, AmbulanceCreate, AmbulanceRead, AmbulanceStatus

logger = logging.getLogger(__name__)


def _snapshot(row: Ambulance) -> AmbulanceRead:
    return AmbulanceRead.model_validate(row.model_dump())


class FleetStore:
    """Owns ambulance records. All status and position changes go through here."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def list(self) -> List[AmbulanceRead]:
        with Session(self.engine) as session:
            rows = session.exec(select(Ambulance).order_by(Ambulance.id)).all()
            return [_snapshot(row) for row in rows]

    def list_available(self) -> List[AmbulanceRead]:
        return [a for a in self.list() if a.status == AmbulanceStatus.AVAILABLE]

    def count(self) -> int:
        with Session(self.engine) as session:
            return session.exec(select(func.count(Ambulance.id))).one()

    def get(self, ambulance_id: str) -> Optional[AmbulanceRead]:
        with Session(self.engine) as session:
            row = session.get(Ambulance, ambulance_id)
            return _snapshot(row) if row else None

    def create(self, data: AmbulanceCreate) -> AmbulanceRead:
        if data.status == AmbulanceStatus.BUSY:
            raise ValidationError("New ambulances start available or offline")
        with Session(self.engine) as session:
            taken = session.exec(
                select(Ambulance).where(Ambulance.vehicle_number == data.vehicle_number)
            ).first()
            if taken:
                raise Conflict(f"Vehicle {data.vehicle_number} is already registered")
            values = data.model_dump(exclude_none=True)
            if data.id is not None and session.get(Ambulance, data.id):
                raise Conflict(f"Ambulance {data.id} already exists")
            row = Ambulance(**values)
            session.add(row)
            session.commit()
            session.refresh(row)
            logger.info("Registered ambulance %s (%s)", row.id, row.vehicle_number)
            return _snapshot(row)

    def set_status(self, ambulance_id: str, status: AmbulanceStatus) -> Optional[AmbulanceRead]:
        with Session(self.engine) as session:
            row = session.get(Ambulance, ambulance_id)
            if not row:
                return None
            row.status = status
            session.add(row)
            session.commit()
            session.refresh(row)
            return _snapshot(row)

    def set_position(self, ambulance_id: str, latitude: float, longitude: float) -> Optional[AmbulanceRead]:
        with Session(self.engine) as session:
            row = session.get(Ambulance, ambulance_id)
            if not row:
                return None
            row.latitude = latitude
            row.longitude = longitude
            session.add(row)
            session.commit()
            session.refresh(row)
            return _snapshot(row)
