import logging
from typing import List, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from .clock import display_label
from .errors import ValidationError
from .models import (
    ACTIVE_ASSIGNMENT_STATUSES,
    Incident,
    IncidentCreate,
    IncidentRead,
    IncidentStatus,
    IncidentUpdate,
)

logger = logging.getLogger(__name__)


def check_assignment(status: Optional[IncidentStatus], assigned_ambulance_id: Optional[str], resolved_at) -> None:
    """An incident holds an ambulance exactly while it is assigned, en route or arrived."""
    if status is None:
        raise ValidationError("Incident status is required")
    holds = status in ACTIVE_ASSIGNMENT_STATUSES
    if holds and not assigned_ambulance_id:
        raise ValidationError(f"Incident in status '{status.value}' needs an assigned ambulance")
    if not holds and assigned_ambulance_id:
        raise ValidationError(f"Incident in status '{status.value}' cannot hold an ambulance")
    if status == IncidentStatus.RESOLVED and resolved_at is None:
        raise ValidationError("Resolved incident needs a resolution time")


class IncidentStore:
    """Owns incident records. Incidents are appended and updated, never deleted."""

    def __init__(self, engine: Engine, display_timezone: str = "Asia/Kolkata"):
        self.engine = engine
        self.display_timezone = display_timezone

    def _snapshot(self, row: Incident) -> IncidentRead:
        data = row.model_dump()
        data["created_label"] = display_label(row.created_at, self.display_timezone)
        data["resolved_label"] = display_label(row.resolved_at, self.display_timezone)
        return IncidentRead.model_validate(data)

    def list(self) -> List[IncidentRead]:
        """All incidents, newest first."""
        with Session(self.engine) as session:
            stmt = select(Incident).order_by(Incident.created_at.desc(), Incident.id)
            return [self._snapshot(row) for row in session.exec(stmt).all()]

    def list_active(self) -> List[IncidentRead]:
        return [i for i in self.list() if i.status != IncidentStatus.RESOLVED]

    def get(self, incident_id: str) -> Optional[IncidentRead]:
        with Session(self.engine) as session:
            row = session.get(Incident, incident_id)
            return self._snapshot(row) if row else None

    def find_active_for_ambulance(self, ambulance_id: str) -> Optional[IncidentRead]:
        with Session(self.engine) as session:
            stmt = (
                select(Incident)
                .where(Incident.assigned_ambulance_id == ambulance_id)
                .where(Incident.status != IncidentStatus.RESOLVED)
            )
            row = session.exec(stmt).first()
            return self._snapshot(row) if row else None

    def create(self, data: IncidentCreate) -> IncidentRead:
        check_assignment(data.status, data.assigned_ambulance_id, data.resolved_at)
        with Session(self.engine) as session:
            row = Incident.model_validate(data)
            session.add(row)
            session.commit()
            session.refresh(row)
            logger.info("Opened incident %s for patient %s (%s)", row.id, row.patient_id, row.status.value)
            return self._snapshot(row)

    def update(self, incident_id: str, changes: IncidentUpdate) -> Optional[IncidentRead]:
        """Apply only the fields set on `changes`; everything else is left as stored."""
        values = changes.model_dump(exclude_unset=True)
        with Session(self.engine) as session:
            row = session.get(Incident, incident_id)
            if not row:
                return None
            merged = {**row.model_dump(), **values}
            check_assignment(merged["status"], merged["assigned_ambulance_id"], merged["resolved_at"])
            row.sqlmodel_update(values)
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._snapshot(row)
