import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import ConfigDict
from sqlmodel import Field, SQLModel


def _new_id() -> str:
    return str(uuid.uuid4())


class AmbulanceStatus(str, Enum):
    AVAILABLE = "available"
    BUSY = "busy"
    OFFLINE = "offline"


class IncidentStatus(str, Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    EN_ROUTE = "en_route"
    ARRIVED = "arrived"
    RESOLVED = "resolved"


# statuses in which an incident holds an ambulance
ACTIVE_ASSIGNMENT_STATUSES = (IncidentStatus.ASSIGNED, IncidentStatus.EN_ROUTE, IncidentStatus.ARRIVED)


# --- Ambulances ---

class AmbulanceBase(SQLModel):
    vehicle_number: str = Field(index=True, unique=True, min_length=1)
    driver_name: str
    driver_phone: str
    status: AmbulanceStatus = AmbulanceStatus.AVAILABLE
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    hospital_id: Optional[str] = None


class Ambulance(AmbulanceBase, table=True):
    id: str = Field(default_factory=_new_id, primary_key=True)


class AmbulanceCreate(AmbulanceBase):
    id: Optional[str] = None


class AmbulanceRead(AmbulanceBase):
    model_config = ConfigDict(frozen=True)

    id: str


class AmbulanceContact(SQLModel):
    vehicle_number: str
    driver_name: str
    driver_phone: str


# --- Incidents ---

class IncidentBase(SQLModel):
    patient_id: str
    latitude: float
    longitude: float
    status: IncidentStatus = IncidentStatus.PENDING
    assigned_ambulance_id: Optional[str] = None
    created_at: datetime
    resolved_at: Optional[datetime] = None
    eta: Optional[str] = None
    notes: Optional[str] = None


class Incident(IncidentBase, table=True):
    id: str = Field(default_factory=_new_id, primary_key=True)


class IncidentCreate(IncidentBase):
    pass


class IncidentUpdate(SQLModel):
    """Fields a dispatch operation may change on an incident.

    Only fields explicitly set are applied; passing None clears a field,
    except `status`, which the store refuses to clear.
    """

    status: Optional[IncidentStatus] = None
    assigned_ambulance_id: Optional[str] = None
    eta: Optional[str] = None
    resolved_at: Optional[datetime] = None
    notes: Optional[str] = None


class IncidentRead(IncidentBase):
    model_config = ConfigDict(frozen=True)

    id: str
    created_label: str
    resolved_label: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status != IncidentStatus.RESOLVED


# --- Hospitals ---

class HospitalBase(SQLModel):
    name: str
    address: str
    phone: str
    latitude: float
    longitude: float
    beds_available: Optional[int] = None
    specialties: Optional[str] = None


class Hospital(HospitalBase, table=True):
    id: str = Field(default_factory=_new_id, primary_key=True)


class HospitalCreate(HospitalBase):
    id: Optional[str] = None


class HospitalRead(HospitalBase):
    model_config = ConfigDict(frozen=True)

    id: str


# --- Dispatch requests and results ---

class SosRequest(SQLModel):
    patient_id: str = Field(min_length=1)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class AssignRequest(SQLModel):
    ambulance_id: str = Field(min_length=1)


class ProgressRequest(SQLModel):
    status: IncidentStatus


class AvailabilityRequest(SQLModel):
    status: AmbulanceStatus


class Candidate(SQLModel):
    id: str
    vehicle_number: str
    distance: float
    eta: int
    status: str


class SosResult(SQLModel):
    incident: IncidentRead
    assigned_ambulance: Optional[AmbulanceContact] = None
    nearest_ambulances: List[Candidate] = []


class AssignResult(SQLModel):
    incident: IncidentRead
    ambulance: AmbulanceContact
    eta: str
