"""
Dispatch engine: matches SOS calls to the nearest free ambulance and keeps
incident and fleet state consistent through assignment and resolution.

Incident lifecycle: pending -> assigned -> en_route -> arrived -> resolved.
The engine holds no state of its own; it reads and writes through the
FleetStore and IncidentStore only, and every lookup happens before the
first write so a failed call leaves nothing half applied.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List

from .clock import utcnow
from .errors import Conflict, NotFound, ValidationError
from .fleet import FleetStore
from .geo import distance_km, eta_minutes, format_eta, validate_coordinates
from .incidents import IncidentStore
from .models import (
    ACTIVE_ASSIGNMENT_STATUSES,
    AmbulanceContact,
    AmbulanceRead,
    AmbulanceStatus,
    AssignResult,
    Candidate,
    IncidentCreate,
    IncidentRead,
    IncidentStatus,
    IncidentUpdate,
    SosResult,
)

logger = logging.getLogger(__name__)

# forward-only progress reported from the field
PROGRESS_ORDER = {
    IncidentStatus.ASSIGNED: 0,
    IncidentStatus.EN_ROUTE: 1,
    IncidentStatus.ARRIVED: 2,
}


@dataclass(frozen=True)
class RankedAmbulance:
    ambulance: AmbulanceRead
    distance: float
    eta: int


def contact_of(ambulance: AmbulanceRead) -> AmbulanceContact:
    return AmbulanceContact(
        vehicle_number=ambulance.vehicle_number,
        driver_name=ambulance.driver_name,
        driver_phone=ambulance.driver_phone,
    )


class DispatchEngine:
    def __init__(
        self,
        fleet: FleetStore,
        incidents: IncidentStore,
        minutes_per_km: float = 3,
        fallback_eta_minutes: int = 15,
        nearest_candidates: int = 3,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.fleet = fleet
        self.incidents = incidents
        self.minutes_per_km = minutes_per_km
        self.fallback_eta_minutes = fallback_eta_minutes
        self.nearest_candidates = nearest_candidates
        self.clock = clock

    def rank_available(self, latitude: float, longitude: float) -> List[RankedAmbulance]:
        """Available ambulances ordered by distance to a point, ties broken by id."""
        ranked = []
        for ambulance in self.fleet.list_available():
            d = distance_km(latitude, longitude, ambulance.latitude, ambulance.longitude)
            ranked.append(RankedAmbulance(ambulance, d, eta_minutes(d, self.minutes_per_km)))
        ranked.sort(key=lambda r: (r.distance, r.ambulance.id))
        return ranked

    def handle_sos(self, patient_id: str, latitude: float, longitude: float) -> SosResult:
        if not patient_id or not patient_id.strip():
            raise ValidationError("Patient ID is required")
        validate_coordinates(latitude, longitude)

        nearest = self.rank_available(latitude, longitude)[: self.nearest_candidates]
        chosen = nearest[0] if nearest else None

        if chosen:
            self.fleet.set_status(chosen.ambulance.id, AmbulanceStatus.BUSY)
            incident = self.incidents.create(IncidentCreate(
                patient_id=patient_id,
                latitude=latitude,
                longitude=longitude,
                status=IncidentStatus.ASSIGNED,
                assigned_ambulance_id=chosen.ambulance.id,
                created_at=self.clock(),
                eta=format_eta(chosen.eta),
            ))
            logger.info(
                "SOS %s: dispatched %s (%.2f km, %s)",
                incident.id, chosen.ambulance.vehicle_number, chosen.distance, incident.eta,
            )
        else:
            incident = self.incidents.create(IncidentCreate(
                patient_id=patient_id,
                latitude=latitude,
                longitude=longitude,
                status=IncidentStatus.PENDING,
                created_at=self.clock(),
                eta=format_eta(self.fallback_eta_minutes),
            ))
            logger.warning("SOS %s: no ambulance available, incident left pending", incident.id)

        return SosResult(
            incident=incident,
            assigned_ambulance=contact_of(chosen.ambulance) if chosen else None,
            nearest_ambulances=[
                Candidate(
                    id=r.ambulance.id,
                    vehicle_number=r.ambulance.vehicle_number,
                    distance=r.distance,
                    eta=r.eta,
                    status="assigned" if r is chosen else r.ambulance.status.value,
                )
                for r in nearest
            ],
        )

    def assign(self, incident_id: str, ambulance_id: str) -> AssignResult:
        """Dispatcher override: put a specific ambulance on an incident."""
        incident = self.incidents.get(incident_id)
        if not incident:
            raise NotFound(f"Incident {incident_id} not found")
        ambulance = self.fleet.get(ambulance_id)
        if not ambulance:
            raise NotFound(f"Ambulance {ambulance_id} not found")

        if incident.status == IncidentStatus.RESOLVED:
            raise Conflict(f"Incident {incident_id} is already resolved")
        if ambulance.status == AmbulanceStatus.OFFLINE:
            raise Conflict(f"Ambulance {ambulance.vehicle_number} is offline")
        holder = self.incidents.find_active_for_ambulance(ambulance_id)
        if holder and holder.id != incident_id:
            raise Conflict(f"Ambulance {ambulance.vehicle_number} is already assigned to incident {holder.id}")

        d = distance_km(incident.latitude, incident.longitude, ambulance.latitude, ambulance.longitude)
        eta = format_eta(eta_minutes(d, self.minutes_per_km))

        self.fleet.set_status(ambulance_id, AmbulanceStatus.BUSY)
        previous = incident.assigned_ambulance_id
        if previous and previous != ambulance_id:
            self.fleet.set_status(previous, AmbulanceStatus.AVAILABLE)
            logger.info("Incident %s: released ambulance %s", incident_id, previous)

        updated = self.incidents.update(incident_id, IncidentUpdate(
            assigned_ambulance_id=ambulance_id,
            status=IncidentStatus.ASSIGNED,
            eta=eta,
        ))
        logger.info("Incident %s: assigned %s (%s)", incident_id, ambulance.vehicle_number, eta)
        return AssignResult(incident=updated, ambulance=contact_of(ambulance), eta=eta)

    def resolve(self, incident_id: str) -> IncidentRead:
        incident = self.incidents.get(incident_id)
        if not incident:
            raise NotFound(f"Incident {incident_id} not found")
        if incident.status == IncidentStatus.RESOLVED:
            return incident

        if incident.assigned_ambulance_id:
            self.fleet.set_status(incident.assigned_ambulance_id, AmbulanceStatus.AVAILABLE)
        resolved = self.incidents.update(incident_id, IncidentUpdate(
            status=IncidentStatus.RESOLVED,
            resolved_at=self.clock(),
            assigned_ambulance_id=None,
        ))
        logger.info("Incident %s resolved, ambulance %s back in service", incident_id, incident.assigned_ambulance_id)
        return resolved

    def update_progress(self, incident_id: str, status: IncidentStatus) -> IncidentRead:
        """Record en route / arrived reports for an assigned incident."""
        if status not in (IncidentStatus.EN_ROUTE, IncidentStatus.ARRIVED):
            raise ValidationError("Progress status must be 'en_route' or 'arrived'")
        incident = self.incidents.get(incident_id)
        if not incident:
            raise NotFound(f"Incident {incident_id} not found")
        if incident.status not in ACTIVE_ASSIGNMENT_STATUSES:
            raise Conflict(f"Incident {incident_id} is {incident.status.value}, no ambulance on the way")
        if PROGRESS_ORDER[status] < PROGRESS_ORDER[incident.status]:
            raise Conflict(f"Incident {incident_id} cannot move from {incident.status.value} back to {status.value}")
        return self.incidents.update(incident_id, IncidentUpdate(status=status))

    def set_availability(self, ambulance_id: str, status: AmbulanceStatus) -> AmbulanceRead:
        """Put an ambulance on or off shift."""
        if status not in (AmbulanceStatus.AVAILABLE, AmbulanceStatus.OFFLINE):
            raise ValidationError("Ambulances can only be set 'available' or 'offline' directly")
        ambulance = self.fleet.get(ambulance_id)
        if not ambulance:
            raise NotFound(f"Ambulance {ambulance_id} not found")
        holder = self.incidents.find_active_for_ambulance(ambulance_id)
        if holder:
            raise Conflict(f"Ambulance {ambulance.vehicle_number} is serving incident {holder.id}")
        return self.fleet.set_status(ambulance_id, status)

    def snapshot(self) -> dict:
        return {
            "ambulances": [a.model_dump(mode="json") for a in self.fleet.list()],
            "incidents": [i.model_dump(mode="json") for i in self.incidents.list()],
        }
