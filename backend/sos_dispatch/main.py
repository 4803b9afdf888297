import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .config import Settings
from .db import make_engine
from .engine import DispatchEngine
from .errors import DispatchError, NotFound
from .fleet import FleetStore
from .hospitals import HospitalStore
from .incidents import IncidentStore
from .models import (
    AmbulanceCreate,
    AmbulanceRead,
    AssignRequest,
    AssignResult,
    AvailabilityRequest,
    HospitalRead,
    IncidentRead,
    ProgressRequest,
    SosRequest,
    SosResult,
)
from .realtime import ConnectionManager, snapshot_event
from .seed import seed_demo_data
from .simulator import FleetSimulator

logger = logging.getLogger(__name__)


def _describe(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", "invalid request"))
    return "; ".join(parts) or "Invalid request"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    engine = make_engine(settings.database_url)
    fleet = FleetStore(engine)
    incidents = IncidentStore(engine, display_timezone=settings.display_timezone)
    hospitals = HospitalStore(engine)
    if settings.seed_demo_data:
        seed_demo_data(fleet, hospitals)

    dispatch = DispatchEngine(
        fleet,
        incidents,
        minutes_per_km=settings.minutes_per_km,
        fallback_eta_minutes=settings.fallback_eta_minutes,
        nearest_candidates=settings.nearest_candidates,
    )
    manager = ConnectionManager()

    simulator = FleetSimulator(
        fleet,
        interval=settings.simulator_interval,
        jitter=settings.simulator_jitter,
        service_area=settings.service_area,
        on_tick=manager.publish_positions,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Dispatch API up: %d ambulances, %d hospitals", fleet.count(), len(hospitals.list()))
        if settings.simulator_enabled:
            simulator.start()
        yield
        await simulator.stop()

    app = FastAPI(title="SOS Dispatch", lifespan=lifespan)
    app.state.settings = settings
    app.state.fleet = fleet
    app.state.incidents = incidents
    app.state.hospitals = hospitals
    app.state.dispatch = dispatch
    app.state.simulator = simulator
    app.state.manager = manager

    @app.exception_handler(DispatchError)
    async def dispatch_error(request: Request, exc: DispatchError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def bad_request(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"detail": _describe(exc)})

    @app.get('/api/health')
    async def health():
        return {
            "status": "ok",
            "ambulances": fleet.count(),
            "active_incidents": len(incidents.list_active()),
            "simulator": simulator.running,
        }

    # --- Fleet ---

    @app.get('/api/ambulances', response_model=List[AmbulanceRead])
    async def list_ambulances():
        return fleet.list()

    @app.get('/api/ambulances/{ambulance_id}', response_model=AmbulanceRead)
    async def get_ambulance(ambulance_id: str):
        ambulance = fleet.get(ambulance_id)
        if not ambulance:
            raise NotFound(f"Ambulance {ambulance_id} not found")
        return ambulance

    @app.post('/api/ambulances', response_model=AmbulanceRead, status_code=201)
    async def create_ambulance(a: AmbulanceCreate):
        ambulance = fleet.create(a)
        await manager.publish_fleet([ambulance])
        return ambulance

    @app.post('/api/ambulances/{ambulance_id}/status', response_model=AmbulanceRead)
    async def set_ambulance_status(ambulance_id: str, payload: AvailabilityRequest):
        ambulance = dispatch.set_availability(ambulance_id, payload.status)
        await manager.publish_fleet([ambulance])
        return ambulance

    # --- Incidents ---

    @app.get('/api/incidents', response_model=List[IncidentRead])
    async def list_incidents():
        return incidents.list()

    @app.get('/api/incidents/{incident_id}', response_model=IncidentRead)
    async def get_incident(incident_id: str):
        incident = incidents.get(incident_id)
        if not incident:
            raise NotFound(f"Incident {incident_id} not found")
        return incident

    @app.post('/api/sos', response_model=SosResult, status_code=201)
    async def sos(payload: SosRequest):
        result = dispatch.handle_sos(payload.patient_id, payload.latitude, payload.longitude)
        await manager.publish_incident(result.incident, fleet.list())
        return result

    @app.post('/api/incidents/{incident_id}/assign', response_model=AssignResult)
    async def assign(incident_id: str, payload: AssignRequest):
        result = dispatch.assign(incident_id, payload.ambulance_id)
        await manager.publish_incident(result.incident, fleet.list())
        return result

    @app.post('/api/incidents/{incident_id}/resolve', response_model=IncidentRead)
    async def resolve(incident_id: str):
        incident = dispatch.resolve(incident_id)
        await manager.publish_incident(incident, fleet.list())
        return incident

    @app.post('/api/incidents/{incident_id}/progress', response_model=IncidentRead)
    async def progress(incident_id: str, payload: ProgressRequest):
        incident = dispatch.update_progress(incident_id, payload.status)
        await manager.publish_incident(incident, fleet.list())
        return incident

    # --- Hospitals ---

    @app.get('/api/hospitals', response_model=List[HospitalRead])
    async def list_hospitals():
        return hospitals.list()

    @app.get('/api/hospitals/{hospital_id}', response_model=HospitalRead)
    async def get_hospital(hospital_id: str):
        hospital = hospitals.get(hospital_id)
        if not hospital:
            raise NotFound(f"Hospital {hospital_id} not found")
        return hospital

    # --- Live feed ---

    @app.websocket('/ws')
    async def ws_endpoint(ws: WebSocket):
        await manager.connect(ws)
        try:
            await manager.send(ws, snapshot_event(dispatch.snapshot()))
            while True:
                text = await ws.receive_text()
                if text.strip() == "ping":
                    await manager.send(ws, {"type": "pong"})
        except WebSocketDisconnect:
            manager.disconnect(ws)
        except Exception as e:
            logger.warning("Console feed failed: %s", e)
            manager.disconnect(ws)

    return app

