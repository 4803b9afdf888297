"""Demo hospitals and fleet spread across Jaipur."""

import logging

from .fleet import FleetStore
from .hospitals import HospitalStore
from .models import AmbulanceCreate, AmbulanceStatus, HospitalCreate

logger = logging.getLogger(__name__)

HOSPITALS = [
    {"id": "h1", "name": "Sawai Man Singh Hospital", "address": "JLN Marg, Jaipur",
     "phone": "+91 141 251 8888", "latitude": 26.8947, "longitude": 75.8062,
     "beds_available": 1500, "specialties": "Multi-specialty, Trauma, Emergency"},
    {"id": "h2", "name": "Fortis Escorts Hospital", "address": "Malviya Nagar, Jaipur",
     "phone": "+91 141 254 7000", "latitude": 26.8582, "longitude": 75.8012,
     "beds_available": 300, "specialties": "Cardiology, Neurology, Orthopedics"},
    {"id": "h3", "name": "Narayana Multispeciality Hospital", "address": "Sector 28, Kumbha Marg, Jaipur",
     "phone": "+91 141 712 8888", "latitude": 26.8515, "longitude": 75.8108,
     "beds_available": 200, "specialties": "Cardiac Surgery, Oncology, Nephrology"},
    {"id": "h4", "name": "Manipal Hospital", "address": "Sector 5, Vidhyadhar Nagar, Jaipur",
     "phone": "+91 141 303 0303", "latitude": 26.9520, "longitude": 75.7780,
     "beds_available": 250, "specialties": "Emergency, Pediatrics, Gastroenterology"},
    {"id": "h5", "name": "RUHS Hospital", "address": "Kumbha Marg, Pratap Nagar, Jaipur",
     "phone": "+91 141 279 5600", "latitude": 26.8449, "longitude": 75.7869,
     "beds_available": 800, "specialties": "Government Hospital, All Specialties"},
]

AMBULANCES = [
    {"id": "a1", "vehicle_number": "RJ-14-AM-1234", "driver_name": "Rajesh Kumar",
     "driver_phone": "+91 98111 22334", "status": AmbulanceStatus.AVAILABLE,
     "latitude": 26.9124, "longitude": 75.7873, "hospital_id": "h1"},
    {"id": "a2", "vehicle_number": "RJ-14-AM-5678", "driver_name": "Suresh Yadav",
     "driver_phone": "+91 98222 33445", "status": AmbulanceStatus.AVAILABLE,
     "latitude": 26.8820, "longitude": 75.7590, "hospital_id": "h2"},
    {"id": "a3", "vehicle_number": "RJ-14-AM-9012", "driver_name": "Mohammed Ali",
     "driver_phone": "+91 98333 44556", "status": AmbulanceStatus.AVAILABLE,
     "latitude": 26.8650, "longitude": 75.8150, "hospital_id": "h3"},
    {"id": "a4", "vehicle_number": "RJ-14-AM-3456", "driver_name": "Vikram Chauhan",
     "driver_phone": "+91 98444 55667", "status": AmbulanceStatus.OFFLINE,
     "latitude": 26.9350, "longitude": 75.7720, "hospital_id": "h4"},
    {"id": "a5", "vehicle_number": "RJ-14-AM-7890", "driver_name": "Arun Sharma",
     "driver_phone": "+91 98555 66778", "status": AmbulanceStatus.AVAILABLE,
     "latitude": 26.8780, "longitude": 75.8250, "hospital_id": "h5"},
]


def seed_demo_data(fleet: FleetStore, hospitals: HospitalStore) -> bool:
    """Load the demo data into empty stores. Returns False if the fleet already has records."""
    if fleet.count():
        logger.info("Fleet already populated, skipping demo seed")
        return False
    for h in HOSPITALS:
        hospitals.create(HospitalCreate(**h))
    for a in AMBULANCES:
        fleet.create(AmbulanceCreate(**a))
    logger.info("Seeded %d hospitals and %d ambulances", len(HOSPITALS), len(AMBULANCES))
    return True
