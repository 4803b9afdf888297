from typing import List, Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from .models import Hospital, HospitalCreate, HospitalRead


class HospitalStore:
    """Static hospital reference data shown on the dispatcher map."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def list(self) -> List[HospitalRead]:
        with Session(self.engine) as session:
            rows = session.exec(select(Hospital).order_by(Hospital.id)).all()
            return [HospitalRead.model_validate(row.model_dump()) for row in rows]

    def get(self, hospital_id: str) -> Optional[HospitalRead]:
        with Session(self.engine) as session:
            row = session.get(Hospital, hospital_id)
            return HospitalRead.model_validate(row.model_dump()) if row else None

    def create(self, data: HospitalCreate) -> HospitalRead:
        with Session(self.engine) as session:
            row = Hospital(**data.model_dump(exclude_none=True))
            session.add(row)
            session.commit()
            session.refresh(row)
            return HospitalRead.model_validate(row.model_dump())
