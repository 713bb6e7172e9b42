"""SQL-backed simulation repository (shared codes across sessions)."""

from __future__ import annotations

import json
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from bizplan.persistence import CodeCollision, SimulationRepository, SimulationStoreError, normalize_code
from bizplan.runtime_logging import append_runtime_event


Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Simulation(Base):
    __tablename__ = "simulations"

    id = Column(Integer, primary_key=True)
    code = Column(String(8), unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    data = Column(Text, nullable=False)  # JSON-serialized ROI inputs
    results = Column(Text, nullable=False)  # JSON-serialized results snapshot
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


def _as_record(row: Simulation) -> dict:
    return {
        "code": row.code,
        "name": row.name,
        "data": json.loads(row.data),
        "results": json.loads(row.results),
        "created_at": row.created_at.isoformat() if row.created_at else "",
        "updated_at": row.updated_at.isoformat() if row.updated_at else "",
    }


class SqlSimulationRepository(SimulationRepository):
    def __init__(self, database_url: str, echo: bool = False):
        self.engine = create_engine(database_url, echo=echo, future=True)
        self.Session = sessionmaker(self.engine, expire_on_commit=False)
        Base.metadata.create_all(self.engine)

    def _insert(self, record: dict) -> None:
        row = Simulation(
            code=record["code"],
            name=record["name"],
            data=json.dumps(record["data"]),
            results=json.dumps(record["results"], default=str),
        )
        with self.Session() as session:
            session.add(row)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise CodeCollision(record["code"]) from exc
            except SQLAlchemyError as exc:
                session.rollback()
                append_runtime_event("ERROR", "simulation_save_failed", "Database insert failed.", exc=exc)
                raise SimulationStoreError("Failed to save simulation.") from exc

    def load(self, code: str) -> dict | None:
        stmt = select(Simulation).where(Simulation.code == normalize_code(code))
        try:
            with self.Session() as session:
                row = session.execute(stmt).scalar_one_or_none()
                return _as_record(row) if row is not None else None
        except SQLAlchemyError as exc:
            append_runtime_event("ERROR", "simulation_load_failed", "Database lookup failed.", {"code": code}, exc=exc)
            return None

    def list_all(self) -> list[dict]:
        stmt = select(Simulation).order_by(Simulation.created_at.desc())
        try:
            with self.Session() as session:
                return [_as_record(row) for row in session.execute(stmt).scalars().all()]
        except SQLAlchemyError as exc:
            append_runtime_event("ERROR", "simulation_list_failed", "Database listing failed.", exc=exc)
            return []

    def update(self, code: str, **fields) -> bool:
        code = normalize_code(code)
        try:
            with self.Session() as session:
                row = session.execute(select(Simulation).where(Simulation.code == code)).scalar_one_or_none()
                if row is None:
                    return False
                if "name" in fields:
                    row.name = str(fields["name"])
                if "data" in fields:
                    row.data = json.dumps(fields["data"])
                if "results" in fields:
                    row.results = json.dumps(fields["results"], default=str)
                row.updated_at = _utcnow()
                session.commit()
                return True
        except SQLAlchemyError as exc:
            append_runtime_event("ERROR", "simulation_update_failed", "Database update failed.", {"code": code}, exc=exc)
            return False

    def delete(self, code: str) -> bool:
        code = normalize_code(code)
        try:
            with self.Session() as session:
                result = session.execute(delete(Simulation).where(Simulation.code == code))
                session.commit()
                return bool(result.rowcount)
        except SQLAlchemyError as exc:
            append_runtime_event("ERROR", "simulation_delete_failed", "Database delete failed.", {"code": code}, exc=exc)
            return False
