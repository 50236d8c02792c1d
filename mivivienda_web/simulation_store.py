"""Persistence layer for saved simulations.

Each record keeps the inputs and the computed results of one simulation as
JSON, owned by a user token. One record per owner may be flagged as the
baseline that new scenarios are compared against. It defaults to SQLite for
local development, but accepts any SQLAlchemy-compatible URL.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, String, Text, create_engine, select, update
from sqlalchemy.orm import declarative_base, sessionmaker

from mivivienda.data_models import CalculationResult, LoanInputs
from mivivienda.exceptions import SimulationNotFoundError
from mivivienda.logging import get_logger
from mivivienda.serialization import inputs_to_dict, result_to_dict

logger = get_logger(__name__)

Base = declarative_base()


class SimulationModel(Base):
    __tablename__ = "simulations"

    id = Column(String(64), primary_key=True)
    owner_id = Column(String(64), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    inputs_json = Column(Text, nullable=False)
    results_json = Column(Text, nullable=False)
    is_baseline = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class SimulationStore:
    """Database-backed simulation history."""

    def __init__(self, url: str, *, max_per_owner: int = 50) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)
        self._max_per_owner = max_per_owner

    def save(
        self,
        owner_id: str,
        name: str,
        inputs: LoanInputs,
        results: CalculationResult,
        is_baseline: bool = False,
    ) -> str:
        """Store a simulation and return its id.

        Saving a baseline clears the owner's previous baseline.
        """
        simulation_id = uuid4().hex
        record = SimulationModel(
            id=simulation_id,
            owner_id=owner_id,
            name=name,
            inputs_json=json.dumps(inputs_to_dict(inputs)),
            results_json=json.dumps(result_to_dict(results)),
            is_baseline=is_baseline,
        )
        with self._session_factory() as session:
            if is_baseline:
                session.execute(
                    update(SimulationModel)
                    .where(SimulationModel.owner_id == owner_id)
                    .values(is_baseline=False)
                )
            session.add(record)
            session.commit()
        logger.info("Saved simulation %s (%s) for owner %s", simulation_id, name, owner_id)
        self._trim_owner(owner_id)
        return simulation_id

    def list(self, owner_id: str) -> List[Dict[str, Any]]:
        """Return the owner's simulations, newest first, without schedules."""
        if not owner_id:
            return []
        with self._session_factory() as session:
            rows = session.execute(
                select(SimulationModel)
                .where(SimulationModel.owner_id == owner_id)
                .order_by(SimulationModel.created_at.desc())
            ).scalars().all()
            return [self._to_dict(row, include_schedule=False) for row in rows]

    def get(self, owner_id: str, simulation_id: str) -> Dict[str, Any]:
        with self._session_factory() as session:
            row = session.get(SimulationModel, simulation_id)
            if row is None or row.owner_id != owner_id:
                raise SimulationNotFoundError(f"Simulation {simulation_id} not found")
            return self._to_dict(row)

    def baseline(self, owner_id: str) -> Optional[Dict[str, Any]]:
        with self._session_factory() as session:
            row = session.execute(
                select(SimulationModel).where(
                    SimulationModel.owner_id == owner_id,
                    SimulationModel.is_baseline.is_(True),
                )
            ).scalars().first()
            return self._to_dict(row) if row else None

    def delete(self, owner_id: str, simulation_id: str) -> None:
        with self._session_factory() as session:
            row = session.get(SimulationModel, simulation_id)
            if row is None or row.owner_id != owner_id:
                raise SimulationNotFoundError(f"Simulation {simulation_id} not found")
            session.delete(row)
            session.commit()
        logger.info("Deleted simulation %s for owner %s", simulation_id, owner_id)

    def _trim_owner(self, owner_id: str) -> None:
        if not self._max_per_owner or self._max_per_owner < 0:
            return
        with self._session_factory() as session:
            rows = session.execute(
                select(SimulationModel)
                .where(SimulationModel.owner_id == owner_id)
                .order_by(SimulationModel.created_at.desc())
            ).scalars().all()
            # The baseline is never trimmed
            extra = [row for row in rows[self._max_per_owner :] if not row.is_baseline]
            if not extra:
                return
            for row in extra:
                session.delete(row)
            session.commit()

    @staticmethod
    def _to_dict(row: SimulationModel, include_schedule: bool = True) -> Dict[str, Any]:
        results = json.loads(row.results_json)
        if not include_schedule:
            results.pop("schedule", None)
        return {
            "id": row.id,
            "name": row.name,
            "is_baseline": row.is_baseline,
            "inputs": json.loads(row.inputs_json),
            "results": results,
            "created_at": row.created_at.isoformat(),
        }


def create_store_from_env(url: Optional[str], max_per_owner: int = 50) -> SimulationStore:
    return SimulationStore(url or "sqlite:///mivivienda.sqlite3", max_per_owner=max_per_owner)
