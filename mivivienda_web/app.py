"""JSON API over the mortgage engine and the simulation history.

The application identifies its user with a per-session token, runs
simulations through ``mivivienda.compute`` and keeps a history of saved
simulations (with one baseline per user) in a ``SimulationStore``.
"""

import os
from typing import Any, Optional
from uuid import uuid4

from flask import Flask, jsonify, request, session

from mivivienda.config import Settings
from mivivienda.exceptions import (
    InvalidLoanInputError,
    MiViviendaError,
    MissingParameterError,
    RateUnavailableError,
    SimulationNotFoundError,
    UnsupportedRateTypeError,
)
from mivivienda.exchange import ExchangeRateClient
from mivivienda.logging import get_logger, setup_logging
from mivivienda.metrics import compare_many, compare_results, compute
from mivivienda.serialization import inputs_from_dict, result_to_dict
from mivivienda_web.simulation_store import SimulationStore, create_store_from_env

logger = get_logger(__name__)


def _ensure_owner_id() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise InvalidLoanInputError("Request body must be a JSON object")
    return body


def _error(exc: Exception, status: int):
    return jsonify({"error": str(exc)}), status


def create_app(
    store: Optional[SimulationStore] = None,
    rate_provider: Any = None,
    settings: Optional[Settings] = None,
) -> Flask:
    """Build the Flask application.

    ``store`` and ``rate_provider`` default to the database and the SBS
    exchange-rate client described by ``settings`` (read from the
    environment when omitted).
    """
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level, settings.log_format)

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    simulations = store or create_store_from_env(
        settings.database_url, settings.max_simulations_per_owner
    )
    provider = rate_provider or ExchangeRateClient.from_settings(settings)

    @app.errorhandler(SimulationNotFoundError)
    def _not_found(exc):
        return _error(exc, 404)

    @app.errorhandler(RateUnavailableError)
    def _rate_unavailable(exc):
        logger.error("Simulation failed, exchange rate unavailable: %s", exc)
        return _error(exc, 503)

    @app.errorhandler(InvalidLoanInputError)
    @app.errorhandler(MissingParameterError)
    @app.errorhandler(UnsupportedRateTypeError)
    def _bad_request(exc):
        return _error(exc, 400)

    @app.errorhandler(MiViviendaError)
    def _engine_error(exc):
        return _error(exc, 400)

    def _run(body: dict):
        inputs = inputs_from_dict(body.get("inputs", body))
        return inputs, compute(inputs, provider)

    @app.post("/api/compute")
    def compute_simulation():
        _, result = _run(_json_body())
        return jsonify(result_to_dict(result))

    @app.get("/api/simulations")
    def list_simulations():
        return jsonify(simulations.list(_ensure_owner_id()))

    @app.post("/api/simulations")
    def save_simulation():
        owner_id = _ensure_owner_id()
        body = _json_body()
        inputs, result = _run(body)
        name = str(body.get("name") or "").strip() or "Simulation"
        simulation_id = simulations.save(
            owner_id, name, inputs, result, is_baseline=bool(body.get("is_baseline"))
        )
        return jsonify({"id": simulation_id, "results": result_to_dict(result)}), 201

    @app.get("/api/simulations/<simulation_id>")
    def get_simulation(simulation_id: str):
        return jsonify(simulations.get(_ensure_owner_id(), simulation_id))

    @app.delete("/api/simulations/<simulation_id>")
    def delete_simulation(simulation_id: str):
        simulations.delete(_ensure_owner_id(), simulation_id)
        return "", 204

    @app.post("/api/compare")
    def compare_simulations():
        """Compare stored simulations.

        With ``{"ids": [...]}`` (2 to 4 ids) the simulations are lined up
        side by side; with ``{"id": ...}`` the simulation is compared against
        the owner's baseline.
        """
        owner_id = _ensure_owner_id()
        body = _json_body()
        if "ids" in body:
            ids = body["ids"]
            if not isinstance(ids, list):
                raise InvalidLoanInputError("'ids' must be a list")
            records = [simulations.get(owner_id, simulation_id) for simulation_id in ids]
            comparison = compare_many([record["results"] for record in records])
            comparison["names"] = [record["name"] for record in records]
            return jsonify(comparison)
        baseline = simulations.baseline(owner_id)
        if baseline is None:
            raise SimulationNotFoundError("No baseline simulation saved")
        other = simulations.get(owner_id, str(body.get("id", "")))
        return jsonify(
            {
                "base": baseline["name"],
                "other": other["name"],
                "metrics": compare_results(baseline["results"], other["results"]),
            }
        )

    return app


if __name__ == "__main__":
    print("Starting MiVivienda simulator API...")
    create_app().run(host="0.0.0.0", port=int(os.environ.get("PORT", "8080")), debug=True)
