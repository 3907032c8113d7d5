"""Flask JSON API for fleet tracking."""

import logging
from typing import Optional

from flask import Flask, jsonify, request

from fleet import chat
from fleet.config import Settings, configure_logging, load_settings
from fleet.dashboard import get_dashboard_stats
from fleet.errors import NotFoundError, PersistenceError, ValidationInputError
from fleet.loader import alert_to_dict, maintenance_record_to_dict, part_to_dict, vehicle_to_dict
from fleet.orchestrator import validate_all
from fleet.payloads import (
    parse_alert,
    parse_maintenance_record,
    parse_part,
    parse_vehicle,
    to_changes,
)
from fleet.sample_data import seed_sample_data
from fleet.store import FleetStore
from fleet.validator import VehicleStatusValidator

logger = logging.getLogger(__name__)


def _json_body():
    """Request body as parsed JSON (None when missing or malformed)."""
    return request.get_json(silent=True)


def create_app(
    store: Optional[FleetStore] = None,
    settings: Optional[Settings] = None,
    validator: Optional[VehicleStatusValidator] = None,
) -> Flask:
    """
    Build the API application.

    Tests pass their own store (and a validator with a fixed clock);
    otherwise the store is opened from FLEET_DATA_FILE.
    """
    settings = settings or load_settings()
    if store is None:
        configure_logging(settings.log_level)
        store = FleetStore(settings.data_file)
        if settings.seed_sample_data:
            seed_sample_data(store)
    validator = validator or VehicleStatusValidator(store)

    app = Flask(__name__)
    app.config["FLEET_STORE"] = store
    app.config["FLEET_SETTINGS"] = settings

    # =========================================================================
    # Error mapping
    # =========================================================================

    @app.errorhandler(NotFoundError)
    def handle_not_found(error):
        return jsonify({"message": str(error)}), 404

    @app.errorhandler(ValidationInputError)
    def handle_invalid_input(error):
        return jsonify({"message": "Invalid data", "errors": error.errors}), 400

    @app.errorhandler(PersistenceError)
    def handle_persistence(error):
        logger.error("Store failure on %s %s: %s", request.method, request.path, error)
        return jsonify({"message": "Fleet data is unavailable"}), 500

    # =========================================================================
    # Dashboard
    # =========================================================================

    @app.route("/api/dashboard/stats")
    def dashboard_stats():
        return jsonify(get_dashboard_stats(store).to_dict())

    # =========================================================================
    # Vehicles
    # =========================================================================

    @app.route("/api/vehicles", methods=["GET"])
    def list_vehicles():
        return jsonify([vehicle_to_dict(v) for v in store.get_vehicles()])

    @app.route("/api/vehicles", methods=["POST"])
    def create_vehicle():
        vehicle = store.create_vehicle(parse_vehicle(_json_body()))
        return jsonify(vehicle_to_dict(vehicle)), 201

    @app.route("/api/vehicles/<int:vehicle_id>", methods=["GET"])
    def get_vehicle(vehicle_id: int):
        return jsonify(store.get_vehicle_detail(vehicle_id).to_dict())

    @app.route("/api/vehicles/<int:vehicle_id>", methods=["PUT", "PATCH"])
    def update_vehicle(vehicle_id: int):
        changes = to_changes("vehicle", _json_body(), partial=True)
        vehicle = store.update_vehicle(vehicle_id, **changes)
        return jsonify(vehicle_to_dict(vehicle))

    @app.route("/api/vehicles/<int:vehicle_id>", methods=["DELETE"])
    def delete_vehicle(vehicle_id: int):
        store.delete_vehicle(vehicle_id)
        return "", 204

    @app.route("/api/vehicles/<int:vehicle_id>/validate", methods=["GET", "POST"])
    def validate_vehicle(vehicle_id: int):
        return jsonify(validator.validate(vehicle_id).to_dict())

    @app.route("/api/vehicles/validate-all", methods=["POST"])
    def validate_all_vehicles():
        report = validate_all(validator, max_workers=settings.validation_workers)
        body = report.to_dict()
        body["message"] = (
            "All vehicles validated successfully"
            if report.ok
            else f"{len(report.failures)} vehicles could not be validated"
        )
        return jsonify(body)

    # =========================================================================
    # Parts
    # =========================================================================

    @app.route("/api/parts", methods=["GET"])
    def list_parts():
        return jsonify(store.get_parts_with_status())

    @app.route("/api/parts", methods=["POST"])
    def create_part():
        part = store.create_part(parse_part(_json_body()))
        return jsonify(part_to_dict(part, with_status=True)), 201

    @app.route("/api/parts/<int:part_id>", methods=["PUT", "PATCH"])
    def update_part(part_id: int):
        changes = to_changes("part", _json_body(), partial=True)
        part = store.update_part(part_id, **changes)
        return jsonify(part_to_dict(part, with_status=True))

    @app.route("/api/parts/<int:part_id>", methods=["DELETE"])
    def delete_part(part_id: int):
        store.delete_part(part_id)
        return "", 204

    # =========================================================================
    # Maintenance
    # =========================================================================

    @app.route("/api/maintenance", methods=["GET"])
    def list_maintenance():
        return jsonify([d.to_dict() for d in store.get_maintenance_records_with_parts()])

    @app.route("/api/maintenance/vehicle/<int:vehicle_id>", methods=["GET"])
    def list_vehicle_maintenance(vehicle_id: int):
        records = store.get_maintenance_records_by_vehicle(vehicle_id)
        return jsonify([maintenance_record_to_dict(r) for r in records])

    @app.route("/api/maintenance", methods=["POST"])
    def create_maintenance():
        record, parts_used = parse_maintenance_record(_json_body())
        record = store.create_maintenance_record(record, parts_used)
        return jsonify(maintenance_record_to_dict(record)), 201

    @app.route("/api/maintenance/<int:record_id>", methods=["PATCH"])
    def update_maintenance(record_id: int):
        changes = to_changes("maintenanceRecord", _json_body(), partial=True)
        record = store.update_maintenance_record(record_id, **changes)
        return jsonify(maintenance_record_to_dict(record))

    @app.route("/api/maintenance/<int:record_id>", methods=["DELETE"])
    def delete_maintenance(record_id: int):
        store.delete_maintenance_record(record_id)
        return "", 204

    # =========================================================================
    # Alerts
    # =========================================================================

    @app.route("/api/alerts", methods=["GET"])
    def list_alerts():
        return jsonify([alert_to_dict(a) for a in store.get_alerts()])

    @app.route("/api/alerts", methods=["POST"])
    def create_alert():
        alert = store.create_alert(parse_alert(_json_body()))
        return jsonify(alert_to_dict(alert)), 201

    @app.route("/api/alerts/<int:alert_id>/read", methods=["PUT"])
    def mark_alert_read(alert_id: int):
        store.mark_alert_as_read(alert_id)
        return "", 204

    @app.route("/api/alerts/<int:alert_id>", methods=["DELETE"])
    def delete_alert(alert_id: int):
        store.delete_alert(alert_id)
        return "", 204

    # =========================================================================
    # Chat
    # =========================================================================

    @app.route("/api/chat/query", methods=["POST"])
    def chat_query():
        body = _json_body()
        if not isinstance(body, dict):
            body = {}
        response = chat.respond(store, message=body.get("message"), action=body.get("action"))
        return jsonify({"response": response})

    return app


if __name__ == "__main__":
    # Using 5001 to avoid conflict with macOS AirPlay Receiver on 5000
    create_app().run(debug=True, host="0.0.0.0", port=5001)
