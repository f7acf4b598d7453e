"""Flask API application."""

import logging
from typing import Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from shiftsim.config import DEFAULT_API_DEBUG, DEFAULT_API_PORT, DEFAULT_LOG_LEVEL
from ..engine.driver import ThreadedIntervalDriver
from ..engine.shift_engine import ShiftSimulation
from ..models.shift import ShiftConfig
from ..models.task import Task, TaskStatus

logging.basicConfig(level=DEFAULT_LOG_LEVEL, format='[%(name)-19s - %(levelname)5s] %(message)s')

app = Flask("flask.shiftsim")
# Callable returning a fresh tick driver for each shift; tests swap in ManualDriver
app.config.setdefault("SHIFTSIM_DRIVER_FACTORY", ThreadedIntervalDriver)


@app.before_request
def log_request_info():
    app.logger.info('Access to: %s from %s (%s)',
        request.url,
        request.headers.get('X-Forwarded-For', request.remote_addr),
        request.headers.get('User-Agent'))


# Error handlers for API routes
@app.errorhandler(HTTPException)
def handle_http_exception(e: HTTPException):
    """Return JSON instead of HTML for HTTP errors in API routes."""
    if request.path.startswith("/api/"):
        response = e.get_response()
        response.data = jsonify(
            {
                "error": e.name,
                "code": e.code,
                "description": e.description,
            }
        ).data
        response.content_type = "application/json"
        return response
    return e


@app.errorhandler(500)
def handle_internal_error(e: Exception):
    """Handle 500 errors."""
    if request.path.startswith("/api/"):
        app.logger.error(f"Internal server error: {e}", exc_info=True)
        return jsonify({"error": "Internal Server Error", "message": "An unexpected error occurred"}), 500
    return "Internal Server Error", 500


# Global shift storage: shift_id -> ShiftSimulation
_shifts: dict[str, ShiftSimulation] = {}


def _get_shift(shift_id: Optional[str] = None) -> Optional[ShiftSimulation]:
    """Get shift by shift_id, or return None if not found."""
    if shift_id is None:
        return None
    return _shifts.get(shift_id)


def _serialize_task(task: Task) -> dict:
    """Serialize a task for the API."""
    return task.model_dump(mode="json")


def _serialize_shift(shift: ShiftSimulation) -> dict:
    """Serialize a shift summary for the API."""
    state = shift.state
    return {
        "shift_id": shift.shift_id,
        "config": shift.config.model_dump(mode="json"),
        "game_status": state.game_status.value,
        "time": shift.poll_time().model_dump(mode="json"),
        "last_checkpoint": state.last_checkpoint,
        "next_checkpoint": shift.checkpoints.next_checkpoint,
        "active_task_ids": sorted(state.active_task_ids),
        "patients": [patient.model_dump(mode="json") for patient in state.patients.values()],
    }


@app.route("/api/shifts", methods=["GET"])
def list_shifts():
    """List all shifts."""
    return jsonify({"shifts": [_serialize_shift(shift) for shift in _shifts.values()]})


@app.route("/api/shifts", methods=["POST"])
def create_shift():
    """
    Create and start a shift.

    Configuration comes from the query string (``speed-factor``,
    ``shift-starts``, ``shift-duration``, ``preset``); an optional JSON body
    carries ``tasks`` and ``patients`` (each patient may list its own ``tasks``).
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400

    try:
        config = ShiftConfig.from_query(request.args.to_dict())
    except ValueError as e:
        app.logger.warning(f"Invalid shift configuration: {e}")
        return jsonify({"error": "Invalid shift configuration", "message": str(e)}), 400

    shift = ShiftSimulation(config, driver=app.config["SHIFTSIM_DRIVER_FACTORY"]())
    try:
        for patient_data in data.get("patients", []):
            patient_data = dict(patient_data)
            patient_tasks = patient_data.pop("tasks", [])
            shift.admit_patient(patient_data, patient_tasks)
        shift.load_tasks(data.get("tasks", []))
    except (ValueError, TypeError) as e:
        shift.close()
        app.logger.warning(f"Invalid shift content: {e}")
        return jsonify({"error": "Invalid shift content", "message": str(e)}), 400

    shift.start()
    _shifts[shift.shift_id] = shift
    return jsonify({"success": True, "shift_id": shift.shift_id, "shift": _serialize_shift(shift)}), 201


@app.route("/api/shifts/<shift_id>", methods=["GET"])
def get_shift(shift_id: str):
    """Get a shift summary."""
    shift = _get_shift(shift_id)
    if not shift:
        return jsonify({"error": "Shift not found"}), 404
    return jsonify({"shift": _serialize_shift(shift)})


@app.route("/api/shifts/<shift_id>", methods=["DELETE"])
def delete_shift(shift_id: str):
    """Stop a shift and forget it."""
    shift = _shifts.pop(shift_id, None)
    if not shift:
        return jsonify({"error": "Shift not found"}), 404
    shift.close()
    return jsonify({"success": True, "message": f"Shift {shift_id} has been deleted"})


@app.route("/api/shifts/<shift_id>/time", methods=["GET"])
def poll_time(shift_id: str):
    """Poll the shift clock."""
    shift = _get_shift(shift_id)
    if not shift:
        return jsonify({"error": "Shift not found"}), 404
    return jsonify({"time": shift.poll_time().model_dump(mode="json")})


@app.route("/api/shifts/<shift_id>/pause", methods=["POST"])
def pause_shift(shift_id: str):
    """Pause the shift clock."""
    shift = _get_shift(shift_id)
    if not shift:
        return jsonify({"error": "Shift not found"}), 404
    changed = shift.pause()
    return jsonify({"success": True, "changed": changed, "time": shift.poll_time().model_dump(mode="json")})


@app.route("/api/shifts/<shift_id>/resume", methods=["POST"])
def resume_shift(shift_id: str):
    """Resume the shift clock."""
    shift = _get_shift(shift_id)
    if not shift:
        return jsonify({"error": "Shift not found"}), 404
    changed = shift.resume()
    return jsonify({"success": True, "changed": changed, "time": shift.poll_time().model_dump(mode="json")})


@app.route("/api/shifts/<shift_id>/tasks", methods=["GET"])
def list_tasks(shift_id: str):
    """List a shift's tasks, optionally filtered with ?status=."""
    shift = _get_shift(shift_id)
    if not shift:
        return jsonify({"error": "Shift not found"}), 404

    status = None
    status_param = request.args.get("status")
    if status_param:
        try:
            status = TaskStatus(status_param)
        except ValueError:
            return jsonify({"error": f"Unknown task status: {status_param}"}), 400

    tasks = shift.tasks.list_tasks(status)
    return jsonify({"tasks": [_serialize_task(task) for task in tasks]})


@app.route("/api/shifts/<shift_id>/tasks/<task_id>", methods=["GET"])
def get_task(shift_id: str, task_id: str):
    """Get one task."""
    shift = _get_shift(shift_id)
    if not shift:
        return jsonify({"error": "Shift not found"}), 404
    task = shift.tasks.get_task(task_id)
    if not task:
        return jsonify({"error": "Task not found"}), 404
    return jsonify({"task": _serialize_task(task)})


@app.route("/api/shifts/<shift_id>/tasks/<task_id>/complete", methods=["POST"])
def complete_task(shift_id: str, task_id: str):
    """Complete an active task."""
    shift = _get_shift(shift_id)
    if not shift:
        return jsonify({"error": "Shift not found"}), 404
    if shift.tasks.get_task(task_id) is None:
        return jsonify({"error": "Task not found"}), 404

    success, error_msg = shift.complete_task(task_id)
    if not success:
        return jsonify({"success": False, "error": error_msg}), 409
    return jsonify({"success": True, "task": _serialize_task(shift.tasks.get_task(task_id))})


if __name__ == "__main__":
    app.run(debug=DEFAULT_API_DEBUG, port=DEFAULT_API_PORT)
