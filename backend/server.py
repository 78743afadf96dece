import os
import sys
import time
import threading

# Ensure backend/ is on sys.path so sibling imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException
from dotenv import load_dotenv

from bottlenecks import BottleneckAnalyzer
from data_loader import load_data
from errors import PlanError
from planner import Planner
from requirements import DEFAULT_CREDIT_LIMIT, load_bottleneck_weights
from stores import PlanStore, ProgramCatalog, StudentProgressStore

load_dotenv()

app = Flask(__name__)

# ── Paths ─────────────────────────────────────────────────────────────────────
BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BACKEND_DIR)
_DEFAULT_DATA_PATH = os.path.join(PROJECT_ROOT, "data")
_env_data_path = os.environ.get("DATA_PATH")
if not _env_data_path:
    DATA_PATH = _DEFAULT_DATA_PATH
elif not os.path.isabs(_env_data_path):
    DATA_PATH = os.path.join(PROJECT_ROOT, _env_data_path)
else:
    DATA_PATH = _env_data_path
PLAN_STORE_PATH = os.environ.get("PLAN_STORE_PATH") or None
BOTTLENECK_WEIGHTS_PATH = os.environ.get("BOTTLENECK_WEIGHTS_PATH") or None
_data_lock = threading.Lock()
_data_mtime = None


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, float(raw))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, int(raw))
    except (TypeError, ValueError):
        return default


_SLOW_REQUEST_LOG_MS = _env_float("SLOW_REQUEST_LOG_MS", 750.0, minimum=0.0)
_DEFAULT_CREDIT_LIMIT = _env_int("DEFAULT_CREDIT_LIMIT", DEFAULT_CREDIT_LIMIT, minimum=3)


def _data_file_mtime(path: str):
    try:
        if os.path.isdir(path):
            mtimes = [
                os.path.getmtime(os.path.join(path, f))
                for f in os.listdir(path)
                if f.endswith(".csv")
            ]
            return max(mtimes) if mtimes else None
        return os.path.getmtime(path)
    except OSError:
        return None


def _data_version_tag(mtime) -> str:
    return "none" if mtime is None else str(mtime)


# ── Startup data load ──────────────────────────────────────────────────────────
try:
    _data = load_data(DATA_PATH)
    _data_mtime = _data_file_mtime(DATA_PATH)
    print(f"[OK] Loaded {len(_data['programs'])} program(s) from {DATA_PATH}")
except FileNotFoundError:
    # If DATA_PATH env var is stale, fall back to the repo data directory.
    if DATA_PATH != _DEFAULT_DATA_PATH and os.path.exists(_DEFAULT_DATA_PATH):
        print(
            f"[WARN] DATA_PATH not found ({DATA_PATH}); "
            f"falling back to default data directory ({_DEFAULT_DATA_PATH}).",
            file=sys.stderr,
        )
        DATA_PATH = _DEFAULT_DATA_PATH
        _data = load_data(DATA_PATH)
        _data_mtime = _data_file_mtime(DATA_PATH)
        print(f"[OK] Loaded {len(_data['programs'])} program(s) from {DATA_PATH}")
    else:
        print(f"[FATAL] Data directory not found: {DATA_PATH}", file=sys.stderr)
        sys.exit(1)
except Exception as exc:
    print(f"[FATAL] Failed to load data: {exc}", file=sys.stderr)
    sys.exit(1)

_program_catalog = ProgramCatalog(_data["programs"], _data_version_tag(_data_mtime))
_progress_store = StudentProgressStore(_data["progress"], _program_catalog)
_plan_store = PlanStore(PLAN_STORE_PATH)
_pattern_weights, _category_weights = load_bottleneck_weights(BOTTLENECK_WEIGHTS_PATH)
_planner = Planner(
    _program_catalog,
    _progress_store,
    _plan_store,
    analyzer=BottleneckAnalyzer(_pattern_weights, _category_weights),
)


def _reload_data_if_changed(force: bool = False) -> bool:
    """
    Hot-reload the CSV catalog when DATA_PATH changes on disk.

    Course catalogs notice the new version tag and drop their caches.
    Returns True when a reload occurred, else False.
    """
    global _data, _data_mtime

    candidate_mtime = _data_file_mtime(DATA_PATH)
    if not force:
        if candidate_mtime is None:
            return False
        if _data_mtime is not None and candidate_mtime <= _data_mtime:
            return False

    with _data_lock:
        latest_mtime = _data_file_mtime(DATA_PATH)
        if not force:
            if latest_mtime is None:
                return False
            if _data_mtime is not None and latest_mtime <= _data_mtime:
                return False

        try:
            new_data = load_data(DATA_PATH)
        except Exception as exc:
            print(f"[WARN] Data reload failed; keeping previous dataset: {exc}", file=sys.stderr)
            return False

        _data = new_data
        _data_mtime = latest_mtime if latest_mtime is not None else candidate_mtime
        _program_catalog.replace(new_data["programs"], _data_version_tag(_data_mtime))
        _progress_store.replace(new_data["progress"])
        print(f"[OK] Reloaded {len(new_data['programs'])} program(s) from {DATA_PATH}")
        return True


def _refresh_data_if_needed() -> None:
    try:
        _reload_data_if_changed()
    except Exception as exc:
        print(f"[WARN] Data reload check failed: {exc}", file=sys.stderr)


# -- Security headers ------------------------------------------------------
@app.before_request
def _start_request_timer():
    g._request_start_time = time.perf_counter()


@app.after_request
def _add_security_headers(response):
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "same-origin"

    started = getattr(g, "_request_start_time", None)
    if started is not None:
        duration_ms = (time.perf_counter() - started) * 1000.0
        if duration_ms >= _SLOW_REQUEST_LOG_MS:
            endpoint = request.endpoint or "unknown"
            print(
                f"[SLOW] {request.method} {request.path} "
                f"endpoint={endpoint} status={response.status_code} duration_ms={duration_ms:.1f}"
            )
    return response


# -- Error handlers --------------------------------------------------------
def _error_response(error_code: str, message: str, status: int):
    return jsonify({
        "mode": "error",
        "error": {
            "error_code": error_code,
            "message": message,
        },
    }), status


@app.errorhandler(PlanError)
def handle_plan_error(e):
    return _error_response(e.error_code, e.message, e.status)


@app.errorhandler(Exception)
def handle_unexpected_error(e):
    if isinstance(e, HTTPException):
        return _error_response(e.name.upper().replace(" ", "_"), e.description, e.code)
    print(f"[ERROR] Unhandled {type(e).__name__} on {request.method} {request.path}: {e}", file=sys.stderr)
    return _error_response("SERVER_ERROR", "An unexpected server error occurred.", 500)


# -- Input helpers ---------------------------------------------------------
def _json_body() -> dict:
    body = request.get_json(force=True, silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise PlanError("INVALID_INPUT", "Request body must be a JSON object.")
    return body


def _expected_revision(body: dict) -> int | None:
    """Optimistic-lock revision from the body or ?expected_revision=."""
    raw = body.get("expected_revision", request.args.get("expected_revision"))
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise PlanError("INVALID_INPUT", "expected_revision must be an integer.")


def _optional_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    return str(value or "").strip().lower() in {"true", "1", "yes", "y"}


# -- Health endpoint --------------------------------------------------------
@app.route("/health", methods=["GET"])
def health_endpoint():
    return jsonify({
        "status": "ok",
        "version": "1.0.0",
        "data_version": _program_catalog.catalog_version,
    })


# ── Routes ─────────────────────────────────────────────────────────────────────
@app.route("/programs", methods=["GET"])
def get_programs():
    _refresh_data_if_needed()
    return jsonify({"programs": _program_catalog.programs()})


@app.route("/plan/<student_id>", methods=["GET"])
def get_plan(student_id):
    """Active plan with resolved courses, current warnings and current timeline."""
    _refresh_data_if_needed()
    plan = _planner.get_plan(student_id)
    return jsonify({"mode": "plan", "plan": plan, "warnings": plan["warnings"]})


@app.route("/plan/<student_id>/history", methods=["GET"])
def get_plan_history(student_id):
    return jsonify({"mode": "plan_history", "plans": _planner.plan_history(student_id)})


@app.route("/plan/<student_id>/semesters", methods=["POST"])
def add_semester(student_id):
    _refresh_data_if_needed()
    body = _json_body()
    result = _planner.add_semester(
        student_id,
        body.get("season"),
        body.get("year"),
        credit_limit=body.get("credit_limit", _DEFAULT_CREDIT_LIMIT),
        semester_number=body.get("semester_number"),
        semester_name=body.get("semester_name"),
        expected_revision=_expected_revision(body),
    )
    return jsonify({"mode": "semester_added", **result}), 201


@app.route("/plan/<student_id>/semesters/<semester_id>", methods=["DELETE"])
def remove_semester(student_id, semester_id):
    body = _json_body()
    result = _planner.remove_semester(
        student_id,
        semester_id,
        expected_revision=_expected_revision(body),
    )
    return jsonify({"mode": "semester_removed", **result})


@app.route("/plan/<student_id>/semesters/<semester_id>/courses", methods=["POST"])
def add_course(student_id, semester_id):
    _refresh_data_if_needed()
    body = _json_body()
    if not str(body.get("course_code") or "").strip():
        raise PlanError("INVALID_INPUT", "course_code is required.")
    result = _planner.add_course(
        student_id,
        semester_id,
        body.get("course_code"),
        is_repeat=_optional_bool(body.get("is_repeat", False)),
        notes=body.get("notes"),
        expected_revision=_expected_revision(body),
    )
    return jsonify({"mode": "course_added", **result}), 201


@app.route("/plan/<student_id>/semesters/<semester_id>/courses/<course_code>", methods=["DELETE"])
def remove_course(student_id, semester_id, course_code):
    _refresh_data_if_needed()
    body = _json_body()
    result = _planner.remove_course(
        student_id,
        semester_id,
        course_code,
        expected_revision=_expected_revision(body),
    )
    return jsonify({"mode": "course_removed", **result})


@app.route("/plan/<student_id>/new-version", methods=["POST"])
def new_version(student_id):
    _refresh_data_if_needed()
    body = _json_body()
    updates = {k: body[k] for k in body if k != "expected_revision"}
    plan = _planner.create_new_version(
        student_id,
        updates,
        expected_revision=_expected_revision(body),
    )
    return jsonify({"mode": "plan", "plan": plan, "warnings": plan["warnings"]}), 201


@app.route("/can-take", methods=["POST"])
def can_take_endpoint():
    """Standalone prerequisite check for one course in a target semester ordinal."""
    _refresh_data_if_needed()
    body = _json_body()
    student_id = str(body.get("student_id") or "").strip()
    if not student_id:
        raise PlanError("INVALID_INPUT", "student_id is required.")
    if not str(body.get("course_code") or "").strip():
        raise PlanError("INVALID_INPUT", "course_code is required.")
    semester_number = body.get("semester_number")
    if semester_number is not None:
        try:
            semester_number = int(semester_number)
        except (TypeError, ValueError):
            raise PlanError("INVALID_INPUT", "semester_number must be an integer.")
    result = _planner.check_can_take(student_id, body.get("course_code"), semester_number)
    return jsonify({"mode": "can_take", **result})


# -- Canonical API routes -------------------------------------------------
app.add_url_rule("/api/health", endpoint="api_health", view_func=health_endpoint, methods=["GET"])
app.add_url_rule("/api/programs", endpoint="api_programs", view_func=get_programs, methods=["GET"])
app.add_url_rule("/api/plan/<student_id>", endpoint="api_get_plan", view_func=get_plan, methods=["GET"])
app.add_url_rule("/api/plan/<student_id>/history", endpoint="api_plan_history", view_func=get_plan_history, methods=["GET"])
app.add_url_rule("/api/plan/<student_id>/semesters", endpoint="api_add_semester", view_func=add_semester, methods=["POST"])
app.add_url_rule("/api/plan/<student_id>/semesters/<semester_id>", endpoint="api_remove_semester", view_func=remove_semester, methods=["DELETE"])
app.add_url_rule("/api/plan/<student_id>/semesters/<semester_id>/courses", endpoint="api_add_course", view_func=add_course, methods=["POST"])
app.add_url_rule("/api/plan/<student_id>/semesters/<semester_id>/courses/<course_code>", endpoint="api_remove_course", view_func=remove_course, methods=["DELETE"])
app.add_url_rule("/api/plan/<student_id>/new-version", endpoint="api_new_version", view_func=new_version, methods=["POST"])
app.add_url_rule("/api/can-take", endpoint="api_can_take", view_func=can_take_endpoint, methods=["POST"])


# -- API catch-all (404 for unknown /api/* routes) -------------------
@app.route("/api/<path:rest>", methods=["GET", "POST", "PUT", "DELETE", "PATCH"])
def api_catch_all(rest):
    return _error_response("NOT_FOUND", f"/api/{rest} not found", 404)


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    debug = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(host="0.0.0.0", port=port, debug=debug)
