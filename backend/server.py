import os
import sys
import time
import threading
from collections import defaultdict

# Ensure backend/ is on sys.path so sibling imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flask import Flask, g, jsonify, render_template, request
from werkzeug.exceptions import HTTPException

import config
from validators import coerce_plan_request, validate_plan_body
from catalog_client import fetch_courses
from prompt_builder import build_prompt, load_scheduling_prompt
from llm_client import LlmError, MissingApiKeyError, generate_schedule_text
from response_parser import parse_schedule_response
from calendar_view import build_calendar_view

APP_VERSION = "1.0.0"

app = Flask(__name__)

# -- Rate limiting (manual token bucket, per IP) ---------------------------
_RATE_LIMIT_MAX = config.RATE_LIMIT_MAX
_RATE_LIMIT_WINDOW = config.RATE_LIMIT_WINDOW
_rate_limit_lock = threading.Lock()
_rate_limit_tracker: dict[str, list[float]] = defaultdict(list)

_SLOW_REQUEST_LOG_MS = config.SLOW_REQUEST_LOG_MS


def _check_rate_limit(ip: str) -> bool:
    """Return True if request is allowed, False if rate-limited."""
    now = time.time()
    with _rate_limit_lock:
        timestamps = _rate_limit_tracker[ip]
        _rate_limit_tracker[ip] = [t for t in timestamps if now - t < _RATE_LIMIT_WINDOW]
        if len(_rate_limit_tracker[ip]) >= _RATE_LIMIT_MAX:
            return False
        _rate_limit_tracker[ip].append(now)
        return True


def _client_ip() -> str:
    return request.headers.get("X-Forwarded-For", request.remote_addr or "").split(",")[0].strip()


def _rate_limited() -> bool:
    return not app.config.get("TESTING") and not _check_rate_limit(_client_ip())


def _error_payload(error_code: str, message: str) -> dict:
    return {
        "mode": "error",
        "error": {"error_code": error_code, "message": message},
    }


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


# -- Health endpoint --------------------------------------------------------
@app.route("/health", methods=["GET"])
def health_endpoint():
    return jsonify({
        "status": "ok",
        "version": APP_VERSION,
        "llm_configured": config.get_api_key() is not None,
        "prompt_loaded": os.path.isfile(config.PROMPT_PATH),
    })


# -- Planning pipeline -----------------------------------------------------
def run_plan(plan_request: dict) -> dict:
    """
    Catalog lookup -> prompt -> model -> parse.
    Raises LlmError for model failures; catalog failures only drop enrichment.
    """
    if not config.get_api_key():
        raise MissingApiKeyError()

    courses = plan_request["courses"]
    clubs = plan_request["clubs"]

    course_data = fetch_courses([c["courseId"] for c in courses])

    scheduling_prompt = load_scheduling_prompt(config.PROMPT_PATH)
    if not scheduling_prompt:
        print("[WARN] Scheduling prompt is empty or could not be read", file=sys.stderr)

    prompt = build_prompt(
        scheduling_prompt,
        courses,
        clubs,
        plan_request["goals"],
        course_data,
    )
    text = generate_schedule_text(prompt)
    parsed, schedule = parse_schedule_response(text)
    if parsed is None and text.strip():
        print("[WARN] Model response did not contain a recoverable JSON object", file=sys.stderr)

    return {
        "response": text,
        "schedule": schedule,
        "course_data": course_data,
    }


# ── 500 handler ────────────────────────────────────────────────────────────────
@app.errorhandler(Exception)
def handle_unexpected_error(e):
    if isinstance(e, HTTPException):
        return e
    print(f"[ERROR] Unhandled exception on {request.path}: {e!r}", file=sys.stderr)
    return jsonify(_error_payload("SERVER_ERROR", "An unexpected server error occurred.")), 500


# ── Routes ─────────────────────────────────────────────────────────────────────
def _blank_form() -> dict:
    return {
        "courses": [{"courseId": "", "time": ""}],
        "clubs": [{"name": "", "time": ""}],
        "goals": "",
    }


def _form_body() -> dict:
    """Rebuilds the JSON body shape from the HTML form's parallel field lists."""
    course_ids = request.form.getlist("course_id")
    course_times = request.form.getlist("course_time")
    club_names = request.form.getlist("club_name")
    club_times = request.form.getlist("club_time")
    return {
        "courses": [{"courseId": cid, "time": t} for cid, t in zip(course_ids, course_times)],
        "clubs": [{"name": name, "time": t} for name, t in zip(club_names, club_times)],
        "goals": request.form.get("goals", ""),
    }


def _render_form(form: dict, error: str | None = None, status: int = 200):
    form = dict(form)
    if not form.get("courses"):
        form["courses"] = [{"courseId": "", "time": ""}]
    if not form.get("clubs"):
        form["clubs"] = [{"name": "", "time": ""}]
    return render_template("index.html", form=form, error=error), status


@app.route("/", methods=["GET"])
def index():
    return _render_form(_blank_form())


@app.route("/plan", methods=["POST"])
def plan_form():
    body = _form_body()
    if _rate_limited():
        return _render_form(body, "Too many requests. Please wait before submitting again.", 429)

    err_code, err_msg = validate_plan_body(body)
    if err_code:
        return _render_form(body, err_msg, 400)

    try:
        result = run_plan(coerce_plan_request(body))
    except LlmError as exc:
        return _render_form(body, exc.message, exc.status)

    view = build_calendar_view(result["schedule"]) if result["schedule"] else None
    return render_template(
        "results.html",
        view=view,
        raw_response=result["response"],
        course_data=result["course_data"],
    )


@app.route("/api/gemini", methods=["POST"])
def plan_api():
    if _rate_limited():
        return jsonify(_error_payload(
            "RATE_LIMITED", "Too many requests. Please wait before submitting again."
        )), 429

    body = request.get_json(force=True, silent=True)
    err_code, err_msg = validate_plan_body(body)
    if err_code:
        return jsonify(_error_payload(err_code, err_msg)), 400

    try:
        result = run_plan(coerce_plan_request(body))
    except LlmError as exc:
        return jsonify(_error_payload(exc.error_code, exc.message)), exc.status

    return jsonify({
        "mode": "schedule",
        "response": result["response"],
        "schedule": result["schedule"],
        "course_data": result["course_data"],
        "error": None,
    })


app.add_url_rule("/api/health", endpoint="api_health", view_func=health_endpoint, methods=["GET"])
app.add_url_rule("/api/plan", endpoint="api_plan", view_func=plan_api, methods=["POST"])


# -- API catch-all (404 for unknown /api/* routes) -------------------
@app.route("/api/<path:rest>", methods=["GET", "POST", "PUT", "DELETE", "PATCH"])
def api_catch_all(rest):
    return jsonify({"error": f"/api/{rest} not found"}), 404


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    debug = os.environ.get("FLASK_DEBUG", "1") == "1"
    if config.get_api_key() is None:
        print("[WARN] GEMINI_API_KEY is not set; plan requests will fail", file=sys.stderr)
    print(f"[OK] Schedule planner listening on port {port}")
    app.run(host="0.0.0.0", port=port, debug=debug)
