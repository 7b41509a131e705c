"""
Pure input-validation helpers for the plan endpoints.
No Flask or network imports.
"""

from typing import List, Optional, Tuple

from normalizer import clean_entries, normalize_course_id

MAX_COURSES = 12
MAX_CLUBS = 12
MAX_GOALS_CHARS = 4000


def _course_rows(body: dict) -> list:
    """The JSON API sends courseId; older form posts send name. Accept both."""
    rows = []
    for row in body.get("courses") or []:
        if not isinstance(row, dict):
            rows.append(row)
            continue
        course_id = row.get("courseId")
        if course_id in (None, ""):
            course_id = row.get("name")
        rows.append({"courseId": course_id, "time": row.get("time")})
    return rows


def _check_rows(rows, label: str, name_field: str) -> Optional[str]:
    if not isinstance(rows, list):
        return f"'{label}' must be a list."
    for row in rows:
        if not isinstance(row, dict):
            return f"Each entry in '{label}' must be an object."
        for field in (name_field, "time"):
            val = row.get(field)
            if val is not None and not isinstance(val, str):
                return f"'{label}' entries must have string '{field}' values."
    return None


def validate_plan_body(body) -> Tuple[Optional[str], Optional[str]]:
    """Returns (error_code, message) on invalid input, (None, None) on success."""
    if body is None or not isinstance(body, dict):
        return "INVALID_INPUT", "Request body must be valid JSON."

    goals = body.get("goals")
    if goals is not None and not isinstance(goals, str):
        return "INVALID_INPUT", "goals must be a string."
    if not goals or not goals.strip():
        return "INVALID_INPUT", "Goals are required"
    if len(goals) > MAX_GOALS_CHARS:
        return "INVALID_INPUT", f"Goals must be at most {MAX_GOALS_CHARS} characters."

    raw_courses = body.get("courses", [])
    raw_clubs = body.get("clubs", [])
    if raw_courses is None:
        raw_courses = []
    if raw_clubs is None:
        raw_clubs = []

    err = _check_rows(raw_courses, "courses", "courseId")
    if err:
        return "INVALID_INPUT", err
    err = _check_rows(raw_clubs, "clubs", "name")
    if err:
        return "INVALID_INPUT", err

    courses = clean_entries(_course_rows(body), "courseId")
    clubs = clean_entries(raw_clubs, "name")
    if not courses and not clubs:
        return "INVALID_INPUT", "Please add at least one course or club"
    if len(courses) > MAX_COURSES:
        return "INVALID_INPUT", f"At most {MAX_COURSES} courses are supported."
    if len(clubs) > MAX_CLUBS:
        return "INVALID_INPUT", f"At most {MAX_CLUBS} clubs are supported."
    return None, None


def coerce_plan_request(body: dict) -> dict:
    """
    Builds the cleaned request used by the planning pipeline.

    Returns:
      {
        "courses": [{"courseId": "CMSC131", "time": "MWF 10:00-10:50"}],
        "clubs":   [{"name": "Chess Club", "time": "Wed 6-8pm"}],
        "goals":   "..."
      }
    Call validate_plan_body first; this does not re-check limits.
    """
    courses: List[dict] = []
    for row in clean_entries(_course_rows(body), "courseId"):
        raw_id = row["courseId"]
        row["courseId"] = normalize_course_id(raw_id) or raw_id.upper()
        courses.append(row)
    return {
        "courses": courses,
        "clubs": clean_entries(body.get("clubs") or [], "name"),
        "goals": str(body.get("goals") or "").strip(),
    }
