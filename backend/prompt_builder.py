import json
import sys

BANNER = "=" * 80

CLOSING_INSTRUCTION = (
    "Please follow the instructions in the scheduling engine prompt above "
    "and return the OUTPUT JSON schema exactly as specified."
)


def load_scheduling_prompt(path: str) -> str:
    """Reads the scheduling-engine instructions. Returns "" if the file is unreadable."""
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except OSError as exc:
        print(f"[ERROR] Error reading {path}: {exc}", file=sys.stderr)
        return ""


def _tbd_meeting(time_string: str) -> dict:
    # Days and times stay free text; the model derives them from time_string.
    return {
        "days": "TBD",
        "start": "TBD",
        "end": "TBD",
        "time_string": time_string,
    }


def _parse_credits(raw):
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return None


def build_course_inputs(courses: list[dict], course_data: dict) -> list[dict]:
    inputs = []
    for course in courses:
        course_id = course["courseId"].upper()
        record = course_data.get(course_id) or {}
        inputs.append({
            "course_id": course_id,
            "provided_meetings": [_tbd_meeting(course["time"])],
            "credits": _parse_credits(record.get("credits")),
            "difficulty_hint": None,
            "exam_weeks": [],
        })
    return inputs


def build_activity_inputs(clubs: list[dict]) -> list[dict]:
    return [
        {
            "name": club["name"],
            "type": "club",
            "fixed_meetings": [_tbd_meeting(club["time"])],
        }
        for club in clubs
    ]


def _course_lines(course: dict, course_data: dict) -> list[str]:
    course_id = course["courseId"].upper()
    record = course_data.get(course_id)
    name = (record or {}).get("name") or course_id
    lines = [f"- {name} ({course_id}): {course['time']}"]
    if not record:
        return lines

    relationships = record.get("relationships") or {}
    if record.get("description"):
        lines.append(f"  Description: {record['description']}")
    if record.get("credits"):
        lines.append(f"  Credits: {record['credits']}")
    if relationships.get("prereqs"):
        lines.append(f"  Prerequisites: {relationships['prereqs']}")
    if relationships.get("coreqs"):
        lines.append(f"  Corequisites: {relationships['coreqs']}")
    return lines


def build_prompt(
    scheduling_prompt: str,
    courses: list[dict],
    clubs: list[dict],
    goals: str,
    course_data: dict | None = None,
) -> str:
    """
    Builds the single user message sent to the model.
    The model owns the schedule; this only shapes the input text.
    """
    course_data = course_data or {}
    lines = [
        scheduling_prompt,
        "",
        BANNER,
        "ACTUAL USER INPUT (transform the following into the INPUT JSON format above):",
        BANNER,
        "",
        "Courses:",
    ]
    for course in courses:
        lines.extend(_course_lines(course, course_data))

    if clubs:
        lines.append("")
        lines.append("Clubs/Activities:")
        for club in clubs:
            lines.append(f"- {club['name']}: {club['time']}")

    lines.append("")
    lines.append("Goals:")
    lines.append(goals)
    lines.append("")

    structured = {
        "courses": build_course_inputs(courses, course_data),
        "activities": build_activity_inputs(clubs),
        "goals": goals,
    }
    lines.append(
        "Structured input (pre-filled INPUT JSON; TBD fields must be derived from time_string):"
    )
    lines.append(json.dumps(structured, indent=2))
    lines.append("")
    lines.append(CLOSING_INSTRUCTION)

    return "\n".join(lines)
