import re

# Matches: CMSC131, cmsc 131, MATH-140H, ENGL101A, BMGT 220, etc.
CANONICAL = re.compile(r'^([A-Za-z]{2,6})\s*[-]?\s*(\d{3,4}[A-Za-z]?)$')


def normalize_course_id(raw: str) -> str | None:
    """
    Normalizes a course id to the catalog's 'DEPTNNN' format.
    Handles: 'cmsc131', 'CMSC 131', 'MATH-140H', 'engl 101a'
    Returns None if the string cannot be parsed as a course id.
    """
    if not raw or not str(raw).strip():
        return None
    m = CANONICAL.match(str(raw).strip())
    if m:
        dept = m.group(1).upper()
        num = m.group(2).upper()
        return f"{dept}{num}"
    return None


def clean_entries(rows, name_field: str) -> list[dict]:
    """
    Drops rows whose name or time is blank and strips the rest.

    Returns [{name_field: "...", "time": "..."}] in input order.
    Non-dict rows are skipped.
    """
    cleaned = []
    for row in rows or []:
        if not isinstance(row, dict):
            continue
        name = str(row.get(name_field) or "").strip()
        time_str = str(row.get("time") or "").strip()
        if not name or not time_str:
            continue
        cleaned.append({name_field: name, "time": time_str})
    return cleaned
