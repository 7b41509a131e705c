import sys
from concurrent.futures import ThreadPoolExecutor

import requests

import config


def fetch_course(course_id: str) -> dict | None:
    """
    Looks up one course in the public catalog.
    Returns the course record, or None on any failure (logged, never raised).
    """
    course_id = (course_id or "").strip().upper()
    if not course_id:
        return None
    url = f"{config.CATALOG_API_URL}/{requests.utils.quote(course_id, safe='')}"
    try:
        resp = requests.get(url, timeout=config.CATALOG_TIMEOUT_SECONDS)
    except requests.RequestException as exc:
        print(f"[WARN] Error fetching course {course_id}: {exc}", file=sys.stderr)
        return None

    if not resp.ok:
        print(f"[WARN] Failed to fetch course {course_id}: {resp.status_code}", file=sys.stderr)
        return None

    try:
        data = resp.json()
    except ValueError as exc:
        print(f"[WARN] Course {course_id} returned invalid JSON: {exc}", file=sys.stderr)
        return None

    # The catalog answers with a one-element list for a single id.
    if isinstance(data, list):
        data = data[0] if data else None
    if not isinstance(data, dict) or not data:
        return None
    return data


def fetch_courses(course_ids) -> dict[str, dict]:
    """
    Looks up every distinct non-blank id concurrently.
    Returns {COURSE_ID: record} for successful lookups only.
    """
    unique_ids = list(dict.fromkeys(
        str(c).strip().upper() for c in course_ids or [] if c and str(c).strip()
    ))
    if not unique_ids:
        return {}

    print(f"[CATALOG] Fetching {len(unique_ids)} course(s) from {config.CATALOG_API_URL}")
    workers = min(config.CATALOG_MAX_WORKERS, len(unique_ids))
    course_data: dict[str, dict] = {}
    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = pool.map(fetch_course, unique_ids)
        for course_id, record in zip(unique_ids, results):
            if record is not None:
                course_data[course_id] = record
                print(f"[CATALOG] Fetched {course_id}: {record.get('name', '')}")
    print(f"[CATALOG] Lookup complete ({len(course_data)}/{len(unique_ids)} found)")
    return course_data
