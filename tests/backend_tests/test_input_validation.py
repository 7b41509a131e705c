"""
Tests for plan-request validation.

Covers validate_plan_body() and coerce_plan_request() with plain dicts;
no Flask app or network needed.
"""

import pytest

from validators import MAX_CLUBS, MAX_COURSES, MAX_GOALS_CHARS, coerce_plan_request, validate_plan_body


def _body(**overrides):
    body = {
        "courses": [{"courseId": "CMSC131", "time": "MWF 10:00-10:50"}],
        "clubs": [{"name": "Chess Club", "time": "Wed 6-8pm"}],
        "goals": "Keep a 3.8 GPA and sleep eight hours.",
    }
    body.update(overrides)
    return body


class TestValidatePlanBody:
    def test_valid(self):
        assert validate_plan_body(_body()) == (None, None)

    def test_none_body(self):
        assert validate_plan_body(None) == ("INVALID_INPUT", "Request body must be valid JSON.")

    def test_non_object_body(self):
        assert validate_plan_body(["goals"])[0] == "INVALID_INPUT"

    def test_missing_goals(self):
        body = _body()
        del body["goals"]
        assert validate_plan_body(body) == ("INVALID_INPUT", "Goals are required")

    def test_blank_goals(self):
        assert validate_plan_body(_body(goals="   ")) == ("INVALID_INPUT", "Goals are required")

    def test_non_string_goals(self):
        assert validate_plan_body(_body(goals=5)) == ("INVALID_INPUT", "goals must be a string.")

    def test_goals_too_long(self):
        code, msg = validate_plan_body(_body(goals="x" * (MAX_GOALS_CHARS + 1)))
        assert code == "INVALID_INPUT"
        assert str(MAX_GOALS_CHARS) in msg

    def test_nothing_to_schedule(self):
        body = _body(courses=[{"courseId": "", "time": ""}], clubs=[])
        assert validate_plan_body(body) == ("INVALID_INPUT", "Please add at least one course or club")

    def test_clubs_only_is_valid(self):
        assert validate_plan_body(_body(courses=[])) == (None, None)

    def test_courses_only_is_valid(self):
        assert validate_plan_body(_body(clubs=None)) == (None, None)

    def test_courses_must_be_list(self):
        code, msg = validate_plan_body(_body(courses="CMSC131"))
        assert code == "INVALID_INPUT"
        assert "'courses'" in msg

    def test_rows_must_be_objects(self):
        code, msg = validate_plan_body(_body(clubs=["Chess Club"]))
        assert code == "INVALID_INPUT"
        assert "'clubs'" in msg

    def test_row_values_must_be_strings(self):
        code, _ = validate_plan_body(_body(courses=[{"courseId": "CMSC131", "time": 10}]))
        assert code == "INVALID_INPUT"

    def test_too_many_courses(self):
        courses = [{"courseId": f"CMSC{100 + i}", "time": "MWF 9"} for i in range(MAX_COURSES + 1)]
        code, _ = validate_plan_body(_body(courses=courses))
        assert code == "INVALID_INPUT"

    def test_too_many_clubs(self):
        clubs = [{"name": f"Club {i}", "time": "Fri"} for i in range(MAX_CLUBS + 1)]
        code, _ = validate_plan_body(_body(clubs=clubs))
        assert code == "INVALID_INPUT"

    def test_blank_rows_do_not_count_toward_limit(self):
        courses = [{"courseId": "", "time": ""}] * (MAX_COURSES + 5)
        courses.append({"courseId": "CMSC131", "time": "MWF"})
        assert validate_plan_body(_body(courses=courses)) == (None, None)


class TestCoercePlanRequest:
    def test_normalizes_course_ids(self):
        req = coerce_plan_request(_body(courses=[{"courseId": "cmsc 131", "time": " MWF 10 "}]))
        assert req["courses"] == [{"courseId": "CMSC131", "time": "MWF 10"}]

    def test_unparseable_id_upper_cased(self):
        req = coerce_plan_request(_body(courses=[{"courseId": "Intro Bio", "time": "TuTh"}]))
        assert req["courses"][0]["courseId"] == "INTRO BIO"

    def test_name_field_accepted_for_courses(self):
        req = coerce_plan_request(_body(courses=[{"name": "math140", "time": "TuTh 9:30"}]))
        assert req["courses"] == [{"courseId": "MATH140", "time": "TuTh 9:30"}]

    def test_blank_rows_removed(self):
        req = coerce_plan_request(_body(clubs=[{"name": "", "time": "x"}, {"name": "Band", "time": "Mon"}]))
        assert req["clubs"] == [{"name": "Band", "time": "Mon"}]

    def test_goals_stripped(self):
        assert coerce_plan_request(_body(goals="  Study more.  "))["goals"] == "Study more."
