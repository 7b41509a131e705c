import json

import pytest

from prompt_builder import (
    BANNER,
    CLOSING_INSTRUCTION,
    build_activity_inputs,
    build_course_inputs,
    build_prompt,
    load_scheduling_prompt,
)

COURSE_DATA = {
    "CMSC131": {
        "course_id": "CMSC131",
        "name": "Object-Oriented Programming I",
        "description": "Introduction to programming in Java.",
        "credits": "4",
        "relationships": {"prereqs": "Minimum grade of C- in MATH115", "coreqs": None},
    },
}

COURSES = [
    {"courseId": "CMSC131", "time": "MWF 10:00 AM - 10:50 AM"},
    {"courseId": "MATH140", "time": "TuTh 9:30 AM - 10:45 AM"},
]
CLUBS = [{"name": "Chess Club", "time": "Wednesday 6:00 PM - 8:00 PM"}]


class TestLoadSchedulingPrompt:
    def test_reads_file(self, tmp_path):
        path = tmp_path / "prompt.md"
        path.write_text("# Engine\nDo the thing.", encoding="utf-8")
        assert load_scheduling_prompt(str(path)) == "# Engine\nDo the thing."

    def test_missing_file_returns_empty(self, tmp_path):
        assert load_scheduling_prompt(str(tmp_path / "missing.md")) == ""


class TestStructuredInputs:
    def test_course_inputs(self):
        inputs = build_course_inputs(COURSES, COURSE_DATA)
        assert inputs[0] == {
            "course_id": "CMSC131",
            "provided_meetings": [{
                "days": "TBD",
                "start": "TBD",
                "end": "TBD",
                "time_string": "MWF 10:00 AM - 10:50 AM",
            }],
            "credits": 4,
            "difficulty_hint": None,
            "exam_weeks": [],
        }
        assert inputs[1]["credits"] is None

    def test_variable_credits_not_parsed(self):
        data = {"CMSC131": {"credits": "1-3"}}
        assert build_course_inputs(COURSES[:1], data)[0]["credits"] is None

    def test_activity_inputs(self):
        assert build_activity_inputs(CLUBS) == [{
            "name": "Chess Club",
            "type": "club",
            "fixed_meetings": [{
                "days": "TBD",
                "start": "TBD",
                "end": "TBD",
                "time_string": "Wednesday 6:00 PM - 8:00 PM",
            }],
        }]


class TestBuildPrompt:
    def _prompt(self, clubs=CLUBS):
        return build_prompt("ENGINE RULES", COURSES, clubs, "Keep a 3.8 GPA.", COURSE_DATA)

    def test_starts_with_scheduling_prompt(self):
        prompt = self._prompt()
        assert prompt.startswith("ENGINE RULES\n\n" + BANNER + "\nACTUAL USER INPUT")

    def test_catalog_enriched_course(self):
        lines = self._prompt().splitlines()
        idx = lines.index("- Object-Oriented Programming I (CMSC131): MWF 10:00 AM - 10:50 AM")
        assert lines[idx + 1] == "  Description: Introduction to programming in Java."
        assert lines[idx + 2] == "  Credits: 4"
        assert lines[idx + 3] == "  Prerequisites: Minimum grade of C- in MATH115"
        assert "  Corequisites:" not in lines[idx + 4]

    def test_unknown_course_uses_id_as_name(self):
        assert "- MATH140 (MATH140): TuTh 9:30 AM - 10:45 AM" in self._prompt().splitlines()

    def test_clubs_section(self):
        prompt = self._prompt()
        assert "Clubs/Activities:\n- Chess Club: Wednesday 6:00 PM - 8:00 PM" in prompt

    def test_clubs_section_omitted_when_empty(self):
        assert "Clubs/Activities:" not in self._prompt(clubs=[])

    def test_goals_section(self):
        assert "Goals:\nKeep a 3.8 GPA.\n" in self._prompt()

    def test_structured_input_is_valid_json(self):
        prompt = self._prompt()
        start = prompt.index("from time_string):\n") + len("from time_string):\n")
        end = prompt.index("\n\n" + CLOSING_INSTRUCTION)
        structured = json.loads(prompt[start:end])
        assert [c["course_id"] for c in structured["courses"]] == ["CMSC131", "MATH140"]
        assert structured["activities"][0]["name"] == "Chess Club"
        assert structured["goals"] == "Keep a 3.8 GPA."

    def test_ends_with_closing_instruction(self):
        assert self._prompt().endswith(CLOSING_INSTRUCTION)

    def test_without_course_data(self):
        prompt = build_prompt("", COURSES[:1], [], "Goals here")
        assert "- CMSC131 (CMSC131): MWF 10:00 AM - 10:50 AM" in prompt
        assert "Description:" not in prompt
