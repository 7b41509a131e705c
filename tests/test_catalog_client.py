import pytest
import requests

import catalog_client
import config


class FakeResponse:
    def __init__(self, status_code=200, payload=None, bad_json=False):
        self.status_code = status_code
        self._payload = payload
        self._bad_json = bad_json

    @property
    def ok(self):
        return 200 <= self.status_code < 400

    def json(self):
        if self._bad_json:
            raise ValueError("Expecting value")
        return self._payload


@pytest.fixture
def calls(monkeypatch):
    """Routes catalog GETs to a per-test table keyed by course id."""
    table = {}
    seen = []

    def fake_get(url, timeout=None):
        seen.append((url, timeout))
        course_id = url.rsplit("/", 1)[-1]
        result = table.get(course_id, FakeResponse(404, {"error_code": 404}))
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(catalog_client.requests, "get", fake_get)
    return {"table": table, "seen": seen}


class TestFetchCourse:
    def test_list_response_takes_first(self, calls):
        calls["table"]["CMSC131"] = FakeResponse(200, [{"course_id": "CMSC131", "name": "OOP I"}])
        assert catalog_client.fetch_course("cmsc131") == {"course_id": "CMSC131", "name": "OOP I"}

    def test_url_and_timeout(self, calls):
        catalog_client.fetch_course(" math140 ")
        url, timeout = calls["seen"][0]
        assert url == f"{config.CATALOG_API_URL}/MATH140"
        assert timeout == config.CATALOG_TIMEOUT_SECONDS

    def test_id_is_escaped_in_path(self, calls):
        catalog_client.fetch_course("cmsc131/sections")
        url, _ = calls["seen"][0]
        assert url == f"{config.CATALOG_API_URL}/CMSC131%2FSECTIONS"

    def test_dict_response(self, calls):
        calls["table"]["ENGL101"] = FakeResponse(200, {"course_id": "ENGL101"})
        assert catalog_client.fetch_course("ENGL101") == {"course_id": "ENGL101"}

    def test_empty_list_is_none(self, calls):
        calls["table"]["CMSC131"] = FakeResponse(200, [])
        assert catalog_client.fetch_course("CMSC131") is None

    def test_not_found_is_none(self, calls):
        assert catalog_client.fetch_course("FAKE999") is None

    def test_network_error_is_none(self, calls):
        calls["table"]["CMSC131"] = requests.ConnectionError("connection refused")
        assert catalog_client.fetch_course("CMSC131") is None

    def test_bad_json_is_none(self, calls):
        calls["table"]["CMSC131"] = FakeResponse(200, bad_json=True)
        assert catalog_client.fetch_course("CMSC131") is None

    def test_blank_id_skips_request(self, calls):
        assert catalog_client.fetch_course("  ") is None
        assert calls["seen"] == []


class TestFetchCourses:
    def test_only_successful_lookups_returned(self, calls):
        calls["table"]["CMSC131"] = FakeResponse(200, [{"course_id": "CMSC131", "name": "OOP I"}])
        calls["table"]["MATH140"] = FakeResponse(500, None)
        result = catalog_client.fetch_courses(["CMSC131", "MATH140", "FAKE999"])
        assert result == {"CMSC131": {"course_id": "CMSC131", "name": "OOP I"}}

    def test_duplicates_and_blanks_fetched_once(self, calls):
        catalog_client.fetch_courses(["cmsc131", "CMSC131", "", None, "  "])
        assert len(calls["seen"]) == 1

    def test_empty_input(self, calls):
        assert catalog_client.fetch_courses([]) == {}
        assert calls["seen"] == []
