"""Unit tests for key enumeration."""

from unittest.mock import Mock

import pytest
import requests

from images_optimizer.core.enumeration import HttpKeyProvider, parse_project_keys
from images_optimizer.core.exceptions import EnumerationError
from images_optimizer.testing.fakes import FakeLogger

LISTING_URL = "https://example.com/project/all"


def _session(payload=None, status_code=200, json_error=None, request_error=None):
    session = Mock(spec=requests.Session)
    if request_error is not None:
        session.get.side_effect = request_error
        return session

    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    session.get.return_value = response
    return session


class TestParseProjectKeys:
    """Tests for parse_project_keys."""

    def test_icon_then_images_in_listing_order(self):
        payload = [
            {"icon": "p1/icon", "images": ["p1/img1", "p1/img2"]},
            {"icon": "p2/icon", "images": []},
        ]

        assert parse_project_keys(payload) == ["p1/icon", "p1/img1", "p1/img2", "p2/icon"]

    def test_wrapped_entries(self):
        payload = [{"project": {"icon": "p1/icon", "images": ["p1/img1"], "name": "x"}}]

        assert parse_project_keys(payload) == ["p1/icon", "p1/img1"]

    def test_empty_listing(self):
        assert parse_project_keys([]) == []

    def test_duplicates_are_kept(self):
        payload = [{"icon": "shared", "images": []}, {"icon": "shared", "images": []}]

        assert parse_project_keys(payload) == ["shared", "shared"]

    @pytest.mark.parametrize(
        "payload",
        [
            {"icon": "p1/icon", "images": []},
            [{"images": ["p1/img1"]}],
            [{"icon": "p1/icon", "images": "p1/img1"}],
            [{"icon": "", "images": []}],
            ["p1/icon"],
            [{"icon": "a"}],
            [{"project": {"icon": "a"}}],
            None,
        ],
    )
    def test_schema_mismatch_raises(self, payload):
        with pytest.raises(EnumerationError, match="expected schema"):
            parse_project_keys(payload)


class TestHttpKeyProvider:
    """Tests for HttpKeyProvider."""

    def test_list_keys_success(self):
        session = _session([{"icon": "p1/icon", "images": ["p1/img1"]}])
        logger = FakeLogger()

        keys = HttpKeyProvider(LISTING_URL, logger, session=session, timeout=5).list_keys()

        assert keys == ["p1/icon", "p1/img1"]
        session.get.assert_called_once_with(LISTING_URL, timeout=5)
        assert any(log["message"] == "Found 2 image keys" for log in logger.get_logs("INFO"))

    def test_non_success_status_raises(self):
        session = _session(status_code=503)

        with pytest.raises(EnumerationError, match="HTTP status 503"):
            HttpKeyProvider(LISTING_URL, FakeLogger(), session=session).list_keys()

    def test_invalid_json_raises(self):
        session = _session(json_error=ValueError("Expecting value"))

        with pytest.raises(EnumerationError, match="not valid JSON"):
            HttpKeyProvider(LISTING_URL, FakeLogger(), session=session).list_keys()

    def test_transport_error_raises(self):
        session = _session(request_error=requests.ConnectionError("connection refused"))

        with pytest.raises(EnumerationError, match="request failed") as exc_info:
            HttpKeyProvider(LISTING_URL, FakeLogger(), session=session).list_keys()

        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    def test_schema_mismatch_raises(self):
        session = _session({"projects": []})

        with pytest.raises(EnumerationError):
            HttpKeyProvider(LISTING_URL, FakeLogger(), session=session).list_keys()
