"""Tests for upstream payload normalization."""

from datetime import datetime, timezone

import pytest

from app.services.normalizer import (
    PayloadShape,
    UnrecognizedPayloadError,
    convert_timestamp,
    decode_collection,
    is_epoch_seconds,
    normalize_agents,
    normalize_job,
    normalize_jobs,
    normalize_system_info,
)

NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
JOBS_PATH = "/api/v2/jobs"


class TestEpochHeuristic:
    """Tests for the epoch-seconds threshold."""

    def test_value_above_threshold_converts(self):
        """1000000001 is treated as a timestamp."""
        assert is_epoch_seconds(1000000001)
        assert convert_timestamp(1000000001, now=NOW) == "2001-09-09T01:46:41+00:00"

    def test_value_below_threshold_passes_through(self):
        """999999999 is returned unchanged."""
        assert not is_epoch_seconds(999999999)
        assert convert_timestamp(999999999, now=NOW) == 999999999

    def test_threshold_itself_is_not_converted(self):
        """The comparison is strict."""
        assert not is_epoch_seconds(1_000_000_000)

    def test_booleans_are_not_timestamps(self):
        """True is an int in Python but never a timestamp."""
        assert not is_epoch_seconds(True)

    def test_strings_pass_through(self):
        """ISO strings stay as they are."""
        assert convert_timestamp("2024-05-01T10:00:00Z", now=NOW) == "2024-05-01T10:00:00Z"

    def test_missing_defaults_to_now(self):
        """Absent values default to now."""
        assert convert_timestamp(None, now=NOW) == NOW.isoformat()

    def test_missing_optional_stays_missing(self):
        """Optional fields are not invented."""
        assert convert_timestamp(None, now=NOW, default_now=False) is None

    def test_false_is_not_missing(self):
        """A boolean False is passed through instead of becoming now."""
        assert convert_timestamp(False, now=NOW) is False

    @pytest.mark.parametrize("value", [1_700_000_000_000, float("inf")])
    def test_unrepresentable_timestamp_is_rejected(self, value):
        """Millisecond epochs and infinities cannot be converted."""
        with pytest.raises(UnrecognizedPayloadError):
            convert_timestamp(value, now=NOW)


class TestNormalizeJobs:
    """Tests for job collection payloads."""

    def test_array_payload_is_wrapped(self):
        """A bare array becomes the dashboard envelope."""
        jobs = [
            {"id": 1, "name": "a", "status": "running", "startTime": 1700000000, "extra": {"k": 1}},
            {"id": "2", "name": "b", "status": "queued", "startTime": 1700000100, "endTime": 1700000200},
        ]

        result = normalize_jobs(jobs, JOBS_PATH, now=NOW)

        assert result["method"] == "GET"
        assert result["path"] == JOBS_PATH
        assert result["status"] == 200
        processed = result["data"]["jobs"]
        assert len(processed) == 2
        for original, job in zip(jobs, processed):
            for key, value in original.items():
                if key not in ("startTime", "endTime", "lastUpdate"):
                    assert job[key] == value
        assert processed[0]["startTime"] == "2023-11-14T22:13:20+00:00"
        assert processed[0]["lastUpdate"] == NOW.isoformat()
        assert "endTime" not in processed[0]
        assert processed[1]["endTime"] == "2023-11-14T22:16:40+00:00"

    def test_input_is_not_mutated(self):
        """Normalization works on copies."""
        jobs = [{"id": 1, "startTime": 1700000000}]
        normalize_jobs(jobs, JOBS_PATH, now=NOW)
        assert jobs == [{"id": 1, "startTime": 1700000000}]

    def test_envelope_fields_pass_through(self):
        """Top-level fields other than the records are untouched."""
        payload = {
            "jobs": [{"id": 1, "startTime": 1700000000}],
            "total": 1,
            "page": {"offset": 0, "limit": 50},
            "data": {"cursor": "abc"},
        }

        result = normalize_jobs(payload, JOBS_PATH, now=NOW)

        assert result["total"] == 1
        assert result["page"] == {"offset": 0, "limit": 50}
        assert result["jobs"] == payload["jobs"]
        assert result["data"]["cursor"] == "abc"
        assert result["data"]["jobs"][0]["startTime"] == "2023-11-14T22:13:20+00:00"

    def test_nested_values_win_on_collision(self):
        """Processed jobs replace a stale nested jobs field."""
        payload = {"jobs": [{"id": 1}], "data": {"jobs": "stale"}}

        result = normalize_jobs(payload, JOBS_PATH, now=NOW)

        assert isinstance(result["data"]["jobs"], list)
        assert result["data"]["jobs"][0]["id"] == 1

    def test_wrapped_payload(self):
        """Already-enveloped payloads are processed in place."""
        payload = {"data": {"jobs": [{"id": 9, "startTime": 1700000000}]}, "method": "GET", "status": 200}

        result = normalize_jobs(payload, JOBS_PATH, now=NOW)

        assert result["data"]["jobs"][0]["startTime"] == "2023-11-14T22:13:20+00:00"
        assert result["path"] == JOBS_PATH

    def test_decoded_shapes(self):
        """Each accepted shape is tagged."""
        assert decode_collection([], "jobs").shape is PayloadShape.ARRAY
        assert decode_collection({"jobs": []}, "jobs").shape is PayloadShape.ENVELOPE
        assert decode_collection({"data": {"jobs": []}}, "jobs").shape is PayloadShape.WRAPPED

    @pytest.mark.parametrize("payload", [{"items": []}, "jobs", 42, None, [1, 2]])
    def test_unrecognized_shapes_are_rejected(self, payload):
        """Anything else raises instead of being coerced."""
        with pytest.raises(UnrecognizedPayloadError):
            normalize_jobs(payload, JOBS_PATH, now=NOW)


class TestNormalizeOtherResources:
    """Tests for agents, single jobs and system info."""

    def test_agents_last_seen_converted(self):
        """Agent lastSeen epoch seconds become ISO."""
        result = normalize_agents([{"id": 5, "name": "nas", "lastSeen": 1700000000}], "/api/v2/agents", now=NOW)
        assert result["data"]["agents"][0]["lastSeen"] == "2023-11-14T22:13:20+00:00"
        assert result["data"]["agents"][0]["id"] == 5

    def test_single_job_wrapped_under_job(self):
        """A job record is answered as data.job."""
        result = normalize_job({"job": {"id": "j1", "startTime": 1700000000}}, "/api/v2/jobs/j1", now=NOW)
        assert result["data"]["job"]["id"] == "j1"
        assert result["data"]["job"]["startTime"] == "2023-11-14T22:13:20+00:00"

    def test_info_uptime_boot_timestamp_becomes_elapsed(self):
        """An uptime that looks like a timestamp becomes seconds since then."""
        boot = int(NOW.timestamp()) - 3600
        result = normalize_system_info({"version": "3.0", "uptime": boot}, "/api/v2/info", now=NOW)
        assert result["data"]["uptime"] == 3600

    def test_info_small_uptime_kept(self):
        """A plain uptime in seconds is kept."""
        result = normalize_system_info({"version": "3.0", "uptime": 86400}, "/api/v2/info", now=NOW)
        assert result["data"]["uptime"] == 86400

    def test_info_missing_uptime_is_zero(self):
        """Missing uptime defaults to 0 and timestamps to now."""
        result = normalize_system_info({"version": "3.0"}, "/api/v2/info", now=NOW)
        assert result["data"]["uptime"] == 0
        assert result["data"]["lastUpdate"] == NOW.isoformat()
        assert result["data"]["startTime"] == NOW.isoformat()

    def test_info_must_be_an_object(self):
        """A list is not a system info payload."""
        with pytest.raises(UnrecognizedPayloadError):
            normalize_system_info([], "/api/v2/info", now=NOW)
