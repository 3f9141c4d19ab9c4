"""
Normalization of upstream Resilio API payloads.

The upstream answers the same resource with a bare array, an object holding
the array, or an object whose ``data`` holds the array, depending on its
version. Each payload is first decoded into one of those shapes (anything
else is rejected) and then rewritten into the dashboard envelope::

    {"data": {"jobs": [...]}, "method": "GET", "path": "/api/v2/jobs", "status": 200}

Timestamps arrive as Unix epoch seconds and are converted to ISO-8601 UTC.
A value counts as an epoch timestamp when it is a number strictly greater
than ``EPOCH_SECONDS_THRESHOLD``. That heuristic also fires for any other
large number placed in one of the timestamp fields, so conversion is limited
to the named fields below.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

EPOCH_SECONDS_THRESHOLD = 1_000_000_000

JOB_TIMESTAMP_FIELDS = ("startTime", "lastUpdate")
JOB_OPTIONAL_TIMESTAMP_FIELDS = ("endTime",)
AGENT_TIMESTAMP_FIELDS = ("lastSeen",)
INFO_TIMESTAMP_FIELDS = ("lastUpdate", "startTime")


class UnrecognizedPayloadError(ValueError):
    pass


class PayloadShape(str, Enum):
    ARRAY = "array"
    ENVELOPE = "envelope"
    WRAPPED = "wrapped"
    RECORD = "record"


@dataclass
class DecodedPayload:
    shape: PayloadShape
    records: list[dict[str, Any]]
    envelope: dict[str, Any] = field(default_factory=dict)


# -------------------------
# Timestamps
# -------------------------

def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def is_epoch_seconds(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return value > EPOCH_SECONDS_THRESHOLD


def epoch_to_iso(value: float) -> str:
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc).isoformat()
    except (ValueError, OverflowError, OSError) as exc:
        # Millisecond epochs and infinities land outside the datetime range.
        raise UnrecognizedPayloadError(f"Timestamp out of range: {value!r}") from exc


def convert_timestamp(value: Any, *, now: datetime, default_now: bool = True) -> Any:
    """
    Convert one timestamp field.

    Missing values (None, 0, "") become ``now`` when ``default_now`` is set
    and None otherwise. Epoch seconds become ISO strings. Anything else is
    returned unchanged.
    """
    if value is None or value == "" or (value == 0 and not isinstance(value, bool)):
        return now.isoformat() if default_now else None
    if is_epoch_seconds(value):
        return epoch_to_iso(value)
    return value


# -------------------------
# Records
# -------------------------

def process_job(job: dict[str, Any], now: Optional[datetime] = None) -> dict[str, Any]:
    now = now or _utc_now()
    processed = dict(job)
    for name in JOB_TIMESTAMP_FIELDS:
        processed[name] = convert_timestamp(job.get(name), now=now)
    for name in JOB_OPTIONAL_TIMESTAMP_FIELDS:
        converted = convert_timestamp(job.get(name), now=now, default_now=False)
        if converted is None:
            processed.pop(name, None)
        else:
            processed[name] = converted
    return processed


def process_agent(agent: dict[str, Any], now: Optional[datetime] = None) -> dict[str, Any]:
    now = now or _utc_now()
    processed = dict(agent)
    for name in AGENT_TIMESTAMP_FIELDS:
        processed[name] = convert_timestamp(agent.get(name), now=now)
    return processed


def process_system_info(info: dict[str, Any], now: Optional[datetime] = None) -> dict[str, Any]:
    now = now or _utc_now()
    processed = dict(info)

    uptime = info.get("uptime")
    if not uptime:
        processed["uptime"] = 0
    elif is_epoch_seconds(uptime):
        # Some upstream builds report the boot time instead of the uptime.
        try:
            processed["uptime"] = int(now.timestamp() - uptime)
        except OverflowError as exc:
            raise UnrecognizedPayloadError(f"Uptime out of range: {uptime!r}") from exc

    for name in INFO_TIMESTAMP_FIELDS:
        processed[name] = convert_timestamp(info.get(name), now=now)
    return processed


# -------------------------
# Decoding
# -------------------------

def _as_records(items: list[Any], key: str) -> list[dict[str, Any]]:
    if not all(isinstance(item, dict) for item in items):
        raise UnrecognizedPayloadError(f"Every entry of {key!r} must be an object.")
    return list(items)


def decode_collection(payload: Any, key: str) -> DecodedPayload:
    if isinstance(payload, list):
        return DecodedPayload(PayloadShape.ARRAY, _as_records(payload, key))

    if isinstance(payload, dict):
        if isinstance(payload.get(key), list):
            return DecodedPayload(PayloadShape.ENVELOPE, _as_records(payload[key], key), dict(payload))

        data = payload.get("data")
        if isinstance(data, dict) and isinstance(data.get(key), list):
            return DecodedPayload(PayloadShape.WRAPPED, _as_records(data[key], key), dict(payload))

    raise UnrecognizedPayloadError(
        f"Unrecognized {key} payload: expected a list, {{{key!r}: [...]}} or "
        f"{{'data': {{{key!r}: [...]}}}}, got {type(payload).__name__}."
    )


def decode_record(payload: Any, key: str) -> DecodedPayload:
    if isinstance(payload, dict):
        if isinstance(payload.get(key), dict):
            return DecodedPayload(PayloadShape.ENVELOPE, [payload[key]], dict(payload))

        data = payload.get("data")
        if isinstance(data, dict):
            inner = data.get(key) if isinstance(data.get(key), dict) else data
            return DecodedPayload(PayloadShape.WRAPPED, [inner], dict(payload))

        return DecodedPayload(PayloadShape.RECORD, [payload])

    raise UnrecognizedPayloadError(
        f"Unrecognized {key} payload: expected an object, got {type(payload).__name__}."
    )


# -------------------------
# Envelopes
# -------------------------

def envelope(data: Any, path: str, method: str = "GET", status: int = 200) -> dict[str, Any]:
    return {"data": data, "method": method, "path": path, "status": status}


def _rebuild_collection(decoded: DecodedPayload, key: str, processed: list[dict[str, Any]], path: str) -> dict[str, Any]:
    if decoded.shape is PayloadShape.ARRAY:
        return envelope({key: processed}, path)

    # Keep every top-level field; nested processed values win on collision.
    result = dict(decoded.envelope)
    nested = result.get("data") if isinstance(result.get("data"), dict) else {}
    result["data"] = {**nested, key: processed}
    result.setdefault("method", "GET")
    result.setdefault("path", path)
    result.setdefault("status", 200)
    return result


def normalize_jobs(payload: Any, path: str, now: Optional[datetime] = None) -> dict[str, Any]:
    decoded = decode_collection(payload, "jobs")
    processed = [process_job(job, now) for job in decoded.records]
    return _rebuild_collection(decoded, "jobs", processed, path)


def normalize_agents(payload: Any, path: str, now: Optional[datetime] = None) -> dict[str, Any]:
    decoded = decode_collection(payload, "agents")
    processed = [process_agent(agent, now) for agent in decoded.records]
    return _rebuild_collection(decoded, "agents", processed, path)


def normalize_job(payload: Any, path: str, now: Optional[datetime] = None) -> dict[str, Any]:
    decoded = decode_record(payload, "job")
    return envelope({"job": process_job(decoded.records[0], now)}, path)


def normalize_system_info(payload: Any, path: str, now: Optional[datetime] = None) -> dict[str, Any]:
    decoded = decode_record(payload, "info")
    return envelope(process_system_info(decoded.records[0], now), path)
