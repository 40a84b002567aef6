import json
from dataclasses import dataclass

FIELDS = ("timestamp", "user_agent", "request_path")


class RecordError(ValueError):
    """A log line that cannot be turned into a request."""


@dataclass(frozen=True)
class DecodedRequest:
    timestamp: str
    user_agent: str
    request_path: str


def decode_request(line: str) -> DecodedRequest:
    """Decode one Fastly JSON log line."""
    try:
        data = json.loads(line)
    except json.JSONDecodeError as exc:
        raise RecordError(f"invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise RecordError(f"expected a JSON object, got {type(data).__name__}")

    values = {}
    for field in FIELDS:
        value = data.get(field)
        if not isinstance(value, str):
            raise RecordError(f"missing or non-string field {field!r}")
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise RecordError(f"field {field!r} is not valid UTF-8: {exc}") from exc
        values[field] = value

    return DecodedRequest(**values)
