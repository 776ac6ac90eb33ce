import json
from datetime import date, datetime
from typing import Any, Protocol
from uuid import UUID

JSONScalar = str | int | float | bool | None
JSONValue = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]


class Serializer(Protocol):
    content_type: str

    def serialize(self, obj: Any) -> bytes: ...
    def deserialize(self, data: bytes) -> Any: ...


def default_encoder(o: Any) -> Any:
    # One-way: these come back as plain strings.
    if isinstance(o, (datetime, date)):
        return o.isoformat()
    if isinstance(o, UUID):
        return str(o)
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")


class JSONSerializer(Serializer):
    content_type = "application/json"

    def serialize(self, obj: Any) -> bytes:
        return json.dumps(
            obj, default=default_encoder, ensure_ascii=False, separators=(",", ":")
        ).encode("utf-8")

    def deserialize(self, data: bytes) -> JSONValue:
        return json.loads(data.decode("utf-8"))


class TextSerializer(Serializer):
    content_type = "text/plain; charset=utf-8"

    def serialize(self, obj: str) -> bytes:
        if not isinstance(obj, str):
            raise TypeError(f"Text data must be str, got {type(obj).__name__}")
        return obj.encode("utf-8")

    def deserialize(self, data: bytes) -> str:
        return data.decode("utf-8")


class BinarySerializer(Serializer):
    content_type = "application/octet-stream"

    def serialize(self, obj: bytes | bytearray | memoryview) -> bytes:
        if not isinstance(obj, (bytes, bytearray, memoryview)):
            raise TypeError("Binary data must be bytes, bytearray or memoryview")
        return bytes(obj)

    def deserialize(self, data: bytes) -> bytes:
        return data
