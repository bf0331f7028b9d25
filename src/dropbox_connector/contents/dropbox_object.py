"""Reference payload attached to queued index items."""

import json
from dataclasses import dataclass
from typing import Any, ClassVar, FrozenSet


class PayloadDecodeError(ValueError):
    """Raised when an item payload cannot be decoded into a DropBoxObject."""
    pass


@dataclass(frozen=True)
class DropBoxObject:
    """A Dropbox entity that should appear in, or be resolved from, the index.

    Serialized as a compact UTF-8 JSON object::

        {"objectType": "member", "teamMemberId": "dbmid:..."}

    Unknown object types survive a decode so that :meth:`is_valid` can
    reject them.
    """

    MEMBER: ClassVar[str] = "member"
    OBJECT_TYPES: ClassVar[FrozenSet[str]] = frozenset({MEMBER})

    object_type: str
    team_member_id: str

    @classmethod
    def builder(cls, object_type: str, team_member_id: str) -> "DropBoxObjectBuilder":
        return DropBoxObjectBuilder(object_type, team_member_id)

    def is_valid(self) -> bool:
        return self.object_type in self.OBJECT_TYPES and bool(self.team_member_id)

    def encode_payload(self) -> bytes:
        payload = {"objectType": self.object_type, "teamMemberId": self.team_member_id}
        return json.dumps(payload, separators=(",", ":")).encode("utf-8")

    @classmethod
    def decode_payload(cls, payload: bytes) -> "DropBoxObject":
        """Decode bytes produced by :meth:`encode_payload`.

        Raises:
            PayloadDecodeError: If the payload is empty, not JSON, or lacks
                either field
        """
        if not payload:
            raise PayloadDecodeError("Empty payload")

        try:
            data: Any = json.loads(payload.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise PayloadDecodeError(f"Malformed payload: {e}") from e

        if not isinstance(data, dict):
            raise PayloadDecodeError("Payload is not a JSON object")

        object_type = data.get("objectType")
        team_member_id = data.get("teamMemberId")
        if not isinstance(object_type, str) or not isinstance(team_member_id, str):
            raise PayloadDecodeError("Payload requires string objectType and teamMemberId")

        return cls(object_type=object_type, team_member_id=team_member_id)

    def __str__(self) -> str:
        return f"DropBoxObject(objectType={self.object_type!r}, teamMemberId={self.team_member_id!r})"


class DropBoxObjectBuilder:
    """Fluent builder mirroring the payload field names."""

    def __init__(self, object_type: str, team_member_id: str):
        self.object_type = object_type
        self.team_member_id = team_member_id

    def build(self) -> DropBoxObject:
        return DropBoxObject(object_type=self.object_type, team_member_id=self.team_member_id)
