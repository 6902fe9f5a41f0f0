"""
Opaque pagination tokens.

A token is ``"<version>.<base64url payload>"``. The payload always carries
the same four keys:

    v  codec version
    k  [path, direction] pairs of the sort the token was issued for
    d  "after" (end cursor) or "before" (start cursor)
    a  the boundary document's values for k, in order

Two codecs ship:
* JsonCursorCodec (version 1): canonical MongoDB Extended JSON, so ints,
  doubles, datetimes, ObjectIds, Decimal128 and UUIDs come back as the same
  BSON types the predicate needs.
* MsgpackCursorCodec (version 2): the same payload packed with msgpack,
  shorter tokens for wide sorts.

Tokens are not signed. They reveal the boundary document's sort values to
anyone who base64-decodes them.
"""

from __future__ import annotations

import base64
import binascii
import logging
import uuid
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

import msgpack
from bson import ObjectId, json_util
from bson.binary import UuidRepresentation
from bson.decimal128 import Decimal128
from bson.errors import BSONError
from bson.json_util import CANONICAL_JSON_OPTIONS

from docpager.paging.errors import CursorSchemaMismatchError, InvalidCursorError
from docpager.paging.models import Anchor, Traversal
from docpager.paging.sort_plan import SortPlan

logger = logging.getLogger(__name__)


class CursorCodec(Protocol):
    """Turns boundary documents into tokens and tokens back into anchors."""

    def encode(
        self,
        plan: SortPlan,
        document: Mapping[str, Any],
        traversal: Traversal = Traversal.FORWARD,
    ) -> str: ...

    def decode(self, plan: SortPlan, token: str) -> Anchor: ...


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(text: str) -> bytes:
    padded = text + "=" * (-len(text) % 4)
    return base64.b64decode(padded, altchars=b"-_", validate=True)


def _is_key(entry: Any) -> bool:
    return (
        isinstance(entry, list)
        and len(entry) == 2
        and isinstance(entry[0], str)
        and entry[1] in (1, -1)
        and not isinstance(entry[1], bool)
    )


class _VersionedCodec:
    """Token framing and payload validation shared by the concrete codecs."""

    version: int = 0

    def _dumps(self, payload: dict[str, Any]) -> bytes:
        raise NotImplementedError

    def _loads(self, raw: bytes) -> Any:
        raise NotImplementedError

    def encode(
        self,
        plan: SortPlan,
        document: Mapping[str, Any],
        traversal: Traversal = Traversal.FORWARD,
    ) -> str:
        """Encode *document*'s key tuple under *plan* (MissingFieldError if a field is absent)."""
        payload = {
            "v": self.version,
            "k": [list(key) for key in plan.keys],
            "d": traversal.value,
            "a": list(plan.values_of(document)),
        }
        return f"{self.version}.{_b64encode(self._dumps(payload))}"

    def decode(self, plan: SortPlan, token: str) -> Anchor:
        """Decode *token*, rejecting anything not issued for *plan*."""
        if not isinstance(token, str) or not token:
            raise InvalidCursorError("Cursor must be a non-empty string")

        prefix, sep, body = token.partition(".")
        if not sep or prefix != str(self.version):
            raise InvalidCursorError(f"Unsupported cursor version: {prefix!r}")

        try:
            raw = _b64decode(body)
        except (binascii.Error, ValueError) as exc:
            raise InvalidCursorError("Cursor is not valid base64") from exc

        payload = self._loads(raw)
        if not isinstance(payload, Mapping) or set(payload) != {"v", "k", "d", "a"}:
            raise InvalidCursorError("Cursor payload is malformed")

        keys, values = payload["k"], payload["a"]
        if (
            payload["v"] != self.version
            or not isinstance(keys, list)
            or not isinstance(values, list)
            or not all(_is_key(k) for k in keys)
            or len(keys) != len(values)
        ):
            raise InvalidCursorError("Cursor payload is malformed")

        try:
            traversal = Traversal(payload["d"])
        except ValueError as exc:
            raise InvalidCursorError("Cursor direction is malformed") from exc

        issued_for = tuple((path, direction) for path, direction in keys)
        if issued_for != plan.keys:
            raise CursorSchemaMismatchError(expected=plan.keys, actual=issued_for)

        return Anchor(values=tuple(values), traversal=traversal)


# ---------------------------------------------------------------------------
# Extended JSON
# ---------------------------------------------------------------------------

_JSON_OPTIONS = CANONICAL_JSON_OPTIONS.with_options(
    uuid_representation=UuidRepresentation.STANDARD,
    tz_aware=False,
)


class JsonCursorCodec(_VersionedCodec):
    """Canonical Extended JSON payloads (datetimes decode naive UTC, like the driver)."""

    version = 1

    def _dumps(self, payload: dict[str, Any]) -> bytes:
        text = json_util.dumps(payload, json_options=_JSON_OPTIONS, separators=(",", ":"))
        return text.encode("utf-8")

    def _loads(self, raw: bytes) -> Any:
        try:
            return json_util.loads(raw.decode("utf-8"), json_options=_JSON_OPTIONS)
        except (UnicodeDecodeError, ValueError, TypeError, KeyError, ArithmeticError, BSONError) as exc:
            # Decimal128 reports a malformed $numberDecimal as decimal.InvalidOperation
            raise InvalidCursorError("Cursor payload is not valid JSON") from exc


# ---------------------------------------------------------------------------
# msgpack
# ---------------------------------------------------------------------------

_EXT_OBJECT_ID = 1
_EXT_DATETIME = 2
_EXT_UUID = 3
_EXT_DECIMAL128 = 4

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _pack_default(value: Any) -> msgpack.ExtType:
    if isinstance(value, ObjectId):
        return msgpack.ExtType(_EXT_OBJECT_ID, value.binary)
    if isinstance(value, datetime):
        aware = value.tzinfo is not None
        moment = value if aware else value.replace(tzinfo=timezone.utc)
        micros = (moment - _EPOCH) // timedelta(microseconds=1)
        return msgpack.ExtType(_EXT_DATETIME, msgpack.packb([micros, aware]))
    if isinstance(value, uuid.UUID):
        return msgpack.ExtType(_EXT_UUID, value.bytes)
    if isinstance(value, Decimal128):
        return msgpack.ExtType(_EXT_DECIMAL128, str(value).encode("ascii"))
    raise TypeError(f"Cannot encode {type(value).__name__} in a cursor")


def _ext_hook(code: int, data: bytes) -> Any:
    if code == _EXT_OBJECT_ID:
        return ObjectId(data)
    if code == _EXT_DATETIME:
        micros, aware = msgpack.unpackb(data)
        moment = _EPOCH + timedelta(microseconds=micros)
        return moment if aware else moment.replace(tzinfo=None)
    if code == _EXT_UUID:
        return uuid.UUID(bytes=data)
    if code == _EXT_DECIMAL128:
        return Decimal128(data.decode("ascii"))
    raise ValueError(f"Unknown cursor extension type {code}")


class MsgpackCursorCodec(_VersionedCodec):
    """Binary payloads; datetimes keep microseconds and their awareness."""

    version = 2

    def _dumps(self, payload: dict[str, Any]) -> bytes:
        return msgpack.packb(payload, default=_pack_default, use_bin_type=True)

    def _loads(self, raw: bytes) -> Any:
        try:
            return msgpack.unpackb(raw, ext_hook=_ext_hook, raw=False)
        except Exception as exc:
            raise InvalidCursorError("Cursor payload is not valid msgpack") from exc


_CODECS: dict[str, type[_VersionedCodec]] = {
    "json": JsonCursorCodec,
    "msgpack": MsgpackCursorCodec,
}


def get_codec(name: str = "json") -> CursorCodec:
    """Return a codec instance by its configuration name."""
    try:
        return _CODECS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown cursor codec {name!r}; expected one of {sorted(_CODECS)}"
        ) from None
