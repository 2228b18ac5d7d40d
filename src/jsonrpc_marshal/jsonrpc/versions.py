import collections.abc as _cabc
import enum as _enum
import re as _re

import jsonrpc_marshal.jsonrpc.exceptions as _jmje

ALT_SPEC_TAG = "1.1-alt"

_DIGITS = _re.compile(r"\d+")


class Version(_enum.StrEnum):
    V1_0 = "1.0"
    V1_1 = "1.1"
    V2_0 = "2.0"


class MessageKind(_enum.StrEnum):
    CALL = "call"
    RETURN = "return"


def get_version(data: _cabc.Mapping[str, object]) -> object:
    if "jsonrpc" in data:
        return data["jsonrpc"]  # presumably 2.0
    if "version" in data:
        return data["version"]  # presumably 1.1
    return Version.V1_0


def parse_version(tag: object) -> Version:
    version, _ = parse_version_tag(tag)
    return version


def parse_version_tag(tag: object) -> tuple[Version, bool]:
    """
    Resolve a version marker into a supported revision and whether it names
    the 1.1 alternative proposition.

    Only the digit groups of the marker are significant, so ``"2.0"``, ``2.0``
    and ``"JSON-RPC 2.0"`` all resolve to 2.0.
    """
    if isinstance(tag, Version):
        return tag, False

    if isinstance(tag, bool) or not isinstance(tag, (str, int, float)):
        raise _jmje.UnsupportedVersion(tag)

    text = str(tag).strip()
    if text == ALT_SPEC_TAG:
        return Version.V1_1, True

    numbers = _DIGITS.findall(text)
    try:
        return Version(".".join(numbers)), False
    except ValueError:
        raise _jmje.UnsupportedVersion(tag) from None


def get_kind(data: _cabc.Mapping[str, object]) -> MessageKind:
    if "method" in data:
        return MessageKind.CALL
    if "id" in data or "result" in data:
        return MessageKind.RETURN
    raise _jmje.AmbiguousMessageKind(data.keys())
