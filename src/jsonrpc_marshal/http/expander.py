import collections.abc as _cabc
import re as _re
import typing as _tp

import jsonrpc_marshal.jsonrpc.exceptions as _jmje
import jsonrpc_marshal.jsonrpc.types as _tps

_BRACKETS = _re.compile(r"\[([^\[\]]*)\]")
_UNESCAPED_DOT = _re.compile(r"(?<!\\)\.")
_INDEX = _re.compile(r"0|[1-9]\d*")


class Expander(_tp.Protocol):
    def expand(self, flat: _cabc.Mapping[str, _tps.Json]) -> dict[str, _tps.Json]: ...
    def collapse(self, nested: _cabc.Mapping[str, _tps.Json]) -> dict[str, _tps.Json]: ...


class _Node(dict[str, _tp.Any]):
    pass


class DottedKeyExpander:
    """
    Converts between flat query parameters and nested params.

    ``a.b=1`` and ``a[b]=1`` both become ``{"a": {"b": 1}}``, numeric
    segments make arrays, so ``a.0=x&a.1=y`` becomes ``{"a": ["x", "y"]}``.
    A literal dot in a name is written as ``\\.``.
    """

    def __init__(self, max_array: int = 100) -> None:
        self._max_array = max_array

    def expand(self, flat: _cabc.Mapping[str, _tps.Json]) -> dict[str, _tps.Json]:
        tree = _Node()

        for key, value in flat.items():
            segments = _split_key(key)
            node = tree
            for depth, segment in enumerate(segments[:-1]):
                child = node.setdefault(segment, _Node())
                if not isinstance(child, _Node):
                    clashing_key = _join_key(segments[: depth + 1])
                    raise _jmje.MalformedField(
                        key, f"Clashes with parameter {clashing_key!r}."
                    )
                node = child

            last = segments[-1]
            if last in node:
                raise _jmje.MalformedField(key, "Clashes with another parameter.")
            node[last] = value

        return {key: self._arrayify(value) for key, value in tree.items()}

    def collapse(self, nested: _cabc.Mapping[str, _tps.Json]) -> dict[str, _tps.Json]:
        flat: dict[str, _tps.Json] = {}
        for key, value in nested.items():
            self._collapse_into(flat, _escape(key), value)
        return flat

    def _arrayify(self, value: _tp.Any) -> _tps.Json:
        # only nodes built from parameter names, never decoded values
        if not isinstance(value, _Node):
            return value

        children = {key: self._arrayify(child) for key, child in value.items()}

        if not all(_INDEX.fullmatch(key) for key in children):
            return children

        indices = {int(key): child for key, child in children.items()}
        if max(indices) >= self._max_array:
            return children

        array: list[_tps.Json] = [None] * (max(indices) + 1)
        for index, child in indices.items():
            array[index] = child
        return array

    def _collapse_into(
        self, flat: dict[str, _tps.Json], prefix: str, value: _tps.Json
    ) -> None:
        if _tps.is_object(value) and value:
            for key, child in value.items():
                self._collapse_into(flat, f"{prefix}.{_escape(key)}", child)
        elif _tps.is_array(value) and value:
            for index, child in enumerate(value):
                self._collapse_into(flat, f"{prefix}.{index}", child)
        else:
            flat[prefix] = value


def _split_key(key: str) -> list[str]:
    dotted = _BRACKETS.sub(r".\1", key)
    return [segment.replace("\\.", ".") for segment in _UNESCAPED_DOT.split(dotted)]


def _join_key(segments: _cabc.Sequence[str]) -> str:
    return ".".join(_escape(segment) for segment in segments)


def _escape(segment: str) -> str:
    return segment.replace(".", "\\.")
