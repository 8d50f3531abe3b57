"""Split multi-document YAML manifests on "---" separators."""

from __future__ import annotations

from typing import Iterator

_SEPARATOR = b"---"


def _lines(data: bytes) -> Iterator[bytes]:
    parts = data.split(b"\n")
    if parts and parts[-1] == b"":
        parts.pop()
    for part in parts:
        yield part[:-1] if part.endswith(b"\r") else part


def split_documents(data):
    """Yield each non-empty document of a YAML stream as bytes.

    Every line of a document ends in a newline. A separator is a line that
    starts with "---" followed only by whitespace.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    buffer = bytearray()
    for line in _lines(data):
        if line.startswith(_SEPARATOR) and not line[len(_SEPARATOR):].strip():
            if buffer:
                yield bytes(buffer)
                buffer.clear()
            continue
        buffer += line + b"\n"
    if buffer:
        yield bytes(buffer)


class YAMLScanner:
    """Iterates over the documents of a YAML manifest."""

    def __init__(self, data):
        self._data = data.encode("utf-8") if isinstance(data, str) else bytes(data)

    def __iter__(self):
        return split_documents(self._data)