"""Reading and writing MessagePack index files."""

from __future__ import annotations

from os import PathLike
from pathlib import Path
from typing import Any, Union

import msgpack


class IndexParseError(ValueError):
    """The index file does not hold valid MessagePack."""


def load(path: Union[str, PathLike]) -> Any:
    """Load the first MessagePack document of an index file.

    Bytes after the first document are ignored. Raises ``OSError`` if the
    file cannot be read and ``IndexParseError`` if it cannot be decoded.
    """
    data = Path(path).read_bytes()
    unpacker = msgpack.Unpacker(raw=False)
    unpacker.feed(data)
    try:
        return next(unpacker)
    except StopIteration as exc:
        raise IndexParseError(f"incomplete msgpack data: {path}") from exc
    except (ValueError, msgpack.UnpackException) as exc:
        raise IndexParseError(f"msgpack parse error: {path}") from exc


def save(path: Union[str, PathLike], data: Any) -> None:
    """Write ``data`` as MessagePack to an index file.

    Raises ``OSError`` if the file cannot be written.
    """
    Path(path).write_bytes(msgpack.packb(data, use_bin_type=True))