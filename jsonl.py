from pathlib import Path
from typing import Iterator, NamedTuple

MAX_LINE_BYTES = 256 * 1024
CHUNK_SIZE = 64 * 1024


class JsonlLine(NamedTuple):
    data: bytes
    end_offset: int  # file offset just past this line (and its newline)
    truncated: bool  # longer than max_line_bytes; data is empty
    terminated: bool  # ended with a newline


def iter_lines(
    path: Path | str,
    offset: int = 0,
    max_line_bytes: int = MAX_LINE_BYTES,
    chunk_size: int = CHUNK_SIZE,
) -> Iterator[JsonlLine]:
    """Stream newline-delimited records from ``offset`` in bounded chunks.

    At most one chunk plus one line is held in memory. Oversized lines are
    dropped whole and reported with ``truncated=True``; a final line that
    has no newline yet is reported with ``terminated=False``.
    Raises ``OSError`` if the file cannot be opened.
    """
    with open(path, "rb") as fh:
        fh.seek(offset)
        chunk_start = offset
        pending = bytearray()
        overflow = False

        while True:
            chunk = fh.read(chunk_size)
            if not chunk:
                break

            start = 0
            while True:
                nl = chunk.find(b"\n", start)
                if nl == -1:
                    break
                piece = chunk[start:nl]
                end = chunk_start + nl + 1
                if overflow or len(pending) + len(piece) > max_line_bytes:
                    yield JsonlLine(b"", end, True, True)
                else:
                    pending += piece
                    yield JsonlLine(_strip_cr(pending), end, False, True)
                pending.clear()
                overflow = False
                start = nl + 1

            rest = chunk[start:]
            if not overflow and rest:
                if len(pending) + len(rest) > max_line_bytes:
                    overflow = True
                    pending.clear()
                else:
                    pending += rest
            chunk_start += len(chunk)

        if overflow:
            yield JsonlLine(b"", chunk_start, True, False)
        elif pending:
            yield JsonlLine(_strip_cr(pending), chunk_start, False, False)


def _strip_cr(buf: bytearray) -> bytes:
    if buf.endswith(b"\r"):
        return bytes(buf[:-1])
    return bytes(buf)
