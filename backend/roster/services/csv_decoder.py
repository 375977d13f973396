"""Streaming CSV decoding over an async byte-chunk source.

Rows are produced lazily: the next chunk is only pulled when the consumer asks
for the next row, so a slow consumer never causes decoded rows to pile up.
"""

from __future__ import annotations

import codecs
import csv
import logging
import re
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class CsvDecodeError(Exception):
    pass


@dataclass(frozen=True)
class RawRow:
    """One decoded record keyed by header name. ``line`` is 1-based and counts the header."""

    line: int
    values: dict[str, str | None] = field(default_factory=dict)

    def get(self, key: str) -> str | None:
        return self.values.get(key)


def _split_lines(buffer: str) -> tuple[list[str], str]:
    """Split off complete physical lines, keeping their terminators.

    A trailing lone ``\\r`` stays in the remainder since its ``\\n`` may still
    be in the next chunk.
    """
    lines: list[str] = []
    start = 0
    for match in _LINE_BREAK.finditer(buffer):
        if match.group() == "\r" and match.end() == len(buffer):
            break
        lines.append(buffer[start : match.end()])
        start = match.end()
    return lines, buffer[start:]


# Field scanner states, mirroring how the csv module reads a record.
_FIELD_START = 0
_UNQUOTED = 1
_QUOTED = 2
_QUOTE_IN_QUOTED = 3


class _RecordAssembler:
    """Joins physical lines into logical CSV records (quoted fields may hold newlines).

    Only a quote at the start of a field opens a quoted field. Quotes inside an
    unquoted value (``O"Brien``) are literal and never carry a record over to
    the next line.
    """

    def __init__(self, delimiter: str) -> None:
        self.delimiter = delimiter
        self.line_no = 0
        self.pending: list[str] = []
        self.start_line = 0
        self.state = _FIELD_START

    def _scan(self, line: str) -> None:
        for char in line:
            if self.state == _QUOTED:
                if char == '"':
                    self.state = _QUOTE_IN_QUOTED
            elif self.state == _QUOTE_IN_QUOTED:
                # "" is an escaped quote; anything else closes the quoted part
                if char == '"':
                    self.state = _QUOTED
                elif char == self.delimiter:
                    self.state = _FIELD_START
                else:
                    self.state = _UNQUOTED
            elif char == self.delimiter:
                self.state = _FIELD_START
            elif self.state == _FIELD_START:
                self.state = _QUOTED if char == '"' else _UNQUOTED

    def feed(self, line: str) -> tuple[int, list[str]] | None:
        self.line_no += 1
        if not self.pending:
            self.start_line = self.line_no
        self.pending.append(line)
        self._scan(line)
        if self.state == _QUOTED:
            return None

        lines, self.pending, self.state = self.pending, [], _FIELD_START
        if not "".join(lines).strip():
            return None

        try:
            records = list(csv.reader(lines, delimiter=self.delimiter))
        except csv.Error as e:
            raise CsvDecodeError(f"Malformed CSV at line {self.start_line}: {e}") from e
        if len(records) != 1:
            raise CsvDecodeError(
                f"Malformed CSV at line {self.start_line}: expected one record, found {len(records)}"
            )
        return self.start_line, records[0]

    def finish(self) -> None:
        if self.pending:
            raise CsvDecodeError(f"Unterminated quoted field starting at line {self.start_line}")


async def decode_rows(
    chunks: AsyncIterable[bytes],
    encoding: str = "utf-8-sig",
    delimiter: str = ",",
) -> AsyncIterator[RawRow]:
    """Yield a RawRow per data record; the first non-blank record is the header."""
    try:
        decoder = codecs.getincrementaldecoder(encoding)()
    except LookupError as e:
        raise CsvDecodeError(f"Unknown encoding: {encoding}") from e

    assembler = _RecordAssembler(delimiter)
    header: list[str] | None = None
    buffer = ""

    def to_row(names: list[str], line: int, fields: list[str]) -> RawRow:
        values: dict[str, str | None] = {}
        for index, name in enumerate(names):
            values[name] = fields[index] if index < len(fields) else None
        return RawRow(line=line, values=values)

    async def drain(text: str, final: bool) -> AsyncIterator[RawRow]:
        nonlocal buffer, header
        buffer += text
        lines, buffer = _split_lines(buffer)
        if final and buffer:
            lines.append(buffer)
            buffer = ""
        for line in lines:
            record = assembler.feed(line)
            if record is None:
                continue
            if header is None:
                header = [name.strip() for name in record[1]]
                logger.debug("CSV header: %s", header)
                continue
            yield to_row(header, *record)

    async for chunk in chunks:
        try:
            text = decoder.decode(chunk)
        except UnicodeDecodeError as e:
            raise CsvDecodeError(f"Input is not valid {encoding} text: {e}") from e
        async for row in drain(text, final=False):
            yield row

    try:
        tail = decoder.decode(b"", final=True)
    except UnicodeDecodeError as e:
        raise CsvDecodeError(f"Input is not valid {encoding} text: {e}") from e
    async for row in drain(tail, final=True):
        yield row

    assembler.finish()
