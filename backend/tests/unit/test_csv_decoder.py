from __future__ import annotations

import pytest

from roster.services.csv_decoder import CsvDecodeError, RawRow, decode_rows


async def _chunks(*parts: bytes):
    for part in parts:
        yield part


async def _decode(*parts: bytes, **kwargs) -> list[RawRow]:
    return [row async for row in decode_rows(_chunks(*parts), **kwargs)]


@pytest.mark.anyio
async def test_decode_rows_keys_values_by_header():
    rows = await _decode(b"name,email\nJane,jane@example.com\nJohn,john@example.com\n")

    assert rows == [
        RawRow(line=2, values={"name": "Jane", "email": "jane@example.com"}),
        RawRow(line=3, values={"name": "John", "email": "john@example.com"}),
    ]


@pytest.mark.anyio
async def test_decode_rows_trims_header_names():
    rows = await _decode(b" email , name \nj@example.com,Jane\n")

    assert rows[0].get("name") == "Jane"
    assert rows[0].get("email") == "j@example.com"


@pytest.mark.anyio
async def test_decode_rows_quoted_field_may_span_lines():
    rows = await _decode(b'name,notes\n"Doe, Jane","first\nsecond"\nJohn,x\n')

    assert rows[0] == RawRow(line=2, values={"name": "Doe, Jane", "notes": "first\nsecond"})
    assert rows[1].line == 4


@pytest.mark.anyio
async def test_decode_rows_unescapes_doubled_quotes_in_quoted_field():
    rows = await _decode(b'name,notes\n"Jane ""JJ"" Doe","said ""hi,\nthere"""\nJohn,x\n')

    assert rows[0] == RawRow(line=2, values={"name": 'Jane "JJ" Doe', "notes": 'said "hi,\nthere"'})
    assert rows[1] == RawRow(line=4, values={"name": "John", "notes": "x"})


@pytest.mark.anyio
async def test_decode_rows_single_quote_inside_unquoted_field_is_literal():
    rows = await _decode(b'name,email\nPat O"Brien,pat@example.com\nAnn,ann@example.com\n')

    assert rows == [
        RawRow(line=2, values={"name": 'Pat O"Brien', "email": "pat@example.com"}),
        RawRow(line=3, values={"name": "Ann", "email": "ann@example.com"}),
    ]


@pytest.mark.anyio
async def test_decode_rows_paired_quotes_inside_unquoted_fields_keep_rows_apart():
    rows = await _decode(
        b"name,email\n"
        b'Pat O"Brien,pat@example.com\n'
        b"Ann,ann@example.com\n"
        b'Dan D"Arcy,dan@example.com\n'
        b"Zed,zed@example.com\n"
    )

    assert [(row.line, row.get("name")) for row in rows] == [
        (2, 'Pat O"Brien'),
        (3, "Ann"),
        (4, 'Dan D"Arcy'),
        (5, "Zed"),
    ]


@pytest.mark.anyio
async def test_decode_rows_text_after_closing_quote_stays_in_field():
    rows = await _decode(b'name,email\n"Jane" Doe,j@example.com\nJohn,john@example.com\n')

    assert rows[0].values == {"name": "Jane Doe", "email": "j@example.com"}
    assert rows[1].line == 3


@pytest.mark.anyio
async def test_decode_rows_crlf_split_across_chunks():
    rows = await _decode(b"name,email\r", b"\nJane,j@example.com\r\n")

    assert rows == [RawRow(line=2, values={"name": "Jane", "email": "j@example.com"})]


@pytest.mark.anyio
async def test_decode_rows_multibyte_char_split_across_chunks():
    data = "name\nJosé\n".encode("utf-8")
    split = data.index(b"\xc3") + 1

    rows = await _decode(data[:split], data[split:])

    assert rows[0].get("name") == "José"


@pytest.mark.anyio
async def test_decode_rows_strips_byte_order_mark():
    rows = await _decode(b"\xef\xbb\xbfname\nJane\n")

    assert rows[0].get("name") == "Jane"


@pytest.mark.anyio
async def test_decode_rows_skips_blank_lines_but_counts_them():
    rows = await _decode(b"name\n\nJane\n   \nJohn")

    assert [(row.line, row.get("name")) for row in rows] == [(3, "Jane"), (5, "John")]


@pytest.mark.anyio
async def test_decode_rows_short_row_yields_none_for_missing_columns():
    rows = await _decode(b"name,email,position\nJane\n")

    assert rows[0].values == {"name": "Jane", "email": None, "position": None}


@pytest.mark.anyio
async def test_decode_rows_custom_delimiter():
    rows = await _decode(b"name;email\nJane;j@example.com\n", delimiter=";")

    assert rows[0].get("email") == "j@example.com"


@pytest.mark.anyio
async def test_decode_rows_header_only_yields_nothing():
    assert await _decode(b"name,email\n") == []


@pytest.mark.anyio
async def test_decode_rows_empty_input_yields_nothing():
    assert await _decode() == []


@pytest.mark.anyio
async def test_decode_rows_unterminated_quote_raises():
    with pytest.raises(CsvDecodeError, match="Unterminated quoted field starting at line 2"):
        await _decode(b'name,email\n"Jane,j@example.com\n')


@pytest.mark.anyio
async def test_decode_rows_invalid_bytes_raise():
    with pytest.raises(CsvDecodeError, match="not valid utf-8-sig"):
        await _decode(b"name\n\xff\xfe\n")


@pytest.mark.anyio
async def test_decode_rows_unknown_encoding_raises():
    with pytest.raises(CsvDecodeError, match="Unknown encoding"):
        await _decode(b"name\n", encoding="no-such-codec")


@pytest.mark.anyio
async def test_decode_rows_pulls_chunks_on_demand():
    pulled: list[int] = []

    async def source():
        for index, part in enumerate([b"name\nJane\n", b"John\n", b"Jim\n"]):
            pulled.append(index)
            yield part

    rows = decode_rows(source())
    first = await rows.__anext__()
    await rows.aclose()

    assert first.get("name") == "Jane"
    assert pulled == [0]
