"""Tests for line reassembly in UpstreamLineReader."""

import pytest

from gemini_relay.reader import UpstreamLineReader

REFERENCE = "data: héllo 世界\n\ndata: {\"a\": \"ü\"}\nkeep-alive\ndata: tail 🙂".encode("utf-8")


def _chunked(data, size):
    return [data[i:i + size] for i in range(0, len(data), size)]


@pytest.mark.parametrize("size", [1, 2, 3, 5, 7, 16, len(REFERENCE)])
def test_records_do_not_depend_on_chunking(size):
    reader = UpstreamLineReader(_chunked(REFERENCE, size))

    assert list(reader.records()) == REFERENCE.decode("utf-8").split("\n")


def test_multibyte_character_split_across_chunks_is_not_corrupted():
    encoded = "data: 世\n".encode("utf-8")
    # Split inside the three-byte encoding of the CJK character.
    chunks = [encoded[:7], encoded[7:8], encoded[8:]]

    records = list(UpstreamLineReader(chunks).records())

    assert records == ["data: 世"]
    assert "�" not in records[0]


def test_trailing_fragment_without_newline_is_flushed():
    records = list(UpstreamLineReader([b"data: one\ndata: tw", b"o"]).records())

    assert records == ["data: one", "data: two"]


def test_stream_ending_with_newline_has_no_extra_record():
    records = list(UpstreamLineReader([b"a\nb\n"]).records())

    assert records == ["a", "b"]


def test_empty_stream_yields_nothing():
    assert list(UpstreamLineReader([]).records()) == []
    assert list(UpstreamLineReader([b"", b""]).records()) == []


def test_records_are_lazy():
    pulled = []

    def chunks():
        for chunk in (b"first\n", b"second\n"):
            pulled.append(chunk)
            yield chunk

    records = UpstreamLineReader(chunks()).records()

    assert next(records) == "first"
    assert pulled == [b"first\n"]


def test_records_can_only_be_consumed_once():
    reader = UpstreamLineReader([b"x\n"])
    list(reader.records())

    with pytest.raises(RuntimeError):
        list(reader.records())


def test_invalid_utf8_is_replaced_not_fatal():
    records = list(UpstreamLineReader([b"data: \xff\xfe ok\n"]).records())

    assert records == ["data: �� ok"]


def test_transport_error_propagates():
    def chunks():
        yield b"data: partial\n"
        raise ConnectionResetError("upstream reset")

    records = UpstreamLineReader(chunks()).records()

    assert next(records) == "data: partial"
    with pytest.raises(ConnectionResetError):
        next(records)


def test_close_closes_chunk_source():
    closed = []

    def chunks():
        try:
            yield b"data: a\n"
            yield b"data: b\n"
        finally:
            closed.append(True)

    source = chunks()
    reader = UpstreamLineReader(source)
    records = reader.records()
    next(records)
    reader.close()

    assert closed == [True]
