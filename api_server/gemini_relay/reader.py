import codecs


class UpstreamLineReader:
    """Reassemble newline-terminated text records from raw upstream chunks.

    Chunks may split lines and multi-byte UTF-8 characters anywhere. Bytes of
    an incomplete character stay inside the incremental decoder until the
    rest of the character arrives. A trailing line without a newline is
    still yielded once the chunks run out.
    """

    def __init__(self, chunks):
        self._chunks = chunks
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._carry = ""
        self._consumed = False

    def records(self):
        if self._consumed:
            raise RuntimeError("Upstream stream has already been consumed.")
        self._consumed = True
        for chunk in self._chunks:
            if not chunk:
                continue
            yield from self._split(self._decoder.decode(chunk))
        yield from self._split(self._decoder.decode(b"", final=True))
        if self._carry:
            carry, self._carry = self._carry, ""
            yield carry

    def _split(self, text):
        if not text:
            return []
        lines = (self._carry + text).split("\n")
        self._carry = lines.pop()
        return lines

    def close(self):
        close = getattr(self._chunks, "close", None)
        if close is not None:
            close()
