from gemini_compat.services.sse import SSEDecoder, decode_chunk


def test_done_sentinel_is_not_emitted():
    assert list(decode_chunk('data: {"a": 1}\ndata: [DONE]\n')) == [{"a": 1}]
    assert list(decode_chunk("data: [DONE]\n")) == []


def test_lines_without_data_prefix_are_ignored():
    chunk = ': keep-alive\n\nevent: message\nid: 7\n{"a": 1}\ndata: {"b": 2}\n'
    assert list(decode_chunk(chunk)) == [{"b": 2}]


def test_malformed_line_is_skipped_and_decoding_continues():
    decoder = SSEDecoder()
    chunk = 'data: {"a": 1}\ndata: {not json\ndata: {"b": 2}\n'
    assert list(decoder.feed(chunk)) == [{"a": 1}, {"b": 2}]
    assert len(decoder.errors) == 1
    assert decoder.errors[0].data == "{not json"


def test_prefix_without_space_is_accepted():
    assert list(decode_chunk('data:{"a": 1}\n')) == [{"a": 1}]


def test_line_split_across_chunks_is_reassembled():
    decoder = SSEDecoder()
    first = list(decoder.feed('data: {"text": "Hel'))
    second = list(decoder.feed('lo"}\ndata: {"text": "!"}\n'))
    assert first == []
    assert second == [{"text": "Hello"}, {"text": "!"}]
    assert decoder.errors == []


def test_multibyte_character_split_across_byte_chunks():
    raw = 'data: {"text": "héllo"}\n'.encode("utf-8")
    cut = raw.index("é".encode("utf-8")) + 1
    decoder = SSEDecoder()
    events = list(decoder.feed(raw[:cut])) + list(decoder.feed(raw[cut:]))
    assert events == [{"text": "héllo"}]


def test_crlf_line_endings():
    assert list(decode_chunk('data: {"a": 1}\r\ndata: [DONE]\r\n')) == [{"a": 1}]


def test_flush_parses_unterminated_last_line():
    decoder = SSEDecoder()
    assert list(decoder.feed('data: {"a": 1}')) == []
    assert list(decoder.flush()) == [{"a": 1}]
    assert list(decoder.flush()) == []
