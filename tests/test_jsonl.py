from jsonl import iter_lines


def test_lines_and_offsets(tmp_path):
    path = tmp_path / "a.jsonl"
    path.write_bytes(b'{"a":1}\n{"b":2}\r\n')
    lines = list(iter_lines(path, chunk_size=4))
    assert [line.data for line in lines] == [b'{"a":1}', b'{"b":2}']
    assert [line.end_offset for line in lines] == [8, 17]
    assert all(line.terminated and not line.truncated for line in lines)


def test_starts_at_offset(tmp_path):
    path = tmp_path / "a.jsonl"
    path.write_bytes(b'{"a":1}\n{"b":2}\n')
    lines = list(iter_lines(path, offset=8))
    assert [line.data for line in lines] == [b'{"b":2}']
    assert lines[0].end_offset == 16


def test_oversized_line_is_dropped_whole(tmp_path):
    path = tmp_path / "a.jsonl"
    big = b'{"x":"' + b"y" * 100 + b'"}'
    path.write_bytes(b'{"a":1}\n' + big + b'\n{"b":2}\n')
    lines = list(iter_lines(path, max_line_bytes=32, chunk_size=16))
    assert [line.truncated for line in lines] == [False, True, False]
    assert lines[1].data == b""
    assert lines[2].data == b'{"b":2}'
    assert lines[2].end_offset == path.stat().st_size


def test_unterminated_tail(tmp_path):
    path = tmp_path / "a.jsonl"
    path.write_bytes(b'{"a":1}\n{"b":')
    lines = list(iter_lines(path))
    assert lines[-1].data == b'{"b":'
    assert not lines[-1].terminated
    assert lines[-1].end_offset == 13


def test_empty_file(tmp_path):
    path = tmp_path / "a.jsonl"
    path.write_bytes(b"")
    assert list(iter_lines(path)) == []
