import time
from pathlib import Path

import pytest

from logmerge.engine import writer
from logmerge.engine.filters import FilterSet
from logmerge.engine.model import FragmentGroup, FragmentRef
from logmerge.engine.scanner import scan_fragments
from logmerge.errors import FragmentLoadError


def refs(*names):
    return [FragmentRef(name) for name in names]


def write_parts(directory, count):
    names = []
    for i in range(count):
        name = f"part.{i}.log"
        (directory / name).write_bytes(f"part {i} a\npart {i} b\n".encode())
        names.append(name)
    return names


def expected_bytes(directory, names):
    return b"".join((directory / name).read_bytes() for name in names)


def test_merge_chunk_writes_in_list_order(tmp_path, logger):
    names = write_parts(tmp_path, 6)
    order = list(reversed(names))
    out = tmp_path / "part.full.log"

    result = writer.merge_chunk(out, tmp_path, refs(*order), FilterSet(), logger)

    assert out.read_bytes() == expected_bytes(tmp_path, order)
    assert result.written == order
    assert result.failed == []
    assert result.ok
    assert result.bytes_written == out.stat().st_size


def test_order_is_independent_of_load_completion(tmp_path, logger, monkeypatch):
    names = write_parts(tmp_path, 8)
    real_load = writer.load_fragment

    # Earlier slots finish last
    def slow_first(path, filters):
        delay = (8 - int(path.name.split(".")[1])) * 0.01
        time.sleep(delay)
        return real_load(path, filters)

    monkeypatch.setattr(writer, "load_fragment", slow_first)
    out = tmp_path / "part.full.log"
    writer.merge_chunk(out, tmp_path, refs(*names), FilterSet(), logger)

    assert out.read_bytes() == expected_bytes(tmp_path, names)


def test_failed_fragments_do_not_block_the_rest(tmp_path, logger, log_stream, monkeypatch):
    names = write_parts(tmp_path, 5)
    real_load = writer.load_fragment

    def flaky(path, filters):
        if path.name == "part.1.log":
            raise FragmentLoadError(path.name, OSError("unreadable"))
        if path.name == "part.3.log":
            raise RuntimeError("unexpected")
        return real_load(path, filters)

    monkeypatch.setattr(writer, "load_fragment", flaky)
    out = tmp_path / "part.full.log"
    result = writer.merge_chunk(out, tmp_path, refs(*names), FilterSet(), logger)

    kept = ["part.0.log", "part.2.log", "part.4.log"]
    assert out.read_bytes() == expected_bytes(tmp_path, kept)
    assert result.written == kept
    assert result.failed == ["part.1.log", "part.3.log"]
    assert not result.ok
    log = log_stream.getvalue()
    assert "unreadable" in log
    assert "RuntimeError: unexpected" in log


def test_missing_fragment_is_reported(tmp_path, logger):
    names = write_parts(tmp_path, 2)
    out = tmp_path / "part.full.log"
    result = writer.merge_chunk(out, tmp_path, refs(names[0], "part.9.log", names[1]), FilterSet(), logger)

    assert result.failed == ["part.9.log"]
    assert out.read_bytes() == expected_bytes(tmp_path, names)


def test_load_fragment_applies_filters(tmp_path):
    path = tmp_path / "app.1.log"
    path.write_bytes(b"level=INFO msg=a\nlevel=ERROR msg=b\n")
    assert writer.load_fragment(path, FilterSet.compile([r"ERROR msg=(\w)"])) == b"b\n"


def test_merge_group_single_output(tmp_path, logger, make_fragments):
    expected = make_fragments(tmp_path, "out", [3, 2, 1], 10)
    group = scan_fragments(tmp_path, logger)["out"]

    result = writer.merge_group(tmp_path, group, FilterSet(), logger=logger)

    assert result.ok
    assert len(result.chunks) == 1
    assert (tmp_path / "out.full.log").read_text().splitlines() == expected


def test_merge_group_reverse(tmp_path, logger, make_fragments):
    expected = make_fragments(tmp_path, "out", [1, 2, 3], 10)
    group = scan_fragments(tmp_path, logger)["out"]

    writer.merge_group(tmp_path, group, FilterSet(), reverse=True, logger=logger)

    assert (tmp_path / "out.full.log").read_text().splitlines() == expected


def test_chunks_concatenate_to_single_output(tmp_path, logger, make_fragments):
    single_dir = tmp_path / "single"
    chunked_dir = tmp_path / "chunked"
    single_dir.mkdir()
    chunked_dir.mkdir()
    make_fragments(single_dir, "out", range(11, 0, -1), 25)
    make_fragments(chunked_dir, "out", range(11, 0, -1), 25)

    writer.merge_group(single_dir, scan_fragments(single_dir, logger)["out"], FilterSet(), logger=logger)
    result = writer.merge_group(
        chunked_dir, scan_fragments(chunked_dir, logger)["out"], FilterSet(), max_chunks=3, logger=logger
    )

    assert result.ok
    assert len(result.chunks) == 4
    merged = b"".join(chunk.output.read_bytes() for chunk in result.chunks)
    assert merged == (single_dir / "out.full.log").read_bytes()


def test_subdivision_error_skips_group(tmp_path, logger, log_stream, make_fragments):
    make_fragments(tmp_path, "out", [1, 2, 3], 1)
    group = scan_fragments(tmp_path, logger)["out"]

    result = writer.merge_group(tmp_path, group, FilterSet(), max_chunks=2, logger=logger)

    assert not result.ok
    assert result.plan is None
    assert result.chunks == []
    assert not list(tmp_path.glob("*.full*"))
    assert "Cannot subdivide" in log_stream.getvalue()


def test_unwritable_output_stops_group(tmp_path, logger, make_fragments):
    make_fragments(tmp_path, "out", [1, 2], 1)
    group = scan_fragments(tmp_path, logger)["out"]
    # A directory where the output file should go
    (tmp_path / "out.full.log").mkdir()

    result = writer.merge_group(tmp_path, group, FilterSet(), logger=logger)

    assert not result.ok
    assert isinstance(result.error, OSError)


def test_empty_chunk_creates_empty_file(tmp_path, logger):
    out = tmp_path / "none.full.log"
    result = writer.merge_chunk(out, tmp_path, [], FilterSet(), logger)
    assert out.read_bytes() == b""
    assert result.ok


def test_group_result_requires_every_chunk(tmp_path, logger, make_fragments):
    make_fragments(tmp_path, "out", [1, 2, 3, 4], 1)
    group = FragmentGroup("out", scan_fragments(tmp_path, logger)["out"].fragments)
    result = writer.merge_group(tmp_path, group, FilterSet(), max_chunks=2, logger=logger)
    assert result.ok
    result.chunks.pop()
    assert not result.ok


def test_output_closed_when_sync_fails(tmp_path, logger, monkeypatch):
    names = write_parts(tmp_path, 2)
    opened = []
    real_open = Path.open

    def tracking_open(self, *args, **kwargs):
        handle = real_open(self, *args, **kwargs)
        opened.append(handle)
        return handle

    def failing_fsync(fd):
        raise OSError(5, "EIO")

    monkeypatch.setattr(Path, "open", tracking_open)
    monkeypatch.setattr(writer.os, "fsync", failing_fsync)

    with pytest.raises(OSError):
        writer.merge_chunk(tmp_path / "part.full.log", tmp_path, refs(*names), FilterSet(), logger)

    assert opened
    assert all(handle.closed for handle in opened)


def test_sync_failure_fails_the_group(tmp_path, logger, make_fragments, monkeypatch):
    make_fragments(tmp_path, "out", [2, 1], 2)
    group = scan_fragments(tmp_path, logger)["out"]

    def failing_fsync(fd):
        raise OSError(28, "ENOSPC")

    monkeypatch.setattr(writer.os, "fsync", failing_fsync)
    result = writer.merge_group(tmp_path, group, FilterSet(), logger=logger)

    assert not result.ok
    assert isinstance(result.error, OSError)
