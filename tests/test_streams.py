from __future__ import annotations

from pathlib import Path

import pytest

from confmodel.streams import FileStreamHandler, InMemoryStreamHandler


def test_in_memory_create_publishes_on_close():
    handler = InMemoryStreamHandler()
    stream = handler.create("doc")
    assert handler.exists("doc")
    stream.write(b"a=1")
    stream.close()
    assert handler.contents("doc") == b"a=1"
    assert handler.text("doc") == "a=1"


def test_in_memory_create_refuses_existing():
    handler = InMemoryStreamHandler({"doc": "x"})
    with pytest.raises(FileExistsError):
        handler.create("doc")


def test_in_memory_read_write_delete():
    handler = InMemoryStreamHandler({"doc": b"old"})
    with handler.read("doc") as fh:
        assert fh.read() == b"old"
    handler.write(b"new", "doc")
    assert handler.contents("doc") == b"new"
    handler.delete("doc")
    assert not handler.exists("doc")
    with pytest.raises(FileNotFoundError):
        handler.read("doc")


def test_file_create_makes_parents(tmp_path: Path):
    handler = FileStreamHandler()
    target = tmp_path / "nested" / "dir" / "app.ini"
    with handler.create(str(target)) as fh:
        fh.write(b"a=1\n")
    assert target.read_bytes() == b"a=1\n"
    with pytest.raises(FileExistsError):
        handler.create(str(target))


def test_file_write_replaces_atomically(tmp_path: Path):
    target = tmp_path / "app.json"
    target.write_bytes(b"{}")
    handler = FileStreamHandler()
    handler.write(b'{"a": "1"}', str(target))
    assert target.read_bytes() == b'{"a": "1"}'
    assert not (tmp_path / "app.json.tmp").exists()


def test_file_relative_paths_use_base_dir(tmp_path: Path):
    (tmp_path / "app.ini").write_text("a=1")
    handler = FileStreamHandler(base_dir=tmp_path)
    assert handler.exists("app.ini")
    with handler.read("app.ini") as fh:
        assert fh.read() == b"a=1"
    handler.delete("app.ini")
    assert not (tmp_path / "app.ini").exists()
    # deleting twice is harmless
    handler.delete("app.ini")
