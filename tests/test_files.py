"""Unit tests for files/storage.py -- directory bootstrap and upload naming."""

import uuid

from files.storage import ensure_directories, extension_for, save_upload


def test_ensure_directories_creates_layout(tmp_path):
    root = tmp_path / "static"
    ensure_directories(root)
    assert (root / "public").is_dir()
    assert (root / "tmp").is_dir()


def test_ensure_directories_is_idempotent(tmp_path):
    root = tmp_path / "static"
    ensure_directories(root)
    (root / "public" / "keep.txt").write_text("x")
    ensure_directories(root)
    assert (root / "public" / "keep.txt").read_text() == "x"


def test_extension_for_known_and_unknown_types():
    assert extension_for("image/png") == ".png"
    assert extension_for("application/json; charset=utf-8") == ".json"
    assert extension_for("application/x-definitely-not-real") == ""
    assert extension_for(None) == ""


def test_save_upload_writes_uuid_named_file(tmp_path):
    stored = save_upload("avatar", b"\x89PNG", "image/png", tmp_path)
    assert stored.name == "avatar"
    assert stored.filename == f"{stored.id}.png"
    uuid.UUID(stored.id)
    assert (tmp_path / stored.filename).read_bytes() == b"\x89PNG"


def test_save_upload_ignores_client_filename(tmp_path):
    stored = save_upload("../../etc/passwd", b"data", "text/plain", tmp_path)
    assert "/" not in stored.filename
    assert list(tmp_path.iterdir()) == [tmp_path / stored.filename]


def test_save_upload_names_are_unique(tmp_path):
    a = save_upload("a", b"1", None, tmp_path)
    b = save_upload("a", b"1", None, tmp_path)
    assert a.filename != b.filename
