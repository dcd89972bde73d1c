"""Tests for the PNG codec and local storage."""

from pathlib import Path
from unittest.mock import patch

import pytest
from PIL import Image

from conftest import solid
from snapverify.compare.codec import PngCodec
from snapverify.errors import DecodeError, EncodingFailedError, SnapshotIOError
from snapverify.storage.filesystem import LocalStorage


class TestPngCodec:
    def test_encode_produces_png(self):
        data = PngCodec().encode(solid())
        assert data.startswith(b"\x89PNG\r\n\x1a\n")

    def test_decode_reads_pixels(self):
        codec = PngCodec()
        image = codec.decode(codec.encode(solid((3, 2))))
        assert image.size == (3, 2)
        assert image.convert("RGBA").getpixel((1, 1)) == (255, 0, 0, 255)

    def test_encode_unsupported_mode(self):
        with pytest.raises(EncodingFailedError, match="PNG creation failed"):
            PngCodec().encode(Image.new("CMYK", (2, 2)))

    def test_decode_garbage(self, tmp_path: Path):
        path = tmp_path / "broken.png"
        with pytest.raises(DecodeError) as exc_info:
            PngCodec().decode(b"definitely not a png", path)
        assert exc_info.value.path == path
        assert exc_info.value.kind == "decode-error"

    def test_decode_truncated_png(self):
        data = PngCodec().encode(solid((50, 50)))
        with pytest.raises(DecodeError):
            PngCodec().decode(data[: len(data) // 2])

    def test_decode_oversized_image(self, monkeypatch):
        data = PngCodec().encode(solid((100, 100)))
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        with pytest.raises(DecodeError, match="exceeds limit"):
            PngCodec().decode(data)


class TestLocalStorage:
    def test_write_and_read(self, tmp_path: Path):
        storage = LocalStorage()
        path = tmp_path / "a.bin"
        storage.write_bytes(path, b"hello")
        assert storage.exists(path)
        assert storage.read_bytes(path) == b"hello"

    def test_write_replaces_existing_file(self, tmp_path: Path):
        storage = LocalStorage()
        path = tmp_path / "a.bin"
        storage.write_bytes(path, b"old")
        storage.write_bytes(path, b"new")
        assert path.read_bytes() == b"new"

    def test_write_leaves_no_temp_files(self, tmp_path: Path):
        LocalStorage().write_bytes(tmp_path / "a.bin", b"x")
        assert [p.name for p in tmp_path.iterdir()] == ["a.bin"]

    def test_write_into_missing_directory(self, tmp_path: Path):
        with pytest.raises(SnapshotIOError):
            LocalStorage().write_bytes(tmp_path / "missing" / "a.bin", b"x")

    def test_failed_replace_cleans_up(self, tmp_path: Path):
        with patch("snapverify.storage.filesystem.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(SnapshotIOError, match="disk full"):
                LocalStorage().write_bytes(tmp_path / "a.bin", b"x")
        assert list(tmp_path.iterdir()) == []

    def test_make_dirs_idempotent(self, tmp_path: Path):
        storage = LocalStorage()
        target = tmp_path / "a" / "b"
        storage.make_dirs(target)
        storage.make_dirs(target)
        assert target.is_dir()

    def test_make_dirs_over_file(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        with pytest.raises(SnapshotIOError) as exc_info:
            LocalStorage().make_dirs(blocker / "child")
        assert isinstance(exc_info.value, OSError)
