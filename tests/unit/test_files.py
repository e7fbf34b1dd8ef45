"""
Unit tests for the file store and the /files handlers.
"""

import threading
from pathlib import Path

import pytest

from rawhttpd.handlers.files import FileStore, FileHandlers
from rawhttpd.http.request import HTTPRequest
from rawhttpd.http.status_codes import HTTPStatus


def post(body: bytes) -> HTTPRequest:
    return HTTPRequest(method="POST", path="/files/x", body=body)


GET = HTTPRequest(method="GET", path="/files/x")


class TestFileStore:
    """Tests for FileStore."""

    def test_path_for(self, files_root: Path):
        store = FileStore(files_root)

        assert store.path_for("a.txt") == files_root / "a.txt"

    def test_ensure_root_creates_parents(self, tmp_path: Path):
        store = FileStore(tmp_path / "a" / "b" / "c")
        store.ensure_root()
        store.ensure_root()  # idempotent

        assert (tmp_path / "a" / "b" / "c").is_dir()

    def test_write_then_read(self, files_root: Path):
        store = FileStore(files_root)
        store.ensure_root()
        store.write("a.bin", b"\x00\x01\x02")

        assert store.read("a.bin") == b"\x00\x01\x02"
        assert store.stat("a.bin").st_size == 3

    def test_write_overwrites(self, files_root: Path):
        store = FileStore(files_root)
        store.ensure_root()
        store.write("a", b"first version")
        store.write("a", b"second")

        assert store.read("a") == b"second"

    def test_write_leaves_no_temp_files(self, files_root: Path):
        store = FileStore(files_root)
        store.ensure_root()
        store.write("a", b"data")

        assert [p.name for p in files_root.iterdir()] == ["a"]

    def test_failed_write_cleans_up(self, files_root: Path):
        store = FileStore(files_root)
        store.ensure_root()
        (files_root / "dir").mkdir()

        with pytest.raises(OSError):
            store.write("dir", b"data")

        assert [p.name for p in files_root.iterdir()] == ["dir"]

    def test_stat_missing(self, files_root: Path):
        with pytest.raises(FileNotFoundError):
            FileStore(files_root).stat("missing")


class TestReadFile:
    """Tests for GET /files/{name}."""

    def test_existing_file(self, files_root: Path):
        files_root.mkdir()
        (files_root / "x").write_bytes(b"hello")
        handlers = FileHandlers(FileStore(files_root))

        response = handlers.read_file(GET, {"name": "x"})

        assert response.status == HTTPStatus.OK
        assert response.body == b"hello"
        assert response.headers["Content-Type"] == "application/octet-stream"
        assert response.headers["Content-Length"] == "5"

    def test_empty_file(self, files_root: Path):
        files_root.mkdir()
        (files_root / "x").write_bytes(b"")
        handlers = FileHandlers(FileStore(files_root))

        response = handlers.read_file(GET, {"name": "x"})

        assert response.status == HTTPStatus.OK
        assert response.headers["Content-Type"] == "application/octet-stream"
        assert response.headers["Content-Length"] == "0"

    def test_missing_file(self, files_root: Path):
        handlers = FileHandlers(FileStore(files_root))

        response = handlers.read_file(GET, {"name": "nope"})

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.body == b""

    def test_directory_is_not_found(self, files_root: Path):
        (files_root / "sub").mkdir(parents=True)
        handlers = FileHandlers(FileStore(files_root))

        response = handlers.read_file(GET, {"name": "sub"})

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.body == b""

    def test_stat_error_is_500(self, files_root: Path):
        class BrokenStore(FileStore):
            def stat(self, name):
                raise PermissionError(13, "Permission denied")

        handlers = FileHandlers(BrokenStore(files_root))

        response = handlers.read_file(GET, {"name": "x"})

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert b"Permission denied" in response.body

    def test_read_error_is_500(self, files_root: Path):
        files_root.mkdir()
        (files_root / "x").write_bytes(b"hello")

        class BrokenStore(FileStore):
            def read(self, name):
                raise OSError(5, "Input/output error")

        handlers = FileHandlers(BrokenStore(files_root))

        response = handlers.read_file(GET, {"name": "x"})

        assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
        assert b"Input/output error" in response.body


class TestCreateFile:
    """Tests for POST /files/{name}."""

    def test_creates_root_and_file(self, files_root: Path):
        handlers = FileHandlers(FileStore(files_root))

        response = handlers.create_file(post(b"payload"), {"name": "new.txt"})

        assert response.status == HTTPStatus.CREATED
        assert response.body == b""
        assert (files_root / "new.txt").read_bytes() == b"payload"

    def test_empty_body_creates_empty_file(self, files_root: Path):
        handlers = FileHandlers(FileStore(files_root))

        response = handlers.create_file(post(b""), {"name": "empty"})

        assert response.status == HTTPStatus.CREATED
        assert (files_root / "empty").read_bytes() == b""

    def test_overwrites_by_default(self, files_root: Path):
        files_root.mkdir()
        (files_root / "x").write_bytes(b"old")
        handlers = FileHandlers(FileStore(files_root))

        response = handlers.create_file(post(b"new"), {"name": "x"})

        assert response.status == HTTPStatus.CREATED
        assert (files_root / "x").read_bytes() == b"new"

    def test_reject_existing(self, files_root: Path):
        files_root.mkdir()
        (files_root / "x").write_bytes(b"old")
        handlers = FileHandlers(FileStore(files_root), reject_existing=True)

        response = handlers.create_file(post(b"new"), {"name": "x"})

        assert response.status == HTTPStatus.CONFLICT
        assert (files_root / "x").read_bytes() == b"old"

    def test_reject_existing_allows_new_files(self, files_root: Path):
        handlers = FileHandlers(FileStore(files_root), reject_existing=True)

        response = handlers.create_file(post(b"data"), {"name": "fresh"})

        assert response.status == HTTPStatus.CREATED

    def test_directory_target_is_bad_request(self, files_root: Path):
        (files_root / "sub").mkdir(parents=True)
        handlers = FileHandlers(FileStore(files_root))

        response = handlers.create_file(post(b"data"), {"name": "sub"})

        assert response.status == HTTPStatus.BAD_REQUEST
        assert response.body == b""

    def test_root_creation_failure_is_bad_request(self, tmp_path: Path):
        blocker = tmp_path / "blocker"
        blocker.write_bytes(b"not a directory")
        handlers = FileHandlers(FileStore(blocker / "files"))

        response = handlers.create_file(post(b"data"), {"name": "x"})

        assert response.status == HTTPStatus.BAD_REQUEST
        assert response.body != b""

    def test_write_failure_is_bad_request(self, files_root: Path):
        class BrokenStore(FileStore):
            def write(self, name, data):
                raise OSError(28, "No space left on device")

        handlers = FileHandlers(BrokenStore(files_root))

        response = handlers.create_file(post(b"data"), {"name": "x"})

        assert response.status == HTTPStatus.BAD_REQUEST
        assert b"No space left on device" in response.body

    def test_concurrent_writes_do_not_interleave(self, files_root: Path):
        handlers = FileHandlers(FileStore(files_root))
        bodies = [bytes([ord("a") + i]) * 50_000 for i in range(8)]
        barrier = threading.Barrier(len(bodies))
        statuses = []

        def upload(body):
            barrier.wait()
            statuses.append(handlers.create_file(post(body), {"name": "shared"}).status)

        threads = [threading.Thread(target=upload, args=(body,)) for body in bodies]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert statuses == [HTTPStatus.CREATED] * len(bodies)
        assert (files_root / "shared").read_bytes() in bodies
