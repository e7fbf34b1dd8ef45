"""
=============================================================================
FILE STORE HANDLERS
=============================================================================

GET  /files/{name}   return the bytes of <root>/<name>
POST /files/{name}   store the request body as <root>/<name>

=============================================================================
STATUS MAPPING
=============================================================================

    ┌──────────────────────────────────────┬────────────────────────────┐
    │ Situation                            │ Response                   │
    ├──────────────────────────────────────┼────────────────────────────┤
    │ GET, file exists                     │ 200, octet-stream, bytes   │
    │ GET, missing                         │ 404, empty                 │
    │ GET, name is a directory             │ 404, empty                 │
    │ GET, any other stat/read error       │ 500, error text            │
    ├──────────────────────────────────────┼────────────────────────────┤
    │ POST, root cannot be created         │ 400, error text            │
    │ POST, name is a directory            │ 400, empty                 │
    │ POST, exists and reject_existing     │ 409, empty                 │
    │ POST, write fails                    │ 400, error text            │
    │ POST, written                        │ 201, empty                 │
    └──────────────────────────────────────┴────────────────────────────┘

=============================================================================
CONCURRENT UPLOADS
=============================================================================

Each connection has its own thread, so two POSTs to the same name can run
at once. write() puts the body in a temporary file next to the target and
renames it into place with os.replace(), which is atomic on POSIX. Readers
and writers therefore see one complete upload or another, never a mix.
Which upload wins is unspecified.

=============================================================================
PATH TRAVERSAL
=============================================================================

{name} cannot contain '/' (the route segment excludes it), but it is
otherwise joined to the root as-is: "..", for instance, refers to the
root's parent. Run the server with a dedicated directory.

=============================================================================
"""

import os
import stat
import logging
import tempfile
from pathlib import Path
from typing import Dict, Union

from ..http.request import HTTPRequest
from ..http.response import (
    HTTPResponse,
    ok,
    created,
    bad_request,
    not_found,
    conflict,
    internal_error,
)


logger = logging.getLogger(__name__)


OCTET_STREAM = "application/octet-stream"


class FileStore:
    """
    A directory of flat files addressed by name.

        store = FileStore("tmp")
        store.ensure_root()
        store.write("notes.txt", b"hello")
        store.read("notes.txt")     # b"hello"
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def path_for(self, name: str) -> Path:
        """<root>/<name>, not normalized."""
        return self.root / name

    def stat(self, name: str) -> os.stat_result:
        """
        Raises:
            FileNotFoundError: If there is nothing at the path.
            OSError: For any other failure.
        """
        return self.path_for(name).stat()

    def read(self, name: str) -> bytes:
        return self.path_for(name).read_bytes()

    def ensure_root(self) -> None:
        """Create the root directory (and parents) if it does not exist."""
        self.root.mkdir(parents=True, exist_ok=True)

    def write(self, name: str, data: bytes) -> None:
        """
        Replace the contents of <root>/<name> with `data`.

        mkstemp creates files as 0600; the result is widened to 0644.

        Raises:
            OSError: If the temporary file cannot be written or renamed.
        """
        target = self.path_for(name)
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(data)
            os.chmod(tmp_name, 0o644)
            os.replace(tmp_name, target)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

        logger.debug(f"Wrote {len(data)} bytes to {target}")


class FileHandlers:
    """
    The /files/{name} route handlers, bound to one FileStore.

        files = FileHandlers(FileStore(config.directory))
        router.add_route("/files/:name", files.read_file, method="GET")
        router.add_route("/files/:name", files.create_file, method="POST")

    Args:
        store: Where files live.
        reject_existing: Answer 409 instead of overwriting an existing file.
    """

    def __init__(self, store: FileStore, reject_existing: bool = False):
        self.store = store
        self.reject_existing = reject_existing

    def read_file(self, request: HTTPRequest, params: Dict[str, str]) -> HTTPResponse:
        name = params["name"]

        try:
            st = self.store.stat(name)
        except FileNotFoundError:
            return not_found()
        except OSError as e:
            logger.error(f"Cannot stat {name!r}: {e}")
            return internal_error(str(e))

        if stat.S_ISDIR(st.st_mode):
            return not_found()

        try:
            content = self.store.read(name)
        except OSError as e:
            logger.error(f"Cannot read {name!r}: {e}")
            return internal_error(str(e))

        # Content-Length comes from what was read, not from the stat
        # above, in case the file was replaced in between.
        return ok(content).set_header("Content-Type", OCTET_STREAM)

    def create_file(self, request: HTTPRequest, params: Dict[str, str]) -> HTTPResponse:
        name = params["name"]

        try:
            self.store.ensure_root()
        except OSError as e:
            logger.warning(f"Cannot create file root {self.store.root}: {e}")
            return bad_request(str(e))

        target = self.store.path_for(name)
        if target.is_dir():
            return bad_request()

        if self.reject_existing and target.exists():
            return conflict()

        try:
            self.store.write(name, request.body)
        except OSError as e:
            logger.warning(f"Cannot write {name!r}: {e}")
            return bad_request(str(e))

        return created()
