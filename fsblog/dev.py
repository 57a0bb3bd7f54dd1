"""Dev mode: rebuild on vault changes and serve the output directory."""

from __future__ import annotations

import logging
import mimetypes
import threading
from collections.abc import Callable
from functools import partial
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlsplit

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from fsblog.config.models import BuildOptions
from fsblog.pipeline import build_site
from fsblog.vault.walker import build_excluder

logger = logging.getLogger(__name__)

DEFAULT_PORT = 3000
DEBOUNCE_SECONDS = 0.25


class CoalescingBuilder:
    """Runs builds one at a time, folding triggers that arrive mid-build.

    Any number of ``trigger()`` calls made while a build runs collapse into
    a single trailing rebuild. Build errors are logged, never raised.
    """

    def __init__(self, build_fn: Callable[[], Any]) -> None:
        self._build_fn = build_fn
        self._lock = threading.Lock()
        self._running = False
        self._pending = False
        self.builds = 0
        self.last_result: Any = None

    def trigger(self) -> bool:
        """Build now, or queue a rerun if a build is in progress.

        Returns True when this call ran the build(s) itself.
        """
        with self._lock:
            if self._running:
                self._pending = True
                return False
            self._running = True

        try:
            while True:
                self._run_once()
                with self._lock:
                    if not self._pending:
                        self._running = False
                        return True
                    self._pending = False
        except BaseException:
            with self._lock:
                self._running = False
                self._pending = False
            raise

    def _run_once(self) -> None:
        self.builds += 1
        try:
            self.last_result = self._build_fn()
        except Exception:
            logger.exception("build failed")


class _MarkdownChangeHandler(FileSystemEventHandler):
    """Debounces markdown changes under the vault into one callback."""

    def __init__(
        self,
        vault_dir: Path,
        exclude: list[str],
        callback: Callable[[], Any],
        debounce_seconds: float,
    ) -> None:
        super().__init__()
        self._vault_dir = vault_dir
        self._is_excluded = build_excluder(exclude)
        self._callback = callback
        self._debounce = debounce_seconds
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None

    def relevant(self, path: str) -> bool:
        if not path.lower().endswith(".md"):
            return False
        try:
            rel = Path(path).resolve().relative_to(self._vault_dir).as_posix()
        except ValueError:
            return False
        return not self._is_excluded(rel, False)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        paths = [event.src_path, getattr(event, "dest_path", "") or ""]
        if not any(self.relevant(str(p)) for p in paths if p):
            return
        self.schedule()

    def schedule(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self._debounce, self._callback)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None


class VaultWatcher:
    """Watches the vault and calls *on_change* after markdown edits settle."""

    def __init__(
        self,
        vault_dir: Path,
        exclude: list[str],
        on_change: Callable[[], Any],
        debounce_seconds: float = DEBOUNCE_SECONDS,
    ) -> None:
        self._vault_dir = Path(vault_dir).resolve()
        self._handler = _MarkdownChangeHandler(self._vault_dir, exclude, on_change, debounce_seconds)
        self._observer: Observer | None = None

    def start(self) -> None:
        if self._observer is not None:
            return
        self._observer = Observer()
        self._observer.schedule(self._handler, str(self._vault_dir), recursive=True)
        self._observer.start()
        logger.info("Watching %s for changes", self._vault_dir)

    def stop(self) -> None:
        self._handler.cancel()
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
        logger.info("Stopped watching %s", self._vault_dir)


def resolve_output_file(out_dir: Path, url_path: str) -> Path | None:
    """Map a request path to a file under *out_dir*.

    Returns None for paths that try to escape the output directory, and
    ``404.html`` when nothing matches.
    """
    decoded = unquote(urlsplit(url_path).path)
    clean = decoded.lstrip("/")
    if ".." in clean:
        return None

    out_dir = Path(out_dir)
    if decoded in ("", "/"):
        return out_dir / "index.html"

    direct = out_dir / clean
    if direct.is_file():
        return direct

    route_index = out_dir / clean / "index.html"
    if route_index.is_file():
        return route_index

    return out_dir / "404.html"


class DevRequestHandler(BaseHTTPRequestHandler):
    def __init__(self, *args: Any, out_dir: Path, **kwargs: Any) -> None:
        self.out_dir = out_dir
        super().__init__(*args, **kwargs)

    def do_GET(self) -> None:  # noqa: N802
        self._serve(include_body=True)

    def do_HEAD(self) -> None:  # noqa: N802
        self._serve(include_body=False)

    def _serve(self, include_body: bool) -> None:
        path = resolve_output_file(self.out_dir, self.path)
        if path is None:
            self._send_text(403, "Forbidden", include_body)
            return
        if not path.is_file():
            self._send_text(404, "Not Found", include_body)
            return

        body = path.read_bytes()
        status = 404 if path.name == "404.html" and path.parent == self.out_dir else 200
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        if content_type.startswith("text/") or content_type.endswith(("javascript", "json")):
            content_type += "; charset=utf-8"
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Cache-Control", "no-store")
        self.end_headers()
        if include_body:
            self.wfile.write(body)

    def _send_text(self, status: int, text: str, include_body: bool) -> None:
        body = text.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/plain; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if include_body:
            self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


def make_dev_server(out_dir: Path, port: int = DEFAULT_PORT, host: str = "127.0.0.1") -> ThreadingHTTPServer:
    handler = partial(DevRequestHandler, out_dir=Path(out_dir))
    return ThreadingHTTPServer((host, port), handler)


def run_dev(
    options: BuildOptions,
    port: int = DEFAULT_PORT,
    build_fn: Callable[[], Any] | None = None,
) -> None:
    """Build once, then rebuild on changes while serving until interrupted."""
    if build_fn is None:
        build_fn = partial(build_site, options)

    builder = CoalescingBuilder(build_fn)
    builder.trigger()

    watcher = VaultWatcher(
        Path(options.vault_dir),
        options.exclude,
        builder.trigger,
    )
    server = make_dev_server(Path(options.out_dir), port)
    watcher.start()
    logger.info("dev server at http://localhost:%d", server.server_address[1])
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("shutting down")
    finally:
        watcher.stop()
        server.server_close()
