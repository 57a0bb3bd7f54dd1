"""Tests for dev mode: coalesced rebuilds, change filtering and the server."""

from __future__ import annotations

import threading
import urllib.error
import urllib.request
from pathlib import Path

import pytest
from watchdog.events import FileModifiedEvent, FileMovedEvent

from fsblog.dev import CoalescingBuilder, _MarkdownChangeHandler, make_dev_server, resolve_output_file


# ── CoalescingBuilder ────────────────────────────────────────────────


def test_triggers_during_build_collapse_to_one_rerun():
    calls: list[int] = []

    def build():
        calls.append(1)
        if len(calls) == 1:
            assert builder.trigger() is False
            assert builder.trigger() is False
            assert builder.trigger() is False

    builder = CoalescingBuilder(build)
    assert builder.trigger() is True
    assert builder.builds == 2
    assert builder.trigger() is True
    assert builder.builds == 3


def test_concurrent_triggers_collapse():
    started = threading.Event()
    release = threading.Event()

    def build():
        if builder.builds == 1:
            started.set()
            release.wait(5)

    builder = CoalescingBuilder(build)
    runner = threading.Thread(target=builder.trigger)
    runner.start()
    assert started.wait(5)

    results = [builder.trigger() for _ in range(5)]
    release.set()
    runner.join(5)

    assert results == [False] * 5
    assert builder.builds == 2


def test_build_errors_are_swallowed_and_logged(caplog):
    def build():
        raise RuntimeError("boom")

    builder = CoalescingBuilder(build)
    with caplog.at_level("ERROR", logger="fsblog.dev"):
        assert builder.trigger() is True
    assert "build failed" in caplog.text
    assert builder.trigger() is True
    assert builder.builds == 2


def test_last_result_kept():
    builder = CoalescingBuilder(lambda: "report")
    builder.trigger()
    assert builder.last_result == "report"


# ── Change filtering ─────────────────────────────────────────────────


@pytest.fixture
def handler_setup(tmp_path: Path):
    fired = threading.Event()
    handler = _MarkdownChangeHandler(tmp_path.resolve(), [".obsidian/**"], fired.set, 0.01)
    return tmp_path, handler, fired


def test_relevant_paths(handler_setup):
    root, handler, _ = handler_setup
    assert handler.relevant(str(root / "notes" / "a.md"))
    assert handler.relevant(str(root / "A.MD"))
    assert not handler.relevant(str(root / "a.txt"))
    assert not handler.relevant(str(root / ".obsidian" / "workspace.md"))
    assert not handler.relevant(str(root.parent / "elsewhere.md"))


def test_markdown_event_fires_callback(handler_setup):
    root, handler, fired = handler_setup
    handler.on_any_event(FileModifiedEvent(str(root / "a.md")))
    assert fired.wait(2)


def test_move_into_markdown_counts(handler_setup):
    root, handler, fired = handler_setup
    handler.on_any_event(FileMovedEvent(str(root / "a.tmp"), str(root / "a.md")))
    assert fired.wait(2)


def test_other_events_ignored(handler_setup):
    root, handler, fired = handler_setup
    handler.on_any_event(FileModifiedEvent(str(root / "a.png")))
    assert not fired.wait(0.1)


# ── Output resolution and server ─────────────────────────────────────


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    out = tmp_path / "out"
    (out / "posts" / "hello").mkdir(parents=True)
    (out / "index.html").write_text("home")
    (out / "404.html").write_text("missing")
    (out / "manifest.json").write_text("{}")
    (out / "posts" / "hello" / "index.html").write_text("hello page")
    return out


def test_resolve_output_file(out_dir: Path):
    assert resolve_output_file(out_dir, "/") == out_dir / "index.html"
    assert resolve_output_file(out_dir, "/manifest.json") == out_dir / "manifest.json"
    assert resolve_output_file(out_dir, "/posts/hello/") == out_dir / "posts" / "hello" / "index.html"
    assert resolve_output_file(out_dir, "/posts/hello") == out_dir / "posts" / "hello" / "index.html"
    assert resolve_output_file(out_dir, "/posts/hello/?x=1") == out_dir / "posts" / "hello" / "index.html"
    assert resolve_output_file(out_dir, "/nope/") == out_dir / "404.html"
    assert resolve_output_file(out_dir, "/../secret") is None
    assert resolve_output_file(out_dir, "/%2e%2e/secret") is None


def test_dev_server_serves_output(out_dir: Path):
    server = make_dev_server(out_dir, port=0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    base = f"http://127.0.0.1:{server.server_address[1]}"
    try:
        with urllib.request.urlopen(f"{base}/posts/hello/") as resp:
            assert resp.status == 200
            assert resp.read() == b"hello page"
            assert resp.headers["Content-Type"].startswith("text/html")

        with pytest.raises(urllib.error.HTTPError) as exc_info:
            urllib.request.urlopen(f"{base}/nope/")
        assert exc_info.value.code == 404
        assert exc_info.value.read() == b"missing"
    finally:
        server.shutdown()
        server.server_close()
