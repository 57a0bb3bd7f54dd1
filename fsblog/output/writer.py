"""OutputWriter: hash-ledgered writes into the output directory."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from fsblog.cache.hashing import make_hash, short_hash
from fsblog.output.gc import remove_file_if_exists

logger = logging.getLogger(__name__)

RUNTIME_DIR = Path(__file__).resolve().parent.parent / "runtime"


@dataclass(frozen=True)
class RuntimeAssets:
    js_rel_path: str
    css_rel_path: str


def is_runtime_asset(rel_path: str) -> bool:
    return rel_path.startswith("assets/app") and rel_path.endswith((".js", ".css"))


class OutputWriter:
    """Writes files under *out_dir*, skipping content the previous build wrote.

    Every output path gets an entry in ``next_hashes``, whether or not it
    was written, so the ledger always describes the complete output set.
    """

    def __init__(self, out_dir: Path, previous_hashes: dict[str, str] | None = None) -> None:
        self.out_dir = Path(out_dir)
        self.previous_hashes = dict(previous_hashes or {})
        self.next_hashes: dict[str, str] = {}
        self.written = 0
        self.skipped = 0

    def path_for(self, rel_path: str) -> Path:
        return self.out_dir / rel_path

    def record(self, rel_path: str, output_hash: str) -> None:
        """Ledger *rel_path* without writing it."""
        self.next_hashes[rel_path] = output_hash

    def write(self, rel_path: str, content: str) -> bool:
        """Write *content* unless the previous ledger already has it.

        Returns True when the file was written.
        """
        output_hash = make_hash(content)
        self.record(rel_path, output_hash)

        if self.previous_hashes.get(rel_path) == output_hash:
            self.skipped += 1
            return False

        dest = self.path_for(rel_path)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(content, encoding="utf-8")
        self.written += 1
        logger.debug("wrote %s (%d bytes)", rel_path, len(content))
        return True

    def write_ledgered(self, rel_path: str, content: str, output_hash: str) -> None:
        """Write *content* unconditionally, ledgered under *output_hash*."""
        self.record(rel_path, output_hash)
        dest = self.path_for(rel_path)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(content, encoding="utf-8")
        self.written += 1

    def write_runtime_assets(self, runtime_dir: Path = RUNTIME_DIR) -> RuntimeAssets:
        """Write the content-hashed runtime script and stylesheet.

        Runtime assets from the previous ledger with other names are removed.
        """
        runtime_js = (runtime_dir / "app.js").read_text(encoding="utf-8")
        runtime_css = (runtime_dir / "app.css").read_text(encoding="utf-8")
        assets = RuntimeAssets(
            js_rel_path=f"assets/app.{short_hash(runtime_js)}.js",
            css_rel_path=f"assets/app.{short_hash(runtime_css)}.css",
        )

        current = {assets.js_rel_path, assets.css_rel_path}
        for previous_path in self.previous_hashes:
            if is_runtime_asset(previous_path) and previous_path not in current:
                if remove_file_if_exists(self.path_for(previous_path)):
                    logger.info("removed stale runtime asset %s", previous_path)

        self.write(assets.js_rel_path, runtime_js)
        self.write(assets.css_rel_path, runtime_css)
        return assets
