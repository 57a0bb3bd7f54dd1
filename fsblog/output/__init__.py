from .gc import GcReport, collect_garbage, remove_empty_parents, remove_file_if_exists
from .manifest import build_manifest, build_tree, manifest_to_json, recent_docs
from .writer import OutputWriter, RuntimeAssets

__all__ = [
    "GcReport",
    "OutputWriter",
    "RuntimeAssets",
    "build_manifest",
    "build_tree",
    "collect_garbage",
    "manifest_to_json",
    "recent_docs",
    "remove_empty_parents",
    "remove_file_if_exists",
]
