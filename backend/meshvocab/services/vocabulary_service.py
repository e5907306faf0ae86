"""Vocabulary singleton: loads the descriptor file and tree listing once."""

from __future__ import annotations

import asyncio
import logging
import os
import threading

from meshvocab.models.record_models import MeshRecord, RecordsIndex
from meshvocab.models.vocabulary_models import VocabularyConfig, VocabularyStatus
from meshvocab.services.mesh_tree import MeshNode
from meshvocab.services.record_parser import MeshRecordParser, raise_for_outcome
from meshvocab.services.tree_parser import MeshTreeParser

logger = logging.getLogger(__name__)


class Vocabulary:
    """Loaded lookup structures: records, tree-number index, UI index and tree."""

    def __init__(
        self,
        records: list[MeshRecord],
        index: RecordsIndex,
        tree: MeshNode,
    ) -> None:
        self.records = records
        self.index = index
        self.tree = tree
        self.by_ui: dict[str, MeshRecord] = {r.ui: r for r in records if r.ui}
        self.node_count = tree.node_count()


# Module-level singleton
_vocabulary: Vocabulary | None = None
_lock = threading.Lock()
_loading = False
_error: str | None = None


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %d", name, raw, default)
        return default


def _config_from_env() -> VocabularyConfig:
    """Build VocabularyConfig from environment variables."""
    return VocabularyConfig(
        descriptor_file=os.environ.get("MESH_DESCRIPTOR_FILE"),
        tree_file=os.environ.get("MESH_TREE_FILE"),
        encoding=os.environ.get("MESH_FILE_ENCODING", "utf-8"),
        queue_size=_int_from_env("MESH_QUEUE_SIZE", 1000),
        progress_interval=_int_from_env("MESH_PROGRESS_INTERVAL", 1_000_000),
    )


def load_vocabulary(config: VocabularyConfig | None = None) -> Vocabulary:
    """Read the configured files into a new Vocabulary.

    Raises ValueError when no file is configured, OSError (including
    MeshReadError) when a file cannot be opened or read.
    """
    if config is None:
        config = _config_from_env()
    if not config.descriptor_file and not config.tree_file:
        raise ValueError(
            "No MeSH files configured (set MESH_DESCRIPTOR_FILE and/or MESH_TREE_FILE)"
        )

    records: list[MeshRecord] = []
    index: RecordsIndex = {}
    if config.descriptor_file:
        logger.info("Loading MeSH descriptors from %s", config.descriptor_file)
        with open(config.descriptor_file, encoding=config.encoding) as fh:
            parser = MeshRecordParser(
                fh,
                queue_size=config.queue_size,
                progress_interval=config.progress_interval,
            )
            result = parser.parse_to_list_and_index()
        raise_for_outcome(result)
        records, index = result.records, result.index

    tree = MeshNode()
    if config.tree_file:
        logger.info("Loading MeSH tree listing from %s", config.tree_file)
        with open(config.tree_file, encoding=config.encoding) as fh:
            MeshTreeParser(fh).parse_mesh_tree(tree)

    return Vocabulary(records, index, tree)


def get_vocabulary() -> Vocabulary:
    """Get the cached Vocabulary. Loads from the configured files on first call."""
    global _vocabulary, _loading, _error
    if _vocabulary is not None:
        return _vocabulary

    with _lock:
        if _vocabulary is not None:
            return _vocabulary

        _loading = True
        _error = None
        try:
            _vocabulary = load_vocabulary()
            logger.info(
                "MeSH vocabulary loaded: %d records, %d tree numbers",
                len(_vocabulary.records),
                len(_vocabulary.index),
            )
            return _vocabulary
        except Exception as e:
            _error = str(e)
            logger.error("Failed to load MeSH vocabulary: %s", e)
            raise
        finally:
            _loading = False


def reset_vocabulary() -> None:
    """Drop the cached Vocabulary so the next call reloads it."""
    global _vocabulary, _error
    with _lock:
        _vocabulary = None
        _error = None


def get_vocabulary_status() -> VocabularyStatus:
    """Return whether the vocabulary is loaded and basic stats."""
    vocab = _vocabulary
    return VocabularyStatus(
        loaded=vocab is not None,
        loading=_loading,
        record_count=len(vocab.records) if vocab else 0,
        tree_number_count=len(vocab.index) if vocab else 0,
        tree_node_count=vocab.node_count if vocab else 0,
        error=_error,
    )


async def warmup_vocabulary() -> VocabularyStatus:
    """Trigger vocabulary loading in a background thread. Returns current status."""
    loop = asyncio.get_event_loop()
    try:
        await loop.run_in_executor(None, get_vocabulary)
    except Exception:
        pass  # Error captured in _error
    return get_vocabulary_status()


def lookup_by_tree_number(tree_number: str) -> MeshRecord | None:
    return get_vocabulary().index.get(tree_number)


def lookup_by_ui(ui: str) -> MeshRecord | None:
    return get_vocabulary().by_ui.get(ui)


def descendants(prefix: str) -> tuple[bool, list[str]]:
    """Return (prefix found, sorted descendant tree numbers)."""
    tree = get_vocabulary().tree
    if prefix not in tree:
        return False, []
    return True, sorted(tree.get_same_prefix(prefix))
