"""Parser for the MeSH tree listing (``mtrees``) format.

Each line is ``<heading>;<tree number>``, for example ``Body Regions;A01``.
Parsing is synchronous: the tree numbers are inserted straight into a
caller-supplied ``MeshNode``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from meshvocab.services.mesh_tree import PATH_SEPARATOR, MeshNode
from meshvocab.services.record_parser import MeshReadError

logger = logging.getLogger(__name__)

COLUMN_SEPARATOR = ";"


class MeshTreeParser:
    """Populates a prefix tree from tree-listing lines."""

    def __init__(self, lines: Iterable[str]) -> None:
        self._lines = lines
        self.line_count = 0
        self.skipped_count = 0

    def parse_mesh_tree(self, root: MeshNode) -> int:
        """Insert every tree number into ``root``. Returns the number inserted.

        Lines without a second column are logged and skipped. A failing line
        source raises ``MeshReadError``.
        """
        inserted = 0
        lines = iter(self._lines)
        while True:
            try:
                line = next(lines)
            except StopIteration:
                break
            except (OSError, UnicodeDecodeError) as e:
                raise MeshReadError(
                    f"Error while reading tree listing at line {self.line_count + 1}: {e}"
                ) from e

            self.line_count += 1
            if not line.strip():
                continue

            columns = line.split(COLUMN_SEPARATOR)
            tree_number = columns[1].strip(" \r\n") if len(columns) >= 2 else ""
            if not tree_number:
                self.skipped_count += 1
                logger.warning(
                    "Tree listing line %d has no tree number column, skipped: %r",
                    self.line_count,
                    line.rstrip("\r\n"),
                )
                continue

            root.add(tree_number.split(PATH_SEPARATOR))
            inserted += 1

        logger.info(
            "Loaded %d tree numbers from %d lines (%d skipped)",
            inserted,
            self.line_count,
            self.skipped_count,
        )
        return inserted
