"""Pydantic models for the vocabulary service and its API."""

from __future__ import annotations

from pydantic import BaseModel

from meshvocab.models.record_models import MeshRecord


class VocabularyConfig(BaseModel):
    descriptor_file: str | None = None
    tree_file: str | None = None
    encoding: str = "utf-8"
    queue_size: int = 1000
    progress_interval: int = 1_000_000


class VocabularyStatus(BaseModel):
    loaded: bool
    loading: bool = False
    record_count: int = 0
    tree_number_count: int = 0
    tree_node_count: int = 0
    error: str | None = None


class RecordResponse(BaseModel):
    ui: str
    heading: str
    tree_numbers: list[str]
    scope_note: str
    entries: list[str]  # sorted

    @classmethod
    def from_record(cls, record: MeshRecord) -> RecordResponse:
        return cls(
            ui=record.ui,
            heading=record.mh,
            tree_numbers=list(record.mn),
            scope_note=record.ms,
            entries=sorted(record.entries),
        )


class DescendantsResponse(BaseModel):
    prefix: str
    found: bool
    descendants: list[str]  # sorted
    total: int
