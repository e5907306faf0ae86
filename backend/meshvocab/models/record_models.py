"""Pydantic models for parsed MeSH descriptor records and parse outcomes."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class MeshRecord(BaseModel):
    """One descriptor record, mutated field by field while it is being parsed."""

    ui: str = ""  # unique identifier, e.g. "D000001"
    mh: str = ""  # main heading
    mn: list[str] = []  # tree numbers, in encounter order
    ms: str = ""  # scope note
    entries: set[str] = set()  # synonyms, "Last, First" already inverted


# Tree number -> the record that declared it. Values are shared, not copied.
RecordsIndex = dict[str, MeshRecord]


class ParseOutcome(str, Enum):
    COMPLETED = "completed"
    IO_FAILURE = "io_failure"
    CANCELLED = "cancelled"


class ParseCompletion(BaseModel):
    """Terminal message of a record stream.

    The index is only populated for a completed parse; it is handed over here,
    after the worker has finished writing it, and nowhere else.
    """

    outcome: ParseOutcome
    index: RecordsIndex = {}
    record_count: int = 0
    line_count: int = 0
    error: str | None = None


class ParseResult(BaseModel):
    """Fully materialized result of a bulk parse."""

    records: list[MeshRecord]
    index: RecordsIndex
    outcome: ParseOutcome = ParseOutcome.COMPLETED
    line_count: int = 0
    error: str | None = None
