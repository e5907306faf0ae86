"""Streaming parser for the MeSH descriptor (ASCII field-record) format.

The input is a sequence of lines such as::

    *NEWRECORD
    MH = Calcimycin
    ENTRY = A-23187|T109|T195|LAB|NRW|NLM (1991)|900308|abbcdef
    MN = D03.633.100.221.173
    UI = D000001

Records are produced by a single background worker and handed to the consumer
through a bounded queue. The records index (tree number -> record) is built as
a side effect of ``MN`` commits and is only released with the final
``ParseCompletion``, once the worker is done writing it.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Iterable

from meshvocab.models.record_models import (
    MeshRecord,
    ParseCompletion,
    ParseOutcome,
    ParseResult,
    RecordsIndex,
)

logger = logging.getLogger(__name__)

NEW_RECORD = "*NEWRECORD"
COMMENT_MARKER = "!"
FIELD_SEPARATOR = " = "
SYNONYM_FIELDS = frozenset({"ENTRY", "PRINT ENTRY"})

DEFAULT_QUEUE_SIZE = 1000
DEFAULT_PROGRESS_INTERVAL = 1_000_000

# How often a worker blocked on a full queue re-checks for cancellation
_PUT_POLL_SECONDS = 0.1


class MeshReadError(OSError):
    """Raised when a line source fails before a clean end of input."""


class ParseCancelled(RuntimeError):
    """Raised when a parse was stopped by its consumer before completion."""


class _Cancelled(Exception):
    pass


def normalize_entry(value: str) -> str:
    """Turn a raw ENTRY value into a synonym.

    Keeps the term before the first ``|``, inverts "Last, First" into
    "First Last" and strips quote characters.
    """
    term = value.split("|", 1)[0]
    if ", " in term:
        last, first = term.split(", ", 1)
        term = f"{first} {last}"
    return term.replace('"', "")


def raise_for_outcome(result: ParseResult | ParseCompletion) -> None:
    """Raise the matching exception if a parse did not complete."""
    if result.outcome == ParseOutcome.IO_FAILURE:
        raise MeshReadError(result.error or "Descriptor input could not be read")
    if result.outcome == ParseOutcome.CANCELLED:
        raise ParseCancelled("Descriptor parse was cancelled")


class RecordStream:
    """Iterator over records as the background worker finalizes them.

    Iteration stops when the worker delivers its ``ParseCompletion``, which is
    then available as ``completion``. Leaving a ``with`` block before the end
    cancels the worker.
    """

    def __init__(
        self,
        channel: queue.Queue,
        cancel_event: threading.Event,
        worker: threading.Thread,
    ) -> None:
        self._channel = channel
        self._cancel_event = cancel_event
        self._worker = worker
        self.completion: ParseCompletion | None = None

    def __iter__(self) -> RecordStream:
        return self

    def __next__(self) -> MeshRecord:
        if self.completion is not None:
            raise StopIteration
        item = self._channel.get()
        if isinstance(item, ParseCompletion):
            self._finish(item)
            raise StopIteration
        return item

    def __enter__(self) -> RecordStream:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.completion is None:
            self.cancel()

    @property
    def done(self) -> bool:
        return self.completion is not None

    def cancel(self) -> ParseCompletion:
        """Ask the worker to stop, drain what it already queued, and wait for it."""
        self._cancel_event.set()
        while self.completion is None:
            item = self._channel.get()
            if isinstance(item, ParseCompletion):
                self._finish(item)
        return self.completion

    def _finish(self, completion: ParseCompletion) -> None:
        self._worker.join()
        self.completion = completion


class MeshRecordParser:
    """Parses descriptor lines into ``MeshRecord`` objects.

    A parser runs once: create a new one for each pass over the input.
    ``lines`` is any iterable of text lines (an open file, a list, ...);
    the parser never opens files itself.
    """

    def __init__(
        self,
        lines: Iterable[str],
        queue_size: int = DEFAULT_QUEUE_SIZE,
        progress_interval: int = DEFAULT_PROGRESS_INTERVAL,
    ) -> None:
        self._lines = lines
        self._queue_size = queue_size
        self._progress_interval = progress_interval
        self._index: RecordsIndex = {}
        self._started = False
        self.line_count = 0
        self.record_count = 0

    def parse_to_channel(
        self, cancel_event: threading.Event | None = None
    ) -> RecordStream:
        """Start the background worker and return a stream of its records."""
        if self._started:
            raise RuntimeError("MeshRecordParser can only be run once")
        self._started = True

        channel: queue.Queue = queue.Queue(maxsize=self._queue_size)
        if cancel_event is None:
            cancel_event = threading.Event()
        worker = threading.Thread(
            target=self._run,
            args=(channel, cancel_event),
            name="mesh-record-parser",
            daemon=True,
        )
        worker.start()
        return RecordStream(channel, cancel_event, worker)

    def parse_to_list_and_index(self) -> ParseResult:
        """Parse everything and return the ordered records plus the index.

        No records are returned when the parse did not complete.
        """
        stream = self.parse_to_channel()
        records = list(stream)
        completion = stream.completion
        if completion.outcome != ParseOutcome.COMPLETED:
            records = []
        return ParseResult(
            records=records,
            index=completion.index,
            outcome=completion.outcome,
            line_count=completion.line_count,
            error=completion.error,
        )

    def _run(self, channel: queue.Queue, cancel_event: threading.Event) -> None:
        outcome = ParseOutcome.IO_FAILURE
        error: str | None = "Parser worker stopped unexpectedly"
        try:
            self._parse(channel, cancel_event)
            outcome, error = ParseOutcome.COMPLETED, None
            logger.info(
                "Parsed %d descriptor records from %d lines",
                self.record_count,
                self.line_count,
            )
        except _Cancelled:
            outcome, error = ParseOutcome.CANCELLED, None
            logger.info("Descriptor parse cancelled after %d lines", self.line_count)
        except MeshReadError as e:
            error = str(e)
            logger.error("%s", e)
        except Exception as e:
            error = str(e) or type(e).__name__
            logger.exception(
                "Descriptor parse failed at line %d: %s", self.line_count, e
            )
        finally:
            channel.put(
                ParseCompletion(
                    outcome=outcome,
                    index=self._index if outcome == ParseOutcome.COMPLETED else {},
                    record_count=self.record_count,
                    line_count=self.line_count,
                    error=error,
                )
            )

    def _parse(self, channel: queue.Queue, cancel_event: threading.Event) -> None:
        record: MeshRecord | None = None
        field_name: str | None = None
        buffer: list[str] = []

        lines = iter(self._lines)
        while True:
            if cancel_event.is_set():
                raise _Cancelled
            try:
                raw = next(lines)
            except StopIteration:
                break
            except (OSError, UnicodeDecodeError) as e:
                raise MeshReadError(
                    f"Error while reading descriptor input at line {self.line_count + 1}: {e}"
                ) from e

            self.line_count += 1
            if self._progress_interval and self.line_count % self._progress_interval == 0:
                logger.info("Read %d descriptor lines", self.line_count)

            line = raw.rstrip("\r\n")

            if line == NEW_RECORD:
                if record is not None:
                    self._commit_field(record, field_name, "".join(buffer))
                    self._emit(channel, record, cancel_event)
                record = MeshRecord()
                field_name = None
                buffer = []
                continue

            if not line.strip() or line.startswith(COMMENT_MARKER):
                continue

            # Preamble before the first record
            if record is None:
                continue

            name, sep, value = line.partition(FIELD_SEPARATOR)
            if not sep:
                if field_name is None:
                    logger.warning(
                        "Descriptor line %d is outside any field, ignored: %r",
                        self.line_count,
                        line,
                    )
                    continue
                buffer.append(line.strip())
                continue

            self._commit_field(record, field_name, "".join(buffer))
            field_name = name.strip()
            value = value.strip()
            buffer = [value] if value else []

        if record is not None:
            self._commit_field(record, field_name, "".join(buffer))
            self._emit(channel, record, cancel_event)

    def _emit(
        self,
        channel: queue.Queue,
        record: MeshRecord,
        cancel_event: threading.Event,
    ) -> None:
        while True:
            try:
                channel.put(record, timeout=_PUT_POLL_SECONDS)
                break
            except queue.Full:
                if cancel_event.is_set():
                    raise _Cancelled
        self.record_count += 1

    def _commit_field(
        self, record: MeshRecord, field_name: str | None, value: str
    ) -> None:
        if field_name is None or not value:
            return

        if field_name == "UI":
            record.ui = value
        elif field_name == "MH":
            record.mh = value
        elif field_name == "MS":
            record.ms = value
        elif field_name == "MN":
            record.mn.append(value)
            self._index[value] = record
        elif field_name in SYNONYM_FIELDS:
            record.entries.add(normalize_entry(value))
