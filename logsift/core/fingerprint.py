"""Fingerprinting logic for normalizing and grouping errors.

This module provides the core algorithm for converting LogRecord instances
into stable fingerprints that identify failure patterns across multiple
occurrences.
"""

import re
import zlib

from .frames import FrameClassifier
from .models import LogRecord, ParsedTrace
from .parser import TraceParser

DEFAULT_FINGERPRINT_FRAMES = 5
SHORT_ID_PREFIX = "ERR-"
EMPTY_MESSAGE_PLACEHOLDER = "<EMPTY>"

# Applied in order on the evolving string; later patterns must not re-match
# text already replaced by earlier placeholders.
_NORMALIZATION_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (
        re.compile(
            r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
            re.IGNORECASE,
        ),
        "<UUID>",
    ),
    (re.compile(r"\b\d{6,}\b"), "<ID>"),
    (re.compile(r"\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2}"), "<TIMESTAMP>"),
    (re.compile(r"\b\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}\b"), "<IP>"),
    (re.compile(r"[\w.+-]+@[\w.-]+\.[a-zA-Z]{2,}"), "<EMAIL>"),
    (re.compile(r'"[^"]+"'), '"<STRING>"'),
    (re.compile(r"'[^']+'"), "'<STRING>'"),
)


class Fingerprinter:
    """Produces stable fingerprints from log records.

    Three mutually exclusive tiers are tried in order:

    1. Stack trace: exception type plus the top N user frames.
    2. Location: the record's explicit ``class.method:line``.
    3. Message: the normalized message template.

    Same bug, different occurrence → same fingerprint.
    """

    def __init__(
        self,
        parser: TraceParser | None = None,
        classifier: FrameClassifier | None = None,
        frame_count: int = DEFAULT_FINGERPRINT_FRAMES,
    ):
        if frame_count <= 0:
            raise ValueError("frame_count must be positive")
        self.parser = parser or TraceParser()
        self.classifier = classifier or FrameClassifier()
        self.frame_count = frame_count

    def fingerprint(self, record: LogRecord, trace: ParsedTrace | None = None) -> str:
        """Create the grouping key for a record. Never returns an empty string.

        Args:
            record: The record to fingerprint.
            trace: Already-parsed trace for the record, to avoid parsing twice.
        """
        if trace is None:
            trace = self.trace_for(record)
        if trace is not None:
            trace_fingerprint = self.trace_fingerprint(trace)
            if trace_fingerprint is not None:
                return trace_fingerprint

        if (
            record.class_name
            or record.method_name is not None
            or record.line_number is not None
        ):
            return self.location_fingerprint(record)

        return self.normalize_message(record.message) or EMPTY_MESSAGE_PLACEHOLDER

    def trace_for(self, record: LogRecord) -> ParsedTrace | None:
        """The record's structured trace, parsing its text when needed."""
        if record.parsed_trace is not None:
            return record.parsed_trace
        if record.has_stack_trace:
            return self.parser.parse(record.stack_trace)
        return None

    def trace_fingerprint(self, trace: ParsedTrace) -> str | None:
        """``type|class.method:line|...`` over the top user frames.

        Returns:
            The fingerprint, or None when the trace has no user frames.
        """
        user_frames = self.classifier.user_frames(trace.frames)[: self.frame_count]
        if not user_frames:
            return None

        components = [trace.exception_type or "Unknown"]
        components.extend(frame.fingerprint() for frame in user_frames)
        return "|".join(components)

    @staticmethod
    def location_fingerprint(record: LogRecord) -> str:
        """``class.method:line`` from whichever location fields are present."""
        fingerprint = record.class_name or ""
        if record.method_name is not None:
            fingerprint += f".{record.method_name}"
        if record.line_number is not None:
            fingerprint += f":{record.line_number}"
        return fingerprint

    @staticmethod
    def normalize_message(message: str | None) -> str:
        """Replace variable parts (UUIDs, IDs, timestamps, IPs, emails, quoted
        strings) with placeholders.

        Examples:
        'User 12345678 not found'
        → 'User <ID> not found'

        'Login failed for "bob" from 10.0.0.5'
        → 'Login failed for "<STRING>" from <IP>'
        """
        if message is None:
            return ""

        normalized = message
        for pattern, placeholder in _NORMALIZATION_RULES:
            normalized = pattern.sub(placeholder, normalized)
        return normalized.strip()

    @staticmethod
    def short_id(fingerprint: str) -> str:
        """Human-readable handle: prefix plus 8 hex digits of a 32-bit hash.

        A display convenience only; distinct fingerprints may collide.
        """
        return f"{SHORT_ID_PREFIX}{zlib.crc32(fingerprint.encode('utf-8')):08X}"
