"""Domain models for the logsift error clustering pipeline.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType


class LogLevel(Enum):
    """Log levels matching standard logging frameworks."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    FATAL = "FATAL"

    @property
    def severity(self) -> int:
        """Numeric ordering of the level (TRACE=0 ... FATAL=5)."""
        return _LEVEL_ORDER[self]

    def is_at_least(self, other: "LogLevel") -> bool:
        """Return True if this level is as severe as or more severe than other."""
        return self.severity >= other.severity

    @classmethod
    def from_string(cls, level: str | None) -> "LogLevel":
        """Parse a level name case-insensitively.

        Common aliases are accepted (WARNING, SEVERE). Empty or unknown
        names fall back to INFO.
        """
        if not level:
            return cls.INFO
        upper = level.strip().upper()
        try:
            return cls(upper)
        except ValueError:
            if upper == "WARNING":
                return cls.WARN
            if upper == "SEVERE":
                return cls.ERROR
            return cls.INFO


_LEVEL_ORDER = {
    LogLevel.TRACE: 0,
    LogLevel.DEBUG: 1,
    LogLevel.INFO: 2,
    LogLevel.WARN: 3,
    LogLevel.ERROR: 4,
    LogLevel.FATAL: 5,
}


@dataclass(frozen=True)
class StackFrame:
    """A single frame in a stack trace.

    Identity for clustering purposes is (class_name, method_name, line_number);
    file name and the native flag do not take part in equality.
    """

    class_name: str
    method_name: str
    file_name: str | None = field(default=None, compare=False)
    line_number: int = -1
    native_method: bool = field(default=False, compare=False)

    @property
    def simple_class_name(self) -> str:
        """Class name without its package."""
        return self.class_name.rsplit(".", 1)[-1]

    @property
    def package_name(self) -> str:
        """Package portion of the class name, empty for the default package."""
        if "." not in self.class_name:
            return ""
        return self.class_name.rsplit(".", 1)[0]

    @property
    def has_source_info(self) -> bool:
        """True when the frame points at a concrete file and line."""
        return self.file_name is not None and self.line_number > 0

    def fingerprint(self) -> str:
        """Frame key used when building trace fingerprints."""
        return f"{self.class_name}.{self.method_name}:{self.line_number}"

    def __str__(self) -> str:
        location = f"{self.class_name}.{self.method_name}"
        if self.native_method:
            return f"{location}(Native Method)"
        if self.file_name is not None and self.line_number >= 0:
            return f"{location}({self.file_name}:{self.line_number})"
        if self.file_name is not None:
            return f"{location}({self.file_name})"
        return f"{location}(Unknown Source)"


@dataclass(frozen=True)
class ParsedTrace:
    """A structured exception with its frames and optional cause.

    Forms a finite singly-linked chain rooted at the outermost exception.
    An empty frame tuple is valid (frame-less or native-only errors).
    """

    exception_type: str
    exception_message: str | None
    frames: tuple[StackFrame, ...] = ()
    caused_by: "ParsedTrace | None" = None

    @property
    def top_frame(self) -> StackFrame | None:
        """First frame (top of stack), if any."""
        return self.frames[0] if self.frames else None

    @property
    def root_cause(self) -> "ParsedTrace":
        """Deepest exception in the cause chain."""
        current = self
        while current.caused_by is not None:
            current = current.caused_by
        return current

    @property
    def depth(self) -> int:
        """Number of exceptions in the chain, including this one."""
        return len(self.cause_chain())

    def cause_chain(self) -> list["ParsedTrace"]:
        """This exception followed by each of its causes, outermost first."""
        chain = []
        current: ParsedTrace | None = self
        while current is not None:
            chain.append(current)
            current = current.caused_by
        return chain

    def __str__(self) -> str:
        lines = []
        for index, node in enumerate(self.cause_chain()):
            header = node.exception_type
            if node.exception_message is not None:
                header = f"{header}: {node.exception_message}"
            lines.append(header if index == 0 else f"Caused by: {header}")
            lines.extend(f"\tat {frame}" for frame in node.frames)
        return "\n".join(lines)


@dataclass(frozen=True)
class LogRecord:
    """A single enriched log record handed over by the ingestion layer.

    Immutable once created. A record may carry raw stack-trace text, an
    already-structured trace, or neither.
    """

    timestamp: datetime
    level: LogLevel
    logger: str
    message: str | None
    stack_trace: str | None = None
    parsed_trace: ParsedTrace | None = None
    class_name: str | None = None
    method_name: str | None = None
    file_name: str | None = None
    line_number: int | None = None
    trace_id: str | None = None
    thread_name: str | None = None
    context: Mapping[str, str] = field(default_factory=dict)  # converted to proxy in __post_init__

    def __post_init__(self) -> None:
        """Convert context dict to read-only proxy."""
        if isinstance(self.context, dict):
            object.__setattr__(self, "context", MappingProxyType(self.context))

    @property
    def is_error(self) -> bool:
        """True for ERROR and FATAL records."""
        return self.level in {LogLevel.ERROR, LogLevel.FATAL}

    @property
    def has_stack_trace(self) -> bool:
        """True when the record carries non-empty stack-trace text."""
        return bool(self.stack_trace)

    @property
    def has_location(self) -> bool:
        """True when the ingestion layer resolved a source location."""
        return self.class_name is not None or self.file_name is not None

    @property
    def full_location(self) -> str | None:
        """Class and method joined as ``class.method`` when both are known."""
        if self.class_name is not None and self.method_name is not None:
            return f"{self.class_name}.{self.method_name}"
        return self.class_name


class ClusterSeverity(Enum):
    """Coarse severity tier derived from a cluster's occurrence count."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True)
class SourceLocation:
    """Where in the source an error cluster is pinned."""

    class_name: str | None = None
    method_name: str | None = None
    file_name: str | None = None
    line_number: int | None = None

    @property
    def full_location(self) -> str:
        """Render as ``class.method:line`` from whichever parts are present."""
        text = self.class_name or ""
        if self.method_name is not None:
            text += f".{self.method_name}"
        if self.line_number is not None:
            text += f":{self.line_number}"
        return text

    def same_position(self, other: "SourceLocation | None") -> bool:
        """True when both locations name the same class, method and line."""
        if other is None or self.class_name is None:
            return False
        return (
            self.class_name == other.class_name
            and self.method_name == other.method_name
            and self.line_number == other.line_number
        )


@dataclass
class ErrorCluster:
    """An aggregate of error records sharing one fingerprint.

    The fingerprint is the identity key; ``id`` is a short display handle
    derived from it and may collide.

    Note: This dataclass is intentionally mutable. It is only updated through
    ``logsift.core.clustering.update_cluster`` by the engine that owns it.
    """

    fingerprint: str
    id: str
    exception_type: str | None = None
    message_template: str | None = None
    primary_location: SourceLocation | None = None
    records: list[LogRecord] = field(default_factory=list)
    first_seen: datetime | None = None
    last_seen: datetime | None = None
    occurrence_count: int = 0
    severity: ClusterSeverity = ClusterSeverity.LOW

    def __post_init__(self) -> None:
        """Validate cluster invariants on creation."""
        if not self.fingerprint:
            raise ValueError("fingerprint must be a non-empty string")
        if self.occurrence_count < 0:
            raise ValueError(
                f"occurrence_count must be >= 0, got {self.occurrence_count}"
            )

    @property
    def full_location(self) -> str:
        """Primary location as ``class.method:line``, empty when unknown."""
        if self.primary_location is None:
            return ""
        return self.primary_location.full_location

    @property
    def most_recent_record(self) -> LogRecord | None:
        """Member record with the latest timestamp."""
        if not self.records:
            return None
        return max(self.records, key=lambda record: record.timestamp)

    def sample_records(self, max_samples: int) -> list[LogRecord]:
        """Representative members: first, evenly stepped middle ones, last."""
        if max_samples <= 0:
            return []
        if len(self.records) <= max_samples:
            return list(self.records)
        if max_samples == 1:
            return [self.records[0]]

        step = len(self.records) // (max_samples - 1)
        samples = [self.records[0]]
        samples.extend(self.records[i * step] for i in range(1, max_samples - 1))
        samples.append(self.records[-1])
        return samples


@dataclass(frozen=True)
class CodeContext:
    """Source excerpt and structure around an error location."""

    file_path: str
    target_line: int
    class_name: str | None
    method_name: str | None
    method_body: str | None
    surrounding_lines: tuple[str, ...]
    start_line: int
    end_line: int
    imports: tuple[str, ...] = ()
    class_fields: tuple[str, ...] = ()

    def formatted_context(self) -> str:
        """Surrounding lines with line numbers and a marker on the target line."""
        rendered = []
        for offset, line in enumerate(self.surrounding_lines):
            line_number = self.start_line + offset
            marker = " >>> " if line_number == self.target_line else "     "
            rendered.append(f"{marker}{line_number:4d} | {line}")
        return "\n".join(rendered)

    def plain_context(self) -> str:
        """Surrounding lines as plain code."""
        return "\n".join(self.surrounding_lines)


@dataclass(frozen=True)
class ScanResult:
    """Summary of a scan cycle execution."""

    logs_scanned: int
    errors_found: int
    clusters_created: int
    timestamp: datetime
    clusters_merged: int = 0  # clusters absorbed by the merge pass
