"""Stack trace parsing.

Recovers structured exceptions (type, message, frames, cause chain) from
free-text stack traces, from structured throwable-like objects, and from
live Python exceptions.
"""

import logging
import os
import re
import traceback
from collections.abc import Callable, Sequence
from typing import Any, Protocol, TypeVar

from .models import ParsedTrace, StackFrame

logger = logging.getLogger(__name__)

DEFAULT_MAX_CAUSE_DEPTH = 64

# "java.lang.NullPointerException: message"
HEADER_PATTERN = re.compile(r"^([\w.$]+)(?::\s*(.*))?$")

# "at com.example.Class.method(File.java:123)", optionally with a module
# prefix such as "java.base/" or "app//". Hidden classes carry a
# per-run "/0x..." address suffix, which is dropped from the class name.
FRAME_PATTERN = re.compile(
    r"^\s*at\s+"
    r"(?:[\w.@-]+/+(?!0x[0-9a-fA-F]+\.))?"  # module prefix
    r"([\w.$]+)(?:/0x[0-9a-fA-F]+)?"  # class, hidden-class address
    r"\.([\w$<>]+)\(([^)]*)\)\s*$"
)

CAUSED_BY_PATTERN = re.compile(r"^\s*Caused by:\s*(.+)$")

# "... 12 more"
ELISION_PATTERN = re.compile(r"^\s*\.\.\.\s*(\d+)\s+more\s*$")

NATIVE_METHOD = "Native Method"
UNKNOWN_SOURCE = "Unknown Source"


class ThrowableLike(Protocol):
    """Structured exception handed over by an instrumented runtime."""

    type_name: str
    message: str | None
    frames: Sequence[StackFrame]
    cause: "ThrowableLike | None"


_Section = tuple[str, str | None, list[StackFrame]]
_T = TypeVar("_T")


class TraceParser:
    """Turns stack traces into ``ParsedTrace`` chains.

    Malformed input never raises: the parser degrades to the best partial
    result it can recover. Cause chains are built iteratively and capped at
    ``max_cause_depth`` exceptions.
    """

    def __init__(self, max_cause_depth: int = DEFAULT_MAX_CAUSE_DEPTH):
        if max_cause_depth <= 0:
            raise ValueError("max_cause_depth must be positive")
        self.max_cause_depth = max_cause_depth

    def parse(self, text: str | None) -> ParsedTrace | None:
        """Parse stack-trace text.

        Args:
            text: Raw exception text as printed by the runtime.

        Returns:
            The outermost exception with its cause chain, or None when the
            text is empty.
        """
        if not text or not text.strip():
            return None

        lines = text.splitlines()
        index = 0
        while not lines[index].strip():
            index += 1

        sections: list[_Section] = []
        header = lines[index].strip()
        index += 1

        while True:
            exception_type, message = self._parse_header(header)
            frames: list[StackFrame] = []
            next_header = None

            while index < len(lines):
                line = lines[index]

                caused_by = CAUSED_BY_PATTERN.match(line)
                if caused_by:
                    next_header = caused_by.group(1).strip()
                    index += 1
                    break

                if ELISION_PATTERN.match(line):
                    index += 1
                    continue

                frame = self.parse_frame(line)
                if frame is None:
                    # End of this exception's frame section
                    break
                frames.append(frame)
                index += 1

            sections.append((exception_type, message, frames))

            if next_header is None:
                break
            if len(sections) >= self.max_cause_depth:
                logger.warning(
                    f"Cause chain exceeds {self.max_cause_depth} exceptions; "
                    f"dropping remaining causes"
                )
                break
            header = next_header

        return self._link(sections)

    def parse_throwable(self, throwable: ThrowableLike | None) -> ParsedTrace | None:
        """Convert an already-structured throwable without any text parsing."""
        return self._chain_from(
            throwable,
            lambda t: (t.type_name, t.message, list(t.frames)),
            lambda t: t.cause,
        )

    def parse_exception(self, exc: BaseException | None) -> ParsedTrace | None:
        """Convert a live Python exception, following ``__cause__``/``__context__``.

        Frames are listed innermost call first, matching the text format.
        The module name of each frame stands in for the class name.
        """
        return self._chain_from(exc, _describe_exception, _next_exception)

    def parse_frame(self, line: str) -> StackFrame | None:
        """Parse a single ``at class.method(location)`` line.

        Returns:
            The frame, or None if the line is not a frame line.
        """
        match = FRAME_PATTERN.match(line)
        if not match:
            return None

        class_name, method_name, location = match.groups()
        location = location.strip()
        file_name = None
        line_number = -1
        native_method = False

        if location == NATIVE_METHOD:
            native_method = True
        elif location and location != UNKNOWN_SOURCE:
            file_part, sep, line_part = location.rpartition(":")
            if sep and file_part:
                file_name = file_part
                if line_part.isdigit():
                    line_number = int(line_part)
            else:
                file_name = location

        return StackFrame(
            class_name=class_name,
            method_name=method_name,
            file_name=file_name,
            line_number=line_number,
            native_method=native_method,
        )

    @staticmethod
    def extract_exception_line(text: str | None) -> str | None:
        """First non-empty line of a stack trace, trimmed."""
        if not text:
            return None
        for line in text.splitlines():
            if line.strip():
                return line.strip()
        return None

    def extract_exception_class(self, text: str | None) -> str | None:
        """Exception type named in the header line of a stack trace."""
        header = self.extract_exception_line(text)
        if header is None:
            return None
        return self._parse_header(header)[0]

    @staticmethod
    def _parse_header(header: str) -> tuple[str, str | None]:
        """Split an exception header into type and message.

        Falls back to splitting at the first colon when the header does not
        look like ``<TypeName>[: <message>]``.
        """
        match = HEADER_PATTERN.match(header)
        if match:
            return match.group(1), match.group(2)

        exception_type, sep, message = header.partition(":")
        if sep and exception_type.strip():
            return exception_type.strip(), message.strip()
        return header, None

    def _chain_from(
        self,
        head: _T | None,
        describe: Callable[[_T], _Section],
        next_of: Callable[[_T], _T | None],
    ) -> ParsedTrace | None:
        """Walk a cause chain with depth and cycle guards."""
        if head is None:
            return None

        sections: list[_Section] = []
        seen: set[int] = set()
        current: _T | None = head
        while current is not None and id(current) not in seen:
            if len(sections) >= self.max_cause_depth:
                logger.warning(
                    f"Cause chain exceeds {self.max_cause_depth} exceptions; "
                    f"dropping remaining causes"
                )
                break
            seen.add(id(current))
            sections.append(describe(current))
            current = next_of(current)

        return self._link(sections)

    @staticmethod
    def _link(sections: list[_Section]) -> ParsedTrace | None:
        """Build the linked chain from the innermost cause outwards."""
        trace = None
        for exception_type, message, frames in reversed(sections):
            trace = ParsedTrace(
                exception_type=exception_type,
                exception_message=message,
                frames=tuple(frames),
                caused_by=trace,
            )
        return trace


def _describe_exception(exc: BaseException) -> _Section:
    exc_type = type(exc)
    if exc_type.__module__ == "builtins":
        type_name = exc_type.__qualname__
    else:
        type_name = f"{exc_type.__module__}.{exc_type.__qualname__}"

    frames = [_frame_from_python(frame, lineno) for frame, lineno in traceback.walk_tb(exc.__traceback__)]
    frames.reverse()

    return type_name, str(exc) or None, frames


def _frame_from_python(frame: Any, lineno: int) -> StackFrame:
    code = frame.f_code
    return StackFrame(
        class_name=frame.f_globals.get("__name__") or "<unknown>",
        method_name=code.co_name,
        file_name=os.path.basename(code.co_filename),
        line_number=lineno if lineno is not None else -1,
    )


def _next_exception(exc: BaseException) -> BaseException | None:
    if exc.__cause__ is not None:
        return exc.__cause__
    if exc.__suppress_context__:
        return None
    return exc.__context__
