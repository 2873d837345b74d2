"""Source code context extraction.

Finds the source file behind an error location and extracts the enclosing
class and method, a bounded window of lines, imports and class fields.
Boundaries are found by line patterns and brace counting only; there is no
real parsing of the source language.
"""

import logging
import os
import re
from collections.abc import Iterable, Sequence
from pathlib import Path

from .models import CodeContext

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_LINES = 10
DEFAULT_SOURCE_EXTENSIONS: tuple[str, ...] = (".java",)

# Words that can open a line like a declaration but never name a type
_NOT_A_TYPE = r"(?!(?:return|new|throw|else|if|while|for|switch|catch|case|do|try|synchronized|assert|yield)\b)"

METHOD_PATTERN = re.compile(
    r"^\s*(?:(?:public|private|protected|static|final|abstract|synchronized|native|default)\s+)*"
    r"(?:<[^>]+>\s*)?"  # generic type parameters
    + _NOT_A_TYPE
    + r"([\w.]+(?:<.*>)?(?:\[\])*)\s+"  # return type
    r"(\w+)\s*\("  # method name
)

CLASS_PATTERN = re.compile(
    r"^\s*(?:(?:public|private|protected|static|final|abstract|sealed|non-sealed)\s+)*"
    r"(class|interface|enum|record)\s+(\w+)"
)

IMPORT_PATTERN = re.compile(r"^\s*import\s+(static\s+)?([\w.]+(?:\.\*)?);\s*$")

FIELD_PATTERN = re.compile(
    r"^\s*(?:(?:public|private|protected|static|final|volatile|transient)\s+)*"
    + _NOT_A_TYPE
    + r"([\w.]+(?:<.*>)?(?:\[\])*)\s+(\w+)\s*[;=]"
)


class SourceReadError(Exception):
    """A located source file could not be read.

    Signals an environment problem, as opposed to a file or line that simply
    does not exist (which resolves to None).
    """

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Failed to read source file {path}: {reason}")
        self.path = path


class CodeContextResolver:
    """Resolves class names or file names plus a line into CodeContext."""

    def __init__(
        self,
        source_paths: Iterable[str | Path],
        context_lines: int = DEFAULT_CONTEXT_LINES,
        source_extensions: Iterable[str] = DEFAULT_SOURCE_EXTENSIONS,
    ):
        """Initialize the resolver.

        Args:
            source_paths: Source root directories, searched in order.
            context_lines: Lines to include on each side of the target line.
            source_extensions: File extensions tried when mapping class names.
        """
        if context_lines < 0:
            raise ValueError("context_lines must be non-negative")
        self.source_paths = [Path(p) for p in source_paths]
        self.context_lines = context_lines
        self.source_extensions = tuple(source_extensions)

    def resolve_by_class(self, class_name: str | None, line_number: int) -> CodeContext | None:
        """Resolve context for a fully qualified class name and line."""
        path = self.find_source_file(class_name)
        if path is None:
            return None
        return self.resolve_from_file(path, line_number)

    def resolve_by_file_name(self, file_name: str | None, line_number: int) -> CodeContext | None:
        """Resolve context for a bare file name (e.g. ``OrderService.java``) and line."""
        path = self.find_source_file_by_name(file_name)
        if path is None:
            return None
        return self.resolve_from_file(path, line_number)

    def find_source_file(self, class_name: str | None) -> Path | None:
        """Map ``com.example.Foo$Inner`` to ``com/example/Foo.<ext>`` under a source root.

        The first root containing the file wins.
        """
        if not class_name:
            return None

        # Proxy and synthetic names such as "$Proxy12" leave no usable part
        parts = [part for part in class_name.split("$", 1)[0].split(".") if part]
        if not parts:
            logger.debug(f"No source file name in class: {class_name}")
            return None

        *package, simple_name = parts
        for source_path in self.source_paths:
            for extension in self.source_extensions:
                candidate = source_path.joinpath(*package, simple_name + extension)
                if candidate.is_file():
                    return candidate

        logger.debug(f"Source file not found for class: {class_name}")
        return None

    def find_source_file_by_name(self, file_name: str | None) -> Path | None:
        """Depth-first search of the source roots for a file name."""
        if not file_name:
            return None

        for source_path in self.source_paths:
            for dirpath, dirnames, filenames in os.walk(source_path, onerror=_log_walk_error):
                dirnames.sort()
                if file_name in filenames:
                    return Path(dirpath) / file_name

        logger.debug(f"Source file not found: {file_name}")
        return None

    def resolve_from_file(self, path: str | Path, line_number: int) -> CodeContext | None:
        """Extract context from a specific file.

        Args:
            path: Source file to read.
            line_number: 1-based target line.

        Returns:
            The context, or None when the line is outside the file.

        Raises:
            SourceReadError: If the file exists but cannot be read.
        """
        path = Path(path)
        try:
            lines = path.read_text(encoding="utf-8", errors="replace").splitlines()
        except OSError as e:
            logger.error(f"Error reading source file {path}: {e}")
            raise SourceReadError(path, str(e)) from e

        if line_number < 1 or line_number > len(lines):
            logger.warning(
                f"Line number {line_number} out of range for file {path} "
                f"(total lines: {len(lines)})"
            )
            return None

        class_name = find_enclosing_class(lines, line_number)
        method = find_enclosing_method(lines, line_number)
        method_name = None
        method_body = None
        if method is not None:
            method_name, start, end = method
            method_body = "\n".join(lines[start - 1 : end])

        start_line = max(1, line_number - self.context_lines)
        end_line = min(len(lines), line_number + self.context_lines)

        return CodeContext(
            file_path=str(path),
            target_line=line_number,
            class_name=class_name,
            method_name=method_name,
            method_body=method_body,
            surrounding_lines=tuple(lines[start_line - 1 : end_line]),
            start_line=start_line,
            end_line=end_line,
            imports=tuple(extract_imports(lines)),
            class_fields=tuple(extract_class_fields(lines, class_name)),
        )


def extract_imports(lines: Sequence[str]) -> list[str]:
    """Import statements, scanning until the first class declaration."""
    imports = []
    for line in lines:
        if IMPORT_PATTERN.match(line):
            imports.append(line.strip())
        if CLASS_PATTERN.match(line):
            break
    return imports


def find_enclosing_class(lines: Sequence[str], line_number: int) -> str | None:
    """Name of the last class-like declaration at or before the target line."""
    current = None
    for line in lines[:line_number]:
        match = CLASS_PATTERN.match(line)
        if match:
            current = match.group(2)
    return current


def find_enclosing_method(
    lines: Sequence[str], line_number: int
) -> tuple[str, int, int] | None:
    """Locate the method containing the target line.

    Scans backward keeping a brace balance (``}`` adds, ``{`` subtracts); a
    method declaration is accepted once the balance shows we are at its own
    scope depth. A candidate whose body closes before the target line does
    not enclose it.

    Returns:
        ``(method_name, start_line, end_line)`` with 1-based inclusive lines,
        or None when no enclosing method is found.
    """
    balance = 0
    for index in range(line_number - 1, -1, -1):
        line = lines[index]
        balance += line.count("}") - line.count("{")

        match = METHOD_PATTERN.match(line)
        if match and balance <= 0:
            start = index + 1
            end = find_block_end(lines, start)
            if end < line_number:
                return None
            return match.group(2), start, end
    return None


def find_block_end(lines: Sequence[str], start_line: int) -> int:
    """Line where the brace balance opened at or after ``start_line`` returns to zero.

    Runs to the end of the file if the block never closes.
    """
    balance = 0
    opened = False
    for index in range(start_line - 1, len(lines)):
        for char in lines[index]:
            if char == "{":
                balance += 1
                opened = True
            elif char == "}":
                balance -= 1
        if opened and balance == 0:
            return index + 1
    return len(lines)


def extract_class_fields(lines: Sequence[str], class_name: str | None) -> list[str]:
    """Field declarations directly inside the named class body (brace depth 1)."""
    if class_name is None:
        return []

    fields = []
    in_class = False
    opened = False
    depth = 0
    for line in lines:
        if not in_class:
            match = CLASS_PATTERN.match(line)
            if not match or match.group(2) != class_name:
                continue
            in_class = True

        depth += line.count("{") - line.count("}")
        if depth > 0:
            opened = True

        if depth == 1 and FIELD_PATTERN.match(line):
            fields.append(line.strip())

        if opened and depth == 0:
            break
    return fields


def _log_walk_error(error: OSError) -> None:
    logger.warning(f"Error searching source path: {error}")
