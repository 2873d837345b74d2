"""Core domain logic for the logsift clustering pipeline.

This package contains zero external dependencies and represents
the pure algorithmic core: parsing, fingerprinting, clustering,
merging and code context resolution. All adapters and external
integrations are handled by the adapters package.
"""

from .clustering import ClusterEngine
from .context import CodeContextResolver, SourceReadError
from .fingerprint import Fingerprinter
from .frames import FrameClassifier
from .merger import ClusterMerger
from .models import (
    ClusterSeverity,
    CodeContext,
    ErrorCluster,
    LogLevel,
    LogRecord,
    ParsedTrace,
    ScanResult,
    SourceLocation,
    StackFrame,
)
from .parser import TraceParser

__all__ = [
    "ClusterEngine",
    "ClusterMerger",
    "ClusterSeverity",
    "CodeContext",
    "CodeContextResolver",
    "ErrorCluster",
    "Fingerprinter",
    "FrameClassifier",
    "LogLevel",
    "LogRecord",
    "ParsedTrace",
    "ScanResult",
    "SourceLocation",
    "SourceReadError",
    "StackFrame",
    "TraceParser",
]
