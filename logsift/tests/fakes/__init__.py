"""Fake/mock implementations of core ports for testing.

These in-memory implementations allow core domain logic to be tested
without external dependencies:

- FakeLogStorePort: In-memory log record storage
- FakeReportPort: Captured reports for assertion
- FakeScanPort: Canned scan results and clusters
"""

from .report import FakeReportPort
from .scan import FakeScanPort
from .store import FakeLogStorePort

__all__ = [
    "FakeLogStorePort",
    "FakeReportPort",
    "FakeScanPort",
]
