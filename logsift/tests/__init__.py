"""Test suite for logsift.

Organized into three categories:

1. core/: Unit tests for core domain logic
   - Minimal dependencies, fast execution
   - Uses in-memory fakes for ports

2. adapters/: Integration tests for adapter implementations
   - Tests against a temporary SQLite database or a mocked HTTP client
   - Validates adapter behavior and error handling

3. fakes/: Port implementations for testing
   - In-memory implementations of LogStorePort, ReportPort and ScanPort
   - Used by core unit tests and CLI tests
"""
