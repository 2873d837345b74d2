"""External adapters for logsift.

This package contains all external dependencies (SQLite, Supabase, report
files, the CLI) and provides implementations of the core port interfaces.

Adapter Organization:

- store/: Log record persistence and queries (SQLite, Supabase)
- report/: Presenting scan results (stdout, Markdown, JSON)
- cli/: Interactive cluster inspection commands
"""
