"""Log store adapters for persistence and querying.

Implementations support multiple backends:
- SQLite (zero-config, single-file)
- Supabase (remote PostgREST API)
"""
