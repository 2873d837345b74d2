"""Command-line interface adapters.

Provides CLI commands for inspecting scan results:
- scan: Rebuild clusters from recent logs
- clusters: List clusters
- details: Show one cluster
- context: Show source code around a cluster's location
"""
