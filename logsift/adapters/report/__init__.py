"""Report adapters for presenting scan results.

Implementations:
- stdout (terminal table and details)
- markdown (health report file)
- json (machine-readable document)
- html (styled health report file)
"""
