"""Log capture adapters.

Feed an application's own ``logging`` output into a log store:
- handler: enriching, batching ``logging.Handler``
"""
