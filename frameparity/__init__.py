"""Differential comparison of columnar files against ingested in-memory frames.

Read a file through a trusted reference reader and compare it, value by value,
with the frame an ingestion pipeline produced from the same file.

See :py:class:`frameparity.comparator.FrameComparator` for the entry point.
"""
