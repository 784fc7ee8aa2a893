"""
File Ingestion Domain

Watches a folder for newly arrived delimited or fixed-width data files:
- Records are parsed into field maps and emitted as bounded segments
- Each file is processed once on a bounded worker pool
- Processed files are renamed or deleted so they are never picked up again
"""

__all__ = ["collectors", "processors"]
