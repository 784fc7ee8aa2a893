"""
File Ingestion Processors

Per-file processing utilities:
- filter.py - File name prefix/extension filter
- parsers.py - Delimited and fixed-width record parsers
- emitter.py - Segment batching and hand-off to the sender
- lifecycle.py - Pending/terminal file state and the rename/delete step
- runner.py - Parse, emit and retire one file
"""
