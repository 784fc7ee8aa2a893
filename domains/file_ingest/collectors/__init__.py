"""
File Ingestion Collectors

Long-running components that discover files and schedule their processing:
- pool.py - Bounded worker pool with backlog and rejection
- watcher.py - Folder watcher submitting newly created files
- recovery.py - Startup scan of files already in the folder
- pipeline.py - Orchestrator owning all of the above
"""
