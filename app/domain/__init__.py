"""Records, request payloads, errors and security helpers.

Nothing in here knows about FastAPI or the filesystem, so the services and
the smoke runner can share it.
"""
__all__ = ["errors", "records", "requests", "security"]
