"""Rotating, append-only JSONL storage for request records."""

from bweb_log.store.rotating_file import RotatingLogStore, serialize_record

__all__ = ["RotatingLogStore", "serialize_record"]
