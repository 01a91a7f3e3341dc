"""
Models for the share store.

KVEntry is the SQL table behind the "sql" metadata backend.
The record classes are the JSON shapes stored under each key prefix.
"""

from .kv_entry import KVEntry
from .records import Record, UrlRecord, FileRecord, TextRecord

__all__ = ["KVEntry", "Record", "UrlRecord", "FileRecord", "TextRecord"]
