"""Persistence backends for log records and cursors."""

from pool_watcher.storage.sqlite import SQLiteStore
from pool_watcher.storage.supabase import SupabaseLogSink

__all__ = ["SQLiteStore", "SupabaseLogSink"]
