"""
Database module for carepath.

Provides the Supabase client and repository classes for data access.
"""

from carepath.db.client import get_client, is_configured, reset_clients, SupabaseClient, SupabaseConfig
from carepath.db.repositories import (
  EmotionScanRepository,
  SubmissionRepository,
)

__all__ = [
  "get_client",
  "is_configured",
  "reset_clients",
  "SupabaseClient",
  "SupabaseConfig",
  "EmotionScanRepository",
  "SubmissionRepository",
]
