"""
Repository classes for storing submissions.

Each repository writes to one table. Callers treat storage as best effort:
a failed write never changes the recommendations returned to the user.
"""

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from carepath.db.client import get_client, SupabaseClient
from carepath.exporters.json_export import build_report
from carepath.models import EmotionEstimate, GenerationResult


def _now_iso() -> str:
  return datetime.now(timezone.utc).isoformat()


class BaseRepository:
  """Base class for all repositories."""

  table_name: str = ""

  def __init__(self, client: Optional[SupabaseClient] = None):
    """
    Initialize repository with optional client.

    Args:
      client: Supabase client to use. If None, gets default client.
    """
    self._client = client or get_client()

  @property
  def table(self):
    """Get the table reference."""
    return self._client.table(self.table_name)

  def _to_dict(self, obj: Any) -> dict:
    """Convert object to dict for storage."""
    if hasattr(obj, "model_dump"):
      return obj.model_dump(mode="json", exclude_none=True)
    elif isinstance(obj, Mapping):
      return dict(obj)
    else:
      raise ValueError(f"Cannot convert {type(obj)} to dict")

  def _insert(self, data: dict) -> Optional[dict]:
    response = self.table.insert(data).execute()
    return response.data[0] if response.data else None


class SubmissionRepository(BaseRepository):
  """Repository for analysis results (engine output plus echoed intake)."""

  table_name = "analysis_results"

  def save(
    self,
    result: GenerationResult | Mapping[str, Any],
    intake: Optional[Mapping[str, Any]] = None,
  ) -> Optional[dict]:
    """Store a report and return the inserted row."""
    data = build_report(result, intake)
    data["created_at"] = _now_iso()
    return self._insert(data)


class EmotionScanRepository(BaseRepository):
  """Repository for emotion estimates saved without an image."""

  table_name = "emotion_analyses"

  def save(self, estimate: EmotionEstimate) -> Optional[dict]:
    """Store an emotion estimate and return the inserted row."""
    data = {
      "emotion_data": self._to_dict(estimate),
      "method": "local_analysis_without_image",
      "created_at": _now_iso(),
    }
    return self._insert(data)
