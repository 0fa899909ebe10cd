"""
Supabase access for carepath.

Submissions and emotion estimates are stored when SUPABASE_URL and a key
are set. Nothing here is required for generating recommendations.
"""

import os
from typing import Optional

from supabase import create_client, Client


class SupabaseConfig:
  """Connection settings, read from the environment unless given."""

  def __init__(
    self,
    url: Optional[str] = None,
    anon_key: Optional[str] = None,
    service_key: Optional[str] = None,
  ):
    self.url = url or os.environ.get("SUPABASE_URL")
    self.anon_key = anon_key or os.environ.get("SUPABASE_ANON_KEY")
    self.service_key = service_key or os.environ.get("SUPABASE_SERVICE_KEY")

  @property
  def write_key(self) -> Optional[str]:
    """Key used for inserts. The service key bypasses row-level security."""
    return self.service_key or self.anon_key

  @property
  def is_configured(self) -> bool:
    return bool(self.url and self.write_key)

  def validate(self) -> None:
    missing = []
    if not self.url:
      missing.append("SUPABASE_URL")
    if not self.write_key:
      missing.append("SUPABASE_SERVICE_KEY or SUPABASE_ANON_KEY")
    if missing:
      raise ValueError(f"Supabase not configured: {', '.join(missing)} not set")


class SupabaseClient:
  """Table access over a connected Supabase client."""

  def __init__(self, client: Client):
    self._client = client

  @classmethod
  def connect(cls, config: SupabaseConfig) -> "SupabaseClient":
    config.validate()
    return cls(create_client(config.url, config.write_key))

  @property
  def client(self) -> Client:
    return self._client

  def table(self, name: str):
    return self._client.table(name)


_client: Optional[SupabaseClient] = None
_config: Optional[SupabaseConfig] = None


def get_config() -> SupabaseConfig:
  global _config
  if _config is None:
    _config = SupabaseConfig()
  return _config


def get_client() -> SupabaseClient:
  """Shared client. Raises ValueError when Supabase is not configured."""
  global _client
  if _client is None:
    _client = SupabaseClient.connect(get_config())
  return _client


def is_configured() -> bool:
  """True when storage should be attempted."""
  return get_config().is_configured


def reset_clients() -> None:
  """Forget the shared config and client, e.g. after changing the environment."""
  global _client, _config
  _client = None
  _config = None
