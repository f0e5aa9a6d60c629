from pydantic import RedisDsn
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="", extra="ignore")

    redis_url: RedisDsn = "redis://localhost:6379/0"  # type: ignore[assignment]
    event_stream: str = "civrise:events"
    action_stream: str = "civrise:actions"
    snapshot_key: str = "civrise:snapshot"
    restart_key: str = "civrise:restart"


REDIS_SETTINGS = RedisSettings()
