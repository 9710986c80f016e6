"""Configuration schema using Pydantic."""

from pathlib import Path
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WhatsAppConfig(BaseModel):
    """WhatsApp channel configuration."""
    enabled: bool = True
    bridge_url: str = "ws://localhost:3001"
    reconnect_max_seconds: float = 60.0


class ChannelsConfig(BaseModel):
    """Configuration for chat channels."""
    whatsapp: WhatsAppConfig = Field(default_factory=WhatsAppConfig)


class ProviderConfig(BaseModel):
    """Text generation provider configuration."""
    api_key: str = ""  # GROQ_API_KEY when empty
    api_base: str | None = None
    model: str = "groq/llama-3.3-70b-versatile"
    fallback_models: list[str] = Field(default_factory=list)
    temperature: float = 0.7
    max_tokens: int = 500
    cooldown_seconds: int = 300  # Time before retrying a failed model


class RateLimitConfig(BaseModel):
    """Per-sender message budget."""
    max_messages: int = 10
    window_seconds: float = 10.0


class ResponderConfig(BaseModel):
    """Away responder behaviour."""
    owner_name: str = "Sunny"
    owner_description: str = "who does coding and AI/ML work"
    bot_name: str = "Zero"
    greeting_reply: str = "Kya kaam hai?"
    fallback_reply: str = "Sorry, I could not generate a response."
    error_reply: str = "Sorry, I encountered an error. Please try again."
    history_limit: int = 20
    dedup_capacity: int = 100
    dedup_evict: int = 50
    category_limit: int = 100
    min_delay_seconds: float = 1.0
    max_delay_seconds: float = 3.0
    timezone: str = ""  # Empty = host local time
    summary_cron: str = "59 23 * * *"
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)


class Config(BaseSettings):
    """Root configuration for awaybot."""
    workspace: str = "~/.awaybot/data"
    channels: ChannelsConfig = Field(default_factory=ChannelsConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    responder: ResponderConfig = Field(default_factory=ResponderConfig)

    model_config = SettingsConfigDict(
        env_prefix="AWAYBOT_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    @property
    def workspace_path(self) -> Path:
        """Get expanded workspace path."""
        return Path(self.workspace).expanduser()
