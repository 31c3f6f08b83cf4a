"""Application configuration."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "EPUB Flow Translator"
    debug: bool = True
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    frontend_port: int = 5173

    # CORS - dynamically built based on frontend_port
    cors_origins: list[str] = []

    # Upload limits
    max_upload_size_mb: int = 100  # Maximum upload size in MB

    # LLM provider
    llm_provider: str = "gemini"
    llm_model: str = "gemini-3-flash-preview"
    llm_base_url: Optional[str] = None  # Custom endpoint (OpenRouter, Ollama, ...)
    llm_max_tokens: int = 8192

    # LLM API Keys (loaded from environment)
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    dashscope_api_key: Optional[str] = None  # Alibaba Qwen
    deepseek_api_key: Optional[str] = None
    openrouter_api_key: Optional[str] = None

    # Chunking and pacing
    chunk_size: int = 6000  # characters per request
    inter_chunk_delay: float = 2.0  # seconds before every chunk after the first

    # Retry policy (seconds)
    initial_retry_delay: float = 2.0
    rate_limit_min_delay: float = 15.0
    translate_max_retries: int = 5
    proofread_max_retries: int = 3

    # Units whose text is shorter than this are never sent to the LLM
    min_unit_length: int = 10

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if not self.cors_origins:
            self.cors_origins = [
                f"http://localhost:{self.frontend_port}",
                f"http://127.0.0.1:{self.frontend_port}",
            ]

    def get_api_key(self, provider: Optional[str] = None) -> Optional[str]:
        """Get API key for a provider (defaults to the configured one)."""
        key_map = {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
            "gemini": self.gemini_api_key,
            "qwen": self.dashscope_api_key,
            "deepseek": self.deepseek_api_key,
            "openrouter": self.openrouter_api_key,
        }
        return key_map.get(provider or self.llm_provider)


settings = Settings()
