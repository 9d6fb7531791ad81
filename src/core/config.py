"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """VoiceCorpus application settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        database_url: Async SQLAlchemy connection string for the metadata tables.
        blob_provider: Where audio blobs live ("local" filesystem or "supabase").
        store_timeout_seconds: Upper bound on each store call made by a
            recording session; expiry is reported as ``StoreUnavailableError``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Storage ---
    # Metadata tables (contributors, sentences, recordings)
    database_url: str = "sqlite+aiosqlite:///data/voicecorpus.db"

    # Blob storage: "local" writes under storage_dir, "supabase" uses Supabase Storage
    blob_provider: str = "local"
    storage_dir: str = "data/storage"
    storage_bucket: str = "recordings"
    public_base_url: str = "http://localhost:8000"  # Prefix for local public blob URLs
    supabase_url: str = ""  # Required when blob_provider="supabase"
    supabase_key: str = ""

    # --- Audio ---
    audio_extension: str = "wav"  # Part of the blob key: {owner}/{0001}.{ext}
    audio_content_type: str = "audio/wav"

    # --- Recording session ---
    store_timeout_seconds: float = 30.0  # 0 disables the bound
    max_capture_bytes: int = 50_000_000  # Per-capture buffer limit
    silence_threshold: float = 0.01  # RMS below this flags a capture as silent

    # --- Training ---
    training_endpoint_url: str = ""  # External job-submission endpoint
    training_timeout_seconds: float = 600.0

    # --- Export ---
    export_archive_name: str = "tts_dataset_backup.zip"

    # --- Application ---
    app_host: str = "0.0.0.0"  # Bind address for the FastAPI server
    app_port: int = 8000
    log_level: str = "INFO"  # Python logging level
    cors_origins: list[str] = [
        "http://localhost:8501",  # Streamlit
        "http://localhost:3000",  # Dev frontend
    ]


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    Subsequent calls return the same ``Settings`` instance.

    Returns:
        Settings: The application-wide configuration object.
    """
    return Settings()
