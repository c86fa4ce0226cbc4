from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Field Report Worker"
    LOG_LEVEL: str = "DEBUG"
    ENVIRONMENT: str = "development"

    # Storage
    STORAGE_TYPE: str = "local"  # local, gcs
    GCS_BUCKET_NAME: str = "field-report-assets"
    MEDIA_ROOT: str = "media"
    MEDIA_URL: str = "media"

    # Uploaded resources are served from {STATIC_BASE_URL}/uploads/{file_path}
    STATIC_BASE_URL: str = "http://localhost:3001"
    # Files saved by the local storage backend are served by this app at {PUBLIC_BASE_URL}/{MEDIA_URL}/...
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    # Report
    REPORTS_PREFIX: str = "reports"
    IMAGE_MAX_WIDTH_PX: int = 800
    IMAGE_MAX_HEIGHT_PX: int = 600
    IMAGE_JPEG_QUALITY: int = 80
    IMAGE_FETCH_TIMEOUT: float = 15.0
    IMAGE_FETCH_CONCURRENCY: int = 4

    # Transcription (AssemblyAI)
    ASSEMBLYAI_API_KEY: str = ""
    ASSEMBLYAI_BASE_URL: str = "https://api.assemblyai.com/v2"
    TRANSCRIPTION_LANGUAGE: str = "es"
    TRANSCRIPTION_POLL_INTERVAL: float = 3.0
    TRANSCRIPTION_TIMEOUT: float = 300.0

    model_config = SettingsConfigDict(env_file=".env")

configs = Settings()
