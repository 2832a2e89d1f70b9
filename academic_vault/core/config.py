from pydantic_settings import BaseSettings
from typing import Optional
import os


class Settings(BaseSettings):
    # Environment configuration
    environment: str = os.getenv("ENVIRONMENT", "development")

    # Supabase configuration (auth)
    supabase_url: str = os.getenv("SUPABASE_URL", "")
    supabase_key: str = os.getenv("SUPABASE_KEY", "")

    # Database configuration (for SQLAlchemy - connects to Supabase PostgreSQL)
    database_url: Optional[str] = os.getenv("DATABASE_URL", "")
    database_echo: bool = os.getenv("DATABASE_ECHO", "false").lower() == "true"

    # Frontend URL (for CORS)
    frontend_url: str = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # JWT configuration (Supabase project JWT secret)
    jwt_secret_key: str = os.getenv("JWT_SECRET_KEY", "your-secret-key-change-this")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    jwt_audience: str = "authenticated"

    # Object storage
    gcs_bucket_name: str = os.getenv("GCS_BUCKET_NAME", "")
    google_application_credentials: str = os.getenv("GOOGLE_APPLICATION_CREDENTIALS", "")

    # AI gateway
    openai_api_key: str = os.getenv("OPENAI_API_KEY", "")
    ai_model: str = os.getenv("AI_MODEL", "gpt-4o-mini")

    # Upload limits
    max_upload_size_mb: int = int(os.getenv("MAX_UPLOAD_SIZE_MB", "200"))

    # Multiplier applied to simulated file-processing delays (0 disables waiting)
    status_step_scale: float = float(os.getenv("STATUS_STEP_SCALE", "1.0"))

    # Vault view state of users idle longer than this is dropped
    session_idle_minutes: int = int(os.getenv("SESSION_IDLE_MINUTES", "60"))

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
