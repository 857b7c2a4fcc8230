from typing import List, Optional
from pydantic_settings import BaseSettings

from dotenv import load_dotenv

load_dotenv()  # load .env file

class Settings(BaseSettings):
    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None
    SUPABASE_SERVICE_KEY: Optional[str] = None
    STORAGE_BUCKET: str = "school-files"

    SESSION_TTL_SECONDS: int = 3600

    GOOGLE_CLIENT_ID: Optional[str] = None
    GOOGLE_CLIENT_SECRET: Optional[str] = None
    GOOGLE_CALENDAR_ID: str = "primary"
    MEETING_DURATION_MINUTES: int = 60
    HTTP_TIMEOUT_SECONDS: int = 15

    TIMEZONE: str = "UTC"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    class Config:
        env_file = ".env"

settings = Settings()
