from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./catalog.db"
    LOG_LEVEL: str = "INFO"
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    FALLBACK_PORT: int = 3001
    CAS_MAX_RETRIES: int = 5  # attempts per embedded-list write before giving up
    SEED_ON_STARTUP: bool = False

    class Config:
        env_file = ".env"
        extra = "allow"  # This allows extra fields


settings = Settings()
