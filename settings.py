import os
from pathlib import Path
from typing import List

import dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env next to this file, regardless of where the process is started.
dotenv.load_dotenv(dotenv_path=Path(__file__).resolve().parent / ".env", override=False)


class Settings(BaseSettings):
    DATABASE_URL: str = Field(default=os.getenv("DATABASE_URL", "mongodb://localhost:27017"))
    DATABASE_NAME: str = Field(default=os.getenv("DATABASE_NAME", "invoice"))

    APP_HOST: str = Field(default=os.getenv("APP_HOST", "0.0.0.0"))
    APP_PORT: int = Field(default=int(os.getenv("APP_PORT", "3000")))

    # Comma-separated list, "*" allows any origin.
    CORS_ORIGINS: str = Field(default=os.getenv("CORS_ORIGINS", "*"))

    LOG_LEVEL: str = Field(default=os.getenv("LOG_LEVEL", "INFO"))

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
