"""
Application settings for the receipt extraction service.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    # Database (parsed receipts)
    DATABASE_URL: str = "sqlite:///./data/receipts.db"

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Storage
    DATA_DIR: str = "./data"

    # Batch run (CLI)
    RECEIPTS_DIR: str = "./receipts"
    OUTPUT_PATH: str = "./output/receipts_data"
    OUTPUT_FORMAT: str = "json"
    IMAGE_EXTENSIONS: List[str] = [".jpg", ".jpeg", ".png", ".gif", ".bmp"]

    # OCR
    OCR_PROVIDER: str = "vision"
    OCR_LANGUAGE_HINTS: List[str] = ["ja"]
    TESSERACT_LANG: str = "jpn"

    # Export
    DEFAULT_TAX_RATE_PERCENT: int = 10
    OUTPUT_ENCODING: str = "utf-8"

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
