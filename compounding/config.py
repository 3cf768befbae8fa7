"""
Compounding Configuration

Central settings loaded from environment variables.
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Immutable application settings."""

    # --- Versioning ---
    VERSION: str = "1.0.0"

    # --- Learning step ---
    LEARNING_MIN_SAMPLES: int = int(os.getenv("COMPOUNDING_LEARNING_MIN_SAMPLES", "5"))
    LEARNING_WINDOW: int = int(os.getenv("COMPOUNDING_LEARNING_WINDOW", "10"))
    HIGH_SCORE_THRESHOLD: int = int(os.getenv("COMPOUNDING_HIGH_SCORE", "6"))
    MIN_WORD_LENGTH: int = int(os.getenv("COMPOUNDING_MIN_WORD_LENGTH", "4"))
    MIN_WORD_COUNT: int = int(os.getenv("COMPOUNDING_MIN_WORD_COUNT", "2"))

    # --- Code reviewer ---
    REVIEW_HISTORY_CAP: int = int(os.getenv("COMPOUNDING_REVIEW_HISTORY_CAP", "100"))
    REVIEW_HISTORY_KEEP: int = int(os.getenv("COMPOUNDING_REVIEW_HISTORY_KEEP", "50"))
    PROMOTION_MIN_REVIEWS: int = int(os.getenv("COMPOUNDING_PROMOTION_MIN_REVIEWS", "10"))
    PROMOTION_WINDOW: int = int(os.getenv("COMPOUNDING_PROMOTION_WINDOW", "20"))

    # --- Architecture capturer ---
    ARCH_HISTORY_CAP: int = int(os.getenv("COMPOUNDING_ARCH_HISTORY_CAP", "200"))
    ARCH_HISTORY_KEEP: int = int(os.getenv("COMPOUNDING_ARCH_HISTORY_KEEP", "100"))
    ARCH_TREND_MIN: int = int(os.getenv("COMPOUNDING_ARCH_TREND_MIN", "10"))
    ARCH_TREND_WINDOW: int = int(os.getenv("COMPOUNDING_ARCH_TREND_WINDOW", "20"))

    # --- Logging ---
    LOG_LEVEL: str = os.getenv("COMPOUNDING_LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("COMPOUNDING_LOG_FORMAT", "json")  # "json" or "text"

    # --- Server ---
    HOST: str = os.getenv("COMPOUNDING_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("COMPOUNDING_PORT", "3001"))

    # --- CORS ---
    CORS_ORIGINS: str = os.getenv("COMPOUNDING_CORS_ORIGINS", "*")


settings = Settings()
