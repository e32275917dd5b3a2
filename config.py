"""
Configuration management for the Wisbee dashboard service.

Loads environment variables from .env file and provides typed access to configuration.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)


class Config:
    """Configuration class for the Wisbee dashboard service."""

    # Service
    APP_PORT = int(os.getenv("APP_PORT", "8000"))
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # LLM Backend Configuration
    LLM_BACKEND = os.getenv("LLM_BACKEND", "gemini")
    GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash-preview-09-2025")
    GEMINI_BASE_URL = os.getenv(
        "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
    )

    # Retry policy (per client, never per call)
    LLM_MAX_ATTEMPTS = int(os.getenv("LLM_MAX_ATTEMPTS", "5"))
    LLM_BASE_DELAY_MS = int(os.getenv("LLM_BASE_DELAY_MS", "1000"))
    # Per-attempt transport timeout in seconds
    LLM_TIMEOUT_S = float(os.getenv("LLM_TIMEOUT_S", "30"))

    # Chat sessions kept in memory before the least recently used is evicted
    CHAT_MAX_SESSIONS = int(os.getenv("CHAT_MAX_SESSIONS", "100"))

    # Tracing: "noop" (default) or "logging"
    TRACER_BACKEND = os.getenv("TRACER_BACKEND", "noop")

    @classmethod
    def validate(cls) -> bool:
        """Validate that required configuration is set."""
        if cls.LLM_BACKEND.lower() == "stub":
            return True

        required = ["GEMINI_API_KEY"]
        missing = [key for key in required if not getattr(cls, key)]
        return not missing


if __name__ == "__main__":
    print("Configuration loaded:")
    print(f"  LLM Backend: {Config.LLM_BACKEND}")
    print(f"  Gemini Model: {Config.GEMINI_MODEL}")
    print(f"  Gemini API Key: {'✓ Set' if Config.GEMINI_API_KEY else '✗ Missing'}")
    print(f"  Retry: {Config.LLM_MAX_ATTEMPTS} attempts, base {Config.LLM_BASE_DELAY_MS}ms")
    print(f"  Environment: {Config.ENVIRONMENT}")
    print(f"\n  Validation: {'✓ PASSED' if Config.validate() else '✗ FAILED'}")
