"""
De-Escalator Configuration

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
    API_VERSION: str = "1"

    # --- Detection ---
    # Two values were deployed historically (2.5 and a reduced 2.0);
    # the active one is explicit configuration, see classifier.py.
    ESCALATION_THRESHOLD: float = float(
        os.getenv("DEESCALATOR_THRESHOLD", "2.5")
    )
    MIN_LENGTH: int = int(os.getenv("DEESCALATOR_MIN_LENGTH", "8"))
    # "override": any profanity hit is escalatory. "additive": weight only.
    PROFANITY_POLICY: str = os.getenv("DEESCALATOR_PROFANITY_POLICY", "override")

    # --- LLM Provider (rephrase relay) ---
    LLM_PROVIDER: str = os.getenv("DEESCALATOR_LLM_PROVIDER", "gemini")
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")

    # --- Interaction log ---
    INTERACTION_DB_PATH: str = os.getenv(
        "DEESCALATOR_INTERACTION_DB", "deescalator_interactions.db"
    )
    INTERACTION_RETENTION: int = int(
        os.getenv("DEESCALATOR_INTERACTION_RETENTION", "100")
    )

    # --- Server ---
    HOST: str = os.getenv("DEESCALATOR_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("DEESCALATOR_PORT", "8000"))
    MAX_TEXT_LENGTH: int = int(os.getenv("DEESCALATOR_MAX_TEXT_LENGTH", "5000"))

    # --- CORS ---
    CORS_ORIGINS: str = os.getenv("DEESCALATOR_CORS_ORIGINS", "*")


settings = Settings()
