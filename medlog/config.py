"""
Application configuration loaded from environment variables.

BACKEND_MODE selects where log rows live:
- "supabase": the hosted project at SUPABASE_URL (default)
- "local": a SQLAlchemy database at LOCAL_DATABASE_URL, with in-process auth
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

from medlog.schemas.log import Medication

# Load .env file from the project root
project_dir = Path(__file__).parent.parent
load_dotenv(project_dir / ".env")


def parse_medications(raw: str) -> List[Medication]:
    """Turn "Aspirin, Ibuprofen" into buttons with positional ids."""
    names = [name.strip() for name in raw.split(",")]
    return [
        Medication(id=str(index), name=name)
        for index, name in enumerate((n for n in names if n), start=1)
    ]


class Config:
    """Application configuration."""

    BACKEND_MODE = os.getenv("BACKEND_MODE", "supabase")

    # Supabase project
    SUPABASE_URL = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY = os.getenv("SUPABASE_KEY", "")

    # Table holding log entries
    LOG_TABLE = os.getenv("LOG_TABLE", "notes")

    # Local mode storage
    LOCAL_DATABASE_URL = os.getenv("LOCAL_DATABASE_URL", "sqlite:///./medlog.db")

    MEDICATIONS = os.getenv("MEDICATIONS", "")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    @classmethod
    def medications(cls) -> List[Medication]:
        return parse_medications(cls.MEDICATIONS)


# Singleton instance
config = Config()
