"""
Runtime settings read from the environment (.env supported).

Values are read on each call so tests and operators can change them without
re-importing the app.
"""

import os

from dotenv import load_dotenv

from tennis_coach.services.bracket_generator import DEFAULT_POSITIONS_PER_DIVISION
from tennis_coach.services.result_recorder import RecordingPolicy

load_dotenv()


def get_recording_policy() -> RecordingPolicy:
    """FastAPI dependency: result recording policy (RESULT_RECORDING_POLICY)."""
    raw = os.getenv("RESULT_RECORDING_POLICY", RecordingPolicy.permissive.value).strip().lower()
    try:
        return RecordingPolicy(raw)
    except ValueError:
        raise RuntimeError(
            f"RESULT_RECORDING_POLICY must be 'permissive' or 'strict', got {raw!r}"
        ) from None


def get_default_positions() -> int:
    """Positions per division when a tournament does not set one."""
    return int(os.getenv("DEFAULT_POSITIONS_PER_DIVISION", str(DEFAULT_POSITIONS_PER_DIVISION)))


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


def get_cors_origins() -> list:
    origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    extra = os.getenv("CORS_ORIGINS", "")
    if extra:
        origins.extend(o.strip() for o in extra.split(",") if o.strip())
    return origins
