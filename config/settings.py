import os
from dotenv import load_dotenv
import logging

logger = logging.getLogger(__name__)

load_dotenv()

REJOIN_POLICIES = ("reject", "switch")
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class SignalingSettings:
    """Runtime settings read from the environment (and .env, if present)"""

    def __init__(self):
        self.host = os.getenv("HOST", "0.0.0.0")
        self.raw_port = os.getenv("PORT", "5000").strip()
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.rejoin_policy = os.getenv("REJOIN_POLICY", "reject").strip().lower()
        self.emit_error_events = _env_flag("EMIT_ERROR_EVENTS")
        self.allowed_origins = self._get_allowed_origins()

    @staticmethod
    def _get_allowed_origins():
        """Comma separated origins; defaults to any origin"""
        env_origins = os.getenv("ALLOWED_ORIGINS", "").split(",")
        env_origins = [origin.strip() for origin in env_origins if origin.strip()]
        return env_origins or ["*"]

    @property
    def port(self) -> int:
        return int(self.raw_port)


def validate_environment(current: SignalingSettings = None):
    """Validate that configured values are usable"""
    current = current or settings
    problems = []
    if current.rejoin_policy not in REJOIN_POLICIES:
        problems.append(f"REJOIN_POLICY must be one of {', '.join(REJOIN_POLICIES)}, got '{current.rejoin_policy}'")
    if current.log_level not in LOG_LEVELS:
        problems.append(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got '{current.log_level}'")
    try:
        port = int(current.raw_port)
    except ValueError:
        problems.append(f"PORT must be an integer, got '{current.raw_port}'")
    else:
        if not 0 < port < 65536:
            problems.append(f"PORT out of range: {port}")
    if problems:
        raise RuntimeError("Invalid configuration: " + "; ".join(problems))


# Global settings instance
settings = SignalingSettings()
