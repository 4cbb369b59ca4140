import logging as _logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

_log = _logging.getLogger(__name__)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, *, minimum: int | None = None) -> int:
    """Parse an integer env var with safe fallback on invalid input."""
    raw = os.getenv(name)
    if raw is None:
        value = default
    else:
        try:
            value = int(raw.strip())
        except ValueError:
            value = default
    if minimum is not None:
        value = max(minimum, value)
    return value


def _env_float(name: str, default: float) -> float:
    """Parse a float env var with safe fallback on invalid input."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _env_list(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


# Identity
ASSISTANT_NAME = os.getenv("ASSISTANT_NAME", "Jonathan")
BOT_USER_ID = os.getenv("JONATHAN_BOT_USER_ID", "U019XGT657V")
ISSUES_URL = os.getenv("JONATHAN_ISSUES_URL", "https://github.com/lukec11/Jonathan/issues/new")

# Slack credentials
SLACK_OAUTH_TOKEN = os.getenv("SLACK_OAUTH_TOKEN", "")
SLACK_SIGNING_SECRET = os.getenv("SLACK_SIGNING_SECRET", "")
SLACK_API_BASE = os.getenv("JONATHAN_SLACK_API_BASE", "https://slack.com/api").rstrip("/")
HTTP_TIMEOUT = _env_float("JONATHAN_HTTP_TIMEOUT", 10.0)

if not SLACK_OAUTH_TOKEN:
    _log.warning("SLACK_OAUTH_TOKEN is empty; Slack API calls will be rejected")

# Shortcuts (both callback ids map to the same handler)
SHORTCUT_IDS = set(_env_list("JONATHAN_SHORTCUT_IDS", "check_timestamps,convert_times"))

# Web server
WEB_HOST = os.getenv("JONATHAN_WEB_HOST", "0.0.0.0")
WEB_PORT = _env_int("JONATHAN_WEB_PORT", 3000)
ACK_TIMEOUT = _env_float("JONATHAN_ACK_TIMEOUT", 2.5)
SIGNATURE_MAX_AGE = _env_int("JONATHAN_SIGNATURE_MAX_AGE", 300, minimum=1)

# Date parsing
DATE_LANGUAGES = _env_list("JONATHAN_DATE_LANGUAGES", "en")
RANGE_SEPARATOR = " to "
END_TIME_FALLBACK = "end time"
TIME_CONVERTER_URL = os.getenv("JONATHAN_TIME_CONVERTER_URL", "https://time.is/")
DATE_TOKEN_FORMAT = "{date_short_pretty} at {time}"

# Error telemetry
HONEYBADGER_API_KEY = os.getenv("HONEYBADGER_API_KEY", "")
ENVIRONMENT = os.getenv("JONATHAN_ENV", "production")

# Paths
LOG_DIR = Path(os.getenv("JONATHAN_LOG_DIR", str(Path.home() / ".jonathan" / "logs"))).expanduser()
LOG_TO_FILE = _env_bool("JONATHAN_LOG_TO_FILE", True)
