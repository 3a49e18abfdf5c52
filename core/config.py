# ABOUTME: Shared app configuration and constants used across core, API and UI.
# ABOUTME: Model ids, prompt bounds, speech settings and supported languages; overridable via .env.

import os

from dotenv import load_dotenv

load_dotenv()


def _parse_int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, str(default))
    try:
        return int(raw)
    except ValueError:
        return default


# Gemini credentials: genai.Client reads GEMINI_API_KEY / GOOGLE_API_KEY itself; kept here for explicit wiring.
GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY")

REPORT_MODEL = os.environ.get("REPORT_MODEL", "gemini-3-pro-preview")
PLAN_MODEL = os.environ.get("PLAN_MODEL", "gemini-3-flash-preview")
STATUS_MODEL = os.environ.get("STATUS_MODEL", "gemini-3-pro-preview")
SPEECH_MODEL = os.environ.get("SPEECH_MODEL", "gemini-2.5-flash-preview-tts")
ILLUSTRATION_MODEL = os.environ.get("ILLUSTRATION_MODEL", "gemini-2.5-flash-image")
PRO_IMAGE_MODEL = os.environ.get("PRO_IMAGE_MODEL", "gemini-3-pro-image-preview")

REPORT_THINKING_BUDGET = _parse_int_env("REPORT_THINKING_BUDGET", 4000)
# Long free-text fields are bounded in the prompt so the JSON is less likely to be cut at the token ceiling.
EXPLANATION_MAX_CHARS = _parse_int_env("EXPLANATION_MAX_CHARS", 3000)
MAX_PROMPT_LENGTH = _parse_int_env("MAX_PROMPT_LENGTH", 2000)
PLAN_DAYS = 7

SPEECH_VOICE = os.environ.get("SPEECH_VOICE", "Zephyr")
SPEECH_SAMPLE_RATE = _parse_int_env("SPEECH_SAMPLE_RATE", 24000)
SPEECH_CHANNELS = 1

# code -> (English name passed to the model, native name shown in the UI)
LANGUAGES: dict[str, tuple[str, str]] = {
    "en": ("English", "English"),
    "ur": ("Urdu", "اردو"),
    "es": ("Spanish", "Español"),
    "fr": ("French", "Français"),
    "de": ("German", "Deutsch"),
    "zh": ("Chinese", "中文"),
    "ar": ("Arabic", "العربية"),
    "hi": ("Hindi", "हिन्दी"),
    "pt": ("Portuguese", "Português"),
    "ja": ("Japanese", "日本語"),
}
DEFAULT_LANGUAGE = "English"

_raw_cors = os.environ.get("CORS_ORIGINS", "http://localhost:8501")
CORS_ORIGINS = [o.strip() for o in _raw_cors.split(",") if o.strip()] or [
    "http://localhost:8501"
]
