"""Runtime configuration for the gateway.

Architectural role:
    Centralizes model selection, credential lookup, upload limits, and listen
    settings for `gateway.llm` and `gateway.api`.

Model call flow integration:
    - `llm.service.ModelAdapter` consumes `GEMINI_MODEL`, `MODEL_TIMEOUT_SECONDS`
      and `load_key`.
    - `llm.client` consumes `GEMINI_URL_TEMPLATE`.
    - `api.uploads` consumes `UPLOAD_DIR` and `MAX_UPLOAD_SIZE_BYTES`.

Determinism:
    Deterministic for a fixed process environment and key files. Values are resolved
    at import time (plus runtime key-file reads in `load_key`).

Failure behavior:
    Missing key material is represented as `None`; the adapter turns it into a
    `ModelInvocationError` at call time so startup never fails on it.
"""

import os
from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# Listen settings consumed by `api.http_api.serve`.
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))

# Model routing controls.
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_API_BASE = os.getenv(
    "GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta"
).rstrip("/")
GEMINI_URL_TEMPLATE = GEMINI_API_BASE + "/models/{model}:generateContent"
GEMINI_KEY_FILE = "config/gemini.key"

MODEL_TIMEOUT_SECONDS = float(os.getenv("MODEL_TIMEOUT_SECONDS", "120"))

# Upload handling.
UPLOAD_DIR = os.path.realpath(
    os.getenv("UPLOAD_DIR", os.path.join(PROJECT_ROOT, "uploads"))
)
MAX_UPLOAD_SIZE_MB = int(os.getenv("MAX_UPLOAD_SIZE_MB", "20"))
MAX_UPLOAD_SIZE_BYTES = MAX_UPLOAD_SIZE_MB * 1024 * 1024

# Sensitive request/response debug logging is opt-in.
DEBUG = os.getenv("DEBUG") == "true"

# How often a pending model call checks whether the inbound client is still there.
DISCONNECT_POLL_SECONDS = 0.5


def load_key(path=GEMINI_KEY_FILE):
    """Load the model-service API key from the environment or a key file.

    Resolution order:
        1. Environment variable inferred from file stem (for example
           `config/gemini.key` -> `GEMINI_API_KEY`).
        2. Raw file contents at `path`, relative paths resolved against the
           project root.

    Args:
        path: Key file path or `None`.

    Returns:
        Key string or `None` when not available.

    Edge cases:
        - `None` path returns `None`.
        - Missing or empty file returns `None`.
    """
    if not path:
        return None
    key_name = os.path.splitext(os.path.basename(path))[0].upper() + "_API_KEY"
    env_value = os.getenv(key_name)
    if env_value:
        return env_value
    if not os.path.isabs(path):
        path = os.path.join(PROJECT_ROOT, path)
    if not os.path.exists(path):
        return None
    with open(path, "r") as f:
        return f.read().strip() or None
