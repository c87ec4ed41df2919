"""Load configuration from .env file."""

import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# Walk up from this file to find .env at the repo root
_repo_root = Path(__file__).resolve().parent.parent.parent
load_dotenv(_repo_root / ".env")


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise SystemExit(f"{name} must be a number, got {raw!r}")


CLIENT_ID: str = os.environ.get("MSGRAPH_CLIENT_ID", "")
TENANT_ID: str = os.environ.get("MSGRAPH_TENANT_ID", "common")

GRAPH_BASE: str = "https://graph.microsoft.com/v1.0"
HTTP_TIMEOUT: float = _float_env("ONENOTE_HTTP_TIMEOUT", 30.0)

# Where to store auth artifacts (non-sensitive account record)
AUTH_DIR: Path = Path.home() / ".onenote-diagrams"
TOKEN_CACHE_NAME: str = "onenote-diagrams"

# Microsoft Graph scopes for OneNote
SCOPES: list[str] = [
    "User.Read",
    "Notes.Read",
    "Notes.ReadWrite",
    "Notes.Create",
]

# Diagram rendering
RENDER_TIMEOUT: float = _float_env("DIAGRAM_RENDER_TIMEOUT", 5.0)
JPEG_QUALITY: int = int(_float_env("DIAGRAM_JPEG_QUALITY", 80))
MERMAID_JS_URL: str = os.environ.get(
    "DIAGRAM_MERMAID_URL",
    "https://cdn.jsdelivr.net/npm/mermaid/dist/mermaid.min.js",
)
CHROMIUM_ARGS: list[str] = ["--no-sandbox", "--disable-setuid-sandbox"]

# A freshly created page is not patchable right away; poll until Graph serves it
SETTLE_INITIAL_DELAY: float = _float_env("ONENOTE_SETTLE_INITIAL_DELAY", 1.0)
SETTLE_MAX_DELAY: float = _float_env("ONENOTE_SETTLE_MAX_DELAY", 8.0)
SETTLE_TIMEOUT: float = _float_env("ONENOTE_SETTLE_TIMEOUT", 30.0)

LOG_LEVEL: str = os.environ.get("ONENOTE_DIAGRAMS_LOG_LEVEL", "INFO").upper()
LOG_FILE: str = os.environ.get("ONENOTE_DIAGRAMS_LOG_FILE", "")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def validate() -> None:
    """Raise if required config is missing."""
    if not CLIENT_ID:
        raise SystemExit(
            "MSGRAPH_CLIENT_ID not set. "
            "Copy .env.example to .env and fill in your Azure app registration values."
        )


def configure_logging() -> None:
    """Send logs to stderr (stdout carries JSON results) and optionally to LOG_FILE."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if LOG_FILE:
        handlers.append(logging.FileHandler(LOG_FILE, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL, logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )
