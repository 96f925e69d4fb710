"""API token and environment configuration for the ADS client.

Settings are loaded in priority order:
  1. Shell environment variables (highest priority)
  2. .env file in current directory
  3. ~/.ads/.env (persistent config, set via `ads env set`)

The API token is looked up in this order, matching the locations used by
the other ADS clients:
  1. ADS_API_TOKEN environment variable
  2. ADS_DEV_KEY environment variable
  3. contents of ~/.ads/token
  4. contents of ~/.ads/dev_key

Run `ads env` to see which keys are configured.
Run `ads env set KEY value` to save a key persistently.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from adsabs.errors import TokenError

API_BASE_URL = "https://api.adsabs.harvard.edu/v1"

ADS_DIR = Path.home() / ".ads"
PERSISTENT_ENV = ADS_DIR / ".env"

TOKEN_VARS = ("ADS_API_TOKEN", "ADS_DEV_KEY")
TOKEN_FILES = ("token", "dev_key")

# Load in reverse priority order (later loads don't overwrite existing)
# 1. ~/.ads/.env (lowest priority, persistent defaults)
if PERSISTENT_ENV.exists():
    load_dotenv(PERSISTENT_ENV)

# 2. .env in current directory (mid priority)
load_dotenv()

# 3. Shell env vars already set (highest priority, dotenv won't overwrite)


# --- Persistent config ---

def save_key(name: str, value: str) -> Path:
    """Save a setting to ~/.ads/.env for persistent use."""
    ADS_DIR.mkdir(parents=True, exist_ok=True)

    lines: list[str] = []
    replaced = False
    if PERSISTENT_ENV.exists():
        for line in PERSISTENT_ENV.read_text().splitlines():
            if line.startswith(f"{name}="):
                lines.append(f"{name}={value}")
                replaced = True
            else:
                lines.append(line)

    if not replaced:
        lines.append(f"{name}={value}")

    PERSISTENT_ENV.write_text("\n".join(lines) + "\n")

    # Also set in current process
    os.environ[name] = value

    return PERSISTENT_ENV


# --- Accessors ---

def get_token() -> str:
    for var in TOKEN_VARS:
        token = os.getenv(var, "").strip()
        if token:
            return token

    for name in TOKEN_FILES:
        path = ADS_DIR / name
        if path.is_file():
            token = path.read_text().strip()
            if token:
                return token

    raise TokenError(
        "No ADS API token found. "
        "Run `ads env set ADS_API_TOKEN <your-token>` or write it to ~/.ads/token. "
        "Tokens are issued at https://ui.adsabs.harvard.edu/user/settings/token"
    )


def get_base_url() -> str:
    return os.getenv("ADS_BASE_URL") or API_BASE_URL


# --- Status check ---

VALID_KEYS = {"ADS_API_TOKEN", "ADS_DEV_KEY", "ADS_BASE_URL"}

ENV_VARS = {
    "ADS_API_TOKEN": {
        "required_by": ["ads search", "ads export"],
        "description": "ADS API token (or put it in ~/.ads/token)",
    },
    "ADS_DEV_KEY": {
        "required_by": ["ads search", "ads export (fallback for ADS_API_TOKEN)"],
        "description": "Legacy name for the ADS API token",
    },
    "ADS_BASE_URL": {
        "required_by": ["ads search (optional)", "ads export (optional)"],
        "description": f"API base URL (default: {API_BASE_URL})",
    },
}


def check_env() -> list[tuple[str, bool, dict]]:
    """Return list of (var_name, is_set, info) for all known env vars."""
    result = []
    for var, info in ENV_VARS.items():
        is_set = bool(os.getenv(var))
        result.append((var, is_set, info))
    return result


def token_file() -> Path | None:
    """Return the token file that would be used, if any."""
    for name in TOKEN_FILES:
        path = ADS_DIR / name
        if path.is_file() and path.read_text().strip():
            return path
    return None
