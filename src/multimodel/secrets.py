"""
Secrets Management
==================

Loads provider API keys from a .secrets/ directory into environment
variables, so the provider bindings find them without manual setup.

Secrets are stored in:
    .secrets/openai_key       -> OPENAI_API_KEY
    .secrets/anthropic_key    -> ANTHROPIC_API_KEY
    .secrets/gemini_key       -> GEMINI_API_KEY

Existing environment variables are never overridden unless asked.

Usage:
    from multimodel import secrets

    secrets.load_secrets()
    print(secrets.check_secrets())
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional

from .llm.providers.cloud import OPENAI_BASE_URL_ENV, PROVIDER_API_KEYS

logger = logging.getLogger(__name__)

# Mapping of secret file names to environment variable names
SECRET_FILES = {
    "openai_key": "OPENAI_API_KEY",
    "anthropic_key": "ANTHROPIC_API_KEY",
    "gemini_key": "GEMINI_API_KEY",
}


def find_secrets_dir() -> Optional[Path]:
    """
    Find the .secrets directory.

    Looks in:
    1. Current working directory
    2. Project root (where this package is checked out)
    3. User home directory

    Returns:
        Path to .secrets directory, or None if not found
    """
    candidates = [
        Path.cwd() / ".secrets",
        Path(__file__).resolve().parent.parent.parent / ".secrets",
        Path.home() / ".secrets",
    ]
    for candidate in candidates:
        if candidate.is_dir():
            return candidate
    return None


def load_secrets(secrets_dir: Optional[Path] = None, override: bool = False) -> Dict[str, str]:
    """
    Load secrets from .secrets/ directory into environment variables.

    Args:
        secrets_dir: Path to secrets directory (auto-detected if None)
        override: Whether to override existing environment variables

    Returns:
        Dict of loaded secrets (env var name -> value)
    """
    if secrets_dir is None:
        secrets_dir = find_secrets_dir()

    if secrets_dir is None:
        logger.debug("No .secrets directory found")
        return {}

    secrets_dir = Path(secrets_dir)
    loaded = {}

    for filename, env_var in SECRET_FILES.items():
        secret_file = secrets_dir / filename

        if not secret_file.exists():
            continue

        # Skip if already set (unless override=True)
        if os.environ.get(env_var) and not override:
            logger.debug(f"{env_var} already set, skipping")
            continue

        try:
            secret_value = secret_file.read_text().strip()
        except OSError as e:
            logger.error(f"Failed to load {secret_file}: {e}")
            continue

        if secret_value:
            os.environ[env_var] = secret_value
            loaded[env_var] = secret_value
            logger.info(f"Loaded {env_var} from {filename}")
        else:
            logger.warning(f"{secret_file} is empty")

    return loaded


def check_secrets() -> Dict[str, bool]:
    """
    Check which credential variables are set.

    Returns:
        Dict mapping every recognized variable name to availability
    """
    names = [var for env_vars in PROVIDER_API_KEYS.values() for var in env_vars]
    names.append(OPENAI_BASE_URL_ENV)
    return {name: bool(os.environ.get(name)) for name in names}


def save_secret(name: str, value: str, secrets_dir: Optional[Path] = None) -> bool:
    """
    Save a secret to .secrets/ directory and export it.

    Args:
        name: Environment variable name (e.g., "ANTHROPIC_API_KEY")
        value: Secret value
        secrets_dir: Path to secrets directory (auto-detected if None)

    Returns:
        True if saved successfully, False otherwise
    """
    reverse_mappings = {env_var: filename for filename, env_var in SECRET_FILES.items()}
    filename = reverse_mappings.get(name)
    if not filename:
        logger.error(f"Unknown secret name: {name}")
        return False

    if secrets_dir is None:
        secrets_dir = find_secrets_dir() or Path.cwd() / ".secrets"
    secrets_dir = Path(secrets_dir)

    secret_file = secrets_dir / filename

    try:
        secrets_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        secret_file.write_text(value)
        secret_file.chmod(0o600)  # owner read/write only
    except OSError as e:
        logger.error(f"Failed to save secret: {e}")
        return False

    os.environ[name] = value
    logger.info(f"Saved {name} to {filename}")
    return True


__all__ = [
    "SECRET_FILES",
    "find_secrets_dir",
    "load_secrets",
    "check_secrets",
    "save_secret",
]
