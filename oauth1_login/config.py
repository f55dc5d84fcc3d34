"""Configuration loading for oauth1-login."""

import os
import re
from pathlib import Path

import yaml

from oauth1_login.models import LoginConfig


def _substitute_env_vars(obj):
    """Recursively substitute ${VAR} with environment variables."""
    if isinstance(obj, str):
        pattern = r"\$\{([^}]+)\}"
        return re.sub(pattern, lambda m: os.environ.get(m.group(1), m.group(0)), obj)
    elif isinstance(obj, dict):
        return {k: _substitute_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_substitute_env_vars(item) for item in obj]
    return obj


def load_config(path: str | Path) -> LoginConfig:
    """Load configuration from a YAML file.

    Providers without an explicit ``name`` are named after their key.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    data = _substitute_env_vars(data)
    for provider_name, provider in (data.get("providers") or {}).items():
        if isinstance(provider, dict):
            provider.setdefault("name", provider_name)
    return LoginConfig(**data)


def validate_config(config: LoginConfig) -> list[str]:
    """Validate configuration and return list of errors."""
    errors = []

    if not config.callback_base_url.startswith(("http://", "https://")):
        errors.append(f"callback_base_url must be an http(s) URL: {config.callback_base_url}")

    if not config.login_path.startswith("/"):
        errors.append(f"login_path must start with '/': {config.login_path}")

    if config.worker_threads < 1:
        errors.append("worker_threads must be at least 1")

    for name, provider in config.providers.items():
        if not provider.consumer_key.strip():
            errors.append(f"Provider '{name}' has an empty consumer_key")
        # Unresolved ${VAR} placeholders are left in place by load_config
        if "${" in provider.consumer_key or "${" in provider.consumer_secret:
            errors.append(f"Provider '{name}' references an unset environment variable")
        for field_name in ("request_token_url", "authorize_url", "access_token_url"):
            url = getattr(provider, field_name)
            if not url.startswith(("http://", "https://")):
                errors.append(f"Provider '{name}' has invalid {field_name}: {url}")

    return errors
