"""Calendar client configuration.

Settings are resolved in this order:
    1. Explicit arguments to ``CalendarSettings``
    2. Environment variables (GCAL_CLIENT_ID, GCAL_CLIENT_SECRET, ...)
    3. A ``.env`` file (defaults to ``.env`` in the working directory)

OAuth client credentials are never compiled in. Register an application in the
Google Cloud Console and export its client id, secret and redirect URI.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from gcal_utils.google.exceptions import ConfigurationError
from gcal_utils.google.transport import DEFAULT_TIMEOUT, DEFAULT_USER_AGENT

ENV_FILE = Path(".env")
ENV_PREFIX = "GCAL_"

DEFAULT_SCOPE = "https://www.googleapis.com/auth/calendar"
DEFAULT_OAUTH_URL = "https://accounts.google.com/o/oauth2"
DEFAULT_API_URL = "https://www.googleapis.com/calendar/v3/calendars"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def load_env_file(env_path: Path, prefix: str = ENV_PREFIX) -> dict[str, str]:
    """Read ``prefix``-ed settings from a .env file.

    The process environment is left untouched; callers decide precedence.
    Lines may use the shell form ``export GCAL_CLIENT_ID=...``.

    Args:
        env_path: Path to .env file.
        prefix: Only keys starting with this prefix are returned.

    Returns:
        Dictionary of settings found in the file.
    """
    values: dict[str, str] = {}
    if not env_path.exists():
        return values

    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if line.startswith("export "):
                line = line[len("export ") :].lstrip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip()
            if not key.startswith(prefix):
                continue

            if (value.startswith('"') and value.endswith('"')) or (
                value.startswith("'") and value.endswith("'")
            ):
                value = value[1:-1]
            values[key] = value

    return values


def _flag(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class CalendarSettings:
    """Endpoints and OAuth client credentials for a ``CalendarClient``."""

    client_id: str | None = None
    client_secret: str | None = None
    redirect_uri: str | None = None
    scope: str = DEFAULT_SCOPE
    oauth_url: str = DEFAULT_OAUTH_URL
    api_url: str = DEFAULT_API_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_TIMEOUT
    verify_ssl: bool = False
    debug: bool = False

    @property
    def authorize_url(self) -> str:
        """Authorization endpoint the end user is redirected to."""
        return f"{self.oauth_url.rstrip('/')}/auth"

    @property
    def token_url(self) -> str:
        """Token endpoint used for code and refresh-token exchanges."""
        return f"{self.oauth_url.rstrip('/')}/token"

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> CalendarSettings:
        """Build settings from environment variables.

        Args:
            env_file: Optional .env file loaded first. Defaults to ``.env``.

        Returns:
            CalendarSettings populated from the environment.

        Raises:
            ConfigurationError: If GCAL_TIMEOUT is not a number.
        """
        # Environment variables take precedence over the file
        env = load_env_file(Path(env_file) if env_file else ENV_FILE)
        env.update((k, v) for k, v in os.environ.items() if k.startswith(ENV_PREFIX))

        timeout = env.get("GCAL_TIMEOUT")
        try:
            timeout_value = float(timeout) if timeout else DEFAULT_TIMEOUT
        except ValueError as e:
            raise ConfigurationError(f"GCAL_TIMEOUT must be a number, got {timeout!r}") from e

        return cls(
            client_id=env.get("GCAL_CLIENT_ID"),
            client_secret=env.get("GCAL_CLIENT_SECRET"),
            redirect_uri=env.get("GCAL_REDIRECT_URI"),
            scope=env.get("GCAL_SCOPE", DEFAULT_SCOPE),
            oauth_url=env.get("GCAL_OAUTH_URL", DEFAULT_OAUTH_URL),
            api_url=env.get("GCAL_API_URL", DEFAULT_API_URL),
            user_agent=env.get("GCAL_USER_AGENT", DEFAULT_USER_AGENT),
            timeout=timeout_value,
            verify_ssl=_flag(env.get("GCAL_VERIFY_SSL"), False),
            debug=_flag(env.get("GCAL_DEBUG"), False),
        )

    def require_oauth_credentials(self) -> tuple[str, str]:
        """Return client id and secret, failing if either is missing.

        Raises:
            ConfigurationError: If client id or secret is not configured.
        """
        if not self.client_id or not self.client_secret:
            raise ConfigurationError(
                "OAuth client credentials are required. "
                "Set GCAL_CLIENT_ID and GCAL_CLIENT_SECRET or pass them explicitly."
            )
        return self.client_id, self.client_secret

    def get_status(self) -> dict:
        """Get a summary of which settings are configured.

        Returns:
            Dictionary safe to print or log (no secrets).
        """
        return {
            "client_id": bool(self.client_id),
            "client_secret": bool(self.client_secret),
            "redirect_uri": self.redirect_uri,
            "scope": self.scope,
            "oauth_url": self.oauth_url,
            "api_url": self.api_url,
            "verify_ssl": self.verify_ssl,
            "debug": self.debug,
        }
