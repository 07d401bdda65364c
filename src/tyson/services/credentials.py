"""Service principal credentials loader."""

import json
from pathlib import Path
from typing import Any, Dict

from tyson.errors import ConfigError
from tyson.errors_catalog import actionable_error
from tyson.models import Credentials

DEFAULT_CREDENTIALS_PATH = Path.home() / ".azure" / "credentials.json"


class CredentialLoader:
    """Reads a JSON credentials file into :class:`Credentials`.

    Keys match case-insensitively and ignore ``_`` and ``-``, so
    ``SubscriptionID``, ``subscriptionId`` and ``subscription_id`` are equivalent.
    """

    FIELDS = ("subscription_id", "client_id", "client_secret", "tenant_id")

    def __init__(self, logger):
        self.logger = logger

    def load(self, path: str) -> Credentials:
        credentials_path = Path(path).expanduser()
        if not credentials_path.is_file():
            raise ConfigError(actionable_error("credentials_not_found", path=str(credentials_path)))

        try:
            parsed = json.loads(credentials_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigError(f"Invalid credentials file '{credentials_path}': {exc}") from exc

        if not isinstance(parsed, dict):
            raise ConfigError("Credentials file must contain a JSON object at the root.")

        values = self._normalize_keys(parsed)
        missing = [name for name in self.FIELDS if not values.get(name.replace("_", ""))]
        if missing:
            raise ConfigError(
                f"Credentials file '{credentials_path}' is missing: {', '.join(missing)}"
            )

        self.logger.debug("Loaded credentials from %s", credentials_path)
        return Credentials(**{name: str(values[name.replace("_", "")]) for name in self.FIELDS})

    @staticmethod
    def _normalize_keys(parsed: Dict[str, Any]) -> Dict[str, Any]:
        return {
            str(key).replace("_", "").replace("-", "").lower(): value
            for key, value in parsed.items()
        }
