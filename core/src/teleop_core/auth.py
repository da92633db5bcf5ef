from __future__ import annotations

import json
import logging
import secrets
from dataclasses import dataclass, field
from pathlib import Path

from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CredentialStore:
    """Plaintext username -> password map loaded from users.json."""

    users: dict[str, str] = field(default_factory=dict)

    def check(self, username: str, password: str) -> bool:
        expected = self.users.get(username)
        if expected is None:
            return False
        return secrets.compare_digest(expected.encode("utf-8"), password.encode("utf-8"))

    def __len__(self) -> int:
        return len(self.users)


def load_credentials(path: Path) -> CredentialStore:
    """Read the credentials file.

    A missing or unreadable file is logged and yields an empty store, so every login fails
    while the relay itself keeps running.
    """

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.error("Credentials file not found: %s", path)
        return CredentialStore()
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Failed to load credentials from %s: %s", path, e)
        return CredentialStore()

    if not isinstance(data, dict):
        logger.error("Invalid credentials format at %s (expected an object)", path)
        return CredentialStore()

    users = {str(k): str(v) for k, v in data.items() if isinstance(v, str)}
    return CredentialStore(users=users)


def get_credentials(request: Request) -> CredentialStore:
    store = getattr(request.app.state, "credentials", None)
    if store is None:
        raise HTTPException(status_code=500, detail="Credentials not initialized")
    return store
