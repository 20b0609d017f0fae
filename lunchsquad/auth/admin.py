from __future__ import annotations

import bcrypt

from ..config import DEFAULT_APP_CONFIG

_admin_hash: str | None = None


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def configure_admin(password: str | None) -> None:
    """Set the admin password. Empty or ``None`` disables admin access."""
    global _admin_hash
    _admin_hash = _hash_password(password) if password else None


def verify_admin(password: str) -> bool:
    return _admin_hash is not None and _verify_password(password, _admin_hash)


configure_admin(DEFAULT_APP_CONFIG.admin_password)
