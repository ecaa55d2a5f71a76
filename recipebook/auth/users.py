from __future__ import annotations

from typing import Any

import bcrypt

_users: dict[str, dict[str, Any]] = {}


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def add_user(user_id: int, username: str, password: str, role: str = "user") -> None:
    _users[username] = {
        "id": user_id,
        "password_hash": _hash_password(password),
        "role": role,
    }


def _seed_users() -> None:
    """Pre-seed demo users on import."""
    add_user(1, "alice", "alice123")
    add_user(2, "bob", "bob123")
    add_user(3, "admin", "admin123", role="admin")


def authenticate(username: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns ``{id, username, role}`` or ``None``."""
    record = _users.get(username)
    if record and _verify_password(password, record["password_hash"]):
        return {"id": record["id"], "username": username, "role": record["role"]}
    return None


_seed_users()
