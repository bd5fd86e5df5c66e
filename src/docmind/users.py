"""User registration, credential checks and admin seeding."""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets

from docmind.config import get_settings
from docmind.errors import DuplicateUserError
from docmind.models import Role, User
from docmind.stores.records import RecordStore

log = logging.getLogger(__name__)

_ALGORITHM = "pbkdf2_sha256"
_ITERATIONS = 600_000


def hash_password(password: str, *, iterations: int | None = None) -> str:
    """Return ``pbkdf2_sha256$<iterations>$<salt>$<digest>``."""
    iterations = iterations or _ITERATIONS
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("ascii"), iterations
    )
    return f"{_ALGORITHM}${iterations}${salt}${digest.hex()}"


def verify_password(password: str, encoded: str) -> bool:
    try:
        algorithm, iterations, salt, expected = encoded.split("$", 3)
    except ValueError:
        return False
    if algorithm != _ALGORITHM:
        return False

    try:
        digest = hashlib.pbkdf2_hmac(
            "sha256", password.encode("utf-8"), salt.encode("ascii"), int(iterations)
        )
    except (ValueError, OverflowError, UnicodeEncodeError):
        # corrupted stored hash
        return False
    return hmac.compare_digest(digest.hex().encode("ascii"), expected.encode("utf-8"))


def register_user(
    store: RecordStore,
    name: str,
    email: str,
    password: str,
    *,
    role: Role = Role.CLIENT,
) -> User:
    """Create a user unless the email is already taken.

    Raises:
        DuplicateUserError: if a user with *email* exists.
    """
    if store.get_user_by_email(email) is not None:
        raise DuplicateUserError(email)

    user = User(name=name, email=email, password_hash=hash_password(password), role=role)
    user.id = store.add_user(user)
    log.info("Registered %s user %s", role.value, email)
    return user


def authenticate(store: RecordStore, email: str, password: str) -> User | None:
    """Return the user if *password* matches, else None."""
    user = store.get_user_by_email(email)
    if user is None or not verify_password(password, user.password_hash):
        return None
    return user


def seed_admin(store: RecordStore) -> User:
    """Create the configured admin account if it does not exist yet."""
    cfg = get_settings().admin
    existing = store.get_user_by_email(cfg.email)
    if existing is not None:
        return existing

    user = register_user(store, cfg.name, cfg.email, cfg.password, role=Role.ADMIN)
    log.info("Admin user seeded: %s", cfg.email)
    return user
