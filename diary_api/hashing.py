import hashlib
import hmac

from .errors import ValidationError


def hash_password(password: str) -> str:
    """Return the lowercase hex SHA-256 digest of ``password``."""
    try:
        data = password.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise ValidationError("Invalid request parameters", fields=["password"]) from exc
    return hashlib.sha256(data).hexdigest()


def verify_password(password: str, digest: str | None) -> bool:
    if digest is None:
        return False
    return hmac.compare_digest(hash_password(password), digest)
