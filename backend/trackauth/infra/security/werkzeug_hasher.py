# trackauth/infra/security/werkzeug_hasher.py
from __future__ import annotations

import secrets
from dataclasses import dataclass

from werkzeug.security import check_password_hash, generate_password_hash

from trackauth.services._shared.ports import SecretHasher


@dataclass(frozen=True, slots=True)
class WerkzeugSecretHasher(SecretHasher):
    """
    Adapter over :mod:`werkzeug.security`.

    :param method: Werkzeug hashing method, e.g. ``"scrypt"`` (default) or
        ``"pbkdf2:sha256:600000"``. Each digest carries its own random salt.
    :type method: str
    :param salt_length: Salt size in characters.
    :type salt_length: int
    """

    method: str = "scrypt"
    salt_length: int = 16

    def hash(self, secret: str) -> str:
        if not isinstance(secret, str):
            raise TypeError(f"secret must be str, got {type(secret).__name__}")
        return generate_password_hash(secret, method=self.method, salt_length=self.salt_length)

    def compare(self, secret: str, digest: str) -> bool:
        """
        Check ``secret`` against a stored digest in constant time.

        A digest Werkzeug cannot parse compares as ``False``.

        :raises TypeError: If ``secret`` or ``digest`` is not a ``str``.
        """
        if not isinstance(secret, str) or not isinstance(digest, str):
            raise TypeError("secret and digest must be str")
        try:
            return check_password_hash(digest, secret)
        except (ValueError, TypeError):
            return False

    def new_token(self, nbytes: int) -> str:
        return secrets.token_hex(nbytes)
