from __future__ import annotations

from typing import Protocol


class SecretHasher(Protocol):
    """Port for one-way hashing of passwords and opaque token secrets."""

    def hash(self, secret: str) -> str:
        """Return a salted, slow digest of ``secret``."""
        ...

    def compare(self, secret: str, digest: str) -> bool:
        """Return ``True`` only when ``secret`` produced ``digest``."""
        ...

    def new_token(self, nbytes: int) -> str:
        """Return ``nbytes`` of CSPRNG output as lowercase hex."""
        ...
