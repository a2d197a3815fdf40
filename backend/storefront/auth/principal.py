from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Final

# users.id is a 32-bit serial, so nothing outside this range names a user.
MIN_PRINCIPAL_ID: Final[int] = 1
MAX_PRINCIPAL_ID: Final[int] = 2**31 - 1


@dataclass(frozen=True)
class Principal:
    """The caller of a protected operation, as seen by authorization.

    Only built from an already verified claim set; this class never checks
    signatures or expiry.
    """

    claims: Mapping[str, Any] = field(default_factory=dict)
    authenticated: bool = False

    @classmethod
    def anonymous(cls) -> Principal:
        return cls(claims=MappingProxyType({}), authenticated=False)

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> Principal:
        return cls(claims=MappingProxyType(dict(claims)), authenticated=True)

    def principal_id(self, claim: str = "sub") -> int | None:
        """Return the numeric user id carried in ``claim``, or None.

        Booleans, floats, blank strings, anything that is not an unsigned
        base-10 integer, and ids outside MIN_PRINCIPAL_ID..MAX_PRINCIPAL_ID
        resolve to None.
        """
        if not self.authenticated:
            return None
        raw = self.claims.get(claim)
        if isinstance(raw, bool):
            return None
        if isinstance(raw, int):
            value = raw
        elif isinstance(raw, str):
            text = raw.strip()
            if not (text.isascii() and text.isdigit()):
                return None
            value = int(text)
        else:
            return None
        if not MIN_PRINCIPAL_ID <= value <= MAX_PRINCIPAL_ID:
            return None
        return value
