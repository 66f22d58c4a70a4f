"""In-memory identity directory.

The directory is built once at startup and never mutated.  Lookups for
unknown names return ``None`` from :meth:`IdentityDirectory.get` and the
guest identity from :meth:`IdentityDirectory.resolve`.
"""
from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterable, Iterator

from filegate.identity.models import Identity, guest_identity

logger = logging.getLogger(__name__)


class IdentityDirectory:
    """Read-only name → Identity lookup with a guest fallback.

    Parameters
    ----------
    identities:
        Registered (login-able) identities.  Names must be unique and must
        not collide with the guest's name.
    guest:
        The identity used for unauthenticated requests.  Defaults to
        :func:`~filegate.identity.models.guest_identity`.

    Raises
    ------
    ValueError
        On duplicate names, a registered identity shadowing the guest, or
        an admin guest.
    """

    def __init__(
        self,
        identities: Iterable[Identity] = (),
        guest: Identity | None = None,
    ) -> None:
        self._guest = guest if guest is not None else guest_identity()
        if self._guest.is_admin:
            raise ValueError("The guest identity must not have the admin role.")

        entries: dict[str, Identity] = {}
        for identity in identities:
            if identity.name == self._guest.name:
                raise ValueError(
                    f"Identity name {identity.name!r} is reserved for the guest."
                )
            if identity.name in entries:
                raise ValueError(f"Duplicate identity name {identity.name!r}.")
            entries[identity.name] = identity
        self._entries = MappingProxyType(entries)
        logger.info("Identity directory loaded with %d identities", len(entries))

    @property
    def guest(self) -> Identity:
        return self._guest

    def get(self, name: str) -> Identity | None:
        """Return the registered identity called ``name``, or ``None``."""
        return self._entries.get(name)

    def resolve(self, name: str | None) -> Identity:
        """Return the identity called ``name``, falling back to the guest."""
        if name is None:
            return self._guest
        return self._entries.get(name, self._guest)

    def is_registered(self, name: str) -> bool:
        return name in self._entries

    def names(self) -> list[str]:
        return sorted(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[Identity]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"IdentityDirectory(identities={self.names()!r})"
