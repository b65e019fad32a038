"""Caller identity classification.

Session subjects use a prefix convention: guests are ``guest_<key>``,
registered customers are the upstream platform's numeric customer id.
The string is decoded once here into a tagged variant.
"""

from dataclasses import dataclass
from typing import Union

GUEST_PREFIX = "guest_"


@dataclass(frozen=True)
class Guest:
    """Unauthenticated caller tracked by a client-held key.

    ``key`` is None for an anonymous guest that has no wishlist link yet.
    """

    key: str | None = None

    is_guest = True


@dataclass(frozen=True)
class Registered:
    """Logged-in customer identified by the upstream external id."""

    external_id: str

    is_guest = False


Identity = Union[Guest, Registered]


def resolve_identity(subject_id: str | None) -> Identity:
    """Classify a subject identifier as guest or registered. Never raises."""
    if not subject_id:
        return Guest(key=None)

    if subject_id.startswith(GUEST_PREFIX):
        return Guest(key=subject_id[len(GUEST_PREFIX):])

    return Registered(external_id=subject_id)


def subject_id_for(identity: Identity) -> str | None:
    """Encode an identity back into the token subject form."""
    if isinstance(identity, Registered):
        return identity.external_id
    if identity.key is None:
        return None
    return f"{GUEST_PREFIX}{identity.key}"


def guest_key_from(value: str) -> str:
    """Extract the guest key from a ``guest_``-prefixed or bare identifier."""
    if value.startswith(GUEST_PREFIX):
        return value[len(GUEST_PREFIX):]
    return value
