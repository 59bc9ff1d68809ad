"""
Host entities that receive a token, and the name/symbol derived from them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Tuple

_WORD_RE = re.compile(r"[A-Za-z0-9]+")

MAX_SYMBOL_PREFIX = 4


@dataclass(frozen=True)
class Entity:
    """A host-side unit to tokenize (a company, in the game host)."""
    id: int
    name: str

    @property
    def key(self) -> str:
        return f"{self.id}:{self.name}"


EntitySource = Callable[[], Iterable[Entity]]


def derive_token_identity(entity: Entity, name_suffix: str = " Token") -> Tuple[str, str]:
    """
    Deterministic (name, symbol) for an entity.

    >>> derive_token_identity(Entity(3, "Acme Transport"))
    ('Acme Transport Token', 'AT3')
    """
    base = " ".join(entity.name.split()) or f"Company {entity.id}"
    initials = "".join(word[0] for word in _WORD_RE.findall(entity.name)).upper()
    prefix = initials[:MAX_SYMBOL_PREFIX] or "CO"
    return f"{base}{name_suffix}", f"{prefix}{entity.id}"


def parse_entity(spec: str) -> Entity:
    """Parse ``ID:NAME`` as given on the command line."""
    ident, sep, name = spec.partition(":")
    if not sep or not name.strip():
        raise ValueError(f"entity must look like ID:NAME, got {spec!r}")
    try:
        entity_id = int(ident)
    except ValueError:
        raise ValueError(f"entity id must be an integer, got {ident!r}") from None
    if entity_id < 0:
        raise ValueError(f"entity id must be >= 0, got {entity_id}")
    return Entity(id=entity_id, name=name.strip())
