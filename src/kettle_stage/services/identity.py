"""Pseudonym generation for anonymous posts.

Every post gets a two-token display name such as "Spicy Matcha" when it is
poured. The name is flavour only: collisions are expected and it must never
be used to authorize or deduplicate anything.
"""

from __future__ import annotations

import random

QUALIFIERS: tuple[str, ...] = (
    "Spicy",
    "Iced",
    "Salty",
    "Cozy",
    "Chaotic",
    "Midnight",
    "Electric",
    "Cosmic",
    "Smoky",
    "Velvet",
    "Bubbly",
    "Neon",
    "Feral",
    "Ghosted",
    "Delulu",
)

NOUNS: tuple[str, ...] = (
    "Matcha",
    "Earl Grey",
    "Oolong",
    "Jasmine",
    "Chai",
    "Genmaicha",
    "Thai Tea",
    "Milk Tea",
    "Bubble Tea",
    "Yerba",
    "Peppermint",
    "Black Tea",
    "Green Tea",
    "Hojicha",
    "London Fog",
)


def generate_identity(rng: random.Random | None = None) -> str:
    """Return a random "<qualifier> <noun>" label.

    Args:
        rng: Optional random source; the module-level generator is used when omitted.
    """
    source = rng or random
    return f"{source.choice(QUALIFIERS)} {source.choice(NOUNS)}"
