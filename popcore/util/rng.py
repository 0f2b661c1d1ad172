"""RNG utilities for deterministic sessions.

Every random draw in a session (spawn position, category, jitter) goes
through one ``random.Random`` owned by the controller, so a seeded
controller replays identically. These helpers fail loudly when a system
is wired without that RNG instead of silently falling back to the global
one.
"""

import random
from typing import Optional


class MissingRNGError(RuntimeError):
    """Raised when an RNG is required but was not provided.

    This indicates a wiring bug: systems get the controller's RNG at
    construction time.
    """


def require_rng_param(rng: Optional[random.Random], context: str) -> random.Random:
    """Validate that an RNG parameter was provided.

    Args:
        rng: The RNG that should have been provided
        context: Description of the caller (for error messages)

    Raises:
        MissingRNGError: If rng is None
    """
    if rng is None:
        raise MissingRNGError(
            f"RNG is required but was None (context: {context}). "
            "Pass the session controller's RNG explicitly."
        )
    return rng


def make_rng(seed: Optional[int] = None) -> random.Random:
    """Create the controller's RNG, seeded when ``seed`` is given."""
    return random.Random(seed)
