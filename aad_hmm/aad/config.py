"""
Engine configuration.

A single process-wide `AADConfig` holds the arena sizing and the numeric
tolerances used by the precondition checks. Arenas read it when they are
constructed, so changing the configuration only affects tapes created
afterwards.

Example:
    >>> from aad_hmm.aad.config import configure
    >>> configure(arena_max_bytes=16 * 1024 * 1024)
"""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class AADConfig:
    """Configuration for tapes, arenas and checks."""
    # Arena
    arena_initial_bytes: int = 64 * 1024
    arena_max_bytes: int = 1 << 30
    arena_alignment: int = 8  # Every handle is a multiple of this

    # Checks
    simplex_tolerance: float = 1e-8  # |1 - sum(theta)| allowed for a simplex


_config = AADConfig()


def get_config() -> AADConfig:
    """Return the active configuration."""
    return _config


def configure(**overrides) -> AADConfig:
    """
    Replace fields of the active configuration.

    Unknown field names raise TypeError. Returns the new configuration.
    """
    global _config
    new_config = replace(_config, **overrides)
    if new_config.arena_alignment <= 0:
        raise ValueError(f"arena_alignment must be positive, got {new_config.arena_alignment}")
    if new_config.arena_initial_bytes > new_config.arena_max_bytes:
        raise ValueError(
            f"arena_initial_bytes ({new_config.arena_initial_bytes}) exceeds "
            f"arena_max_bytes ({new_config.arena_max_bytes})"
        )
    _config = new_config
    return _config
