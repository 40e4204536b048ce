"""
Safe-Mode Gate

Safe mode is a single per-user override checked before anything else. While it
is on, nothing is contextually eligible and the only reason reported is
SAFE_MODE_REASON.
"""

SAFE_MODE_REASON = "safe_mode_active"


def is_blocking(safe_mode_enabled: bool) -> bool:
    """Whether safe mode blocks all contextual and manual invocation."""
    return bool(safe_mode_enabled)
