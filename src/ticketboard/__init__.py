"""ticketboard - ticket tracker with a dual-mode (remote API / local cache) data layer."""

__version__ = "0.1.0"


def get_version() -> str:
    """Return the package version."""
    return __version__
