"""Origin-bound, metered embedding gateway."""

__version__ = "1.0.0"
