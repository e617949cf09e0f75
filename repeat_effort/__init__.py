"""repeat-effort: recurring goal dates for effort notes."""

__version__ = "0.1.0"
