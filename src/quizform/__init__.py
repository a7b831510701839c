"""Quiz forms with graded, exactly-once submissions."""

__version__ = "0.1.0"
