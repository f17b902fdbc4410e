"""Heraldry Quiz: multiple-choice recognition quiz over a catalog of emblems."""

__version__ = "0.1.0"
