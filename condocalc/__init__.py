"""Condominium water billing calculator."""

__version__ = "0.1.0"
