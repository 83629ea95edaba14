"""Concrete implementations of canopy ports."""
