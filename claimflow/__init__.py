"""Claimflow: AI-assisted auto damage claim intake and workflow."""

__version__ = "1.0.0"
