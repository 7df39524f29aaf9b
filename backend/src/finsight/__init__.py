"""Finsight - multi-provider AI chat engine for personal-finance questions."""

__version__ = "0.1.0"
