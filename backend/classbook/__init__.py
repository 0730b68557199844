"""Classbook backend: class scheduling, credit ledger and booking engine."""

from .core.constants import API_VERSION

__version__ = API_VERSION
