"""
Rules backend implementations.
"""

from .base import RulesBackend
from .http import HttpRulesBackend
from .memory import InMemoryRulesBackend

__all__ = [
    "RulesBackend",
    "HttpRulesBackend",
    "InMemoryRulesBackend",
]
