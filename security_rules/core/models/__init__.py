"""
Value types for the security rules client.

All models are frozen Pydantic models: once built they are never mutated.
"""

from .rules_file import RulesFile
from .ruleset import Ruleset, RulesetMetadata, RulesetMetadataList

__all__ = [
    "RulesFile",
    "RulesetMetadata",
    "Ruleset",
    "RulesetMetadataList",
]
