"""
Management client for Firebase Security Rules.

Create rules files and rulesets, list ruleset metadata and release
rulesets to Cloud Firestore or Cloud Storage buckets.
"""

from security_rules.backend import HttpRulesBackend, InMemoryRulesBackend, RulesBackend
from security_rules.client import SecurityRules
from security_rules.config import AppConfig, load_config
from security_rules.core.errors import (
    AlreadyExistsError,
    DeadlineExceededError,
    InternalError,
    InvalidArgumentError,
    InvalidServerResponseError,
    NotFoundError,
    PermissionDeniedError,
    ResourceExhaustedError,
    SecurityRulesError,
    UnavailableError,
    UnknownError,
)
from security_rules.core.models import Ruleset, RulesetMetadata, RulesetMetadataList, RulesFile

__all__ = [
    "SecurityRules",
    "AppConfig",
    "load_config",
    "RulesBackend",
    "InMemoryRulesBackend",
    "HttpRulesBackend",
    "RulesFile",
    "RulesetMetadata",
    "Ruleset",
    "RulesetMetadataList",
    "SecurityRulesError",
    "InvalidArgumentError",
    "NotFoundError",
    "AlreadyExistsError",
    "PermissionDeniedError",
    "ResourceExhaustedError",
    "UnavailableError",
    "DeadlineExceededError",
    "InternalError",
    "InvalidServerResponseError",
    "UnknownError",
]
