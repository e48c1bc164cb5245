"""
Input validation utilities for the security rules client.

Provides reusable validation functions for resource names, project IDs,
bucket names and listing parameters. Every check runs locally and raises
InvalidArgumentError before any backend call is made.
"""

import re
from typing import Any, Final

from security_rules.core.errors import InvalidArgumentError

SEGMENT_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._~-]*$")
PROJECT_ID_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-z0-9][a-z0-9:.-]*$")
BUCKET_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[a-z0-9][a-z0-9._-]*[a-z0-9]$")

MAX_SEGMENT_LENGTH: Final[int] = 255
MAX_BUCKET_LENGTH: Final[int] = 222


def validate_resource_segment(value: Any, field_name: str = "name") -> str:
    """
    Validate a single resource path segment such as a ruleset short name.

    Segments must be non-empty strings made of letters, digits, dots,
    underscores, tildes and hyphens, and must not start with punctuation.
    The value is returned unchanged (no whitespace stripping) so that
    name translation stays an exact round trip.

    Args:
        value: The segment to validate
        field_name: Name of the field (for error messages)

    Returns:
        The validated segment

    Raises:
        InvalidArgumentError: If validation fails

    Examples:
        >>> validate_resource_segment("3f1c0a9e-5d7b-4c8e")
        '3f1c0a9e-5d7b-4c8e'
        >>> validate_resource_segment("a/b")  # doctest: +SKIP
        InvalidArgumentError: name must not contain '/' characters
    """
    if not isinstance(value, str) or not value:
        raise InvalidArgumentError(f"{field_name} must be a non-empty string")

    if "/" in value:
        raise InvalidArgumentError(f"{field_name} must not contain '/' characters")

    if len(value) > MAX_SEGMENT_LENGTH:
        raise InvalidArgumentError(
            f"{field_name} exceeds maximum length of {MAX_SEGMENT_LENGTH} characters"
        )

    if not SEGMENT_PATTERN.fullmatch(value):
        raise InvalidArgumentError(
            f"{field_name} contains invalid characters. "
            "Only alphanumeric characters, dots, underscores, tildes and hyphens are allowed."
        )

    return value


def validate_project_id(project_id: Any, field_name: str = "project_id") -> str:
    """
    Validate a Google Cloud project ID.

    Domain-scoped project IDs (``example.com:my-project``) are accepted.
    """
    if not isinstance(project_id, str) or not project_id.strip():
        raise InvalidArgumentError(
            f"{field_name} must be a non-empty string. Set it explicitly, via "
            "FIREBASE_CONFIG or via the GOOGLE_CLOUD_PROJECT environment variable."
        )

    project_id = project_id.strip()

    if not PROJECT_ID_PATTERN.fullmatch(project_id):
        raise InvalidArgumentError(f"{field_name} '{project_id}' contains invalid characters")

    return project_id


def validate_bucket_name(bucket: Any, field_name: str = "bucket") -> str:
    """
    Validate a Cloud Storage bucket name.

    Args:
        bucket: The bucket name to validate
        field_name: Name of the field (for error messages)

    Returns:
        The validated bucket name

    Raises:
        InvalidArgumentError: If validation fails

    Examples:
        >>> validate_bucket_name("my-project.appspot.com")
        'my-project.appspot.com'
        >>> validate_bucket_name("Bad/Bucket")  # doctest: +SKIP
        InvalidArgumentError: bucket 'Bad/Bucket' is not a valid bucket name
    """
    if not isinstance(bucket, str) or not bucket:
        raise InvalidArgumentError(f"{field_name} must be a non-empty string")

    if len(bucket) < 3 or len(bucket) > MAX_BUCKET_LENGTH or not BUCKET_PATTERN.fullmatch(bucket):
        raise InvalidArgumentError(f"{field_name} '{bucket}' is not a valid bucket name")

    return bucket


def validate_page_size(page_size: Any, max_size: int, field_name: str = "page_size") -> int:
    """
    Validate a listing page size.

    Out-of-range values are rejected, never clamped.

    Examples:
        >>> validate_page_size(10, 100)
        10
        >>> validate_page_size(101, 100)  # doctest: +SKIP
        InvalidArgumentError: page_size must be between 1 and 100, got 101
    """
    # bool is an int subclass
    if isinstance(page_size, bool) or not isinstance(page_size, int):
        raise InvalidArgumentError(
            f"{field_name} must be an integer, got {type(page_size).__name__}"
        )

    if page_size < 1 or page_size > max_size:
        raise InvalidArgumentError(
            f"{field_name} must be between 1 and {max_size}, got {page_size}"
        )

    return page_size


def validate_page_token(page_token: Any, field_name: str = "page_token") -> str:
    """Validate that a page token is a non-empty string."""
    if not isinstance(page_token, str) or not page_token:
        raise InvalidArgumentError(f"{field_name} must be a non-empty string")
    return page_token
