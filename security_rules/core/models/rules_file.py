"""
RulesFile model: a named piece of rules source text.
"""

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from security_rules.core.errors import InvalidArgumentError


class RulesFile(BaseModel):
    """
    A source file containing security rules.

    Built locally with RulesFile.from_source(); no network call is involved.

    Attributes:
        name: Short file name identifying the file in a ruleset ("firestore.rules")
        content: Raw rules source including formatting and comments
    """

    model_config = ConfigDict(
        frozen=True,
        strict=True,
        json_schema_extra={
            "example": {
                "name": "firestore.rules",
                "content": "service cloud.firestore { match /databases/{db}/documents { } }",
            }
        },
    )

    name: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)

    @classmethod
    def from_source(cls, name: str, source: str | bytes) -> "RulesFile":
        """
        Create a RulesFile from a name and rules source.

        Args:
            name: Name to assign to the rules file
            source: Rules source as text or UTF-8 encoded bytes

        Returns:
            New immutable RulesFile

        Raises:
            InvalidArgumentError: If name or source is empty, of the wrong
                type, or the bytes are not valid UTF-8
        """
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError("Name must be a non-empty string.")

        if isinstance(source, (bytes, bytearray)):
            try:
                content = bytes(source).decode("utf-8")
            except UnicodeDecodeError as e:
                raise InvalidArgumentError(f"Source must be valid UTF-8: {e}") from e
        elif isinstance(source, str):
            content = source
        else:
            raise InvalidArgumentError("Source must be a non-empty string or bytes.")

        if not content:
            raise InvalidArgumentError("Source must be a non-empty string or bytes.")

        try:
            return cls(name=name, content=content)
        except ValidationError as e:
            raise InvalidArgumentError(f"Invalid rules file: {e}") from e
