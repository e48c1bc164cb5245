"""
Ruleset models: metadata, full rulesets and listing pages.

All instances are produced from backend responses and never mutated.
"""

from pydantic import BaseModel, ConfigDict, Field

from .rules_file import RulesFile


class RulesetMetadata(BaseModel):
    """
    Identifying metadata of a ruleset.

    Attributes:
        name: Short ruleset name without the project prefix; can be passed
              directly to get_ruleset() and delete_ruleset()
        create_time: Creation time as a UTC timestamp string
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    create_time: str = Field(..., min_length=1)


class Ruleset(RulesetMetadata):
    """
    A compiled set of security rules.

    Attributes:
        source: Rules files in the order supplied at creation
    """

    source: tuple[RulesFile, ...] = Field(..., min_length=1)


class RulesetMetadataList(BaseModel):
    """
    One page of ruleset metadata (transient, never persisted).

    Attributes:
        rulesets: Metadata in backend order (typically newest first)
        next_page_token: Token for the next page; None on the last page
    """

    model_config = ConfigDict(frozen=True)

    rulesets: tuple[RulesetMetadata, ...] = ()
    next_page_token: str | None = None
