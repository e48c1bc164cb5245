"""
Translation between short, caller-facing ruleset names and fully qualified
backend resource paths.

    resolve("my-ruleset")  -> "projects/my-project/rulesets/my-ruleset"
    shorten("projects/my-project/rulesets/my-ruleset") -> "my-ruleset"
"""

from typing import Final

from security_rules.core.errors import InvalidArgumentError
from security_rules.utils.validation import validate_project_id, validate_resource_segment

FIRESTORE_RELEASE: Final[str] = "cloud.firestore"
STORAGE_RELEASE_PREFIX: Final[str] = "firebase.storage"


class NameResolver:
    """
    Resolves ruleset and release names for a single project.

    The resolver only accepts full names under its own project, so a name
    taken from another project is rejected instead of silently shortened.
    """

    def __init__(self, project_id: str):
        self.project_id = validate_project_id(project_id)
        self._rulesets_prefix = f"{self.project_path}/rulesets/"

    @property
    def project_path(self) -> str:
        return f"projects/{self.project_id}"

    def resolve(self, short_name: str) -> str:
        """
        Build the fully qualified resource name of a ruleset.

        Args:
            short_name: Ruleset name without the project prefix

        Returns:
            Fully qualified ruleset resource name

        Raises:
            InvalidArgumentError: If the short name is not a valid path segment
        """
        validate_resource_segment(short_name, field_name="Ruleset name")
        return f"{self._rulesets_prefix}{short_name}"

    def shorten(self, full_name: str) -> str:
        """
        Strip the project prefix from a fully qualified ruleset name.

        Raises:
            InvalidArgumentError: If the name belongs to another project or
                does not name a ruleset
        """
        if not isinstance(full_name, str) or not full_name.startswith(self._rulesets_prefix):
            raise InvalidArgumentError(
                f"Resource name '{full_name}' is not a ruleset of project '{self.project_id}'"
            )
        return validate_resource_segment(
            full_name[len(self._rulesets_prefix):], field_name="Ruleset name"
        )

    def release_path(self, release_id: str) -> str:
        """Build the fully qualified name of a release (binding) resource."""
        return f"{self.project_path}/releases/{release_id}"

    def firestore_release(self) -> str:
        return self.release_path(FIRESTORE_RELEASE)

    def storage_release(self, bucket: str) -> str:
        return self.release_path(f"{STORAGE_RELEASE_PREFIX}/{bucket}")
