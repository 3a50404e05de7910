"""
Declaration variants
Explicit mode flags selecting which conditional resources a stack declares
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class DeclarationVariant:
    """Which conditional resources a stack declaration includes"""

    exclude_resource: bool = False
    include_for_import: bool = False

    @classmethod
    def from_pulumi_config(cls, config) -> "DeclarationVariant":
        """Build a variant from Pulumi stack configuration flags"""
        return cls(
            exclude_resource=bool(config.get_bool("excludeBucket")),
            include_for_import=bool(config.get_bool("importBucket")),
        )

    def describe(self) -> str:
        flags = []
        if self.exclude_resource:
            flags.append("exclude-resource")
        if self.include_for_import:
            flags.append("include-for-import")
        return ", ".join(flags) or "default"


DEFAULT = DeclarationVariant()
EXCLUDE_RESOURCE = DeclarationVariant(exclude_resource=True)
INCLUDE_FOR_IMPORT = DeclarationVariant(include_for_import=True)
