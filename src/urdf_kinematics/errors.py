"""Exceptions raised while reading a robot description.

Both kinds are fatal: parsing stops at the first one and no partial model is
returned. They derive from ``ValueError`` so callers that already guard robot
loading with ``except ValueError`` keep working.
"""


class URDFError(ValueError):
    """Base class for invalid robot descriptions."""


class StructuralError(URDFError):
    """A required element or attribute is missing, or a reference is dangling."""


class FormatError(URDFError):
    """A value is present but cannot be interpreted (token counts, shape tags, numbers)."""
