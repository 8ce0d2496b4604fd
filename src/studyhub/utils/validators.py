"""Data validation helpers.

- validate_email(email) -> bool
- resolve_id(prefix, candidates) -> str: resolve an id prefix typed on
  the command line to a unique full id
"""

import re

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class AmbiguousIdError(Exception):
    """Raised when an id prefix matches several entities."""

    def __init__(self, prefix: str, candidates: list[str]):
        self.prefix = prefix
        self.candidates = candidates
        super().__init__(
            f"Prefix '{prefix}' is ambiguous. Candidates:\n"
            + "\n".join(f"  - {c}" for c in candidates)
        )


class IdNotFoundError(Exception):
    """Raised when no entity matches an id prefix."""

    def __init__(self, prefix: str):
        self.prefix = prefix
        super().__init__(f"No entity found with prefix '{prefix}'")


def validate_email(email: str) -> bool:
    """Validate email format. Empty string is not an address."""
    return bool(email) and bool(EMAIL_PATTERN.match(email))


def resolve_id(prefix: str, candidates: list[str]) -> str:
    """Resolve an id prefix to a unique full id.

    Raises:
        IdNotFoundError: If no candidates match the prefix
        AmbiguousIdError: If multiple candidates match the prefix
    """
    if prefix in candidates:
        return prefix

    matches = sorted(c for c in candidates if c.startswith(prefix))

    if len(matches) == 0:
        raise IdNotFoundError(prefix)
    elif len(matches) == 1:
        return matches[0]
    else:
        raise AmbiguousIdError(prefix, matches)
