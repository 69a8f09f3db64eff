"""Identity and family context package."""

from family_budget.identity.context import (
    FamilyNotFoundError,
    IdentityContext,
    IdentityError,
    NotAuthenticatedError,
    generate_family_code,
)

__all__ = [
    "FamilyNotFoundError",
    "IdentityContext",
    "IdentityError",
    "NotAuthenticatedError",
    "generate_family_code",
]
