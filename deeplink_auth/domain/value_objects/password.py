"""Password value object for the password-reset flow.

The new password entered at the end of a reset is validated here so the rule
set lives in one place. Each failed rule raises a ``PasswordPolicyError``
whose ``code`` is the i18n key describing that rule.
"""

import re
from dataclasses import dataclass
from typing import ClassVar

from deeplink_auth.core.exceptions import PasswordPolicyError


@dataclass(frozen=True)
class Password:
    """Password value object that enforces the reset complexity policy.

    Security Requirements:
        - Minimum 8 characters
        - Maximum 128 characters
        - At least one uppercase letter
        - At least one lowercase letter
        - At least one digit

    Attributes:
        value: The raw password string (immutable). Never log it.
    """

    value: str = ""

    MIN_LENGTH: ClassVar[int] = 8
    MAX_LENGTH: ClassVar[int] = 128

    def __post_init__(self) -> None:
        """Validate password on construction."""
        self._validate()

    def _validate(self) -> None:
        """Validate password against all policy rules.

        Raises:
            PasswordPolicyError: With the i18n key of the first failed rule.
        """
        if not isinstance(self.value, str) or not self.value:
            raise PasswordPolicyError("Password is required", "password_empty")

        if len(self.value) < self.MIN_LENGTH:
            raise PasswordPolicyError(
                f"Password must be at least {self.MIN_LENGTH} characters long",
                "password_too_short",
            )

        if len(self.value) > self.MAX_LENGTH:
            raise PasswordPolicyError(
                f"Password must not exceed {self.MAX_LENGTH} characters",
                "password_too_long",
            )

        if not re.search(r"[A-Z]", self.value):
            raise PasswordPolicyError(
                "Password must contain at least one uppercase letter",
                "password_missing_uppercase",
            )

        if not re.search(r"[a-z]", self.value):
            raise PasswordPolicyError(
                "Password must contain at least one lowercase letter",
                "password_missing_lowercase",
            )

        if not re.search(r"\d", self.value):
            raise PasswordPolicyError(
                "Password must contain at least one digit",
                "password_missing_digit",
            )

    def __repr__(self) -> str:
        return "Password(value='***')"
