"""A Value Object representing an email address in the domain.

As a Value Object it is immutable and equality is based on the normalized
address, not identity.
"""

import re
from dataclasses import dataclass
from typing import ClassVar

from structlog import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Email:
    """An immutable, self-validating email address.

    Business rules enforced on instantiation:
    - Conforms to a conventional ``local@domain.tld`` shape.
    - Has a reasonable length.
    - Is automatically normalized to lowercase.

    Attributes:
        value: The string representation of the email address.
    """

    value: str

    MAX_LENGTH: ClassVar[int] = 254
    MIN_LENGTH: ClassVar[int] = 5
    EMAIL_PATTERN: ClassVar[re.Pattern] = re.compile(
        r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    )

    def __post_init__(self):
        """Performs validation and normalization after initialization."""
        if not isinstance(self.value, str):
            raise ValueError("Email value must be a string.")

        normalized_value = self.value.strip().lower()
        object.__setattr__(self, "value", normalized_value)

        if not (self.MIN_LENGTH <= len(normalized_value) <= self.MAX_LENGTH):
            raise ValueError(
                f"Email length must be between {self.MIN_LENGTH} and {self.MAX_LENGTH} characters."
            )
        if not self.EMAIL_PATTERN.match(normalized_value):
            raise ValueError("Invalid email format.")

        logger.debug("Email validated successfully", email=self.mask_for_logging())

    def mask_for_logging(self) -> str:
        """Returns a masked version of the email suitable for logs.

        Example:
            ``john.doe@example.com`` becomes ``jo***@example.com``.
        """
        local_part, domain = self.value.split("@", 1)
        return f"{local_part[:2]}***@{domain}"

    def __str__(self) -> str:
        return self.value
