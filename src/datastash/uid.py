# src/datastash/uid.py
"""
UID generation and validation.

UIDs are short opaque strings built from a format template where every
``X`` is replaced by a random character of the configured alphabet, e.g.
the default 32 ``X`` format yields ``Xmnw48xJKpolFYwLn7a0wetEdsTKym1M``.

Validation *searches* the candidate for the configured pattern and returns
the first match as the canonical UID. This lets callers pull a UID out of
a larger string (``/templates/<uid>.html``), but it also means the
canonical form can differ from the input: anything that uses a UID as a
storage key must compare the two.
"""

from __future__ import annotations

import re
import secrets
from typing import Protocol

from .exceptions import ConfigError, InvalidIdentifierError

PLACEHOLDER = "X"


class UIDValidator(Protocol):
    """Anything that can turn a candidate string into a canonical UID."""

    def validate(self, candidate: str) -> str:
        ...


class UIDGenerator:
    """Generates random UIDs and validates candidate strings.

    Args:
        chars: Alphabet the random characters are drawn from.
        format: Template; each ``X`` becomes one random character.
        validator_regexp: Pattern a canonical UID must match.
    """

    def __init__(self, chars: str, format: str, validator_regexp: str) -> None:
        if not chars:
            raise ConfigError("UID alphabet must not be empty.")
        if PLACEHOLDER not in format:
            raise ConfigError(f"UID format must contain at least one '{PLACEHOLDER}' placeholder.")
        try:
            self._pattern = re.compile(validator_regexp)
        except re.error as e:
            raise ConfigError(f"Invalid UID validator regexp {validator_regexp!r}: {e}") from e
        self.chars = chars
        self.format = format

    @classmethod
    def from_config(cls, config) -> "UIDGenerator":
        """Build a generator from a :class:`~datastash.config.models.UIDConfig`."""
        return cls(config.chars, config.format, config.validator_regexp)

    def new(self) -> str:
        """Return a fresh UID."""
        return "".join(
            secrets.choice(self.chars) if c == PLACEHOLDER else c
            for c in self.format
        )

    def validate(self, candidate: str) -> str:
        """Find a UID in ``candidate`` and return it.

        Raises:
            InvalidIdentifierError: If no substring matches the pattern.
        """
        if not isinstance(candidate, str):
            raise InvalidIdentifierError(candidate, "UID must be a string.")
        match = self._pattern.search(candidate)
        if match is None:
            raise InvalidIdentifierError(candidate, "Wrong uid.")
        return match.group(0)
