# app/services/codes.py
"""Certificate verification codes.

Format: ``CERT-XXXXXX-XXXXXX`` where each group holds 6 characters from
``A-Z0-9``. Characters are drawn from an injected byte source
(``secrets.token_bytes`` by default) so tests can force collisions without
patching module globals.
"""
from __future__ import annotations

import logging
import re
import secrets
import string
from typing import Callable, NamedTuple, Optional

logger = logging.getLogger(__name__)

ALPHABET = string.ascii_uppercase + string.digits
CODE_PREFIX = "CERT"
GROUP_LENGTH = 6
CODE_LENGTH = len(CODE_PREFIX) + 2 * (GROUP_LENGTH + 1)  # 18
CODE_PATTERN = re.compile(r"^CERT-[A-Z0-9]{6}-[A-Z0-9]{6}$")

# bytes >= this value are rejected so every character is equally likely
_REJECT_FROM = 256 - (256 % len(ALPHABET))
# upper bound on reads per group; an honest source needs one or two
_MAX_DRAWS = 16

RandomSource = Callable[[int], bytes]


def is_valid_code(code: str) -> bool:
    return bool(code) and CODE_PATTERN.match(code) is not None


class CodeGenerator:
    def __init__(self, random_bytes: RandomSource = secrets.token_bytes):
        self._random_bytes = random_bytes

    def _group(self) -> str:
        chars: list[str] = []
        for _ in range(_MAX_DRAWS):
            if len(chars) == GROUP_LENGTH:
                break
            chunk = self._random_bytes(GROUP_LENGTH)
            if len(chunk) < GROUP_LENGTH:
                raise ValueError(f"random source returned {len(chunk)} bytes, expected {GROUP_LENGTH}")
            for b in chunk:
                if b < _REJECT_FROM:
                    chars.append(ALPHABET[b % len(ALPHABET)])
                    if len(chars) == GROUP_LENGTH:
                        break
        if len(chars) < GROUP_LENGTH:
            raise ValueError(f"random source produced only rejected bytes after {_MAX_DRAWS} draws")
        return "".join(chars)

    def generate(self) -> str:
        return f"{CODE_PREFIX}-{self._group()}-{self._group()}"


class CodeAttempt(NamedTuple):
    """Outcome of the uniqueness loop; ``code`` is None when the budget ran out."""
    code: Optional[str]
    attempts: int

    @property
    def ok(self) -> bool:
        return self.code is not None


def generate_unique_code(
    exists: Callable[[str], bool],
    generator: CodeGenerator,
    max_attempts: int,
) -> CodeAttempt:
    for attempt in range(1, max_attempts + 1):
        code = generator.generate()
        if not exists(code):
            return CodeAttempt(code, attempt)
        logger.warning("certificate code collision on attempt %d/%d", attempt, max_attempts)
    return CodeAttempt(None, max_attempts)
