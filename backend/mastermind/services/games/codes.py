"""Secret code generators.

Every generator exposes ``generate(length) -> str``. Rooms receive one at
construction so tests can inject a deterministic sequence.
"""

import logging
import random
from http.client import HTTPException
from urllib.parse import urlencode
from urllib.request import urlopen

from .scoring import DIGITS


class CodeGenerationError(Exception):
    pass


def _check_code(code: str, length: int, alphabet: str) -> str:
    if len(code) != length or any(symbol not in alphabet for symbol in code):
        raise CodeGenerationError(f"unusable code {code!r} (length={length})")
    return code


class LocalCodeGenerator:
    """Pseudorandom digits from the operating system's entropy source."""

    def __init__(self, alphabet: str = DIGITS, rng=None):
        self.alphabet = alphabet
        self._rng = rng or random.SystemRandom()

    def generate(self, length: int) -> str:
        return ''.join(self._rng.choice(self.alphabet) for _ in range(length))


class RandomOrgCodeGenerator:
    """Codes from the random.org integer generator HTTP API.

    The plain text response holds one integer per line.
    """

    def __init__(self, url: str = 'https://www.random.org/integers/', alphabet: str = DIGITS,
                 timeout: float = 3.0, opener=urlopen):
        if len(alphabet) > 10:
            raise ValueError('random.org codes are limited to decimal digits')
        self.url = url
        self.alphabet = alphabet
        self.timeout = timeout
        self._open = opener

    def request_url(self, length: int) -> str:
        query = urlencode({
            'num': length,
            'min': 0,
            'max': len(self.alphabet) - 1,
            'col': 1,
            'base': 10,
            'format': 'plain',
            'rnd': 'new',
        })
        return f"{self.url}?{query}"

    def generate(self, length: int) -> str:
        try:
            with self._open(self.request_url(length), timeout=self.timeout) as response:
                body = response.read().decode('utf-8')
        except (OSError, HTTPException, UnicodeDecodeError, ValueError) as exc:
            raise CodeGenerationError(f"random.org request failed: {exc!r}") from exc
        digits = body.replace('\r', '').replace('\n', '')
        code = ''.join(self.alphabet[int(d)] if d in DIGITS[:len(self.alphabet)] else d for d in digits)
        return _check_code(code, length, self.alphabet)


class FallbackCodeGenerator:
    """Try ``primary`` first and use ``secondary`` when it fails."""

    def __init__(self, primary, secondary, logger=None):
        self.primary = primary
        self.secondary = secondary
        self.logger = logger or logging.getLogger(__name__)

    def generate(self, length: int) -> str:
        try:
            return self.primary.generate(length)
        except CodeGenerationError as exc:
            self.logger.warning(f"[code-fallback] {exc}")
            return self.secondary.generate(length)


def build_code_generator(config, logger=None):
    """Pick the generator named by ``CODE_SOURCE`` in a Flask config mapping."""
    alphabet = config.get('CODE_ALPHABET', DIGITS)
    local = LocalCodeGenerator(alphabet)
    source = config.get('CODE_SOURCE', 'local')
    if source == 'local':
        return local
    if source == 'random_org':
        remote = RandomOrgCodeGenerator(
            url=config.get('RANDOM_ORG_URL', 'https://www.random.org/integers/'),
            alphabet=alphabet,
            timeout=float(config.get('RANDOM_ORG_TIMEOUT_SEC', 3)),
        )
        return FallbackCodeGenerator(remote, local, logger=logger)
    raise ValueError(f"unknown CODE_SOURCE {source!r}")
