"""
Shared fixtures: caller-held keys and the ciphers built from them.

Keys are generated here, in the tests. The package never generates keys.
"""

import os

import pytest

from sealedlog import AeadCipher


@pytest.fixture
def key() -> bytes:
    return os.urandom(32)


@pytest.fixture
def other_key() -> bytes:
    return os.urandom(32)


@pytest.fixture
def cipher(key) -> AeadCipher:
    return AeadCipher.chacha20poly1305(key)


@pytest.fixture
def wrong_cipher(other_key) -> AeadCipher:
    return AeadCipher.chacha20poly1305(other_key)
