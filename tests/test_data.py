"""
tests/test_data.py

Encrypted / Decrypted state machine.

Every transition is total. These tests feed it wrong keys, flipped
bytes, lying length prefixes and broken ciphers, and check that each
one comes back as a sentinel payload instead of an exception.
"""

import pytest

from sealedlog import (
    AeadCipher,
    ClipboardCopy,
    Decrypted,
    DecryptionFailed,
    Encrypted,
    EncryptionFailed,
)
from sealedlog.core.codec import LENGTH_PREFIX_SIZE, encode_payload, frame
from sealedlog.core.data import data_from_dict


PAYLOADS = [
    ClipboardCopy("hello"),
    ClipboardCopy(""),
    ClipboardCopy("ünïcødé ✂ 📋\nmulti\tline"),
    ClipboardCopy("x" * 100_000),
    EncryptionFailed(),
    DecryptionFailed(),
]


def _flip_last_byte(data: bytes) -> bytes:
    return data[:-1] + bytes([data[-1] ^ 0x01])


class _RecordingCipher:
    """Stands in for a cipher and records every AEAD call."""

    nonce_size = 12

    def __init__(self):
        self.calls = []

    def new_nonce(self) -> bytes:
        self.calls.append("new_nonce")
        return b"\x00" * self.nonce_size

    def seal(self, nonce, plaintext):
        self.calls.append("seal")
        raise ValueError("seal unavailable")

    def open(self, nonce, ciphertext):
        self.calls.append("open")
        raise ValueError("open unavailable")


# ─────────────────────────────────────────────────────────────
# ROUND TRIP
# ─────────────────────────────────────────────────────────────

class TestRoundTrip:

    @pytest.mark.parametrize("payload", PAYLOADS, ids=lambda p: p.kind)
    def test_decrypt_of_encrypt_is_identity(self, cipher, payload):
        original = Decrypted(payload)
        sealed = original.encrypt(cipher)

        assert isinstance(sealed, Encrypted)
        assert len(sealed.nonce) == cipher.nonce_size
        assert sealed.decrypt(cipher) == original

    def test_aes_gcm_round_trip(self, key):
        cipher = AeadCipher.aes_gcm(key)
        original = Decrypted(ClipboardCopy("gcm"))
        assert original.encrypt(cipher).decrypt(cipher) == original

    def test_associated_data_must_match(self, key):
        sealing = AeadCipher.chacha20poly1305(key, associated_data=b"agent-1")
        opening = AeadCipher.chacha20poly1305(key, associated_data=b"agent-2")
        sealed = Decrypted(ClipboardCopy("bound")).encrypt(sealing)

        assert sealed.decrypt(sealing) == Decrypted(ClipboardCopy("bound"))
        assert sealed.decrypt(opening) == Decrypted(DecryptionFailed())

    def test_dict_form_round_trips_both_states(self, cipher):
        opened = Decrypted(ClipboardCopy("dict"))
        sealed = opened.encrypt(cipher)

        assert data_from_dict(opened.to_dict()) == opened
        assert data_from_dict(sealed.to_dict()) == sealed


# ─────────────────────────────────────────────────────────────
# IDEMPOTENCE
# ─────────────────────────────────────────────────────────────

class TestIdempotence:

    def test_encrypt_on_encrypted_is_identity(self, cipher):
        sealed = Decrypted(ClipboardCopy("once")).encrypt(cipher)
        assert sealed.encrypt(cipher) == sealed

    def test_encrypt_on_encrypted_ignores_cipher(self, cipher, wrong_cipher):
        sealed = Decrypted(ClipboardCopy("once")).encrypt(cipher)
        assert sealed.encrypt(wrong_cipher) == sealed

    def test_decrypt_on_decrypted_is_identity(self, cipher):
        opened = Decrypted(ClipboardCopy("open"))
        assert opened.decrypt(cipher) == opened

    def test_failure_sentinel_survives_re_encrypt(self, cipher):
        sentinel = Encrypted.failure()
        assert sentinel.encrypt(cipher) == sentinel


# ─────────────────────────────────────────────────────────────
# NONCES
# ─────────────────────────────────────────────────────────────

class TestNonces:

    def test_same_payload_twice_gets_two_nonces(self, cipher):
        opened = Decrypted(ClipboardCopy("same"))
        a = opened.encrypt(cipher)
        b = opened.encrypt(cipher)

        assert a.nonce != b.nonce
        assert a.ciphertext != b.ciphertext

    def test_no_nonce_repeats_over_many_encryptions(self, cipher):
        opened = Decrypted(ClipboardCopy("many"))
        nonces = {opened.encrypt(cipher).nonce for _ in range(2_000)}
        assert len(nonces) == 2_000


# ─────────────────────────────────────────────────────────────
# FAILURE CONTAINMENT
# ─────────────────────────────────────────────────────────────

class TestFailureContainment:

    def test_wrong_key_yields_decryption_failed(self, cipher, wrong_cipher):
        sealed = Decrypted(ClipboardCopy("secret")).encrypt(cipher)
        assert sealed.decrypt(wrong_cipher) == Decrypted(DecryptionFailed())

    def test_corrupted_tag_yields_decryption_failed(self, cipher):
        sealed = Decrypted(ClipboardCopy("secret")).encrypt(cipher)
        tampered = Encrypted(_flip_last_byte(sealed.ciphertext), sealed.nonce)
        assert tampered.decrypt(cipher) == Decrypted(DecryptionFailed())

    def test_corrupted_nonce_yields_decryption_failed(self, cipher):
        sealed = Decrypted(ClipboardCopy("secret")).encrypt(cipher)
        tampered = Encrypted(sealed.ciphertext, _flip_last_byte(sealed.nonce))
        assert tampered.decrypt(cipher) == Decrypted(DecryptionFailed())

    def test_wrong_length_nonce_yields_decryption_failed(self, cipher):
        sealed = Decrypted(ClipboardCopy("secret")).encrypt(cipher)
        tampered = Encrypted(sealed.ciphertext, sealed.nonce[:-1])
        assert tampered.decrypt(cipher) == Decrypted(DecryptionFailed())

    def test_empty_ciphertext_with_nonce_is_not_the_sentinel(self, cipher):
        half_empty = Encrypted(b"", cipher.new_nonce())
        assert not half_empty.is_failure_sentinel
        assert half_empty.decrypt(cipher) == Decrypted(DecryptionFailed())

    def test_failed_seal_yields_sentinel(self):
        broken = _RecordingCipher()
        assert Decrypted(ClipboardCopy("x")).encrypt(broken) == Encrypted.failure()

    def test_unencodable_payload_yields_sentinel(self, cipher):
        assert Decrypted("not a payload").encrypt(cipher) == Encrypted.failure()

    def test_sentinel_decrypts_without_aead_call(self):
        recorder = _RecordingCipher()
        result = Encrypted.failure().decrypt(recorder)

        assert result == Decrypted(EncryptionFailed())
        assert recorder.calls == []


# ─────────────────────────────────────────────────────────────
# LENGTH-PREFIX FRAMING
# ─────────────────────────────────────────────────────────────

class TestFraming:

    def _seal_raw(self, cipher, plaintext: bytes) -> Encrypted:
        nonce = cipher.new_nonce()
        return Encrypted(cipher.seal(nonce, plaintext), nonce)

    def test_prefix_past_end_yields_decryption_failed(self, cipher):
        body = encode_payload(ClipboardCopy("short"))
        lying = (len(body) + 1_000).to_bytes(LENGTH_PREFIX_SIZE, "little") + body
        assert self._seal_raw(cipher, lying).decrypt(cipher) == Decrypted(DecryptionFailed())

    def test_huge_prefix_yields_decryption_failed(self, cipher):
        lying = (2 ** 64 - 1).to_bytes(LENGTH_PREFIX_SIZE, "little") + b"{}"
        assert self._seal_raw(cipher, lying).decrypt(cipher) == Decrypted(DecryptionFailed())

    def test_plaintext_shorter_than_prefix_yields_decryption_failed(self, cipher):
        assert self._seal_raw(cipher, b"\x01\x02").decrypt(cipher) == Decrypted(DecryptionFailed())

    def test_bytes_after_framed_body_are_ignored(self, cipher):
        framed = frame(encode_payload(ClipboardCopy("padded"))) + b"\x00" * 16
        assert self._seal_raw(cipher, framed).decrypt(cipher) == Decrypted(ClipboardCopy("padded"))

    def test_authentic_but_undecodable_body_yields_decryption_failed(self, cipher):
        framed = frame(b'{"kind":"not_a_kind"}')
        assert self._seal_raw(cipher, framed).decrypt(cipher) == Decrypted(DecryptionFailed())

    def test_authentic_but_non_json_body_yields_decryption_failed(self, cipher):
        framed = frame(b"\xff\xfe not json")
        assert self._seal_raw(cipher, framed).decrypt(cipher) == Decrypted(DecryptionFailed())
