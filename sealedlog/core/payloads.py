"""
sealedlog/core/payloads.py

LedgerData: the payload union carried by every ledger entry.

Variants:
    ClipboardCopy(text)   - a captured clipboard copy event
    EncryptionFailed()    - sentinel: sealing this entry failed
    DecryptionFailed()    - sentinel: opening this entry failed

Sentinels are ordinary payloads. They serialize, encrypt and sync like
any captured event, so a failed entry stays visible in the log instead
of silently disappearing.

Two notions of equality:
    a == b             value equality (dataclass)
    a.same_kind(b)     variant-tag equality: ClipboardCopy("x") and
                       ClipboardCopy("y") are the same kind
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Type

from sealedlog.core.exceptions import CodecError


class LedgerData:
    """
    Base of the payload union. Never instantiated directly.

    Subclasses declare a unique `kind` tag and are registered at import
    time so from_dict() can dispatch on it.
    """

    kind: ClassVar[str] = ""

    def same_kind(self, other: "LedgerData") -> bool:
        return isinstance(other, LedgerData) and self.kind == other.kind

    @property
    def is_failure(self) -> bool:
        """True for the two crypto-failure sentinels."""
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind}

    @classmethod
    def _from_fields(cls, data: Dict[str, Any]) -> "LedgerData":
        return cls()

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "LedgerData":
        """
        Rebuild a payload from its dict form.

        Raises CodecError on a non-dict, an unknown kind, or a missing
        or mistyped field.
        """
        if not isinstance(data, dict):
            raise CodecError(
                f"payload must be dict, got {type(data).__name__}"
            )
        kind = data.get("kind")
        variant = _VARIANTS.get(kind)
        if variant is None:
            raise CodecError(
                f"Unknown payload kind {kind!r}",
                {"valid": sorted(_VARIANTS)},
            )
        return variant._from_fields(data)


@dataclass(frozen=True)
class ClipboardCopy(LedgerData):
    text: str

    kind: ClassVar[str] = "clipboard_copy"

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "text": self.text}

    @classmethod
    def _from_fields(cls, data: Dict[str, Any]) -> "ClipboardCopy":
        text = data.get("text")
        if not isinstance(text, str):
            raise CodecError(
                f"clipboard_copy.text must be str, got {type(text).__name__}"
            )
        return cls(text=text)


@dataclass(frozen=True)
class EncryptionFailed(LedgerData):
    """Recorded in place of a payload whose encryption failed."""

    kind: ClassVar[str] = "encryption_failed"

    @property
    def is_failure(self) -> bool:
        return True


@dataclass(frozen=True)
class DecryptionFailed(LedgerData):
    """Recorded in place of a payload that could not be authenticated or decoded."""

    kind: ClassVar[str] = "decryption_failed"

    @property
    def is_failure(self) -> bool:
        return True


# Built once at import time. O(1) dispatch in from_dict().
_VARIANTS: Dict[str, Type[LedgerData]] = {
    ClipboardCopy.kind:    ClipboardCopy,
    EncryptionFailed.kind: EncryptionFailed,
    DecryptionFailed.kind: DecryptionFailed,
}

PAYLOAD_KINDS = frozenset(_VARIANTS)
