"""
sealedlog: Agent ↔ Store Sync Example

Demonstrates:
- Recording events into an agent-side ledger
- Sealing every entry with a caller-held key
- A store catching up through timestamp diffing
- Failure sentinels when the wrong key is used
"""

import os
import tempfile
from pathlib import Path

from sealedlog import (
    AeadCipher,
    ClipboardCopy,
    Ledger,
    LedgerEntry,
    answer_request,
)
from sealedlog.store import AgentDirectory, SQLiteStore


def main():
    """Agent/store round trip."""

    print("=" * 60)
    print("sealedlog: Agent ↔ Store Sync Example")
    print("=" * 60)
    print()

    # The key is the caller's. sealedlog never creates or stores one.
    key    = os.urandom(32)
    cipher = AeadCipher.chacha20poly1305(key)

    # 1️⃣ Agent records events
    print("1️⃣ Agent records three events...")
    agent = Ledger()
    for text in ("first copy", "second copy", "third copy"):
        agent.push_back(LedgerEntry.now(ClipboardCopy(text)))
    sealed = agent.encrypt(cipher)
    print(f"✅ {len(sealed)} entries sealed")
    print()

    with tempfile.TemporaryDirectory() as tmp:
        store = SQLiteStore.open(Path(tmp) / "store.db")
        try:
            directory = AgentDirectory(store)

            # 2️⃣ Store asks what it is missing
            print("2️⃣ Store syncs with agent...")
            request = directory.sync_request("demo-agent")
            added   = directory.receive("demo-agent", answer_request(sealed, request))
            print(f"✅ Store received {added} new entries")

            # 3️⃣ Agent records one more; only that one travels
            sealed.push_back(LedgerEntry.now(ClipboardCopy("fourth copy")).encrypt(cipher))
            request = directory.sync_request("demo-agent")
            added   = directory.receive("demo-agent", answer_request(sealed, request))
            print(f"✅ Second sync sent {added} entry")
            print()

            stored = directory.load_ledger("demo-agent")
        finally:
            store.close()

    # 4️⃣ Open with the right key, then the wrong one
    print("3️⃣ Opening the stored copy...")
    for entry in stored.decrypt(cipher):
        print(f"  {entry.timestamp}  {entry.payload}")
    print()

    wrong = AeadCipher.chacha20poly1305(os.urandom(32))
    print("4️⃣ Opening with the wrong key...")
    for entry in stored.decrypt(wrong):
        print(f"  {entry.timestamp}  {entry.payload}")
    print()

    last = stored.decrypt(cipher).get_last_entry_by_type(ClipboardCopy(""))
    print(f"Last clipboard event: {last.payload.text!r}")


if __name__ == "__main__":
    main()
