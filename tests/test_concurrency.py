"""
tests/test_concurrency.py

Bulk encrypt/decrypt across worker threads, and several threads reading
one shared ledger at once.

Run:
    pytest tests/test_concurrency.py -v --tb=short
"""

import threading

import sealedlog.ledger.ledger as ledger_module
from sealedlog import ClipboardCopy, Ledger, LedgerConfig, LedgerEntry


class TestConcurrency:

    def test_default_threshold_engages_parallel_path(self, cipher, monkeypatch):
        """A ledger above the default threshold is split into batches, in order."""
        batches = []
        original = ledger_module._transform_batch

        def recording_batch(batch, transform):
            batches.append(threading.get_ident())
            return original(batch, transform)

        monkeypatch.setattr(ledger_module, "_transform_batch", recording_batch)

        config = LedgerConfig(max_workers=4)
        n = config.parallel_threshold + 500
        ledger = Ledger(
            LedgerEntry.new(n - i, ClipboardCopy(f"entry {i}")) for i in range(n)
        )

        sealed = ledger.encrypt(cipher, config=config)
        batch_size = n // (4 * config.batch_size_per_worker_multiplier)
        assert len(batches) == -(-n // batch_size)
        assert threading.get_ident() not in batches
        assert sealed.export_timestamps() == ledger.export_timestamps()
        assert len({e.data.nonce for e in sealed}) == n
        assert sealed.decrypt(cipher, config=config) == ledger

    def test_below_threshold_stays_sequential(self, cipher, monkeypatch):
        calls = []
        monkeypatch.setattr(
            ledger_module, "_transform_batch", lambda batch, transform: calls.append(batch)
        )
        config = LedgerConfig(parallel_threshold=100, max_workers=4)
        ledger = Ledger(LedgerEntry.new(i, ClipboardCopy(str(i))) for i in range(99))

        assert ledger.encrypt(cipher, config=config).decrypt(cipher) == ledger
        assert calls == []

    def test_concurrent_decrypts_of_shared_ledger(self, cipher):
        """Threads decrypting the same sealed ledger all get the same result."""
        ledger = Ledger(LedgerEntry.new(i, ClipboardCopy(str(i))) for i in range(400))
        sealed = ledger.encrypt(cipher)
        config = LedgerConfig(parallel_threshold=1, max_workers=4)
        results = []
        errors = []

        def decrypt():
            try:
                results.append(sealed.decrypt(cipher, config=config))
            except Exception as e:
                errors.append(str(e))

        threads = [threading.Thread(target=decrypt) for _ in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == [], f"Concurrent decrypts raised exceptions: {errors}"
        assert len(results) == 6
        assert all(r == ledger for r in results)
        assert all(e.is_encrypted for e in sealed)

    def test_caller_locked_appends_lose_nothing(self):
        """With the caller holding a lock, concurrent push_back keeps every entry."""
        ledger = Ledger()
        lock = threading.Lock()

        def write_100(base: int):
            for i in range(100):
                with lock:
                    ledger.push_back(LedgerEntry.new(base + i, ClipboardCopy("x")))

        threads = [threading.Thread(target=write_100, args=(k * 1_000,)) for k in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(ledger) == 400
        assert len(set(ledger.export_timestamps())) == 400
