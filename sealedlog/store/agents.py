"""
Store-side agent directory.

Keeps, per agent:
    agent/<id>/meta     AgentRecord as canonical JSON
    agent/<id>/ledger   the store's copy of that agent's ledger (blob)

Ledgers are stored exactly as received. The store keeps whatever
encrypted entries the agent sent and never holds the key to open them.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sealedlog.core.canonical import canonicalize, parse
from sealedlog.core.exceptions import CodecError
from sealedlog.core.time import now_ns, parse_timestamp
from sealedlog.ledger.ledger import Ledger
from sealedlog.ledger.sync import SyncRequest, SyncResponse, apply_response, build_request
from sealedlog.store.kv import KeyValueStore

logger = logging.getLogger(__name__)

_PREFIX = "agent/"


def _check_agent_id(agent_id: str) -> str:
    if not isinstance(agent_id, str) or not agent_id or "/" in agent_id:
        raise ValueError(f"agent_id must be a non-empty string without '/', got {agent_id!r}")
    return agent_id


def _meta_key(agent_id: str) -> str:
    return f"{_PREFIX}{_check_agent_id(agent_id)}/meta"


def _ledger_key(agent_id: str) -> str:
    return f"{_PREFIX}{_check_agent_id(agent_id)}/ledger"


@dataclass
class AgentRecord:
    agent_id:      str
    registered_at: int
    last_seen:     Optional[int] = None
    last_address:  Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent_id":      self.agent_id,
            "registered_at": str(self.registered_at),
            "last_seen":     str(self.last_seen) if self.last_seen is not None else None,
            "last_address":  self.last_address,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgentRecord":
        try:
            last_seen = data.get("last_seen")
            return cls(
                agent_id=      data["agent_id"],
                registered_at= parse_timestamp(data["registered_at"]),
                last_seen=     parse_timestamp(last_seen) if last_seen is not None else None,
                last_address=  data.get("last_address"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise CodecError(f"Malformed agent record: {exc}") from exc


class AgentDirectory:
    """
    Per-agent metadata and ledger copies on top of an injected KeyValueStore.

    The directory does not own the store: the caller opens it, passes it
    in, and closes it.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    # ── Agent metadata ────────────────────────────────────────

    def register(self, agent_id: str) -> AgentRecord:
        """Create the agent's record, or return the existing one."""
        _check_agent_id(agent_id)
        existing = self.get(agent_id)
        if existing is not None:
            return existing
        record = AgentRecord(agent_id=agent_id, registered_at=now_ns())
        self._put(record)
        logger.info("registered agent %s", agent_id)
        return record

    def touch(
        self,
        agent_id: str,
        address:  Optional[str] = None,
        seen_at:  Optional[int] = None,
    ) -> AgentRecord:
        """Record that the agent was seen. Registers it if unknown."""
        record = self.register(agent_id)
        record.last_seen = seen_at if seen_at is not None else now_ns()
        if address is not None:
            record.last_address = address
        self._put(record)
        return record

    def get(self, agent_id: str) -> Optional[AgentRecord]:
        raw = self.store.read(_meta_key(agent_id))
        if raw is None:
            return None
        try:
            data = parse(raw)
        except ValueError as exc:
            raise CodecError(f"Agent record for {agent_id!r} is not valid JSON") from exc
        return AgentRecord.from_dict(data)

    def agent_ids(self) -> List[str]:
        ids = []
        for key in self.store.keys(_PREFIX):
            text = key.decode("utf-8", errors="replace")
            if text.endswith("/meta"):
                ids.append(text[len(_PREFIX):-len("/meta")])
        return sorted(ids)

    def forget(self, agent_id: str) -> None:
        """Remove the agent's record and its ledger copy."""
        self.store.remove(_ledger_key(agent_id))
        self.store.remove(_meta_key(agent_id))

    # ── Ledger copies ─────────────────────────────────────────

    def load_ledger(self, agent_id: str) -> Ledger:
        raw = self.store.read(_ledger_key(agent_id))
        if raw is None:
            return Ledger()
        return Ledger.from_bytes(raw)

    def save_ledger(self, agent_id: str, ledger: Ledger) -> None:
        self.store.write(_ledger_key(agent_id), ledger.to_bytes())

    # ── Sync ──────────────────────────────────────────────────

    def sync_request(self, agent_id: str) -> SyncRequest:
        """Timestamps the store already holds for this agent."""
        return build_request(self.load_ledger(agent_id))

    def receive(self, agent_id: str, response: SyncResponse) -> int:
        """
        Merge an agent's SyncResponse into the stored copy and persist it.
        Returns the number of new entries. The agent is touched either way.
        """
        _check_agent_id(agent_id)
        ledger = self.load_ledger(agent_id)
        added  = apply_response(ledger, response)
        if added:
            self.save_ledger(agent_id, ledger)
        self.touch(agent_id)
        logger.info("agent %s: %d new entries stored", agent_id, added)
        return added

    # ── Internal ──────────────────────────────────────────────

    def _put(self, record: AgentRecord) -> None:
        self.store.write(_meta_key(record.agent_id), canonicalize(record.to_dict()))
