from __future__ import annotations

"""
Position ownership registry
---------------------------

The lifecycle layer does not implement ownership itself. It talks to a
`PositionRegistry`, the capability that issues identifiers, records owners,
moves positions between accounts, and answers authorization questions
(owner, per-position approval, or operator-for-all approval).

`InMemoryRegistry` is the reference implementation used by the pool in
tests and single-process deployments. Identifiers are plain, monotonically
increasing integers starting at 1. Burned identifiers are never reused.
"""

from threading import RLock
from typing import Any, Dict, List, Optional, Protocol, Set

from lockpool.errors import PositionNotFound, Unauthorized


class PositionRegistry(Protocol):
    def create(self, owner: str) -> int: ...
    def owner_of(self, position_id: int) -> str: ...
    def exists(self, position_id: int) -> bool: ...
    def transfer(self, caller: str, position_id: int, to: str) -> None: ...
    def approve(self, caller: str, position_id: int, spender: Optional[str]) -> None: ...
    def set_approval_for_all(self, caller: str, operator: str, approved: bool) -> None: ...
    def is_authorized(self, position_id: int, caller: str) -> bool: ...
    def burn(self, position_id: int) -> None: ...
    def tokens_of(self, owner: str) -> List[int]: ...
    def total_supply(self) -> int: ...


class InMemoryRegistry:
    """
    Dict-backed ownership registry.

    Storage-agnostic: `dump()` returns a JSON-friendly dict and `load()`
    restores it. A coarse RLock protects mutating methods.
    """

    def __init__(self) -> None:
        self._owners: Dict[int, str] = {}
        self._approvals: Dict[int, str] = {}
        self._operators: Dict[str, Set[str]] = {}
        self._next_id = 1
        self._lock = RLock()

    # --- load/save ---

    def dump(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "next_id": self._next_id,
                "owners": {str(k): v for k, v in sorted(self._owners.items())},
                "approvals": {str(k): v for k, v in sorted(self._approvals.items())},
                "operators": {k: sorted(v) for k, v in sorted(self._operators.items())},
            }

    @classmethod
    def load(cls, data: Dict[str, Any]) -> "InMemoryRegistry":
        reg = cls()
        reg._next_id = int(data.get("next_id", 1))
        reg._owners = {int(k): str(v) for k, v in (data.get("owners") or {}).items()}
        reg._approvals = {int(k): str(v) for k, v in (data.get("approvals") or {}).items()}
        reg._operators = {str(k): set(v) for k, v in (data.get("operators") or {}).items()}
        return reg

    # --- queries ---

    def exists(self, position_id: int) -> bool:
        return position_id in self._owners

    def owner_of(self, position_id: int) -> str:
        with self._lock:
            owner = self._owners.get(position_id)
            if owner is None:
                raise PositionNotFound(position_id=position_id)
            return owner

    def get_approved(self, position_id: int) -> Optional[str]:
        self.owner_of(position_id)
        return self._approvals.get(position_id)

    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return operator in self._operators.get(owner, set())

    def is_authorized(self, position_id: int, caller: str) -> bool:
        with self._lock:
            owner = self.owner_of(position_id)
            return (
                caller == owner
                or self._approvals.get(position_id) == caller
                or self.is_approved_for_all(owner, caller)
            )

    def tokens_of(self, owner: str) -> List[int]:
        with self._lock:
            return sorted(pid for pid, o in self._owners.items() if o == owner)

    def total_supply(self) -> int:
        return len(self._owners)

    # --- mutations ---

    def create(self, owner: str) -> int:
        if not owner:
            raise ValueError("owner must be a non-empty account")
        with self._lock:
            pid = self._next_id
            self._next_id += 1
            self._owners[pid] = owner
            return pid

    def transfer(self, caller: str, position_id: int, to: str) -> None:
        if not to:
            raise ValueError("recipient must be a non-empty account")
        with self._lock:
            if not self.is_authorized(position_id, caller):
                raise Unauthorized(caller=caller, action="transfer", position_id=position_id)
            self._owners[position_id] = to
            self._approvals.pop(position_id, None)

    def approve(self, caller: str, position_id: int, spender: Optional[str]) -> None:
        with self._lock:
            owner = self.owner_of(position_id)
            if caller != owner and not self.is_approved_for_all(owner, caller):
                raise Unauthorized(caller=caller, action="approve", position_id=position_id)
            if spender:
                self._approvals[position_id] = spender
            else:
                self._approvals.pop(position_id, None)

    def set_approval_for_all(self, caller: str, operator: str, approved: bool) -> None:
        if not operator or operator == caller:
            raise ValueError("operator must be a different, non-empty account")
        with self._lock:
            ops = self._operators.setdefault(caller, set())
            if approved:
                ops.add(operator)
            else:
                ops.discard(operator)
                if not ops:
                    self._operators.pop(caller, None)

    def burn(self, position_id: int) -> None:
        with self._lock:
            self.owner_of(position_id)
            del self._owners[position_id]
            self._approvals.pop(position_id, None)


__all__ = ["PositionRegistry", "InMemoryRegistry"]
