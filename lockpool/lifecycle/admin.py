from __future__ import annotations

"""
Administrative controls for the pool.

- A single owner holds the schedule-setting authority. Ownership moves in two
  steps: the owner proposes a successor, and the successor accepts.
- The emergency flag is one-way: once activated it is never cleared.

Every check raises `Unauthorized` on failure. This class keeps no lock of its
own; the pool calls it while holding the pool lock.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from lockpool.errors import Unauthorized

log = logging.getLogger(__name__)


@dataclass
class AdminControl:
    owner: str
    pending_owner: Optional[str] = None

    def require_owner(self, caller: str, action: str) -> None:
        if caller != self.owner:
            raise Unauthorized(caller=caller, action=action)

    def propose_owner(self, caller: str, new_owner: str) -> None:
        self.require_owner(caller, "propose_owner")
        if not new_owner:
            raise ValueError("new_owner must be a non-empty account")
        self.pending_owner = new_owner
        log.info("admin: ownership proposed owner=%s pending=%s", self.owner, new_owner)

    def accept_ownership(self, caller: str) -> str:
        if self.pending_owner is None or caller != self.pending_owner:
            raise Unauthorized(caller=caller, action="accept_ownership")
        previous = self.owner
        self.owner = caller
        self.pending_owner = None
        log.info("admin: ownership accepted previous=%s owner=%s", previous, caller)
        return previous

    def to_dict(self) -> Dict[str, Any]:
        return {"owner": self.owner, "pending_owner": self.pending_owner}

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "AdminControl":
        return AdminControl(owner=str(d["owner"]), pending_owner=d.get("pending_owner"))


__all__ = ["AdminControl"]
