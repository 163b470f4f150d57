from __future__ import annotations

"""
Base asset - balances & transfers
---------------------------------

The pool never holds balances itself; it moves the base asset through an
`AssetLedger`, the capability that moves N units between two accounts and
either fully succeeds or leaves every balance unchanged.

`InMemoryAsset` is a deterministic, integer-only balance book with an
append-only transfer journal. It is storage-agnostic: call `dump()` to
serialize to a JSON-friendly dict and `load()` to restore.

Concurrency: a coarse `threading.RLock` protects mutating methods.
"""

from dataclasses import dataclass
from threading import RLock
from typing import Any, Dict, Iterable, List, Protocol

from lockpool.errors import InsufficientBalance, InvalidAmount

Amount = int


class AssetLedger(Protocol):
    def balance_of(self, account: str) -> Amount: ...
    def transfer(self, sender: str, recipient: str, amount: Amount, *, reason: str = "transfer") -> None: ...


def _ensure_nonneg(x: int, name: str) -> None:
    if isinstance(x, bool) or not isinstance(x, int) or x < 0:
        raise InvalidAmount(name=name, value=x, message=f"{name} must be a non-negative integer")


@dataclass(frozen=True)
class TransferEntry:
    seq: int
    sender: str
    recipient: str
    amount: Amount
    reason: str


class InMemoryAsset:
    """
    Fungible base asset with a fixed supply minted at construction (or via
    `mint` for test setup).
    """

    def __init__(self, symbol: str = "ASSET", decimals: int = 18) -> None:
        self.symbol = symbol
        self.decimals = int(decimals)
        self._balances: Dict[str, Amount] = {}
        self._journal: List[TransferEntry] = []
        self._supply: Amount = 0
        self._lock = RLock()

    # --- load/save ---

    def dump(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "symbol": self.symbol,
                "decimals": self.decimals,
                "supply": str(self._supply),
                "balances": {k: str(v) for k, v in sorted(self._balances.items()) if v},
            }

    @classmethod
    def load(cls, data: Dict[str, Any]) -> "InMemoryAsset":
        a = cls(symbol=str(data.get("symbol", "ASSET")), decimals=int(data.get("decimals", 18)))
        a._balances = {str(k): int(v) for k, v in (data.get("balances") or {}).items()}
        a._supply = int(data.get("supply", sum(a._balances.values())))
        return a

    # --- introspection ---

    def balance_of(self, account: str) -> Amount:
        return self._balances.get(account, 0)

    def total_supply(self) -> Amount:
        return self._supply

    def journal(self) -> Iterable[TransferEntry]:
        return tuple(self._journal)

    # --- mutations (all locked) ---

    def mint(self, account: str, amount: Amount) -> None:
        _ensure_nonneg(amount, "amount")
        with self._lock:
            self._balances[account] = self._balances.get(account, 0) + amount
            self._supply += amount
            self._record("", account, amount, "mint")

    def transfer(self, sender: str, recipient: str, amount: Amount, *, reason: str = "transfer") -> None:
        _ensure_nonneg(amount, "amount")
        if not recipient:
            raise ValueError("recipient must be a non-empty account")
        with self._lock:
            have = self._balances.get(sender, 0)
            if have < amount:
                raise InsufficientBalance(account=sender, required=amount, available=have)
            self._balances[sender] = have - amount
            self._balances[recipient] = self._balances.get(recipient, 0) + amount
            self._record(sender, recipient, amount, reason)

    def _record(self, sender: str, recipient: str, amount: Amount, reason: str) -> None:
        self._journal.append(
            TransferEntry(
                seq=len(self._journal) + 1,
                sender=sender,
                recipient=recipient,
                amount=amount,
                reason=reason,
            )
        )


__all__ = ["Amount", "AssetLedger", "TransferEntry", "InMemoryAsset"]
