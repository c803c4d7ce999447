"""
Fungible token collaborator.

The pool only depends on :class:`TokenTransferService`. ``InMemoryToken``
is a complete integer-balance token used by the CLI state file and tests.
Transfers through an :class:`TokenAccount` move value out of the account
holder's balance, the way a contract-owned token balance behaves.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Protocol, runtime_checkable

from .vesting_exceptions import InsufficientBalanceError, InvalidAmount

logger = logging.getLogger(__name__)

TransferHook = Callable[[str, str, int], None]


@runtime_checkable
class TokenTransferService(Protocol):
    """Transfer primitives the pool consumes.

    Implementations signal failure by raising or by returning ``False``.
    A failed call must not have moved any value.
    """

    address: str

    def transfer(self, to: str, amount: int) -> bool | None:
        ...

    def transfer_from(self, sender: str, to: str, amount: int) -> bool | None:
        ...


class InMemoryToken:
    def __init__(self, address: str = "VEST", supply_cap: int | None = None):
        self.address = address
        self.supply_cap = supply_cap
        self.total_supply = 0
        self.balances: Dict[str, int] = {}
        self.allowances: Dict[str, Dict[str, int]] = {}
        self.hooks: List[TransferHook] = []

    def mint(self, address: str, amount: int) -> None:
        """
        Mints new tokens to a specific address.

        Args:
            address: The recipient address for the minted tokens.
            amount: The amount of tokens to mint.

        Raises:
            InvalidAmount: For non-positive amounts or when the supply cap
                would be exceeded.
        """
        _require_positive(amount)
        if self.supply_cap is not None and self.total_supply + amount > self.supply_cap:
            raise InvalidAmount(
                f"Minting {amount} would exceed supply cap {self.supply_cap}",
                details={"total_supply": self.total_supply, "supply_cap": self.supply_cap},
            )
        self.total_supply += amount
        self.balances[address] = self.balances.get(address, 0) + amount

    def balance_of(self, address: str) -> int:
        return self.balances.get(address, 0)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        if amount < 0:
            raise InvalidAmount("Allowance cannot be negative")
        self.allowances.setdefault(owner, {})[spender] = amount

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get(owner, {}).get(spender, 0)

    def account(self, holder: str) -> "TokenAccount":
        """Return a transfer handle that spends from ``holder``'s balance."""
        return TokenAccount(self, holder)

    def on_transfer(self, hook: TransferHook) -> None:
        """Register a callback run after each completed transfer (sender, recipient, amount)."""
        self.hooks.append(hook)

    def move(self, sender: str, to: str, amount: int) -> None:
        _require_positive(amount)
        balance = self.balance_of(sender)
        if balance < amount:
            raise InsufficientBalanceError(
                f"{sender} holds {balance}, cannot send {amount}",
                details={"sender": sender, "balance": balance, "amount": amount},
            )
        self.balances[sender] = balance - amount
        self.balances[to] = self.balance_of(to) + amount
        logger.debug(
            "Token transfer %s -> %s: %d",
            sender,
            to,
            amount,
            extra={"event": "token.transfer", "token": self.address},
        )
        try:
            for hook in list(self.hooks):
                hook(sender, to, amount)
        except Exception:
            # A failing recipient callback aborts the whole transfer
            self.balances[to] -= amount
            self.balances[sender] += amount
            raise

    def spend_allowance(self, owner: str, spender: str, amount: int) -> None:
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise InsufficientBalanceError(
                f"{spender} may spend {allowed} of {owner}'s tokens, requested {amount}",
                details={"owner": owner, "spender": spender, "allowance": allowed},
            )
        self.allowances[owner][spender] = allowed - amount

    def to_dict(self) -> dict:
        return {
            "address": self.address,
            "supply_cap": self.supply_cap,
            "total_supply": self.total_supply,
            "balances": dict(self.balances),
            "allowances": {owner: dict(spenders) for owner, spenders in self.allowances.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "InMemoryToken":
        token = cls(address=data["address"], supply_cap=data.get("supply_cap"))
        token.total_supply = int(data.get("total_supply", 0))
        token.balances = {k: int(v) for k, v in data.get("balances", {}).items()}
        token.allowances = {
            owner: {spender: int(v) for spender, v in spenders.items()}
            for owner, spenders in data.get("allowances", {}).items()
        }
        return token


class TokenAccount:
    """TokenTransferService view of an InMemoryToken bound to one holder."""

    def __init__(self, token: InMemoryToken, holder: str):
        self.token = token
        self.holder = holder
        self.address = token.address

    def transfer(self, to: str, amount: int) -> bool:
        self.token.move(self.holder, to, amount)
        return True

    def transfer_from(self, sender: str, to: str, amount: int) -> bool:
        _require_positive(amount)
        # Check the balance first so a failed transfer leaves the allowance untouched
        if self.token.balance_of(sender) < amount:
            raise InsufficientBalanceError(
                f"{sender} holds {self.token.balance_of(sender)}, cannot send {amount}",
                details={"sender": sender, "amount": amount},
            )
        self.token.spend_allowance(sender, self.holder, amount)
        try:
            self.token.move(sender, to, amount)
        except Exception:
            self.token.allowances[sender][self.holder] += amount
            raise
        return True


def _require_positive(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise InvalidAmount(f"Amount must be a positive integer, got {amount!r}")
