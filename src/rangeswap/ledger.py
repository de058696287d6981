import contextlib
import copy
import threading
from collections.abc import Iterator
from typing import Any, Protocol

from eth_typing import ChecksumAddress

from rangeswap.exceptions import InsufficientBalance, RangeswapValueError
from rangeswap.functions import get_checksum_address
from rangeswap.logging import logger


class TokenVault(Protocol):
    """
    Token transfer capability consumed by pools. Transfers either succeed completely or raise, and
    every transfer made inside `atomic()` is undone if the block raises.
    """

    def balance_of(self, account: str, token: str) -> int: ...

    def transfer(self, token: str, sender: str, recipient: str, amount: int) -> None: ...

    def atomic(self) -> contextlib.AbstractContextManager[None]: ...


class TokenLedger:
    """
    An in-memory `TokenVault` tracking token balances across addresses.

    Token balances are organized first by the holding address, then by the token address. All
    addresses are checksummed prior to use.
    """

    def __init__(self) -> None:
        # Entries are recorded as a dict-of-dicts, keyed by address, then by
        # token address
        self.balances: dict[
            ChecksumAddress,  # address holding balance
            dict[
                ChecksumAddress,  # token address
                int,  # balance
            ],
        ] = {}
        self._lock = threading.RLock()

    def __getstate__(self) -> dict[str, Any]:
        with self._lock:
            return {k: v for k, v in self.__dict__.items() if k != "_lock"}

    def __setstate__(self, state: dict[str, Any]) -> None:
        state["_lock"] = threading.RLock()
        self.__dict__ = state

    def _adjust(self, address: ChecksumAddress, token: ChecksumAddress, amount: int) -> None:
        address_balance = self.balances.setdefault(address, {})

        logger.debug(f"BALANCE: {address} {'+' if amount > 0 else ''}{amount} {token}")

        balance = address_balance.get(token, 0) + amount
        if balance == 0:
            address_balance.pop(token, None)
        else:
            address_balance[token] = balance
        if not address_balance:
            del self.balances[address]

    def balance_of(self, account: str, token: str) -> int:
        """
        Get the balance of `token` held by `account`.
        """

        with self._lock:
            return self.balances.get(get_checksum_address(account), {}).get(
                get_checksum_address(token), 0
            )

    def mint(self, account: str, token: str, amount: int) -> None:
        """
        Credit new tokens to an account, e.g. to fund a test scenario.
        """

        if amount < 0:
            raise RangeswapValueError(message="Cannot mint a negative amount")

        with self._lock:
            self._adjust(get_checksum_address(account), get_checksum_address(token), amount)

    def transfer(self, token: str, sender: str, recipient: str, amount: int) -> None:
        """
        Move `amount` of `token` from `sender` to `recipient`.

        Parameters
        ----------
        token: str
            The token address.
        sender: str
            The address debited.
        recipient: str
            The address credited.
        amount: int
            The amount to move. Must not be negative.

        Raises
        ------
        RangeswapValueError
            If the amount is negative.
        InsufficientBalance
            If the sender holds less than `amount`.
        """

        if amount < 0:
            raise RangeswapValueError(message="Cannot transfer a negative amount")
        if amount == 0:
            return

        _token = get_checksum_address(token)
        _sender = get_checksum_address(sender)
        _recipient = get_checksum_address(recipient)

        with self._lock:
            balance = self.balances.get(_sender, {}).get(_token, 0)
            if balance < amount:
                raise InsufficientBalance(
                    account=_sender, token=_token, balance=balance, amount=amount
                )
            self._adjust(_sender, _token, -amount)
            self._adjust(_recipient, _token, amount)

    @contextlib.contextmanager
    def atomic(self) -> Iterator[None]:
        """
        Hold the ledger for the duration of the block, restoring every balance if it raises.
        """

        with self._lock:
            snapshot = copy.deepcopy(self.balances)
            try:
                yield
            except BaseException:
                self.balances = snapshot
                logger.debug("BALANCE: transfers rolled back")
                raise
