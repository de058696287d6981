from rangeswap.exceptions.base import RangeswapError


class LedgerError(RangeswapError):
    """
    Exception raised by token ledgers.
    """


class InsufficientBalance(LedgerError):
    def __init__(self, account: str, token: str, balance: int, amount: int) -> None:
        self.account = account
        self.token = token
        self.balance = balance
        self.amount = amount
        super().__init__(
            message=f"InsufficientBalance: {account} holds {balance} of {token}, needs {amount}"
        )
