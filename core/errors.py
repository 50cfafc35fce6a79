"""Domain errors raised by the core engine."""


class InvalidWager(ValueError):
    """A bet that is non-numeric, not positive, or larger than the balance."""

    def __init__(self, message: str, amount: object = None) -> None:
        super().__init__(message)
        self.message = message
        self.amount = amount


class LedgerError(ValueError):
    """A ledger write that would leave a balance negative or malformed."""
