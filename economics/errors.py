"""
Economy Exceptions
Typed failure conditions raised by the economy model.
"""


class EconomyError(Exception):
    """Base class for all economy exceptions."""


class TransactionError(EconomyError):
    """Raised when a transaction is rejected.

    Covers both a self-transfer and a sender whose balance would not stay
    strictly positive. Callers that need to tell them apart compare the
    ids before calling.
    """

    def __init__(self, from_id: int, to_id: int, amount: float):
        self.from_id = from_id
        self.to_id = to_id
        self.amount = amount
        super().__init__(
            f"Transaction of {amount} from player {from_id} to player {to_id} rejected."
        )


class DegenerateEconomyError(EconomyError):
    """Raised when a computation would divide by zero or produce non-finite values.

    Only raised in strict mode; a legacy economy lets the values propagate.
    """


class EconomyBusyError(EconomyError):
    """Raised when a mutating operation overlaps another one on the same economy."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"Cannot run '{operation}' while another update cycle holds the economy."
        )


class ConfigurationError(EconomyError, ValueError):
    """Raised when configuration or solver parameters are invalid."""

    def __init__(self, param_name: str = None, reason: str = None):
        if param_name and reason:
            message = f"Invalid configuration for '{param_name}': {reason}"
            self.param_name = param_name
        else:
            message = param_name if param_name else "Invalid configuration"
            self.param_name = None
        super().__init__(message)
