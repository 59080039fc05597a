from fastapi import HTTPException, Request, status
from starlette.responses import PlainTextResponse


class DispatchError(HTTPException):
    """Base class for every failure reported to a faucet client.

    Each subclass fixes the HTTP status and the plain-text body that is
    sent back. Errors are raised where they are detected and travel
    unchanged to the exception handler registered on the app.
    """

    kind: str = "dispatch_error"

    def __init__(self, status_code: int, detail: str):
        super().__init__(status_code=status_code, detail=detail)


class JsonRpcNotWorkingError(DispatchError):
    """Raised when Bitcoin Core or CLN is unreachable or answers unexpectedly."""

    kind = "json_rpc_not_working"

    def __init__(self, reason: str = ""):
        super().__init__(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Our bitcoin core isn't working right now\n",
        )
        self.reason = reason


class OutOfMoneyError(DispatchError):
    """Raised when the wallet can't cover the amount plus the fee."""

    kind = "out_of_money"

    def __init__(self, requested: int = 0, available: int = 0):
        super().__init__(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "We don't have enough money to handle this request right now\n",
        )
        self.requested = requested
        self.available = available


class InvalidAddressError(DispatchError):
    kind = "invalid_address"

    def __init__(self, address: str = ""):
        super().__init__(
            status.HTTP_400_BAD_REQUEST,
            "The informed address is not a valid bitcoin address\n",
        )
        self.address = address


class AmountTooLargeError(DispatchError):
    kind = "amount_too_large"

    def __init__(self, amount: int = 0, max_sendable: int = 0):
        super().__init__(
            status.HTTP_400_BAD_REQUEST, "The requested amount is too big\n"
        )
        self.amount = amount
        self.max_sendable = max_sendable


class DustError(DispatchError):
    kind = "dust"

    def __init__(self, amount: int = 0, min_sendable: int = 0):
        super().__init__(
            status.HTTP_400_BAD_REQUEST, "The requested amount is too little\n"
        )
        self.amount = amount
        self.min_sendable = min_sendable


class ChannelError(DispatchError):
    """Raised when CLN refuses to fund a channel. Carries CLN's message."""

    kind = "channel_error"

    def __init__(self, message: str):
        super().__init__(
            status.HTTP_400_BAD_REQUEST, f"Some problem with cln {message}"
        )
        self.message = message


async def dispatch_error_handler(request: Request, exc: DispatchError):
    return PlainTextResponse(exc.detail, status_code=exc.status_code)
