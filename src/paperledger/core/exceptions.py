"""Application-level exceptions."""


class AppError(Exception):
    """Base exception for application errors."""

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        super().__init__(message, code=code)


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}", code="NOT_FOUND")


class PriceUnavailableError(ValidationError):
    """Raised when no usable market price exists for an order."""

    def __init__(self, symbol: str = ""):
        label = f" for {symbol}" if symbol else ""
        super().__init__(f"Price unavailable{label}", code="PRICE_UNAVAILABLE")


class InvalidSymbolError(ValidationError):
    """Raised when an order or watchlist entry has no usable symbol."""

    def __init__(self, symbol: object = ""):
        super().__init__(f"Invalid symbol: {symbol!r}", code="INVALID_SYMBOL")


class InvalidQuantityError(ValidationError):
    """Raised when an order quantity is not a positive finite number."""

    def __init__(self, quantity: object):
        super().__init__(
            f"Quantity must be positive, got {quantity!r}",
            code="INVALID_QUANTITY",
        )


class InvalidAmountError(ValidationError):
    """Raised when a cash or goal amount is not a positive whole number."""

    def __init__(self, amount: object):
        super().__init__(
            f"Enter a positive whole number, got {amount!r}",
            code="INVALID_AMOUNT",
        )


class AssetTypeMismatchError(ValidationError):
    """Raised when buying a symbol already held under another asset type."""

    def __init__(self, symbol: str, held: str, requested: str):
        super().__init__(
            f"{symbol} is held as {held}, cannot trade it as {requested}",
            code="ASSET_TYPE_MISMATCH",
        )


class InsufficientSharesError(ValidationError):
    """Raised when attempting to sell more shares than owned."""

    def __init__(self, symbol: str, requested: str, available: str):
        super().__init__(
            f"Insufficient shares of {symbol}: requested {requested}, available {available}",
            code="INSUFFICIENT_SHARES",
        )


class InsufficientCashError(ValidationError):
    """Raised when a buy or withdrawal needs more cash than available."""

    def __init__(self, requested: str, available: str):
        super().__init__(
            f"Insufficient cash: requested {requested}, available {available}",
            code="INSUFFICIENT_CASH",
        )


class StaleStateError(AppError):
    """Raised when persisted state changed underneath a pending write."""

    def __init__(self, message: str = "State changed, please retry", code: str = "STALE_STATE"):
        super().__init__(message, code=code)


class PreviewExpiredError(StaleStateError):
    """Raised when an order preview is confirmed after its time-to-live."""

    def __init__(self, age_seconds: float):
        super().__init__(
            f"Order preview expired after {age_seconds:.0f}s, review again",
            code="PREVIEW_EXPIRED",
        )


class StorageError(AppError):
    """Raised by a durable store when it cannot read or write."""

    def __init__(self, message: str):
        super().__init__(message, code="STORAGE_ERROR")
