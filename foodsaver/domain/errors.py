# foodsaver/domain/errors.py


class CheckoutError(Exception):
    """Per-group checkout failure, reported as data instead of an HTTP 500."""

    reason = "checkout_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InsufficientStock(CheckoutError):
    """Desired quantity exceeds live stock. User-correctable."""

    reason = "insufficient_stock"

    def __init__(self, food_id: str, food_name: str, requested: int, available: int):
        super().__init__(
            f'Item "{food_name}" has only {available} left (requested {requested})'
        )
        self.food_id = food_id
        self.food_name = food_name
        self.requested = requested
        self.available = available


class ItemRemoved(CheckoutError):
    """Referenced FoodItem no longer exists or was withdrawn."""

    reason = "item_removed"

    def __init__(self, food_id: str, food_name: str | None = None):
        super().__init__(f'Item "{food_name or food_id}" is no longer available')
        self.food_id = food_id
        self.food_name = food_name


class TransactionAborted(CheckoutError):
    """The database itself failed the transaction. Nothing was written, safe to retry."""

    reason = "transaction_aborted"


class StoreProfileUnavailable(Exception):
    """Store profile could not be read. Never aborts a checkout."""

    def __init__(self, store_id: str, cause: Exception | None = None):
        super().__init__(f"Store profile {store_id} unavailable: {cause}")
        self.store_id = store_id
        self.cause = cause


class CheckoutInProgress(RuntimeError):
    """Another checkout for the same buyer holds the lock."""

    def __init__(self, buyer_id: str):
        super().__init__(f"Checkout already in progress for buyer {buyer_id}")
        self.buyer_id = buyer_id
