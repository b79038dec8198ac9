"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Validation
  2xxx: Invoice
  3xxx: Settlement / Ledger
  4xxx: Pricing / Conversion
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Validation ---

class ValidationError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(1001, f"Validation failed: {detail}", 400)


class DuplicateInvoiceNumberError(AppError):
    def __init__(self, creator_id: str, invoice_number: str) -> None:
        super().__init__(
            1002,
            f"Invoice number {invoice_number} already used by creator {creator_id}",
            400,
        )


# --- 2xxx: Invoice ---

class InvoiceNotFoundError(AppError):
    def __init__(self, invoice_id: str) -> None:
        super().__init__(2001, f"Invoice not found: {invoice_id}", 404)


class InvalidTransitionError(AppError):
    def __init__(self, from_status: str, to_status: str, detail: str | None = None) -> None:
        message = f"Illegal invoice transition: {from_status} -> {to_status}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(2002, message, 409)
        self.from_status = from_status
        self.to_status = to_status


class StatusConflictError(AppError):
    """Compare-and-swap precondition failed: the invoice is no longer in `expected`."""

    def __init__(self, invoice_id: str, expected: str, actual: str) -> None:
        super().__init__(
            2003,
            f"Invoice {invoice_id} status is {actual}, expected {expected}",
            409,
        )
        self.expected = expected
        self.actual = actual


class InvoiceLockedError(AppError):
    def __init__(self, invoice_id: str, status: str) -> None:
        super().__init__(2004, f"Invoice {invoice_id} is {status}; details can no longer change", 409)


# --- 3xxx: Settlement / Ledger ---

class TransactionNotFoundError(AppError):
    def __init__(self, transaction_id: str) -> None:
        super().__init__(3001, f"Transaction not found: {transaction_id}", 404)


class AlreadySettledError(AppError):
    def __init__(self, invoice_id: str) -> None:
        super().__init__(3002, f"Invoice already settled: {invoice_id}", 409)


class AmountMismatchError(AppError):
    def __init__(self, expected: str, received: str, currency: str) -> None:
        super().__init__(
            3003,
            f"Payment amount mismatch: expected {expected} {currency}, received {received} {currency}",
            400,
        )


# --- 4xxx: Pricing / Conversion ---

class PriceNotFoundError(AppError):
    def __init__(self, symbol: str) -> None:
        super().__init__(4001, f"Crypto price not found: {symbol}", 404)


class UnsupportedConversionError(AppError):
    def __init__(self, from_currency: str, to_currency: str, detail: str) -> None:
        super().__init__(
            4002,
            f"Cannot convert {from_currency} to {to_currency}: {detail}",
            400,
        )


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class UpstreamError(AppError):
    def __init__(self, source: str, detail: str) -> None:
        super().__init__(9003, f"Upstream {source} unavailable: {detail}", 502)
        self.source = source
