"""Tests for ps_common.errors and ps_common.response."""

from src.ps_common.errors import (
    AlreadySettledError,
    AmountMismatchError,
    AppError,
    DuplicateInvoiceNumberError,
    InvalidTransitionError,
    InvoiceLockedError,
    InvoiceNotFoundError,
    PriceNotFoundError,
    StatusConflictError,
    UnsupportedConversionError,
    UpstreamError,
    ValidationError,
)
from src.ps_common.response import error_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_custom_http_status(self) -> None:
        err = AppError(code=1001, message="bad", http_status=400)
        assert err.http_status == 400

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1001, message="test"), Exception)


class TestSpecificErrors:
    def test_validation(self) -> None:
        err = ValidationError("amount must be >= 0")
        assert err.code == 1001
        assert err.http_status == 400
        assert "amount" in err.message

    def test_duplicate_invoice_number(self) -> None:
        err = DuplicateInvoiceNumberError("creator-1", "INV-000001")
        assert err.code == 1002
        assert err.http_status == 400
        assert "INV-000001" in err.message

    def test_invoice_not_found(self) -> None:
        err = InvoiceNotFoundError("inv_1")
        assert err.code == 2001
        assert err.http_status == 404

    def test_invalid_transition(self) -> None:
        err = InvalidTransitionError("draft", "paid")
        assert err.code == 2002
        assert err.http_status == 409
        assert "draft -> paid" in err.message

    def test_status_conflict_keeps_actual(self) -> None:
        err = StatusConflictError("inv_1", expected="pending", actual="paid")
        assert err.code == 2003
        assert err.http_status == 409
        assert err.actual == "paid"

    def test_invoice_locked(self) -> None:
        err = InvoiceLockedError("inv_1", "paid")
        assert err.code == 2004
        assert err.http_status == 409

    def test_already_settled(self) -> None:
        err = AlreadySettledError("inv_1")
        assert err.code == 3002
        assert err.http_status == 409

    def test_amount_mismatch(self) -> None:
        err = AmountMismatchError("250.00", "100", "SOL")
        assert err.code == 3003
        assert err.http_status == 400
        assert "250.00" in err.message

    def test_price_not_found(self) -> None:
        err = PriceNotFoundError("DOGE")
        assert err.code == 4001
        assert err.http_status == 404

    def test_unsupported_conversion(self) -> None:
        err = UnsupportedConversionError("EUR", "SOL", "no rate")
        assert err.code == 4002
        assert err.http_status == 400

    def test_upstream(self) -> None:
        err = UpstreamError("price feed", "timeout")
        assert err.code == 9003
        assert err.http_status == 502
        assert err.source == "price feed"


class TestErrorResponse:
    def test_error(self) -> None:
        resp = error_response(2001, "Invoice not found: inv_1")
        assert resp.code == 2001
        assert resp.message == "Invoice not found: inv_1"
        assert resp.data is None

    def test_request_id_passthrough(self) -> None:
        resp = error_response(1001, "bad", request_id="req_abc")
        assert resp.request_id == "req_abc"

    def test_serialization(self) -> None:
        d = error_response(9002, "boom").model_dump()
        assert set(d) == {"code", "message", "data", "timestamp", "request_id"}
