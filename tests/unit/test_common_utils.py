"""Tests for ps_common money, addresses, id_generator and datetime_utils."""

from datetime import UTC, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from src.ps_common.addresses import (
    is_plausible_wallet_address,
    is_simulated_address,
    is_solana_address,
)
from src.ps_common.datetime_utils import ensure_utc, utc_now
from src.ps_common.errors import ValidationError
from src.ps_common.id_generator import SnowflakeIdGenerator
from src.ps_common.money import meets_amount, normalize_currency, parse_amount


class TestParseAmount:
    def test_string_keeps_digits(self) -> None:
        assert str(parse_amount("250.00")) == "250.00"

    def test_int_and_float(self) -> None:
        assert parse_amount(5) == Decimal(5)
        assert parse_amount(0.5) == Decimal("0.5")

    @pytest.mark.parametrize("bad", ["abc", "", "NaN", "Infinity", True, None])
    def test_rejects_non_numbers(self, bad: object) -> None:
        with pytest.raises(ValidationError):
            parse_amount(bad)

    def test_rejects_negative(self) -> None:
        with pytest.raises(ValidationError, match=">= 0"):
            parse_amount("-1")


class TestCurrency:
    def test_normalizes(self) -> None:
        assert normalize_currency(" sol ") == "SOL"

    @pytest.mark.parametrize("bad", ["", "  ", "S-L", "X" * 11])
    def test_rejects(self, bad: str) -> None:
        with pytest.raises(ValidationError):
            normalize_currency(bad)


class TestMeetsAmount:
    def test_exact(self) -> None:
        assert meets_amount(Decimal("100"), Decimal("100"), 50)

    def test_within_tolerance(self) -> None:
        # 50 bps of 100 = 0.5
        assert meets_amount(Decimal("99.5"), Decimal("100"), 50)

    def test_below_tolerance(self) -> None:
        assert not meets_amount(Decimal("99.49"), Decimal("100"), 50)

    def test_overpayment(self) -> None:
        assert meets_amount(Decimal("150"), Decimal("100"), 0)


class TestAddresses:
    def test_solana_shape(self) -> None:
        assert is_solana_address("So11111111111111111111111111111111111111112")
        assert not is_solana_address("not-a-real-address")
        assert not is_solana_address("0" * 40)  # 0 is not base58
        assert not is_solana_address(None)

    def test_simulated_marker(self) -> None:
        assert is_simulated_address("FakeSo1AnaAddressForSimu1ationPurposesXXXXXXXXXX")
        assert not is_simulated_address("So11111111111111111111111111111111111111112")
        assert not is_simulated_address(None)

    def test_plausible(self) -> None:
        assert is_plausible_wallet_address("0x" + "a" * 40)
        assert is_plausible_wallet_address("a" * 40)
        assert not is_plausible_wallet_address("short")
        assert not is_plausible_wallet_address(" " + "a" * 40)
        assert not is_plausible_wallet_address("a" * 65)
        assert not is_plausible_wallet_address("")


class TestSnowflakeIdGenerator:
    def test_prefix(self) -> None:
        gen = SnowflakeIdGenerator(prefix="inv_", machine_id=1)
        assert gen.next_id().startswith("inv_")

    def test_unique_ids(self) -> None:
        gen = SnowflakeIdGenerator(prefix="txn_", machine_id=1)
        ids = {gen.next_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_monotonically_increasing(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        prev = int(gen.next_id())
        for _ in range(100):
            current = int(gen.next_id())
            assert current > prev
            prev = current

    def test_rejects_bad_machine_id(self) -> None:
        with pytest.raises(ValueError):
            SnowflakeIdGenerator(machine_id=5000)


class TestDatetimeUtils:
    def test_utc_now_is_aware(self) -> None:
        now = utc_now()
        assert now.tzinfo == UTC

    def test_ensure_utc_naive(self) -> None:
        assert ensure_utc(datetime(2026, 1, 1, 12, 0)).tzinfo == timezone.utc

    def test_ensure_utc_converts(self) -> None:
        plus2 = timezone(timedelta(hours=2))
        result = ensure_utc(datetime(2026, 1, 1, 12, 0, tzinfo=plus2))
        assert result.hour == 10
