"""Shared pydantic building blocks for API schemas.

Wire format is camelCase (invoiceNumber, creatorId, ...); snake_case is accepted
on input too. Amounts are Decimal and serialize to JSON strings.
"""

from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

from src.ps_common import errors
from src.ps_common.money import parse_amount


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _amount(value: object) -> Decimal:
    # pydantic reports ValueError as a field error (mapped to 400 by main.py)
    try:
        return parse_amount(value)
    except errors.ValidationError as exc:
        raise ValueError(exc.message) from None


AmountField = Annotated[Decimal, BeforeValidator(_amount)]
