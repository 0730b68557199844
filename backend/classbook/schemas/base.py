"""
Shared field types for API schemas.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from pydantic_core import core_schema

CENT = Decimal("0.01")


class Money(Decimal):
    """
    Currency amount in whole cents.

    Accepts ints, floats, numeric strings and Decimals; stored as a Decimal
    rounded to two places and written to JSON as a float (``50.0``).
    """

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        def to_cents(value: Any) -> Decimal:
            try:
                amount = Decimal(str(value)) if not isinstance(value, Decimal) else value
            except InvalidOperation as e:
                raise ValueError(f"Not a monetary amount: {value!r}") from e
            if not amount.is_finite():
                raise ValueError("Money must be finite")
            return amount.quantize(CENT, rounding=ROUND_HALF_UP)

        return core_schema.no_info_after_validator_function(
            to_cents,
            core_schema.union_schema(
                [
                    core_schema.is_instance_schema(Decimal),
                    core_schema.int_schema(),
                    core_schema.float_schema(),
                    core_schema.str_schema(),
                ]
            ),
            serialization=core_schema.plain_serializer_function_ser_schema(
                float, info_arg=False, return_schema=core_schema.float_schema()
            ),
        )
