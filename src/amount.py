from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import ClassVar, Union

SCALE = 10_000
PRECISION = 4
# amounts must fit a signed 64-bit count of ten-thousandths
MAX_UNITS = 2**63 - 1


class InvalidAmount(ValueError):
    """Raised when text or a decimal cannot be represented as an Amount."""


@dataclass(frozen=True, order=True)
class Amount:
    """
    Fixed-precision quantity with 4 fractional digits.
    Stored as an integer count of ten-thousandths so repeated
    accumulation never drifts.
    """

    units: int = 0

    ZERO: ClassVar["Amount"]

    @classmethod
    def parse(cls, text: str) -> "Amount":
        text = text.strip()
        if not text:
            raise InvalidAmount("empty amount")
        try:
            value = Decimal(text)
        except InvalidOperation:
            raise InvalidAmount(f"not a decimal number: {text!r}") from None
        return cls.from_decimal(value)

    @classmethod
    def from_decimal(cls, value: Union[Decimal, int]) -> "Amount":
        value = Decimal(value)
        if not value.is_finite():
            raise InvalidAmount(f"amount must be finite, got {value}")

        # exact integer scaling, no Decimal context rounding
        sign, digits, exponent = value.as_tuple()
        digits = list(digits)
        while len(digits) > 1 and digits[-1] == 0:
            digits.pop()
            exponent += 1
        if digits == [0]:
            return cls(0)

        shift = exponent + PRECISION
        if shift < 0:
            raise InvalidAmount(f"more than {PRECISION} fractional digits: {value}")
        if len(digits) + shift > len(str(MAX_UNITS)):
            raise InvalidAmount(f"amount out of range: {value}")
        units = int("".join(map(str, digits))) * 10**shift
        if units > MAX_UNITS:
            raise InvalidAmount(f"amount out of range: {value}")
        return cls(-units if sign else units)

    def to_decimal(self) -> Decimal:
        return Decimal(self.units).scaleb(-PRECISION)

    def is_positive(self) -> bool:
        return self.units > 0

    def __add__(self, other: "Amount") -> "Amount":
        if not isinstance(other, Amount):
            return NotImplemented
        return Amount(self.units + other.units)

    def __sub__(self, other: "Amount") -> "Amount":
        if not isinstance(other, Amount):
            return NotImplemented
        return Amount(self.units - other.units)

    def __neg__(self) -> "Amount":
        return Amount(-self.units)

    def __str__(self) -> str:
        sign = "-" if self.units < 0 else ""
        whole, fraction = divmod(abs(self.units), SCALE)
        return f"{sign}{whole}.{fraction:0{PRECISION}d}"

    def __repr__(self) -> str:
        return f"Amount({self})"


Amount.ZERO = Amount(0)
