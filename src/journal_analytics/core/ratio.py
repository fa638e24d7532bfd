"""Tagged ratio result.

Ratios such as profit factor or recovery factor have no finite value when
their denominator is zero.  Instead of leaking ``inf`` or a ``999``
sentinel into arithmetic, they are returned as a ``Ratio`` whose ``kind``
says whether a value exists.
"""

from __future__ import annotations

from dataclasses import dataclass

from .enums import RatioKind


@dataclass(frozen=True)
class Ratio:
    kind: RatioKind
    value: float | None = None

    @classmethod
    def finite(cls, value: float) -> Ratio:
        return cls(RatioKind.FINITE, value)

    @classmethod
    def undefined(cls) -> Ratio:
        return cls(RatioKind.UNDEFINED)

    @classmethod
    def positive_infinite(cls) -> Ratio:
        return cls(RatioKind.POSITIVE_INFINITE)

    @classmethod
    def of(
        cls,
        numerator: float,
        denominator: float,
        *,
        when_empty: Ratio | None = None,
    ) -> Ratio:
        """Divide, tagging the zero-denominator cases.

        A zero denominator with a positive numerator is
        ``POSITIVE_INFINITE``; otherwise ``when_empty`` is returned
        (``UNDEFINED`` unless given).
        """
        if denominator != 0:
            return cls.finite(numerator / denominator)
        if numerator > 0:
            return cls.positive_infinite()
        return when_empty if when_empty is not None else cls.undefined()

    @property
    def is_finite(self) -> bool:
        return self.kind == RatioKind.FINITE

    @property
    def is_infinite(self) -> bool:
        return self.kind == RatioKind.POSITIVE_INFINITE

    def as_float(self, *, undefined: float = 0.0, infinite: float = float("inf")) -> float:
        """Collapse to a float for display; the caller picks the stand-ins."""
        if self.kind == RatioKind.FINITE:
            return self.value  # type: ignore[return-value]
        if self.kind == RatioKind.POSITIVE_INFINITE:
            return infinite
        return undefined

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "value": self.value}
