"""Query parameters accepted by temporal containers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union

import isodate

from models.records import parse_instant

OBSERVED_PROPERTY_PARAM = "observedProperty"
MADE_BY_SENSOR_PARAM = "madeBySensor"
INTERVAL_START_PARAM = "intervalStart"
INTERVAL_END_PARAM = "intervalEnd"
INTERVAL_ABSOLUTE_START_PARAM = "intervalAbsoluteStart"
INTERVAL_ABSOLUTE_END_PARAM = "intervalAbsoluteEnd"
VALUE_PARAM = "value"
OPERATOR_PARAM = "operator"

# isodate returns its own Duration type for year and month components.
DurationLike = Union[timedelta, isodate.Duration]


class MalformedQueryError(ValueError):
    """Raised when a query parameter cannot be interpreted."""

    def __init__(self, parameter: str, value: str, reason: str) -> None:
        super().__init__(f"Invalid {parameter} parameter {value!r}: {reason}")
        self.parameter = parameter
        self.value = value
        self.reason = reason


class ModalOperator(str, Enum):
    diamond = "diamond"
    box = "box"


class Comparator(str, Enum):
    gte = "gte_"
    gt = "gt_"
    lt = "lt_"
    lte = "lte_"
    eq = ""


def compare_values(left: str, right: str) -> int:
    """Three-way comparison, numeric when both sides are finite numbers."""
    left_number = _as_number(left)
    right_number = _as_number(right)
    if left_number is not None and right_number is not None:
        a: Union[Decimal, str] = left_number
        b: Union[Decimal, str] = right_number
    else:
        a, b = left, right
    if a < b:  # type: ignore[operator]
        return -1
    if a > b:  # type: ignore[operator]
        return 1
    return 0


def _as_number(value: str) -> Optional[Decimal]:
    try:
        number = Decimal(value.strip())
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


@dataclass(frozen=True)
class ValueConstraint:
    comparator: Comparator
    operand: str

    @classmethod
    def parse(cls, raw: str) -> "ValueConstraint":
        for comparator in (Comparator.gte, Comparator.gt, Comparator.lt, Comparator.lte):
            if raw.startswith(comparator.value):
                return cls(comparator, raw[len(comparator.value):])
        return cls(Comparator.eq, raw)

    def accepts(self, value: str) -> bool:
        order = compare_values(value, self.operand)
        if self.comparator is Comparator.gte:
            return order >= 0
        if self.comparator is Comparator.gt:
            return order > 0
        if self.comparator is Comparator.lt:
            return order < 0
        if self.comparator is Comparator.lte:
            return order <= 0
        return order == 0


@dataclass(frozen=True)
class QuerySpec:
    """Validated query parameters for one temporal container request."""

    observed_property: Optional[str] = None
    made_by_sensor: Optional[str] = None
    interval_start: Optional[DurationLike] = None
    interval_end: Optional[DurationLike] = None
    interval_absolute_start: Optional[datetime] = None
    interval_absolute_end: Optional[datetime] = None
    value: Optional[ValueConstraint] = None
    operator: Optional[ModalOperator] = None

    @classmethod
    def from_params(cls, params: Iterable[Tuple[str, str]]) -> "QuerySpec":
        """Build a query from decoded query-string pairs; first occurrence wins."""
        first: dict[str, str] = {}
        for key, value in params:
            first.setdefault(key, value)

        value = first.get(VALUE_PARAM)
        return cls(
            observed_property=first.get(OBSERVED_PROPERTY_PARAM),
            made_by_sensor=first.get(MADE_BY_SENSOR_PARAM),
            interval_start=_duration(first, INTERVAL_START_PARAM),
            interval_end=_duration(first, INTERVAL_END_PARAM),
            interval_absolute_start=_instant(first, INTERVAL_ABSOLUTE_START_PARAM),
            interval_absolute_end=_instant(first, INTERVAL_ABSOLUTE_END_PARAM),
            value=ValueConstraint.parse(value) if value is not None else None,
            operator=_operator(first.get(OPERATOR_PARAM)),
        )

    @property
    def has_interval(self) -> bool:
        return any(
            bound is not None
            for bound in (
                self.interval_start,
                self.interval_end,
                self.interval_absolute_start,
                self.interval_absolute_end,
            )
        )

    def upper_bounds(self, now: datetime) -> List[datetime]:
        """Instants an observation must not be later than."""
        bounds = []
        if self.interval_start is not None:
            bounds.append(now - self.interval_start)
        if self.interval_absolute_start is not None:
            bounds.append(self.interval_absolute_start)
        return bounds

    def lower_bounds(self, now: datetime) -> List[datetime]:
        """Instants an observation must not be earlier than."""
        bounds = []
        if self.interval_end is not None:
            bounds.append(now - self.interval_end)
        if self.interval_absolute_end is not None:
            bounds.append(self.interval_absolute_end)
        return bounds


def _duration(params: dict[str, str], name: str) -> Optional[DurationLike]:
    raw = params.get(name)
    if raw is None:
        return None
    try:
        return isodate.parse_duration(raw.strip())
    except (isodate.ISO8601Error, ValueError) as exc:
        raise MalformedQueryError(name, raw, "expected an ISO-8601 duration") from exc


def _instant(params: dict[str, str], name: str) -> Optional[datetime]:
    raw = params.get(name)
    if raw is None:
        return None
    try:
        return parse_instant(raw)
    except ValueError as exc:
        raise MalformedQueryError(name, raw, "expected an ISO-8601 timestamp") from exc


def _operator(raw: Optional[str]) -> Optional[ModalOperator]:
    if raw is None:
        return None
    try:
        return ModalOperator(raw)
    except ValueError:
        return None
