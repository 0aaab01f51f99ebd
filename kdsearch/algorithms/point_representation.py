import abc
import copy
import dataclasses
import math
import typing as t

import numpy as np

from kdsearch.data_models import Vector
from kdsearch.exceptions import ConfigurationError, DimensionMismatchError

P = t.TypeVar("P")  # Point type
P_contra = t.TypeVar("P_contra", contravariant=True)

# The default representation never looks past the first three fields
MAX_DEFAULT_DIMENSIONS = 3


@t.runtime_checkable
class SupportsPointRepresentation(t.Protocol[P_contra]):
    """Anything that can turn a point into a fixed-length float vector."""

    @property
    def dimension_count(self) -> int: ...

    def vectorize(self, point: P_contra) -> Vector: ...

    def is_valid(self, point: P_contra) -> bool: ...


class PointRepresentation(abc.ABC, t.Generic[P]):
    """Converts point values of type `P` into `dimension_count`-dimensional vectors.

    Subclasses provide `copy_to_float_array`, the raw extraction. Vectorizing
    applies the optional per-dimension rescale on top of it, validation never
    does.
    """

    def __init__(self, dimensions: int):
        if dimensions < 1:
            raise ConfigurationError(
                f"A point representation needs at least one dimension, got {dimensions}"
            )
        self._dimensions = dimensions
        self._rescale: t.Tuple[float, ...] | None = None
        self._trivial = False

    @property
    def dimension_count(self) -> int:
        return self._dimensions

    def get_number_of_dimensions(self) -> int:
        return self._dimensions

    @property
    def rescale_values(self) -> t.Tuple[float, ...] | None:
        return self._rescale

    @abc.abstractmethod
    def copy_to_float_array(self, point: P) -> Vector:
        """Returns the raw coordinates of `point`, exactly `dimension_count` of them."""

    def _extract(self, point: P) -> Vector:
        values = self.copy_to_float_array(point)
        if len(values) != self._dimensions:
            raise DimensionMismatchError(expected=self._dimensions, actual=len(values))
        return values

    def vectorize(self, point: P) -> Vector:
        values = self._extract(point)
        if self._rescale is None:
            return [float(v) for v in values]
        return [float(v) * alpha for v, alpha in zip(values, self._rescale)]

    def set_rescale_values(self, values: t.Sequence[float]) -> None:
        rescale = tuple(float(v) for v in values)
        if len(rescale) != self._dimensions:
            raise ConfigurationError(
                f"Expected {self._dimensions} rescale values, got {len(rescale)}"
            )
        if not all(math.isfinite(v) for v in rescale):
            raise ConfigurationError(f"Rescale values must be finite: {rescale}")
        self._rescale = rescale

    def is_valid(self, point: P) -> bool:
        return all(math.isfinite(v) for v in self._extract(point))

    def is_trivial(self) -> bool:
        """True when vectors are the point's leading fields copied verbatim."""
        return self._trivial and self._rescale is None

    def make_copy(self) -> "PointRepresentation[P]":
        return copy.copy(self)


def point_fields(point: t.Any) -> t.List[t.Any]:
    """Lists the fields of a point-like value in declaration order.

    Dataclasses and named tuples expose their declared fields, sequences and
    numpy arrays their items, anything else its `x`, `y` and `z` attributes.
    """
    if dataclasses.is_dataclass(point) and not isinstance(point, type):
        return [getattr(point, f.name) for f in dataclasses.fields(point)]
    if isinstance(point, tuple) and hasattr(point, "_fields"):
        return [getattr(point, name) for name in point._fields]
    if isinstance(point, np.ndarray):
        return point.reshape(-1).tolist()
    if isinstance(point, t.Sequence) and not isinstance(point, (str, bytes)):
        return list(point)
    values = [getattr(point, name) for name in ("x", "y", "z") if hasattr(point, name)]
    if not values:
        raise ConfigurationError(
            f"Cannot extract coordinates from a {type(point).__name__}"
        )
    return values


class DefaultPointRepresentation(PointRepresentation[P]):
    """Uses the first fields of the point, at most three of them."""

    def __init__(self, field_count: int):
        super().__init__(min(field_count, MAX_DEFAULT_DIMENSIONS))
        self._trivial = True

    @classmethod
    def for_type(cls, point_type: type) -> "DefaultPointRepresentation[t.Any]":
        if dataclasses.is_dataclass(point_type):
            return cls(len(dataclasses.fields(point_type)))
        fields = getattr(point_type, "_fields", None)
        if fields is not None:
            return cls(len(fields))
        raise ConfigurationError(
            f"Cannot count the fields of {point_type.__name__}, use for_sample instead"
        )

    @classmethod
    def for_sample(cls, point: t.Any) -> "DefaultPointRepresentation[t.Any]":
        return cls(len(point_fields(point)))

    def copy_to_float_array(self, point: P) -> Vector:
        fields = point_fields(point)
        if len(fields) < self._dimensions:
            raise DimensionMismatchError(expected=self._dimensions, actual=len(fields))
        return [float(v) for v in fields[: self._dimensions]]


class CustomPointRepresentation(PointRepresentation[P]):
    def __init__(self, dimensions: int, point_getter: t.Callable[[P], t.Iterable[float]]):
        super().__init__(dimensions)
        self.point_getter = point_getter

    def copy_to_float_array(self, point: P) -> Vector:
        return [float(v) for v in self.point_getter(point)]
