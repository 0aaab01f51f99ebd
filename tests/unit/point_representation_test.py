import math
import typing as t
from dataclasses import dataclass

import numpy as np
import pytest

from kdsearch.algorithms.point_representation import (
    CustomPointRepresentation,
    DefaultPointRepresentation,
    PointRepresentation,
    SupportsPointRepresentation,
    point_fields,
)
from kdsearch.exceptions import ConfigurationError, DimensionMismatchError


@dataclass
class PointXYZI:
    x: float
    y: float
    z: float
    intensity: float


class PointXY(t.NamedTuple):
    x: float
    y: float


class Vec3:
    def __init__(self, x: float, y: float, z: float):
        self.x = x
        self.y = y
        self.z = z


def test_default_for_dataclass_caps_at_three():
    rep = DefaultPointRepresentation.for_type(PointXYZI)
    assert rep.dimension_count == 3
    assert rep.get_number_of_dimensions() == 3
    assert rep.vectorize(PointXYZI(1, 2, 3, 100)) == [1.0, 2.0, 3.0]


def test_default_for_named_tuple():
    rep = DefaultPointRepresentation.for_type(PointXY)
    assert rep.dimension_count == 2
    assert rep.vectorize(PointXY(4.5, -1)) == [4.5, -1.0]


def test_default_for_samples():
    assert DefaultPointRepresentation.for_sample((1.0, 2.0)).dimension_count == 2
    assert DefaultPointRepresentation.for_sample(np.zeros(5)).dimension_count == 3
    rep = DefaultPointRepresentation.for_sample(Vec3(1, 2, 3))
    assert rep.vectorize(Vec3(7, 8, 9)) == [7.0, 8.0, 9.0]


def test_default_for_unknown_type():
    with pytest.raises(ConfigurationError):
        DefaultPointRepresentation.for_type(Vec3)
    with pytest.raises(ConfigurationError):
        point_fields(object())
    with pytest.raises(ConfigurationError):
        DefaultPointRepresentation(0)


def test_default_rejects_short_points():
    rep = DefaultPointRepresentation(3)
    with pytest.raises(DimensionMismatchError):
        rep.vectorize((1.0, 2.0))


def test_rescale():
    rep = DefaultPointRepresentation(3)
    assert rep.is_trivial()
    rep.set_rescale_values([2.0, 0.5, -1.0])
    assert rep.rescale_values == (2.0, 0.5, -1.0)
    assert not rep.is_trivial()
    assert rep.vectorize((1.0, 4.0, 3.0)) == [2.0, 2.0, -3.0]


def test_rescale_length_mismatch():
    rep = DefaultPointRepresentation(3)
    with pytest.raises(ConfigurationError):
        rep.set_rescale_values([1.0, 2.0])
    with pytest.raises(ConfigurationError):
        rep.set_rescale_values([1.0, math.nan, 1.0])
    assert rep.rescale_values is None


def test_is_valid_ignores_rescale():
    rep = DefaultPointRepresentation(2)
    rep.set_rescale_values([0.0, 1.0])
    assert rep.is_valid((1.0, 2.0))
    assert not rep.is_valid((math.inf, 2.0))
    assert not rep.is_valid((1.0, math.nan))
    # Only the represented fields are checked
    assert rep.is_valid((1.0, 2.0, math.nan))


def test_custom_representation():
    rep = CustomPointRepresentation[dict](2, lambda p: (p["lat"], p["lon"]))
    assert rep.vectorize({"lat": 45.0, "lon": 5.5}) == [45.0, 5.5]
    assert not rep.is_trivial()
    assert isinstance(rep, SupportsPointRepresentation)


def test_make_copy_is_independent():
    rep = DefaultPointRepresentation(2)
    other = rep.make_copy()
    other.set_rescale_values([3.0, 3.0])
    assert rep.rescale_values is None
    assert other.vectorize((1.0, 1.0)) == [3.0, 3.0]


def test_base_class_is_abstract():
    with pytest.raises(TypeError):
        PointRepresentation(2)  # type: ignore[abstract]
