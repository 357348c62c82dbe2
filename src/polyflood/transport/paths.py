"""
Piecewise linear search paths in the (s, c) plane.

A path starts at a point, runs along a direction until it leaves a bounding box,
then continues in a straight line to an end point (normally a box corner):

    x(t) = x + t * d                                          0 <= t <= t_out
    x(t) = ((t_max - t) * x_out + (t - t_out) * end) / (t_max - t_out)   t_out < t <= t_max

with `x_out = x + t_out * d` and `t_max = t_out + 1`.
"""

import typing

import attrs

from polyflood.errors import ComputationError
from polyflood.types import Point


__all__ = [
    "BoundingBox",
    "SearchPath",
    "corner_direction",
    "level_set_direction",
]


@attrs.frozen(slots=True)
class BoundingBox:
    """Axis-aligned box `[lower[0], upper[0]] x [lower[1], upper[1]]`."""

    lower: Point
    upper: Point

    def corner(self, high_saturation: bool, high_concentration: bool) -> Point:
        return (
            self.upper[0] if high_saturation else self.lower[0],
            self.upper[1] if high_concentration else self.lower[1],
        )

    def with_lower(self, point: Point) -> "BoundingBox":
        return BoundingBox(lower=point, upper=self.upper)

    def with_upper(self, point: Point) -> "BoundingBox":
        return BoundingBox(lower=self.lower, upper=point)


def corner_direction(point: Point, corner: Point) -> Point:
    """Direction from a point straight toward a corner."""
    return corner[0] - point[0], corner[1] - point[1]


def level_set_direction(gradient: Point) -> Point:
    """Direction orthogonal to a gradient, tangent to the level set of its function."""
    return -gradient[1], gradient[0]


@attrs.frozen(slots=True)
class SearchPath:
    """Piecewise linear path through a bounding box, parametrized by t in [0, t_max]."""

    start: Point
    direction: Point
    end_point: Point
    exit_point: Point
    t_out: float

    @property
    def t_max(self) -> float:
        return self.t_out + 1.0

    @classmethod
    def through(
        cls,
        start: Point,
        direction: Point,
        end_point: Point,
        box: BoundingBox,
    ) -> "SearchPath":
        """
        Sets up the path from `start` along `direction` to the box boundary,
        then on to `end_point`.

        The direction is flipped if it points away from the end point.

        :raises ComputationError: If the direction is the zero vector.
        """
        ds, dc = direction
        if ds == 0.0 and dc == 0.0:
            raise ComputationError(
                f"Degenerate search direction at point {start}, cannot build a search path."
            )
        if (end_point[0] - start[0]) * ds + (end_point[1] - start[1]) * dc < 0.0:
            ds, dc = -ds, -dc

        exits: typing.List[float] = []
        if ds != 0.0:
            bound = box.upper[0] if ds > 0.0 else box.lower[0]
            exits.append((bound - start[0]) / ds)
        if dc != 0.0:
            bound = box.upper[1] if dc > 0.0 else box.lower[1]
            exits.append((bound - start[1]) / dc)
        t_out = max(min(exits), 0.0)
        exit_point = (start[0] + t_out * ds, start[1] + t_out * dc)
        return cls(
            start=start,
            direction=(ds, dc),
            end_point=end_point,
            exit_point=exit_point,
            t_out=t_out,
        )

    def point_at(self, t: float) -> Point:
        """Point on the path at parameter `t`."""
        if t <= self.t_out:
            return (
                self.start[0] + t * self.direction[0],
                self.start[1] + t * self.direction[1],
            )
        weight = t - self.t_out
        return (
            (1.0 - weight) * self.exit_point[0] + weight * self.end_point[0],
            (1.0 - weight) * self.exit_point[1] + weight * self.end_point[1],
        )
