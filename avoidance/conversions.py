"""Quaternions, frame conversions, trajectory messages and point cloud helpers."""

from __future__ import annotations

import dataclasses
import math
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import numpy as np

from avoidance.geometry import cartesian_to_polar_fcu, wrap_angle_to_plus_minus_180
from avoidance.structures import FOV

NED_ENU_RPY = (math.pi, 0.0, math.pi / 2.0)
AIRCRAFT_BASELINK_RPY = (math.pi, 0.0, 0.0)

UNIT_X = (1.0, 0.0, 0.0)
UNIT_Y = (0.0, 1.0, 0.0)
UNIT_Z = (0.0, 0.0, 1.0)

TRAJECTORY_WAYPOINTS = 0
TRAJECTORY_BEZIER = 1


@dataclass(frozen=True)
class Quaternion:
    """Rotation quaternion w + xi + yj + zk."""

    w: float = 1.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def identity(cls) -> Quaternion:
        return cls(1.0, 0.0, 0.0, 0.0)

    @staticmethod
    def from_axis_angle(angle: float, axis) -> Quaternion:
        """Rotation by angle (radians) about axis."""
        vec = np.asarray(axis, dtype=float).reshape(3)
        norm = float(np.linalg.norm(vec))
        if norm == 0.0:
            raise ValueError("rotation axis must not be the zero vector")
        vec = vec / norm
        s = math.sin(angle / 2.0)
        return Quaternion(math.cos(angle / 2.0), vec[0] * s, vec[1] * s, vec[2] * s)

    def __mul__(self, other: Quaternion) -> Quaternion:
        if not isinstance(other, Quaternion):
            return NotImplemented
        w1, x1, y1, z1 = self.w, self.x, self.y, self.z
        w2, x2, y2, z2 = other.w, other.x, other.y, other.z
        return Quaternion(
            w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
            w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
            w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
            w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
        )

    def dot(self, other: Quaternion) -> float:
        return self.w * other.w + self.x * other.x + self.y * other.y + self.z * other.z

    def norm(self) -> float:
        return math.sqrt(self.dot(self))

    def normalized(self) -> Quaternion:
        n = self.norm()
        if n == 0.0:
            raise ValueError("cannot normalize a zero quaternion")
        return Quaternion(self.w / n, self.x / n, self.y / n, self.z / n)

    def conjugate(self) -> Quaternion:
        return Quaternion(self.w, -self.x, -self.y, -self.z)

    def as_array(self) -> np.ndarray:
        """Components in (x, y, z, w) order."""
        return np.array([self.x, self.y, self.z, self.w])

    def slerp(self, other: Quaternion, t: float) -> Quaternion:
        """Spherical linear interpolation along the shorter arc."""
        d = self.dot(other)
        abs_d = abs(d)
        if abs_d >= 1.0 - 1e-9:
            scale0 = 1.0 - t
            scale1 = t
        else:
            theta = math.acos(abs_d)
            sin_theta = math.sin(theta)
            scale0 = math.sin((1.0 - t) * theta) / sin_theta
            scale1 = math.sin(t * theta) / sin_theta
        if d < 0.0:
            scale1 = -scale1
        return Quaternion(
            scale0 * self.w + scale1 * other.w,
            scale0 * self.x + scale1 * other.x,
            scale0 * self.y + scale1 * other.y,
            scale0 * self.z + scale1 * other.z,
        )


def create_pose(waypoint, yaw: float) -> tuple[np.ndarray, Quaternion]:
    """Position and level orientation with the given yaw in radians."""
    position = np.asarray(waypoint, dtype=float).reshape(3).copy()
    roll = 0.0
    pitch = 0.0
    q = (
        Quaternion.from_axis_angle(roll, UNIT_X)
        * Quaternion.from_axis_angle(pitch, UNIT_Y)
        * Quaternion.from_axis_angle(yaw, UNIT_Z)
    )
    return position, q


def _yaw_rad(q: Quaternion) -> float:
    siny_cosp = 2.0 * (q.w * q.z + q.x * q.y)
    cosy_cosp = 1.0 - 2.0 * (q.y * q.y + q.z * q.z)
    return math.atan2(siny_cosp, cosy_cosp)


def yaw_from_quaternion(q: Quaternion) -> float:
    """Yaw angle of q in degrees."""
    return math.degrees(_yaw_rad(q))


def pitch_from_quaternion(q: Quaternion) -> float:
    """Pitch angle of q in degrees, clamped to +-90."""
    sinp = 2.0 * (q.w * q.y - q.z * q.x)
    if abs(sinp) >= 1.0:
        pitch = math.copysign(math.pi / 2.0, sinp)
    else:
        pitch = math.asin(sinp)
    return math.degrees(pitch)


def quaternion_from_rpy(rpy) -> Quaternion:
    """Quaternion from roll, pitch, yaw (radians), applied as yaw * pitch * roll."""
    roll, pitch, yaw = (float(v) for v in np.asarray(rpy, dtype=float).reshape(3))
    return (
        Quaternion.from_axis_angle(yaw, UNIT_Z)
        * Quaternion.from_axis_angle(pitch, UNIT_Y)
        * Quaternion.from_axis_angle(roll, UNIT_X)
    )


def orientation_to_ned(q: Quaternion) -> Quaternion:
    """Orientation from ENU/base_link to NED/aircraft convention."""
    ned_enu_q = quaternion_from_rpy(NED_ENU_RPY)
    aircraft_baselink_q = quaternion_from_rpy(AIRCRAFT_BASELINK_RPY)
    return ned_enu_q * (q * aircraft_baselink_q)


def orientation_to_enu(q: Quaternion) -> Quaternion:
    """Orientation from NED/aircraft to ENU/base_link convention."""
    ned_enu_q = quaternion_from_rpy(NED_ENU_RPY)
    aircraft_baselink_q = quaternion_from_rpy(AIRCRAFT_BASELINK_RPY)
    return (ned_enu_q * q) * aircraft_baselink_q


def to_ned(xyz_enu) -> np.ndarray:
    x, y, z = (float(v) for v in np.asarray(xyz_enu, dtype=float).reshape(3))
    return np.array([y, x, -z])


def to_enu(xyz_ned) -> np.ndarray:
    x, y, z = (float(v) for v in np.asarray(xyz_ned, dtype=float).reshape(3))
    return np.array([y, x, -z])


def yaw_to_ned_deg(yaw_enu: float) -> float:
    return 90.0 - yaw_enu


def yaw_to_ned_rad(yaw_enu: float) -> float:
    return math.pi / 2.0 - yaw_enu


def pitch_to_ned(pitch_enu: float) -> float:
    return -pitch_enu


def yaw_to_enu_deg(yaw_ned: float) -> float:
    return 90.0 - yaw_ned


def yaw_to_enu_rad(yaw_ned: float) -> float:
    return math.pi / 2.0 - yaw_ned


def pitch_to_enu(pitch_ned: float) -> float:
    return -pitch_ned


def _zeros() -> np.ndarray:
    return np.zeros(3)


@dataclass(eq=False)
class TrajectoryPoint:
    """One setpoint of a trajectory message."""

    position: np.ndarray = field(default_factory=_zeros)
    velocity: np.ndarray = field(default_factory=_zeros)
    acceleration_or_force: np.ndarray = field(default_factory=_zeros)
    yaw: float = 0.0
    yaw_rate: float = 0.0


@dataclass(eq=False)
class Trajectory:
    """Trajectory of up to five points, as waypoints or Bezier control points."""

    type: int = TRAJECTORY_WAYPOINTS
    points: tuple[TrajectoryPoint, ...] = field(
        default_factory=lambda: tuple(TrajectoryPoint() for _ in range(5))
    )
    time_horizon: tuple[float, ...] = (math.nan,) * 5
    point_valid: tuple[bool, ...] = (False,) * 5
    stamp: float = field(default_factory=time.time)


def unused_trajectory_point() -> TrajectoryPoint:
    """A trajectory point with every value set to NaN."""
    nan3 = np.full(3, math.nan)
    return TrajectoryPoint(nan3.copy(), nan3.copy(), nan3.copy(), math.nan, math.nan)


def control_point(point_in) -> TrajectoryPoint:
    """Bezier control point (x, y, z, yaw) in NED turned into an ENU trajectory point."""
    values = np.asarray(point_in, dtype=float).reshape(4)
    return TrajectoryPoint(
        position=to_enu(values[:3]),
        yaw=yaw_to_enu_rad(float(values[3])),
    )


def transform_to_trajectory(
    position, orientation: Quaternion, linear_velocity, angular_velocity
) -> Trajectory:
    """Waypoint trajectory whose only valid point is the given setpoint."""
    first = TrajectoryPoint(
        position=np.asarray(position, dtype=float).reshape(3).copy(),
        velocity=np.asarray(linear_velocity, dtype=float).reshape(3).copy(),
        acceleration_or_force=np.full(3, math.nan),
        yaw=_yaw_rad(orientation),
        yaw_rate=-float(np.asarray(angular_velocity, dtype=float).reshape(3)[2]),
    )
    return Trajectory(
        type=TRAJECTORY_WAYPOINTS,
        points=(first,) + tuple(unused_trajectory_point() for _ in range(4)),
        time_horizon=(math.nan,) * 5,
        point_valid=(True, False, False, False, False),
        stamp=time.time(),
    )


def transform_to_bezier(control_points: Sequence, duration: float) -> Trajectory:
    """Bezier trajectory from five (x, y, z, yaw) NED control points."""
    points = tuple(control_point(p) for p in control_points)
    if len(points) != 5:
        raise ValueError(f"a Bezier trajectory needs 5 control points, got {len(points)}")
    return Trajectory(
        type=TRAJECTORY_BEZIER,
        points=points,
        time_horizon=(math.nan, math.nan, math.nan, math.nan, float(duration)),
        point_valid=(True,) * 5,
        stamp=time.time(),
    )


def remove_nan_and_get_maxima(cloud) -> tuple[np.ndarray, np.ndarray]:
    """Drop non-finite points and find the outermost ones.

    Returns the filtered cloud, in its original order, and the points of
    largest x, y, z followed by those of smallest x, y, z.
    """
    points = np.asarray(cloud, dtype=float).reshape(-1, 3)
    filtered = points[np.all(np.isfinite(points), axis=1)]
    maxima: list[np.ndarray] = []
    if len(filtered):
        for axis in range(3):
            idx = int(np.argmax(filtered[:, axis]))
            if filtered[idx, axis] > -9999.0:
                maxima.append(filtered[idx])
        for axis in range(3):
            idx = int(np.argmin(filtered[:, axis]))
            if filtered[idx, axis] < 9999.0:
                maxima.append(filtered[idx])
    maxima_arr = np.array(maxima, dtype=float).reshape(-1, 3)
    return filtered.copy(), maxima_arr


def update_fov_from_maxima(fov: FOV, maxima: Iterable) -> FOV:
    """Widen fov to cover the given extreme points; it never shrinks."""
    h_min, h_max, v_min, v_max = 9999.0, -9999.0, 9999.0, -9999.0
    for p in maxima:
        pol = cartesian_to_polar_fcu(p)
        z = pol.z + 180.0
        e = pol.e + 90.0
        h_min = min(z, h_min)
        h_max = max(z, h_max)
        v_min = min(e, v_min)
        v_max = max(e, v_max)

    h_diff = min(h_max - h_min, 360.0 - h_max + h_min)
    v_diff = min(v_max - v_min, 360.0 - v_max + v_min)

    result = dataclasses.replace(fov)
    if h_diff > result.h_fov_deg:
        result.h_fov_deg = h_diff
        # assumes the FOV of one camera is below 180 degrees
        if h_diff >= h_max - h_min:
            result.yaw_deg = wrap_angle_to_plus_minus_180((h_max + h_min) / 2.0 - 180.0)
        else:
            result.yaw_deg = wrap_angle_to_plus_minus_180((h_max + h_min) / 2.0)

    if v_diff > result.v_fov_deg:
        result.v_fov_deg = v_diff
        result.pitch_deg = (v_max + v_min) / 2.0 - 90.0
    return result