"""Angle wrapping, polar/cartesian conversions and field-of-view tests."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

import numpy as np

from avoidance.histogram import ALPHA_RES, GRID_LENGTH_E
from avoidance.structures import FOV, PolarPoint

DEG_TO_RAD = math.pi / 180.0
RAD_TO_DEG = 180.0 / math.pi


def _as_vector(value) -> np.ndarray:
    return np.asarray(value, dtype=float).reshape(3)


def _as_fov_list(fov: FOV | Iterable[FOV]) -> list[FOV]:
    if isinstance(fov, FOV):
        return [fov]
    return list(fov)


def wrap_angle_to_plus_minus_pi(angle: float) -> float:
    """Wrap an angle in radians into [-pi, pi)."""
    return angle - 2.0 * math.pi * math.floor(angle / (2.0 * math.pi) + 0.5)


def wrap_angle_to_plus_minus_180(angle: float) -> float:
    """Wrap an angle in degrees into [-180, 180)."""
    return angle - 360.0 * math.floor(angle / 360.0 + 0.5)


def angle_difference(a: float, b: float) -> float:
    """Signed difference a - b in degrees, wrapped into [-180, 180)."""
    angle = math.fmod(a - b, 360.0)
    if angle >= 0.0:
        return angle if angle < 180.0 else angle - 360.0
    return angle if angle >= -180.0 else angle + 360.0


def index_angle_difference(a: float, b: float) -> float:
    """Smallest absolute difference between two angles in degrees."""
    diff = a - b
    return min(abs(diff), abs(diff - 360.0), abs(diff + 360.0))


def wrap_polar(p_pol: PolarPoint) -> PolarPoint:
    """Return p_pol with elevation in [-90, 90] and azimuth in [-180, 180)."""
    e = wrap_angle_to_plus_minus_180(p_pol.e)
    z = wrap_angle_to_plus_minus_180(p_pol.z)

    wrapped = False
    if e > 90.0:
        e = 180.0 - e
        wrapped = True
    elif e < -90.0:
        e = -(180.0 + e)
        wrapped = True
    if wrapped:
        z = z + 180.0 if z < 0.0 else z - 180.0
    return PolarPoint(e, z, p_pol.r)


def histogram_index_to_polar(e: int, z: int, res: int, radius: float) -> PolarPoint:
    """Polar point at the centre of histogram cell (e, z)."""
    return PolarPoint(
        float(e * res + res // 2 - 90),
        float(z * res + res // 2 - 180),
        radius,
    )


def polar_histogram_to_cartesian(p_pol: PolarPoint, pos) -> np.ndarray:
    """Cartesian point of a histogram-convention polar offset from pos.

    Zero azimuth is the positive y axis, azimuth grows clockwise and
    elevation grows upward.
    """
    origin = _as_vector(pos)
    e = p_pol.e * DEG_TO_RAD
    z = p_pol.z * DEG_TO_RAD
    return origin + p_pol.r * np.array(
        [math.cos(e) * math.sin(z), math.cos(e) * math.cos(z), math.sin(e)]
    )


def polar_fcu_to_cartesian(p_pol: PolarPoint, pos) -> np.ndarray:
    """Cartesian point of an FCU-convention polar offset from pos.

    Yaw is positive counter-clockwise from the x axis; pitch is positive
    when pitching forward.
    """
    origin = _as_vector(pos)
    polar = (90.0 - p_pol.e) * DEG_TO_RAD
    z = p_pol.z * DEG_TO_RAD
    return origin + p_pol.r * np.array(
        [math.sin(polar) * math.cos(z), math.sin(polar) * math.sin(z), math.cos(polar)]
    )


def cartesian_to_polar_histogram(pos, origin) -> PolarPoint:
    """Histogram-convention polar vector pointing from origin to pos."""
    delta = _as_vector(pos) - _as_vector(origin)
    dx, dy, dz = (float(v) for v in delta)
    den = math.hypot(dx, dy)
    return PolarPoint(
        math.atan2(dz, den) * RAD_TO_DEG,
        math.atan2(dx, dy) * RAD_TO_DEG,
        math.sqrt(dx * dx + dy * dy + dz * dz),
    )


def cartesian_to_polar_fcu(pos, origin=None) -> PolarPoint:
    """FCU-convention polar vector pointing from origin (default: zero) to pos."""
    if origin is None:
        origin = np.zeros(3)
    p = cartesian_to_polar_histogram(pos, origin)
    return wrap_polar(PolarPoint(-p.e, -p.z + 90.0, p.r))


def polar_to_histogram_index(p_pol: PolarPoint, res: int) -> tuple[int, int]:
    """Histogram cell of a polar point as (azimuth index, elevation index)."""
    wrapped = wrap_polar(p_pol)
    elevation_idx = int(math.floor(wrapped.e / res + 90.0 / res))
    azimuth_idx = int(math.floor(wrapped.z / res + 180.0 / res))

    # clamp against floating point errors
    azimuth_idx = min(max(azimuth_idx, 0), 360 // res - 1)
    elevation_idx = min(max(elevation_idx, 0), 180 // res - 1)
    return azimuth_idx, elevation_idx


def _inside_single_yaw(fov: FOV, p_pol: PolarPoint) -> bool:
    return (
        wrap_angle_to_plus_minus_180(fov.yaw_deg - fov.h_fov_deg / 2.0)
        <= p_pol.z
        <= wrap_angle_to_plus_minus_180(fov.yaw_deg + fov.h_fov_deg / 2.0)
    )


def _inside_single(fov: FOV, p_pol: PolarPoint) -> bool:
    return (
        _inside_single_yaw(fov, p_pol)
        and fov.pitch_deg - fov.v_fov_deg / 2.0 <= p_pol.e <= fov.pitch_deg + fov.v_fov_deg / 2.0
    )


def point_inside_fov(fov: FOV | Iterable[FOV], p_pol: PolarPoint) -> bool:
    """Whether p_pol lies inside the given field of view, or any of several."""
    return any(_inside_single(f, p_pol) for f in _as_fov_list(fov))


def point_inside_yaw_fov(fov: FOV | Iterable[FOV], p_pol: PolarPoint) -> bool:
    """Whether the azimuth of p_pol lies inside the horizontal extent of the FOV(s)."""
    return any(_inside_single_yaw(f, p_pol) for f in _as_fov_list(fov))


def histogram_index_yaw_inside_fov(
    fov: FOV | Iterable[FOV], idx: int, position, yaw_fcu_frame: float
) -> bool:
    """Whether either azimuth edge of histogram column idx lies inside the FOV(s)."""
    fovs = _as_fov_list(fov)
    origin = _as_vector(position)
    pol_hist = histogram_index_to_polar(GRID_LENGTH_E // 2, idx, ALPHA_RES, 1.0)
    cart = polar_histogram_to_cartesian(pol_hist, origin)
    pol_fcu = cartesian_to_polar_fcu(cart, origin)
    body_z = pol_fcu.z - yaw_fcu_frame
    plus = wrap_polar(PolarPoint(pol_fcu.e, body_z + ALPHA_RES / 2.0, pol_fcu.r))
    minus = wrap_polar(PolarPoint(pol_fcu.e, body_z - ALPHA_RES / 2.0, pol_fcu.r))
    return point_inside_fov(fovs, plus) or point_inside_fov(fovs, minus)


def is_in_which_fov(fov_vec: Sequence[FOV], p_pol: PolarPoint) -> int | None:
    """Index of the only FOV that sees p_pol's azimuth; None if none or several do."""
    found: int | None = None
    for i, fov in enumerate(fov_vec):
        if _inside_single_yaw(fov, p_pol):
            if found is not None:
                return None
            found = i
    return found


def is_on_edge_of_fov(fov_vec: Sequence[FOV], p_pol: PolarPoint) -> int | None:
    """Index of the FOV on whose outer edge p_pol lies, or None."""
    fovs = list(fov_vec)
    idx = is_in_which_fov(fovs, p_pol)
    if idx is None:
        return None
    fov = fovs[idx]
    if wrap_angle_to_plus_minus_180(p_pol.z - fov.yaw_deg) > 0.0:
        outside_z = wrap_angle_to_plus_minus_180(
            fov.yaw_deg + fov.h_fov_deg / 2.0 + ALPHA_RES / 2.0
        )
    else:
        outside_z = wrap_angle_to_plus_minus_180(
            fov.yaw_deg - fov.h_fov_deg / 2.0 - ALPHA_RES / 2.0
        )
    just_outside = PolarPoint(p_pol.e, outside_z, p_pol.r)
    return None if point_inside_yaw_fov(fovs, just_outside) else idx


def scale_to_fov(fov_vec: Sequence[FOV], p_pol: PolarPoint) -> float:
    """Scale in [0, 1] for how well p_pol's direction can be seen."""
    fovs = list(fov_vec)
    idx = is_on_edge_of_fov(fovs, p_pol)
    if idx is not None:
        fov = fovs[idx]
        diff = abs(fov.yaw_deg - p_pol.z)
        diff = min(diff, abs(360.0 - diff))
        diff = min(fov.h_fov_deg / 2.0, diff)
        return 1.0 - 2.0 * diff / fov.h_fov_deg
    return 1.0 if point_inside_yaw_fov(fovs, p_pol) else 0.0


def distance_2d_polar(p1: PolarPoint, p2: PolarPoint) -> float:
    """Euclidean distance between two points in the (elevation, azimuth) plane."""
    return math.hypot(p1.e - p2.e, p1.z - p2.z)


def next_yaw(u, v) -> float:
    """Yaw in radians of the direction from u to v."""
    start = _as_vector(u)
    end = _as_vector(v)
    return math.atan2(float(end[1] - start[1]), float(end[0] - start[0]))


def get_angular_velocity(desired_yaw: float, curr_yaw: float) -> float:
    """Scaled yaw rate in rad/s turning the short way from curr_yaw to desired_yaw."""
    desired_yaw = wrap_angle_to_plus_minus_pi(desired_yaw)
    yaw_vel1 = desired_yaw - curr_yaw
    if yaw_vel1 > 0.0:
        yaw_vel2 = -(2.0 * math.pi - yaw_vel1)
    else:
        yaw_vel2 = 2.0 * math.pi + yaw_vel1
    vel = yaw_vel1 if abs(yaw_vel1) <= abs(yaw_vel2) else yaw_vel2
    return 0.5 * vel