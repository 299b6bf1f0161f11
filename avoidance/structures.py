"""Shared data types of the obstacle avoidance planners."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field

import numpy as np


class MavState(enum.IntEnum):
    UNINIT = 0
    BOOT = 1
    CALIBRATING = 2
    STANDBY = 3
    ACTIVE = 4
    CRITICAL = 5
    EMERGENCY = 6
    POWEROFF = 7
    FLIGHT_TERMINATION = 8


class NavigationState(enum.Enum):
    MISSION = enum.auto()
    AUTO_TAKEOFF = enum.auto()
    AUTO_LAND = enum.auto()
    AUTO_RTL = enum.auto()
    AUTO_RTGS = enum.auto()
    OFFBOARD = enum.auto()
    AUTO_LOITER = enum.auto()
    NONE = enum.auto()


class MavCommand(enum.IntEnum):
    NAV_LAND = 21
    NAV_TAKEOFF = 22
    DO_CHANGE_SPEED = 178


@dataclass
class PolarPoint:
    """Elevation e and azimuth z in degrees, radius r in metres."""

    e: float = 0.0
    z: float = 0.0
    r: float = 0.0


@dataclass
class FOV:
    """Field of view of one sensor, all angles in degrees."""

    yaw_deg: float = 0.0
    pitch_deg: float = 0.0
    h_fov_deg: float = 0.0
    v_fov_deg: float = 0.0


@dataclass
class ModelParameters:
    """Flight controller parameters used for model based trajectory planning."""

    param_mpc_auto_mode: int = -1
    param_mpc_jerk_min: float = math.nan
    param_mpc_jerk_max: float = math.nan
    param_mpc_acc_up_max: float = math.nan
    param_mpc_z_vel_max_up: float = math.nan
    param_mpc_acc_down_max: float = math.nan
    param_mpc_z_vel_max_dn: float = math.nan
    param_mpc_acc_hor: float = math.nan
    param_mpc_xy_cruise: float = math.nan
    param_mpc_tko_speed: float = math.nan
    param_mpc_land_speed: float = math.nan
    param_mpc_yawrauto_max: float = math.nan
    param_nav_acc_rad: float = math.nan
    param_cp_dist: float = math.nan


@dataclass
class CandidateDirection:
    """A direction in the polar histogram with its cost; ordered by cost."""

    cost: float
    elevation_angle: float
    azimuth_angle: float

    def __lt__(self, other: CandidateDirection) -> bool:
        return self.cost < other.cost

    def __gt__(self, other: CandidateDirection) -> bool:
        return self.cost > other.cost

    def to_polar(self, r: float) -> PolarPoint:
        return PolarPoint(self.elevation_angle, self.azimuth_angle, r)


@dataclass
class CostParameters:
    yaw_cost_param: float = 0.5
    pitch_cost_param: float = 3.0
    velocity_cost_param: float = 1.5
    obstacle_cost_param: float = 5.0


@dataclass
class AvoidanceOutput:
    """Result of one planner iteration."""

    cruise_velocity: float = math.nan
    last_path_time: float = 0.0
    path_node_positions: list[np.ndarray] = field(default_factory=list)


def norm_clamp(val, max_norm: float) -> np.ndarray:
    """Scale val down so that its Euclidean norm does not exceed max_norm."""
    vec = np.asarray(val, dtype=float)
    norm_sq = float(np.dot(vec, vec))
    if norm_sq > max_norm * max_norm:
        return vec * (max_norm / math.sqrt(norm_sq))
    return vec.copy()