"""Health monitoring and flight controller parameter tracking for the planners."""

from __future__ import annotations

import dataclasses
import logging
import math
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

import numpy as np

from avoidance.structures import MavCommand, MavState, ModelParameters

logger = logging.getLogger(__name__)

MAV_COMPONENT_ID_AVOIDANCE = 196
FLT_MIN = float(np.finfo(np.float32).tiny)

_FLOAT_PARAMS = {
    "MPC_ACC_DOWN_MAX": "param_mpc_acc_down_max",
    "MPC_ACC_HOR": "param_mpc_acc_hor",
    "MPC_ACC_UP_MAX": "param_mpc_acc_up_max",
    "MPC_JERK_MIN": "param_mpc_jerk_min",
    "MPC_JERK_MAX": "param_mpc_jerk_max",
    "MPC_LAND_SPEED": "param_mpc_land_speed",
    "MPC_TKO_SPEED": "param_mpc_tko_speed",
    "MPC_XY_CRUISE": "param_mpc_xy_cruise",
    "MPC_Z_VEL_MAX_DN": "param_mpc_z_vel_max_dn",
    "MPC_Z_VEL_MAX_UP": "param_mpc_z_vel_max_up",
    "CP_DIST": "param_cp_dist",
    "NAV_ACC_RAD": "param_nav_acc_rad",
    "MPC_YAWRAUTO_MAX": "param_mpc_yawrauto_max",
}
_INT_PARAMS = {"MPC_AUTO_MODE": "param_mpc_auto_mode"}

# Parameters polled from the flight controller, in request order.
POLLED_PARAMS = (
    "MPC_ACC_HOR",
    "MPC_ACC_DOWN_MAX",
    "MPC_ACC_UP_MAX",
    "MPC_XY_CRUISE",
    "MPC_Z_VEL_MAX_DN",
    "MPC_Z_VEL_MAX_UP",
    "CP_DIST",
    "MPC_LAND_SPEED",
    "MPC_JERK_MAX",
    "NAV_ACC_RAD",
    "MPC_YAWRAUTO_MAX",
)

_RETRY_UNINITIALIZED_S = 5.0
_RETRY_INITIALIZED_S = 30.0


@dataclass
class Waypoint:
    """A mission item as reported by the flight controller."""

    command: int
    is_current: bool = False
    param1: float = 0.0
    param2: float = 0.0


@dataclass
class CompanionProcessStatus:
    """Heartbeat of the avoidance process sent to the flight controller."""

    state: int
    component: int = MAV_COMPONENT_ID_AVOIDANCE
    stamp: float = field(default_factory=time.time)


class AvoidanceNode:
    """Tracks system health, mission speed and flight controller parameters.

    publish_status receives each CompanionProcessStatus; get_param is asked for a
    parameter by name and returns its value, or None when the request fails.
    """

    def __init__(
        self,
        publish_status: Callable[[CompanionProcessStatus], None] | None = None,
        get_param: Callable[[str], float | None] | None = None,
        cmdloop_dt: float = 0.1,
        statusloop_dt: float = 0.2,
    ) -> None:
        self._publish_status = publish_status
        self._get_param = get_param
        self.cmdloop_dt = cmdloop_dt
        self.statusloop_dt = statusloop_dt

        self.timeout_termination = 15.0
        self.timeout_critical = 0.5
        self.timeout_startup = 5.0
        self.position_received = True
        self.mission_item_speed = math.nan
        self.system_status = MavState.STANDBY

        self._px4 = ModelParameters()
        self._param_lock = threading.Lock()
        self._should_exit = threading.Event()
        self._threads: list[threading.Thread] = []

    def check_failsafe(self, since_last_cloud: float, since_start: float, hover: bool) -> bool:
        """Update the system status from elapsed times (seconds); return the new hover flag."""
        if since_last_cloud > self.timeout_termination and since_start > self.timeout_termination:
            self.system_status = MavState.FLIGHT_TERMINATION
            logger.warning("Planner abort: missing required data")
        elif since_last_cloud > self.timeout_critical and since_start > self.timeout_startup:
            if self.position_received:
                hover = True
                self.system_status = MavState.CRITICAL
            else:
                logger.warning("Pointcloud timeout: No position received, no WP to output....")
        elif not hover:
            self.system_status = MavState.ACTIVE
        return hover

    def px4_params_callback(self, param_id: str, value: float) -> bool:
        """Store a parameter reported by the flight controller; False if it is not tracked."""
        with self._param_lock:
            if param_id in _FLOAT_PARAMS:
                attr, new_value = _FLOAT_PARAMS[param_id], float(value)
            elif param_id in _INT_PARAMS:
                attr, new_value = _INT_PARAMS[param_id], int(value)
            else:
                return False
            logger.info(
                "parameter %s is set from %s to %s", param_id, getattr(self._px4, attr), new_value
            )
            setattr(self._px4, attr, new_value)
            return True

    def poll_px4_parameters_once(self) -> bool:
        """Request the polled parameters once; True if all of them are now known."""
        with self._param_lock:
            if self._get_param is not None:
                for name in POLLED_PARAMS:
                    value = self._get_param(name)
                    if value is not None:
                        setattr(self._px4, _FLOAT_PARAMS[name], float(value))
            return all(
                math.isfinite(getattr(self._px4, _FLOAT_PARAMS[name])) for name in POLLED_PARAMS
            )

    def check_px4_parameters(self) -> None:
        """Poll the parameters until stopped: every 5 s while incomplete, else every 30 s."""
        while not self._should_exit.is_set():
            initialized = self.poll_px4_parameters_once()
            self._should_exit.wait(
                _RETRY_INITIALIZED_S if initialized else _RETRY_UNINITIALIZED_S
            )

    def mission_callback(self, waypoints: Sequence[Waypoint]) -> None:
        """Take the mission speed from the last speed change at or before the current item."""
        items = list(waypoints)
        current = next((i for i, wp in enumerate(items) if wp.is_current), None)
        if current is None:
            return
        for wp in reversed(items[: current + 1]):
            if (
                wp.command == MavCommand.DO_CHANGE_SPEED
                and (wp.param1 - 1.0) < FLT_MIN
                and wp.param2 > 0.0
            ):
                self.mission_item_speed = wp.param2
                break

    def get_px4_parameters(self) -> ModelParameters:
        """A copy of the current flight controller parameters."""
        with self._param_lock:
            return dataclasses.replace(self._px4)

    def publish_system_status(self) -> CompanionProcessStatus:
        """Send and return the current companion process status."""
        status = CompanionProcessStatus(state=int(self.system_status))
        if self._publish_status is not None:
            self._publish_status(status)
        return status

    def _status_loop(self) -> None:
        while not self._should_exit.wait(self.statusloop_dt):
            self.publish_system_status()

    def start(self) -> None:
        """Enter BOOT and start the status heartbeat and parameter polling threads."""
        if self._threads:
            raise RuntimeError("avoidance node already started")
        self._should_exit.clear()
        self.system_status = MavState.BOOT
        self._threads = [
            threading.Thread(target=self._status_loop, name="status-loop", daemon=True),
            threading.Thread(target=self.check_px4_parameters, name="px4-params", daemon=True),
        ]
        for thread in self._threads:
            thread.start()

    def stop(self) -> None:
        """Stop the background threads and wait for them."""
        self._should_exit.set()
        for thread in self._threads:
            thread.join()
        self._threads = []