import math

import numpy as np
import pytest

from avoidance.structures import (
    FOV,
    AvoidanceOutput,
    CandidateDirection,
    CostParameters,
    MavCommand,
    MavState,
    ModelParameters,
    NavigationState,
    PolarPoint,
    norm_clamp,
)


def test_mav_command_values():
    assert MavCommand(21) is MavCommand.NAV_LAND
    assert MavCommand(178) is MavCommand.DO_CHANGE_SPEED
    assert MavCommand(22) is MavCommand.NAV_TAKEOFF


def test_mav_state_ordering():
    assert MavState(0) is MavState.UNINIT
    assert MavState(1) is MavState.BOOT
    assert MavState(8) is MavState.FLIGHT_TERMINATION
    with pytest.raises(ValueError):
        MavState(9)


def test_navigation_state_members_distinct():
    members = list(NavigationState)
    assert [NavigationState(s.value) for s in members] == members
    assert len(members) == 8


def test_polar_point_and_fov_defaults():
    assert PolarPoint() == PolarPoint(0.0, 0.0, 0.0)
    assert FOV() == FOV(0.0, 0.0, 0.0, 0.0)


def test_model_parameters_defaults():
    params = ModelParameters()
    assert params.param_mpc_auto_mode == -1
    assert math.isnan(params.param_mpc_xy_cruise)
    assert math.isnan(params.param_cp_dist)


def test_cost_parameters_defaults():
    params = CostParameters()
    assert params.yaw_cost_param == 0.5
    assert params.pitch_cost_param == 3.0
    assert params.velocity_cost_param == 1.5
    assert params.obstacle_cost_param == 5.0


def test_candidate_direction_sorting():
    cands = [CandidateDirection(3.0, 1.0, 2.0), CandidateDirection(1.0, 5.0, 6.0), CandidateDirection(2.0, 0.0, 0.0)]
    assert [c.cost for c in sorted(cands)] == [1.0, 2.0, 3.0]
    assert cands[0] > cands[1]
    assert cands[1] < cands[2]


def test_candidate_direction_to_polar():
    c = CandidateDirection(4.0, 12.0, -30.0)
    assert c.to_polar(2.5) == PolarPoint(12.0, -30.0, 2.5)


def test_avoidance_output_independent_lists():
    a = AvoidanceOutput()
    b = AvoidanceOutput()
    a.path_node_positions.append(np.zeros(3))
    assert b.path_node_positions == []
    assert math.isnan(a.cruise_velocity)


def test_norm_clamp_scales_long_vector():
    v = np.array([3.0, 4.0, 12.0])
    out = norm_clamp(v, 2.0)
    assert np.linalg.norm(out) == pytest.approx(2.0)
    assert np.allclose(out / np.linalg.norm(out), v / np.linalg.norm(v))


def test_norm_clamp_keeps_short_vector():
    v = np.array([0.1, -0.2, 0.3])
    out = norm_clamp(v, 5.0)
    assert np.array_equal(out, v)
    out[0] = 9.0
    assert v[0] == 0.1