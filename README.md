# avoidance

Building blocks for obstacle avoidance planners on multicopters.

## What it provides

- `avoidance.histogram`: `Histogram` is a polar obstacle-distance histogram
  over elevation and azimuth cells. It has `get_dist` (indices wrap around),
  `set_dist`, `set_zero` and `is_empty`. `upsample` and `downsample` switch it
  between full resolution (`ALPHA_RES`, 6 degrees) and half resolution.
  Calling either one at the wrong resolution raises `ValueError`.
- `avoidance.structures`: shared data types. These are `PolarPoint`, `FOV`,
  `ModelParameters`, `CandidateDirection` (ordered by cost, with `to_polar`),
  `CostParameters` and `AvoidanceOutput`. It also holds the `MavState`,
  `NavigationState` and `MavCommand` enumerations, and `norm_clamp`, which
  limits a vector's length.
- `avoidance.geometry`: angle wrapping (`wrap_angle_to_plus_minus_180`,
  `wrap_angle_to_plus_minus_pi`, `angle_difference`, `wrap_polar`). It
  converts between polar and cartesian coordinates in the histogram and
  flight-controller conventions, and maps to and from histogram indices. Its
  field-of-view checks are `point_inside_fov`, `point_inside_yaw_fov`,
  `histogram_index_yaw_inside_fov`, `is_in_which_fov`, `is_on_edge_of_fov`
  and `scale_to_fov`. It also has `next_yaw` and `get_angular_velocity`.
- `avoidance.conversions`: a `Quaternion` type with multiplication and
  `slerp`. It provides yaw and pitch extraction, roll/pitch/yaw to quaternion,
  NED/ENU conversions for positions, angles and orientations, and building a
  `Trajectory` from a single setpoint (`transform_to_trajectory`) or from five
  Bézier control points (`transform_to_bezier`). For point clouds,
  `remove_nan_and_get_maxima` drops non-finite points, and
  `update_fov_from_maxima` widens an `FOV` to cover the extreme points.
- `avoidance.transform_buffer`: `TransformBuffer` keeps `StampedTransform`s
  for each source/target frame pair. It drops entries older than its buffer
  size and interpolates between stamps on lookup: linear for translation,
  slerp for rotation. A failed lookup raises `TransformLookupError`.
- `avoidance.avoidance_node`: `AvoidanceNode` tracks the companion-process
  status (`check_failsafe`, `publish_system_status`). It also tracks
  flight-controller parameters (`px4_params_callback`,
  `poll_px4_parameters_once`, `get_px4_parameters`) and the mission cruise
  speed (`mission_callback`). `start` runs a status heartbeat thread and a
  parameter polling thread, and `stop` ends them.
- `avoidance.world_loader`: `load_world` reads a YAML list of world objects
  into `WorldObject`s. `WorldVisualizer` turns them into `Marker`s, resolving
  `model://` mesh URIs against `GAZEBO_MODEL_PATH` and `~/.gazebo/models`,
  and builds a marker for the vehicle. Bad files, unknown object types and
  missing models raise `WorldLoadError`.
- `avoidance.usm`: a small state machine base class, `StateMachine`, with
  `Transition` and `choose_from_table` for table-driven transitions.

## What it does not do

This is a library only. It has no command-line program, and it does not talk
to a flight controller or a visualization tool itself. `AvoidanceNode` and
`WorldVisualizer` take plain callables for publishing statuses and markers and
for requesting parameters. Connecting those callables to a real message
transport is left to the caller. It contains no local planner, path search or
landing planner.

## Install

```
pip install .
```

## Example

```python
from avoidance.structures import FOV, PolarPoint
from avoidance.geometry import point_inside_fov, wrap_angle_to_plus_minus_180
from avoidance.histogram import Histogram

fov = FOV(yaw_deg=0.0, pitch_deg=0.0, h_fov_deg=90.0, v_fov_deg=60.0)
print(point_inside_fov(fov, PolarPoint(e=10.0, z=20.0, r=1.0)))  # True
print(wrap_angle_to_plus_minus_180(270.0))                      # -90.0

hist = Histogram(6)
print(hist.is_empty())  # True
hist.set_dist(0, 0, 3.5)
print(hist.get_dist(0, 0))  # 3.5
```

## Running the tests

```
pip install .[test]
pytest
```