"""Loading of world description files into visualization markers."""

from __future__ import annotations

import enum
import logging
import os
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
import yaml

from avoidance.conversions import Quaternion

logger = logging.getLogger(__name__)

MODEL_SCHEME = "model://"
DRONE_MESH = "model://matrice_100/meshes/Matrice_100.dae"
DRONE_FRAME = "local_origin"
DRONE_SCALE = 1.5
PRIMITIVE_COLOR = (0.5, 0.5, 0.5, 0.9)


class WorldLoadError(Exception):
    """Raised when a world file or a model cannot be loaded."""


class MarkerType(enum.IntEnum):
    CUBE = 1
    SPHERE = 2
    CYLINDER = 3
    MESH_RESOURCE = 10


class MarkerAction(enum.IntEnum):
    ADD = 0


_PRIMITIVES = {
    "cube": MarkerType.CUBE,
    "sphere": MarkerType.SPHERE,
    "cylinder": MarkerType.CYLINDER,
}


def _zeros() -> np.ndarray:
    return np.zeros(3)


@dataclass(eq=False)
class WorldObject:
    """One object of a world description."""

    type: str
    name: str
    frame_id: str
    mesh_resource: str
    position: np.ndarray = field(default_factory=_zeros)
    orientation: Quaternion = field(default_factory=Quaternion.identity)
    scale: np.ndarray = field(default_factory=_zeros)


@dataclass(eq=False)
class Marker:
    """A visualization marker."""

    id: int
    type: MarkerType
    frame_id: str
    position: np.ndarray = field(default_factory=_zeros)
    orientation: Quaternion = field(default_factory=Quaternion.identity)
    scale: np.ndarray = field(default_factory=_zeros)
    color: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    mesh_resource: str = ""
    mesh_use_embedded_materials: bool = False
    action: MarkerAction = MarkerAction.ADD
    lifetime: float = 0.0
    stamp: float = field(default_factory=time.time)


def _floats(node, key: str, count: int) -> list[float]:
    value = node[key]
    if not isinstance(value, Sequence) or isinstance(value, str) or len(value) < count:
        raise WorldLoadError(f"field '{key}' must be a list of at least {count} numbers")
    try:
        return [float(v) for v in value[:count]]
    except (TypeError, ValueError) as exc:
        raise WorldLoadError(f"field '{key}' must hold numbers") from exc


def _text(node, key: str) -> str:
    value = node[key]
    if value is None or isinstance(value, (Mapping, list)):
        raise WorldLoadError(f"field '{key}' must be a scalar")
    return str(value)


def parse_world_object(node) -> WorldObject:
    """Build a WorldObject from one mapping of a world file."""
    if not isinstance(node, Mapping):
        raise WorldLoadError("world object must be a mapping")
    try:
        position = _floats(node, "position", 3)
        x, y, z, w = _floats(node, "orientation", 4)
        scale = _floats(node, "scale", 3)
        return WorldObject(
            type=_text(node, "type"),
            name=_text(node, "name"),
            frame_id=_text(node, "frame_id"),
            mesh_resource=_text(node, "mesh_resource"),
            position=np.array(position),
            orientation=Quaternion(w, x, y, z),
            scale=np.array(scale),
        )
    except KeyError as exc:
        raise WorldLoadError(f"world object is missing field {exc.args[0]!r}") from exc


def load_world(world_path: str | os.PathLike) -> list[WorldObject]:
    """Read the objects of a world file."""
    try:
        with open(world_path, encoding="utf-8") as fin:
            doc = yaml.safe_load(fin)
    except OSError as exc:
        raise WorldLoadError(f"cannot read world file {world_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise WorldLoadError(f"invalid YAML in world file {world_path}: {exc}") from exc
    if doc is None:
        return []
    if not isinstance(doc, list):
        raise WorldLoadError("world file must hold a list of objects")
    return [parse_world_object(node) for node in doc]


class WorldVisualizer:
    """Turns a world file and the vehicle pose into markers and publishes them."""

    def __init__(
        self,
        world_path: str = "",
        publish_world: Callable[[list[Marker]], None] | None = None,
        publish_drone: Callable[[Marker], None] | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.world_path = world_path
        self._publish_world = publish_world
        self._publish_drone = publish_drone
        self._environ = os.environ if environ is None else environ

    def resolve_uri(self, uri: str) -> str:
        """Resolve a model:// URI against the model search path into a file:// URI."""
        relative = uri[len(MODEL_SCHEME):]
        model_path = self._environ.get("GAZEBO_MODEL_PATH", "")
        home = self._environ.get("HOME", "")
        locations = f"{model_path}:{home}/.gazebo/models".split(":")
        for location in locations:
            if Path(location + relative).is_file():
                return "file://" + location + relative
        raise WorldLoadError(f"could not find model {uri}")

    def _resolve_if_model(self, uri: str) -> str:
        return self.resolve_uri(uri) if MODEL_SCHEME in uri else uri

    def visualize_rviz_world(self, world_path: str | os.PathLike) -> list[Marker]:
        """Load the world file, publish its markers and return them."""
        markers = []
        for counter, item in enumerate(load_world(world_path), start=1):
            marker = Marker(
                id=counter,
                type=MarkerType.MESH_RESOURCE,
                frame_id=item.frame_id,
                position=item.position.copy(),
                orientation=item.orientation,
                scale=item.scale.copy(),
            )
            if item.type == "mesh":
                marker.mesh_resource = self._resolve_if_model(item.mesh_resource)
                marker.mesh_use_embedded_materials = True
            elif item.type in _PRIMITIVES:
                marker.type = _PRIMITIVES[item.type]
                marker.color = PRIMITIVE_COLOR
            else:
                raise WorldLoadError(f"invalid object type {item.type!r} in world file")
            markers.append(marker)

        if self._publish_world is not None:
            self._publish_world(markers)
        logger.info("Successfully loaded rviz world")
        return markers

    def visualize_drone(self, pose) -> Marker:
        """Publish and return the vehicle mesh marker at pose (position, orientation)."""
        position, orientation = pose
        marker = Marker(
            id=0,
            type=MarkerType.MESH_RESOURCE,
            frame_id=DRONE_FRAME,
            position=np.asarray(position, dtype=float).reshape(3).copy(),
            orientation=orientation,
            scale=np.full(3, DRONE_SCALE),
            mesh_resource=self._resolve_if_model(DRONE_MESH),
            mesh_use_embedded_materials=True,
        )
        if self._publish_drone is not None:
            self._publish_drone(marker)
        return marker

    def position_callback(self, pose) -> Marker | None:
        """Show the vehicle at pose when a world is configured."""
        if not self.world_path:
            return None
        try:
            return self.visualize_drone(pose)
        except WorldLoadError as exc:
            logger.warning("Failed to visualize drone in RViz: %s", exc)
            return None

    def loop_callback(self) -> list[Marker] | None:
        """Publish the configured world, if any."""
        if not self.world_path:
            return None
        try:
            return self.visualize_rviz_world(self.world_path)
        except WorldLoadError as exc:
            logger.warning("[WorldVisualizer] Failed to visualize Rviz world: %s", exc)
            return None