import numpy as np
import pytest
import yaml

from avoidance.conversions import Quaternion
from avoidance.world_loader import (
    Marker,
    MarkerType,
    WorldLoadError,
    WorldObject,
    WorldVisualizer,
    load_world,
    parse_world_object,
)


def _obj(type_="cube", mesh="", name="box"):
    return {
        "type": type_,
        "name": name,
        "frame_id": "local_origin",
        "mesh_resource": mesh,
        "position": [1.0, 2.0, 3.0],
        "orientation": [0.0, 0.0, 0.0, 1.0],
        "scale": [4.0, 5.0, 6.0],
    }


def _write(tmp_path, objs):
    path = tmp_path / "world.yaml"
    path.write_text(yaml.safe_dump(objs))
    return path


@pytest.fixture
def model_dir(tmp_path):
    models = tmp_path / "models"
    mesh = models / "matrice_100" / "meshes"
    mesh.mkdir(parents=True)
    (mesh / "Matrice_100.dae").write_text("mesh")
    (models / "tree.dae").write_text("mesh")
    return str(models) + "/"


def test_parse_world_object_fields():
    item = parse_world_object(_obj())
    assert isinstance(item, WorldObject)
    assert item.type == "cube"
    assert item.name == "box"
    assert item.frame_id == "local_origin"
    assert np.allclose(item.position, [1.0, 2.0, 3.0])
    assert np.allclose(item.scale, [4.0, 5.0, 6.0])
    assert item.orientation == Quaternion(1.0, 0.0, 0.0, 0.0)


def test_parse_orientation_order_is_xyzw():
    node = _obj()
    node["orientation"] = [0.1, 0.2, 0.3, 0.4]
    q = parse_world_object(node).orientation
    assert (q.x, q.y, q.z, q.w) == (0.1, 0.2, 0.3, 0.4)


def test_parse_missing_field_raises():
    node = _obj()
    del node["scale"]
    with pytest.raises(WorldLoadError):
        parse_world_object(node)


def test_parse_short_vector_raises():
    node = _obj()
    node["position"] = [1.0, 2.0]
    with pytest.raises(WorldLoadError):
        parse_world_object(node)


def test_load_world_reads_all(tmp_path):
    path = _write(tmp_path, [_obj(name="a"), _obj("sphere", name="b")])
    items = load_world(path)
    assert [i.name for i in items] == ["a", "b"]


def test_load_world_missing_file(tmp_path):
    with pytest.raises(WorldLoadError):
        load_world(tmp_path / "nope.yaml")


def test_visualize_primitives(tmp_path):
    published = []
    path = _write(tmp_path, [_obj("cube"), _obj("sphere"), _obj("cylinder")])
    vis = WorldVisualizer(publish_world=published.append, environ={})
    markers = vis.visualize_rviz_world(path)
    assert [m.type for m in markers] == [MarkerType.CUBE, MarkerType.SPHERE, MarkerType.CYLINDER]
    assert [m.id for m in markers] == [1, 2, 3]
    assert all(m.color == (0.5, 0.5, 0.5, 0.9) for m in markers)
    assert published == [markers]
    assert np.allclose(markers[0].scale, [4.0, 5.0, 6.0])
    assert np.allclose(markers[0].position, [1.0, 2.0, 3.0])


def test_visualize_invalid_type_raises(tmp_path):
    published = []
    path = _write(tmp_path, [_obj("pyramid")])
    vis = WorldVisualizer(publish_world=published.append, environ={})
    with pytest.raises(WorldLoadError):
        vis.visualize_rviz_world(path)
    assert published == []


def test_visualize_mesh_resolves_model(tmp_path, model_dir):
    path = _write(tmp_path, [_obj("mesh", mesh="model://tree.dae")])
    vis = WorldVisualizer(environ={"GAZEBO_MODEL_PATH": model_dir, "HOME": str(tmp_path)})
    (marker,) = vis.visualize_rviz_world(path)
    assert marker.type is MarkerType.MESH_RESOURCE
    assert marker.mesh_resource == "file://" + model_dir + "tree.dae"
    assert marker.mesh_use_embedded_materials is True


def test_visualize_mesh_plain_path_kept(tmp_path):
    path = _write(tmp_path, [_obj("mesh", mesh="file:///meshes/a.dae")])
    (marker,) = WorldVisualizer(environ={}).visualize_rviz_world(path)
    assert marker.mesh_resource == "file:///meshes/a.dae"


def test_resolve_uri_not_found(tmp_path):
    vis = WorldVisualizer(environ={"GAZEBO_MODEL_PATH": str(tmp_path) + "/", "HOME": str(tmp_path)})
    with pytest.raises(WorldLoadError):
        vis.resolve_uri("model://missing.dae")


def test_resolve_uri_searches_later_locations(tmp_path, model_dir):
    env = {"GAZEBO_MODEL_PATH": str(tmp_path / "empty") + "/:" + model_dir, "HOME": str(tmp_path)}
    resolved = WorldVisualizer(environ=env).resolve_uri("model://tree.dae")
    assert resolved == "file://" + model_dir + "tree.dae"


def test_visualize_drone(tmp_path, model_dir):
    published = []
    vis = WorldVisualizer(
        world_path="w.yaml",
        publish_drone=published.append,
        environ={"GAZEBO_MODEL_PATH": model_dir, "HOME": str(tmp_path)},
    )
    q = Quaternion(0.5, 0.5, 0.5, 0.5)
    marker = vis.visualize_drone(([1.0, 2.0, 3.0], q))
    assert isinstance(marker, Marker)
    assert marker.id == 0
    assert marker.frame_id == "local_origin"
    assert np.allclose(marker.scale, [1.5, 1.5, 1.5])
    assert marker.orientation == q
    assert marker.mesh_resource.endswith("matrice_100/meshes/Matrice_100.dae")
    assert published == [marker]


def test_position_callback_without_world_does_nothing():
    published = []
    vis = WorldVisualizer(publish_drone=published.append, environ={})
    assert vis.position_callback(([0.0, 0.0, 0.0], Quaternion())) is None
    assert published == []


def test_position_callback_swallows_missing_model(tmp_path):
    vis = WorldVisualizer(world_path="w.yaml", environ={"HOME": str(tmp_path)})
    assert vis.position_callback(([0.0, 0.0, 0.0], Quaternion())) is None


def test_loop_callback_publishes_world(tmp_path):
    published = []
    path = _write(tmp_path, [_obj("cube")])
    vis = WorldVisualizer(world_path=str(path), publish_world=published.append, environ={})
    markers = vis.loop_callback()
    assert len(markers) == 1
    assert published == [markers]


def test_loop_callback_invalid_world_returns_none(tmp_path):
    path = _write(tmp_path, [_obj("pyramid")])
    vis = WorldVisualizer(world_path=str(path), environ={})
    assert vis.loop_callback() is None