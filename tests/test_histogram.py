import pytest

from avoidance.histogram import ALPHA_RES, GRID_LENGTH_E, GRID_LENGTH_Z, Histogram


def test_full_resolution_shape():
    h = Histogram(ALPHA_RES)
    assert (h.e_dim, h.z_dim) == (GRID_LENGTH_E, GRID_LENGTH_Z)
    assert h.dist.shape == (GRID_LENGTH_E, GRID_LENGTH_Z)


def test_half_resolution_shape():
    h = Histogram(ALPHA_RES * 2)
    assert h.e_dim * 2 == GRID_LENGTH_E
    assert h.z_dim * 2 == GRID_LENGTH_Z


def test_invalid_resolution():
    with pytest.raises(ValueError):
        Histogram(0)


def test_get_dist_wraps_indices():
    h = Histogram(ALPHA_RES)
    h.set_dist(0, 0, 3.5)
    h.set_dist(h.e_dim - 1, h.z_dim - 1, 7.25)
    assert h.get_dist(h.e_dim, h.z_dim) == 3.5
    assert h.get_dist(-1, -1) == 7.25
    assert h.get_dist(2 * h.e_dim, -h.z_dim) == 3.5


def test_set_dist_out_of_range():
    h = Histogram(ALPHA_RES)
    with pytest.raises(IndexError):
        h.set_dist(h.e_dim, 0, 1.0)
    with pytest.raises(IndexError):
        h.set_dist(0, -1, 1.0)


def test_is_empty_and_set_zero():
    h = Histogram(ALPHA_RES)
    assert h.is_empty()
    h.set_dist(3, 4, 2.0)
    assert not h.is_empty()
    h.set_zero()
    assert h.is_empty()


def test_tiny_value_counts_as_empty():
    h = Histogram(ALPHA_RES)
    h.set_dist(1, 1, 1e-40)
    assert h.is_empty()


def test_upsample_requires_half_resolution():
    with pytest.raises(ValueError):
        Histogram(ALPHA_RES).upsample()


def test_downsample_requires_full_resolution():
    with pytest.raises(ValueError):
        Histogram(ALPHA_RES * 2).downsample()


def test_upsample_copies_cells():
    h = Histogram(ALPHA_RES * 2)
    h.set_dist(1, 2, 4.0)
    h.upsample()
    assert h.resolution == ALPHA_RES
    assert (h.e_dim, h.z_dim) == (GRID_LENGTH_E, GRID_LENGTH_Z)
    for i in (2, 3):
        for j in (4, 5):
            assert h.get_dist(i, j) == 4.0
    assert h.get_dist(1, 4) == 0.0


def test_downsample_averages_blocks():
    h = Histogram(ALPHA_RES)
    h.set_dist(0, 0, 1.0)
    h.set_dist(0, 1, 2.0)
    h.set_dist(1, 0, 3.0)
    h.set_dist(1, 1, 4.0)
    h.downsample()
    assert h.resolution == ALPHA_RES * 2
    assert h.get_dist(0, 0) == pytest.approx(2.5)
    assert h.get_dist(0, 1) == 0.0


def test_down_then_up_round_trip_for_block_constant():
    h = Histogram(ALPHA_RES)
    for i in range(h.e_dim):
        for j in range(h.z_dim):
            h.set_dist(i, j, float(i // 2 + j // 2))
    before = h.dist
    h.downsample()
    h.upsample()
    assert (h.dist == before).all()