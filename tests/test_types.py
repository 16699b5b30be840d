import numpy as np
import pytest

from hmdcalib.core.bounds import RectBounds
from hmdcalib.core.types import (
    DataOrigin,
    InputMeasurements,
    MeshDescription,
    NormalizedMeasurements,
    Plane,
)
from hmdcalib.errors import DegenerateGeometryError, InvalidAngleError


def test_data_origin_formatting():
    assert str(DataOrigin("left_eye.txt", 12)) == "left_eye.txt:12"
    assert str(DataOrigin()) == "(unknown)"
    assert not DataOrigin().known
    assert not DataOrigin("", 7).known


def test_input_measurements_origin_and_arrays():
    m = InputMeasurements.from_arrays(
        [[0.0, 0.0], [10.0, 5.0]],
        [[1.0, 2.0], [-3.0, 4.0]],
        input_source="meas.txt",
        line_numbers=[3, 9],
    )
    assert len(m) == 2
    assert not m.empty
    assert str(m.origin(1)) == "meas.txt:9"
    assert m[0].view_angles_degrees.longitude == 1.0
    assert m[1].view_angles_degrees.latitude == 4.0
    assert m.screen_array().shape == (2, 2)
    np.testing.assert_array_equal(m.angles_degrees_array(), [[1.0, 2.0], [-3.0, 4.0]])


def test_measurements_without_source_have_unknown_origin():
    m = InputMeasurements.from_arrays([[0.0, 0.0]], [[0.0, 0.0]])
    origin = m.origin(0)
    assert origin is not None
    assert origin.line_number == 1
    assert str(origin) == "(unknown)"


def test_normalized_measurements_length_mismatch_rejected():
    with pytest.raises(ValueError):
        NormalizedMeasurements.from_arrays(
            [[0.0, 0.0], [1.0, 1.0]], [[0.0, 0.0, -1.0]], screen_bounds=RectBounds(0.0, 1.0, 1.0, 0.0)
        )


def test_plane_accessors_and_distance():
    plane = Plane.through(point=[0.0, 0.0, -2.0], normal=[0.0, 0.0, 1.0])
    assert (plane.a, plane.b, plane.c, plane.d) == (0.0, 0.0, 1.0, 2.0)
    np.testing.assert_allclose(plane.signed_distance([[0.0, 0.0, 0.0], [5.0, 1.0, -2.0]]), [2.0, 0.0])


def test_plane_rejects_zero_normal():
    with pytest.raises(DegenerateGeometryError):
        Plane(coeffs=np.array([0.0, 0.0, 0.0, 1.0]))


def test_error_message_carries_origin():
    err = InvalidAngleError("bad angle", origin=DataOrigin("meas.txt", 4))
    assert str(err) == "meas.txt:4: bad angle"
    assert isinstance(err, ValueError)


def test_mesh_description_as_array():
    mesh = MeshDescription.from_arrays([[0.0, 0.5], [1.0, 0.5]], [[0.1, 0.4], [0.9, 0.6]])
    arr = mesh.as_array()
    assert arr.shape == (2, 2, 2)
    assert mesh[1].canonical == (0.9, 0.6)
    np.testing.assert_array_equal(arr[:, 0], [[0.0, 0.5], [1.0, 0.5]])
