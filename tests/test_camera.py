"""Unit tests for the perspective camera.

Tests cover:
- Camera position mapping to the view-space origin
- Orientation (axis-angle rotation of the camera)
- Projection of near/far plane points into NDC
- Frustum validation errors
"""

import math

import numpy as np
import pytest


class TestCameraPlacement:
    """Tests for the inverse extrinsic matrix."""

    def test_own_position_maps_to_view_origin(self):
        from softraster.camera.perspective import CameraParams, build_camera
        from softraster.core.math3d import transform_points

        params = CameraParams(
            position=(1.0, 2.0, 3.0),
            axis=(0.0, 1.0, 0.0),
            angle=0.8,
            near=1.0,
            far=10.0,
            left=-1.0,
            right=1.0,
            top=1.0,
            bottom=-1.0,
        )
        camera = build_camera(params)

        origin = transform_points(camera.inverse_extrinsic, [params.position])[0]
        np.testing.assert_allclose(origin, [0.0, 0.0, 0.0], atol=1e-12)
        assert origin[2] == pytest.approx(0.0, abs=1e-12)

    def test_point_in_front_has_negative_view_z(self):
        from softraster.camera.perspective import CameraParams, build_camera
        from softraster.core.math3d import transform_points

        camera = build_camera(
            CameraParams(position=(0.0, 0.0, 5.0), near=1, far=10, left=-1, right=1, top=1, bottom=-1)
        )
        view = transform_points(camera.inverse_extrinsic, [[0.0, 0.0, 0.0]])[0]
        np.testing.assert_allclose(view, [0.0, 0.0, -5.0], atol=1e-12)

    def test_camera_info_axes(self):
        from softraster.camera.perspective import CameraParams, build_camera, camera_info

        camera = build_camera(
            CameraParams(
                position=(0.0, 0.0, 5.0),
                axis=(0.0, 1.0, 0.0),
                angle=math.pi / 2,
                near=1,
                far=10,
                left=-1,
                right=1,
                top=1,
                bottom=-1,
            )
        )
        info = camera_info(camera)

        np.testing.assert_allclose(info["position"], (0.0, 0.0, 5.0), atol=1e-12)
        # A quarter turn about +y points the camera down -x
        np.testing.assert_allclose(info["forward"], (-1.0, 0.0, 0.0), atol=1e-12)
        np.testing.assert_allclose(info["up"], (0.0, 1.0, 0.0), atol=1e-12)


class TestProjection:
    """Tests for the frustum projection."""

    def test_near_and_far_planes_map_to_ndc_bounds(self):
        from softraster.camera.perspective import make_projection
        from softraster.core.math3d import transform_points

        projection = make_projection(1.0, 10.0, -0.5, 0.5, 0.5, -0.5)
        ndc = transform_points(projection, [[0.0, 0.0, -1.0], [0.0, 0.0, -10.0]])

        assert ndc[0, 2] == pytest.approx(-1.0)
        assert ndc[1, 2] == pytest.approx(1.0)

    def test_near_plane_window_corner_maps_to_ndc_corner(self):
        from softraster.camera.perspective import make_projection
        from softraster.core.math3d import transform_points

        projection = make_projection(1.0, 10.0, -0.5, 0.5, 0.5, -0.5)
        ndc = transform_points(projection, [[0.5, 0.5, -1.0]])[0]
        np.testing.assert_allclose(ndc[:2], [1.0, 1.0])

    def test_unit_square_depth(self):
        from softraster.camera.perspective import make_projection
        from softraster.core.math3d import transform_points

        projection = make_projection(1.0, 10.0, -0.5, 0.5, 0.5, -0.5)
        ndc = transform_points(projection, [[0.5, 0.5, -5.0]])[0]
        np.testing.assert_allclose(ndc, [0.2, 0.2, 7.0 / 9.0])


class TestFrustumValidation:
    """Tests for degenerate frustum parameters."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"near": 0.0},
            {"far": 1.0},
            {"right": -1.0},
            {"top": -1.0},
        ],
    )
    def test_degenerate_frustum_raises(self, overrides):
        from softraster.camera.perspective import CameraParams, build_camera

        values = dict(near=1.0, far=10.0, left=-1.0, right=1.0, top=1.0, bottom=-1.0)
        values.update(overrides)

        with pytest.raises(ValueError, match="Invalid frustum"):
            build_camera(CameraParams(**values))
