"""Unit tests for scene-file and OBJ loading.

Tests cover:
- OBJ records, face forms, fan triangulation and index checks
- Transform lines composed in the order written
- Scene-file sections: camera, lights, object mappings, instance blocks
- Warnings for skipped lines and errors for malformed input
"""

import logging
import math

import numpy as np
import pytest

CAMERA = [
    "camera:",
    "position 0 0 5",
    "orientation 0 1 0 0",
    "near 1",
    "far 10",
    "left -0.5",
    "right 0.5",
    "top 0.5",
    "bottom -0.5",
    "",
]

TRIANGLE_OBJ = "v 0 0 0\nv 1 0 0\nv 0 1 0\nvn 0 0 1\nf 1//1 2//1 3//1\n"


class TestMeshParsing:
    """Tests for OBJ parsing."""

    def test_vertices_normals_and_faces(self):
        from softraster.scene.loader import parse_mesh

        mesh = parse_mesh(TRIANGLE_OBJ.splitlines(), name="tri")

        assert mesh.name == "tri"
        np.testing.assert_allclose(mesh.vertices, [[0, 0, 0], [1, 0, 0], [0, 1, 0]])
        np.testing.assert_array_equal(mesh.faces, [[0, 1, 2]])
        np.testing.assert_array_equal(mesh.face_normals, [[0, 0, 0]])
        assert mesh.has_normals

    def test_comments_and_blank_lines_are_skipped(self):
        from softraster.scene.loader import parse_mesh

        mesh = parse_mesh(["# header", "", *TRIANGLE_OBJ.splitlines(), "   "])
        assert mesh.face_count == 1

    def test_texture_indices_are_ignored(self):
        from softraster.scene.loader import parse_mesh

        mesh = parse_mesh(["v 0 0 0", "v 1 0 0", "v 0 1 0", "vn 0 0 1", "f 1/7/1 2/8/1 3/9/1"])
        np.testing.assert_array_equal(mesh.face_normals, [[0, 0, 0]])

    def test_faces_without_normals(self):
        from softraster.scene.loader import parse_mesh

        mesh = parse_mesh(["v 0 0 0", "v 1 0 0", "v 0 1 0", "f 1 2 3"])
        assert mesh.face_count == 1
        assert not mesh.has_normals

    def test_polygons_are_fan_triangulated(self):
        from softraster.scene.loader import parse_mesh

        mesh = parse_mesh(
            ["v 0 0 0", "v 1 0 0", "v 1 1 0", "v 0 1 0", "vn 0 0 1", "f 1//1 2//1 3//1 4//1"]
        )
        np.testing.assert_array_equal(mesh.faces, [[0, 1, 2], [0, 2, 3]])

    @pytest.mark.parametrize(
        "lines,message",
        [
            (["vt 0 0"], "unknown record"),
            (["v 0 0"], "expects 3 numbers"),
            (["v 0 0 x"], "invalid number"),
            (["v 0 0 0", "vn 0 0 1", "f 1//1 2//1 3//1"], "vertex index"),
            (["v 0 0 0", "v 1 0 0", "v 0 1 0", "f 1//1 2//1 3//1"], "normal index"),
            (["v 0 0 0", "v 1 0 0", "v 0 1 0", "vn 0 0 1", "f 1//1 2 3"], "mixes"),
            (
                ["v 0 0 0", "v 1 0 0", "v 0 1 0", "vn 0 0 1", "f 1//1 2//1 3//1", "f 1 2 3"],
                "all carry normals",
            ),
            (["v 0 0 0", "v 1 0 0", "f 1 2"], "at least 3"),
        ],
    )
    def test_malformed_obj_raises(self, lines, message):
        from softraster.scene.loader import parse_mesh

        with pytest.raises(ValueError, match=message):
            parse_mesh(lines)

    def test_error_names_the_line(self):
        from softraster.scene.loader import parse_mesh

        with pytest.raises(ValueError, match="Line 3"):
            parse_mesh(["v 0 0 0", "", "bogus 1 2 3"])


class TestTransformParsing:
    """Tests for instance transform lines."""

    def test_no_lines_is_identity(self):
        from softraster.scene.loader import parse_transform

        np.testing.assert_array_equal(parse_transform([]), np.eye(4))

    def test_lines_apply_in_written_order(self):
        from softraster.core.math3d import transform_points
        from softraster.scene.loader import parse_transform

        matrix = parse_transform([(1, "s 2 2 2"), (2, "t 1 0 0")])
        np.testing.assert_allclose(transform_points(matrix, [[1.0, 0.0, 0.0]]), [[3.0, 0.0, 0.0]])

        matrix = parse_transform([(1, "t 1 0 0"), (2, "s 2 2 2")])
        np.testing.assert_allclose(transform_points(matrix, [[1.0, 0.0, 0.0]]), [[4.0, 0.0, 0.0]])

    def test_rotation(self):
        from softraster.core.math3d import transform_points
        from softraster.scene.loader import parse_transform

        matrix = parse_transform([(1, f"r 0 0 1 {math.pi / 2}")])
        np.testing.assert_allclose(
            transform_points(matrix, [[1.0, 0.0, 0.0]]), [[0.0, 1.0, 0.0]], atol=1e-12
        )

    def test_unknown_kind_is_skipped(self, caplog):
        from softraster.scene.loader import parse_transform

        with caplog.at_level(logging.WARNING):
            matrix = parse_transform([(4, "q 1 2 3")])
        np.testing.assert_array_equal(matrix, np.eye(4))
        assert "unknown transform type 'q'" in caplog.text

    def test_wrong_value_count_raises(self):
        from softraster.scene.loader import parse_transform

        with pytest.raises(ValueError, match="Line 7: rotation expects 4 numbers"):
            parse_transform([(7, "r 0 1 0")])


class TestSceneParsing:
    """Tests for scene files."""

    def _write(self, tmp_path, body, obj=TRIANGLE_OBJ):
        (tmp_path / "tri.obj").write_text(obj)
        path = tmp_path / "scene.txt"
        path.write_text("\n".join(CAMERA + body) + "\n")
        return path

    def test_full_scene(self, tmp_path):
        from softraster.scene.loader import load_scene

        path = self._write(
            tmp_path,
            [
                "light -2 2 2 , 1 0.5 0.25 , 0.2",
                "light 2 0 2 , 0 0 1 , 0.8",
                "",
                "objects:",
                "tri tri.obj",
                "",
                "tri",
                "ambient 0.1 0.2 0.3",
                "diffuse 0.4 0.5 0.6",
                "specular 0.7 0.8 0.9",
                "shininess 12",
                "t 1 0 0",
                "",
                "tri",
                "s 2 2 2",
            ],
        )
        scene = load_scene(path)

        assert [light.position for light in scene.lights] == [(-2.0, 2.0, 2.0), (2.0, 0.0, 2.0)]
        assert scene.lights[0].color == (1.0, 0.5, 0.25)
        assert scene.lights[1].attenuation == 0.8

        assert [obj.name for obj in scene.objects] == ["tri_copy1", "tri_copy2"]
        first, second = scene.objects
        assert first.material.ambient == (0.1, 0.2, 0.3)
        assert first.material.specular == (0.7, 0.8, 0.9)
        assert first.material.shininess == 12.0
        np.testing.assert_allclose(first.mesh.vertices[1], [2.0, 0.0, 0.0])
        np.testing.assert_allclose(second.mesh.vertices[1], [2.0, 0.0, 0.0])
        # Material defaults to zero for blocks that set none
        assert second.material.diffuse == (0.0, 0.0, 0.0)

    def test_new_name_ends_a_block(self, tmp_path):
        from softraster.scene.loader import load_scene

        path = self._write(
            tmp_path,
            ["objects:", "tri tri.obj", "", "tri", "t 1 0 0", "tri", "t 0 1 0"],
        )
        scene = load_scene(path)
        assert [obj.name for obj in scene.objects] == ["tri_copy1", "tri_copy2"]
        np.testing.assert_allclose(scene.objects[1].mesh.vertices[0], [0.0, 1.0, 0.0])

    def test_block_without_transforms_uses_identity(self, tmp_path):
        from softraster.scene.loader import load_scene

        path = self._write(tmp_path, ["objects:", "tri tri.obj", "", "tri", "diffuse 1 1 1"])
        scene = load_scene(path)

        assert len(scene.objects) == 1
        np.testing.assert_allclose(scene.objects[0].mesh.vertices[1], [1.0, 0.0, 0.0])

    def test_camera_parameters(self, tmp_path):
        from softraster.camera.perspective import camera_info
        from softraster.scene.loader import load_scene

        scene = load_scene(self._write(tmp_path, ["objects:"]))
        assert camera_info(scene.camera)["position"] == pytest.approx((0.0, 0.0, 5.0))
        assert scene.objects == ()

    def test_unknown_mesh_name_is_skipped(self, tmp_path, caplog):
        from softraster.scene.loader import load_scene

        path = self._write(
            tmp_path, ["objects:", "tri tri.obj", "", "bunny", "t 0 0 0", "", "tri"]
        )
        with caplog.at_level(logging.ERROR):
            scene = load_scene(path)

        assert [obj.name for obj in scene.objects] == ["tri_copy1"]
        assert "unknown object 'bunny'" in caplog.text

    def test_lines_before_a_name_are_skipped(self, tmp_path, caplog):
        from softraster.scene.loader import load_scene

        path = self._write(
            tmp_path, ["objects:", "tri tri.obj", "", "t 1 1 1", "ambient 1 1 1", "tri"]
        )
        with caplog.at_level(logging.WARNING):
            scene = load_scene(path)

        assert len(scene.objects) == 1
        assert "'t' before an object name" in caplog.text
        assert "'ambient' before an object name" in caplog.text

    def test_unknown_camera_key_warns(self, tmp_path, caplog):
        from softraster.scene.loader import parse_scene

        with caplog.at_level(logging.WARNING):
            parse_scene(CAMERA[:1] + ["zoom 2"] + CAMERA[1:] + ["objects:"], tmp_path)
        assert "unknown camera key 'zoom'" in caplog.text

    def test_camera_key_after_lights_warns(self, tmp_path, caplog):
        from softraster.scene.loader import parse_scene

        lines = CAMERA + ["light 0 0 0 , 1 1 1 , 0", "near 2", "objects:"]
        with caplog.at_level(logging.WARNING):
            scene = parse_scene(lines, tmp_path)
        assert "unexpected key 'near'" in caplog.text
        assert len(scene.lights) == 1

    def test_missing_objects_section_warns(self, tmp_path, caplog):
        from softraster.scene.loader import parse_scene

        with caplog.at_level(logging.WARNING):
            scene = parse_scene(CAMERA, tmp_path)
        assert scene.objects == ()
        assert "Missing 'objects:'" in caplog.text

    def test_missing_camera_raises(self, tmp_path):
        from softraster.scene.loader import parse_scene

        with pytest.raises(ValueError, match="Missing 'camera:'"):
            parse_scene(["objects:"], tmp_path)

    def test_degenerate_frustum_raises(self, tmp_path):
        from softraster.scene.loader import parse_scene

        lines = [line if line != "far 10" else "far 1" for line in CAMERA]
        with pytest.raises(ValueError, match="Invalid frustum"):
            parse_scene(lines + ["objects:"], tmp_path)

    def test_malformed_light_raises(self, tmp_path):
        from softraster.scene.loader import parse_scene

        with pytest.raises(ValueError, match="Line 11"):
            parse_scene(CAMERA + ["light 0 0 0 1 1 1 0", "objects:"], tmp_path)

    def test_missing_mesh_file_raises(self, tmp_path, caplog):
        from softraster.scene.loader import load_scene

        path = self._write(tmp_path, ["objects:", "tri tri.obj", "cow cow.obj", "", "tri"])
        with caplog.at_level(logging.ERROR), pytest.raises(ValueError, match="Loaded 1 meshes"):
            load_scene(path)
        assert "cow.obj" in caplog.text

    def test_malformed_mesh_raises_with_path(self, tmp_path):
        from softraster.scene.loader import load_scene

        path = self._write(tmp_path, ["objects:", "tri tri.obj"], obj="v 0 0 0\nvt 1 1\n")
        with pytest.raises(ValueError, match="tri.obj"):
            load_scene(path)

    def test_example_scene_file(self, square_mesh_files):
        from softraster.scene.loader import load_scene

        scene = load_scene(square_mesh_files)
        assert scene.objects[0].name == "square_copy1"
        assert scene.objects[0].mesh.face_count == 2
        assert scene.lights[0].attenuation == 0.0
