"""Pytest configuration for rasterizer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture
def unit_square_scene():
    """The built-in unit-square scene (square at z = 0, camera at z = 5)."""
    from softraster.scene.presets import create_unit_square_scene

    return create_unit_square_scene()


@pytest.fixture
def square_mesh_files(tmp_path):
    """Write a square OBJ and a scene file placing one copy of it.

    Returns:
        Path of the scene file.
    """
    (tmp_path / "square.obj").write_text(
        "# unit square\n"
        "v -0.5 -0.5 0\n"
        "v 0.5 -0.5 0\n"
        "v 0.5 0.5 0\n"
        "v -0.5 0.5 0\n"
        "vn 0 0 1\n"
        "f 1//1 2//1 3//1\n"
        "f 1//1 3//1 4//1\n"
    )
    scene_file = tmp_path / "scene.txt"
    scene_file.write_text(
        "camera:\n"
        "position 0 0 5\n"
        "orientation 0 1 0 0\n"
        "near 1\n"
        "far 10\n"
        "left -0.5\n"
        "right 0.5\n"
        "top 0.5\n"
        "bottom -0.5\n"
        "\n"
        "light 0 0 5 , 1 1 1 , 0\n"
        "\n"
        "objects:\n"
        "square square.obj\n"
        "\n"
        "square\n"
        "ambient 0.2 0.2 0.2\n"
        "diffuse 0.8 0.8 0.8\n"
        "specular 0.2 0.2 0.2\n"
        "shininess 10\n"
        "s 1 1 1\n"
    )
    return scene_file
