import pytest

from stackeval.core.matcher import find_nearest_object
from stackeval.core.scene import SceneObject
from stackeval.utils.geometry import pose_from_xyzrpy

POSES = {
    "cube_0": pose_from_xyzrpy(0.0, 0.0, 0.0),
    "cube_1": pose_from_xyzrpy(0.25, 0.0, 0.0),
    "cube_2": pose_from_xyzrpy(0.5, 0.0, 0.0),
}


def objects():
    return [SceneObject(name, 0) for name in POSES]


def test_nearest():
    obj, dist = find_nearest_object([0.26, 0, 0], objects(), POSES.__getitem__)
    assert obj.name == "cube_1"
    assert dist == pytest.approx(0.01)


def test_estimated_objects_are_skipped():
    objs = objects()
    objs[1].estimated = True
    obj, _ = find_nearest_object([0.26, 0, 0], objs, POSES.__getitem__)
    assert obj.name == "cube_2"


def test_tie_keeps_first():
    obj, _ = find_nearest_object([0.125, 0, 0], objects(), POSES.__getitem__)
    assert obj.name == "cube_0"


def test_no_candidate():
    objs = objects()
    for obj in objs:
        obj.estimated = True
    assert find_nearest_object([0, 0, 0], objs, POSES.__getitem__) is None
