from datetime import datetime

import numpy as np
import pytest

from stackeval.core.errors import EvaluationLogError
from stackeval.core.evaluation_logger import (
    ERROR_LOG, SUCCESS_LOG, TIME_TO_STEADY_LOG, EstimationRecord, EvaluationLogger, format_pose,
)
from stackeval.utils.geometry import pose_from_xyzrpy


def make_record():
    return EstimationRecord(
        recognized="cube",
        closest_object="cube_3",
        euler_deg=np.array([0.0, 0.0, 8.0]),
        axis=np.array([0.0, 0.0, 1.0]),
        angle_deg=8.0,
        translation=np.array([0.001, 0.0, 0.0]),
        translation_length=0.001,
        estimate=np.eye(4),
        sensor_pose=np.eye(4),
        object_poses={"cube_3": np.eye(4)},
    )


def make_logger(root, **kwargs):
    return EvaluationLogger(root, seed=7, target_names=["cube", "ring"], total_objects=9,
                            timestamp=datetime(2024, 5, 1, 12, 30, 0), **kwargs)


def test_run_directory_name(tmp_path):
    logger = make_logger(tmp_path)
    assert logger.log_dir == tmp_path / "20240501T123000_7_cube_ring_9"
    assert logger.log_dir.is_dir()


def test_logging_flags(tmp_path):
    logger = make_logger(tmp_path, error_logging=True, success_logging=False)

    assert logger.log_estimation(make_record(), correct=True) is False
    assert logger.log_estimation(make_record(), correct=False) is True

    assert not (logger.log_dir / SUCCESS_LOG).exists()
    text = (logger.log_dir / ERROR_LOG).read_text()
    assert text.startswith("[0]\n@Object_Recognized:cube\n@Closest_Object:cube_3\n")
    assert "@Error Quaternion Angle (degree):8\n" in text
    assert "@Object_Pose:\ncube_3:" in text


def test_records_are_numbered(tmp_path):
    logger = make_logger(tmp_path, success_logging=True)
    logger.log_estimation(make_record(), correct=True)
    logger.log_estimation(make_record(), correct=True)
    text = (logger.log_dir / SUCCESS_LOG).read_text()
    assert "[0]\n" in text and "[1]\n" in text


def test_time_to_steady(tmp_path):
    logger = make_logger(tmp_path)
    logger.log_time_to_steady(1.5)
    logger.log_time_to_steady(2.25)
    assert (logger.log_dir / TIME_TO_STEADY_LOG).read_text() == "1.5\n2.25\n"


def test_format_pose_uses_radians():
    values = [float(v) for v in format_pose(pose_from_xyzrpy(1, 2, 3, 0, 0, 90)).split()]
    assert values[:3] == [1.0, 2.0, 3.0]
    assert values[5] == pytest.approx(np.pi / 2, abs=1e-5)


def test_unwritable_root(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("")
    with pytest.raises(EvaluationLogError):
        make_logger(blocker)
