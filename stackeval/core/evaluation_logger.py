"""
Append-only, human readable evaluation logs.

One directory per run, one file per category:
    success_log, error_log, inestimable_log, time_to_steady,
    success_between_fail_count
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict

import numpy as np

from .errors import EvaluationLogError
from ..utils.geometry import pose_to_xyzrpy

SUCCESS_LOG = "success_log"
ERROR_LOG = "error_log"
INESTIMABLE_LOG = "inestimable_log"
TIME_TO_STEADY_LOG = "time_to_steady"
SUCCESS_BETWEEN_FAIL_LOG = "success_between_fail_count"

# Estimate written for an inestimable trial: the parking pose of the first marker
INESTIMABLE_ESTIMATE = np.array([
    [1, 0, 0, -1],
    [0, 1, 0, 1],
    [0, 0, 1, 2],
    [0, 0, 0, 1],
], dtype=np.float64)


def format_vector(v):
    return " ".join(f"{float(x):.6g}" for x in np.asarray(v).reshape(-1))


def format_pose(T):
    """Pose as 'x y z roll pitch yaw' with angles in radians."""
    xyzrpy = pose_to_xyzrpy(T)
    xyzrpy[3:] = np.radians(xyzrpy[3:])
    return format_vector(xyzrpy)


def format_matrix(M):
    return "".join(format_vector(row) + "\n" for row in np.asarray(M))


@dataclass
class EstimationRecord:
    """
    Everything logged about one scored estimate.

    Attributes:
        recognized: Recognized class name
        closest_object: Name of the matched ground truth object
        euler_deg: Error rotation as Euler angles (degrees)
        axis: Error rotation axis
        angle_deg: Error rotation angle (degrees)
        translation: Error translation vector (metres)
        translation_length: Error translation length (metres)
        estimate: Estimated world pose (4x4)
        sensor_pose: Sensor optical frame pose (4x4)
        object_poses: Ordered mapping name -> world pose of the logged objects
    """

    recognized: str
    closest_object: str
    euler_deg: np.ndarray
    axis: np.ndarray
    angle_deg: float
    translation: np.ndarray
    translation_length: float
    estimate: np.ndarray
    sensor_pose: np.ndarray
    object_poses: Dict[str, np.ndarray] = field(default_factory=dict)

    def format(self, index):
        lines = [
            f"[{index}]",
            f"@Object_Recognized:{self.recognized}",
            f"@Closest_Object:{self.closest_object}",
            f"@Error Euler (degree):{format_vector(self.euler_deg)}",
            f"@Error Quaternion Axis:{format_vector(self.axis)}",
            f"@Error Quaternion Angle (degree):{self.angle_deg:.6g}",
            f"@Error Translation:{format_vector(self.translation)}",
            f"@Error Translation Length:{self.translation_length:.6g}",
            "@Estimate_result:",
        ]
        text = "\n".join(lines) + "\n" + format_matrix(self.estimate)
        text += "@Sensor_Pose(not sensor model):\n" + format_pose(self.sensor_pose) + "\n"
        text += "@Object_Pose:\n"
        for name, pose in self.object_poses.items():
            text += f"{name}:{format_pose(pose)}\n"
        return text + "\n"


class EvaluationLogger:
    """
    Writes evaluation records into a per-run log directory.

    The directory is named <timestamp>_<seed>_<model names>_<total objects>.
    Any failure to write a file raises EvaluationLogError: a run without its
    logs is not a valid experiment.
    """

    def __init__(self, log_root, seed, target_names, total_objects,
                 error_logging=True, success_logging=False, timestamp=None):
        """
        Initialize evaluation logger and create the run directory.

        Args:
            log_root: Parent directory of all runs
            seed: Random seed of the run
            target_names: Names of the stacked target classes
            total_objects: Number of objects per pile
            error_logging: Whether failed estimates are logged
            success_logging: Whether successful estimates are logged
            timestamp: datetime used in the directory name (default: now)
        """
        self.error_logging = error_logging
        self.success_logging = success_logging

        timestamp = timestamp or datetime.now()
        dir_name = f"{timestamp.strftime('%Y%m%dT%H%M%S')}_{seed}"
        for name in target_names:
            dir_name += f"_{name}"
        dir_name += f"_{total_objects}"

        self.log_dir = Path(str(log_root).strip()) / dir_name
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise EvaluationLogError(self.log_dir, exc.strerror) from exc

        self.success_count = 0
        self.error_count = 0
        self.inestimable_count = 0

        print(f"[INFO] log file has been written to : {self.log_dir}")

    def _append(self, filename, text):
        path = self.log_dir / filename
        try:
            with open(path, "a") as f:
                f.write(text)
        except OSError as exc:
            raise EvaluationLogError(path, exc.strerror) from exc

    def log_estimation(self, record, correct):
        """
        Append a scored estimate to success_log or error_log.

        Returns:
            bool: Whether the record was written (depends on logging flags)
        """
        if correct and not self.success_logging:
            return False
        if not correct and not self.error_logging:
            return False

        if correct:
            self._append(SUCCESS_LOG, record.format(self.success_count))
            self.success_count += 1
        else:
            self._append(ERROR_LOG, record.format(self.error_count))
            self.error_count += 1
        return True

    def log_inestimable(self, record):
        self._append(INESTIMABLE_LOG, record.format(self.inestimable_count))
        self.inestimable_count += 1

    def log_time_to_steady(self, seconds):
        self._append(TIME_TO_STEADY_LOG, f"{seconds:.6g}\n")

    def log_success_between_fail(self, count):
        self._append(SUCCESS_BETWEEN_FAIL_LOG, f"{int(count)}\n")
