"""
Stacking scene layout: where objects are thrown from and which class each one is.
"""

from dataclasses import dataclass

import numpy as np

from ..utils.geometry import (
    make_pose, pose_from_xyzrpy, quaternion_from_axis_angle, quaternion_to_rotation
)

RESULT_VISUALIZE_PREFIX = "result_visualize_"

# Throw orientations: k * 45 degrees about the x or y axis
THROW_ANGLE_STEP_DEG = 45
THROW_ANGLE_STEPS = 8
THROW_AXES = (np.array([1.0, 0.0, 0.0]), np.array([0.0, 1.0, 0.0]))


@dataclass
class SceneObject:
    """
    A stacked object, referenced by name; the simulator owns its body.
    """

    name: str
    class_index: int
    estimated: bool = False


class StackingLayout:
    """
    Computes the throwing grid and random orientations for a pile.

    Objects are placed on a width x height grid per layer, centred above
    the box, and each receives a random 45 degree step rotation about x or y.
    """

    def __init__(self, stacking_config, rng):
        """
        Initialize stacking layout.

        Args:
            stacking_config: StackingConfig with grid and box parameters
            rng: numpy Generator used for orientations and class choice
        """
        self.config = stacking_config
        self.rng = rng

        box_size = stacking_config.box_size
        box_center = np.asarray(stacking_config.box_center, dtype=np.float64)
        self.stacking_center = np.array([
            box_center[0],
            box_center[1],
            box_size[2] + stacking_config.box_wall_thickness + stacking_config.throwing_height,
        ])

    @property
    def total_objects(self):
        c = self.config
        return c.width * c.height * c.layers

    def grid_positions(self):
        """
        Throwing positions, layer by layer, row-major inside a layer.

        Returns:
            np.ndarray: Positions (width * height * layers, 3)
        """
        width = self.config.width
        height = self.config.height
        distance = self.config.distance_between_objects

        x_shift = 0.5 if width % 2 == 0 else 0.0
        y_shift = 0.5 if height % 2 == 0 else 0.0

        positions = []
        for j in range(self.config.layers):
            for i in range(width * height):
                offset = np.array([
                    ((i % width) - width // 2 + x_shift) * distance,
                    ((i // width) - height // 2 + y_shift) * distance,
                    j * distance,
                ])
                positions.append(self.stacking_center + offset)

        return np.array(positions).reshape(-1, 3)

    def random_orientation(self):
        """
        Random rotation of k * 45 degrees about the x or y axis.

        Returns:
            np.ndarray: Rotation matrix (3x3)
        """
        angle_index = int(self.rng.integers(0, THROW_ANGLE_STEPS))
        axis = THROW_AXES[int(self.rng.integers(0, len(THROW_AXES)))]
        q = quaternion_from_axis_angle(axis, np.radians(THROW_ANGLE_STEP_DEG * angle_index))
        return quaternion_to_rotation(q)

    def throw_poses(self):
        """
        Fresh world poses for every grid cell.

        Returns:
            list: Poses (4x4), one per grid cell
        """
        return [make_pose(p, self.random_orientation()) for p in self.grid_positions()]

    def choose_target_class(self, proportions):
        """
        Pick a class index with probability proportional to its weight.

        Args:
            proportions: Positive integer weights

        Returns:
            int: Chosen index
        """
        total = int(sum(proportions))
        if total <= 0:
            raise ValueError("Target model proportions must sum to a positive value")

        pick = int(self.rng.integers(0, total))
        cumulative = 0
        for idx, proportion in enumerate(proportions):
            cumulative += proportion
            if pick <= cumulative - 1:
                return idx

        raise RuntimeError("Error when choosing random target model")

    def build_scene(self, target_classes):
        """
        Decide the class, name and initial pose of every grid cell.

        Args:
            target_classes: Sequence of TargetClass

        Returns:
            tuple: (list of SceneObject, list of poses (4x4)) in grid order
        """
        proportions = [t.proportion for t in target_classes]
        counts = [0] * len(target_classes)

        scene_objects = []
        for _ in range(self.total_objects):
            idx = self.choose_target_class(proportions)
            scene_objects.append(SceneObject(f"{target_classes[idx].name}_{counts[idx]}", idx))
            counts[idx] += 1

        return scene_objects, self.throw_poses()

    def parking_pose(self, object_index):
        """Off-stack pose for a correctly estimated object."""
        distance = self.config.distance_between_objects
        return pose_from_xyzrpy(distance * 2 * object_index, 1, 2)

    def marker_parking_pose(self, class_index):
        """Off-stack pose for an idle result visualizer marker."""
        distance = self.config.distance_between_objects
        return pose_from_xyzrpy(-distance * 2 * (class_index + 1), 1, 2)


def marker_name(target_name):
    return RESULT_VISUALIZE_PREFIX + target_name
