"""
Interface of the physics/rendering engine the evaluation platform drives.

The engine owns every body; the platform refers to models by name only.
"""

from abc import ABC, abstractmethod


class Simulator(ABC):
    """
    Minimal world API needed to stack, freeze and inspect objects.

    Poses are 4x4 homogeneous arrays in world coordinates (metres).
    """

    @abstractmethod
    def spawn_model(self, name, sdf_file_path, pose, visual_only=False):
        """Insert a model built from a template at a world pose."""

    @abstractmethod
    def has_model(self, name):
        """Whether a model with this name exists."""

    @abstractmethod
    def get_world_pose(self, name):
        """World pose (4x4) of a model."""

    @abstractmethod
    def set_world_pose(self, name, pose):
        """Teleport a model to a world pose."""

    @abstractmethod
    def get_linear_speed(self, name):
        """Norm of the model's world linear velocity (m/s)."""

    @abstractmethod
    def get_angular_speed(self, name):
        """Norm of the model's world angular velocity (rad/s)."""

    @abstractmethod
    def freeze(self, name):
        """
        Stop a model: disabled, static, no gravity, zero velocities and
        accelerations, every link kinematic.
        """

    @abstractmethod
    def unfreeze(self, name):
        """Give a frozen model back to the physics: enabled, dynamic, gravity on."""

    @abstractmethod
    def model_poses(self):
        """Mapping name -> world pose (4x4) of every model in the world."""

    @abstractmethod
    def sensor_pose(self):
        """World pose (4x4) of the depth sensor model (not its optical frame)."""
