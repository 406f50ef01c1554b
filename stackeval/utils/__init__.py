"""
Geometry helpers for poses, Euler angles, axis-angle and quaternions.
"""
from .geometry import (
    make_pose,
    invert_pose,
    pose_from_xyzrpy,
    pose_to_xyzrpy,
    euler_to_rotation,
    rotation_to_euler,
    rotation_to_axis_angle,
    axis_angle_to_rotation,
    quaternion_from_axis_angle,
    quaternion_to_rotation,
    axis_deviation_deg,
)

__all__ = [
    'make_pose',
    'invert_pose',
    'pose_from_xyzrpy',
    'pose_to_xyzrpy',
    'euler_to_rotation',
    'rotation_to_euler',
    'rotation_to_axis_angle',
    'axis_angle_to_rotation',
    'quaternion_from_axis_angle',
    'quaternion_to_rotation',
    'axis_deviation_deg',
]
