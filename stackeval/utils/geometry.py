"""
Geometry utilities for rigid poses, rotations, quaternions and axis-angle.
Low-level helper functions shared by every evaluation component.

Conventions:
    - Poses are 4x4 homogeneous numpy arrays (world_from_object).
    - Euler angles follow R = Rz(yaw) * Ry(pitch) * Rx(roll).
    - Quaternions are ordered (w, x, y, z).
    - Axis-angle angles are returned in radians within [0, pi].
"""

import math

import numpy as np
import cv2


def normalize(v):
    """
    Normalize a 3-vector.

    Args:
        v: Vector (3,)

    Returns:
        np.ndarray: Unit vector (3,)

    Raises:
        ValueError: If the vector has zero length
    """
    v = np.asarray(v, dtype=np.float64).reshape(3)
    n = np.linalg.norm(v)
    if n == 0:
        raise ValueError("Cannot normalize a zero-length vector")
    return v / n


def make_pose(position=(0.0, 0.0, 0.0), rotation=None):
    """
    Build a homogeneous transform from a position and a rotation matrix.

    Args:
        position: Translation (3,)
        rotation: Rotation matrix (3x3), identity if None

    Returns:
        np.ndarray: Pose (4x4)
    """
    T = np.eye(4, dtype=np.float64)
    if rotation is not None:
        T[:3, :3] = np.asarray(rotation, dtype=np.float64).reshape(3, 3)
    T[:3, 3] = np.asarray(position, dtype=np.float64).reshape(3)
    return T


def invert_pose(T):
    """
    Invert a rigid transform without a general matrix inverse.

    Args:
        T: Pose (4x4)

    Returns:
        np.ndarray: Inverse pose (4x4)
    """
    T = np.asarray(T, dtype=np.float64)
    R = T[:3, :3]
    t = T[:3, 3]
    return make_pose(-R.T @ t, R.T)


def euler_to_rotation(roll_deg, pitch_deg, yaw_deg):
    """
    Convert Euler angles to a rotation matrix.

    Rotation order: R = Rz(yaw) * Ry(pitch) * Rx(roll)

    Args:
        roll_deg: Rotation about X in degrees
        pitch_deg: Rotation about Y in degrees
        yaw_deg: Rotation about Z in degrees

    Returns:
        np.ndarray: Rotation matrix (3x3)
    """
    roll = math.radians(roll_deg)
    pitch = math.radians(pitch_deg)
    yaw = math.radians(yaw_deg)

    cy, sy = math.cos(yaw), math.sin(yaw)
    cp, sp = math.cos(pitch), math.sin(pitch)
    cr, sr = math.cos(roll), math.sin(roll)

    R = np.array([
        [cy*cp, cy*sp*sr - sy*cr, cy*sp*cr + sy*sr],
        [sy*cp, sy*sp*sr + cy*cr, sy*sp*cr - cy*sr],
        [-sp,   cp*sr,             cp*cr           ]
    ])

    return R


def rotation_to_euler(R):
    """
    Convert a rotation matrix to Euler angles.

    Rotation order: R = Rz(yaw) * Ry(pitch) * Rx(roll)

    Args:
        R: Rotation matrix (3x3 numpy array)

    Returns:
        np.ndarray: (roll_deg, pitch_deg, yaw_deg) in degrees
    """
    sy = math.sqrt(R[0, 0]**2 + R[1, 0]**2)
    singular = sy < 1e-6

    if not singular:
        roll  = math.atan2(R[2, 1], R[2, 2])
        pitch = math.atan2(-R[2, 0], sy)
        yaw   = math.atan2(R[1, 0], R[0, 0])
    else:
        # Gimbal lock (pitch = ±90°)
        roll  = math.atan2(-R[1, 2], R[1, 1])
        pitch = math.atan2(-R[2, 0], sy)
        yaw   = 0.0

    return np.degrees([roll, pitch, yaw])


def pose_from_xyzrpy(x, y, z, roll_deg=0.0, pitch_deg=0.0, yaw_deg=0.0):
    """
    Build a pose from a position and Euler angles in degrees.

    Returns:
        np.ndarray: Pose (4x4)
    """
    return make_pose((x, y, z), euler_to_rotation(roll_deg, pitch_deg, yaw_deg))


def pose_to_xyzrpy(T):
    """
    Split a pose into position and Euler angles.

    Args:
        T: Pose (4x4)

    Returns:
        np.ndarray: (x, y, z, roll_deg, pitch_deg, yaw_deg)
    """
    T = np.asarray(T, dtype=np.float64)
    return np.concatenate([T[:3, 3], rotation_to_euler(T[:3, :3])])


def rotation_to_axis_angle(R):
    """
    Convert a rotation matrix to axis-angle.

    Uses the Rodrigues formula from OpenCV, which stays stable close to 180°.
    For an identity rotation the axis is undefined and (1, 0, 0) is returned.

    Args:
        R: Rotation matrix (3x3)

    Returns:
        tuple: (axis (3,) unit vector, angle in radians within [0, pi])
    """
    rvec, _ = cv2.Rodrigues(np.asarray(R, dtype=np.float64).reshape(3, 3))
    rvec = rvec.reshape(3)
    angle = float(np.linalg.norm(rvec))
    if angle < 1e-12:
        return np.array([1.0, 0.0, 0.0]), 0.0
    return rvec / angle, angle


def axis_angle_to_rotation(axis, angle_rad):
    """
    Convert axis-angle to a rotation matrix.

    Args:
        axis: Rotation axis (3,), normalized internally
        angle_rad: Rotation angle in radians

    Returns:
        np.ndarray: Rotation matrix (3x3)
    """
    rvec = normalize(axis) * float(angle_rad)
    R, _ = cv2.Rodrigues(rvec.reshape(3, 1))
    return R


def quaternion_from_axis_angle(axis, angle_rad):
    """
    Build a unit quaternion (w, x, y, z) from axis-angle.
    """
    axis = normalize(axis)
    half = 0.5 * float(angle_rad)
    return np.concatenate([[math.cos(half)], axis * math.sin(half)])


def quaternion_to_rotation(q):
    """
    Convert a quaternion (w, x, y, z) to a rotation matrix.

    Args:
        q: Quaternion (4,), normalized internally

    Returns:
        np.ndarray: Rotation matrix (3x3)
    """
    q = np.asarray(q, dtype=np.float64).reshape(4)
    n = np.linalg.norm(q)
    if n == 0:
        raise ValueError("Zero-norm quaternion")
    w, x, y, z = q / n

    R = np.array([
        [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
        [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
        [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)]
    ], dtype=np.float64)
    return R


def axis_deviation_deg(axis_a, axis_b):
    """
    Angle between two axes in degrees, within [0, 180].

    Callers that treat an axis and its negation as equivalent compare both
    the result d and 180 - d against their tolerance.
    """
    cos_angle = np.dot(normalize(axis_a), normalize(axis_b))
    cos_angle = np.clip(cos_angle, -1.0, 1.0)
    return float(np.degrees(np.arccos(cos_angle)))
