"""
Deterministic stand-ins for the physics engine and the pose estimator.

KinematicWorld drops bodies straight down onto the box floor with damping
(no collisions between bodies) and SyntheticPoseEstimator answers snapshot
requests with noisy ground truth. They exist to exercise the evaluation
platform end to end without a physics engine.
"""

from dataclasses import dataclass, field

import numpy as np

from .core.interfaces import Simulator
from .core.platform import SENSOR_OPTICAL_CORRECTION
from .core.transport import (
    PoseEstimationResult, Request,
    TAKE_PICTURE_TOPIC, RESIMULATE_TOPIC, ESTIMATE_RESULT_TOPIC, ESTIMATION_ENDED_TOPIC,
)
from .utils.geometry import (
    axis_angle_to_rotation, invert_pose, make_pose, normalize, pose_from_xyzrpy
)

GRAVITY = 9.81
SENSOR_MODEL_NAME = "depth_sensor"


@dataclass
class _Body:
    pose: np.ndarray
    sdf_file_path: str = ""
    linear_velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    angular_velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    frozen: bool = False
    visual_only: bool = False


class KinematicWorld(Simulator):
    """
    Minimal world: bodies fall under gravity until they reach the floor,
    then slide to a stop.
    """

    def __init__(self, floor_height=0.02, sensor_pose=None, contact_damping=8.0,
                 angular_damping=6.0, rng=None):
        """
        Initialize kinematic world.

        Args:
            floor_height: Height where falling bodies come to rest (metres)
            sensor_pose: World pose of the depth sensor model (default: 1 m
                above the origin, looking down)
            contact_damping: Exponential decay rate of velocity on the floor (1/s)
            angular_damping: Exponential decay rate of angular velocity (1/s)
            rng: numpy Generator for throw spin
        """
        self.floor_height = floor_height
        self._sensor_pose = sensor_pose if sensor_pose is not None else pose_from_xyzrpy(0, 0, 1.0, 0, 90, 0)
        self.contact_damping = contact_damping
        self.angular_damping = angular_damping
        self.rng = rng if rng is not None else np.random.default_rng(0)

        self.bodies = {}
        self.sim_time = 0.0

    # ========================================
    # Simulator interface
    # ========================================

    def spawn_model(self, name, sdf_file_path, pose, visual_only=False):
        self.bodies[name] = _Body(pose=np.array(pose, dtype=np.float64), sdf_file_path=sdf_file_path,
                                  visual_only=visual_only, frozen=visual_only)
        if not visual_only:
            self._spin(self.bodies[name])

    def has_model(self, name):
        return name in self.bodies

    def get_world_pose(self, name):
        return self.bodies[name].pose.copy()

    def set_world_pose(self, name, pose):
        body = self.bodies[name]
        body.pose = np.array(pose, dtype=np.float64)
        body.linear_velocity = np.zeros(3)
        if not body.frozen:
            self._spin(body)

    def get_linear_speed(self, name):
        return float(np.linalg.norm(self.bodies[name].linear_velocity))

    def get_angular_speed(self, name):
        return float(np.linalg.norm(self.bodies[name].angular_velocity))

    def freeze(self, name):
        body = self.bodies[name]
        body.frozen = True
        body.linear_velocity = np.zeros(3)
        body.angular_velocity = np.zeros(3)

    def unfreeze(self, name):
        self.bodies[name].frozen = False

    def model_poses(self):
        poses = {name: body.pose.copy() for name, body in self.bodies.items()}
        poses[SENSOR_MODEL_NAME] = self._sensor_pose.copy()
        return poses

    def sensor_pose(self):
        return self._sensor_pose.copy()

    # ========================================
    # Integration
    # ========================================

    def is_frozen(self, name):
        return self.bodies[name].frozen

    def step(self, dt):
        """Advance the world by dt seconds."""
        self.sim_time += dt
        for body in self.bodies.values():
            if body.frozen:
                continue

            position = body.pose[:3, 3]
            if position[2] > self.floor_height:
                body.linear_velocity[2] -= GRAVITY * dt
            else:
                body.linear_velocity *= np.exp(-self.contact_damping * dt)

            position = position + body.linear_velocity * dt
            if position[2] <= self.floor_height:
                position[2] = self.floor_height
                body.linear_velocity[2] = 0.0
            body.pose[:3, 3] = position

            body.angular_velocity *= np.exp(-self.angular_damping * dt)

    def _spin(self, body):
        body.angular_velocity = self.rng.normal(0.0, 1.0, 3)


class SyntheticPoseEstimator:
    """
    Answers every snapshot request with noisy estimates of objects in view.

    Estimates are sent in the sensor optical frame with millimetre
    translation, followed by the end-of-round signal.
    """

    def __init__(self, world, transport, class_names, workspace, rng=None,
                 rotation_noise_deg=3.0, translation_noise=0.0005, mislabel_rate=0.0,
                 estimates_per_round=1):
        """
        Initialize synthetic estimator.

        Args:
            world: KinematicWorld providing ground truth
            transport: InProcessTransport
            class_names: Names of the target classes, used for labels
            workspace: (lower, upper) corners of the region the sensor sees
            rng: numpy Generator
            rotation_noise_deg: Std of the rotation error angle (degrees)
            translation_noise: Std of the translation error per axis (metres)
            mislabel_rate: Probability of reporting another class label
            estimates_per_round: Maximum estimates sent per snapshot
        """
        self.world = world
        self.transport = transport
        self.class_names = list(class_names)
        self.lower = np.asarray(workspace[0], dtype=np.float64)
        self.upper = np.asarray(workspace[1], dtype=np.float64)
        self.rng = rng if rng is not None else np.random.default_rng(0)
        self.rotation_noise_deg = rotation_noise_deg
        self.translation_noise = translation_noise
        self.mislabel_rate = mislabel_rate
        self.estimates_per_round = estimates_per_round

        self.snapshots = 0
        self.resimulate_requests = 0

        self.result_pub = transport.advertise(ESTIMATE_RESULT_TOPIC)
        self.ended_pub = transport.advertise(ESTIMATION_ENDED_TOPIC)
        self.subscribers = [
            transport.subscribe(TAKE_PICTURE_TOPIC, self.on_take_picture),
            transport.subscribe(RESIMULATE_TOPIC, self.on_resimulate),
        ]

    def visible_objects(self):
        names = []
        for name, body in self.world.bodies.items():
            if body.visual_only or not body.frozen:
                continue
            position = body.pose[:3, 3]
            if np.all(position >= self.lower) and np.all(position <= self.upper):
                names.append(name)
        return names

    def on_take_picture(self, msg):
        self.snapshots += 1
        camera_from_world = invert_pose(self.world.sensor_pose() @ SENSOR_OPTICAL_CORRECTION)

        candidates = self.visible_objects()
        self.rng.shuffle(candidates)
        for name in candidates[:self.estimates_per_round]:
            estimate = self._noisy_pose(self.world.get_world_pose(name))
            in_camera = camera_from_world @ estimate
            in_camera[:3, 3] *= 1000.0
            self.result_pub.publish(PoseEstimationResult(
                object_name=self._label(name),
                pose_matrix4=in_camera.reshape(-1).tolist(),
                timestamp=self.world.sim_time,
            ))

        self.ended_pub.publish(Request(id=0, request="estimation_ended"))

    def on_resimulate(self, msg):
        self.resimulate_requests += 1

    def _noisy_pose(self, pose):
        axis = normalize(self.rng.normal(size=3))
        angle = np.radians(abs(self.rng.normal(0.0, self.rotation_noise_deg)))
        rotation = pose[:3, :3] @ axis_angle_to_rotation(axis, angle)
        position = pose[:3, 3] + self.rng.normal(0.0, self.translation_noise, 3)
        return make_pose(position, rotation)

    def _label(self, name):
        label = name.rsplit("_", 1)[0]
        others = [c for c in self.class_names if c != label]
        if others and self.rng.random() < self.mislabel_rate:
            label = others[int(self.rng.integers(0, len(others)))]
        return label
