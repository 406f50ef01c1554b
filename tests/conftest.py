"""
Shared fixtures: an in-memory simulator, a controllable clock and config factories.
"""

import copy

import numpy as np
import pytest

from stackeval.core.config import DEFAULT_PARAMETERS, _recursive_merge, build_config
from stackeval.core.interfaces import Simulator
from stackeval.core.platform import EvaluationPlatform, TrialPhase
from stackeval.core.transport import InProcessTransport
from stackeval.utils.geometry import pose_from_xyzrpy


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


class FakeSimulator(Simulator):
    """Bodies that stay where they are put; speeds are set by the test."""

    def __init__(self, sensor_pose=None):
        self.poses = {}
        self.sdf = {}
        self.visual_only = set()
        self.frozen = set()
        self.linear_speeds = {}
        self.angular_speeds = {}
        self._sensor_pose = sensor_pose if sensor_pose is not None else pose_from_xyzrpy(0, 0, 1.0, 0, 90, 0)

    def spawn_model(self, name, sdf_file_path, pose, visual_only=False):
        self.poses[name] = np.array(pose, dtype=np.float64)
        self.sdf[name] = sdf_file_path
        if visual_only:
            self.visual_only.add(name)

    def has_model(self, name):
        return name in self.poses

    def get_world_pose(self, name):
        return self.poses[name].copy()

    def set_world_pose(self, name, pose):
        self.poses[name] = np.array(pose, dtype=np.float64)

    def get_linear_speed(self, name):
        return self.linear_speeds.get(name, 0.0)

    def get_angular_speed(self, name):
        return self.angular_speeds.get(name, 0.0)

    def freeze(self, name):
        self.frozen.add(name)

    def unfreeze(self, name):
        self.frozen.discard(name)

    def model_poses(self):
        poses = {name: pose.copy() for name, pose in self.poses.items()}
        poses["depth_sensor"] = self._sensor_pose.copy()
        return poses

    def sensor_pose(self):
        return self._sensor_pose.copy()


def make_params(overrides=None, target_models=None):
    params = copy.deepcopy(DEFAULT_PARAMETERS)
    if target_models is None:
        target_models = [{
            'name': 'cube',
            'sdf_file_path': 'models/cube/model.sdf',
            'proportion': 1,
            'translation_threshold': 0.0025,
            'quaternion_degree_threshold': 10,
        }]
    params['evaluation_platform']['stacking']['target_models'] = target_models
    if overrides:
        _recursive_merge(params, {'evaluation_platform': overrides})
    return params


def make_config(overrides=None, target_models=None):
    return build_config(make_params(overrides, target_models))


def settle(platform, sim_time=0.0, step=0.15, max_ticks=100):
    """Tick a quiet scene until the platform leaves AWAITING_STEADY."""
    for _ in range(max_ticks):
        if platform.phase != TrialPhase.AWAITING_STEADY:
            break
        sim_time += step
        platform.on_update(sim_time)
    return sim_time


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def simulator():
    return FakeSimulator()


@pytest.fixture
def transport():
    return InProcessTransport()


@pytest.fixture
def make_platform(simulator, transport, fake_clock):
    """Factory for a loaded platform with a listener on every outgoing topic."""

    def _make(config=None, logger=None, seed=3):
        config = config if config is not None else make_config()
        platform = EvaluationPlatform(config, simulator, transport, logger=logger,
                                      rng=np.random.default_rng(seed), seed=seed,
                                      clock=fake_clock, verbose=False)
        platform.load()
        for topic in (platform.take_picture_pub.topic, platform.resimulate_pub.topic,
                      platform.evaluation_result_pub.topic, platform.only_snapshot_pub.topic):
            transport.subscribe(topic, lambda msg: None)
        return platform

    return _make
