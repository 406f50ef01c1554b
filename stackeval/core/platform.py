"""
Trial lifecycle of the stacking evaluation platform.
High-level component that throws piles, waits for them to settle, requests
snapshots and scores every pose estimate received for them.
"""

import time
from enum import Enum

import numpy as np

from .evaluation_logger import EstimationRecord, INESTIMABLE_ESTIMATE
from .matcher import find_nearest_object
from .pose_evaluator import PoseEvaluator
from .scene import StackingLayout, marker_name
from .settling import SettlingDetector
from .stagnation import StagnationTracker
from .transport import (
    Request,
    TAKE_PICTURE_TOPIC, RESIMULATE_TOPIC, EVALUATION_RESULT_TOPIC, ONLY_SNAPSHOT_TOPIC,
    ESTIMATE_RESULT_TOPIC, ESTIMATION_ENDED_TOPIC, RETHROW_EVENT_TOPIC,
    RESULT_FAIL, RESULT_SUCCESS, RESULT_INESTIMABLE,
)
from ..utils.geometry import euler_to_rotation, invert_pose, make_pose

# Optical frame of the depth sensor relative to its model frame
SENSOR_OPTICAL_CORRECTION = make_pose(
    rotation=euler_to_rotation(0, -90, 0) @ euler_to_rotation(0, 0, -90)
)

MM_TO_M = 0.001


class TrialPhase(Enum):
    AWAITING_STEADY = "awaiting steady"
    STEADY_CAPTURED = "steady captured"
    AWAITING_ESTIMATE = "awaiting estimate"
    # a failed estimate already requested a resimulation; late estimates are dropped
    RESET_PENDING = "reset pending"
    ROUND_EVALUATION = "round evaluation"


class RoundOutcome(Enum):
    CONTINUE = "continue"
    RETHROW = "rethrow"
    INESTIMABLE = "inestimable"


class EstimateStatus(Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    NO_CANDIDATE = "no candidate"
    MALFORMED = "malformed"
    IGNORED = "ignored"


class EvaluationPlatform:
    """
    Drives evaluation trials in a simulated stacking scene.

    Simulation ticks go to on_update(); pose estimates and the end of an
    estimation round arrive as messages. All handlers run on the same thread,
    one at a time.
    """

    def __init__(self, config, simulator, transport, logger=None, rng=None, seed=None,
                 clock=time.monotonic, verbose=True):
        """
        Initialize evaluation platform.

        Args:
            config: PlatformConfig
            simulator: Simulator owning the object bodies
            transport: InProcessTransport used for requests and results
            logger: Optional EvaluationLogger; nothing is written to disk without it
            rng: numpy Generator (default: seeded from the seed)
            seed: Seed reported in the console (default: config.seed, else random)
            clock: Wall-clock source for time to steady
            verbose: Whether to print progress to the console
        """
        self.config = config
        self.simulator = simulator
        self.transport = transport
        self.logger = logger
        self.verbose = verbose

        if seed is None:
            seed = config.seed
        if seed is None:
            seed = int(np.random.SeedSequence().entropy % (2**31))
        self.seed = seed
        self.rng = rng if rng is not None else np.random.default_rng(self.seed)

        self.target_classes = list(config.target_classes)
        self.layout = StackingLayout(config.stacking, self.rng)
        self.evaluator = PoseEvaluator(self.target_classes, verbose=verbose)
        self.settling = SettlingDetector(
            check_steady_interval=config.stacking.check_steady_interval,
            consecutive_steady_threshold=config.stacking.consecutive_steady_threshold,
            linear_vel_threshold=config.stacking.linear_vel_threshold,
            clock=clock,
            verbose=verbose,
        )
        self.stagnation = StagnationTracker(config.total_objects)

        # Trial state
        self.scene_objects = []
        self.phase = TrialPhase.AWAITING_STEADY
        self.trial = 0
        self.inestimable_pending = False
        self.success_run_length = 0
        self.current_snapshot = 0
        self.snapshot_done = False
        self.records = []
        self.inestimable_trials = 0

        # Sensor frame captured at the last steady event
        self.sensor_pose = np.eye(4)
        self.world_to_camera = np.eye(4)

        # Transport endpoints (created in load)
        self.take_picture_pub = None
        self.resimulate_pub = None
        self.evaluation_result_pub = None
        self.only_snapshot_pub = None
        self.subscribers = []

    # ========================================
    # Setup
    # ========================================

    def load(self, construct_scene=True):
        """
        Build the scene and connect to the sensor and the pose estimator.

        Args:
            construct_scene: Spawn objects and markers through the simulator;
                pass False when the scene was attached with attach_scene()
        """
        if construct_scene:
            self.construct_scene()

        self.take_picture_pub = self.transport.advertise(TAKE_PICTURE_TOPIC)
        self.resimulate_pub = self.transport.advertise(RESIMULATE_TOPIC)
        self.evaluation_result_pub = self.transport.advertise(EVALUATION_RESULT_TOPIC)
        self.only_snapshot_pub = self.transport.advertise(ONLY_SNAPSHOT_TOPIC)

        self.subscribers = [
            self.transport.subscribe(ESTIMATE_RESULT_TOPIC, self.receive_result),
            self.transport.subscribe(ESTIMATION_ENDED_TOPIC, self.receive_ended),
            self.transport.subscribe(RETHROW_EVENT_TOPIC, self.rethrow_for_snapshot),
        ]

        self.settling.mark_rethrown()
        self._print(f"[INFO] Seed : {self.seed}")

    def construct_scene(self):
        """Spawn every stacked object and one result marker per target class."""
        scene_objects, poses = self.layout.build_scene(self.target_classes)
        for obj, pose in zip(scene_objects, poses):
            target = self.target_classes[obj.class_index]
            self.simulator.spawn_model(obj.name, target.sdf_file_path, pose)

        for i, target in enumerate(self.target_classes):
            self.simulator.spawn_model(marker_name(target.name), target.sdf_file_path,
                                       self.layout.marker_parking_pose(i), visual_only=True)

        self.scene_objects = scene_objects
        self._print(f"[INFO] creation complete ({len(scene_objects)} objects)")

    def attach_scene(self, scene_objects):
        """Use objects already present in the simulator instead of spawning them."""
        self.scene_objects = list(scene_objects)

    @property
    def unestimated_objects(self):
        return [obj for obj in self.scene_objects if not obj.estimated]

    # ========================================
    # Simulation tick
    # ========================================

    def on_update(self, sim_time):
        """
        Handle one simulation tick.

        Args:
            sim_time: Current simulation time (seconds)

        Returns:
            SteadyEvent when the pile just became steady, None otherwise
        """
        if self.phase != TrialPhase.AWAITING_STEADY or self.snapshot_done:
            return None

        tracked = self.unestimated_objects
        linear_speeds = {obj.name: self.simulator.get_linear_speed(obj.name) for obj in tracked}
        angular_speeds = {obj.name: self.simulator.get_angular_speed(obj.name) for obj in tracked}

        event = self.settling.update(sim_time, linear_speeds, angular_speeds)
        if event is not None:
            self._on_steady(event)
        return event

    def _on_steady(self, event):
        if event.time_to_steady is not None and self.logger is not None:
            self.logger.log_time_to_steady(event.time_to_steady)

        self._print("[INFO] object stopped!")
        for obj in self.unestimated_objects:
            self.simulator.freeze(obj.name)

        self.phase = TrialPhase.STEADY_CAPTURED
        self._capture_sensor_frame()

        self.take_picture_pub.wait_for_connection(self.config.connection_timeout)
        self._print("[INFO] Take one shot request.")
        self.take_picture_pub.publish(Request(id=0, request="take_one_picture"))

        if self.config.snapshot.enabled:
            self._publish_only_snapshot()

        self.phase = TrialPhase.AWAITING_ESTIMATE

    def _capture_sensor_frame(self):
        self.sensor_pose = self.simulator.sensor_pose() @ SENSOR_OPTICAL_CORRECTION
        self.world_to_camera = invert_pose(self.sensor_pose)

    def _publish_only_snapshot(self):
        snapshot = self.config.snapshot
        offset = np.asarray(snapshot.camera_offset)
        scale = np.asarray(snapshot.pixel_scale)

        data = f"{snapshot.total_snapshot} "
        for obj in self.scene_objects:
            position = self.simulator.get_world_pose(obj.name)[:3, 3] - offset
            pixel = np.abs(position[:2] * scale)
            data += f"{pixel[0]:g} {pixel[1]:g} "

        self.only_snapshot_pub.publish(Request(id=1, request="onlysnapshot_mode", data=data))

    # ========================================
    # Pose estimation results
    # ========================================

    def receive_result(self, msg):
        """
        Score one pose estimate.

        Args:
            msg: PoseEstimationResult

        Returns:
            EstimateStatus

        Raises:
            UnknownTargetClassError: If the label matches no target class
            EvaluationLogError: If the result could not be logged
        """
        if self.phase != TrialPhase.AWAITING_ESTIMATE:
            return EstimateStatus.IGNORED

        if len(msg.pose_matrix4) != 16:
            print(f"[ERROR] error data size of Matrix4: {len(msg.pose_matrix4)}")
            return EstimateStatus.MALFORMED

        result = np.asarray(msg.pose_matrix4, dtype=np.float64).reshape(4, 4)
        result[:3, 3] *= MM_TO_M
        result_world = self.sensor_pose @ result

        self._print("-" * 60)
        self._print(f"[INFO] Recognized Object : {msg.object_name}")
        self._print(f"[INFO] Pose Estimation Result ( world coordinate ):\n{np.round(result_world, 5)}")

        # 1. Nearest unestimated ground truth object
        match = find_nearest_object(result_world[:3, 3], self.scene_objects,
                                    self.simulator.get_world_pose)
        if match is None:
            return EstimateStatus.NO_CANDIDATE
        nearest, translate_error = match

        ground_truth = self.simulator.get_world_pose(nearest.name)
        error = self.evaluator.compute_pose_error(result_world, ground_truth)

        self._print(f"[INFO] Nearest Object : {nearest.name}")
        self._print(f"Error Euler (degree) : {np.round(error.euler_deg, 3)}")
        self._print(f"Error Quaternion Axis : {np.round(error.axis, 4)}")
        self._print(f"Error Quaternion Angle (degree) : {error.angle_deg:.3f}")
        self._print(f"Error Translation : {np.round(error.translation, 5)}")
        self._print(f"Error Translation Length : {error.translation_length:.5f}")

        # 2. Recognized class
        recognized_idx, recognized = self.evaluator.resolve_target_class(msg.object_name)
        self._visualize_result(recognized_idx, result_world)

        # 3. Classification
        outcome = self.evaluator.evaluate(recognized, self.target_classes[nearest.class_index],
                                          error.axis, error.angle_deg, translate_error)

        # 4. Logging
        if self.logger is not None:
            record = EstimationRecord(
                recognized=recognized.name,
                closest_object=nearest.name,
                euler_deg=error.euler_deg,
                axis=error.axis,
                angle_deg=error.angle_deg,
                translation=error.translation,
                translation_length=error.translation_length,
                estimate=result_world,
                sensor_pose=self.sensor_pose,
                object_poses=self._logged_object_poses(),
            )
            self.logger.log_estimation(record, outcome.correct)
        self._count_success_run(outcome.correct)

        self.records.append({
            'trial': self.trial,
            'recognized': recognized.name,
            'closest_object': nearest.name,
            'correct': outcome.correct,
            'reason': outcome.reason.value,
            'rotation_error': error.angle_deg,
            'translation_error': error.translation_length,
        })

        # 5. Result handling
        self.evaluation_result_pub.publish(
            Request(id=RESULT_SUCCESS if outcome.correct else RESULT_FAIL))

        if outcome.correct:
            nearest.estimated = True
            self.simulator.set_world_pose(
                nearest.name, self.layout.parking_pose(self.scene_objects.index(nearest)))
            return EstimateStatus.ACCEPT

        if self.config.resimulate_after_fail:
            self.resimulate_pub.wait_for_connection(self.config.connection_timeout)
            self._print("[INFO] Resimulate request...")
            self.resimulate_pub.publish(Request(id=0, request="resimulate"))

            # every object counts as estimated so the round end restarts the trial
            for obj in self.scene_objects:
                obj.estimated = True
            self.phase = TrialPhase.RESET_PENDING

        return EstimateStatus.REJECT

    def _count_success_run(self, correct):
        if self.inestimable_pending:
            self.inestimable_pending = False
            self._log_success_run()

        if correct:
            self.success_run_length += 1
        else:
            self._log_success_run()

    def _log_success_run(self):
        if self.logger is not None:
            self.logger.log_success_between_fail(self.success_run_length)
        self.success_run_length = 0

    def _logged_object_poses(self):
        """Unestimated objects first, then every model that is not a stacked object."""
        poses = {obj.name: self.simulator.get_world_pose(obj.name) for obj in self.unestimated_objects}
        stacked = {obj.name for obj in self.scene_objects}
        for name, pose in self.simulator.model_poses().items():
            if name not in stacked:
                poses[name] = pose
        return poses

    def _visualize_result(self, class_index, pose):
        for i, target in enumerate(self.target_classes):
            name = marker_name(target.name)
            if not self.simulator.has_model(name):
                self._print("[WARN] Model : result_visualize not ready yet")
                continue
            self.simulator.set_world_pose(
                name, pose if i == class_index else self.layout.marker_parking_pose(i))

    def _hide_markers(self):
        for i, target in enumerate(self.target_classes):
            name = marker_name(target.name)
            if self.simulator.has_model(name):
                self.simulator.set_world_pose(name, self.layout.marker_parking_pose(i))

    # ========================================
    # End of an estimation round
    # ========================================

    def receive_ended(self, msg=None):
        """
        Handle the end of an estimation round.

        Args:
            msg: Request from the estimator (content unused)

        Returns:
            RoundOutcome, or None if no round was in progress
        """
        if self.phase not in (TrialPhase.AWAITING_ESTIMATE, TrialPhase.RESET_PENDING):
            self._print(f"[WARN] Estimation ended while {self.phase.value}, ignored")
            return None

        self._print("[INFO] Estimation process finished.")
        self.phase = TrialPhase.ROUND_EVALUATION

        unestimated_count = len(self.unestimated_objects)
        inestimable = self.stagnation.update(unestimated_count)
        if inestimable:
            self._handle_inestimable()

        if unestimated_count == 0 or self.stagnation.stagnated:
            self._reset_trial()
            self.stagnation.acknowledge_reset()
            outcome = RoundOutcome.INESTIMABLE if inestimable else RoundOutcome.RETHROW
        else:
            # only the remaining objects settle again; estimated ones stay parked
            for obj in self.unestimated_objects:
                self.simulator.unfreeze(obj.name)
            self.settling.reset()
            outcome = RoundOutcome.CONTINUE

        self._hide_markers()
        self.phase = TrialPhase.AWAITING_STEADY
        return outcome

    def _handle_inestimable(self):
        self.inestimable_pending = True
        self.inestimable_trials += 1
        self._print("[WARN] Trial is inestimable")

        if self.logger is not None:
            first = self.target_classes[0].name
            record = EstimationRecord(
                recognized=first,
                closest_object=marker_name(first),
                euler_deg=np.zeros(3),
                axis=np.zeros(3),
                angle_deg=0.0,
                translation=np.zeros(3),
                translation_length=0.0,
                estimate=INESTIMABLE_ESTIMATE,
                sensor_pose=self.sensor_pose,
                object_poses=self._logged_object_poses(),
            )
            self.logger.log_inestimable(record)

        self.evaluation_result_pub.publish(Request(id=RESULT_INESTIMABLE))

    def _reset_trial(self):
        for obj in self.scene_objects:
            self.simulator.unfreeze(obj.name)
            obj.estimated = False

        self.throw_objects()
        self.settling.mark_rethrown()
        self.trial += 1

    def throw_objects(self):
        """Give every object a fresh grid position and random orientation."""
        for obj, pose in zip(self.scene_objects, self.layout.throw_poses()):
            self.simulator.set_world_pose(obj.name, pose)

    # ========================================
    # Only-snapshot mode
    # ========================================

    def rethrow_for_snapshot(self, msg):
        """
        Handle a rethrow event from the depth sensor in only-snapshot mode.

        Args:
            msg: Request whose data is the index of the snapshot just taken
        """
        try:
            snapshot_index = int(msg.data)
        except (TypeError, ValueError):
            print(f"[ERROR] invalid snapshot index: {msg.data!r}")
            return

        if snapshot_index == self.config.snapshot.total_snapshot:
            self.current_snapshot = snapshot_index
            self.snapshot_done = True
            self._print(f"[INFO] All {snapshot_index} snapshots taken")
            return

        self.current_snapshot = snapshot_index
        self._reset_trial()
        self.phase = TrialPhase.AWAITING_STEADY

    # ========================================
    # Results
    # ========================================

    def results_dataframe(self):
        return self.evaluator.create_results_dataframe(self.records)

    def _print(self, message):
        if self.verbose:
            print(message)
