"""
Pose correctness classification and error metrics.
High-level component for comparing estimated object poses against ground truth.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import numpy as np
import pandas as pd

from .errors import UnknownTargetClassError
from ..utils.geometry import (
    invert_pose, rotation_to_axis_angle, rotation_to_euler, axis_deviation_deg
)


class EvaluationReason(Enum):
    """Why an estimate was accepted or rejected."""

    WITHIN_THRESHOLD = "within threshold"
    CYLINDER_FLIP = "cylinder like 180 degree flip"
    CYLINDER_AXIS = "rotation about cylinder axis"
    CIRCULAR_SYMMETRY = "circular symmetry"
    ROTATIONAL_SYMMETRY = "rotational symmetry"
    WRONG_MODEL = "wrong model recognized"
    TRANSLATION_TOO_LARGE = "translation error is too large"
    ROTATION_TOO_LARGE = "rotation error is too large"
    AXIS_DEVIATION_TOO_LARGE = "axis deviation is too large"
    SYMMETRY_TOLERANCE_EXCEEDED = "tolerance of rotational symmetry exceeded"


@dataclass(frozen=True)
class EvaluationOutcome:
    """
    Verdict on one estimate.

    Attributes:
        correct: Whether the estimate is accepted
        reason: Rule that accepted or rejected it
        axis_deviation: Axis deviation (degrees) of the deciding symmetry check, if any
    """

    correct: bool
    reason: EvaluationReason
    axis_deviation: Optional[float] = None


@dataclass(frozen=True)
class PoseError:
    """
    Error of an estimate expressed in the ground truth object frame.

    Attributes:
        matrix: inv(ground_truth) @ estimate (4x4)
        euler_deg: (roll, pitch, yaw) of the error rotation in degrees
        axis: Axis of the error rotation (unit vector)
        angle_deg: Angle of the error rotation in degrees, within [0, 180]
        translation: Translation part of the error (metres)
        translation_length: Norm of the translation error (metres)
    """

    matrix: np.ndarray
    euler_deg: np.ndarray
    axis: np.ndarray
    angle_deg: float
    translation: np.ndarray
    translation_length: float


class PoseEvaluator:
    """
    Evaluates estimated object poses against ground truth objects.

    Applies the per-class symmetry criteria in a fixed order and provides
    summary statistics over all evaluated estimates.
    """

    def __init__(self, target_classes, verbose=True):
        """
        Initialize pose evaluator.

        Args:
            target_classes: Sequence of TargetClass, in configuration order
            verbose: Whether to print rejection diagnostics
        """
        self.target_classes = list(target_classes)
        self.verbose = verbose

    def resolve_target_class(self, label):
        """
        Find the target class a recognized label belongs to.

        The longest matching class name wins, so "bolt_long" is not taken
        for "bolt".

        Args:
            label: Object label reported by the pose estimator

        Returns:
            tuple: (class index, TargetClass)

        Raises:
            UnknownTargetClassError: If no class name is a prefix of the label
        """
        best_idx = -1
        for i, target in enumerate(self.target_classes):
            if target.matches(label):
                if best_idx < 0 or len(target.name) > len(self.target_classes[best_idx].name):
                    best_idx = i

        if best_idx < 0:
            raise UnknownTargetClassError(label)

        return best_idx, self.target_classes[best_idx]

    @staticmethod
    def compute_pose_error(estimated_pose, ground_truth_pose):
        """
        Compute the error of an estimate in the ground truth frame.

        Args:
            estimated_pose: Estimated world pose (4x4)
            ground_truth_pose: Ground truth world pose (4x4)

        Returns:
            PoseError
        """
        error_matrix = invert_pose(ground_truth_pose) @ np.asarray(estimated_pose, dtype=np.float64)
        axis, angle = rotation_to_axis_angle(error_matrix[:3, :3])
        translation = error_matrix[:3, 3].copy()

        return PoseError(
            matrix=error_matrix,
            euler_deg=rotation_to_euler(error_matrix[:3, :3]),
            axis=axis,
            angle_deg=float(np.degrees(angle)),
            translation=translation,
            translation_length=float(np.linalg.norm(translation)),
        )

    def evaluate(self, recognized, matched, rotation_axis, rotation_angle_deg,
                 translation_error):
        """
        Decide whether an estimate is correct.

        Args:
            recognized: TargetClass of the recognized label
            matched: TargetClass of the nearest ground truth object
            rotation_axis: Axis of the error rotation in the ground truth frame
            rotation_angle_deg: Angle of the error rotation in degrees
            translation_error: Translation error length in metres

        Returns:
            EvaluationOutcome
        """
        criteria = recognized.criteria

        # 1. Model recognition
        if matched != recognized:
            return self._reject(EvaluationReason.WRONG_MODEL)

        # 2. Translation
        if translation_error >= criteria.translation_threshold:
            return self._reject(EvaluationReason.TRANSLATION_TOO_LARGE,
                                f"translation error : {translation_error:.5f}")

        # 3. Rotation
        if rotation_angle_deg < criteria.quaternion_degree_threshold:
            return EvaluationOutcome(True, EvaluationReason.WITHIN_THRESHOLD)

        # 4. Cylinder like objects
        if criteria.is_cylinder_like:
            if abs(180.0 - rotation_angle_deg) < criteria.quaternion_degree_threshold:
                return EvaluationOutcome(True, EvaluationReason.CYLINDER_FLIP)

            deviation = axis_deviation_deg(criteria.cylinder_axis, rotation_axis)
            if _axis_within(deviation, criteria.cylinder_axis_deviation_threshold):
                return EvaluationOutcome(True, EvaluationReason.CYLINDER_AXIS, deviation)

            return self._reject(EvaluationReason.AXIS_DEVIATION_TOO_LARGE,
                                f"axis deviation degree : {deviation:.3f}", deviation)

        # 5a. Circular symmetry
        deviation = None
        if criteria.has_circular_symmetry:
            deviation = axis_deviation_deg(criteria.cir_sym_axis, rotation_axis)
            if _axis_within(deviation, criteria.cir_sym_axis_deviation_degree):
                return EvaluationOutcome(True, EvaluationReason.CIRCULAR_SYMMETRY, deviation)
            self._print_warn(f"Circular symmetry didn't pass, axis deviation degree : {deviation:.3f}")

        # 5b. Rotational symmetry
        axis_aligned = False
        if criteria.has_rotational_symmetry:
            for sym in criteria.rot_sym_axes:
                deviation = axis_deviation_deg(sym.axis, rotation_axis)
                if not _axis_within(deviation, sym.axis_deviation_degree):
                    self._print_warn("deviation of rotational symmetry axis is too big, "
                                     f"axis deviation degree : {deviation:.3f}")
                    continue

                axis_aligned = True
                if _angle_distance_to_multiple(rotation_angle_deg, sym.interval_degree) < sym.tolerance_degree:
                    return EvaluationOutcome(True, EvaluationReason.ROTATIONAL_SYMMETRY, deviation)
                self._print_warn("tolerance of rotational symmetry is too big")

        # 6. Nothing accepted the rotation
        if not (criteria.has_circular_symmetry or criteria.has_rotational_symmetry):
            reason = EvaluationReason.ROTATION_TOO_LARGE
        elif axis_aligned:
            reason = EvaluationReason.SYMMETRY_TOLERANCE_EXCEEDED
        else:
            reason = EvaluationReason.AXIS_DEVIATION_TOO_LARGE

        return self._reject(reason, f"rotation error (degree) : {rotation_angle_deg:.3f}", deviation)

    def evaluate_pose(self, recognized, matched, estimated_pose, ground_truth_pose):
        """
        Compute the pose error and classify it in one call.

        Returns:
            tuple: (PoseError, EvaluationOutcome)
        """
        error = self.compute_pose_error(estimated_pose, ground_truth_pose)
        outcome = self.evaluate(recognized, matched, error.axis, error.angle_deg,
                                error.translation_length)
        return error, outcome

    def _reject(self, reason, detail=None, deviation=None):
        if self.verbose:
            print(f"[WARN] {reason.value.capitalize()}" + (f" ({detail})" if detail else ""))
        return EvaluationOutcome(False, reason, deviation)

    def _print_warn(self, message):
        if self.verbose:
            print(f"[WARN] {message}")

    # ========================================
    # Summary over evaluated estimates
    # ========================================

    @staticmethod
    def create_results_dataframe(records):
        """
        Create a pandas DataFrame with one row per scored estimate.

        Args:
            records: Iterable of dicts produced by the evaluation platform

        Returns:
            pd.DataFrame: Columns trial, recognized, closest_object, correct,
                reason, rotation_error, translation_error
        """
        columns = ['trial', 'recognized', 'closest_object', 'correct', 'reason',
                   'rotation_error', 'translation_error']
        return pd.DataFrame(list(records), columns=columns)

    @staticmethod
    def compute_summary_statistics(results_df):
        """
        Compute summary statistics for evaluation results.

        Args:
            results_df: DataFrame from create_results_dataframe()

        Returns:
            dict: Success rate plus mean, std, median, max, min errors
        """
        stats = {
            'num_estimates': int(len(results_df)),
            'num_success': int(results_df['correct'].sum()) if len(results_df) else 0,
        }
        stats['success_rate'] = stats['num_success'] / stats['num_estimates'] if stats['num_estimates'] else 0.0

        for metric in ['rotation_error', 'translation_error']:
            errors = results_df[metric].to_numpy(dtype=np.float64)
            if errors.size == 0:
                errors = np.zeros(1)

            stats[f'{metric}_mean'] = np.mean(errors)
            stats[f'{metric}_std'] = np.std(errors)
            stats[f'{metric}_median'] = np.median(errors)
            stats[f'{metric}_max'] = np.max(errors)
            stats[f'{metric}_min'] = np.min(errors)

        return stats

    def print_summary(self, results_df):
        """
        Print evaluation summary to console.

        Args:
            results_df: DataFrame from create_results_dataframe()
        """
        stats = self.compute_summary_statistics(results_df)

        print("\n" + "="*60)
        print("POSE ESTIMATION EVALUATION SUMMARY")
        print("="*60)

        print(f"\nNumber of estimates evaluated: {stats['num_estimates']}")
        print(f"Successful estimates: {stats['num_success']} ({100 * stats['success_rate']:.1f}%)")

        print("\nRotation Errors (degrees):")
        print(f"  Mean:   {stats['rotation_error_mean']:.2f}")
        print(f"  Std:    {stats['rotation_error_std']:.2f}")
        print(f"  Median: {stats['rotation_error_median']:.2f}")
        print(f"  Max:    {stats['rotation_error_max']:.2f}")
        print(f"  Min:    {stats['rotation_error_min']:.2f}")

        print("\nTranslation Errors (mm):")
        print(f"  Mean:   {1000 * stats['translation_error_mean']:.2f}")
        print(f"  Std:    {1000 * stats['translation_error_std']:.2f}")
        print(f"  Median: {1000 * stats['translation_error_median']:.2f}")

        if len(results_df):
            print("\nOutcomes:")
            for reason, count in results_df['reason'].value_counts().items():
                print(f"  {reason}: {count}")

        print("\n" + "="*60 + "\n")


def _axis_within(deviation_deg, tolerance_deg):
    # an axis and its negation describe the same symmetry
    return deviation_deg < tolerance_deg or 180.0 - deviation_deg < tolerance_deg


def _angle_distance_to_multiple(angle_deg, interval_deg):
    remainder = angle_deg % interval_deg
    return min(remainder, interval_deg - remainder)
