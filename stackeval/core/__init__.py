"""
Core components of the stacking evaluation platform.
"""
from .errors import (
    EvaluationPlatformError,
    ConfigurationError,
    UnknownTargetClassError,
    EvaluationLogError,
    ConnectionTimeoutError,
)
from .criteria import RotationalSymmetryAxis, SymmetryCriteria, TargetClass
from .config import PlatformConfig, build_config, load_config
from .pose_evaluator import PoseEvaluator, EvaluationReason, EvaluationOutcome
from .settling import SettlingDetector, SteadyEvent
from .stagnation import StagnationTracker
from .matcher import find_nearest_object
from .scene import SceneObject, StackingLayout
from .transport import InProcessTransport, Request, PoseEstimationResult
from .interfaces import Simulator
from .evaluation_logger import EvaluationLogger, EstimationRecord
from .platform import EvaluationPlatform, TrialPhase, RoundOutcome, EstimateStatus
from .visualizer import Visualizer

__all__ = [
    'EvaluationPlatformError',
    'ConfigurationError',
    'UnknownTargetClassError',
    'EvaluationLogError',
    'ConnectionTimeoutError',
    'RotationalSymmetryAxis',
    'SymmetryCriteria',
    'TargetClass',
    'PlatformConfig',
    'build_config',
    'load_config',
    'PoseEvaluator',
    'EvaluationReason',
    'EvaluationOutcome',
    'SettlingDetector',
    'SteadyEvent',
    'StagnationTracker',
    'find_nearest_object',
    'SceneObject',
    'StackingLayout',
    'InProcessTransport',
    'Request',
    'PoseEstimationResult',
    'Simulator',
    'EvaluationLogger',
    'EstimationRecord',
    'EvaluationPlatform',
    'TrialPhase',
    'RoundOutcome',
    'EstimateStatus',
    'Visualizer',
]
