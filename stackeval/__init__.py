"""
Pose-estimation evaluation platform for randomly stacked object piles.
"""

# Main pipeline
from .pipeline import EvaluationPipeline

# Core components
from .core.config import PlatformConfig, load_config
from .core.platform import EvaluationPlatform, TrialPhase, RoundOutcome
from .core.pose_evaluator import PoseEvaluator
from .core.transport import InProcessTransport
from .core.evaluation_logger import EvaluationLogger
from .core.visualizer import Visualizer

# Simulation stand-ins
from .simulation import KinematicWorld, SyntheticPoseEstimator

__all__ = [
    # Pipeline
    'EvaluationPipeline',
    # Core
    'PlatformConfig',
    'load_config',
    'EvaluationPlatform',
    'TrialPhase',
    'RoundOutcome',
    'PoseEvaluator',
    'InProcessTransport',
    'EvaluationLogger',
    'Visualizer',
    # Simulation
    'KinematicWorld',
    'SyntheticPoseEstimator',
]
