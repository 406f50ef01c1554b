"""
Detection of the moment a freshly thrown pile stops moving.
"""

import time
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SteadyEvent:
    """
    Emitted once when the pile is steady.

    Attributes:
        sim_time: Simulation time of the sample that completed the streak
        time_to_steady: Wall-clock seconds since the last rethrow, only set
            for the first steady event after each rethrow
    """

    sim_time: float
    time_to_steady: Optional[float] = None


class SettlingDetector:
    """
    Declares the scene steady after enough consecutive quiet samples.

    Samples are taken every `check_steady_interval` seconds of simulation
    time. Only linear speed decides steadiness; angular speed is reported
    for diagnostics.
    """

    def __init__(self, check_steady_interval=0.1, consecutive_steady_threshold=5,
                 linear_vel_threshold=0.03, clock=time.monotonic, verbose=True):
        """
        Initialize settling detector.

        Args:
            check_steady_interval: Simulation seconds between two samples
            consecutive_steady_threshold: Quiet samples required to be steady
            linear_vel_threshold: Linear speed (m/s) below which an object is quiet
            clock: Wall-clock source used for time to steady
            verbose: Whether to print sampling diagnostics
        """
        self.check_steady_interval = check_steady_interval
        self.consecutive_steady_threshold = consecutive_steady_threshold
        self.linear_vel_threshold = linear_vel_threshold
        self.clock = clock
        self.verbose = verbose

        self.steady_count = 0
        self.last_check_time = 0.0
        self.rethrown = True
        self.rethrow_time = clock()

    def mark_rethrown(self):
        """Start timing a new pile; the next steady event reports its time to steady."""
        self.rethrown = True
        self.rethrow_time = self.clock()
        self.steady_count = 0

    def reset(self):
        """Forget the current quiet streak."""
        self.steady_count = 0

    def update(self, sim_time, linear_speeds, angular_speeds=None):
        """
        Feed one simulation tick.

        Args:
            sim_time: Current simulation time (seconds)
            linear_speeds: Mapping object name -> linear speed (m/s) for every
                object still being tracked
            angular_speeds: Optional mapping object name -> angular speed (rad/s)

        Returns:
            SteadyEvent on the tick the scene becomes steady, None otherwise
        """
        if sim_time - self.last_check_time <= self.check_steady_interval:
            return None
        self.last_check_time = sim_time

        if self.verbose:
            print(f"[INFO] SimTime: {sim_time:.3f}")

        for name, speed in linear_speeds.items():
            if speed >= self.linear_vel_threshold:
                if self.verbose:
                    message = f"[INFO] {name} linear vel : {speed:.4f}"
                    if angular_speeds is not None and name in angular_speeds:
                        message += f", angular vel : {angular_speeds[name]:.4f}"
                    print(message)
                self.steady_count = 0
                return None

        self.steady_count += 1
        if self.steady_count < self.consecutive_steady_threshold:
            return None

        self.steady_count = 0

        time_to_steady = None
        if self.rethrown:
            time_to_steady = self.clock() - self.rethrow_time
            self.rethrown = False

        return SteadyEvent(sim_time=sim_time, time_to_steady=time_to_steady)
