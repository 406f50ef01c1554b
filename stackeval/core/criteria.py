"""
Per-class acceptance criteria for pose estimates.
Describes which rotations of an object are indistinguishable from its canonical pose.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from ..utils.geometry import normalize


@dataclass(frozen=True)
class RotationalSymmetryAxis:
    """
    Discrete symmetry about one axis: the object repeats every 360/order degrees.

    Attributes:
        axis: Unit symmetry axis in the object frame
        order: Number of indistinguishable poses per full turn (>= 2)
        tolerance_degree: Allowed angular distance from a valid angle
        axis_deviation_degree: Allowed deviation between error axis and symmetry axis
    """

    axis: Tuple[float, float, float]
    order: int
    tolerance_degree: float
    axis_deviation_degree: float

    @property
    def interval_degree(self):
        return 360.0 / self.order


@dataclass(frozen=True)
class SymmetryCriteria:
    """
    Thresholds and symmetry description used to accept an estimate.

    Translation thresholds are in metres, every angle is in degrees.
    """

    translation_threshold: float = 0.0025
    quaternion_degree_threshold: float = 10.0

    # cylinder like: 180° flip and rotation about the main axis are accepted
    is_cylinder_like: bool = False
    cylinder_axis: Optional[Tuple[float, float, float]] = None
    cylinder_axis_deviation_threshold: float = 0.0

    # circular symmetry: any angle about one axis
    has_circular_symmetry: bool = False
    cir_sym_axis: Optional[Tuple[float, float, float]] = None
    cir_sym_axis_deviation_degree: float = 0.0

    # rotational symmetry: discrete angles about one or more axes
    has_rotational_symmetry: bool = False
    rot_sym_axes: Tuple[RotationalSymmetryAxis, ...] = field(default_factory=tuple)

    def __post_init__(self):
        # Store unit axes so comparisons can use a plain dot product
        for name in ("cylinder_axis", "cir_sym_axis"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, tuple(normalize(value)))
        object.__setattr__(self, "rot_sym_axes", tuple(
            RotationalSymmetryAxis(tuple(normalize(a.axis)), int(a.order),
                                   float(a.tolerance_degree), float(a.axis_deviation_degree))
            for a in self.rot_sym_axes
        ))

    def describe(self):
        """
        Human readable multi-line description, printed when parameters are loaded.
        """
        lines = [
            f"\ttranslation_threshold : {self.translation_threshold}",
            f"\tquaternion_degree_threshold : {self.quaternion_degree_threshold}",
        ]
        if self.is_cylinder_like:
            lines.append(f"\tcylinder_like : axis={np.round(self.cylinder_axis, 3).tolist()} "
                         f"deviation={self.cylinder_axis_deviation_threshold}")
        if self.has_circular_symmetry:
            lines.append(f"\tcircular_symmetry : axis={np.round(self.cir_sym_axis, 3).tolist()} "
                         f"deviation={self.cir_sym_axis_deviation_degree}")
        if self.has_rotational_symmetry:
            for i, a in enumerate(self.rot_sym_axes):
                lines.append(f"\trotational_symmetry[{i}] : axis={np.round(a.axis, 3).tolist()} "
                             f"order={a.order} tolerance={a.tolerance_degree} "
                             f"deviation={a.axis_deviation_degree}")
        return "\n".join(lines)


@dataclass(frozen=True)
class TargetClass:
    """
    Object archetype stacked in the scene.

    Attributes:
        name: Model name; every instance is named "<name>_<n>"
        sdf_file_path: Template handed to the simulator when spawning
        proportion: Relative weight used when filling the stacking grid
        criteria: Acceptance rule for estimates of this class
    """

    name: str
    sdf_file_path: str = ""
    proportion: int = 1
    criteria: SymmetryCriteria = field(default_factory=SymmetryCriteria)

    def matches(self, label):
        """Whether an object name or recognized label belongs to this class."""
        return label.startswith(self.name)
