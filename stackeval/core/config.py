"""
Parameters file loading.

The parameters file is YAML with a single `evaluation_platform` root:

    evaluation_platform:
      seed: 42
      attribute:
        resimulate_after_fail: false
      snapshot:
        snapshot_mode: 0
        total_snapshot: 0
      stacking:
        box_size: [0.21, 0.16, 0.08]
        target_models:
          - name: cube
            sdf_file_path: models/cube/model.sdf
            proportion: 1
            translation_threshold: 0.0025
            quaternion_degree_threshold: 10
            rotational_symmetry:
              enable: true
              axes:
                - {axis: [0, 0, 1], order: 4, tolerance_degree: 5, axis_deviation_threshold: 5}
            circular_symmetry: {enable: false}
            cylinder_like: {enable: false}
        width: 3
        height: 3
      log:
        path: evaluation_log
      transport:
        connection_timeout: 30.0

Values missing from the file fall back to DEFAULT_PARAMETERS (recursive merge).
"""

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

import yaml

from .criteria import RotationalSymmetryAxis, SymmetryCriteria, TargetClass
from .errors import ConfigurationError


DEFAULT_PARAMETERS = {
    'evaluation_platform': {
        'seed': None,
        'attribute': {
            'resimulate_after_fail': False,
        },
        'snapshot': {
            'snapshot_mode': 0,
            'total_snapshot': 0,
            'camera_offset': [-0.10664, 0.075, 0.0],
            'pixel_scale': [6001.5, 6400.0],
        },
        'stacking': {
            'box_model_sdf_file_path': '',
            'box_size': [0.21, 0.16, 0.08],
            'box_wall_thickness': 0.02,
            'box_center': [0.0, 0.0, 0.0],
            'target_models': [],
            'check_steady_interval': 0.1,
            'consecutive_steady_threshold': 5,
            'linear_vel_threshold': 0.03,
            'width': 3,
            'height': 3,
            'layers': 1,
            'distance_between_objects': 0.07,
            'throwing_height': 0.15,
        },
        'log': {
            'path': 'evaluation_log',
            'error_logging': True,
            'success_logging': False,
        },
        'transport': {
            'connection_timeout': 30.0,
        },
    }
}


@dataclass(frozen=True)
class SnapshotConfig:
    snapshot_mode: int = 0
    total_snapshot: int = 0
    camera_offset: Tuple[float, float, float] = (-0.10664, 0.075, 0.0)
    pixel_scale: Tuple[float, float] = (6001.5, 6400.0)

    @property
    def enabled(self):
        return self.snapshot_mode == 1


@dataclass(frozen=True)
class StackingConfig:
    box_model_sdf_file_path: str = ''
    box_size: Tuple[float, float, float] = (0.21, 0.16, 0.08)
    box_wall_thickness: float = 0.02
    box_center: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    check_steady_interval: float = 0.1
    consecutive_steady_threshold: int = 5
    linear_vel_threshold: float = 0.03
    width: int = 3
    height: int = 3
    layers: int = 1
    distance_between_objects: float = 0.07
    throwing_height: float = 0.15


@dataclass(frozen=True)
class LogConfig:
    path: str = 'evaluation_log'
    error_logging: bool = True
    success_logging: bool = False


@dataclass(frozen=True)
class PlatformConfig:
    target_classes: Tuple[TargetClass, ...]
    stacking: StackingConfig = field(default_factory=StackingConfig)
    log: LogConfig = field(default_factory=LogConfig)
    snapshot: SnapshotConfig = field(default_factory=SnapshotConfig)
    resimulate_after_fail: bool = False
    connection_timeout: float = 30.0
    seed: Optional[int] = None

    @property
    def total_objects(self):
        s = self.stacking
        return s.width * s.height * s.layers


def _load_yaml_file(path):
    if not os.path.exists(path):
        raise ConfigurationError(f"Cannot load the parameter file: {path}")
    with open(path, 'r') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Cannot parse the parameter file {path}: {exc}") from exc
    return data if data is not None else {}


def _recursive_merge(base, new):
    """
    Merge new into base in place and return base.
    Nested dicts are merged, any other value in new replaces the one in base.
    """
    for k, v in new.items():
        if k in base and isinstance(base[k], dict) and isinstance(v, dict):
            _recursive_merge(base[k], v)
        else:
            base[k] = v
    return base


def _clean_path(path):
    return str(path).strip() if path is not None else ''


def _vector(value, size=3):
    if value is None:
        return None
    if isinstance(value, str):
        value = value.split()
    values = tuple(float(v) for v in value)
    if len(values) != size:
        raise ConfigurationError(f"Expected {size} values, got {value!r}")
    return values


def _is_zero(vec):
    return vec is None or all(v == 0 for v in vec)


def _parse_rotational_symmetry(section, key_name):
    axes = []
    for idx, entry in enumerate(section.get('axes') or []):
        axis_name = f"axis_{idx}"
        order = entry.get('order')
        tolerance_degree = entry.get('tolerance_degree')
        axis_deviation = entry.get('axis_deviation_threshold')

        if order is None or tolerance_degree is None or axis_deviation is None:
            print(f"[WARN] problem in ({key_name},{axis_name})")
            continue
        if int(order) < 2:
            print(f"[WARN] order of rotational symmetry is not valid ({key_name},{axis_name}), "
                  "should be at least 2")
            continue
        if float(tolerance_degree) < 0 or float(axis_deviation) < 0:
            print(f"[WARN] tolerance_degree and axis deviation should be positive ({key_name},{axis_name})")
            continue
        axis = _vector(entry.get('axis'))
        if _is_zero(axis):
            print(f"[WARN] problem with the rotational axis ({key_name},{axis_name})")
            continue

        axes.append(RotationalSymmetryAxis(axis, int(order), float(tolerance_degree), float(axis_deviation)))

    return tuple(axes)


def parse_target_class(entry, key_name):
    """
    Build a TargetClass from one `target_models` entry.

    Invalid symmetry sections are reported and disabled rather than failing
    the whole file.
    """
    sdf_file_path = _clean_path(entry.get('sdf_file_path'))
    name = entry.get('name') or Path(sdf_file_path).parent.name or Path(sdf_file_path).stem
    if not name:
        raise ConfigurationError(f"{key_name} needs a name or an sdf_file_path")

    kwargs = {
        'translation_threshold': float(entry.get('translation_threshold', 0.0025)),
        'quaternion_degree_threshold': float(entry.get('quaternion_degree_threshold', 10)),
    }

    rot = entry.get('rotational_symmetry') or {}
    if rot.get('enable', False):
        axes = _parse_rotational_symmetry(rot, key_name)
        if axes:
            kwargs['has_rotational_symmetry'] = True
            kwargs['rot_sym_axes'] = axes

    cir = entry.get('circular_symmetry') or {}
    if cir.get('enable', False):
        axis = _vector(cir.get('axis'))
        deviation = float(cir.get('axis_deviation_threshold', -1))
        if _is_zero(axis) or deviation < 0:
            print(f"[WARN] problem with the circular symmetry ({key_name})")
        else:
            kwargs['has_circular_symmetry'] = True
            kwargs['cir_sym_axis'] = axis
            kwargs['cir_sym_axis_deviation_degree'] = deviation

    cyl = entry.get('cylinder_like') or {}
    if cyl.get('enable', False):
        axis = _vector(cyl.get('cylinder_axis'))
        deviation = float(cyl.get('axis_deviation_threshold', -1))
        if _is_zero(axis) or deviation < 0:
            print(f"[WARN] problem with the cylinder_like ({key_name})")
        else:
            kwargs['is_cylinder_like'] = True
            kwargs['cylinder_axis'] = axis
            kwargs['cylinder_axis_deviation_threshold'] = deviation

    return TargetClass(
        name=str(name),
        sdf_file_path=sdf_file_path,
        proportion=int(entry.get('proportion', 0)),
        criteria=SymmetryCriteria(**kwargs),
    )


def build_config(params):
    """
    Turn a merged parameters dict into a PlatformConfig.

    Args:
        params: Dict with an `evaluation_platform` root, already merged with defaults

    Returns:
        PlatformConfig
    """
    try:
        root = params['evaluation_platform']
        stacking = root['stacking']

        target_classes = []
        for i, entry in enumerate(stacking.get('target_models') or []):
            if int(entry.get('proportion', 0)) <= 0:
                continue
            target_classes.append(parse_target_class(entry, f"target_model_{i}"))

        snapshot = root['snapshot']
        log = root['log']

        config = PlatformConfig(
            target_classes=tuple(target_classes),
            stacking=StackingConfig(
                box_model_sdf_file_path=_clean_path(stacking['box_model_sdf_file_path']),
                box_size=_vector(stacking['box_size']),
                box_wall_thickness=float(stacking['box_wall_thickness']),
                box_center=_vector(stacking['box_center']),
                check_steady_interval=float(stacking['check_steady_interval']),
                consecutive_steady_threshold=int(stacking['consecutive_steady_threshold']),
                linear_vel_threshold=float(stacking['linear_vel_threshold']),
                width=int(stacking['width']),
                height=int(stacking['height']),
                layers=int(stacking['layers']),
                distance_between_objects=float(stacking['distance_between_objects']),
                throwing_height=float(stacking['throwing_height']),
            ),
            log=LogConfig(
                path=_clean_path(log['path']),
                error_logging=bool(log['error_logging']),
                success_logging=bool(log['success_logging']),
            ),
            snapshot=SnapshotConfig(
                snapshot_mode=int(snapshot['snapshot_mode']),
                total_snapshot=int(snapshot['total_snapshot']),
                camera_offset=_vector(snapshot['camera_offset']),
                pixel_scale=_vector(snapshot['pixel_scale'], size=2),
            ),
            resimulate_after_fail=bool(root['attribute']['resimulate_after_fail']),
            connection_timeout=float(root['transport']['connection_timeout']),
            seed=None if root.get('seed') is None else int(root['seed']),
        )
    except (KeyError, TypeError, ValueError) as exc:
        if isinstance(exc, ConfigurationError):
            raise
        raise ConfigurationError(f"Cannot load the parameter file: {exc}") from exc

    if not config.target_classes:
        raise ConfigurationError("No target model with a positive proportion")

    return config


def load_config(path):
    """
    Load a parameters file and merge it over the defaults.

    Args:
        path: Path to the YAML parameters file

    Returns:
        PlatformConfig

    Raises:
        ConfigurationError: If the file is missing, malformed or has no target model
    """
    params = copy.deepcopy(DEFAULT_PARAMETERS)
    _recursive_merge(params, _load_yaml_file(str(path)))
    config = build_config(params)

    for i, target in enumerate(config.target_classes):
        print(f"[INFO] target model {i} : {target.name}")
        print(f"\tsdf_file_path : {target.sdf_file_path}")
        print(f"\tproportion : {target.proportion}")
        print(target.criteria.describe())

    return config
