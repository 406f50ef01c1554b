import pytest
import yaml

from stackeval.core.config import load_config
from stackeval.core.errors import ConfigurationError


def write_params(tmp_path, params):
    path = tmp_path / "parameters.yaml"
    path.write_text(yaml.safe_dump(params))
    return path


def test_defaults_fill_missing_values(tmp_path):
    path = write_params(tmp_path, {'evaluation_platform': {
        'stacking': {'target_models': [{'sdf_file_path': 'models/cube/model.sdf', 'proportion': 2}],
                     'width': 2},
    }})

    config = load_config(path)

    assert config.stacking.width == 2
    assert config.stacking.height == 3
    assert config.total_objects == 6
    assert config.log.error_logging is True
    assert config.log.success_logging is False
    assert config.snapshot.enabled is False
    assert config.seed is None

    target = config.target_classes[0]
    assert target.name == "cube"
    assert target.proportion == 2
    assert target.criteria.translation_threshold == pytest.approx(0.0025)
    assert target.criteria.quaternion_degree_threshold == pytest.approx(10.0)


def test_symmetry_sections(tmp_path):
    path = write_params(tmp_path, {'evaluation_platform': {'stacking': {'target_models': [
        {'name': 'nut', 'proportion': 1,
         'rotational_symmetry': {'enable': True, 'axes': [
             {'axis': [0, 0, 2], 'order': 6, 'tolerance_degree': 4, 'axis_deviation_threshold': 3},
             {'axis': [1, 0, 0], 'order': 1, 'tolerance_degree': 4, 'axis_deviation_threshold': 3},
         ]}},
        {'name': 'pipe', 'proportion': 1,
         'cylinder_like': {'enable': True, 'cylinder_axis': [0, 1, 0], 'axis_deviation_threshold': 8}},
        {'name': 'disk', 'proportion': 1,
         'circular_symmetry': {'enable': True, 'axis': [0, 0, 0], 'axis_deviation_threshold': 8}},
    ]}}})

    nut, pipe, disk = load_config(path).target_classes

    assert nut.criteria.has_rotational_symmetry
    assert len(nut.criteria.rot_sym_axes) == 1
    assert nut.criteria.rot_sym_axes[0].axis == (0.0, 0.0, 1.0)
    assert nut.criteria.rot_sym_axes[0].interval_degree == pytest.approx(60.0)

    assert pipe.criteria.is_cylinder_like
    assert pipe.criteria.cylinder_axis_deviation_threshold == pytest.approx(8.0)

    # zero axis disables the section
    assert not disk.criteria.has_circular_symmetry


def test_zero_proportion_is_skipped(tmp_path):
    path = write_params(tmp_path, {'evaluation_platform': {'stacking': {'target_models': [
        {'name': 'cube', 'proportion': 0},
        {'name': 'ring', 'proportion': 1},
    ]}}})
    assert [t.name for t in load_config(path).target_classes] == ["ring"]


def test_no_target_model(tmp_path):
    path = write_params(tmp_path, {'evaluation_platform': {'seed': 4}})
    with pytest.raises(ConfigurationError):
        load_config(path)


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config(tmp_path / "missing.yaml")


def test_malformed_yaml(tmp_path):
    path = tmp_path / "parameters.yaml"
    path.write_text("evaluation_platform: [unclosed\n")
    with pytest.raises(ConfigurationError):
        load_config(path)


def test_bad_vector(tmp_path):
    path = write_params(tmp_path, {'evaluation_platform': {'stacking': {
        'target_models': [{'name': 'cube', 'proportion': 1}],
        'box_size': [0.1, 0.2],
    }}})
    with pytest.raises(ConfigurationError):
        load_config(path)
