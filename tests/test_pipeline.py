import numpy as np
import pandas as pd
import yaml

from stackeval.core.pose_evaluator import PoseEvaluator
from stackeval.core.visualizer import Visualizer
from stackeval.pipeline import EvaluationPipeline

from conftest import make_params


def test_visualizer_outputs(tmp_path):
    df = PoseEvaluator.create_results_dataframe([
        {'trial': 0, 'recognized': 'cube', 'closest_object': 'cube_0', 'correct': True,
         'reason': 'within threshold', 'rotation_error': 3.0, 'translation_error': 0.0008},
        {'trial': 0, 'recognized': 'cube', 'closest_object': 'cube_1', 'correct': False,
         'reason': 'rotation error is too large', 'rotation_error': 42.0, 'translation_error': 0.0011},
    ])
    visualizer = Visualizer(tmp_path / "results")

    csv_path = visualizer.save_results_table(df)
    plot_path = visualizer.plot_error_distribution(df, rotation_threshold=10, translation_threshold=0.0025)

    assert plot_path.exists()
    assert len(pd.read_csv(csv_path)) == 2


def test_pipeline_run(tmp_path):
    params = make_params({'seed': 11, 'log': {'path': str(tmp_path / "logs")}})
    config_path = tmp_path / "parameters.yaml"
    config_path.write_text(yaml.safe_dump(params))

    pipeline = EvaluationPipeline(config_path=config_path, results_dir=tmp_path / "results",
                                  rotation_noise_deg=1.0, translation_noise=0.0001)
    pipeline.setup()
    results = pipeline.run(duration=20.0, max_trials=1, create_plot=False)

    df = results['results_df']
    assert len(df) > 0
    assert df['correct'].astype(bool).any()
    assert np.all(df['rotation_error'] < 180.0)
    assert results['csv_path'].exists()
    assert results['log_dir'].is_dir()
    assert pipeline.estimator.snapshots > 0
