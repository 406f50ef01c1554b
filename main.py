"""
Entry point for running the stacking evaluation pipeline.

Usage:
    python main.py [--config parameters.yaml] [--duration SECONDS] [--trials N]
"""

import argparse

from stackeval.core.errors import EvaluationPlatformError
from stackeval.pipeline import EvaluationPipeline


def main():
    parser = argparse.ArgumentParser(description="Stacking Scene Pose Evaluation")
    parser.add_argument('--config', default='parameters.yaml', help='Parameters file (default: parameters.yaml)')
    parser.add_argument('--results-dir', default='results', help='Output directory for tables and plots')
    parser.add_argument('--duration', type=float, default=60.0, help='Simulated seconds to run (default: 60)')
    parser.add_argument('--trials', type=int, default=None, help='Stop after this many trials')
    parser.add_argument('--time-step', type=float, default=0.01, help='Simulation step in seconds')
    parser.add_argument('--rotation-noise', type=float, default=3.0, help='Estimator rotation noise (deg)')
    parser.add_argument('--translation-noise', type=float, default=0.0005, help='Estimator translation noise (m)')
    parser.add_argument('--mislabel-rate', type=float, default=0.0, help='Probability of a wrong class label')
    parser.add_argument('--seed', type=int, default=None, help='Random seed (overrides the parameters file)')
    parser.add_argument('--no-plot', action='store_true', help='Skip plot generation')

    args = parser.parse_args()

    pipeline = EvaluationPipeline(
        config_path=args.config,
        results_dir=args.results_dir,
        time_step=args.time_step,
        rotation_noise_deg=args.rotation_noise,
        translation_noise=args.translation_noise,
        mislabel_rate=args.mislabel_rate,
        seed=args.seed,
    )

    try:
        pipeline.setup()
        results = pipeline.run(
            duration=args.duration,
            max_trials=args.trials,
            create_plot=not args.no_plot,
        )
    except EvaluationPlatformError as exc:
        raise SystemExit(f"[ERROR] {exc}")

    print(f"\n[INFO] Logs written to {results['log_dir']}")
    return results


if __name__ == "__main__":
    main()
