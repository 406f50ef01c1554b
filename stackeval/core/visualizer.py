"""
Visualization of evaluation results.
High-level component for saving result tables and error plots.
"""

from pathlib import Path

import numpy as np
import matplotlib
matplotlib.use("Agg")  # files only, no display needed
import matplotlib.pyplot as plt


class Visualizer:
    """
    Creates plots and tables from the scored estimates of a run.
    """

    def __init__(self, output_dir):
        """
        Initialize visualizer.

        Args:
            output_dir: Directory to save output files (plots, CSVs)
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def save_results_table(self, results_df, filename="evaluation_results.csv"):
        """
        Save the per-estimate results table.

        Returns:
            Path: Path to saved CSV file
        """
        csv_path = self.output_dir / filename
        results_df.to_csv(csv_path, index=False)
        print(f"[INFO] Evaluation results saved to: {csv_path}")
        return csv_path

    def plot_error_distribution(self, results_df, rotation_threshold=None,
                                translation_threshold=None,
                                output_filename="error_distribution.png", bins=30):
        """
        Plot histograms of rotation and translation errors split by outcome.

        Args:
            results_df: DataFrame from PoseEvaluator.create_results_dataframe()
            rotation_threshold: Optional rotation threshold (degrees) drawn as a line
            translation_threshold: Optional translation threshold (metres) drawn as a line
            output_filename: Name of the saved figure
            bins: Number of histogram bins

        Returns:
            Path: Path to saved figure
        """
        fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 4.5))

        correct = results_df['correct'].astype(bool)
        success = results_df[correct]
        failure = results_df[~correct]

        rot_bins = np.linspace(0, 180, bins + 1)
        ax1.hist(success['rotation_error'], bins=rot_bins, color="tab:green", alpha=0.7, label="success")
        ax1.hist(failure['rotation_error'], bins=rot_bins, color="tab:red", alpha=0.7, label="fail")
        if rotation_threshold is not None:
            ax1.axvline(rotation_threshold, color="k", linestyle="--", label="threshold")
        ax1.set_xlabel("Rotation error (deg)")
        ax1.set_ylabel("Estimates")
        ax1.set_title("Rotation error")
        ax1.legend()

        # millimetres read better than metres at this scale
        trans_mm = 1000 * results_df['translation_error'].to_numpy(dtype=np.float64)
        upper = max(float(trans_mm.max()) if trans_mm.size else 1.0, 1.0)
        trans_bins = np.linspace(0, upper, bins + 1)
        ax2.hist(1000 * success['translation_error'], bins=trans_bins, color="tab:green", alpha=0.7, label="success")
        ax2.hist(1000 * failure['translation_error'], bins=trans_bins, color="tab:red", alpha=0.7, label="fail")
        if translation_threshold is not None:
            ax2.axvline(1000 * translation_threshold, color="k", linestyle="--", label="threshold")
        ax2.set_xlabel("Translation error (mm)")
        ax2.set_title("Translation error")
        ax2.legend()

        plt.tight_layout()

        output_path = self.output_dir / output_filename
        fig.savefig(output_path, dpi=120)
        plt.close(fig)

        print(f"[INFO] Error distribution saved to: {output_path}")
        return output_path
