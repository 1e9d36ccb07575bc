"""
Visualization utilities for channel simulations.

This module plots the traces recorded by the TraceCollector.
"""

import os
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from typing import Optional
import seaborn as sns

from .metrics import TraceCollector

_LABELS = {
    'snr': 'SNR (dB)',
    'rx_power': 'Received power (dBm)'
}


class TraceVisualizer:
    """Plots of link traces and their distributions."""

    def __init__(self, style: str = 'seaborn-v0_8'):
        try:
            plt.style.use(style)
        except OSError:
            # Fallback to default if seaborn style not available
            plt.style.use('default')

    def create_report(self, collector: TraceCollector, output_dir: str = "./results/"):
        """Create all trace plots for the recorded metrics."""
        os.makedirs(output_dir, exist_ok=True)
        for metric in collector.time_series:
            self.plot_trace(collector, metric, output_dir)
            self.plot_distribution(collector, metric, output_dir)
        if collector.drop_events:
            self.plot_channel_drops(collector, output_dir)

        print(f"Trace plots created in {output_dir}")

    def plot_trace(self, collector: TraceCollector, metric: str, output_dir: str) -> Optional[str]:
        """Metric over time, with LOS samples highlighted."""
        df = collector.to_dataframe(metric)
        if df.empty:
            return None

        fig, ax = plt.subplots(figsize=(12, 5))
        ax.plot(df['timestamp'], df['value'], linewidth=1.5, label=metric)
        los = df[df['los'] == True]  # noqa: E712
        if not los.empty:
            ax.scatter(los['timestamp'], los['value'], s=10, color='green', label='LOS', zorder=3)
        ax.set_title(f'{_LABELS.get(metric, metric)} over time', fontsize=14, fontweight='bold')
        ax.set_xlabel('Time (s)')
        ax.set_ylabel(_LABELS.get(metric, metric))
        ax.legend()
        ax.grid(True, alpha=0.3)

        filename = os.path.join(output_dir, f"{metric}_trace.png")
        plt.savefig(filename, dpi=150, bbox_inches='tight')
        plt.close(fig)
        return filename

    def plot_distribution(self, collector: TraceCollector, metric: str,
                          output_dir: str) -> Optional[str]:
        """Histogram and empirical CDF of a metric."""
        df = collector.to_dataframe(metric)
        df = df[np.isfinite(df['value'])]
        if df.empty:
            return None

        fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(14, 5))
        sns.histplot(df['value'], bins=30, kde=len(df) > 1, ax=ax1)
        ax1.axvline(df['value'].mean(), color='red', linestyle='--',
                    label=f"Mean: {df['value'].mean():.1f}")
        ax1.set_title('Distribution')
        ax1.set_xlabel(_LABELS.get(metric, metric))
        ax1.legend()

        sns.ecdfplot(df['value'], ax=ax2)
        ax2.set_title('Empirical CDF')
        ax2.set_xlabel(_LABELS.get(metric, metric))
        ax2.grid(True, alpha=0.3)

        plt.suptitle(f'{metric} statistics', fontsize=16, fontweight='bold')
        plt.tight_layout()
        filename = os.path.join(output_dir, f"{metric}_distribution.png")
        plt.savefig(filename, dpi=150, bbox_inches='tight')
        plt.close(fig)
        return filename

    def plot_channel_drops(self, collector: TraceCollector, output_dir: str) -> str:
        """Number of clusters of each channel realization."""
        drops = pd.DataFrame([vars(d) for d in collector.drop_events])

        fig, ax = plt.subplots(figsize=(10, 4))
        sns.scatterplot(data=drops, x='generation_time', y='num_clusters', ax=ax)
        ax.set_title('Channel realizations')
        ax.set_xlabel('Generation time (s)')
        ax.set_ylabel('Clusters')
        ax.grid(True, alpha=0.3)

        filename = os.path.join(output_dir, "channel_drops.png")
        plt.savefig(filename, dpi=150, bbox_inches='tight')
        plt.close(fig)
        return filename
