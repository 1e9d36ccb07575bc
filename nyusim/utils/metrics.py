"""
Trace Collection for Channel Simulations

This module records time traces of the metrics computed by the example
engine (SNR, received power, channel state) and exports them for analysis.
"""

import numpy as np
import pandas as pd
import logging
import json
import os
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, asdict
from collections import defaultdict

logger = logging.getLogger(__name__)


@dataclass
class TraceSample:
    """One sample of a link trace"""
    timestamp: float
    metric: str
    value: float
    tx_id: int
    rx_id: int
    distance: float
    los: Optional[bool] = None


@dataclass
class DropEvent:
    """Channel matrix regeneration observed by the engine"""
    timestamp: float
    tx_id: int
    rx_id: int
    generation_time: float
    num_clusters: int


class TraceCollector:
    """
    Collects metric samples over simulation time
    """

    def __init__(self):
        self.samples: List[TraceSample] = []
        self.drop_events: List[DropEvent] = []
        self.time_series = defaultdict(list)  # metric_name -> [(time, value), ...]
        self.counters = {
            'total_samples': 0,
            'los_samples': 0,
            'channel_drops': 0
        }

        logger.info("Trace Collector initialized")

    def record(self, timestamp: float, metric: str, value: float, tx_id: int = 0,
               rx_id: int = 1, distance: float = 0.0, los: Optional[bool] = None):
        """Record one metric sample"""
        sample = TraceSample(timestamp=timestamp, metric=metric, value=float(value),
                             tx_id=tx_id, rx_id=rx_id, distance=distance, los=los)
        self.samples.append(sample)
        self.time_series[metric].append((timestamp, float(value)))

        self.counters['total_samples'] += 1
        if los:
            self.counters['los_samples'] += 1

    def record_drop(self, timestamp: float, tx_id: int, rx_id: int,
                    generation_time: float, num_clusters: int):
        """Record a new channel realization"""
        self.drop_events.append(DropEvent(timestamp, tx_id, rx_id, generation_time, num_clusters))
        self.counters['channel_drops'] += 1

    def to_dataframe(self, metric: Optional[str] = None) -> pd.DataFrame:
        """Samples as a DataFrame, optionally restricted to one metric"""
        columns = [f for f in TraceSample.__dataclass_fields__]
        df = pd.DataFrame([asdict(s) for s in self.samples], columns=columns)
        if metric is not None:
            df = df[df['metric'] == metric].reset_index(drop=True)
        return df

    def get_metric_statistics(self, metric: str) -> Dict[str, float]:
        """Calculate statistics of one metric over its finite samples"""
        values = [v for _, v in self.time_series.get(metric, [])]
        finite = [v for v in values if np.isfinite(v)]
        if not finite:
            return {}

        return {
            'mean': float(np.mean(finite)),
            'median': float(np.median(finite)),
            'min': float(np.min(finite)),
            'max': float(np.max(finite)),
            'std': float(np.std(finite)),
            'percentile_5': float(np.percentile(finite, 5)),
            'percentile_95': float(np.percentile(finite, 95)),
            'samples': len(values)
        }

    def get_summary(self) -> Dict[str, Any]:
        """Get trace summary"""
        all_times = [s.timestamp for s in self.samples]
        return {
            'simulation_duration': max(all_times, default=0.0),
            'counters': self.counters.copy(),
            'metrics': {name: self.get_metric_statistics(name) for name in self.time_series},
            'los_ratio': (self.counters['los_samples'] / self.counters['total_samples']
                          if self.counters['total_samples'] else 0.0)
        }

    def write_trace(self, filename: str, metric: str):
        """
        Write a whitespace-separated "time value" trace file.

        Args:
            filename: Output path
            metric: Metric to write
        """
        directory = os.path.dirname(filename)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(filename, 'w') as f:
            for timestamp, value in self.time_series.get(metric, []):
                f.write(f"{timestamp:.6f} {value:.6f}\n")

        logger.info(f"Trace of {metric} written to {filename}")

    def export_to_csv(self, output_dir: str = "results"):
        """Export samples and drop events to CSV files"""
        os.makedirs(output_dir, exist_ok=True)

        if self.samples:
            self.to_dataframe().to_csv(f"{output_dir}/trace_samples.csv", index=False)

        if self.drop_events:
            drops_df = pd.DataFrame([asdict(d) for d in self.drop_events])
            drops_df.to_csv(f"{output_dir}/channel_drops.csv", index=False)

        for metric_name, data in self.time_series.items():
            if data:
                ts_df = pd.DataFrame(data, columns=['timestamp', metric_name])
                ts_df.to_csv(f"{output_dir}/timeseries_{metric_name}.csv", index=False)

        logger.info(f"Traces exported to {output_dir}/")

    def save_summary_json(self, filename: str = "simulation_summary.json"):
        """Save summary to JSON file"""
        summary = self.get_summary()

        with open(filename, 'w') as f:
            json.dump(summary, f, indent=2, default=str)

        logger.info(f"Summary saved to {filename}")

    def reset(self):
        """Reset all collected traces"""
        self.samples.clear()
        self.drop_events.clear()
        self.time_series.clear()
        self.counters = {
            'total_samples': 0,
            'los_samples': 0,
            'channel_drops': 0
        }

        logger.info("Trace collector reset")
