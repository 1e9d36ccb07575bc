#!/usr/bin/env python3
"""
Mobile Receiver Example

This script records the received power of a receiver driving away from an
urban macro base station, with the link condition redrawn every second.
"""

import sys
import os
import logging

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from nyusim.core.simulation_engine import SimulationEngine
from nyusim.core.config import ChannelConfig, Scenario, SimulationConfig
from nyusim.utils.visualization import TraceVisualizer


def main():
    """Run mobile received power example"""

    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    config = SimulationConfig(
        simulation_time=20.0,
        time_resolution=0.1,
        trace="rx_power",
        tx_position=(0.0, 0.0, 25.0),
        rx_position=(20.0, 0.0, 1.5),
        rx_velocity=(15.0, 0.0, 0.0),
        tx_power=46.0,
        output_directory="examples/results/mobile",
        trace_file="rx-power-trace.txt",
        channel=ChannelConfig(
            scenario=Scenario.UMA,
            frequency=3.5e9,
            condition_update_period=1.0
        )
    )

    engine = SimulationEngine(config)
    results = engine.run()

    stats = results['metrics']['metrics'].get('rx_power', {})
    if stats:
        logger.info(f"Received power from {stats['max']:.1f} dBm down to {stats['min']:.1f} dBm")
    logger.info(f"Final receiver position: {results['link_summary']['rx_position']}")

    engine.save_results(results)
    TraceVisualizer().create_report(engine.metrics, config.output_directory)


if __name__ == "__main__":
    main()
