#!/usr/bin/env python3
"""
Basic Channel Simulation Example

This script computes the SNR trace between a base station and a static
receiver with 2x2 arrays steered at each other.
"""

import sys
import os
import logging

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from nyusim.core.simulation_engine import SimulationEngine
from nyusim.core.config import ChannelConfig, Scenario, SimulationConfig


def main():
    """Run basic SNR trace example"""

    # Setup logging
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    logger.info("Starting basic channel simulation example")

    # Create configuration
    config = SimulationConfig(
        simulation_time=1.0,
        time_resolution=0.01,
        trace="snr",
        tx_position=(0.0, 0.0, 10.0),
        rx_position=(50.0, 10.0, 1.6),
        tx_power=30.0,
        output_directory="examples/results",
        channel=ChannelConfig(
            scenario=Scenario.UMI,
            frequency=28e9,
            channel_update_period=0.1,
            seed=1,
            run=1
        )
    )

    # Create and run simulation
    engine = SimulationEngine(config)
    results = engine.run()

    # Print results summary
    logger.info("Simulation Results:")
    snr = results['metrics']['metrics'].get('snr', {})
    if snr:
        logger.info(f"  Mean SNR: {snr['mean']:.2f} dB")
        logger.info(f"  SNR range: {snr['min']:.2f} to {snr['max']:.2f} dB")
    logger.info(f"  LOS ratio: {results['metrics']['los_ratio']:.2f}")
    logger.info(f"  Channel drops: {results['link_summary']['channel_drops']}")

    engine.save_results(results)
    logger.info(f"Results saved to {config.output_directory}")


if __name__ == "__main__":
    main()
