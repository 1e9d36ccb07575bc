"""
Trace Simulation Engine for Channel Models

This module drives the channel models over simulation time with SimPy and
records SNR or received power traces between a transmitter and a receiver.
"""

import simpy
import logging
import json
import os
from typing import Dict, Any, Optional
from dataclasses import asdict

from ..channel.condition import ConditionModel
from ..channel.matrix import ChannelMatrixGenerator
from ..channel.pathloss import PathLossModel
from ..mobility.antenna import UniformPlanarArray, dft_beamforming
from ..mobility.node import MobilityType, NodeMobility, Vector
from ..spectrum.applier import SpectrumApplier
from ..spectrum.psd import average_snr_db, create_noise_psd, create_tx_psd
from ..utils.metrics import TraceCollector
from .config import SimulationConfig
from .random import RandomStreams

logger = logging.getLogger(__name__)

TX_NODE_ID = 0
RX_NODE_ID = 1


class SimulationEngine:
    """
    Simulation engine coordinating the channel models and the trace collection
    """

    def __init__(self, config: SimulationConfig):
        config.validate()
        self.config = config
        self.env = simpy.Environment()
        self.metrics = TraceCollector()

        channel = config.channel
        clock = lambda: self.env.now
        self.streams = RandomStreams(channel.seed, channel.run)
        self.condition_model = ConditionModel(channel, self.streams)
        self.pathloss_model = PathLossModel(channel, self.condition_model, self.streams, clock)
        self.matrix_generator = ChannelMatrixGenerator(channel, self.condition_model,
                                                       self.streams, clock)
        self.spectrum_applier = SpectrumApplier(self.matrix_generator, clock)

        self.tx_node = self._create_node(TX_NODE_ID, config.tx_position, config.tx_velocity)
        self.rx_node = self._create_node(RX_NODE_ID, config.rx_position, config.rx_velocity)
        self.tx_antenna = UniformPlanarArray(config.antenna_rows, config.antenna_columns)
        self.rx_antenna = UniformPlanarArray(config.antenna_rows, config.antenna_columns)

        self.running = False
        self._last_generation_time: Optional[float] = None

        logger.info(f"Simulation engine initialized: {channel.scenario.value} at "
                    f"{channel.frequency_ghz:.3f} GHz, {config.trace} trace")

    @staticmethod
    def _create_node(node_id: int, position, velocity) -> NodeMobility:
        velocity = Vector.from_sequence(velocity)
        mobility_type = (MobilityType.CONSTANT_POSITION if velocity.norm == 0
                         else MobilityType.CONSTANT_VELOCITY)
        return NodeMobility(node_id, Vector.from_sequence(position), velocity, mobility_type)

    def steer_beams(self):
        """Point both arrays at each other with DFT beamforming"""
        dft_beamforming(self.tx_node, self.tx_antenna, self.rx_node)
        dft_beamforming(self.rx_node, self.rx_antenna, self.tx_node)

    def compute_snr(self) -> float:
        """SNR in dB of the tx->rx link at the current simulation time"""
        config = self.config
        frequency = config.channel.frequency
        now = self.env.now

        tx_psd = create_tx_psd(frequency, config.tx_power, config.num_resource_blocks,
                               config.resource_block_bandwidth, config.active_resource_blocks)
        noise_psd = create_noise_psd(frequency, config.noise_figure, config.num_resource_blocks,
                                     config.resource_block_bandwidth)

        rx_power = self.pathloss_model.calc_rx_power(config.tx_power, self.tx_node, self.rx_node, now)
        rx_psd = tx_psd.scaled(10 ** ((rx_power - config.tx_power) / 10))
        rx_psd = self.spectrum_applier.calc_rx_power_spectral_density(
            rx_psd, self.tx_node, self.rx_node, self.tx_antenna, self.rx_antenna, now)
        self._track_drops()
        return average_snr_db(rx_psd, noise_psd)

    def compute_rx_power(self) -> float:
        """Received power in dBm of the tx->rx link at the current simulation time"""
        return self.pathloss_model.calc_rx_power(self.config.tx_power, self.tx_node,
                                                 self.rx_node, self.env.now)

    def _track_drops(self):
        matrix = self.matrix_generator.get_matrix(self.tx_node, self.rx_node,
                                                  self.tx_antenna, self.rx_antenna, self.env.now)
        if matrix.generation_time != self._last_generation_time:
            self._last_generation_time = matrix.generation_time
            self.metrics.record_drop(self.env.now, TX_NODE_ID, RX_NODE_ID,
                                     matrix.generation_time, matrix.cluster_count)

    def _trace_process(self):
        """Process sampling the configured metric every time_resolution"""
        resolution = self.config.time_resolution

        while True:
            if self.config.trace == "snr":
                if self.config.track_beams or self.env.now == 0:
                    self.steer_beams()
                value = self.compute_snr()
            else:
                value = self.compute_rx_power()

            condition = self.condition_model.get_condition(self.tx_node, self.rx_node, self.env.now)
            self.metrics.record(self.env.now, self.config.trace, value, TX_NODE_ID, RX_NODE_ID,
                                self.tx_node.distance_to(self.rx_node), condition.is_los)

            yield self.env.timeout(resolution)
            self.tx_node.update_position(resolution)
            self.rx_node.update_position(resolution)

    def run(self) -> Dict[str, Any]:
        """
        Run the simulation

        Returns:
            Dictionary containing configuration and trace summary
        """
        logger.info(f"Starting simulation for {self.config.simulation_time} seconds")

        self.env.process(self._trace_process())

        self.running = True
        try:
            self.env.run(until=self.config.simulation_time)
        except Exception as e:
            logger.error(f"Simulation error: {e}")
            raise
        finally:
            self.running = False

        logger.info("Simulation completed")
        return self._collect_results()

    def _collect_results(self) -> Dict[str, Any]:
        """Collect and compile simulation results"""
        return {
            'config': asdict(self.config),
            'metrics': self.metrics.get_summary(),
            'link_summary': {
                'tx_position': self.tx_node.get_position().as_tuple(),
                'rx_position': self.rx_node.get_position().as_tuple(),
                'channel_drops': len(self.metrics.drop_events)
            }
        }

    def save_results(self, results: Dict[str, Any], filename: str = None):
        """Save simulation results and the trace file"""
        os.makedirs(self.config.output_directory, exist_ok=True)
        if filename is None:
            filename = f"simulation_results_{self.config.trace}.json"

        filepath = os.path.join(self.config.output_directory, filename)
        with open(filepath, 'w') as f:
            json.dump(results, f, indent=2, default=str)
        logger.info(f"Results saved to {filepath}")

        trace_file = self.config.trace_file or f"{self.config.trace}-trace.txt"
        self.metrics.write_trace(os.path.join(self.config.output_directory, trace_file),
                                 self.config.trace)

