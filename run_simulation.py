#!/usr/bin/env python3
"""
Main simulation runner for the NYUSIM channel simulation framework.

This script runs link-level channel simulations with configurable scenarios
and writes traces, summaries and plots.

Usage:
    python run_simulation.py --config scenarios/umi_snr_28ghz.json
    python run_simulation.py --scenario uma_mobile_rx_power --results-dir results/uma
    python run_simulation.py --help
"""

import argparse
import logging
import sys
from pathlib import Path
import traceback

from nyusim.core.simulation_engine import SimulationEngine
from nyusim.utils.config_parser import ConfigParser
from nyusim.utils.visualization import TraceVisualizer

SCENARIOS = sorted(ConfigParser.get_scenario_configs())


def parse_arguments():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='NYUSIM channel simulation framework',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --config scenarios/umi_snr_28ghz.json
  %(prog)s --scenario inh_office_60ghz
  %(prog)s --create-scenario umi_snr_28ghz --config-output scenarios/my_scenario.yaml
        """
    )

    # Main execution modes
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument('--config', '-c', type=str,
                       help='Configuration file path (JSON or YAML)')
    group.add_argument('--scenario', '-s', type=str, choices=SCENARIOS,
                       help='Use predefined scenario')
    group.add_argument('--create-scenario', type=str, choices=SCENARIOS,
                       help='Create a new scenario configuration file')

    # Optional parameters
    parser.add_argument('--results-dir', type=str,
                        help='Directory for results and visualizations (overrides config)')
    parser.add_argument('--config-output', type=str,
                        help='Output path for created scenario (used with --create-scenario)')
    parser.add_argument('--seed', type=int, help='Random seed (overrides config)')
    parser.add_argument('--run', type=int, help='Run number (overrides config)')
    parser.add_argument('--no-visualization', action='store_true',
                        help='Disable visualization generation')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose output')

    return parser.parse_args()


def apply_overrides(config, args):
    """Apply command line overrides to a loaded configuration."""
    if args.results_dir:
        config.output_directory = args.results_dir
    if args.seed is not None:
        config.channel.seed = args.seed
    if args.run is not None:
        config.channel.run = args.run
    if args.no_visualization:
        config.enable_plots = False
    return config


def run_simulation_with_config(config, args):
    """Run simulation with given configuration."""
    logging.basicConfig(level=logging.DEBUG if args.verbose else getattr(logging, config.log_level),
                        format='%(asctime)s %(name)s %(levelname)s: %(message)s')
    Path(config.output_directory).mkdir(parents=True, exist_ok=True)

    print("\n" + "=" * 60)
    print("NYUSIM CHANNEL SIMULATION")
    print("=" * 60)

    channel = config.channel
    if args.verbose:
        print("Configuration:")
        print(f"  Scenario: {channel.scenario.value}")
        print(f"  Frequency: {channel.frequency_ghz:.3f} GHz")
        print(f"  Trace: {config.trace}")
        print(f"  Simulation time: {config.simulation_time}s (resolution {config.time_resolution}s)")
        print(f"  Seed/run: {channel.seed}/{channel.run}")
        print()

    try:
        engine = SimulationEngine(config)
        results = engine.run()
        engine.save_results(results)
        engine.metrics.export_to_csv(config.output_directory)
        engine.metrics.save_summary_json(str(Path(config.output_directory) / "simulation_summary.json"))

        print("\n" + "-" * 50)
        print("SIMULATION COMPLETED SUCCESSFULLY")
        print("-" * 50)

        stats = results['metrics']['metrics'].get(config.trace, {})
        if stats:
            print(f"Mean {config.trace}: {stats['mean']:.2f}")
            print(f"Min/max {config.trace}: {stats['min']:.2f} / {stats['max']:.2f}")
        print(f"LOS ratio: {results['metrics']['los_ratio']:.3f}")
        print(f"Channel drops: {results['link_summary']['channel_drops']}")

        if config.enable_plots:
            print("\nGenerating visualizations...")
            try:
                TraceVisualizer().create_report(engine.metrics, config.output_directory)
            except Exception as e:
                print(f"Warning: Error generating visualizations: {e}")
                if args.verbose:
                    traceback.print_exc()

        print("\n" + "=" * 60)
        return True

    except KeyboardInterrupt:
        print("\nSimulation interrupted by user")
        return False
    except Exception as e:
        print(f"Error running simulation: {e}")
        if args.verbose:
            traceback.print_exc()
        return False


def create_scenario_config(scenario: str, args):
    """Write a predefined scenario to a configuration file."""
    output_file = args.config_output or f"scenarios/{scenario}.json"
    Path(output_file).parent.mkdir(parents=True, exist_ok=True)

    print(f"Creating {scenario} scenario configuration...")

    try:
        ConfigParser.create_default_config(output_file, scenario)
        print(f"Configuration created: {output_file}")
        print("You can now modify this file and run it with:")
        print(f"  python run_simulation.py --config {output_file}")
        return True
    except Exception as e:
        print(f"Error creating configuration: {e}")
        return False


def main():
    """Main entry point."""
    args = parse_arguments()

    if args.create_scenario:
        success = create_scenario_config(args.create_scenario, args)
    else:
        try:
            if args.config:
                print(f"Loading configuration from: {args.config}")
                config = ConfigParser.load_config(args.config)
            else:
                print(f"Using predefined scenario: {args.scenario}")
                config = ConfigParser.from_dict(ConfigParser.get_scenario_configs()[args.scenario])
        except Exception as e:
            print(f"Error loading configuration: {e}")
            sys.exit(1)
        success = run_simulation_with_config(apply_overrides(config, args), args)

    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()
