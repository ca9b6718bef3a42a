#!/usr/bin/env python3
"""
Utility script to run the runner example.

Usage:
    python scripts/run_example.py
    python scripts/run_example.py --generations 50 --save best.json
    python scripts/run_example.py --load best.json --generations 10
"""

import sys
import argparse
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from evonet import Config, EmptyPopulationSave
from examples.trial_runner import Trial_Runner


def main():
    parser = argparse.ArgumentParser(description='Evolve agents on the runner example')
    parser.add_argument('--config', default='examples/configs/config_runner.ini',
                        help='INI configuration file')
    parser.add_argument('--generations', type=int, default=None,
                        help='Number of generations (default: from the configuration)')
    parser.add_argument('--dt', type=float, default=0.02,
                        help='Length of a simulation time step')
    parser.add_argument('--save', default=None,
                        help='Save the best network of the last generation to this file')
    parser.add_argument('--load', default=None,
                        help='Start from copies of a previously saved network')

    args = parser.parse_args()

    config = Config(args.config)
    generations = args.generations if args.generations is not None else config.max_number_generations

    trial = Trial_Runner(config)
    trial.start()
    if args.load:
        trial.load(args.load)

    population = trial.population
    while population.generation < generations:
        # arm the save before the last generation ends
        if args.save and population.generation == generations - 1 and not population.save_pending:
            try:
                population.request_save(args.save)
            except EmptyPopulationSave as exc:
                logger.debug(f"Save deferred: {exc}")

        trial.tick(args.dt)
        if not population.active:
            trial.restart()

    trial.report()


if __name__ == '__main__':
    main()
