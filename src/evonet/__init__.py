"""
evonet - Neuroevolution of fixed-topology feedforward networks.

This package evolves simple feedforward neural networks with a generational
genetic algorithm: a population of networks is evaluated in an environment,
the best performers are kept, cloned and randomly mutated, and the cycle repeats.

Main components:
- activations: Activation functions for the neurons
- phenotype:   Networks (layers, neurons, weights) and the agents they power
- evolution:   Cloning and mutation operators
- pool:        Population management, selection and promotion
- run:         Configuration and the tick-driven trial driver

Example:
    >>> from evonet import Config, Trial
    >>> config = Config("config.ini")
    >>> class MyTrial(Trial):
    ...     def _reset_agent(self, agent): ...
    ...     def _observe(self, agent): ...
    ...     def _apply_output(self, agent, outputs, dt): ...
    >>> trial = MyTrial(config)
    >>> trial.run(dt=0.02)
"""

__version__ = "0.1.0"

from evonet.exceptions          import (EvonetError, InvalidTopology, MalformedNetworkData,
                                        EmptyPopulationSave, ConfigError)
from evonet.phenotype.network   import Network, Layer, Neuron, WeightTable
from evonet.phenotype.agent     import Agent
from evonet.evolution.operators import EvolutionOperator, clone, mutate
from evonet.pool.population     import Population, GenerationSummary
from evonet.run.config          import Config
from evonet.run.trial           import Trial
from evonet.run.triggers        import FitnessTrigger

__all__ = [
    "Network",
    "Layer",
    "Neuron",
    "WeightTable",
    "Agent",
    "EvolutionOperator",
    "clone",
    "mutate",
    "Population",
    "GenerationSummary",
    "Config",
    "Trial",
    "FitnessTrigger",
    "EvonetError",
    "InvalidTopology",
    "MalformedNetworkData",
    "EmptyPopulationSave",
    "ConfigError",
]
