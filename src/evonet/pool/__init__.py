"""
Pool Package

This package manages the population of agents and the generational cycle of
evaluation, selection, promotion and refill.

Modules:
    population: Population and GenerationSummary

Exported Classes:
    Population:        Manages the agents and the selection/refill cycle
    GenerationSummary: Statistics about one completed generation
"""

from evonet.pool.population import GenerationSummary, Population

__all__ = [
    'GenerationSummary',
    'Population',
]
