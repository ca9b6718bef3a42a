"""
Evolution Package

This package contains the operators producing new candidate networks.

Modules:
    operators: clone, mutate and the EvolutionOperator class

Exported:
    EvolutionOperator: Produces mutated clones with fixed mutation parameters
    clone:             Deep copy a network
    mutate:            Randomly perturb a network in place
"""

from evonet.evolution.operators import EvolutionOperator, clone, mutate

__all__ = ['EvolutionOperator',
           'clone',
           'mutate']
