"""
Evolution Operators Module

This module implements the operators that turn an existing network into a new
candidate: cloning and random mutation of biases and weights. The topology of
a network never changes.

Functions:
    clone:  Deep copy a network
    mutate: Randomly perturb the biases and weights of a network, in place

Classes:
    EvolutionOperator: Produces mutated offspring using fixed mutation parameters
"""

from typing import TYPE_CHECKING

from evonet.phenotype.network import Network

if TYPE_CHECKING:
    from evonet.run.config import Config

def clone(network: Network) -> Network:
    """
    Create a fully independent copy of 'network'.
    """
    return network.clone()

def mutate(network: Network, percent_chance: float, amount: float) -> Network:
    """
    Mutate 'network' in place and return it.

    Each bias and weight is mutated independently with probability
    'percent_chance' percent, by adding a value drawn uniformly from
    [-amount, amount]. There is no clamping.

    Parameters:
        network:        The network to mutate
        percent_chance: Probability of mutating each parameter, in percent (0-100)
        amount:         Maximum absolute change of a mutated parameter

    Returns:
        the (same) mutated network
    """
    network.mutate(percent_chance, amount)
    return network

class EvolutionOperator:
    """
    Creates offspring networks by cloning a source network and mutating the clone.

    The source network is never modified, so a survivor may be used as the source
    of several offspring during the same refill.

    Public Attributes:
        mutation_chance: Probability of mutating each parameter, in percent (0-100)
        mutation_amount: Maximum absolute change of a mutated parameter

    Public Methods:
        offspring(source): Return a mutated clone of 'source'
    """

    def __init__(self, mutation_chance: float, mutation_amount: float):
        if not 0.0 <= mutation_chance <= 100.0:
            raise ValueError(f"mutation_chance must be in [0, 100], got {mutation_chance}")
        if mutation_amount < 0.0:
            raise ValueError(f"mutation_amount must be non-negative, got {mutation_amount}")

        self.mutation_chance: float = mutation_chance
        self.mutation_amount: float = mutation_amount

    @classmethod
    def from_config(cls, config: 'Config') -> 'EvolutionOperator':
        return cls(config.mutation_chance, config.mutation_amount)

    def offspring(self, source: Network) -> Network:
        """
        Clone 'source', then mutate the clone.
        """
        return mutate(clone(source), self.mutation_chance, self.mutation_amount)

    def __repr__(self):
        return (f"EvolutionOperator(mutation_chance={self.mutation_chance}, "
                f"mutation_amount={self.mutation_amount})")
