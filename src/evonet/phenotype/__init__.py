"""
Phenotype Package

This package implements the executable side of evonet: the feedforward
neural networks and the agents they power.

Modules:
    network: Neuron, Layer, WeightTable and Network classes
    agent:   Agent, a network with a fitness and a trial lifecycle

Exported Classes:
    Agent:       A network together with its fitness and trial state
    Layer:       An ordered sequence of neurons
    Network:     A fixed-topology feedforward neural network
    Neuron:      A node with a potential and a bias
    WeightTable: The weights between adjacent layers
"""

from evonet.phenotype.agent   import Agent
from evonet.phenotype.network import Layer, Network, Neuron, WeightTable

__all__ = ['Agent',
           'Layer',
           'Network',
           'Neuron',
           'WeightTable']
