"""
Activations Package

This package provides the activation functions applied by network neurons.

Exported:
    activations:        Dictionary mapping activation function names to functions
    DEFAULT_ACTIVATION: Name of the activation used by default ('tanh')
    get_activation:     Look up an activation function by name
    Individual activation functions: identity_activation, clamped_activation,
                                     relu_activation, sigmoid_activation, tanh_activation
"""

from evonet.activations.basic_activations import (
    activations,
    DEFAULT_ACTIVATION,
    get_activation,
    identity_activation,
    clamped_activation,
    relu_activation,
    sigmoid_activation,
    tanh_activation
)

__all__ = [
    'activations',
    'DEFAULT_ACTIVATION',
    'get_activation',
    'identity_activation',
    'clamped_activation',
    'relu_activation',
    'sigmoid_activation',
    'tanh_activation'
]
