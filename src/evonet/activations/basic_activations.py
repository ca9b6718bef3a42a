import numpy as np

def identity_activation(z):
    return z

def clamped_activation(z):
    return np.clip(z, -1.0, 1.0)

def relu_activation(z):
    return np.maximum(0.0, z)

def sigmoid_activation(z):
    Z = np.clip(z, -100, 100)   # to prevent under/overflow when calculating exp
    return 1.0 / (1.0 + np.exp(-Z))

def tanh_activation(z):
    return np.tanh(z)

def sin_activation(z):
    return np.sin(z)

def abs_activation(z):
    return np.abs(z)

activations = {
    "identity": identity_activation,
    "clamped" : clamped_activation,
    "relu"    : relu_activation,
    "sigmoid" : sigmoid_activation,
    "tanh"    : tanh_activation,
    "sin"     : sin_activation,
    "abs"     : abs_activation
    }

# the bounding nonlinearity used unless a network asks for another one
DEFAULT_ACTIVATION = "tanh"

def get_activation(name: str):
    """
    Look up an activation function by name.

    Raises:
        ValueError: if no activation function is registered under 'name'
    """
    try:
        return activations[name]
    except KeyError:
        raise ValueError(f"Unknown activation function '{name}'. "
                         f"Use one of: {', '.join(activations)}") from None
