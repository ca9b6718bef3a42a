"""
Network Module

This module implements the fixed-topology feedforward neural network evolved by
evonet. A network is an ordered sequence of layers of neurons; every neuron of a
layer is connected to every neuron of the next layer through a weight table.

Each non-input neuron computes its potential as:
    potential = activation(bias + sum_k weight_k * potential_k)
where the sum runs over the neurons of the previous layer. The first layer is the
input layer, the last one the output layer.

Classes:
    Neuron:      A node with a transient potential and a persistent bias
    Layer:       An ordered sequence of neurons
    WeightTable: The weights between every pair of adjacent layers
    Network:     A feedforward neural network built from the above
"""

import copy
import json
from pathlib import Path
from typing  import Any, Callable, Sequence

import graphviz      # type: ignore
import numpy as np

from evonet.activations import DEFAULT_ACTIVATION, get_activation
from evonet.exceptions  import InvalidTopology, MalformedNetworkData

# Biases and weights are initialized uniformly in [-INIT_RANGE, INIT_RANGE)
INIT_RANGE = 0.5

# Tag and version written into every saved network
FORMAT_TAG     = "evonet-network"
FORMAT_VERSION = 1

def _check_mutation_args(percent_chance: float, amount: float) -> None:
    if not 0.0 <= percent_chance <= 100.0:
        raise ValueError(f"percent_chance must be in [0, 100], got {percent_chance}")
    if amount < 0.0:
        raise ValueError(f"amount must be non-negative, got {amount}")

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)

class Neuron:
    """
    A single node of the network.

    Public Attributes:
        potential: The current activation value, recomputed on every forward pass
        bias:      Additive offset, persistent and subject to mutation
    """

    def __init__(self, bias: float | None = None, potential: float = 0.0):
        """
        Parameters:
            bias:      The neuron bias; drawn uniformly from [-0.5, 0.5) if None
            potential: The initial potential
        """
        if bias is None:
            bias = np.random.uniform(-INIT_RANGE, INIT_RANGE)
        self.bias     : float = float(bias)
        self.potential: float = float(potential)

    def mutate(self, percent_chance: float, amount: float) -> None:
        """
        With probability 'percent_chance' percent, add to the bias
        a random value drawn uniformly from [-amount, amount].
        """
        if np.random.uniform(0.0, 100.0) <= percent_chance:
            self.bias += float(np.random.uniform(-amount, amount))

    def __repr__(self):
        return f"Neuron(bias={self.bias:+.6f}, potential={self.potential:+.6f})"

class Layer:
    """
    An ordered sequence of neurons.

    Public Attributes:
        neurons: The neurons in this layer

    Public Methods:
        feed_forward(previous, weights, activation): Recompute the potential of every neuron
        mutate(percent_chance, amount):              Mutate the bias of every neuron
    """

    def __init__(self, neurons: list[Neuron]):
        self.neurons: list[Neuron] = neurons

    @classmethod
    def random(cls, size: int) -> 'Layer':
        """Create a layer of 'size' neurons with random biases."""
        return cls([Neuron() for _ in range(size)])

    @property
    def potentials(self) -> np.ndarray:
        return np.array([neuron.potential for neuron in self.neurons], dtype=np.float64)

    @property
    def biases(self) -> np.ndarray:
        return np.array([neuron.bias for neuron in self.neurons], dtype=np.float64)

    def feed_forward(self,
                     previous  : 'Layer',
                     weights   : np.ndarray,
                     activation: Callable[[np.ndarray], np.ndarray]) -> None:
        """
        Recompute the potential of each neuron in this layer from
        the potentials of the neurons in the previous layer.

        Parameters:
            previous:   The layer feeding into this one
            weights:    Array of shape (len(self), len(previous)); weights[j, k] is
                        the weight from neuron k of 'previous' to neuron j of this layer
            activation: The activation function
        """
        # weighted sum of the previous potentials, one entry per neuron in this layer
        values  = weights @ previous.potentials
        outputs = activation(values + self.biases)
        for neuron, potential in zip(self.neurons, outputs):
            neuron.potential = float(potential)

    def mutate(self, percent_chance: float, amount: float) -> None:
        for neuron in self.neurons:
            neuron.mutate(percent_chance, amount)

    def __len__(self):
        return len(self.neurons)

    def __repr__(self):
        return f"Layer(size={len(self.neurons)})"

class WeightTable:
    """
    The weights of all the connections in a network.

    Transition 'i' connects layer 'i' to layer 'i+1'; it is stored as an array of
    shape (size of layer i+1, size of layer i), so that entry [i][j][k] holds the
    weight from neuron 'k' of layer 'i' to neuron 'j' of layer 'i+1'
    (destination-major, source-minor).

    Public Methods:
        get_weight(transition, source, dest):        Weight of one connection
        set_weight(transition, source, dest, value): Overwrite the weight of one connection
        mutate(percent_chance, amount):              Randomly perturb the weights
        to_list():                                   Weights as nested [transition][dest][source] lists
    """

    def __init__(self, matrices: list[np.ndarray]):
        """
        Parameters:
            matrices: One (dest, source) array per layer transition
        """
        self._matrices: list[np.ndarray] = [np.array(m, dtype=np.float64) for m in matrices]

    @classmethod
    def random(cls, layer_sizes: Sequence[int]) -> 'WeightTable':
        """
        Create a table for the given layer sizes, with every weight
        drawn uniformly from [-0.5, 0.5).
        """
        matrices = [np.random.uniform(-INIT_RANGE, INIT_RANGE, size=(size_dest, size_src))
                    for size_src, size_dest in zip(layer_sizes[:-1], layer_sizes[1:])]
        return cls(matrices)

    @property
    def size(self) -> int:
        """Total number of weights in the table."""
        return sum(m.size for m in self._matrices)

    def shape(self, transition: int) -> tuple[int, int]:
        """The (dest, source) shape of the given transition."""
        return self._matrices[transition].shape

    def get_weight(self, transition: int, source: int, dest: int) -> float:
        return float(self._matrices[transition][dest, source])

    def set_weight(self, transition: int, source: int, dest: int, value: float) -> None:
        self._matrices[transition][dest, source] = value

    def mutate(self, percent_chance: float, amount: float) -> None:
        """
        Independently for every weight, with probability 'percent_chance' percent,
        add a random value drawn uniformly from [-amount, amount].
        """
        for matrix in self._matrices:
            selected = np.random.uniform(0.0, 100.0, size=matrix.shape) <= percent_chance
            deltas   = np.random.uniform(-amount, amount, size=matrix.shape)
            matrix[selected] += deltas[selected]

    def to_list(self) -> list[list[list[float]]]:
        return [m.tolist() for m in self._matrices]

    def __getitem__(self, transition: int) -> np.ndarray:
        return self._matrices[transition]

    def __len__(self):
        return len(self._matrices)

    def __repr__(self):
        return f"WeightTable(shapes={[m.shape for m in self._matrices]})"

class Network:
    """
    A fixed-topology, fully connected feedforward neural network.

    The layer sizes are fixed at construction. Learning happens by mutating the
    biases and weights of copies of the network ('clone()' then 'mutate()').

    Public Attributes:
        layers:  The layers, input layer first and output layer last
        weights: The WeightTable connecting adjacent layers

    Public Properties:
        layer_sizes:       Number of neurons in each layer
        activation:        Name of the activation function
        num_inputs:        Size of the input layer
        num_outputs:       Size of the output layer
        number_layers:     Number of layers
        number_neurons:    Total number of neurons
        number_weights:    Total number of weights
        number_parameters: Total number of mutable parameters (biases and weights)

    Public Methods:
        forward_pass(inputs):            Feed inputs through the network and return the outputs
        clone():                         Create a fully independent deep copy
        mutate(percent_chance, amount):  Randomly perturb biases and weights, in place
        get_weight(transition, src, dst): Weight from neuron 'src' of a layer to neuron 'dst' of the next
        to_dict() / from_dict(data):     Structured (JSON compatible) encoding of the full state
        save(path) / load(path):         Persist to / restore from a JSON file
        visualize(view):                 Draw the network with Graphviz
    """

    def __init__(self, layer_sizes: Sequence[int], activation: str = DEFAULT_ACTIVATION):
        """
        Create a network with randomly initialized biases and weights.

        Parameters:
            layer_sizes: Number of neurons in each layer, input layer first
            activation:  Name of the activation function (see 'evonet.activations')

        Raises:
            InvalidTopology: if there are fewer than 2 layers or a layer size is not a positive integer
        """
        sizes = self._validate_topology(layer_sizes)

        self._activation_name: str = activation
        self._activation = get_activation(activation)

        self.layers : list[Layer] = [Layer.random(size) for size in sizes]
        self.weights: WeightTable = WeightTable.random(sizes)

    @staticmethod
    def _validate_topology(layer_sizes: Sequence[int]) -> list[int]:
        try:
            sizes = list(layer_sizes)
        except TypeError:
            raise InvalidTopology(f"Layer sizes must be a sequence of integers, got {layer_sizes!r}") from None

        if len(sizes) < 2:
            raise InvalidTopology(f"A network needs at least 2 layers, got {len(sizes)}",
                                  context={"layer_sizes": sizes})
        for size in sizes:
            if isinstance(size, bool) or not isinstance(size, (int, np.integer)) or size <= 0:
                raise InvalidTopology(f"Layer sizes must be positive integers, got {sizes}",
                                      context={"layer_sizes": sizes})
        return [int(size) for size in sizes]

    @classmethod
    def _from_parts(cls, layers: list[Layer], weights: WeightTable, activation: str) -> 'Network':
        network = cls.__new__(cls)
        network._activation_name = activation
        network._activation      = get_activation(activation)
        network.layers           = layers
        network.weights          = weights
        return network

    @property
    def layer_sizes(self) -> tuple[int, ...]:
        return tuple(len(layer) for layer in self.layers)

    @property
    def activation(self) -> str:
        return self._activation_name

    @property
    def num_inputs(self) -> int:
        return len(self.layers[0])

    @property
    def num_outputs(self) -> int:
        return len(self.layers[-1])

    @property
    def number_layers(self) -> int:
        return len(self.layers)

    @property
    def number_neurons(self) -> int:
        return sum(len(layer) for layer in self.layers)

    @property
    def number_weights(self) -> int:
        return self.weights.size

    @property
    def number_parameters(self) -> int:
        return self.number_neurons + self.number_weights

    def forward_pass(self, inputs: Sequence[float]) -> list[float]:
        """
        Perform a complete forward pass through the network.

        The input values become the potentials of the input neurons. Extra
        input values are ignored; if fewer values than input neurons are
        given, the remaining input neurons keep their previous potential.

        Parameters:
            inputs: the network inputs (normally as many as input neurons)

        Returns:
            the potentials of the output neurons
        """
        for neuron, value in zip(self.layers[0].neurons, inputs):
            neuron.potential = float(value)

        for i in range(1, len(self.layers)):
            self.layers[i].feed_forward(self.layers[i-1], self.weights[i-1], self._activation)

        return [neuron.potential for neuron in self.layers[-1].neurons]

    evaluate = forward_pass

    def get_weight(self, transition: int, source: int, dest: int) -> float:
        """
        The weight of the connection from neuron 'source' in layer 'transition'
        to neuron 'dest' in layer 'transition + 1'.
        """
        return self.weights.get_weight(transition, source, dest)

    def set_weight(self, transition: int, source: int, dest: int, value: float) -> None:
        self.weights.set_weight(transition, source, dest, value)

    def clone(self) -> 'Network':
        """
        Create a deep copy of this network: same topology, biases, potentials
        and weights, with no mutable state shared with the original.
        """
        return copy.deepcopy(self)

    def mutate(self, percent_chance: float, amount: float) -> None:
        """
        Randomly perturb the network parameters, in place.

        Every bias and every weight is considered independently: a number is drawn
        uniformly from [0, 100) and, if it does not exceed 'percent_chance', the
        parameter is changed by a value drawn uniformly from [-amount, amount].

        Parameters:
            percent_chance: probability of mutating each parameter, in percent (0-100)
            amount:         maximum absolute change of a mutated parameter
        """
        _check_mutation_args(percent_chance, amount)
        if percent_chance <= 0.0 or amount == 0.0:
            return

        for layer in self.layers:
            layer.mutate(percent_chance, amount)
        self.weights.mutate(percent_chance, amount)

    def to_dict(self) -> dict[str, Any]:
        """
        Encode the full network state as a dictionary of plain Python types.
        The weights are written in [transition][dest][source] order.
        """
        return {
            "format"    : FORMAT_TAG,
            "version"   : FORMAT_VERSION,
            "activation": self._activation_name,
            "layers"    : [{"neurons": [{"potential": n.potential, "bias": n.bias} for n in layer.neurons]}
                           for layer in self.layers],
            "weights"   : self.weights.to_list(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Network':
        """
        Rebuild a network from the output of 'to_dict()'.

        The legacy layout, without format fields and with the weight table
        nested one level deeper ({"weights": {"weights": [...]}}), is also accepted.

        Raises:
            MalformedNetworkData: if fields are missing or the weights do not match the layer sizes
        """
        if not isinstance(data, dict):
            raise MalformedNetworkData(f"Network data must be a mapping, got {type(data).__name__}")

        if "format" in data and data["format"] != FORMAT_TAG:
            raise MalformedNetworkData(f"Unknown network format '{data['format']}'")

        for key in ("layers", "weights"):
            if key not in data:
                raise MalformedNetworkData(f"Network data is missing the '{key}' field")

        activation = data.get("activation", DEFAULT_ACTIVATION)
        try:
            get_activation(activation)
        except (ValueError, TypeError) as exc:
            raise MalformedNetworkData(str(exc)) from exc

        raw_layers = data["layers"]
        if not isinstance(raw_layers, list) or len(raw_layers) < 2:
            raise MalformedNetworkData("Network data must contain a list of at least 2 layers")
        layers = [cls._parse_layer(i, raw) for i, raw in enumerate(raw_layers)]

        raw_weights = data["weights"]
        if isinstance(raw_weights, dict):
            raw_weights = raw_weights.get("weights")
        weights = cls._parse_weights(raw_weights, [len(layer) for layer in layers])

        return cls._from_parts(layers, weights, activation)

    @staticmethod
    def _parse_layer(index: int, raw: Any) -> Layer:
        if not isinstance(raw, dict) or not isinstance(raw.get("neurons"), list) or not raw["neurons"]:
            raise MalformedNetworkData(f"Layer {index} must contain a non-empty 'neurons' list")

        neurons = []
        for n, raw_neuron in enumerate(raw["neurons"]):
            if not isinstance(raw_neuron, dict):
                raise MalformedNetworkData(f"Neuron {n} of layer {index} must be a mapping")
            for key in ("bias", "potential"):
                if not _is_number(raw_neuron.get(key)):
                    raise MalformedNetworkData(f"Neuron {n} of layer {index} has no numeric '{key}'")
            neurons.append(Neuron(bias=raw_neuron["bias"], potential=raw_neuron["potential"]))
        return Layer(neurons)

    @staticmethod
    def _parse_weights(raw: Any, layer_sizes: list[int]) -> WeightTable:
        if not isinstance(raw, list) or len(raw) != len(layer_sizes) - 1:
            raise MalformedNetworkData(f"Expected weights for {len(layer_sizes) - 1} layer transitions")

        matrices = []
        for i, raw_matrix in enumerate(raw):
            expected = (layer_sizes[i+1], layer_sizes[i])
            if not isinstance(raw_matrix, list) or \
               not all(isinstance(row, list) and all(_is_number(w) for w in row) for row in raw_matrix):
                raise MalformedNetworkData(f"Weights of transition {i} are not a numeric table")
            try:
                matrix = np.array(raw_matrix, dtype=np.float64)
            except ValueError:
                raise MalformedNetworkData(f"Weights of transition {i} have rows of different lengths") from None
            if matrix.shape != expected:
                raise MalformedNetworkData(f"Weights of transition {i} have shape {matrix.shape}, expected {expected}",
                                           context={"transition": i, "layer_sizes": layer_sizes})
            matrices.append(matrix)
        return WeightTable(matrices)

    def save(self, path: str | Path) -> None:
        """Write the network to 'path' as JSON."""
        Path(path).write_text(json.dumps(self.to_dict()), encoding="utf-8")

    @classmethod
    def load(cls, path: str | Path) -> 'Network':
        """
        Read a network previously written by 'save()'.

        Raises:
            MalformedNetworkData: if the file is not valid JSON or not a valid network
        """
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedNetworkData(f"'{path}' does not contain valid JSON: {exc}") from exc
        return cls.from_dict(data)

    def visualize(self, view: bool = True) -> graphviz.Digraph:
        """
        Visualize the network using Graphviz.

        Parameters:
            view: If True, automatically open the visualization after rendering

        Returns:
            graphviz.Digraph object representing the network
        """
        dot = graphviz.Digraph()
        dot.attr(rankdir='LR')  # Left to right layout

        node_attrs = {'style': 'filled', 'shape': 'circle', 'penwidth': '0.5', 'fontsize': '5',
                      'width': '0.5', 'height': '0.5', 'fixedsize': 'true', 'color': 'black'}
        last = len(self.layers) - 1

        for i, layer in enumerate(self.layers):
            if i == 0:
                label, fill = 'Inputs', 'lightgrey'
            elif i == last:
                label, fill = 'Outputs', 'white'
            else:
                label, fill = f'Hidden {i}', 'lightblue'

            with dot.subgraph(name=f'cluster_{i}') as cluster:
                cluster.attr(rank='same', label=label, style='invisible')
                for j, neuron in enumerate(layer.neurons):
                    cluster.node(f"{i}_{j}", label=f"L{i}N{j}\\nbias={neuron.bias:.2f}", fillcolor=fill, **node_attrs)

        for i in range(len(self.weights)):
            size_dest, size_src = self.weights.shape(i)
            for j in range(size_dest):
                for k in range(size_src):
                    weight = self.get_weight(i, k, j)
                    dot.edge(f"{i}_{k}", f"{i+1}_{j}", label=f"w={weight:.2f}",
                             color='black' if weight >= 0 else 'red',
                             fontsize='5', penwidth='0.5', arrowsize='0.5')

        if view:
            dot.view(cleanup=True)

        return dot

    def __str__(self):
        lines = []
        for i, layer in enumerate(self.layers):
            biases = ", ".join(f"{n.bias:+.2f}" for n in layer.neurons)
            lines.append(f"  Layer {i} ({len(layer)} neurons): biases=[{biases}]")
        return "\n".join(lines)

    def __repr__(self):
        return f"Network(layer_sizes={self.layer_sizes}, activation='{self._activation_name}')"
