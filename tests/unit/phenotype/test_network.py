"""
Unit tests for the network module (Neuron, Layer, WeightTable and Network classes).

Tests cover construction and topology validation, the forward pass, weight
addressing, cloning, serialization and visualization.
"""

import json
import math

import graphviz
import numpy as np
import pytest

from evonet.exceptions import InvalidTopology, MalformedNetworkData
from evonet.phenotype.network import Layer, Network, Neuron, WeightTable


# ============================================================================
# Test Fixtures
# ============================================================================

@pytest.fixture
def small_network():
    """The [3, 2, 1] network used throughout the scenarios."""
    return Network([3, 2, 1])


@pytest.fixture
def fixed_network():
    """A [2, 1] network with hand-picked parameters."""
    network = Network([2, 1])
    network.layers[1].neurons[0].bias = 0.1
    network.set_weight(0, 0, 0, 0.5)
    network.set_weight(0, 1, 0, -0.25)
    return network


# ============================================================================
# Test Neuron and Layer
# ============================================================================

class TestNeuron:
    """Test Neuron initialization."""

    def test_random_bias_in_range(self):
        """Test that random biases are drawn from [-0.5, 0.5)."""
        biases = [Neuron().bias for _ in range(1000)]
        assert all(-0.5 <= b < 0.5 for b in biases)

    def test_explicit_values(self):
        """Test that explicit bias and potential are stored as floats."""
        neuron = Neuron(bias=1, potential=2)
        assert neuron.bias == 1.0
        assert neuron.potential == 2.0
        assert isinstance(neuron.bias, float)

    def test_initial_potential_is_zero(self):
        """Test that a new neuron starts with a zero potential."""
        assert Neuron().potential == 0.0


class TestLayer:
    """Test Layer construction and feed forward."""

    def test_random_layer_size(self):
        """Test that a random layer has the requested number of neurons."""
        assert len(Layer.random(7)) == 7

    def test_feed_forward(self):
        """Test the potential of a neuron after feed forward."""
        previous = Layer([Neuron(bias=0.0, potential=1.0), Neuron(bias=0.0, potential=-2.0)])
        layer    = Layer([Neuron(bias=0.3)])
        weights  = np.array([[0.5, 0.25]])

        layer.feed_forward(previous, weights, np.tanh)

        assert layer.neurons[0].potential == pytest.approx(math.tanh(0.5 - 0.5 + 0.3))


# ============================================================================
# Test Construction
# ============================================================================

class TestNetworkInit:
    """Test Network construction and topology validation."""

    def test_layer_sizes(self, small_network):
        """Test that layers are built with the requested sizes."""
        assert small_network.layer_sizes == (3, 2, 1)
        assert small_network.num_inputs == 3
        assert small_network.num_outputs == 1
        assert small_network.number_layers == 3
        assert small_network.number_neurons == 6

    @pytest.mark.parametrize("sizes", [[3, 2, 1], [1, 1], [4, 8, 8, 2], [11, 6, 4]])
    def test_weight_table_shape(self, sizes):
        """Test that transition i holds size(i+1) x size(i) weights."""
        network = Network(sizes)

        assert len(network.weights) == len(sizes) - 1
        for i in range(len(sizes) - 1):
            assert network.weights.shape(i) == (sizes[i+1], sizes[i])
            assert network.weights[i].size == sizes[i+1] * sizes[i]
        assert network.number_weights == sum(a * b for a, b in zip(sizes[:-1], sizes[1:]))

    def test_number_parameters(self, small_network):
        """Test that parameters count every bias and every weight."""
        assert small_network.number_parameters == 6 + (3 * 2 + 2 * 1)

    def test_random_weights_in_range(self):
        """Test that weights are initialized in [-0.5, 0.5)."""
        network = Network([20, 20, 20])
        for i in range(len(network.weights)):
            assert np.all(network.weights[i] >= -0.5)
            assert np.all(network.weights[i] < 0.5)

    def test_default_activation_is_tanh(self, small_network):
        """Test that tanh is the default activation."""
        assert small_network.activation == "tanh"

    def test_numpy_integer_sizes_accepted(self):
        """Test that numpy integers are valid layer sizes."""
        network = Network(np.array([2, 3]))
        assert network.layer_sizes == (2, 3)

    @pytest.mark.parametrize("sizes", [[], [3], [3, 0, 1], [3, -2], [2, 1.5], [True, 2], None])
    def test_invalid_topology(self, sizes):
        """Test that invalid layer sizes raise InvalidTopology."""
        with pytest.raises(InvalidTopology):
            Network(sizes)

    def test_invalid_topology_is_value_error(self):
        """Test that InvalidTopology can be caught as ValueError."""
        with pytest.raises(ValueError):
            Network([5])

    def test_unknown_activation_raises(self):
        """Test that an unknown activation name raises ValueError."""
        with pytest.raises(ValueError, match="Unknown activation"):
            Network([2, 1], activation="softsign")


# ============================================================================
# Test Forward Pass
# ============================================================================

class TestNetworkForwardPass:
    """Test Network.forward_pass."""

    def test_scenario_single_bounded_output(self, small_network):
        """Test that a [3, 2, 1] network returns a single float in (-1, 1)."""
        output = small_network.forward_pass([1, 1, 1])

        assert len(output) == 1
        assert isinstance(output[0], float)
        assert -1.0 < output[0] < 1.0

    def test_deterministic(self, small_network):
        """Test that repeated evaluations give identical outputs."""
        first  = small_network.forward_pass([1, 1, 1])
        second = small_network.forward_pass([1, 1, 1])
        assert first == second

    def test_hand_computed_output(self, fixed_network):
        """Test the output against a hand computation."""
        output = fixed_network.forward_pass([2.0, 4.0])
        assert output[0] == pytest.approx(math.tanh(0.5 * 2.0 - 0.25 * 4.0 + 0.1))

    def test_two_layer_computation(self):
        """Test a forward pass through a hidden layer."""
        network = Network([1, 2, 1])
        network.layers[1].neurons[0].bias = 0.0
        network.layers[1].neurons[1].bias = 0.2
        network.layers[2].neurons[0].bias = -0.1
        network.set_weight(0, 0, 0, 1.0)
        network.set_weight(0, 0, 1, -1.0)
        network.set_weight(1, 0, 0, 0.5)
        network.set_weight(1, 1, 0, 2.0)

        h0 = math.tanh(1.0 * 0.3)
        h1 = math.tanh(-1.0 * 0.3 + 0.2)
        expected = math.tanh(0.5 * h0 + 2.0 * h1 - 0.1)

        assert network.forward_pass([0.3])[0] == pytest.approx(expected)

    def test_evaluate_alias(self, small_network):
        """Test that evaluate is the same operation as forward_pass."""
        assert small_network.evaluate([0.2, 0.4, 0.6]) == small_network.forward_pass([0.2, 0.4, 0.6])

    def test_extra_inputs_ignored(self, fixed_network):
        """Test that inputs beyond the input layer size are ignored."""
        assert fixed_network.forward_pass([1.0, 2.0, 99.0]) == fixed_network.forward_pass([1.0, 2.0])

    def test_short_input_keeps_previous_potential(self, fixed_network):
        """Test that missing inputs leave the previous potentials in place."""
        fixed_network.forward_pass([1.0, 2.0])
        output = fixed_network.forward_pass([5.0])

        assert fixed_network.layers[0].neurons[0].potential == 5.0
        assert fixed_network.layers[0].neurons[1].potential == 2.0
        assert output == fixed_network.forward_pass([5.0, 2.0])

    def test_numpy_inputs(self, small_network):
        """Test that numpy arrays are accepted as inputs."""
        assert small_network.forward_pass(np.ones(3)) == small_network.forward_pass([1.0, 1.0, 1.0])

    def test_output_length_matches_output_layer(self):
        """Test that there is one output per output neuron."""
        network = Network([11, 6, 4])
        assert len(network.forward_pass([0.0] * 11)) == 4

    def test_outputs_bounded(self):
        """Test that tanh keeps outputs within [-1, 1] even for large inputs."""
        network = Network([4, 3, 3])
        for value in network.forward_pass([1e6, -1e6, 1e6, -1e6]):
            assert -1.0 <= value <= 1.0


# ============================================================================
# Test Weight Addressing
# ============================================================================

class TestWeightAddressing:
    """Test the [transition][dest][source] weight layout."""

    def test_get_weight_matches_table(self, small_network):
        """Test that get_weight(t, k, j) reads entry [t][j][k]."""
        for k in range(3):
            for j in range(2):
                assert small_network.get_weight(0, k, j) == small_network.weights[0][j, k]

    def test_set_weight_layout(self):
        """Test that set_weight writes destination-major, source-minor."""
        network = Network([3, 2])
        network.set_weight(0, 2, 1, 0.7)

        assert network.weights[0][1, 2] == 0.7
        assert network.to_dict()["weights"][0][1][2] == 0.7

    def test_weight_table_to_list(self):
        """Test the nested list export of a weight table."""
        table = WeightTable([np.array([[1.0, 2.0]]), np.array([[3.0], [4.0]])])

        assert table.to_list() == [[[1.0, 2.0]], [[3.0], [4.0]]]
        assert table.size == 4


# ============================================================================
# Test Cloning
# ============================================================================

class TestNetworkClone:
    """Test Network.clone."""

    def test_clone_has_same_state(self, small_network):
        """Test that a clone has identical topology, biases, potentials and weights."""
        small_network.forward_pass([0.1, 0.2, 0.3])
        copy = small_network.clone()

        assert copy.to_dict() == small_network.to_dict()

    def test_clone_shares_nothing(self, small_network):
        """Test that the clone does not share neurons or weight arrays."""
        copy = small_network.clone()

        assert copy is not small_network
        for layer_a, layer_b in zip(copy.layers, small_network.layers):
            assert layer_a is not layer_b
            assert all(a is not b for a, b in zip(layer_a.neurons, layer_b.neurons))
        for i in range(len(copy.weights)):
            assert not np.shares_memory(copy.weights[i], small_network.weights[i])

    def test_mutating_clone_leaves_original(self, small_network):
        """Test that mutating a clone leaves the original weights and biases unchanged."""
        snapshot = small_network.to_dict()
        copy = small_network.clone()

        copy.mutate(100.0, 1.0)

        assert small_network.to_dict() == snapshot
        assert copy.to_dict() != snapshot

    def test_clone_evaluates_identically(self, small_network):
        """Test that a clone produces the same outputs."""
        copy = small_network.clone()
        assert copy.forward_pass([1, -1, 0.5]) == small_network.forward_pass([1, -1, 0.5])


# ============================================================================
# Test Serialization
# ============================================================================

class TestNetworkSerialization:
    """Test to_dict/from_dict and save/load."""

    def test_to_dict_fields(self, small_network):
        """Test that the encoding is self-describing."""
        data = small_network.to_dict()

        assert data["format"] == "evonet-network"
        assert data["version"] == 1
        assert data["activation"] == "tanh"
        assert [len(layer["neurons"]) for layer in data["layers"]] == [3, 2, 1]
        assert set(data["layers"][0]["neurons"][0]) == {"potential", "bias"}

    def test_to_dict_is_json_serializable(self, small_network):
        """Test that the encoding only contains plain Python types."""
        json.dumps(small_network.to_dict())

    def test_round_trip_dict(self, small_network):
        """Test that from_dict(to_dict(N)) evaluates like N."""
        restored = Network.from_dict(small_network.to_dict())

        for inputs in ([1, 1, 1], [0.5, -0.2, 3.0], [0, 0, 0]):
            assert restored.forward_pass(inputs) == pytest.approx(small_network.forward_pass(inputs))

    def test_round_trip_file(self, small_network, tmp_path):
        """Test that save then load reproduces the outputs."""
        path = tmp_path / "net.json"
        expected = small_network.forward_pass([1, 1, 1])

        small_network.save(path)
        restored = Network.load(path)

        assert restored.layer_sizes == small_network.layer_sizes
        assert restored.forward_pass([1, 1, 1]) == expected

    def test_round_trip_keeps_potentials(self, small_network):
        """Test that potentials are part of the saved state."""
        small_network.forward_pass([0.3, 0.6, 0.9])
        restored = Network.from_dict(small_network.to_dict())

        assert restored.layers[0].potentials.tolist() == [0.3, 0.6, 0.9]
        assert restored.layers[2].potentials.tolist() == small_network.layers[2].potentials.tolist()

    def test_round_trip_other_activation(self):
        """Test that the activation function is restored."""
        network = Network([2, 2], activation="sigmoid")
        assert Network.from_dict(network.to_dict()).activation == "sigmoid"

    def test_accepts_legacy_layout(self):
        """Test loading the layout with a nested weight table and no format fields."""
        data = {
            "layers": [
                {"neurons": [{"potential": 0.0, "bias": 0.1}, {"potential": 0.0, "bias": -0.2}]},
                {"neurons": [{"potential": 0.0, "bias": 0.3}]},
            ],
            "weights": {"weights": [[[0.5, -0.5]]]},
        }
        network = Network.from_dict(data)

        assert network.layer_sizes == (2, 1)
        assert network.activation == "tanh"
        assert network.get_weight(0, 1, 0) == -0.5
        assert network.forward_pass([1.0, 1.0])[0] == pytest.approx(math.tanh(0.3))

    def test_load_leaves_existing_network_untouched(self, small_network, tmp_path):
        """Test that a failed load does not alter an existing network."""
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        snapshot = small_network.to_dict()

        with pytest.raises(MalformedNetworkData):
            Network.load(path)

        assert small_network.to_dict() == snapshot

    def test_load_invalid_utf8(self, tmp_path):
        """Test that a file that is not UTF-8 text is reported as malformed."""
        path = tmp_path / "binary.json"
        path.write_bytes(b'{"layers": \xff\xfe}')

        with pytest.raises(MalformedNetworkData, match="valid JSON"):
            Network.load(path)

    def test_load_missing_file_raises_os_error(self, tmp_path):
        """Test that a missing file surfaces the OS error."""
        with pytest.raises(FileNotFoundError):
            Network.load(tmp_path / "missing.json")


class TestMalformedNetworkData:
    """Test that structurally invalid data is rejected."""

    @pytest.fixture
    def valid_data(self):
        return Network([2, 3, 1]).to_dict()

    def test_not_a_mapping(self):
        with pytest.raises(MalformedNetworkData):
            Network.from_dict([1, 2, 3])

    @pytest.mark.parametrize("key", ["layers", "weights"])
    def test_missing_field(self, valid_data, key):
        del valid_data[key]
        with pytest.raises(MalformedNetworkData, match=key):
            Network.from_dict(valid_data)

    def test_wrong_format_tag(self, valid_data):
        valid_data["format"] = "something-else"
        with pytest.raises(MalformedNetworkData, match="format"):
            Network.from_dict(valid_data)

    def test_unknown_activation(self, valid_data):
        valid_data["activation"] = "softsign"
        with pytest.raises(MalformedNetworkData):
            Network.from_dict(valid_data)

    def test_single_layer(self, valid_data):
        valid_data["layers"] = valid_data["layers"][:1]
        valid_data["weights"] = []
        with pytest.raises(MalformedNetworkData):
            Network.from_dict(valid_data)

    def test_empty_layer(self, valid_data):
        valid_data["layers"][1]["neurons"] = []
        with pytest.raises(MalformedNetworkData):
            Network.from_dict(valid_data)

    def test_neuron_missing_bias(self, valid_data):
        del valid_data["layers"][1]["neurons"][0]["bias"]
        with pytest.raises(MalformedNetworkData, match="bias"):
            Network.from_dict(valid_data)

    def test_neuron_non_numeric_potential(self, valid_data):
        valid_data["layers"][0]["neurons"][0]["potential"] = "high"
        with pytest.raises(MalformedNetworkData, match="potential"):
            Network.from_dict(valid_data)

    def test_wrong_number_of_transitions(self, valid_data):
        valid_data["weights"] = valid_data["weights"][:1]
        with pytest.raises(MalformedNetworkData):
            Network.from_dict(valid_data)

    def test_weight_shape_mismatch(self, valid_data):
        # transposed: (source, dest) instead of (dest, source)
        valid_data["weights"][0] = np.array(valid_data["weights"][0]).T.tolist()
        with pytest.raises(MalformedNetworkData, match="shape"):
            Network.from_dict(valid_data)

    def test_ragged_weights(self, valid_data):
        valid_data["weights"][1] = [[0.1, 0.2]]
        with pytest.raises(MalformedNetworkData):
            Network.from_dict(valid_data)

    def test_rows_of_different_lengths(self, valid_data):
        valid_data["weights"][0] = [[0.1, 0.2], [0.3], [0.4, 0.5]]
        with pytest.raises(MalformedNetworkData, match="different lengths"):
            Network.from_dict(valid_data)

    def test_non_numeric_weights(self, valid_data):
        valid_data["weights"][1] = [["a", "b", "c"]]
        with pytest.raises(MalformedNetworkData):
            Network.from_dict(valid_data)

    @pytest.mark.parametrize("value", [None, "0.25", True])
    def test_single_invalid_weight(self, valid_data, value):
        """Test that a null, string or boolean weight is rejected rather than converted."""
        valid_data["weights"][0][0][0] = value
        with pytest.raises(MalformedNetworkData, match="transition 0"):
            Network.from_dict(valid_data)

    def test_weight_row_not_a_list(self, valid_data):
        valid_data["weights"][1] = [0.1, 0.2, 0.3]
        with pytest.raises(MalformedNetworkData):
            Network.from_dict(valid_data)

    def test_null_weight_in_file(self, valid_data, tmp_path):
        path = tmp_path / "net.json"
        valid_data["weights"][1][0][2] = None
        path.write_text(json.dumps(valid_data), encoding="utf-8")

        with pytest.raises(MalformedNetworkData):
            Network.load(path)

    def test_is_value_error(self, valid_data):
        del valid_data["layers"]
        with pytest.raises(ValueError):
            Network.from_dict(valid_data)


# ============================================================================
# Test Visualization and Representation
# ============================================================================

class TestNetworkVisualize:
    """Test Network.visualize and string representations."""

    def test_visualize_returns_digraph(self, small_network):
        """Test that visualize builds a digraph without opening it."""
        dot = small_network.visualize(view=False)

        assert isinstance(dot, graphviz.Digraph)
        assert dot.source.count("->") == small_network.number_weights
        assert "Inputs" in dot.source
        assert "Outputs" in dot.source

    def test_repr(self, small_network):
        assert repr(small_network) == "Network(layer_sizes=(3, 2, 1), activation='tanh')"

    def test_str_lists_layers(self, small_network):
        text = str(small_network)
        assert "Layer 0 (3 neurons)" in text
        assert "Layer 2 (1 neurons)" in text
