import configparser
import os

from evonet.activations import activations, DEFAULT_ACTIVATION
from evonet.exceptions  import ConfigError

# Allowed values for 'terminal_fitness_policy'
TERMINAL_FITNESS_POLICIES = ("timeout", "always")

class Config:

    @staticmethod
    def _parse_layer_sizes(raw_sizes):
        """
        Parse layer_sizes from string to list.

        Parameters:
            raw_sizes: Either a comma-separated list of integers, or already a list

        Returns:
            List of layer sizes
        """
        if isinstance(raw_sizes, (list, tuple)):
            return list(raw_sizes)
        try:
            return [int(size.strip()) for size in raw_sizes.split(',')]
        except ValueError:
            raise ConfigError(f"Invalid layer_sizes '{raw_sizes}', expected comma-separated integers") from None

    def __init__(self, config_file: str | None = None):
        """
        Initialize Config by parsing an INI file, or create a Config with default values.

        Parameters:
            config_file: Path to the INI configuration file.
                         If None, creates a Config holding the default values.
        """

        # Default config for testing/manual setup
        if config_file is None:
            self.population_size         = 10
            self.promotion_threshold     = 0.8
            self.layer_sizes             = [11, 6, 4]
            self.activation              = DEFAULT_ACTIVATION
            self.mutation_chance         = 10.0
            self.mutation_amount         = 0.1
            self.trial_duration          = 20.0
            self.auto_restart            = False
            self.terminal_fitness_policy = "timeout"
            self.time_scale              = 1.0
            self.max_number_generations  = 50
            return

        if not os.path.exists(config_file):
            raise FileNotFoundError(f"Configuration file '{config_file}' not found")

        parser = configparser.ConfigParser()
        parser.read(config_file)

        # Sentinel for missing default values
        _NO_DEFAULT = object()

        # Helper function to safely parse values
        def get_value(section, key, value_type, default=_NO_DEFAULT):
            try:
                if value_type == int:
                    return parser.getint(section, key)
                elif value_type == float:
                    return parser.getfloat(section, key)
                elif value_type == bool:
                    return parser.getboolean(section, key)
                elif value_type == str:
                    return parser.get(section, key)
            except (configparser.NoSectionError, configparser.NoOptionError):
                if default is not _NO_DEFAULT:
                    return default
                raise
            except ValueError as exc:
                raise ConfigError(f"Invalid value for '{key}' in section [{section}]: {exc}") from None

        # [POPULATION]

        # The number of agents taking part in each generation.
        self.population_size = get_value('POPULATION', 'population_size', int)

        # The percentile cutoff for promotion: at the end of a generation the
        # agents are ranked by fitness and those below this fraction of the
        # ranking are discarded; the rest are kept, unchanged, for the next
        # generation (e.g. 0.8 keeps the top 20%).
        self.promotion_threshold = get_value('POPULATION', 'promotion_threshold', float)

        # [NETWORK]

        # Number of neurons per layer, input layer first, output layer last.
        # The input layer must match the number of values the environment provides,
        # the output layer the number of values it consumes.
        self.layer_sizes = self._parse_layer_sizes(get_value('NETWORK', 'layer_sizes', str))

        # Activation function of the neurons (see 'basic_activations.py').
        self.activation = get_value('NETWORK', 'activation', str, default=DEFAULT_ACTIVATION)

        # [MUTATION]

        # The probability (in percent) that any single bias or weight of
        # a newly cloned network is mutated.
        self.mutation_chance = get_value('MUTATION', 'mutation_chance', float)

        # The maximum change of a mutated parameter; the change is drawn
        # uniformly from [-mutation_amount, mutation_amount].
        self.mutation_amount = get_value('MUTATION', 'mutation_amount', float)

        # [TRIAL]

        # How long (in simulation time units) each agent's trial lasts.
        self.trial_duration = get_value('TRIAL', 'trial_duration', float)

        # Whether to start the next generation as soon as every agent has
        # finished, rather than waiting for an explicit restart.
        self.auto_restart = get_value('TRIAL', 'auto_restart', bool, default=False)

        # When the environment rewards an agent at the end of its trial.
        # Allowed values:
        #   "timeout" - only when the trial runs out of time
        #   "always"  - also when the environment ends the trial early
        self.terminal_fitness_policy = get_value('TRIAL', 'terminal_fitness_policy', str, default="timeout")

        # Multiplier applied to every time step (speeds up or slows down the simulation).
        self.time_scale = get_value('TRIAL', 'time_scale', float, default=1.0)

        # [TERMINATION]

        # The number of generations after which to stop a run.
        self.max_number_generations = get_value('TERMINATION', 'max_number_generations', int, default=50)

        self.validate()

    def validate(self) -> None:
        """
        Check that every value is within its allowed range.

        Raises:
            ConfigError: for the first value found out of range
        """
        if self.population_size <= 0:
            raise ConfigError(f"population_size must be positive, got {self.population_size}")
        if not 0.0 <= self.promotion_threshold <= 1.0:
            raise ConfigError(f"promotion_threshold must be in [0, 1], got {self.promotion_threshold}")
        if len(self.layer_sizes) < 2 or any(size <= 0 for size in self.layer_sizes):
            raise ConfigError(f"layer_sizes must list at least 2 positive sizes, got {self.layer_sizes}")
        if self.activation not in activations:
            raise ConfigError(f"Invalid activation function '{self.activation}'")
        if not 0.0 <= self.mutation_chance <= 100.0:
            raise ConfigError(f"mutation_chance must be in [0, 100], got {self.mutation_chance}")
        if self.mutation_amount < 0.0:
            raise ConfigError(f"mutation_amount must be non-negative, got {self.mutation_amount}")
        if self.trial_duration <= 0.0:
            raise ConfigError(f"trial_duration must be positive, got {self.trial_duration}")
        if self.terminal_fitness_policy not in TERMINAL_FITNESS_POLICIES:
            raise ConfigError(f"terminal_fitness_policy must be one of {TERMINAL_FITNESS_POLICIES}, "
                              f"got '{self.terminal_fitness_policy}'")
        if self.time_scale <= 0.0:
            raise ConfigError(f"time_scale must be positive, got {self.time_scale}")
        if self.max_number_generations < 0:
            raise ConfigError(f"max_number_generations must be non-negative, got {self.max_number_generations}")

    def save(self, path: str) -> None:
        """
        Write the configuration to an INI file that 'Config(path)' can read back.
        """
        parser = configparser.ConfigParser()
        parser['POPULATION'] = {
            'population_size'    : str(self.population_size),
            'promotion_threshold': str(self.promotion_threshold),
        }
        parser['NETWORK'] = {
            'layer_sizes': ', '.join(str(size) for size in self.layer_sizes),
            'activation' : self.activation,
        }
        parser['MUTATION'] = {
            'mutation_chance': str(self.mutation_chance),
            'mutation_amount': str(self.mutation_amount),
        }
        parser['TRIAL'] = {
            'trial_duration'         : str(self.trial_duration),
            'auto_restart'           : str(self.auto_restart),
            'terminal_fitness_policy': self.terminal_fitness_policy,
            'time_scale'             : str(self.time_scale),
        }
        parser['TERMINATION'] = {
            'max_number_generations': str(self.max_number_generations),
        }
        with open(path, 'w') as f:
            parser.write(f)

    def __setattr__(self, name, value):
        """
        Override 'setattr' to automatically parse layer_sizes when set.
        This allows users to write config.layer_sizes = "4, 8, 2" and have it
        automatically converted to a list of integers.
        """
        if name == 'layer_sizes':
            value = self._parse_layer_sizes(value)
        super().__setattr__(name, value)
