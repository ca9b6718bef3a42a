"""
Population Module

This module implements the Population class, which runs the generational cycle
of evonet: agents run their trials, finished agents are ranked by fitness, the
worst are discarded, the best are promoted unchanged, and the population is
refilled with mutated clones of the survivors.

Classes:
    GenerationSummary: Statistics about one completed generation
    Population:        Manages the agents and the selection/refill cycle
"""

from dataclasses import dataclass
from pathlib     import Path
from statistics  import mean
from typing      import Callable, Iterable, TYPE_CHECKING

from loguru import logger

from evonet.evolution.operators import EvolutionOperator
from evonet.exceptions          import EmptyPopulationSave
from evonet.phenotype.agent     import Agent
from evonet.phenotype.network   import Network

if TYPE_CHECKING:
    from evonet.run.config import Config

@dataclass
class GenerationSummary:
    """Statistics about one completed generation."""
    generation    : int
    finished_count: int
    promoted      : int
    discarded     : int
    best_fitness  : float | None
    mean_fitness  : float | None

class Population:
    """
    A population of agents evolving through generations.

    Agents live in one of two disjoint collections: 'active' (running a trial) and
    'finished' (trial over, waiting for the end of the generation). An agent moves
    from 'active' to 'finished' exactly once per trial.

    A generation goes through the following steps:
      1. start_generation(): reset surviving agents, then refill the population
         with mutated clones of the survivors (or random networks if there are none)
      2. mark_finished():    agents end their trials, one at a time
      3. end_generation():   rank the finished agents, discard the worst and
                             promote the rest into the next generation

    Public Attributes:
        active:     Agents currently running a trial
        finished:   Agents whose trial is over
        generation: Number of completed generations
        history:    A GenerationSummary for each completed generation

    Public Methods:
        start_generation():      Restart survivors and refill the population
        mark_finished(agent):    Move an agent from 'active' to 'finished'
        end_generation():        Rank, discard and promote the finished agents
        restart():               End the current generation and start the next one
        promotion_cutoff(count): Index of the first promoted agent in the ranking
        get_fittest_agent():     The finished agent with the highest fitness
        request_save(path):      Save the best agent when the generation ends
        save_best(path):         Save the best finished agent now
        load(path):              Replace all agents with copies of a saved network
    """

    def __init__(self, config: 'Config', restart_listeners: Iterable[Callable[[], None]] = ()):
        """
        Parameters:
            config:            Stores configuration parameters
            restart_listeners: Callables notified each time a generation starts
                               (e.g. to reset fitness triggers in the environment)
        """
        self._config           : 'Config'                   = config
        self._operator         : EvolutionOperator          = EvolutionOperator.from_config(config)
        self._restart_listeners: list[Callable[[], None]]   = list(restart_listeners)
        self._save_path        : Path | None                = None
        # (layer sizes, activation) of the last loaded network, overriding the config
        self._loaded_topology  : tuple[list[int], str] | None = None

        self.active    : list[Agent]             = []
        self.finished  : list[Agent]             = []
        self.generation: int                     = 0
        self.history   : list[GenerationSummary] = []

    @property
    def agents(self) -> list[Agent]:
        """All agents, active and finished."""
        return self.active + self.finished

    @property
    def layer_sizes(self) -> list[int]:
        """Layer sizes of the networks created at random when there are no survivors."""
        if self._loaded_topology is not None:
            return list(self._loaded_topology[0])
        return list(self._config.layer_sizes)

    @property
    def operator(self) -> EvolutionOperator:
        return self._operator

    @property
    def save_pending(self) -> bool:
        """Whether the best agent will be saved at the end of this generation."""
        return self._save_path is not None

    def add_restart_listener(self, listener: Callable[[], None]) -> None:
        self._restart_listeners.append(listener)

    def _new_agent(self, network: Network) -> Agent:
        return Agent(network, self._config.trial_duration, self.generation)

    def _random_network(self) -> Network:
        if self._loaded_topology is not None:
            return Network(*self._loaded_topology)
        return Network(self._config.layer_sizes, self._config.activation)

    def start_generation(self) -> None:
        """
        Begin a new generation.

        Every agent still in 'active' (the survivors of the previous generation) is
        reset and kept unchanged. The population is then filled up to its target
        size. If there are survivors, each new network is a mutated clone of one of
        them, cycling through the survivors in order so that all of them contribute
        evenly. Otherwise new networks are created at random.
        """
        for listener in self._restart_listeners:
            listener()

        survivors = list(self.active)
        for agent in survivors:
            agent.restart()
            agent.trial_duration = self._config.trial_duration
            agent.survivor = True

        source_index = 0
        while len(self.active) < self._config.population_size:
            if survivors:
                network = self._operator.offspring(survivors[source_index].network)
                source_index = (source_index + 1) % len(survivors)
            else:
                network = self._random_network()
            self.active.append(self._new_agent(network))

        logger.debug(f"Generation {self.generation} started: {len(survivors)} survivors, "
                     f"{len(self.active) - len(survivors)} new agents")

    def mark_finished(self, agent: Agent) -> bool:
        """
        Record that 'agent' has ended its trial, moving it from 'active' to 'finished'.
        Marking an agent that has already finished has no effect.

        Returns:
            True if no agent is active anymore

        Raises:
            ValueError: if the agent does not belong to this population
        """
        if any(agent is a for a in self.finished):
            return not self.active
        if not any(agent is a for a in self.active):
            raise ValueError(f"Agent {agent.ID} does not belong to this population")

        agent.finish()
        self.active.remove(agent)
        self.finished.append(agent)
        return not self.active

    def promotion_cutoff(self, count: int) -> int:
        """
        The number of agents discarded out of 'count' ranked agents; equivalently,
        the index (in ascending fitness order) of the first promoted agent.
        """
        cutoff = round(count * self._config.promotion_threshold + 0.49)
        return min(max(cutoff, 0), count)

    def _ranked(self) -> list[Agent]:
        # Stable: agents with equal fitness keep the order in which they finished
        return sorted(self.finished, key=lambda agent: agent.fitness)

    def get_fittest_agent(self) -> Agent | None:
        """
        The finished agent with the highest fitness, or None if no agent has finished.
        """
        if not self.finished:
            return None
        return self._ranked()[-1]

    def end_generation(self) -> GenerationSummary:
        """
        Close the current generation.

        The finished agents are sorted by ascending fitness. Those below the
        promotion cutoff are discarded, the rest rejoin 'active' unchanged.
        If a save was requested, the best agent of this generation is saved first.
        Agents that have not finished yet stay in 'active'.

        Returns:
            statistics about the generation that just ended
        """
        ranked = self._ranked()

        if not ranked:
            logger.warning(f"Generation {self.generation} ended before any agent finished; nothing promoted")
            summary = GenerationSummary(self.generation, 0, 0, 0, None, None)
        else:
            best = ranked[-1]
            if self._save_path is not None:
                self._save(best, self._save_path)
                self._save_path = None

            self.finished = []
            cutoff   = self.promotion_cutoff(len(ranked))
            promoted = ranked[cutoff:]
            self.active.extend(promoted)

            summary = GenerationSummary(generation     = self.generation,
                                        finished_count = len(ranked),
                                        promoted       = len(promoted),
                                        discarded      = cutoff,
                                        best_fitness   = best.fitness,
                                        mean_fitness   = mean(agent.fitness for agent in ranked))
            logger.info(f"Generation {self.generation}: best finisher's fitness {best.fitness:.4f}, "
                        f"{len(promoted)} promoted, {cutoff} discarded")

        self.history.append(summary)
        self.generation += 1
        return summary

    def restart(self) -> GenerationSummary:
        """
        End the current generation and immediately start the next one.
        """
        summary = self.end_generation()
        self.start_generation()
        return summary

    def _save(self, agent: Agent, path: Path) -> None:
        agent.network.save(path)
        logger.info(f"Saved network of agent {agent.ID} (fitness {agent.fitness:.4f}) to {path}")

    def request_save(self, path: str | Path) -> None:
        """
        Ask for the best agent of the current generation to be saved to 'path'
        when the generation ends.

        Raises:
            EmptyPopulationSave: if no agent has finished yet. The request still
                                 stands, and the save happens at the end of the
                                 generation; the exception only informs the caller.
        """
        self._save_path = Path(path)
        if not self.finished:
            logger.info("No agents have finished yet; the best agent will be saved when this generation ends")
            raise EmptyPopulationSave("No agent has finished a trial yet; save deferred to the end of the generation",
                                      context={"path": str(path)})

    def save_best(self, path: str | Path) -> Agent:
        """
        Save the network of the best finished agent to 'path' right away.

        Returns:
            the agent whose network was saved

        Raises:
            EmptyPopulationSave: if no agent has finished yet
        """
        best = self.get_fittest_agent()
        if best is None:
            raise EmptyPopulationSave("No agent has finished a trial yet; nothing to save",
                                      context={"path": str(path)})
        self._save(best, Path(path))
        return best

    def load(self, path: str | Path) -> Network:
        """
        Load a saved network and replace every agent with an unmutated copy of it.
        If the file cannot be loaded the population is left untouched.

        Networks created at random from then on (when a generation leaves no
        survivors) take the layer sizes and activation of the loaded network,
        so the population never mixes topologies.

        Returns:
            the loaded network

        Raises:
            MalformedNetworkData: if the file does not hold a valid network
        """
        network = Network.load(path)

        if list(network.layer_sizes) != list(self._config.layer_sizes):
            logger.warning(f"Loaded network has layer sizes {list(network.layer_sizes)}, "
                           f"configuration expects {list(self._config.layer_sizes)}; using the loaded sizes")

        self._loaded_topology = (list(network.layer_sizes), network.activation)

        self.finished = []
        self.active   = [self._new_agent(network.clone()) for _ in range(self._config.population_size)]

        logger.info(f"Loaded network from {path}")
        return network

    def __len__(self):
        return len(self.active) + len(self.finished)

    def __str__(self):
        return '\n'.join(str(agent) for agent in self.agents)
