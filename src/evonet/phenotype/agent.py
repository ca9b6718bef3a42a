"""
Agent Module

This module implements the Agent class, the unit the population evolves.

Classes:
    Agent: A network together with its fitness and trial lifecycle state
"""

from itertools import count
from typing    import Any

from evonet.phenotype.network import Network

class Agent:
    """
    An agent taking part in the evolutionary trials.

    You can regard an agent as a thin wrapper around the network that powers it,
    to which it adds a unique ID, a fitness accumulator and the state of its
    current trial (running or finished).

    Lifecycle: an agent is created when it joins the population, its fitness and
    state are reset at each generation restart, it finishes exactly once per trial,
    and at the end of a generation it is either promoted or discarded.

    Public Attributes:
        ID:             Globally unique identifier for this agent
        network:        The Network powering this agent
        fitness:        Fitness accumulated during the current trial
        finished:       Whether the current trial has ended for this agent
        runtime:        Time spent in the current trial
        trial_duration: Time after which the trial ends
        generation:     The generation in which this agent was created
        survivor:       Whether this agent was promoted from an earlier generation
        state:          Free-form storage for the environment driving the agent

    Public Methods:
        restart():             Reset fitness and trial state
        add_fitness(amount):   Add to the fitness while the trial is running
        advance(dt):           Advance the trial clock
        finish():              End the current trial
    """

    _id_generator = count(0)

    def __init__(self, network: Network, trial_duration: float = float('inf'), generation: int = 0):
        """
        Parameters:
            network:        The Network powering this agent (owned exclusively by it)
            trial_duration: Time after which the trial ends
            generation:     The generation in which this agent was created
        """
        self.ID            : int            = next(Agent._id_generator)
        self.network       : Network        = network
        self.fitness       : float          = 0.0
        self.finished      : bool           = False
        self.runtime       : float          = 0.0
        self.trial_duration: float          = trial_duration
        self.generation    : int            = generation
        self.survivor      : bool           = False
        self.state         : dict[str, Any] = {}

    def restart(self) -> None:
        """Get ready for a new trial."""
        self.fitness  = 0.0
        self.runtime  = 0.0
        self.finished = False

    def add_fitness(self, amount: float) -> bool:
        """
        Add 'amount' to the fitness accumulator.
        Once the trial has finished, the fitness is frozen.

        Returns:
            True if the fitness was updated
        """
        if self.finished:
            return False
        self.fitness += amount
        return True

    def advance(self, dt: float) -> bool:
        """
        Advance the trial clock by 'dt'.

        Returns:
            True if the trial duration has now been exceeded
        """
        if self.finished:
            return False
        self.runtime += dt
        return self.runtime > self.trial_duration

    def finish(self) -> bool:
        """
        End the current trial.

        Returns:
            False if the trial had already ended
        """
        if self.finished:
            return False
        self.finished = True
        return True

    def __str__(self):
        status = "finished" if self.finished else "running"
        return f"ID={self.ID}, fitness={self.fitness:.4f}, {status}\n{self.network}"

    def __repr__(self):
        return f"Agent(ID={self.ID}, network={self.network!r}, fitness={self.fitness})"
