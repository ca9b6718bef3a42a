"""
Fitness Trigger Module

A fitness trigger is a reward placed in the environment (for example a zone an
agent has to reach) that pays a fixed bonus to each agent at most once per
generation. Triggers are cleared when a new generation starts; a Trial registers
them with its population for that purpose.

Classes:
    FitnessTrigger: One-off fitness bonus per agent and generation
"""

from evonet.phenotype.agent import Agent

class FitnessTrigger:
    """
    Awards 'fitness_value' to an agent the first time it triggers this object
    during a generation. Later triggers by the same agent are ignored until
    'reset()' is called.

    Public Attributes:
        fitness_value: The bonus awarded
        name:          Optional label, used in reports

    Public Methods:
        award(agent): Pay the bonus to 'agent' unless it has already been paid
        reset():      Forget which agents have been paid
    """

    def __init__(self, fitness_value: float = 100.0, name: str | None = None):
        self.fitness_value: float      = fitness_value
        self.name         : str | None = name
        self._triggered   : set[int]   = set()

    @property
    def triggered_count(self) -> int:
        """Number of agents that have triggered this object since the last reset."""
        return len(self._triggered)

    def has_triggered(self, agent: Agent) -> bool:
        return agent.ID in self._triggered

    def award(self, agent: Agent) -> bool:
        """
        Returns:
            True if the bonus was added to the agent's fitness
        """
        if agent.ID in self._triggered:
            return False
        self._triggered.add(agent.ID)
        return agent.add_fitness(self.fitness_value)

    def reset(self) -> None:
        self._triggered.clear()

    def __repr__(self):
        return f"FitnessTrigger(name={self.name!r}, fitness_value={self.fitness_value})"
