"""
Trial Module

This module defines the abstract base class driving an evonet population through
a simulated environment, one time step at a time.

A host application (a game loop, a physics simulation, a test harness) calls
'tick(dt)' once per time step. On each tick every running agent reads its inputs
from the environment, evaluates its network, and acts on the outputs. Agents end
their trial when it times out or when the environment says so; once no agent is
running, the generation ends and the next one starts.
"""

from abc    import ABC, abstractmethod
from typing import Sequence

from loguru import logger

from evonet.phenotype.agent import Agent
from evonet.pool.population import Population, GenerationSummary
from evonet.run.config      import Config
from evonet.run.triggers    import FitnessTrigger

class Trial(ABC):
    """
    Abstract base class connecting a population to an environment.

    Subclasses implement the environment:
    - _reset_agent(agent):               Put an agent back to its starting state
    - _observe(agent):                   Return the inputs for the agent's network
    - _apply_output(agent, outputs, dt): Act on the outputs of the agent's network

    Subclasses can override:
    - _is_terminal(agent):   Whether the environment ends the agent's trial early (default: never)
    - _final_fitness(agent): Fitness awarded when the trial ends (default: 0)
    - _report_progress():    Display progress after each generation
    - _final_report():       Display results (from 'report()', called at the end of 'run()')

    When the final fitness is awarded depends on 'config.terminal_fitness_policy':
        'timeout' - only when the trial runs out of time
        'always'  - also when '_is_terminal()' ends the trial early

    Public Methods:
        start():            Create the population and start the first generation
        tick(dt):           Advance the simulation by one time step
        restart():          End the current generation and start the next one
        run(dt, max_gens):  Drive ticks until a number of generations has completed
        report():           Print the final report (also done at the end of 'run()')
        add_trigger(t):     Register a FitnessTrigger, cleared at each generation start
        load(path):         Restart from copies of a saved network
    """

    def __init__(self, config: Config, suppress_output: bool = False):
        """
        Initialize the trial.

        Parameters:
            config:          Configuration parameters
            suppress_output: If True, suppress progress and final reports
        """
        self._config         : Config               = config
        self._population     : Population | None    = None
        self._suppress_output: bool                 = suppress_output
        self._triggers       : list[FitnessTrigger] = []
        self.elapsed         : float                = 0.0

    @property
    def population(self) -> Population | None:
        return self._population

    @property
    def triggers(self) -> list[FitnessTrigger]:
        return list(self._triggers)

    def add_trigger(self, trigger: FitnessTrigger) -> FitnessTrigger:
        self._triggers.append(trigger)
        return trigger

    def _reset_triggers(self) -> None:
        for trigger in self._triggers:
            trigger.reset()
        if self._triggers:
            n = len(self._triggers)
            logger.debug(f"Reset {n} fitness trigger{'s' if n != 1 else ''}")

    def _reset(self):
        """
        Reset the trial state before starting a new run.

        Subclasses should call super()._reset() and then
        initialize their problem-specific data.
        """
        self.elapsed = 0.0

    def start(self) -> None:
        """
        Create a fresh population and start its first generation.
        """
        self._reset()
        self._population = Population(self._config, restart_listeners=[self._reset_triggers])
        self._begin_generation()

    def _begin_generation(self) -> None:
        self._population.start_generation()
        for agent in self._population.active:
            self._reset_agent(agent)

    def tick(self, dt: float) -> list[Agent]:
        """
        Advance the simulation by 'dt' (scaled by 'config.time_scale').

        Agents whose trial ends during this step are handed to the population
        once every agent has been stepped.

        Returns:
            the agents whose trial ended during this step
        """
        if self._population is None:
            self.start()

        dt *= self._config.time_scale
        self.elapsed += dt
        award_on_terminal = self._config.terminal_fitness_policy == "always"

        ended = []
        for agent in self._population.active:
            if agent.advance(dt):
                agent.add_fitness(self._final_fitness(agent))
                ended.append(agent)
                continue

            outputs = agent.network.forward_pass(self._observe(agent))
            self._apply_output(agent, outputs, dt)

            if self._is_terminal(agent):
                if award_on_terminal:
                    agent.add_fitness(self._final_fitness(agent))
                ended.append(agent)

        for agent in ended:
            self._population.mark_finished(agent)

        if not self._population.active and self._config.auto_restart:
            self.restart()

        return ended

    def restart(self) -> GenerationSummary:
        """
        End the current generation (ranking, discarding and promoting agents)
        and start the next one.
        """
        if self._population is None:
            self.start()

        summary = self._population.end_generation()
        if not self._suppress_output:
            self._report_progress()
        self._begin_generation()
        return summary

    def load(self, path) -> None:
        """
        Replace every agent with a copy of the network saved at 'path'
        and put them all back at their starting state.
        """
        if self._population is None:
            self.start()

        self._population.load(path)
        self._reset_triggers()
        for agent in self._population.active:
            self._reset_agent(agent)

    def run(self, dt: float = 0.02, max_generations: int | None = None) -> Population:
        """
        Run the trial from scratch until 'max_generations' generations have completed.

        Parameters:
            dt:              The length of each time step
            max_generations: Number of generations to run
                             (default: 'config.max_number_generations')

        Returns:
            the population, positioned at the start of the generation after the last one
        """
        if dt <= 0:
            raise ValueError(f"dt must be positive, got {dt}")
        if max_generations is None:
            max_generations = self._config.max_number_generations

        self.start()
        while self._population.generation < max_generations:
            self.tick(dt)
            if not self._population.active:
                self.restart()

        self.report()
        return self._population

    def report(self) -> None:
        """
        Print the final report for the generations run so far,
        unless output is suppressed.
        """
        if not self._suppress_output:
            self._final_report()

    @abstractmethod
    def _reset_agent(self, agent: Agent) -> None:
        """
        Put an agent back to its starting state in the environment.
        Called for every agent at the start of each generation.
        """
        pass

    @abstractmethod
    def _observe(self, agent: Agent) -> Sequence[float]:
        """
        Return the inputs for the agent's network (one value per input neuron).
        """
        pass

    @abstractmethod
    def _apply_output(self, agent: Agent, outputs: list[float], dt: float) -> None:
        """
        Act on the outputs of the agent's network for a time step of length 'dt'.
        The environment may add to the agent's fitness here.
        """
        pass

    def _is_terminal(self, agent: Agent) -> bool:
        """
        Whether the environment ends the agent's trial before it times out.
        """
        return False

    def _final_fitness(self, agent: Agent) -> float:
        """
        Fitness awarded to an agent when its trial ends.
        """
        return 0.0

    def _report_progress(self):
        """
        Report progress after each generation.
        Suppressed by setting 'self._suppress_output' to 'True'.
        """
        summary = self._population.history[-1]
        best    = "n/a" if summary.best_fitness is None else f"{summary.best_fitness:.2f}"

        s  = f"===============\n"
        s += f"GENERATION {summary.generation:04d}\n"
        s += f"Best fitness     = {best}\n"
        s += f"Finished agents  = {summary.finished_count}\n"
        s += f"Promoted agents  = {summary.promoted}\n"
        print(s)

    def _final_report(self):
        """
        Produce the final report, shown by 'report()'.
        Suppressed by setting 'self._suppress_output' to 'True'.
        """
        history = [s for s in self._population.history if s.best_fitness is not None]

        print("="*12)
        print("FINAL REPORT")
        print("="*12)
        print(f"Generations run: {self._population.generation}")
        if history:
            best = max(history, key=lambda s: s.best_fitness)
            print(f"Best fitness:    {best.best_fitness:.2f} (generation {best.generation})")
