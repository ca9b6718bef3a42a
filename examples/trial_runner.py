"""
Runner Problem Implementation for evonet

This module implements a small 2D environment in which agents learn to run along
the +x axis, as a template for plugging a simulation into an evonet Trial.

The Runner Problem:
    Each agent is a point mass on a plane, starting at the origin. The network
    controls it by pushing it in four directions.

    Inputs (11 values):
        - 0-7:  distance to the side wall along each of 8 headings, from left
                to right (90, 60, 30 and 15 degrees either side of +x); each ray
                hits the wall on its own side
        - 8-10: velocity along x, y, z (y is always 0 on a plane)

    Outputs (4 values), interpreted as forces:
        force_x = max_force * (out[0] - out[2])
        force_z = max_force * (out[1] - out[3])

    Termination Conditions:
        - The trial runs out of time
        - The agent hits one of the side walls at |z| = wall_distance

Fitness Function:
    + the x position reached when the trial times out
    + a bonus for crossing the finish line (a FitnessTrigger, once per generation)

Classes:
    Trial_Runner: evonet trial for the runner task

Usage:
    config = Config("examples/configs/config_runner.ini")
    trial = Trial_Runner(config)
    trial.run(dt=0.02)
"""

import numpy as np

from evonet.phenotype import Agent
from evonet.run       import Config, FitnessTrigger, Trial

# Sensor headings in radians from the +x direction, left (+z) to right (-z)
HEADINGS = np.radians([90, 60, 30, 15, -15, -30, -60, -90])

class Trial_Runner(Trial):
    """
    evonet trial for the runner task.

    Agents that run further along +x get a higher fitness. Hitting a wall ends
    the trial early; whether the position still counts then is decided by
    'config.terminal_fitness_policy'.
    """

    def __init__(self,
                 config         : Config,
                 suppress_output: bool  = False,
                 max_force      : float = 5.0,
                 drag           : float = 0.5,
                 wall_distance  : float = 5.0,
                 finish_line    : float = 50.0,
                 finish_bonus   : float = 100.0):
        """
        Initialize the trial.

        Parameters:
            config:          Configuration parameters
            suppress_output: Whether to suppress output during training
            max_force:       Force applied for a full-scale network output
            drag:            Velocity damping coefficient
            wall_distance:   Distance from the x axis to each side wall
            finish_line:     x coordinate of the finish line
            finish_bonus:    Fitness awarded for crossing the finish line
        """
        super().__init__(config, suppress_output)
        self.max_force     = max_force
        self.drag          = drag
        self.wall_distance = wall_distance
        self.finish_line   = finish_line
        self.finish        = self.add_trigger(FitnessTrigger(finish_bonus, name="finish line"))

    def _reset_agent(self, agent: Agent) -> None:
        agent.state["position"] = np.zeros(2)   # (x, z)
        agent.state["velocity"] = np.zeros(2)

    def _observe(self, agent: Agent) -> list[float]:
        x, z   = agent.state["position"]
        vx, vz = agent.state["velocity"]

        # length of a ray cast towards the side wall along each heading
        inputs = []
        for angle in HEADINGS:
            dz = np.sin(angle)
            wall = self.wall_distance if dz > 0 else -self.wall_distance
            inputs.append((wall - z) / dz)
        return inputs + [vx, 0.0, vz]

    def _apply_output(self, agent: Agent, outputs: list[float], dt: float) -> None:
        force = self.max_force * np.array([outputs[0] - outputs[2], outputs[1] - outputs[3]])

        velocity = agent.state["velocity"]
        velocity += (force - self.drag * velocity) * dt
        agent.state["position"] = agent.state["position"] + velocity * dt

        if agent.state["position"][0] >= self.finish_line:
            self.finish.award(agent)

    def _is_terminal(self, agent: Agent) -> bool:
        return abs(agent.state["position"][1]) >= self.wall_distance

    def _final_fitness(self, agent: Agent) -> float:
        return float(agent.state["position"][0])

    def _report_progress(self):
        super()._report_progress()
        print(f"Finish line crossed by {self.finish.triggered_count} agents\n")
