"""
Run Package

This package drives an evonet population through an environment.

Modules:
    config:   Configuration management (INI files)
    trial:    Abstract base class for tick-driven trials
    triggers: One-off fitness rewards, cleared every generation

Exported Classes:
    Config:         Configuration parameters
    Trial:          Abstract base class connecting a population to an environment
    FitnessTrigger: Fitness bonus paid at most once per agent and generation
"""

from evonet.run.config   import Config
from evonet.run.trial    import Trial
from evonet.run.triggers import FitnessTrigger

__all__ = ['Config', 'Trial', 'FitnessTrigger']
