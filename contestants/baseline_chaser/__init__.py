"""
Baseline Chaser Agent Package

A simple heuristic agent that walks the bag under the lowest reachable
carrot and jumps over incoming obstacles. Serves as a benchmark and example.
"""

from .agent import CatcherAgent, create_agent

__all__ = ["CatcherAgent", "create_agent"]
