"""
Bunny Bag Package
=================

Carrot catcher arcade game: a bunny carries a bag, catches falling carrots
and jumps over logs and rocks.

- bunny_bag.core: headless game simulation and Gymnasium environment
- bunny_bag.evaluation: seed bank and evaluation harness for agents

All tunable parameters are in game_config.yaml.
"""

__version__ = "1.0.0"
