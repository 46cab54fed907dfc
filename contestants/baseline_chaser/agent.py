"""
Baseline Chaser Agent - Runs under the lowest catchable carrot.

This is a simple heuristic agent that reads the carrot arrays, picks the
lowest carrot it can still reach in time, and walks the bag underneath it.
It jumps when an obstacle gets close.

This serves as:
1. A working example of how to read observations and return actions
2. A baseline benchmark to compare against
3. A verification that the environment API works correctly

Strategy:
- Estimate, for every carrot, the time until it reaches the bag and the time
  the bunny needs to walk under it
- Target the lowest carrot whose walk time fits; fall back to the lowest one
- Jump when the nearest incoming obstacle is within a speed-scaled distance
"""

from typing import Any, Dict, Optional

import numpy as np

from bunny_bag.core.config_loader import get_config

ACTION_NOOP = 0
ACTION_LEFT = 1
ACTION_RIGHT = 2
ACTION_JUMP = 3

# Frames of lead time before an obstacle reaches the bunny
JUMP_LEAD_FRAMES = 10


class CatcherAgent:
    """
    Simple baseline agent that chases falling carrots.

    Uses the carrot arrays to find a reachable target and the obstacle
    distance feature to time jumps.
    """

    def __init__(self, debug: bool = False):
        """
        Initialize the agent.

        Args:
            debug: If True, print decisions to stdout.
        """
        self.debug = debug
        config = get_config()
        self._carrot_size = config.carrot.size
        self._bag_height = config.bag.height
        self._motion_scale = config.carrot.motion_scale
        self._player_speed = config.player.speed
        self._frame_ms = config.observation.frame_ms
        self._obstacle_speed = config.difficulty.obstacle_speed_base

    def reset(self, seed: Optional[int] = None) -> None:
        """Reset agent state for a new episode. The agent is stateless."""

    def _choose_target(self, obs: Dict[str, Any]) -> Optional[float]:
        """Horizontal offset from bag centre to the chosen carrot, or None."""
        mask = obs["carrot_mask"].astype(bool)
        if not mask.any():
            return None

        bag_center = float(obs["bag_x"]) + float(obs["bag_width"]) / 2
        bag_y = float(obs["bag_y"])

        x = obs["carrot_x"][mask] + self._carrot_size / 2
        y = obs["carrot_y"][mask] + self._carrot_size
        rate = np.maximum(obs["carrot_speed"][mask] * self._motion_scale, 1e-6)

        # Carrots already below the bag can no longer be caught
        time_left = (bag_y + self._bag_height - y) / rate
        dx = x - bag_center
        walk_time = np.abs(dx) / self._player_speed * self._frame_ms

        reachable = (time_left > 0) & (walk_time <= time_left)
        if reachable.any():
            # Arrays are ordered lowest-first
            return float(dx[np.argmax(reachable)])
        return float(dx[0])

    def act(self, observation: Dict[str, Any], debug: bool = False) -> int:
        """
        Choose a move based on carrots and obstacles.

        Args:
            observation: Dict of numpy arrays from the environment.
            debug: If True, print debug info for this step.

        Returns:
            Discrete action (0 noop, 1 left, 2 right, 3 jump).
        """
        gap = float(observation["nearest_obstacle_dx"])
        on_ground = bool(observation["player_on_ground"])

        speeds = observation["obstacle_speed"][observation["obstacle_mask"].astype(bool)]
        speed = float(speeds.max()) if speeds.size else self._obstacle_speed

        if on_ground and 0.0 <= gap <= speed * JUMP_LEAD_FRAMES:
            action = ACTION_JUMP
        else:
            dx = self._choose_target(observation)
            if dx is None or abs(dx) < self._player_speed:
                action = ACTION_NOOP
            elif dx < 0:
                action = ACTION_LEFT
            else:
                action = ACTION_RIGHT

        if debug or self.debug:
            print(f"[Chaser Agent] Gap={gap:.0f}, "
                  f"Carrots={int(observation['carrots_count'])}, "
                  f"Action={action}")

        return action


# Convenience function to create agent (used by evaluation harness)
def create_agent(**kwargs) -> CatcherAgent:
    """Factory function to create an agent instance."""
    return CatcherAgent(**kwargs)
