"""
Evaluation Harness
==================

Scores an agent over the seed bank. Every seed is played through
record_episode(), so an evaluation can keep one replay per seed and any of
them can be re-run exactly with replay_actions().

Usage:
    python -m bunny_bag.evaluation.run_eval --agent contestants/baseline_chaser
    python -m bunny_bag.evaluation.run_eval --agent contestants.baseline_chaser \\
        --max-frames 18000 --replays replays/ --output results.json
"""

from __future__ import annotations

import argparse
import importlib
import importlib.util
import json
import logging
import sys
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import numpy as np

from bunny_bag.core.env_gym import BunnyBagEnv
from bunny_bag.core.replay_recorder import generate_replay_filename, record_episode

logger = logging.getLogger(__name__)

AgentFn = Callable[[Dict[str, np.ndarray]], int]

SEED_BANK_PATH = Path(__file__).with_name("seed_bank.json")


@dataclass
class SeedRun:
    """One seeded episode, summarised from its replay."""
    seed: int
    score: int
    max_combo: int
    accuracy: int
    frames: int
    termination_reason: str
    seconds: float
    replay_path: Optional[str] = None

    @classmethod
    def from_replay(cls, replay: Dict[str, Any], seconds: float) -> "SeedRun":
        return cls(
            seed=replay["seed"],
            score=replay["final_score"],
            max_combo=replay["max_combo"],
            accuracy=replay["accuracy"],
            frames=replay["total_steps"],
            termination_reason=replay["termination_reason"],
            seconds=seconds,
            replay_path=replay.get("path")
        )


@dataclass
class EvalReport:
    """All runs of one agent plus score statistics."""
    agent: str
    runs: List[SeedRun] = field(default_factory=list)

    @property
    def scores(self) -> np.ndarray:
        return np.array([run.score for run in self.runs], dtype=np.int64)

    def stats(self) -> Dict[str, float]:
        if not self.runs:
            return {}

        scores = self.scores
        return {
            "mean": float(scores.mean()),
            "std": float(scores.std()),
            "min": int(scores.min()),
            "median": float(np.median(scores)),
            "max": int(scores.max()),
            "mean_accuracy": float(np.mean([run.accuracy for run in self.runs])),
            "mean_max_combo": float(np.mean([run.max_combo for run in self.runs])),
            "out_of_lives": sum(run.termination_reason == "out_of_lives" for run in self.runs),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent": self.agent,
            "stats": self.stats(),
            "runs": [asdict(run) for run in self.runs],
        }

    def format(self) -> str:
        """Plain-text table for the terminal."""
        lines = [f"{'seed':>8} {'score':>7} {'combo':>6} {'acc%':>5} {'frames':>7}  end"]
        for run in self.runs:
            lines.append(
                f"{run.seed:>8} {run.score:>7} {run.max_combo:>6} {run.accuracy:>5} "
                f"{run.frames:>7}  {run.termination_reason}"
            )

        stats = self.stats()
        if stats:
            lines.append("")
            lines.append(
                f"{self.agent}: mean {stats['mean']:.1f} +- {stats['std']:.1f} "
                f"(median {stats['median']:.1f}, range {stats['min']}-{stats['max']}), "
                f"accuracy {stats['mean_accuracy']:.1f}%, "
                f"{stats['out_of_lives']}/{len(self.runs)} ran out of lives"
            )
        return "\n".join(lines)


def load_seed_bank(path: Optional[Union[str, Path]] = None) -> List[int]:
    """
    Read seeds from JSON: either {"seeds": [...]} or a bare list.

    Raises:
        ValueError: If any entry is not an integer.
    """
    with open(path or SEED_BANK_PATH, "r") as f:
        data = json.load(f)

    seeds = data["seeds"] if isinstance(data, dict) else data
    if not isinstance(seeds, list) or not all(
        isinstance(s, int) and not isinstance(s, bool) for s in seeds
    ):
        raise ValueError(f"Seed bank must be a list of integers: {path or SEED_BANK_PATH}")
    return seeds


def _import_agent_module(target: str) -> ModuleType:
    """Import by file/directory path, or by dotted module name."""
    path = Path(target)
    looks_like_path = path.suffix == ".py" or "/" in target or "\\" in target or path.exists()

    if not looks_like_path:
        return importlib.import_module(target)

    agent_file = path / "agent.py" if path.is_dir() else path
    if not agent_file.is_file():
        raise FileNotFoundError(f"Agent file not found: {agent_file}")

    module_name = f"_bunny_bag_agent_{agent_file.parent.name}"
    spec = importlib.util.spec_from_file_location(module_name, agent_file)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot import {agent_file}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


def load_agent(target: str) -> AgentFn:
    """
    Resolve an agent to its act(obs) callable.

    The module may provide, in order of preference, a create_agent() factory,
    a CatcherAgent class, or a module-level act function.

    Args:
        target: Agent directory, agent .py file, or dotted module name.
    """
    module = _import_agent_module(target)

    if hasattr(module, "create_agent"):
        agent = module.create_agent()
    elif hasattr(module, "CatcherAgent"):
        agent = module.CatcherAgent()
    elif callable(getattr(module, "act", None)):
        return module.act
    else:
        raise AttributeError(
            f"{module.__name__} has no create_agent(), CatcherAgent or act()"
        )

    if not callable(getattr(agent, "act", None)):
        raise AttributeError(f"{type(agent).__name__} has no act() method")
    return agent.act


def _reset_agent(agent_fn: AgentFn, seed: int) -> None:
    """Call reset(seed) on the agent object behind a bound act(), if any."""
    reset = getattr(getattr(agent_fn, "__self__", None), "reset", None)
    if callable(reset):
        reset(seed)


def evaluate_agent(
    agent_fn: AgentFn,
    seeds: Optional[Sequence[int]] = None,
    max_frames: Optional[int] = None,
    replay_dir: Optional[Union[str, Path]] = None,
    agent_name: str = "agent"
) -> EvalReport:
    """
    Play one episode per seed and collect the results.

    Args:
        agent_fn: act(obs) -> action.
        seeds: Seeds to play. Uses the bundled seed bank if None.
        max_frames: Per-episode truncation. Uses caps.max_frames if None.
        replay_dir: If given, one replay file per seed is written there.
        agent_name: Stored in the report and the replays.
    """
    if seeds is None:
        seeds = load_seed_bank()

    report = EvalReport(agent=agent_name)
    env = BunnyBagEnv(max_frames=max_frames)

    try:
        for seed in seeds:
            _reset_agent(agent_fn, seed)
            save_path = None
            if replay_dir is not None:
                save_path = generate_replay_filename(agent_name, seed, replay_dir)

            started = time.perf_counter()
            replay = record_episode(env, agent_fn, seed, save_path=save_path, agent_name=agent_name)
            run = SeedRun.from_replay(replay, time.perf_counter() - started)
            report.runs.append(run)

            logger.info("Seed %d: score=%d accuracy=%d%% frames=%d (%s, %.2fs)",
                        run.seed, run.score, run.accuracy, run.frames,
                        run.termination_reason, run.seconds)
    finally:
        env.close()

    return report


def write_report(report: EvalReport, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(report.to_dict(), f, indent=2)
    return path


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Score a Bunny Bag agent over the seed bank")
    parser.add_argument("--agent", required=True,
                        help="Agent directory, agent .py file or dotted module name")
    parser.add_argument("--seeds", default=None, help="Seed bank JSON (bundled bank if omitted)")
    parser.add_argument("--max-frames", type=int, default=None, help="Per-episode frame cap")
    parser.add_argument("--replays", default=None, help="Directory for per-seed replay files")
    parser.add_argument("--output", default=None, help="Write the report as JSON here")
    parser.add_argument("--verbose", action="store_true", help="Log every seed")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S"
    )

    try:
        agent_fn = load_agent(args.agent)
    except (ImportError, OSError, AttributeError) as e:
        logger.error("Could not load agent %s: %s", args.agent, e)
        return 1

    target = Path(args.agent.rstrip("/\\"))
    if target.suffix == ".py":
        agent_name = target.parent.name
    else:
        agent_name = target.name.split(".")[-1]
    seeds = load_seed_bank(args.seeds) if args.seeds else None

    report = evaluate_agent(
        agent_fn,
        seeds=seeds,
        max_frames=args.max_frames,
        replay_dir=args.replays,
        agent_name=agent_name
    )
    print(report.format())

    if args.output:
        print(f"Report written to {write_report(report, args.output)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
