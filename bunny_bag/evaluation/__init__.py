"""
Evaluation Package
==================

Contains the seed bank and evaluation harness for scoring agent submissions.
"""

from bunny_bag.evaluation.run_eval import (
    EvalReport,
    SeedRun,
    evaluate_agent,
    load_agent,
    load_seed_bank,
    write_report,
)

__all__ = [
    "EvalReport",
    "SeedRun",
    "evaluate_agent",
    "load_agent",
    "load_seed_bank",
    "write_report",
]
