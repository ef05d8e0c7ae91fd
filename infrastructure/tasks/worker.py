"""Run a Celery worker (and optionally the beat scheduler) for the order jobs.

    python -m infrastructure.tasks.worker            # worker on all queues
    python -m infrastructure.tasks.worker --beat     # worker plus the MoMo sweep schedule
"""
from __future__ import annotations

import sys
from typing import List, Optional

from .config.celery import celery_app

QUEUES = "high,default,low"


def build_argv(extra: Optional[List[str]] = None) -> List[str]:
    argv = ["worker", "--loglevel=INFO", f"--queues={QUEUES}", "--hostname=orders@%h"]
    return argv + list(extra or [])


def main(extra: Optional[List[str]] = None) -> None:
    celery_app.worker_main(argv=build_argv(sys.argv[1:] if extra is None else extra))


if __name__ == "__main__":
    main()
