"""
Standalone worker process.

Run with `python -m trailer_backend.workers`.
"""

from trailer_backend.workers.runner import run_worker

__all__ = ["run_worker"]
