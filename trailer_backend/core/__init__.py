"""Core orchestration: job queue, state machine, aggregation and workers."""
