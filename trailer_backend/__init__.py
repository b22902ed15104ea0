"""Developer Trailer generation backend: job queue, workers, and status API."""
