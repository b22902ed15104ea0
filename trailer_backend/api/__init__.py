"""HTTP API: FastAPI app factory, dependencies and routers."""
