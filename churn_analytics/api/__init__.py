"""HTTP surface: FastAPI routers, dependencies, and response schemas."""
