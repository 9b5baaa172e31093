"""HTTP routers exposing the request router over FastAPI."""
