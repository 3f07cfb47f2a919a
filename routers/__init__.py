"""API routers for the AI Video Generator."""
