"""FastAPI web interface for debate sessions."""
