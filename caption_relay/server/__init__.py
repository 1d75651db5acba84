"""HTTP API package — FastAPI app and its Pydantic schemas."""
