"""HTTP front end for Steward (FastAPI)."""
