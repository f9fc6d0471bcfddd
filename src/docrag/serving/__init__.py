"""
Serving: thin FastAPI layer over the ingestion orchestrator and query service.
"""
