"""opsim_app: FastAPI host for the opsim engine."""
