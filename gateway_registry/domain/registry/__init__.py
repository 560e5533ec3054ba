"""Registry domain: models and file codec."""
