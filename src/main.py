"""Entrypoint: `python -m src.main` serves the API with uvicorn."""

import os

import uvicorn

from src.api.app import create_app

app = create_app()


if __name__ == "__main__":
    port = int(os.getenv("AMAZONS_PORT", "8000"))
    uvicorn.run(app, host="0.0.0.0", port=port)
