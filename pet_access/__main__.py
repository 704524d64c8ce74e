"""Run the API with uvicorn: ``python -m pet_access``."""

import os

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "pet_access.main:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8080")),
        log_config=None,
    )
