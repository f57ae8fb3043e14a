import logging
import os
from pathlib import Path

import requests
from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, Path as PathParam
from fastapi.middleware.cors import CORSMiddleware

from api import chain

# Load .env from the same directory as this file, regardless of cwd
load_dotenv(Path(__file__).parent / ".env")

logger = logging.getLogger(__name__)

ALGOD_URL = os.getenv("ALGOD_SERVER", "https://testnet-api.algonode.cloud")
APP_ID    = int(os.getenv("BIORBIT_APP_ID", "0"))

app = FastAPI(title="Biorbit Registry API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


def _read(fetch, *args):
    try:
        return fetch(ALGOD_URL, APP_ID, *args)
    except chain.BoxNotFound as e:
        raise HTTPException(status_code=404, detail="Not found") from e
    except requests.RequestException as e:
        logger.error("[CHAIN] algod request failed: %s", e)
        raise HTTPException(status_code=502, detail="algod unavailable") from e


@app.get("/")
async def root():
    return {
        "status": "ok",
        "message": "Biorbit Registry API is running",
        "app_id": APP_ID,
        "endpoints": ["/areas", "/areas/{area_id}", "/images/{image_id}"],
    }


@app.get("/areas")
def list_areas():
    """All protected areas, read live from the application's boxes."""
    areas = _read(chain.fetch_areas)
    return {"count": len(areas), "app_id": APP_ID, "areas": areas}


@app.get("/areas/{area_id}")
def get_area(area_id: int = PathParam(ge=0)):
    return _read(chain.fetch_area, area_id)


@app.get("/images/{image_id}")
def get_image(image_id: int = PathParam(ge=0)):
    return _read(chain.fetch_image, image_id)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
