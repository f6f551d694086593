"""
RFM Segmentation API
====================

FastAPI endpoints for the segmentation pipeline.

Usage:
    uvicorn rfm_segmentation.api:app --reload

Endpoints:
    POST /select-k - Inertia/silhouette per candidate K
    POST /segment - Segment customers from an RFM table
    GET /health - Health check
"""

import os
from io import StringIO
from typing import Optional, List, Dict, Any

import pandas as pd
from fastapi import FastAPI, HTTPException, UploadFile, File, Query, Depends
from pydantic import BaseModel
from loguru import logger

from . import __version__
from .common import load_config
from .common.reporting import to_serializable
from .customer_segmentation import SegmentationPipeline
from .exceptions import SegmentationError

app = FastAPI(
    title="RFM Segmentation API",
    description="K-Means customer segmentation over RFM features",
    version=__version__
)


class HealthResponse(BaseModel):
    status: str
    version: str


class SelectionRow(BaseModel):
    k: int
    inertia: float
    silhouette: Optional[float] = None
    n_iter: int
    converged: bool


class SelectKResponse(BaseModel):
    status: str
    n_customers: int
    n_dropped: int
    diagnostics: List[SelectionRow]


class SegmentResponse(BaseModel):
    status: str
    n_customers: int
    n_dropped: int
    n_clusters: int
    inertia: float
    converged: bool
    cluster_means: List[Dict[str, Any]]
    segments: List[Dict[str, Any]]


def get_config() -> Dict[str, Any]:
    """Server configuration, read from RFM_CONFIG or config/settings.yaml."""
    return load_config(os.getenv("RFM_CONFIG", "config/settings.yaml"))


async def read_upload(file: UploadFile) -> pd.DataFrame:
    contents = await file.read()
    try:
        return pd.read_csv(StringIO(contents.decode('utf-8')), dtype=str)
    except (UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise HTTPException(status_code=400, detail=f"Unreadable CSV upload: {e}")


# Health check
@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=__version__)


@app.post("/select-k", response_model=SelectKResponse)
async def select_k(
    file: UploadFile = File(...),
    k_min: Optional[int] = Query(None, ge=1),
    k_max: Optional[int] = Query(None, ge=1),
    compute_silhouette: Optional[bool] = Query(None),
    config: Dict[str, Any] = Depends(get_config)
):
    """
    Inertia and silhouette for each candidate K from an uploaded RFM CSV.

    Expected CSV format:
    - CustomerID, Recency, Frequency, Monetary
    """
    rfm = await read_upload(file)

    selection = dict(config['selection'])
    if k_min is not None:
        selection['k_min'] = k_min
    if k_max is not None:
        selection['k_max'] = k_max
    if compute_silhouette is not None:
        selection['compute_silhouette'] = compute_silhouette

    try:
        run_config = load_config(overrides={**config, 'selection': selection})
        pipeline = SegmentationPipeline(run_config)
        clean = pipeline.prepare(rfm)
        diagnostics = pipeline.select_k(clean)
    except SegmentationError as e:
        logger.warning(f"Cluster selection rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Cluster selection error: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "status": "success",
        "n_customers": len(clean),
        "n_dropped": len(rfm) - len(clean),
        "diagnostics": to_serializable(diagnostics)
    }


@app.post("/segment", response_model=SegmentResponse)
async def segment_customers(
    file: UploadFile = File(...),
    n_clusters: Optional[int] = Query(None, ge=1),
    random_state: Optional[int] = Query(None),
    n_init: Optional[int] = Query(None, ge=1),
    config: Dict[str, Any] = Depends(get_config)
):
    """
    Segment customers from an uploaded RFM CSV.

    Expected CSV format:
    - CustomerID, Recency, Frequency, Monetary

    Labels come from the server configuration.
    """
    rfm = await read_upload(file)

    clustering = dict(config['clustering'])
    if n_clusters is not None:
        clustering['n_clusters'] = n_clusters
    if random_state is not None:
        clustering['random_state'] = random_state
    if n_init is not None:
        clustering['n_init'] = n_init

    try:
        run_config = load_config(overrides={**config, 'clustering': clustering})
        pipeline = SegmentationPipeline(run_config)
        result = pipeline.run(rfm)
    except SegmentationError as e:
        logger.warning(f"Segmentation rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Segmentation error: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "status": "success",
        "n_customers": len(result.segments),
        "n_dropped": result.n_dropped,
        "n_clusters": result.n_clusters,
        "inertia": result.inertia,
        "converged": result.converged,
        "cluster_means": to_serializable(result.cluster_means.reset_index()),
        "segments": to_serializable(result.segments)
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
