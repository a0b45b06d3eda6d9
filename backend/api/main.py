"""
FastAPI backend for SteadyLab.

This provides REST API endpoints for steady speed and course detection on
GPX tracks, enabling framework-agnostic frontend development.
"""

from fastapi import FastAPI, UploadFile, File, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Dict, List, Optional, Any
import logging
import io

from config.settings import (
    APP_NAME, APP_VERSION, APP_DESCRIPTION, LOGGING_CONFIG, CORS_ORIGINS,
    MAX_UPLOAD_SIZE_BYTES, DEFAULT_MERGE, PARAMETER_RANGES,
    SpeedConfig, CourseConfig, StatisticsConfig
)
from core.validation import ValidationError

# Initialize logging
logging.basicConfig(**LOGGING_CONFIG)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=f"{APP_NAME} API",
    description=APP_DESCRIPTION,
    version=APP_VERSION
)

# Add CORS middleware for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Import our services
from services.steady_analysis_service import (
    analyze_steady_track, default_speed_params, default_course_params
)
from core.gpx import load_gpx_file


# Pydantic models for API responses
class SteadyInterval(BaseModel):
    start_idx: int
    end_idx: int
    start_time: float
    end_time: float
    duration: float
    point_count: int
    mean: float
    stdev: float
    min: float
    max: float


class SteadyIntervalsResponse(BaseModel):
    speed_intervals: List[SteadyInterval]
    heading_intervals: List[SteadyInterval]
    combined_intervals: List[SteadyInterval]
    track_summary: Dict[str, Any]
    parameters: Dict[str, Dict[str, Any]]


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": f"{APP_NAME} API",
        "version": APP_VERSION,
        "endpoints": {
            "POST /api/steady-intervals": "Find steady speed and course intervals in a GPX track",
            "GET /api/config": "Default detection parameters",
            "GET /api/health": "Health check endpoint"
        }
    }


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "steadylab-api"}


@app.get("/api/config")
async def get_config():
    """Get default configuration values."""
    return {
        "defaults": {
            "speed": SpeedConfig.as_dict(),
            "course": CourseConfig.as_dict(),
            "statistics": StatisticsConfig.as_dict(),
            "merge": DEFAULT_MERGE
        },
        "ranges": PARAMETER_RANGES
    }


@app.post("/api/steady-intervals", response_model=SteadyIntervalsResponse)
async def steady_intervals(
    file: UploadFile = File(...),
    min_elapsed: Optional[float] = None,
    speed_steady_range: Optional[float] = None,
    speed_steady_stdev: Optional[float] = None,
    course_steady_range: Optional[float] = None,
    course_steady_stdev: Optional[float] = None,
    regression: Optional[bool] = None,
    merge: bool = DEFAULT_MERGE
):
    """
    Find steady intervals in a GPX track file.

    Args:
        file: GPX file to analyze
        min_elapsed: Minimum elapsed time of a steady interval in seconds
        speed_steady_range: Speed range (knots) below which a window is always steady
        speed_steady_stdev: Speed deviation (knots) below which a window is always steady
        course_steady_range: Course range (degrees) below which a window is always steady
        course_steady_stdev: Course deviation (degrees) below which a window is always steady
        regression: Require a horizontal regression line
        merge: Merge statistically indistinguishable neighbours

    Returns:
        Steady speed, steady course and combined intervals with a track summary
    """
    try:
        if not file.filename or not file.filename.lower().endswith('.gpx'):
            raise HTTPException(status_code=400, detail="Only GPX files are allowed")

        content = await file.read()

        if len(content) > MAX_UPLOAD_SIZE_BYTES:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Maximum size is {MAX_UPLOAD_SIZE_BYTES / 1024 / 1024:.0f}MB, "
                       f"received {len(content) / 1024 / 1024:.1f}MB"
            )

        # Minimum reasonable GPX file size
        if len(content) < 100:
            raise HTTPException(status_code=400, detail="File appears to be empty or corrupted")

        logger.info(f"Processing file: {file.filename}")
        track_data, metadata = load_gpx_file(io.BytesIO(content))

        speed_params = default_speed_params().with_overrides(
            min_elapsed=min_elapsed,
            steady_range=speed_steady_range,
            steady_stdev=speed_steady_stdev,
            regression=regression
        )
        course_params = default_course_params().with_overrides(
            min_elapsed=min_elapsed,
            steady_range=course_steady_range,
            steady_stdev=course_steady_stdev,
            regression=regression
        )

        result = analyze_steady_track(
            track_data=track_data,
            metadata=metadata,
            filename=file.filename,
            speed_params=speed_params,
            course_params=course_params,
            merge=merge
        )
        payload = result.to_dict()

        return SteadyIntervalsResponse(
            speed_intervals=payload['speed_intervals'],
            heading_intervals=payload['heading_intervals'],
            combined_intervals=payload['combined_intervals'],
            track_summary=payload['summary'],
            parameters=payload['parameters']
        )

    except HTTPException:
        raise
    except ValidationError as e:
        logger.warning(f"Rejected track {file.filename}: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error analyzing track: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Error analyzing track: {str(e)}")
