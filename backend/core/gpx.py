"""
GPX file parsing and handling.

This module contains functions for loading GPX files into a track DataFrame
with 'latitude', 'longitude' and 'time' columns. When every track point
carries a recorded speed (m/s) or course (degrees), they are added as 'speed'
(knots) and 'heading' columns.
"""

import os
import gpxpy
import pandas as pd
import logging
from typing import Tuple, Dict, Any

from core.calculations import meters_per_second_to_knots
from core.validation import validate_file_upload, validate_gpx_dataframe, ValidationError

logger = logging.getLogger(__name__)


def load_gpx_file(gpx_file) -> Tuple[pd.DataFrame, Dict[str, Any]]:
    """
    Load and parse a GPX file into a pandas DataFrame.

    Args:
        gpx_file: A file-like object (or string) containing GPX data

    Returns:
        tuple: (DataFrame with track data, dict with metadata)

    Raises:
        ValidationError: If file validation or parsing fails
    """
    try:
        validate_file_upload(gpx_file)

        gpx = gpxpy.parse(gpx_file)

        if not gpx.tracks:
            raise ValidationError("GPX file contains no tracks")

    except gpxpy.gpx.GPXException as e:
        raise ValidationError(f"Invalid GPX file format: {str(e)}") from e
    except ValidationError:
        raise
    except Exception as e:
        raise ValidationError(f"Failed to parse GPX file: {str(e)}") from e

    metadata = {
        'name': None,
        'description': None,
        'time': None,
        'author': None
    }

    if gpx.tracks[0].name:
        metadata['name'] = gpx.tracks[0].name
    elif isinstance(getattr(gpx_file, 'name', None), str):
        filename = os.path.basename(gpx_file.name)
        metadata['name'] = os.path.splitext(filename)[0]

    if gpx.description:
        metadata['description'] = gpx.description
    if gpx.time:
        metadata['time'] = gpx.time
    if gpx.author_name:
        metadata['author'] = gpx.author_name

    points = [point
              for track in gpx.tracks
              for segment in track.segments
              for point in segment.points]

    data = [{
        'latitude': point.latitude,
        'longitude': point.longitude,
        'time': point.time,
    } for point in points]
    df = pd.DataFrame(data)

    # Recorded values are used only when every point has one
    if points and all(point.speed is not None for point in points):
        df['speed'] = [meters_per_second_to_knots(point.speed) for point in points]
    if points and all(getattr(point, 'course', None) is not None for point in points):
        df['heading'] = [float(point.course) for point in points]

    validated_df = validate_gpx_dataframe(df, f"GPX file {metadata.get('name') or 'unknown'}")

    logger.info(f"Successfully loaded GPX file with {len(validated_df)} track points")
    return validated_df, metadata


def load_gpx_from_path(file_path: str) -> Tuple[pd.DataFrame, Dict[str, Any]]:
    """
    Load a GPX file from disk path.

    Args:
        file_path: Path to the GPX file

    Returns:
        tuple: (DataFrame with track data, dict with metadata)

    Raises:
        FileNotFoundError: If the file does not exist
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"GPX file not found: {file_path}")

    with open(file_path, 'r') as f:
        data, metadata = load_gpx_file(f)

        if not metadata['name']:
            metadata['name'] = os.path.splitext(os.path.basename(file_path))[0]

        return data, metadata
