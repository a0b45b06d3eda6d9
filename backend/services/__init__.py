"""
Services package.

Provides business logic layer between API and core algorithms.

Modules:
    steady_analysis_service: Steady speed and course analysis of GPX tracks
"""

from services.steady_analysis_service import (
    analyze_steady_track, analyze_gpx_file, SteadyAnalysisResult
)

__all__ = [
    'analyze_steady_track',
    'analyze_gpx_file',
    'SteadyAnalysisResult',
]
