"""
Tests for GPX loading, the analysis service and the FastAPI endpoints.
"""

import io
from datetime import datetime, timedelta

import gpxpy
import gpxpy.gpx
import pytest
from fastapi.testclient import TestClient

import run_api
from api.main import app
from config.settings import API_HOST, API_PORT, API_RELOAD
from core.gpx import load_gpx_file, load_gpx_from_path
from core.validation import ValidationError
from services.steady_analysis_service import analyze_gpx_file


def make_gpx_xml(n=60, step_seconds=10, lat_step=0.001, name="Morning passage"):
    """A track heading due north at constant speed."""
    gpx = gpxpy.gpx.GPX()
    track = gpxpy.gpx.GPXTrack(name=name)
    gpx.tracks.append(track)
    segment = gpxpy.gpx.GPXTrackSegment()
    track.segments.append(segment)

    base_time = datetime(2024, 6, 1, 12, 0, 0)
    for i in range(n):
        segment.points.append(gpxpy.gpx.GPXTrackPoint(
            latitude=50.0 + lat_step * i,
            longitude=-1.0,
            time=base_time + timedelta(seconds=step_seconds * i)
        ))
    return gpx.to_xml()


@pytest.fixture
def client():
    return TestClient(app)


class TestLoadGpx:
    """Tests for GPX parsing."""

    def test_load_gpx_file(self):
        df, metadata = load_gpx_file(io.StringIO(make_gpx_xml()))

        assert len(df) == 60
        assert {'latitude', 'longitude', 'time'} <= set(df.columns)
        assert 'speed' not in df.columns
        assert metadata['name'] == "Morning passage"

    def test_load_gpx_from_path(self, tmp_path):
        path = tmp_path / "passage.gpx"
        path.write_text(make_gpx_xml(name=None))

        df, metadata = load_gpx_from_path(str(path))

        assert len(df) == 60
        assert metadata['name'] == "passage"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_gpx_from_path(str(tmp_path / "missing.gpx"))

    def test_invalid_gpx(self):
        with pytest.raises(ValidationError):
            load_gpx_file(io.StringIO("this is not a gpx document"))

    def test_single_point_is_rejected(self):
        with pytest.raises(ValidationError):
            load_gpx_file(io.StringIO(make_gpx_xml(n=1)))


class TestSteadyAnalysisService:
    """Tests for the analysis service."""

    def test_constant_passage(self):
        result = analyze_gpx_file(io.StringIO(make_gpx_xml()), filename="passage.gpx")

        assert len(result.speed_intervals) == 1
        assert len(result.heading_intervals) == 1
        assert len(result.combined_intervals) == 1

        summary = result.summary()
        assert summary['point_count'] == 60
        assert summary['duration_seconds'] == 590.0
        assert summary['steady_combined_seconds'] == 590.0
        assert summary['filename'] == "passage.gpx"

    def test_to_dict(self):
        result = analyze_gpx_file(io.StringIO(make_gpx_xml()))
        payload = result.to_dict()

        assert payload['speed_intervals'][0]['start_idx'] == 0
        assert payload['speed_intervals'][0]['end_idx'] == 60
        assert payload['parameters']['course']['steady_range'] == 1.0


class TestApiEndpoints:
    """Tests for the HTTP API."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "POST /api/steady-intervals" in response.json()["endpoints"]

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_config(self, client):
        response = client.get("/api/config")
        assert response.status_code == 200

        defaults = response.json()["defaults"]
        assert defaults["speed"]["min_elapsed"] == 300.0
        assert defaults["course"]["steady_stdev"] == 0.5
        assert defaults["statistics"]["confidence"] == 0.99

    def test_steady_intervals(self, client):
        response = client.post(
            "/api/steady-intervals",
            files={"file": ("passage.gpx", make_gpx_xml().encode(), "application/gpx+xml")}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["speed_intervals"][0]["start_idx"] == 0
        assert body["speed_intervals"][0]["end_idx"] == 60
        assert len(body["combined_intervals"]) == 1
        assert body["track_summary"]["point_count"] == 60

    def test_parameter_overrides(self, client):
        response = client.post(
            "/api/steady-intervals",
            params={"min_elapsed": 120, "regression": False},
            files={"file": ("passage.gpx", make_gpx_xml().encode(), "application/gpx+xml")}
        )

        assert response.status_code == 200
        parameters = response.json()["parameters"]
        assert parameters["speed"]["min_elapsed"] == 120.0
        assert parameters["course"]["regression"] is False

    def test_wrong_extension(self, client):
        response = client.post(
            "/api/steady-intervals",
            files={"file": ("passage.txt", make_gpx_xml().encode(), "text/plain")}
        )
        assert response.status_code == 400

    def test_invalid_gpx(self, client):
        response = client.post(
            "/api/steady-intervals",
            files={"file": ("broken.gpx", b"<gpx>not really a track</gpx>" * 10, "application/gpx+xml")}
        )
        assert response.status_code == 400

    def test_invalid_parameters(self, client):
        response = client.post(
            "/api/steady-intervals",
            params={"speed_steady_range": -1.0},
            files={"file": ("passage.gpx", make_gpx_xml().encode(), "application/gpx+xml")}
        )
        assert response.status_code == 400


class TestDevServer:
    """Tests for the development server entry point."""

    def test_runs_app_with_configured_address(self, monkeypatch):
        calls = []
        monkeypatch.setattr(run_api.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

        run_api.main()

        assert calls == [("api.main:app", {'host': API_HOST, 'port': API_PORT, 'reload': API_RELOAD})]
