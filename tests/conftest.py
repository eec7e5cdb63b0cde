"""Shared fixtures for gateway tests."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

import main

NASA_TEST_KEY = "test-nasa-key"
OPENAI_TEST_KEY = "test-openai-key"


@pytest.fixture(autouse=True)
def api_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    """Configure both credentials; tests that need one missing override it."""
    monkeypatch.setattr(main, "NASA_API_KEY", NASA_TEST_KEY)
    monkeypatch.setattr(main, "OPENAI_API_KEY", OPENAI_TEST_KEY)


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(main.app) as test_client:
        yield test_client


@pytest.fixture
def sample_epic_records() -> list[dict]:
    return [
        {
            "identifier": "20200101003633",
            "caption": "This image was taken by NASA's EPIC camera onboard the NOAA DSCOVR spacecraft",
            "image": "epic_1b_20200101003633",
            "version": "03",
            "centroid_coordinates": {"lat": -21.38, "lon": 167.27},
            "dscovr_j2000_position": {"x": -1339298.45, "y": 614627.44, "z": 267096.03},
            "sun_j2000_position": {"x": 26485163.0, "y": -132754300.0, "z": -57548232.0},
            "attitude_quaternions": {"q0": -0.33, "q1": 0.59, "q2": 0.66, "q3": 0.32},
            "date": "2020-01-01 00:31:45",
            "dscovr_distance": 1498356.2,
            "sun_distance": 147094421.5,
            "sun_earth_angle": 11.35,
        },
        {
            "identifier": "20200101022046",
            "caption": "This image was taken by NASA's EPIC camera onboard the NOAA DSCOVR spacecraft",
            "image": "epic_1b_20200101022046",
            "version": "03",
            "centroid_coordinates": {"lat": -21.39, "lon": 141.18},
            "dscovr_j2000_position": {"x": -1339800.0, "y": 614000.0, "z": 267000.0},
            "sun_j2000_position": {"x": 26600000.0, "y": -132700000.0, "z": -57500000.0},
            "attitude_quaternions": {"q0": -0.33, "q1": 0.59, "q2": 0.66, "q3": 0.32},
            "date": "2020-01-01 02:16:28",
            "dscovr_distance": 1498300.0,
            "sun_distance": 147094000.0,
            "sun_earth_angle": 11.34,
        },
    ]


@pytest.fixture
def sample_launches() -> list[dict]:
    return [
        {"flight_number": 1, "mission_name": "FalconSat"},
        {"flight_number": 6, "mission_name": "Falcon 9 Test Flight"},
        {"flight_number": 7, "mission_name": "COTS 1"},
        {"flight_number": 65, "mission_name": "Falcon Heavy Test Flight"},
        {"flight_number": 70, "mission_name": "Iridium NEXT Mission 5"},
    ]
