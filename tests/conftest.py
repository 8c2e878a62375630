from pathlib import Path

import pytest

from appgram_surveys.catalog import SurveyCatalog

from helpers.builders import RecordingSubmitter

SURVEY_DIR = Path(__file__).resolve().parent.parent / "surveys"


@pytest.fixture(scope="session")
def catalog():
    """Load the bundled surveys/ catalog once for the entire test session."""
    c = SurveyCatalog(SURVEY_DIR)
    c.load()
    return c


@pytest.fixture
def submitter():
    """Fresh RecordingSubmitter for each test."""
    return RecordingSubmitter()


@pytest.fixture
def fixed_fingerprint():
    return lambda: "fp-test"
