import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import pytz

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from insights.config import AnalysisConfig, CollectionConfig  # noqa: E402
from insights.models.record import Record  # noqa: E402

BASE_TIME = datetime(2024, 1, 15, 12, 0, tzinfo=pytz.utc)


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str = "",
                 headers: Optional[Dict[str, str]] = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.headers = headers or {}
        self.elapsed = timedelta(milliseconds=42)

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """Stands in for requests.Session; replays queued responses or exceptions."""

    def __init__(self, responses: Optional[List[Any]] = None) -> None:
        self.responses = list(responses or [])
        self.headers: Dict[str, str] = {}
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def get(self, url: str, params: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        response = self.responses.pop(0) if self.responses else FakeResponse(200, {})
        if isinstance(response, Exception):
            raise response
        return response

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_record():
    def _factory(content: str = "Some diabetes post", platform: str = "reddit",
                 timestamp: Any = BASE_TIME, **kwargs: Any) -> Record:
        return Record(content=content, platform=platform, timestamp=timestamp, **kwargs)

    return _factory


@pytest.fixture
def lemon_records(make_record) -> List[Record]:
    return [
        make_record("Lemon helps with confusion during lows", "reddit",
                    BASE_TIME, record_id="p1", location="California, USA",
                    keywords=["lemon"], sentiment="positive"),
        make_record("Lemon slices in my kit, works wonders", "twitter",
                    BASE_TIME + timedelta(days=1), record_id="p2", location="London, UK",
                    keywords=["lemon"], sentiment="positive"),
        make_record("Sucking a lemon clears my head on a hypo", "reddit",
                    BASE_TIME + timedelta(days=2), record_id="p3", location="Texas, USA",
                    keywords=["lemon"], sentiment="positive"),
    ]


@pytest.fixture
def glucose_records(make_record):
    def _factory(values: List[float], **tags: str) -> List[Record]:
        return [
            make_record(f"{value} mg/dL", "CGM", BASE_TIME + timedelta(hours=index),
                        kind="glucose", record_id=f"g{index}", value=value, tags=dict(tags))
            for index, value in enumerate(values)
        ]

    return _factory


@pytest.fixture
def analysis_config() -> AnalysisConfig:
    return AnalysisConfig()


@pytest.fixture
def collection_config() -> CollectionConfig:
    return CollectionConfig(max_retries=3, backoff_base_seconds=1.0, backoff_max_seconds=60.0)


@pytest.fixture
def response_factory():
    def _factory(status_code: int = 200, payload: Any = None, text: str = "",
                 headers: Optional[Dict[str, str]] = None) -> FakeResponse:
        return FakeResponse(status_code, payload, text, headers)

    return _factory


@pytest.fixture
def fake_session_factory():
    def _factory(responses: Optional[List[Any]] = None) -> FakeSession:
        return FakeSession(responses)

    return _factory
