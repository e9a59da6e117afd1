import pytest
from pydantic import ValidationError
from requests.structures import CaseInsensitiveDict


def test_import_schemas():
    from openaq_dashboard.core.schemas import ParameterRecord, ResponseEnvelope  # type: ignore

    assert ResponseEnvelope and ParameterRecord


def test_rate_limit_headers_case_insensitive():
    from openaq_dashboard.core.schemas import RateLimitHeaders

    headers = CaseInsensitiveDict({"X-RateLimit-Used": "1", "X-RateLimit-Reset": "60"})
    parsed = RateLimitHeaders.from_response_headers(headers)
    assert parsed.used == "1"
    assert parsed.remaining is None
    assert parsed.reset == "60"


def test_envelope_is_frozen():
    from openaq_dashboard.core.schemas import ResponseEnvelope

    env = ResponseEnvelope(data={"results": []})
    with pytest.raises(ValidationError):
        env.data = {}
    assert env.headers.model_dump() == {"used": None, "remaining": None, "reset": None}


def test_parameter_record_requires_name():
    from openaq_dashboard.core.schemas import ParameterRecord

    assert ParameterRecord(remote_id=2, name="pm25").units is None
    with pytest.raises(ValidationError):
        ParameterRecord(remote_id=2, name="")
