from openaq_dashboard.core.normalize import (
    first_result,
    normalize_parameter,
    results,
    series_parameter,
)
from openaq_dashboard.core.schemas import ResponseEnvelope


def test_results_and_first_result():
    env = ResponseEnvelope(data={"meta": {}, "results": [{"id": 1}, {"id": 2}]})
    assert results(env) == [{"id": 1}, {"id": 2}]
    assert first_result(env) == {"id": 1}


def test_results_tolerates_odd_bodies():
    assert results(ResponseEnvelope(data=[1, 2])) == []
    assert results(ResponseEnvelope(data={"results": None})) == []
    assert first_result(ResponseEnvelope(data={"results": []})) is None


def test_normalize_parameter_camel_and_snake():
    camel = normalize_parameter({"id": 2, "name": "pm25", "displayName": "PM2.5", "units": "µg/m³"})
    snake = normalize_parameter({"id": 2, "name": "pm25", "display_name": "PM2.5", "unit": "µg/m³"})
    assert camel == snake
    assert camel["display_name"] == "PM2.5"
    assert camel["units"] == "µg/m³"


def test_series_parameter_from_first_point():
    series = [{"value": 3, "parameter": {"name": "o3", "units": "ppm"}}, {"value": 4}]
    assert series_parameter(series) == {"name": "o3", "units": "ppm"}


def test_series_parameter_empty():
    assert series_parameter([]) == {"name": None, "units": None}
