"""
Typed query filters per endpoint family.
Why: reject bad filters before they cost an upstream call (and quota).
"""

from datetime import date, datetime
from typing import Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Scalar = Union[str, int, float, bool]


def _parse_iso(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _coerce_iso(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, str):
        try:
            _parse_iso(value)
        except ValueError:
            raise ValueError(f"not an ISO-8601 date/datetime: {value!r}") from None
    return value


class PageFilters(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    limit: Optional[int] = Field(default=None, ge=1, le=1000)
    page: Optional[int] = Field(default=None, ge=1)
    order_by: Optional[str] = None
    sort_order: Optional[Literal["asc", "desc"]] = None

    def to_query(self) -> Dict[str, Scalar]:
        return self.model_dump(exclude_none=True)


class LocationFilters(PageFilters):
    iso: Optional[str] = Field(default=None, min_length=2, max_length=2)
    coordinates: Optional[str] = None
    radius: Optional[int] = Field(default=None, ge=1, le=25000)
    bbox: Optional[str] = None
    parameters_id: Optional[int] = Field(default=None, ge=1)
    providers_id: Optional[int] = Field(default=None, ge=1)

    @field_validator("iso")
    @classmethod
    def _upper_iso(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v

    @field_validator("coordinates")
    @classmethod
    def _check_coordinates(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        try:
            lat_s, lon_s = v.split(",")
            lat, lon = float(lat_s), float(lon_s)
        except ValueError:
            raise ValueError("coordinates must look like 'lat,lon'") from None
        if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
            raise ValueError("coordinates out of range")
        return f"{lat_s.strip()},{lon_s.strip()}"

    @model_validator(mode="after")
    def _check_geo(self) -> "LocationFilters":
        if (self.coordinates is None) != (self.radius is None):
            raise ValueError("coordinates and radius must be given together")
        if self.coordinates is not None and self.bbox is not None:
            raise ValueError("coordinates/radius cannot be combined with bbox")
        return self

    @classmethod
    def near(cls, lat: float, lon: float, radius: int, **kwargs: Any) -> "LocationFilters":
        return cls(coordinates=f"{lat},{lon}", radius=radius, **kwargs)


class DateRangeFilters(PageFilters):
    datetime_from: Optional[str] = None
    datetime_to: Optional[str] = None

    @field_validator("datetime_from", "datetime_to", mode="before")
    @classmethod
    def _iso_bounds(cls, v: Any) -> Any:
        return _coerce_iso(v)

    @model_validator(mode="after")
    def _check_order(self) -> "DateRangeFilters":
        if self.datetime_from and self.datetime_to:
            start, end = _parse_iso(self.datetime_from), _parse_iso(self.datetime_to)
            # naive vs aware can't be ordered; leave that to upstream
            if (start.tzinfo is None) == (end.tzinfo is None) and start > end:
                raise ValueError("datetime_from must not be after datetime_to")
        return self


class ParameterLatestFilters(PageFilters):
    datetime_min: Optional[str] = None

    @field_validator("datetime_min", mode="before")
    @classmethod
    def _iso_min(cls, v: Any) -> Any:
        return _coerce_iso(v)


Filters = Union[PageFilters, Mapping[str, Any]]


def to_query(filters: Optional[Filters]) -> Optional[Dict[str, Any]]:
    """Turn a filter model or plain mapping into a query dict (None stays None)."""
    if filters is None:
        return None
    if isinstance(filters, PageFilters):
        return filters.to_query()
    return dict(filters)
