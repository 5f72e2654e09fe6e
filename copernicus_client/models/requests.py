"""Request builders for the wrapped copernicusmarine operations.

Each model maps the named arguments accepted by `CopernicusClient` onto the
keyword names of `copernicusmarine.subset`, `copernicusmarine.open_dataset`
and `copernicusmarine.read_dataframe`. Dates are checked as `YYYY-MM-DD`;
other values are forwarded unchanged.
"""

from collections.abc import Sequence
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

# =============================================================================
# Constants
# =============================================================================

TIME_OF_DAY_SUFFIX = "T00:00:00"
DEFAULT_BBOX = (-180.0, 179.92, -80.0, 90.0)
DEFAULT_DEPTH = (0.494, 0.494)
DEFAULT_DATASET_VERSION = "202406"
COORDINATES_SELECTION_METHOD = "strict-inside"
OUTPUT_FILENAME_PREFIX = "copernicus_"
OUTPUT_FILENAME_SUFFIX = ".nc"


def default_output_filename(start_date: str, end_date: str) -> str:
    """Build `copernicus_<YYYYMMDD>-<YYYYMMDD>.nc` from two ISO dates."""
    start_clean = start_date.replace("-", "")
    end_clean = end_date.replace("-", "")
    return f"{OUTPUT_FILENAME_PREFIX}{start_clean}-{end_clean}{OUTPUT_FILENAME_SUFFIX}"


def to_datetime_string(value: str) -> str:
    return f"{value}{TIME_OF_DAY_SUFFIX}"


def _coerce_date(value: Any) -> Any:
    # datetime is a date subclass; keep only the calendar day
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        try:
            return date.fromisoformat(value).isoformat()
        except ValueError:
            raise ValueError(f"dates must be YYYY-MM-DD, got {value!r}") from None
    return value


def _coerce_variables(value: Any) -> Any:
    if isinstance(value, str):
        return [value]
    if isinstance(value, tuple):
        return list(value)
    return value


# =============================================================================
# Spatial / vertical extents
# =============================================================================


class BoundingBox(BaseModel):
    """Region as `[xmin, xmax, ymin, ymax]`."""

    min_longitude: float
    max_longitude: float
    min_latitude: float
    max_latitude: float

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "BoundingBox":
        if len(values) != 4:
            raise ValueError(
                f"bbox must have 4 values (xmin, xmax, ymin, ymax), got {len(values)}"
            )
        return cls(
            min_longitude=values[0],
            max_longitude=values[1],
            min_latitude=values[2],
            max_latitude=values[3],
        )

    def to_kwargs(self) -> dict[str, float]:
        return {
            "minimum_longitude": self.min_longitude,
            "maximum_longitude": self.max_longitude,
            "minimum_latitude": self.min_latitude,
            "maximum_latitude": self.max_latitude,
        }

    def describe(self) -> str:
        return (
            f"lon[{self.min_longitude}, {self.max_longitude}] "
            f"lat[{self.min_latitude}, {self.max_latitude}]"
        )


class DepthRange(BaseModel):
    """Depth range in metres as `[minimum, maximum]`."""

    minimum: float
    maximum: float

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> "DepthRange":
        if len(values) != 2:
            raise ValueError(f"depth must have 2 values (minimum, maximum), got {len(values)}")
        return cls(minimum=values[0], maximum=values[1])

    def to_kwargs(self) -> dict[str, float]:
        return {"minimum_depth": self.minimum, "maximum_depth": self.maximum}


def _coerce_bbox(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return BoundingBox.from_sequence(value)
    return value


def _coerce_depth(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return DepthRange.from_sequence(value)
    return value


# =============================================================================
# Requests
# =============================================================================


class SubsetRequest(BaseModel):
    """Arguments for `copernicusmarine.subset`.

    Required fields:
        dataset_id: Exact dataset identifier
        variables: Variable names (a single string is accepted)
        start_date / end_date: ISO dates, `YYYY-MM-DD`
        username / password: Resolved credentials

    Optional fields:
        bbox: Region, defaults to the whole globe
        depth: Depth range, defaults to the surface layer
        dataset_version: Defaults to "202406"
        output_file: Defaults to `copernicus_<start>-<end>.nc`
        extra: Additional keyword arguments, forwarded last
    """

    dataset_id: str = Field(min_length=1)
    variables: list[str]
    start_date: str
    end_date: str
    bbox: BoundingBox = Field(default_factory=lambda: BoundingBox.from_sequence(DEFAULT_BBOX))
    depth: DepthRange = Field(default_factory=lambda: DepthRange.from_sequence(DEFAULT_DEPTH))
    dataset_version: str = DEFAULT_DATASET_VERSION
    output_file: str | None = None
    username: str
    password: str
    extra: dict[str, Any] = Field(default_factory=dict)

    @field_validator("variables", mode="before")
    @classmethod
    def variables_as_list(cls, v: Any) -> Any:
        return _coerce_variables(v)

    @field_validator("variables")
    @classmethod
    def variables_not_empty(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("at least one variable is required")
        return v

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def dates_as_strings(cls, v: Any) -> Any:
        return _coerce_date(v)

    @field_validator("bbox", mode="before")
    @classmethod
    def bbox_from_sequence(cls, v: Any) -> Any:
        return _coerce_bbox(v)

    @field_validator("depth", mode="before")
    @classmethod
    def depth_from_sequence(cls, v: Any) -> Any:
        return _coerce_depth(v)

    @model_validator(mode="after")
    def fill_output_file(self) -> "SubsetRequest":
        if not self.output_file:
            self.output_file = default_output_filename(self.start_date, self.end_date)
        return self

    @property
    def start_datetime(self) -> str:
        return to_datetime_string(self.start_date)

    @property
    def end_datetime(self) -> str:
        return to_datetime_string(self.end_date)

    @property
    def has_default_depth(self) -> bool:
        return (self.depth.minimum, self.depth.maximum) == DEFAULT_DEPTH

    def to_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for `copernicusmarine.subset`."""
        kwargs: dict[str, Any] = {
            "dataset_id": self.dataset_id,
            "dataset_version": self.dataset_version,
            "variables": list(self.variables),
            "start_datetime": self.start_datetime,
            "end_datetime": self.end_datetime,
            **self.bbox.to_kwargs(),
            **self.depth.to_kwargs(),
            "coordinates_selection_method": COORDINATES_SELECTION_METHOD,
            "output_filename": self.output_file,
            "username": self.username,
            "password": self.password,
        }
        kwargs.update(self.extra)
        return kwargs


class DatasetRequest(BaseModel):
    """Arguments for `copernicusmarine.open_dataset` and `read_dataframe`.

    Only `dataset_id` is required. Optional filters are forwarded only when
    set, so the remote service applies its own defaults otherwise.
    """

    dataset_id: str = Field(min_length=1)
    variables: list[str] | None = None
    start_date: str | None = None
    end_date: str | None = None
    bbox: BoundingBox | None = None
    depth: DepthRange | None = None
    dataset_version: str | None = None
    username: str | None = None
    password: str | None = None
    extra: dict[str, Any] = Field(default_factory=dict)

    @field_validator("variables", mode="before")
    @classmethod
    def variables_as_list(cls, v: Any) -> Any:
        return _coerce_variables(v)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def dates_as_strings(cls, v: Any) -> Any:
        return _coerce_date(v)

    @field_validator("bbox", mode="before")
    @classmethod
    def bbox_from_sequence(cls, v: Any) -> Any:
        return _coerce_bbox(v)

    @field_validator("depth", mode="before")
    @classmethod
    def depth_from_sequence(cls, v: Any) -> Any:
        return _coerce_depth(v)

    def to_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for `open_dataset` / `read_dataframe`."""
        kwargs: dict[str, Any] = {"dataset_id": self.dataset_id}

        if self.variables is not None:
            kwargs["variables"] = list(self.variables)
        if self.dataset_version is not None:
            kwargs["dataset_version"] = self.dataset_version

        if self.start_date is not None:
            kwargs["start_datetime"] = to_datetime_string(self.start_date)
        if self.end_date is not None:
            kwargs["end_datetime"] = to_datetime_string(self.end_date)

        if self.bbox is not None:
            kwargs.update(self.bbox.to_kwargs())
        if self.depth is not None:
            kwargs.update(self.depth.to_kwargs())

        if self.username is not None:
            kwargs["username"] = self.username
        if self.password is not None:
            kwargs["password"] = self.password

        kwargs.update(self.extra)
        return kwargs
