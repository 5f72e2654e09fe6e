"""Public models for the Copernicus client."""

from copernicus_client.models.credentials import MASKED_PASSWORD, Credentials
from copernicus_client.models.requests import (
    DEFAULT_BBOX,
    DEFAULT_DATASET_VERSION,
    DEFAULT_DEPTH,
    BoundingBox,
    DatasetRequest,
    DepthRange,
    SubsetRequest,
    default_output_filename,
)

__all__ = [
    "Credentials",
    "MASKED_PASSWORD",
    "BoundingBox",
    "DepthRange",
    "SubsetRequest",
    "DatasetRequest",
    "default_output_filename",
    "DEFAULT_BBOX",
    "DEFAULT_DEPTH",
    "DEFAULT_DATASET_VERSION",
]
