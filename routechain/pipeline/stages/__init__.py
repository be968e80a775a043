"""Reusable stages for routechain pipelines."""

from .auth import API_KEY, APIKeyStage, api_key_stage
from .schema import BODY, PARAMS, QUERY, SchemaStage, schema_stage

__all__ = [
    "API_KEY",
    "APIKeyStage",
    "api_key_stage",
    "BODY",
    "PARAMS",
    "QUERY",
    "SchemaStage",
    "schema_stage",
]
