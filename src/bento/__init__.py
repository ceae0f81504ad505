"""Bento: typed outcomes for HTTP client responses.

Public API:
    - classify(): Turn a response or exception into an ApiResponse
    - ApiResponse: Success | Failure.Error | Failure.Exception, with combinators
    - merge(): Combine list-bearing responses under a MergePolicy
    - request(), request_with_context(), request_in_scope(): callback adapters
    - Config / config_scope(): classification settings
"""

from __future__ import annotations

import logging

from bento.calls import (
    ResponseCallback,
    callback_from_on_result,
    callback_in_scope,
    callback_with_context,
    enqueue,
    request,
    request_in_scope,
    request_with_context,
)
from bento.classify import RawResponse, classify, default_decode
from bento.config import Config, config_scope, current_config
from bento.errors import APIError, BentoError, ConfigurationError
from bento.mappers import (
    ErrorModelMapper,
    ModelErrorMapper,
    ModelSuccessMapper,
    SuccessModelMapper,
    model_decoder,
)
from bento.operators import ApiResponseOperator, ApiResponseSuspendOperator
from bento.response import (
    ApiResponse,
    Failure,
    FailureError,
    FailureException,
    MergePolicy,
    Success,
    merge,
)

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("bento-http")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("bento").addHandler(logging.NullHandler())

__all__ = [
    "APIError",
    "ApiResponse",
    "ApiResponseOperator",
    "ApiResponseSuspendOperator",
    "BentoError",
    "Config",
    "ConfigurationError",
    "ErrorModelMapper",
    "Failure",
    "FailureError",
    "FailureException",
    "MergePolicy",
    "ModelErrorMapper",
    "ModelSuccessMapper",
    "RawResponse",
    "ResponseCallback",
    "Success",
    "SuccessModelMapper",
    "callback_from_on_result",
    "callback_in_scope",
    "callback_with_context",
    "classify",
    "config_scope",
    "current_config",
    "default_decode",
    "enqueue",
    "merge",
    "model_decoder",
    "request",
    "request_in_scope",
    "request_with_context",
]
