"""v1 wire contracts for the SDK backend API."""

__version__ = "1.0.0"

from .schemas import (
    AssignTestGroupRequest,
    AssignTestGroupResponse,
    CampaignContract,
    CreateDiscountRequest,
    CreateDiscountResponse,
    DiscountContract,
    ErrorResponse,
    LatestDiscountResponse,
    LogEventRequest,
    PredictRequest,
    PredictResponse,
    ReceiptValidationRequest,
    RegisterIntegrationRequest,
    RegisterIntegrationResponse,
    TransactionMappingRequest,
    format_timestamp,
)

__all__ = [
    "__version__",
    "AssignTestGroupRequest",
    "AssignTestGroupResponse",
    "CampaignContract",
    "CreateDiscountRequest",
    "CreateDiscountResponse",
    "DiscountContract",
    "ErrorResponse",
    "LatestDiscountResponse",
    "LogEventRequest",
    "PredictRequest",
    "PredictResponse",
    "ReceiptValidationRequest",
    "RegisterIntegrationRequest",
    "RegisterIntegrationResponse",
    "TransactionMappingRequest",
    "format_timestamp",
]
