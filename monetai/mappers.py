"""Mapping helpers between v1 wire contracts and core domain models."""

from __future__ import annotations

from contracts.v1.schemas import (
    AssignTestGroupResponse,
    CampaignContract,
    DiscountContract,
    PredictResponse,
    RegisterIntegrationResponse,
)
from core.domain import (
    Campaign,
    Discount,
    GroupAssignment,
    Integration,
    PredictionOutcome,
)


def contract_to_integration(contract: RegisterIntegrationResponse) -> Integration:
    return Integration(
        organization_id=contract.organization_id,
        platform=contract.platform,
        version=contract.version,
    )


def contract_to_campaign(contract: CampaignContract) -> Campaign:
    return Campaign(**contract.model_dump())


def contract_to_assignment(contract: AssignTestGroupResponse) -> GroupAssignment:
    campaign = contract_to_campaign(contract.campaign) if contract.campaign is not None else None
    return GroupAssignment(group=contract.group, campaign=campaign)


def contract_to_prediction(contract: PredictResponse) -> PredictionOutcome:
    return PredictionOutcome(prediction=contract.prediction, test_group=contract.test_group)


def contract_to_discount(contract: DiscountContract) -> Discount:
    """Convert a v1 ``DiscountContract`` to a domain ``Discount``."""
    return Discount(
        started_at=contract.started_at,
        ended_at=contract.ended_at,
        app_user_id=contract.app_user_id,
        sdk_key=contract.sdk_key,
    )
