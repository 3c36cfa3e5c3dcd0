from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SCHEMA_VERSION = 1


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VersionedResponse(ApiModel):
    schema_version: int = SCHEMA_VERSION


class ErrorResponse(VersionedResponse):
    success: bool = False
    error: str
    code: str | None = None


# Subscriptions


class GenerateCodesRequest(ApiModel):
    duration: int
    count: int = 1
    villa_count: int = 1
    expires_at: datetime | None = None


class GenerateCodesResponse(VersionedResponse):
    codes: list[str]
    duration: int
    count: int
    villa_count: int


class RedeemCodeRequest(ApiModel):
    code: str = Field(min_length=1, max_length=32)
    device_id: str = Field(min_length=1, max_length=100)
    villa_id: str | None = Field(default=None, min_length=1, max_length=50)


class ActivateVillaRequest(ApiModel):
    code: str = Field(min_length=1, max_length=32)
    device_id: str = Field(min_length=1, max_length=100)
    villa_id: str = Field(min_length=1, max_length=50)


class SubscriptionPayload(ApiModel):
    id: int
    device_id: str
    villa_id: str | None = None
    type: str
    activation_code: str | None = None
    is_active: bool
    activated_at: datetime
    expires_at: datetime
    days_granted: int
    extended: bool = False


class RedeemResponse(VersionedResponse):
    success: bool = True
    subscription: SubscriptionPayload | None = None
    message: str | None = None


class DeviceRequest(ApiModel):
    device_id: str = Field(min_length=1, max_length=100)


class StatusPayload(ApiModel):
    is_active: bool
    type: str
    expires_at: datetime | None = None
    activation_code: str | None = None
    villa_limit: int = 0


class StatusResponse(VersionedResponse):
    subscription: StatusPayload


class VillaSubscriptionPayload(ApiModel):
    id: int
    villa_id: str
    activation_code: str | None = None
    is_active: bool
    activated_at: datetime
    expires_at: datetime


class VillaSubscriptionsResponse(VersionedResponse):
    subscriptions: list[VillaSubscriptionPayload] = Field(default_factory=list)


class UsedCodePayload(ApiModel):
    code: str
    duration: int
    villa_count: int
    used_at: datetime | None = None


class UsedCodesResponse(VersionedResponse):
    codes: list[UsedCodePayload] = Field(default_factory=list)


class CodeSummaryResponse(VersionedResponse):
    total: int = Field(ge=0)
    used: int = Field(ge=0)
    unused: int = Field(ge=0)
    recent: list[UsedCodePayload] = Field(default_factory=list)


class TrialRequest(ApiModel):
    device_id: str = Field(min_length=1, max_length=100)
    ip_fingerprint: str | None = Field(default=None, max_length=128)


class TrialEligibilityResponse(VersionedResponse):
    eligible: bool
    reason: str | None = None


# Registry


class VillaCreateRequest(ApiModel):
    villa_id: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=100)
    sms_number: str = Field(min_length=1, max_length=32)


class VillaUpdateRequest(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    sms_number: str | None = Field(default=None, min_length=1, max_length=32)
    is_active: bool | None = None


class VillaPayload(ApiModel):
    villa_id: str
    name: str
    sms_number: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class VillaResponse(VersionedResponse):
    villa: VillaPayload


class VillasResponse(VersionedResponse):
    villas: list[VillaPayload] = Field(default_factory=list)
    villa_limit: int = 0


class VehicleCreateRequest(ApiModel):
    plate_number: str = Field(min_length=1, max_length=32)
    room_name: str = Field(default="", max_length=64)
    sms_message: str | None = Field(default=None, max_length=160)


class VehicleUpdateRequest(ApiModel):
    plate_number: str | None = Field(default=None, min_length=1, max_length=32)
    room_name: str | None = Field(default=None, max_length=64)
    sms_message: str | None = Field(default=None, min_length=1, max_length=160)
    status: str | None = None


class VehiclePayload(ApiModel):
    id: int
    villa_id: str
    plate_number: str
    room_name: str
    sms_message: str
    serial_number: int
    status: str
    last_sent_at: datetime | None = None


class VehicleResponse(VersionedResponse):
    vehicle: VehiclePayload


class VehiclesResponse(VersionedResponse):
    vehicles: list[VehiclePayload] = Field(default_factory=list)


class DeletedResponse(VersionedResponse):
    success: bool = True


# Messaging


class SmsSendRequest(ApiModel):
    vehicle_ids: list[int] | None = None


class SmsResultPayload(ApiModel):
    vehicle_id: int
    plate_number: str
    status: str
    attempts: int
    error: str | None = None


class SmsSendResponse(VersionedResponse):
    villa_id: str
    trigger: str
    sent: int = 0
    failed: int = 0
    total: int = 0
    results: list[SmsResultPayload] = Field(default_factory=list)


class SmsHistoryDayPayload(ApiModel):
    date: str
    successful: int = 0
    errors: int = 0


class SmsHistoryResponse(VersionedResponse):
    days: list[SmsHistoryDayPayload] = Field(default_factory=list)


class AutomationRequest(ApiModel):
    is_enabled: bool
    time_of_day: str = Field(min_length=5, max_length=5)
    days_of_week: list[bool] = Field(min_length=7, max_length=7)


class AutomationPayload(ApiModel):
    villa_id: str
    is_enabled: bool
    time_of_day: str
    days_of_week: list[bool]
    last_run_at: datetime | None = None
    next_run_at: datetime | None = None


class AutomationResponse(VersionedResponse):
    schedule: AutomationPayload
