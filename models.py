#!/usr/bin/env python3
"""
Data models shared by the extractor and the search client.
JSON keys stay camelCase (the shape downstream consumers already read);
Python attributes are snake_case.
"""

import re
from typing import Any, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

DEFAULT_DURATION = 15
DEFAULT_RESULT_SIZE = 100

DAY_PREF_PATTERN = re.compile(r"^[1-7](,[1-7])*$")


class PatientSummary(BaseModel):
    """One row of the patient search results (the identity tuple)."""

    model_config = ConfigDict(populate_by_name=True)

    index: int
    hidden_patient_id: str = Field(alias="hiddenPatientId", min_length=1)
    account_number: Optional[str] = Field(default=None, alias="accountNumber")
    patient_name: Optional[str] = Field(default=None, alias="patientName")
    ssn: Optional[str] = None
    phone: Optional[str] = None
    dob: Optional[str] = None
    chart: Optional[str] = None
    patient_balance: Optional[str] = Field(default=None, alias="patientBalance")
    plan_balance: Optional[str] = Field(default=None, alias="planBalance")

    def to_json_dict(self):
        return self.model_dump(by_alias=True)


class SlotRecord(BaseModel):
    """One bookable appointment slot after flattening."""

    model_config = ConfigDict(populate_by_name=True)

    slot_date: Optional[Any] = Field(default=None, alias="date")
    slot_time: Optional[Any] = Field(default=None, alias="time")
    slot_datetime: Optional[Any] = Field(default=None, alias="datetime")
    provider_name: Optional[Any] = Field(default=None, alias="provider")
    provider_id: Optional[Any] = Field(default=None, alias="providerId")
    facility_name: Optional[Any] = Field(default=None, alias="facility")
    facility_id: Optional[Any] = Field(default=None, alias="facilityId")
    visit_type: Optional[Any] = Field(default=None, alias="visitType")
    duration: Optional[Any] = None

    def to_json_dict(self):
        return self.model_dump(by_alias=True)


class ProviderSpec(BaseModel):
    id: Union[int, str]
    vrule: Union[int, str] = Field(default=0, validation_alias=AliasChoices("vrule", "rule"))
    name: str = ""

    @field_validator("vrule", "name", mode="before")
    @classmethod
    def none_to_default(cls, value, info):
        if value is None:
            return 0 if info.field_name == "vrule" else ""
        return value

    def to_criteria(self):
        return {"provider": self.id, "vrule": self.vrule, "providerName": self.name}


class SearchParams(BaseModel):
    """
    Appointment search configuration.

    Only providers and visitType are required; every other field has the
    neutral default the search endpoint expects.
    """

    model_config = ConfigDict(populate_by_name=True)

    # None defaults so a missing value still reaches the validators below
    providers: List[ProviderSpec] = Field(default=None, validate_default=True)
    visit_type: str = Field(default=None, alias="visitType", validate_default=True)

    facility: str = "0"
    reason: str = ""
    specialty: str = ""
    gender: str = ""
    language: str = ""
    show_only_residents: bool = Field(default=False, alias="showOnlyResidents")
    accepting_new_patient: bool = Field(default=False, alias="acceptingNewPatient")
    start_date: str = Field(default="", alias="startDate")
    start_time: str = Field(default="", alias="startTime")
    end_time: str = Field(default="", alias="endTime")
    day_pref: str = Field(default="", alias="dayPref")
    duration: int = DEFAULT_DURATION
    next_appt_after: int = Field(default=0, alias="nextApptAfter")
    start_at_same_time: bool = Field(default=False, alias="startAtSameTime")
    exclude_booked_slots: bool = Field(default=True, alias="excludeBookedSlots")
    exclude_blocked_slots: bool = Field(default=True, alias="excludeBlockedSlots")
    result_size: int = Field(default=DEFAULT_RESULT_SIZE, alias="resultSize")

    @field_validator("providers", mode="before")
    @classmethod
    def normalize_providers(cls, value):
        if not isinstance(value, (list, tuple)) or len(value) == 0:
            raise ValueError("providers is required and must be a non-empty array")
        normalized = []
        for provider in value:
            if isinstance(provider, bool):
                raise ValueError(f"invalid provider entry: {provider!r}")
            if isinstance(provider, int):
                normalized.append({"id": provider})
            elif isinstance(provider, str) and provider.strip().isdigit():
                normalized.append({"id": int(provider.strip())})
            elif isinstance(provider, dict):
                if provider.get("id") in (None, ""):
                    raise ValueError(f"provider object is missing an id: {provider!r}")
                normalized.append(provider)
            elif isinstance(provider, ProviderSpec):
                normalized.append(provider)
            else:
                raise ValueError(f"invalid provider entry: {provider!r}")
        return normalized

    @field_validator("visit_type", mode="before")
    @classmethod
    def require_visit_type(cls, value):
        if value is None or not str(value).strip():
            raise ValueError("visitType is required")
        return str(value)

    @field_validator(
        "facility", "reason", "specialty", "gender", "language",
        "start_date", "start_time", "end_time", "day_pref",
        mode="before",
    )
    @classmethod
    def empty_string_default(cls, value, info):
        if info.field_name == "facility":
            # "0" means all facilities
            if value is None or not str(value).strip():
                return "0"
            return str(value)
        if value is None:
            return ""
        return str(value)

    @field_validator("duration", "result_size", mode="before")
    @classmethod
    def positive_or_default(cls, value, info):
        # 0 / None / "" fall back to the endpoint defaults
        if value in (None, "", 0):
            return DEFAULT_DURATION if info.field_name == "duration" else DEFAULT_RESULT_SIZE
        return value

    @field_validator("next_appt_after", mode="before")
    @classmethod
    def zero_default(cls, value):
        return 0 if value in (None, "") else value

    @field_validator("day_pref")
    @classmethod
    def check_day_pref(cls, value):
        if value and not DAY_PREF_PATTERN.match(value.replace(" ", "")):
            raise ValueError("dayPref must be a comma-separated list of days 1-7 (1=Sun, 7=Sat)")
        return value.replace(" ", "")
