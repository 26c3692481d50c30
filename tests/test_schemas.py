from __future__ import annotations

import uuid
from datetime import UTC, date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from contracthub.models.enums import ReminderFrequency
from contracthub.schemas.company import CompanySettings, ContractNotificationSettings
from contracthub.schemas.contract import CreateContractPayload, UpdateContractPayload
from contracthub.schemas.request import CreateRequestPayload

EMPLOYEE_ID = uuid.uuid4()


def test_bare_dates_become_midnight_utc() -> None:
    payload = CreateContractPayload(
        employee_id=EMPLOYEE_ID, type="CDD", start_date="2025-01-31", end_date=date(2025, 12, 31)
    )
    assert payload.start_date == datetime(2025, 1, 31, tzinfo=UTC)
    assert payload.end_date == datetime(2025, 12, 31, tzinfo=UTC)


def test_offset_datetimes_are_normalised_to_utc() -> None:
    payload = CreateContractPayload(
        employee_id=EMPLOYEE_ID, type="CDD", start_date="2025-01-31T02:00:00+02:00"
    )
    assert payload.start_date == datetime(2025, 1, 31, 0, 0, tzinfo=UTC)
    assert payload.start_date.tzinfo == UTC


def test_end_date_equal_to_start_is_allowed() -> None:
    payload = CreateContractPayload(
        employee_id=EMPLOYEE_ID, type="CDD", start_date="2025-01-01", end_date="2025-01-01"
    )
    assert payload.end_date == payload.start_date


def test_end_date_before_start_is_rejected() -> None:
    with pytest.raises(ValidationError):
        CreateContractPayload(employee_id=EMPLOYEE_ID, type="CDD", start_date="2025-02-01", end_date="2025-01-01")


def test_update_rejects_end_date_with_clear_flag() -> None:
    with pytest.raises(ValidationError):
        UpdateContractPayload(end_date="2025-02-01", clear_end_date=True)


def test_status_change_request_needs_target_status() -> None:
    with pytest.raises(ValidationError):
        CreateRequestPayload(contract_id=uuid.uuid4(), type="status_change")
    payload = CreateRequestPayload(contract_id=uuid.uuid4(), type="status_change", requested_status="Expired")
    assert payload.requested_status == "Expired"


def test_company_settings_defaults() -> None:
    settings = CompanySettings()
    assert settings.expiring_soon_days == 30
    assert settings.auto_renewal is True
    assert settings.termination_notice_days == 60
    notifications = settings.contract_notifications
    assert notifications.expiring_contract_days == 30
    assert notifications.expired_contract_grace_days == 7
    assert notifications.reminder_frequency == ReminderFrequency.WEEKLY


def test_company_settings_fill_missing_keys() -> None:
    settings = CompanySettings.model_validate({"contract_notifications": {"expiring_contract_days": 10}})
    assert settings.contract_notifications.expiring_contract_days == 10
    assert settings.contract_notifications.dashboard_notifications is True


def test_negative_thresholds_are_rejected() -> None:
    with pytest.raises(ValidationError):
        ContractNotificationSettings(expired_contract_grace_days=-1)


def test_unknown_reminder_frequency_is_rejected() -> None:
    with pytest.raises(ValidationError):
        ContractNotificationSettings(reminder_frequency="hourly")


def test_timezone_offsets_compare_equal() -> None:
    eastern = timezone(timedelta(hours=-5))
    payload = UpdateContractPayload(start_date=datetime(2025, 3, 1, 19, 0, tzinfo=eastern))
    assert payload.start_date == datetime(2025, 3, 2, 0, 0, tzinfo=UTC)
