"""
Shared access signature helpers.

Builds the validity window for a token and signs it with the account key.
Nothing here touches the network.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from azure.storage.blob import (
    BlobSasPermissions,
    ContainerSasPermissions,
    generate_blob_sas,
    generate_container_sas,
)
from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

# Tokens start slightly in the past to tolerate clock skew on the service side.
CLOCK_SKEW = timedelta(minutes=5)

BLOB_PERMISSION_FLAGS = "racwdxytmei"
CONTAINER_PERMISSION_FLAGS = "racwdxyltfmei"

# unit alias -> (relativedelta field, multiplier)
_UNITS: dict[str, tuple[str, int]] = {
    "y": ("years", 1),
    "year": ("years", 1),
    "years": ("years", 1),
    "Q": ("months", 3),
    "quarter": ("months", 3),
    "quarters": ("months", 3),
    "M": ("months", 1),
    "month": ("months", 1),
    "months": ("months", 1),
    "w": ("weeks", 1),
    "week": ("weeks", 1),
    "weeks": ("weeks", 1),
    "d": ("days", 1),
    "day": ("days", 1),
    "days": ("days", 1),
    "h": ("hours", 1),
    "hour": ("hours", 1),
    "hours": ("hours", 1),
    "m": ("minutes", 1),
    "minute": ("minutes", 1),
    "minutes": ("minutes", 1),
    "s": ("seconds", 1),
    "second": ("seconds", 1),
    "seconds": ("seconds", 1),
    "ms": ("microseconds", 1000),
    "millisecond": ("microseconds", 1000),
    "milliseconds": ("microseconds", 1000),
}


@dataclass(frozen=True)
class SasWindow:
    start: datetime
    expiry: datetime


@dataclass(frozen=True)
class BlobSasOptions:
    """Parameters of a blob-scoped token."""

    valid_for: int = 1
    valid_for_unit: str = "hour"
    content_type: str = "application/octet-stream"
    permissions: str = "r"


@dataclass(frozen=True)
class ContainerSasOptions:
    """Parameters of a container-scoped token."""

    valid_for: int = 1
    valid_for_unit: str = "hour"
    permissions: str = "c"


def duration(valid_for: int, valid_for_unit: str) -> relativedelta:
    """
    Turn an amount and a unit name into a calendar-aware offset.

    Single-letter aliases are case-sensitive ("M" is month, "m" is minute);
    long names are not.
    """
    unit = _UNITS.get(valid_for_unit) or _UNITS.get(valid_for_unit.lower())
    if unit is None:
        raise ValueError(f"Unknown time unit: {valid_for_unit!r}")
    field, multiplier = unit
    return relativedelta(**{field: valid_for * multiplier})


def _as_utc(moment: datetime) -> datetime:
    # The SDK formats timestamps without converting them, so they must be UTC.
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def compute_window(
    valid_for: int = 1,
    valid_for_unit: str = "hour",
    now: datetime | None = None,
) -> SasWindow:
    """
    Window [now - 5 minutes, now - 5 minutes + valid_for * unit].
    Naive `now` values are taken to be UTC.
    """
    now = _as_utc(now) if now is not None else datetime.now(timezone.utc)
    start = now - CLOCK_SKEW
    return SasWindow(start=start, expiry=start + duration(valid_for, valid_for_unit))


def _check_flags(permissions: str, allowed: str, scope: str) -> None:
    if not permissions:
        raise ValueError(f"{scope} SAS permissions must not be empty")
    invalid = sorted(set(permissions) - set(allowed))
    if invalid:
        raise ValueError(
            f"Invalid {scope} SAS permission(s) {''.join(invalid)!r} in {permissions!r}"
        )


def parse_blob_permissions(permissions: str) -> BlobSasPermissions:
    _check_flags(permissions, BLOB_PERMISSION_FLAGS, "blob")
    return BlobSasPermissions.from_string(permissions)


def parse_container_permissions(permissions: str) -> ContainerSasPermissions:
    _check_flags(permissions, CONTAINER_PERMISSION_FLAGS, "container")
    return ContainerSasPermissions.from_string(permissions)


def sign_blob(
    account_name: str,
    account_key: str,
    container: str,
    blob_name: str,
    options: BlobSasOptions,
    now: datetime | None = None,
) -> str:
    """Return the signed query string (no leading "?") for one blob."""
    window = compute_window(options.valid_for, options.valid_for_unit, now)
    permission = parse_blob_permissions(options.permissions)
    logger.debug(
        "Signing blob SAS for %s/%s (permissions=%s, expiry=%s)",
        container,
        blob_name,
        permission,
        window.expiry.isoformat(),
    )
    return generate_blob_sas(
        account_name=account_name,
        container_name=container,
        blob_name=blob_name,
        account_key=account_key,
        permission=permission,
        start=window.start,
        expiry=window.expiry,
        content_type=options.content_type,
    )


def sign_container(
    account_name: str,
    account_key: str,
    container: str,
    options: ContainerSasOptions,
    now: datetime | None = None,
) -> str:
    """Return the signed query string (no leading "?") for a whole container."""
    window = compute_window(options.valid_for, options.valid_for_unit, now)
    permission = parse_container_permissions(options.permissions)
    logger.debug(
        "Signing container SAS for %s (permissions=%s, expiry=%s)",
        container,
        permission,
        window.expiry.isoformat(),
    )
    return generate_container_sas(
        account_name=account_name,
        container_name=container,
        account_key=account_key,
        permission=permission,
        start=window.start,
        expiry=window.expiry,
    )
