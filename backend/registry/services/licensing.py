"""License gating and scope derivation."""
from datetime import datetime
from typing import Dict, List, Optional

from registry.constants import ErrorReason, LicenseStatus, LicenseTier
from registry.schemas.records import LicenseRecord
from registry.utils.exceptions import ForbiddenError

_BASE_SCOPES = ["layout.*", "style.*", "dom.*", "factory.*"]

TIER_SCOPES: Dict[str, List[str]] = {
    LicenseTier.MACH2: _BASE_SCOPES,
    LicenseTier.MACH3: _BASE_SCOPES + ["transport.*", "state.*", "opencloud.*"],
}

INTERNAL_SCOPES = ["*"]


def scopes_for_tier(tier: str, is_internal: bool) -> List[str]:
    """
    Derive the scopes a session is granted.

    Pure function of the license; request input never contributes.
    Internal licenses get the wildcard scope, unknown tiers get nothing.
    """
    if is_internal:
        return list(INTERNAL_SCOPES)
    return list(TIER_SCOPES.get(tier, []))


def check_license(license: Optional[LicenseRecord], now: datetime) -> LicenseRecord:
    """
    Ensure a license currently allows minting sessions.

    Status and the hard expiry are checked independently: a license can be
    past expires_at while its status still says active.

    Args:
        license: The game's license, or None if it has none
        now: Current UTC time

    Returns:
        The license, unchanged

    Raises:
        ForbiddenError: no_license, license_suspended, license_expired or license_inactive
    """
    if license is None:
        raise ForbiddenError(ErrorReason.NO_LICENSE)
    if license.status == LicenseStatus.SUSPENDED:
        raise ForbiddenError(ErrorReason.LICENSE_SUSPENDED)
    if license.status == LicenseStatus.EXPIRED:
        raise ForbiddenError(ErrorReason.LICENSE_EXPIRED)
    if license.expires_at is not None and license.expires_at <= now:
        raise ForbiddenError(ErrorReason.LICENSE_EXPIRED)
    # Only active licenses mint; trial and any unknown status are refused
    if license.status != LicenseStatus.ACTIVE:
        raise ForbiddenError(ErrorReason.LICENSE_INACTIVE)
    return license
