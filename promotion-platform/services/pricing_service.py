"""
Pricing service for promotion package quotes.

Calculates what a provider pays for a package before a promotion is created.

Rules:
- Default duration: the package's list price.
- Custom duration (Spotlight only): price_per_day * days, within the package's
  allowed day range. Other tiers only sell their default duration.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

from domain.errors import PromotionValidationError
from domain.package import DEFAULT_CATALOG, PackageCatalog, PackageType
from domain.time import require_utc_timestamp

DEFAULT_CURRENCY = "NGN"


@dataclass(frozen=True, slots=True)
class PromotionQuote:
    """
    Price for one package purchase.

    Includes:
    - Package and duration being bought
    - Total price in minor units
    - Quote expiration (prevents stale price abuse)
    """
    package_type: PackageType
    duration_days: int
    price: int
    currency: str
    is_custom_duration: bool
    created_at: datetime
    expires_at: datetime  # Quote valid for limited time (e.g., 15 minutes)

    def is_expired(self, now: datetime) -> bool:
        """Check if this quote has expired."""
        require_utc_timestamp("now", now)
        return now > self.expires_at


def calculate_promotion_quote(
    package_type: Union[PackageType, str],
    now: datetime,
    duration_days: Optional[int] = None,
    catalog: PackageCatalog = DEFAULT_CATALOG,
    quote_validity_minutes: int = 15,
) -> PromotionQuote:
    """
    Calculate a quote for a package.

    Args:
        package_type: spotlight, feature or launch
        now: UTC timestamp the quote is issued at
        duration_days: Requested duration (None -> package default)
        catalog: Package catalog to price from
        quote_validity_minutes: How long the quote is valid (default: 15 minutes)

    Returns:
        PromotionQuote

    Raises:
        UnknownPackageType: package not in the catalog
        PromotionValidationError: duration not allowed for the package

    Example:
        quote = calculate_promotion_quote("spotlight", now, duration_days=10)
        # quote.price == 14990 (10 days at 1499/day)
    """
    require_utc_timestamp("now", now)
    package = catalog.get_package(package_type)

    days = package.default_duration_days if duration_days is None else duration_days
    if days <= 0:
        raise PromotionValidationError("duration_days must be > 0")

    if days == package.default_duration_days:
        price = package.price
        is_custom = False
    else:
        policy = package.custom_duration
        if policy is None:
            raise PromotionValidationError(
                f"{package.name} is only sold for {package.default_duration_days} days"
            )
        if not policy.allows(days):
            raise PromotionValidationError(
                f"Custom duration must be between {policy.min_days} and {policy.max_days} days"
            )
        price = days * policy.price_per_day
        is_custom = True

    return PromotionQuote(
        package_type=package.package_type,
        duration_days=days,
        price=price,
        currency=DEFAULT_CURRENCY,
        is_custom_duration=is_custom,
        created_at=now,
        expires_at=now + timedelta(minutes=quote_validity_minutes),
    )


__all__ = [
    "DEFAULT_CURRENCY",
    "PromotionQuote",
    "calculate_promotion_quote",
]
