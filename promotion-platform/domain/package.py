"""
Domain: Promotion packages (tiers) and their display entitlements.

Tier table:
- spotlight: spotlight_search                    7 days   priority 1
- feature:   spotlight_search, featured          14 days  priority 2
- launch:    spotlight_search, featured, hero    14 days  priority 3

Each tier includes every surface of the tier below it:
    launch.display_entitlements ⊇ feature.display_entitlements ⊇ spotlight.display_entitlements

The catalog checks this containment when it is built and refuses to load if it
does not hold, so display rules can never be served inconsistently.

Prices are integer minor units (kobo for NGN, cents for USD).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Optional, Union

from .errors import CatalogIntegrityError, UnknownPackageType


class PackageType(str, Enum):
    SPOTLIGHT = "spotlight"
    FEATURE = "feature"
    LAUNCH = "launch"


class DisplaySurface(str, Enum):
    HERO = "hero"
    FEATURED = "featured"
    SPOTLIGHT_SEARCH = "spotlight_search"


# Lowest tier first. Containment is checked pairwise along this order.
TIER_ORDER: tuple[PackageType, ...] = (
    PackageType.SPOTLIGHT,
    PackageType.FEATURE,
    PackageType.LAUNCH,
)


@dataclass(frozen=True, slots=True)
class VisualEnhancement:
    """Rendering hints; priority breaks ties within a surface (higher wins)."""

    highlighted: bool
    border_style: str
    priority: int


@dataclass(frozen=True, slots=True)
class CustomDurationPolicy:
    """Per-day pricing for purchases that override the default duration."""

    price_per_day: int
    min_days: int
    max_days: int

    def allows(self, days: int) -> bool:
        return self.min_days <= days <= self.max_days


@dataclass(frozen=True, slots=True)
class PromotionPackage:
    """Immutable catalog entry for one promotion tier."""

    package_type: PackageType
    name: str
    display_entitlements: FrozenSet[DisplaySurface]
    default_duration_days: int
    boost_multiplier: float
    visual_enhancement: VisualEnhancement
    price: int
    custom_duration: Optional[CustomDurationPolicy] = None

    @property
    def priority(self) -> int:
        return self.visual_enhancement.priority

    def entitles(self, surface: DisplaySurface) -> bool:
        return surface in self.display_entitlements


def validate_catalog(packages: Iterable[PromotionPackage]) -> None:
    """
    Check catalog integrity.

    Raises CatalogIntegrityError when:
    - a tier is missing or duplicated
    - a tier's entitlements do not contain the entitlements of the tier below it
    - durations are not positive, or boost multipliers are below 1.0
    """

    by_type: Dict[PackageType, PromotionPackage] = {}
    for package in packages:
        if package.package_type in by_type:
            raise CatalogIntegrityError(f"Duplicate package type: {package.package_type.value}")
        by_type[package.package_type] = package

    missing = [t.value for t in TIER_ORDER if t not in by_type]
    if missing:
        raise CatalogIntegrityError(f"Catalog is missing package types: {missing}")

    for package in by_type.values():
        if package.default_duration_days <= 0:
            raise CatalogIntegrityError(
                f"{package.package_type.value}: default_duration_days must be > 0"
            )
        if package.boost_multiplier < 1.0:
            raise CatalogIntegrityError(
                f"{package.package_type.value}: boost_multiplier must be >= 1.0"
            )
        if package.price <= 0:
            raise CatalogIntegrityError(f"{package.package_type.value}: price must be > 0")

    for lower, higher in zip(TIER_ORDER, TIER_ORDER[1:]):
        lower_surfaces = by_type[lower].display_entitlements
        higher_surfaces = by_type[higher].display_entitlements
        if not higher_surfaces >= lower_surfaces:
            missing_surfaces = sorted(s.value for s in lower_surfaces - higher_surfaces)
            raise CatalogIntegrityError(
                f"{higher.value} must include every surface of {lower.value}; "
                f"missing {missing_surfaces}"
            )


class PackageCatalog:
    """
    Read-only lookup over the fixed set of promotion tiers.

    Construction validates the catalog (see validate_catalog).
    """

    def __init__(self, packages: Iterable[PromotionPackage]):
        package_list = list(packages)
        validate_catalog(package_list)
        self._by_type: Dict[PackageType, PromotionPackage] = {
            p.package_type: p for p in package_list
        }

    def get_package(self, package_type: Union[PackageType, str]) -> PromotionPackage:
        try:
            key = PackageType(package_type)
        except ValueError:
            raise UnknownPackageType(package_type) from None
        package = self._by_type.get(key)
        if package is None:
            raise UnknownPackageType(package_type)
        return package

    def packages(self) -> List[PromotionPackage]:
        return [self._by_type[t] for t in TIER_ORDER]

    def entitled_packages(self, surface: DisplaySurface) -> FrozenSet[PackageType]:
        return frozenset(
            t for t, package in self._by_type.items() if package.entitles(surface)
        )


DEFAULT_PACKAGES: tuple[PromotionPackage, ...] = (
    PromotionPackage(
        package_type=PackageType.SPOTLIGHT,
        name="Spotlight Package",
        display_entitlements=frozenset({DisplaySurface.SPOTLIGHT_SEARCH}),
        default_duration_days=7,
        boost_multiplier=1.5,
        visual_enhancement=VisualEnhancement(highlighted=True, border_style="bold", priority=1),
        price=9990,
        custom_duration=CustomDurationPolicy(price_per_day=1499, min_days=3, max_days=30),
    ),
    PromotionPackage(
        package_type=PackageType.FEATURE,
        name="Feature Package",
        display_entitlements=frozenset({DisplaySurface.SPOTLIGHT_SEARCH, DisplaySurface.FEATURED}),
        default_duration_days=14,
        boost_multiplier=2.0,
        visual_enhancement=VisualEnhancement(highlighted=True, border_style="accent", priority=2),
        price=24990,
    ),
    PromotionPackage(
        package_type=PackageType.LAUNCH,
        name="Launch Package",
        display_entitlements=frozenset(
            {DisplaySurface.SPOTLIGHT_SEARCH, DisplaySurface.FEATURED, DisplaySurface.HERO}
        ),
        default_duration_days=14,
        boost_multiplier=3.0,
        visual_enhancement=VisualEnhancement(highlighted=True, border_style="premium", priority=3),
        price=99990,
    ),
)

DEFAULT_CATALOG = PackageCatalog(DEFAULT_PACKAGES)


__all__ = [
    "CustomDurationPolicy",
    "DEFAULT_CATALOG",
    "DEFAULT_PACKAGES",
    "DisplaySurface",
    "PackageCatalog",
    "PackageType",
    "PromotionPackage",
    "TIER_ORDER",
    "VisualEnhancement",
    "validate_catalog",
]
