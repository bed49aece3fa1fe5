from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Eligibility(str, Enum):
    ELIGIBLE = "Eligible"
    INELIGIBLE = "Ineligible"


@dataclass(frozen=True)
class Subscription:
    id: str
    name: str

    @property
    def label(self) -> str:
        return f"{self.name} ({self.id})"


@dataclass(frozen=True)
class AppEntry:
    name: str
    resource_group: str
    reason: Optional[str] = None


@dataclass(frozen=True)
class MigrationPayload:
    """
    Validated `flex-migration list` output.

    Both lists are always present; the CLI omits them or sends null when a
    subscription has no apps of that kind.
    """

    eligible_apps: Tuple[AppEntry, ...] = field(default_factory=tuple)
    ineligible_apps: Tuple[AppEntry, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class EligibilityRecord:
    subscription_id: str
    subscription_name: str
    app_name: str
    resource_group: str
    eligibility: Eligibility
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subscriptionId": self.subscription_id,
            "subscriptionName": self.subscription_name,
            "appName": self.app_name,
            "resourceGroup": self.resource_group,
            "eligibility": self.eligibility.value,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class ContextSummary:
    subscription_id: str
    subscription_name: str
    eligible_apps: int
    ineligible_apps: int

    @property
    def total_apps(self) -> int:
        return self.eligible_apps + self.ineligible_apps

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subscriptionId": self.subscription_id,
            "subscriptionName": self.subscription_name,
            "totalApps": self.total_apps,
            "eligibleApps": self.eligible_apps,
            "ineligibleApps": self.ineligible_apps,
        }

