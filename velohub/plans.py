import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Literal

SupportPriority = Literal["standard", "high", "dedicated"]


@dataclass(frozen=True, slots=True)
class PlanLimits:
    max_vehicles: float
    max_team_members: float  # excluding the owner
    max_customers: float
    show_advanced_reports: bool
    show_share_link: bool
    support_priority: SupportPriority
    price: float
    payment_link: str | None = None


PLAN_CONFIG: MappingProxyType[str, PlanLimits] = MappingProxyType({
    "free": PlanLimits(
        max_vehicles=3,
        max_team_members=0,
        max_customers=10,
        show_advanced_reports=False,
        show_share_link=False,
        support_priority="standard",
        price=0.0,
        payment_link="",
    ),
    "starter": PlanLimits(
        max_vehicles=15,
        max_team_members=0,
        max_customers=math.inf,
        show_advanced_reports=False,
        show_share_link=True,
        support_priority="standard",
        price=39.90,
        payment_link="https://buy.stripe.com/test_4gMbJ1bOmbTt4Nha25aIM02",
    ),
    "pro": PlanLimits(
        max_vehicles=50,
        max_team_members=2,
        max_customers=math.inf,
        show_advanced_reports=True,
        show_share_link=True,
        support_priority="high",
        price=89.90,
        payment_link="https://buy.stripe.com/test_cNi4gzbOmcXx4Nh7TXaIM01",
    ),
    "enterprise": PlanLimits(
        max_vehicles=math.inf,
        max_team_members=math.inf,
        max_customers=math.inf,
        show_advanced_reports=True,
        show_share_link=True,
        support_priority="dedicated",
        price=149.90,
        payment_link="",
    ),
    "trial": PlanLimits(
        max_vehicles=math.inf,
        max_team_members=math.inf,
        max_customers=math.inf,
        show_advanced_reports=True,
        show_share_link=True,
        support_priority="high",
        price=0.0,
    ),
})


def get_plan_limits(plan: str) -> PlanLimits:
    return PLAN_CONFIG[plan]


def check_vehicle_limit(plan: str, current_count: int) -> bool:
    return current_count < get_plan_limits(plan).max_vehicles


def check_team_limit(plan: str, current_team_size: int) -> bool:
    return current_team_size < get_plan_limits(plan).max_team_members
