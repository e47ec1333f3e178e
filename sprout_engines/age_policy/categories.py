"""Job category to risk category mapping.

Risk levels determine the minimum age requirement through the active policy:
LOW_RISK covers safe indoor/digital work, MEDIUM_RISK physical outdoor work or
animal handling, HIGH_RISK work with children, tools, chemicals or heights.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from sprout_engines.age_policy.models import RiskCategory

logger = logging.getLogger(__name__)

CATEGORY_RISK_MAP: Dict[str, RiskCategory] = {
    "BABYSITTING": RiskCategory.HIGH_RISK,
    "DIY_HELP": RiskCategory.HIGH_RISK,
    "DOG_WALKING": RiskCategory.MEDIUM_RISK,
    "SNOW_CLEARING": RiskCategory.MEDIUM_RISK,
    "CLEANING": RiskCategory.MEDIUM_RISK,
    "TECH_HELP": RiskCategory.LOW_RISK,
    "ERRANDS": RiskCategory.LOW_RISK,
    "OTHER": RiskCategory.LOW_RISK,
}

STANDARD_CATEGORY_RISK_MAP: Dict[str, RiskCategory] = {
    "child-family-support": RiskCategory.HIGH_RISK,
    "home-yard-help": RiskCategory.HIGH_RISK,
    "pet-animal-care": RiskCategory.MEDIUM_RISK,
    "cleaning-organizing": RiskCategory.MEDIUM_RISK,
    "fitness-activity-help": RiskCategory.MEDIUM_RISK,
    "tech-digital-help": RiskCategory.LOW_RISK,
    "errands-local-tasks": RiskCategory.LOW_RISK,
    "events-community-help": RiskCategory.LOW_RISK,
    "creative-media-gigs": RiskCategory.LOW_RISK,
    "education-learning-support": RiskCategory.LOW_RISK,
    "retail-microbusiness-help": RiskCategory.LOW_RISK,
    "online-ai-age-jobs": RiskCategory.LOW_RISK,
}

DEFAULT_RISK_CATEGORY = RiskCategory.LOW_RISK

RISK_CATEGORY_DESCRIPTIONS: Dict[RiskCategory, str] = {
    RiskCategory.LOW_RISK: "Safe activities suitable for all workers aged 15+",
    RiskCategory.MEDIUM_RISK: "Activities requiring physical capability or judgment, suitable for workers aged 16+",
    RiskCategory.HIGH_RISK: "Activities involving children, tools, or higher responsibility, requiring workers aged 18+",
}

RISK_CATEGORY_EXAMPLES: Dict[RiskCategory, List[str]] = {
    RiskCategory.LOW_RISK: ["Tech support", "Running errands", "Photography", "Online tasks"],
    RiskCategory.MEDIUM_RISK: ["Dog walking", "Snow clearing", "House cleaning", "Pet sitting"],
    RiskCategory.HIGH_RISK: ["Babysitting", "DIY repairs", "Home maintenance with tools"],
}


def risk_for_category(category: Optional[str] = None, standard_slug: Optional[str] = None) -> RiskCategory:
    """Resolve a job's risk; the standard taxonomy slug wins over the legacy category."""
    if standard_slug and standard_slug in STANDARD_CATEGORY_RISK_MAP:
        return STANDARD_CATEGORY_RISK_MAP[standard_slug]
    if category and category in CATEGORY_RISK_MAP:
        return CATEGORY_RISK_MAP[category]
    logger.warning(
        "unmapped job category %r (slug %r); defaulting to %s pending review",
        category,
        standard_slug,
        DEFAULT_RISK_CATEGORY.value,
    )
    return DEFAULT_RISK_CATEGORY
