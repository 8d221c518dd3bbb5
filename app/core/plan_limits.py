"""
Plan catalog.

Single source of truth for subscription tiers, their prices and limits.
None means unlimited for that limit.
"""
from typing import Dict, Optional, List, Any

# Limit keys stored on Subscription
LIMIT_KEYS: List[str] = [
    "max_jobs",
    "max_apps_per_job",
    "max_ai_analyses_month",
]

PLAN_CATALOG: Dict[str, Dict[str, Any]] = {
    "COMPANY_FREE": {
        "display_name": "Gratuit Entreprise",
        "user_type": "COMPANY",
        "price": 0,
        "billing_period": "MONTHLY",
        "limits": {
            "max_jobs": 5,
            "max_apps_per_job": 50,
            "max_ai_analyses_month": 10,
        },
        "features": [
            "5 offres d'emploi actives",
            "50 candidatures par offre",
            "10 analyses IA par mois",
        ],
    },
    "COMPANY_BUSINESS": {
        "display_name": "Business",
        "user_type": "COMPANY",
        "price": 79,
        "billing_period": "MONTHLY",
        "limits": {
            "max_jobs": 10,
            "max_apps_per_job": 200,
            "max_ai_analyses_month": 100,
        },
        "features": [
            "10 offres d'emploi actives",
            "200 candidatures par offre",
            "100 analyses IA par mois",
            "Support prioritaire",
            "Statistiques avancées",
        ],
    },
    "COMPANY_ENTERPRISE": {
        "display_name": "Enterprise",
        "user_type": "COMPANY",
        "price": 299,
        "billing_period": "MONTHLY",
        "limits": {
            "max_jobs": None,  # Unlimited
            "max_apps_per_job": None,
            "max_ai_analyses_month": None,
        },
        "features": [
            "Offres illimitées",
            "Candidatures illimitées",
            "Analyses IA illimitées",
            "Support prioritaire",
            "Statistiques avancées",
            "Personnalisation de la marque",
        ],
    },
    "CANDIDATE_FREE": {
        "display_name": "Gratuit Candidat",
        "user_type": "CANDIDATE",
        "price": 0,
        "billing_period": "MONTHLY",
        "limits": {
            "max_jobs": 0,
            "max_apps_per_job": None,
            "max_ai_analyses_month": 5,
        },
        "features": [
            "Candidatures illimitées",
            "5 utilisations IA par mois (génération et amélioration de CV)",
        ],
    },
    "CANDIDATE_PREMIUM": {
        "display_name": "Premium Candidat",
        "user_type": "CANDIDATE",
        "price": 19,
        "billing_period": "MONTHLY",
        "limits": {
            "max_jobs": 0,
            "max_apps_per_job": None,
            "max_ai_analyses_month": 50,
        },
        "features": [
            "Candidatures illimitées",
            "50 utilisations IA par mois",
            "Adaptation du CV à chaque offre",
            "Support prioritaire",
        ],
    },
}

DEFAULT_PLAN_BY_USER_TYPE: Dict[str, str] = {
    "COMPANY": "COMPANY_FREE",
    "CANDIDATE": "CANDIDATE_FREE",
}

FREE_PLANS = {"COMPANY_FREE", "CANDIDATE_FREE"}
PAID_COMPANY_PLANS = {"COMPANY_BUSINESS", "COMPANY_ENTERPRISE"}
CV_ADAPTATION_PLANS = {"CANDIDATE_PREMIUM"}


def _user_type_value(user_type) -> str:
    # Accepts the UserType enum or a plain string
    return getattr(user_type, "value", user_type) or "COMPANY"


def get_plan(plan: str) -> Dict[str, Any]:
    """
    Get the catalog entry for a plan.

    Raises:
        KeyError: If the plan id is unknown
    """
    return PLAN_CATALOG[plan]


def is_known_plan(plan: str) -> bool:
    return plan in PLAN_CATALOG


def get_plan_limits(plan: str) -> Dict[str, Optional[int]]:
    """Get all limits for a plan, falling back to COMPANY_FREE for unknown ids."""
    entry = PLAN_CATALOG.get(plan, PLAN_CATALOG["COMPANY_FREE"])
    return dict(entry["limits"])


def get_plan_limit(plan: str, limit_key: str) -> Optional[int]:
    """
    Get a single limit for a plan.

    Args:
        plan: Plan id (COMPANY_FREE, COMPANY_BUSINESS, ...)
        limit_key: One of LIMIT_KEYS

    Returns:
        Limit (int) or None for unlimited
    """
    return get_plan_limits(plan).get(limit_key)


def is_unlimited(limit: Optional[int]) -> bool:
    return limit is None


def default_plan_for(user_type) -> str:
    """Default free plan for a user type."""
    return DEFAULT_PLAN_BY_USER_TYPE.get(_user_type_value(user_type), "COMPANY_FREE")


def list_plans(user_type=None) -> List[Dict[str, Any]]:
    """Catalog as a list, optionally restricted to one user type."""
    wanted = _user_type_value(user_type) if user_type else None
    plans = []
    for plan_id, entry in PLAN_CATALOG.items():
        if wanted and entry["user_type"] != wanted:
            continue
        plans.append({"plan": plan_id, **entry})
    return plans
