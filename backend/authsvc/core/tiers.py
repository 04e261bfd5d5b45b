from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Optional


class SubscriptionType(str, Enum):
    FREE = "Free"
    PRO = "Pro"
    PREMIUM = "Premium"
    ENTERPRISE = "Enterprise"


DEFAULT_TIER = SubscriptionType.FREE

# Requests per window and API-key lifetime per subscription tier
TIER_LIMITS: Dict[SubscriptionType, Dict[str, int]] = {
    SubscriptionType.FREE: {
        "rate_limit": 100,
        "key_lifetime_days": 30,
    },
    SubscriptionType.PRO: {
        "rate_limit": 1000,
        "key_lifetime_days": 365,
    },
    SubscriptionType.PREMIUM: {
        "rate_limit": 5000,
        "key_lifetime_days": 365,
    },
    SubscriptionType.ENTERPRISE: {
        "rate_limit": 50000,
        "key_lifetime_days": 730,
    },
}

RATE_LIMIT_WINDOW = timedelta(hours=1)


def tier_terms(tier: SubscriptionType, now: Optional[datetime] = None) -> Dict[str, object]:
    """Credential fields derived from a tier: rate_limit, rate_limit_reset_at, expires_at."""
    now = now or datetime.utcnow()
    limits = TIER_LIMITS.get(SubscriptionType(tier), TIER_LIMITS[DEFAULT_TIER])
    return {
        "subscription_type": SubscriptionType(tier).value,
        "rate_limit": limits["rate_limit"],
        "rate_limit_reset_at": now + RATE_LIMIT_WINDOW,
        "expires_at": now + timedelta(days=limits["key_lifetime_days"]),
    }
