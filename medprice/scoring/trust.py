"""
Bounded trust accumulators for users and providers, plus the weight nudge
applied when auto-tuning is on. Pure arithmetic; persistence lives in
medprice.pipeline.feedback.
"""

TRUST_MIN = 0.3
TRUST_MAX = 1.0

USER_TRUST_UP = 0.02
USER_TRUST_DOWN = 0.07
PROVIDER_TRUST_UP = 0.03
PROVIDER_TRUST_DOWN = 0.05

WEIGHT_STEP_UP = 0.02
WEIGHT_STEP_DOWN = 0.03
WEIGHT_FLOOR = 0.5


def next_trust(current: float, success: bool, up: float, down: float) -> float:
    delta = up if success else -down
    return round(min(TRUST_MAX, max(TRUST_MIN, current + delta)), 4)


def next_user_trust(current: float, success: bool) -> float:
    return next_trust(current, success, USER_TRUST_UP, USER_TRUST_DOWN)


def next_provider_trust(current: float, success: bool) -> float:
    return next_trust(current, success, PROVIDER_TRUST_UP, PROVIDER_TRUST_DOWN)


def next_weight(current: float, success: bool) -> float:
    delta = WEIGHT_STEP_UP if success else -WEIGHT_STEP_DOWN
    return round(max(WEIGHT_FLOOR, current + delta), 4)
