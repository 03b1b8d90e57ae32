from .trust_evaluation import DEFAULT_SESSION_TIMEOUT_MINUTES, evaluate_trust

__all__ = [
    "DEFAULT_SESSION_TIMEOUT_MINUTES",
    "evaluate_trust",
]
