"""Order submission adapters — pluggable order-persistence backend."""

import os

_submitter_instance = None


def get_order_submitter():
    """Return the configured order submitter (singleton).

    Uses the repository-backed submitter by default. Configure via the
    ORDER_SUBMITTER_ADAPTER environment variable ("repository" or "fake").
    """
    global _submitter_instance
    if _submitter_instance is None:
        adapter = os.environ.get("ORDER_SUBMITTER_ADAPTER", "repository")
        if adapter == "repository":
            from checkout.order.submission.repository_adapter import RepositoryOrderSubmitter

            _submitter_instance = RepositoryOrderSubmitter()
        elif adapter == "fake":
            from checkout.order.submission.fake_adapter import FakeOrderSubmitter

            _submitter_instance = FakeOrderSubmitter()
        else:
            raise ValueError(f"Unknown order submitter adapter: {adapter}")
    return _submitter_instance


def set_order_submitter(submitter):
    global _submitter_instance
    _submitter_instance = submitter


def reset_order_submitter():
    """Reset the submitter singleton (useful for testing)."""
    global _submitter_instance
    _submitter_instance = None
