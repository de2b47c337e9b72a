"""Engine settings for rating recomputation, read from the environment.

    REVIEWS_RECOMPUTE_MODE          "sync" (default) or "background"
    REVIEWS_RECOMPUTE_MAX_ATTEMPTS  attempts before a recompute is queued for reconciliation
    REVIEWS_RECOMPUTE_WORKERS       worker threads in background mode
    REVIEWS_RECONCILE_BATCH_SIZE    pending products handled per reconciliation sweep
"""

import os

RECOMPUTE_MODES = ("sync", "background")


class RecomputeSettings:
    def __init__(
        self,
        mode: str = "sync",
        max_attempts: int = 3,
        workers: int = 4,
        reconcile_batch_size: int = 100,
    ) -> None:
        if mode not in RECOMPUTE_MODES:
            raise ValueError(f"Unknown recompute mode: {mode}")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.mode = mode
        self.max_attempts = max_attempts
        self.workers = workers
        self.reconcile_batch_size = reconcile_batch_size

    @property
    def background(self) -> bool:
        return self.mode == "background"

    def __repr__(self) -> str:
        return (
            f"RecomputeSettings(mode={self.mode!r}, max_attempts={self.max_attempts}, "
            f"workers={self.workers}, reconcile_batch_size={self.reconcile_batch_size})"
        )


def load_settings() -> RecomputeSettings:
    """Build settings from REVIEWS_* environment variables."""
    return RecomputeSettings(
        mode=os.environ.get("REVIEWS_RECOMPUTE_MODE", "sync").lower(),
        max_attempts=int(os.environ.get("REVIEWS_RECOMPUTE_MAX_ATTEMPTS", "3")),
        workers=int(os.environ.get("REVIEWS_RECOMPUTE_WORKERS", "4")),
        reconcile_batch_size=int(os.environ.get("REVIEWS_RECONCILE_BATCH_SIZE", "100")),
    )
