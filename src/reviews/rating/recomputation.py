"""RatingRecomputer — keeps each product's rating aggregate in step with its reviews.

Every recomputation is a full re-derivation: read all approved reviews for
the product, compute mean, count, distribution and verified count, and write
the ProductRating record in one write. Nothing is ever incremented, so any
interleaving of recomputations for a product converges on the committed
population as long as the last one to finish read fresh state. Writers for
one product are serialized behind a per-product lock and read inside it.

Recomputation is triggered by the Review Store after the triggering write has
committed. A failed recomputation never reaches the caller: it is logged,
recorded as a PendingRecomputation and repaired by ``reconcile()``, which the
maintenance endpoint and ``scripts/reconcile_ratings.py`` drive.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import wait as wait_for
from datetime import UTC, datetime

from protean.exceptions import ObjectNotFoundError

from reviews.config import RecomputeSettings, load_settings
from reviews.exceptions import RecomputationError
from reviews.rating.product_rating import (
    PendingRecomputation,
    ProductRating,
    dump_distribution,
    empty_distribution,
)
from reviews.review.review import Review
from reviews.utils.locks import KeyedLocks
from reviews.utils.logging import get_logger
from reviews.utils.queries import fetch_all

logger = get_logger(__name__)


def derive_rating(reviews) -> dict:
    """Compute the aggregate fields from a population of approved reviews."""
    distribution = empty_distribution()
    verified = 0
    for review in reviews:
        distribution[str(review.rating.score)] += 1
        if review.verified_purchase:
            verified += 1

    count = sum(distribution.values())
    if count == 0:
        average = 0.0
    else:
        average = sum(int(score) * n for score, n in distribution.items()) / count

    return {
        "average_rating": average,
        "review_count": count,
        "rating_distribution": dump_distribution(distribution),
        "verified_review_count": verified,
    }


def _snapshot(rating: ProductRating) -> dict:
    return {
        "average_rating": rating.average_rating,
        "review_count": rating.review_count,
        "rating_distribution": rating.rating_distribution,
        "verified_review_count": rating.verified_review_count,
    }


class RatingRecomputer:
    def __init__(self, domain, settings: RecomputeSettings | None = None) -> None:
        self.domain = domain
        self.settings = settings or load_settings()
        self._locks = KeyedLocks()
        self._executor: ThreadPoolExecutor | None = None
        self._futures: set = set()
        self._futures_guard = threading.Lock()

    # -------------------------------------------------------------------
    # Full re-derivation
    # -------------------------------------------------------------------
    def _approved_reviews(self, product_id):
        repo = self.domain.repository_for(Review)
        return fetch_all(repo, product_id=str(product_id), is_approved=True)

    def _write(self, product_id, fields) -> ProductRating:
        repo = self.domain.repository_for(ProductRating)
        try:
            rating = repo.get(str(product_id))
        except ObjectNotFoundError:
            rating = ProductRating(product_id=str(product_id))

        rating.average_rating = fields["average_rating"]
        rating.review_count = fields["review_count"]
        rating.rating_distribution = fields["rating_distribution"]
        rating.verified_review_count = fields["verified_review_count"]
        rating.updated_at = datetime.now(UTC)
        repo.add(rating)
        return rating

    def recompute(self, product_id) -> ProductRating:
        """Re-derive and store the product's aggregate.

        Retried until the stored record matches a fresh derivation, up to
        ``settings.max_attempts`` times. Raises RecomputationError when
        every attempt fails.
        """
        product_id = str(product_id)
        last_error = None

        with self._locks.hold("product", product_id):
            for attempt in range(1, self.settings.max_attempts + 1):
                try:
                    fields = derive_rating(self._approved_reviews(product_id))
                    self._write(product_id, fields)

                    stored = self.domain.repository_for(ProductRating).get(product_id)
                    if _snapshot(stored) == derive_rating(self._approved_reviews(product_id)):
                        logger.info(
                            "Product rating recomputed",
                            product_id=product_id,
                            average_rating=stored.average_rating,
                            review_count=stored.review_count,
                            attempt=attempt,
                        )
                        return stored

                    last_error = "stored aggregate diverged from a fresh derivation"
                except Exception as exc:
                    last_error = exc

                logger.warning(
                    "Product rating recomputation attempt failed",
                    product_id=product_id,
                    attempt=attempt,
                    max_attempts=self.settings.max_attempts,
                    error=str(last_error),
                )

        raise RecomputationError(product_id, last_error)

    # -------------------------------------------------------------------
    # Triggering
    # -------------------------------------------------------------------
    def trigger(self, product_id) -> None:
        """Schedule a recomputation after a committed review mutation.

        Inline in ``sync`` mode, on the worker pool in ``background`` mode.
        Never raises.
        """
        if self.settings.background:
            self._submit(str(product_id))
        else:
            self._run(str(product_id))

    def _run(self, product_id) -> None:
        try:
            self.recompute(product_id)
        except RecomputationError as exc:
            logger.error(
                "Product rating left stale, queued for reconciliation",
                product_id=product_id,
                error=str(exc),
            )
            self._mark_pending(product_id, exc)
        else:
            self._clear_pending(product_id)

    def _run_in_context(self, product_id) -> None:
        with self.domain.domain_context():
            self._run(product_id)

    def _submit(self, product_id) -> None:
        with self._futures_guard:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.settings.workers,
                    thread_name_prefix="rating-recompute",
                )
            future = self._executor.submit(self._run_in_context, product_id)
            self._futures.add(future)
        future.add_done_callback(self._forget)

    def _forget(self, future) -> None:
        with self._futures_guard:
            self._futures.discard(future)
        if future.exception() is not None:
            logger.error(
                "Background rating recomputation crashed",
                error=str(future.exception()),
            )

    def flush(self) -> None:
        """Block until every scheduled background recomputation has finished."""
        while True:
            with self._futures_guard:
                pending = list(self._futures)
            if not pending:
                return
            wait_for(pending)

    def shutdown(self) -> None:
        self.flush()
        with self._futures_guard:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)

    # -------------------------------------------------------------------
    # Reconciliation queue
    # -------------------------------------------------------------------
    def _mark_pending(self, product_id, error) -> None:
        repo = self.domain.repository_for(PendingRecomputation)
        try:
            try:
                pending = repo.get(product_id)
            except ObjectNotFoundError:
                pending = PendingRecomputation(
                    product_id=product_id,
                    attempts=0,
                    failed_at=datetime.now(UTC),
                )
            pending.attempts = (pending.attempts or 0) + 1
            pending.last_error = str(error)
            pending.failed_at = datetime.now(UTC)
            repo.add(pending)
        except Exception as exc:
            # The stale aggregate is still repaired by the next trigger for this product
            logger.error(
                "Could not record pending rating recomputation",
                product_id=product_id,
                error=str(exc),
            )

    def _clear_pending(self, product_id) -> None:
        repo = self.domain.repository_for(PendingRecomputation)
        try:
            pending = repo.get(product_id)
        except ObjectNotFoundError:
            return
        except Exception as exc:
            logger.error(
                "Could not look up pending rating recomputation",
                product_id=product_id,
                error=str(exc),
            )
            return

        try:
            repo._dao.delete(pending)
        except Exception as exc:
            # Harmless: reconciling a fresh aggregate again is a no-op
            logger.error(
                "Could not clear pending rating recomputation",
                product_id=product_id,
                error=str(exc),
            )
            return
        logger.info("Pending rating recomputation cleared", product_id=product_id)

    def pending_products(self) -> list[str]:
        """Products with a stale aggregate, oldest failure first."""
        repo = self.domain.repository_for(PendingRecomputation)
        pending = sorted(fetch_all(repo), key=lambda p: p.failed_at)
        return [str(p.product_id) for p in pending]

    def reconcile(self, product_ids=None) -> dict:
        """Recompute pending (or the given) products and clear their queue entries.

        Without explicit ids, at most ``settings.reconcile_batch_size`` pending
        products are handled per call.
        """
        if product_ids is None:
            product_ids = self.pending_products()[: self.settings.reconcile_batch_size]

        reconciled, failed = 0, 0
        for product_id in product_ids:
            product_id = str(product_id)
            try:
                self.recompute(product_id)
            except RecomputationError as exc:
                failed += 1
                self._mark_pending(product_id, exc)
            else:
                reconciled += 1
                self._clear_pending(product_id)

        logger.info("Rating reconciliation finished", reconciled=reconciled, failed=failed)
        return {"reconciled": reconciled, "failed": failed}

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get_product_rating(self, product_id) -> ProductRating | None:
        try:
            return self.domain.repository_for(ProductRating).get(str(product_id))
        except ObjectNotFoundError:
            return None

    def get_product_rating_summary(self, product_id) -> dict:
        rating = self.get_product_rating(product_id)
        if rating is None:
            return {"average_rating": 0.0, "review_count": 0}
        return {
            "average_rating": float(rating.average_rating or 0.0),
            "review_count": int(rating.review_count or 0),
        }
