"""Application tests for rating recomputation and reconciliation."""

import json

import pytest
from protean import current_domain
from reviews.config import RecomputeSettings
from reviews.domain import reviews
from reviews.exceptions import RecomputationError
from reviews.rating.product_rating import PendingRecomputation, ProductRating
from reviews.rating.recomputation import RatingRecomputer, derive_rating
from reviews.review.review import Review, Role


def _create(store, author_id, rating, approved=False, product_id="prod-rating"):
    return store.create_review(
        product_id=product_id,
        author_id=author_id,
        title=f"{rating} stars",
        body="Honest opinion after two weeks of use.",
        rating=rating,
        is_approved=approved,
    )


class _PendingQueueDown:
    """Domain stand-in whose PendingRecomputation repository cannot be read."""

    class _Repository:
        def get(self, identifier):
            raise ConnectionError("pending queue unavailable")

    def __init__(self, domain):
        self._domain = domain

    def __getattr__(self, name):
        return getattr(self._domain, name)

    def repository_for(self, cls):
        if cls is PendingRecomputation:
            return self._Repository()
        return self._domain.repository_for(cls)


def _summary(store, product_id="prod-rating"):
    return store.get_product_rating_summary(product_id)


class TestRatingScenario:
    def test_create_approve_add_delete(self, store):
        a = _create(store, "author-a", 5)
        assert _summary(store) == {"average_rating": 0.0, "review_count": 0}

        store.set_approval(a.id, True, moderator_id="mod-1", role=Role.MODERATOR)
        assert _summary(store) == {"average_rating": 5.0, "review_count": 1}

        _create(store, "author-b", 3, approved=True)
        assert _summary(store) == {"average_rating": 4.0, "review_count": 2}

        store.delete_review(a.id, requester_id="author-a")
        assert _summary(store) == {"average_rating": 3.0, "review_count": 1}

    def test_unapprove_removes_from_aggregate(self, store):
        a = _create(store, "author-a", 2, approved=True)
        _create(store, "author-b", 4, approved=True)

        store.set_approval(a.id, False, moderator_id="mod-1", role=Role.MODERATOR)
        assert _summary(store) == {"average_rating": 4.0, "review_count": 1}

    def test_rating_edit_on_approved_review(self, store):
        a = _create(store, "author-a", 2, approved=True)
        store.update_review(a.id, author_id="author-a", rating=4)
        assert _summary(store) == {"average_rating": 4.0, "review_count": 1}

    def test_unknown_product(self, store):
        assert _summary(store, "prod-never-reviewed") == {"average_rating": 0.0, "review_count": 0}

    def test_distribution_and_verified_count(self, store, recomputer):
        _create(store, "author-a", 5, approved=True)
        _create(store, "author-b", 5, approved=True)
        _create(store, "author-c", 1, approved=True)
        store.mark_verified_purchase("author-c", "prod-rating")

        rating = recomputer.get_product_rating("prod-rating")
        assert json.loads(rating.rating_distribution) == {"1": 1, "2": 0, "3": 0, "4": 0, "5": 2}
        assert rating.verified_review_count == 1
        assert rating.average_rating == pytest.approx(11 / 3)


class TestTriggers:
    @pytest.fixture()
    def calls(self, store, monkeypatch):
        triggered = []
        monkeypatch.setattr(store.recomputer, "trigger", lambda product_id: triggered.append(str(product_id)))
        return triggered

    def test_unapproved_create_does_not_trigger(self, store, calls):
        _create(store, "author-a", 5)
        assert calls == []

    def test_pre_approved_create_triggers(self, store, calls):
        _create(store, "author-a", 5, approved=True)
        assert calls == ["prod-rating"]

    def test_text_edit_does_not_trigger(self, store, calls):
        a = _create(store, "author-a", 5, approved=True)
        calls.clear()
        store.update_review(a.id, author_id="author-a", title="Renamed")
        assert calls == []

    def test_rating_edit_on_unapproved_does_not_trigger(self, store, calls):
        a = _create(store, "author-a", 5)
        store.update_review(a.id, author_id="author-a", rating=1)
        assert calls == []

    def test_approval_always_triggers(self, store, calls):
        a = _create(store, "author-a", 5)
        store.set_approval(a.id, False, moderator_id="mod-1", role=Role.MODERATOR)
        assert calls == ["prod-rating"]

    def test_deleting_unapproved_does_not_trigger(self, store, calls):
        a = _create(store, "author-a", 5)
        store.delete_review(a.id, requester_id="author-a")
        assert calls == []

    def test_response_does_not_trigger(self, store, calls):
        a = _create(store, "author-a", 5)
        store.add_response(a.id, "Thanks", admin_id="mod-1", role=Role.MODERATOR)
        assert calls == []


class TestRecompute:
    def test_full_rederivation_overwrites_drift(self, store, recomputer):
        _create(store, "author-a", 4, approved=True)

        repo = current_domain.repository_for(ProductRating)
        rating = repo.get("prod-rating")
        rating.average_rating = 1.0
        rating.review_count = 99
        repo.add(rating)

        recomputed = recomputer.recompute("prod-rating")
        assert recomputed.average_rating == 4.0
        assert recomputed.review_count == 1

    def test_retries_until_write_sticks(self, recomputer, monkeypatch):
        original = recomputer._write
        attempts = []

        def flaky_write(product_id, fields):
            attempts.append(product_id)
            if len(attempts) < 2:
                raise ConnectionError("database unavailable")
            return original(product_id, fields)

        monkeypatch.setattr(recomputer, "_write", flaky_write)
        recomputer.recompute("prod-rating")
        assert len(attempts) == 2

    def test_raises_after_max_attempts(self, recomputer, monkeypatch):
        def broken_write(product_id, fields):
            raise ConnectionError("database unavailable")

        monkeypatch.setattr(recomputer, "_write", broken_write)
        with pytest.raises(RecomputationError) as exc:
            recomputer.recompute("prod-rating")
        assert exc.value.product_id == "prod-rating"
        assert isinstance(exc.value.cause, ConnectionError)

    def test_derive_rating_empty(self):
        fields = derive_rating([])
        assert fields["average_rating"] == 0.0
        assert fields["review_count"] == 0


class TestFailureAndReconciliation:
    def test_failed_recompute_keeps_mutation_and_queues_product(self, store, recomputer, monkeypatch):
        original = recomputer._write

        def broken_write(product_id, fields):
            raise ConnectionError("database unavailable")

        monkeypatch.setattr(recomputer, "_write", broken_write)
        review = _create(store, "author-a", 5, approved=True)

        # The caller saw success and the review is committed
        assert store.get_review(review.id).is_approved is True
        assert recomputer.pending_products() == ["prod-rating"]
        pending = current_domain.repository_for(PendingRecomputation).get("prod-rating")
        assert pending.attempts == 1
        assert "database unavailable" in pending.last_error

        monkeypatch.setattr(recomputer, "_write", original)
        assert recomputer.reconcile() == {"reconciled": 1, "failed": 0}
        assert recomputer.pending_products() == []
        assert _summary(store) == {"average_rating": 5.0, "review_count": 1}

    def test_repeated_failures_increment_attempts(self, store, recomputer, monkeypatch):
        monkeypatch.setattr(recomputer, "_write", lambda product_id, fields: 1 / 0)
        _create(store, "author-a", 5, approved=True)

        assert recomputer.reconcile() == {"reconciled": 0, "failed": 1}
        assert current_domain.repository_for(PendingRecomputation).get("prod-rating").attempts == 2

    def test_successful_trigger_clears_pending_entry(self, store, recomputer, monkeypatch):
        original = recomputer._write
        monkeypatch.setattr(recomputer, "_write", lambda product_id, fields: 1 / 0)
        _create(store, "author-a", 5, approved=True)
        assert recomputer.pending_products() == ["prod-rating"]

        monkeypatch.setattr(recomputer, "_write", original)
        _create(store, "author-b", 3, approved=True)
        assert recomputer.pending_products() == []

    def test_unreadable_pending_queue_does_not_reach_caller(self, store, recomputer, monkeypatch):
        monkeypatch.setattr(recomputer, "domain", _PendingQueueDown(reviews))

        review = _create(store, "author-a", 4, approved=True)

        assert review.is_approved is True
        assert _summary(store) == {"average_rating": 4.0, "review_count": 1}

    def test_reconcile_explicit_products(self, store, recomputer):
        _create(store, "author-a", 2, approved=True, product_id="prod-x")
        assert recomputer.reconcile(product_ids=["prod-x", "prod-y"]) == {"reconciled": 2, "failed": 0}
        assert _summary(store, "prod-y") == {"average_rating": 0.0, "review_count": 0}

    def test_reconcile_respects_batch_size(self, store, recomputer, monkeypatch):
        original = recomputer._write
        monkeypatch.setattr(recomputer, "_write", lambda product_id, fields: 1 / 0)
        for i in range(3):
            _create(store, "author-a", 4, approved=True, product_id=f"prod-batch-{i}")

        monkeypatch.setattr(recomputer, "_write", original)
        recomputer.settings.reconcile_batch_size = 2
        assert recomputer.reconcile() == {"reconciled": 2, "failed": 0}
        assert len(recomputer.pending_products()) == 1


class TestBackgroundMode:
    def test_flush_waits_for_workers(self, store):
        for i, score in enumerate((5, 4, 3)):
            _create(store, f"author-{i}", score, approved=True)

        repo = current_domain.repository_for(ProductRating)
        stale = repo.get("prod-rating")
        stale.average_rating = 0.0
        stale.review_count = 0
        repo.add(stale)

        engine = RatingRecomputer(reviews, RecomputeSettings(mode="background", workers=2))
        try:
            for _ in range(3):
                engine.trigger("prod-rating")
            engine.flush()
            assert engine.get_product_rating_summary("prod-rating") == {"average_rating": 4.0, "review_count": 3}
        finally:
            engine.shutdown()

    def test_background_failure_is_queued(self, store, monkeypatch):
        _create(store, "author-a", 5, approved=True)

        engine = RatingRecomputer(reviews, RecomputeSettings(mode="background", workers=1))
        monkeypatch.setattr(engine, "_write", lambda product_id, fields: 1 / 0)
        try:
            engine.trigger("prod-rating")
            engine.flush()
            assert engine.pending_products() == ["prod-rating"]
        finally:
            engine.shutdown()


class TestAggregateMatchesApprovedPopulation:
    def test_after_mixed_sequence(self, store):
        ids = {}
        for author, score in (("a", 5), ("b", 1), ("c", 4), ("d", 2)):
            ids[author] = _create(store, f"author-{author}", score).id

        store.set_approval(ids["a"], True, moderator_id="mod", role=Role.MODERATOR)
        store.set_approval(ids["b"], True, moderator_id="mod", role=Role.MODERATOR)
        store.set_approval(ids["c"], True, moderator_id="mod", role=Role.MODERATOR)
        store.set_approval(ids["b"], False, moderator_id="mod", role=Role.MODERATOR)
        store.delete_review(ids["c"], requester_id="mod", role=Role.MODERATOR)
        store.update_review(ids["a"], author_id="author-a", rating=3)

        approved = current_domain.repository_for(Review)._dao.query.filter(
            product_id="prod-rating", is_approved=True
        ).all().items
        scores = [r.rating.score for r in approved]
        assert _summary(store) == {
            "average_rating": sum(scores) / len(scores),
            "review_count": len(scores),
        }
