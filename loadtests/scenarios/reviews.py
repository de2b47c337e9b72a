"""Reviews domain load test scenarios.

A stateful review journey plus two contention workloads aimed at the
single-writer sections: many shoppers voting on the same few reviews, and
moderators flipping approval on reviews of the same few products so rating
recomputations for one product overlap.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, constant_pacing, task

from loadtests.data_generators import (
    customer_headers,
    hot_product,
    moderator_headers,
    rating,
    response_text,
    review_data,
    user_id,
)
from loadtests.helpers.response import is_expected_conflict
from loadtests.helpers.state import ReviewState, VoterState


class ReviewLifecycleJourney(SequentialTaskSet):
    """Create -> Approve -> Read rating -> Edit rating -> Respond -> Delete.

    Models one customer's review going through moderation. Approve, edit
    and delete each trigger a rating recomputation for the product.
    """

    def on_start(self):
        self.state = ReviewState(author_id=user_id())

    @task
    def create_review(self):
        payload = review_data()
        with self.client.post(
            "/reviews",
            json=payload,
            headers=customer_headers(self.state.author_id),
            catch_response=True,
            name="POST /reviews",
        ) as resp:
            if resp.status_code == 201:
                self.state.review_id = resp.json()["review_id"]
                self.state.product_id = payload["product_id"]
                self.state.rating = payload["rating"]
            else:
                resp.failure(f"Create review failed: {resp.status_code}")
                self.interrupt()

    @task
    def approve(self):
        with self.client.put(
            f"/reviews/{self.state.review_id}/approval",
            json={"approved": True},
            headers=moderator_headers(),
            catch_response=True,
            name="PUT /reviews/{id}/approval",
        ) as resp:
            if resp.status_code == 200:
                self.state.is_approved = True
            else:
                resp.failure(f"Approve failed: {resp.status_code}")

    @task
    def read_rating(self):
        self.client.get(
            f"/reviews/products/{self.state.product_id}/rating",
            name="GET /reviews/products/{id}/rating",
        )

    @task
    def edit_rating(self):
        new_rating = rating()
        with self.client.put(
            f"/reviews/{self.state.review_id}",
            json={"rating": new_rating},
            headers=customer_headers(self.state.author_id),
            catch_response=True,
            name="PUT /reviews/{id}",
        ) as resp:
            if resp.status_code == 200:
                self.state.rating = new_rating
            else:
                resp.failure(f"Edit failed: {resp.status_code}")

    @task
    def respond(self):
        self.client.put(
            f"/reviews/{self.state.review_id}/response",
            json={"text": response_text()},
            headers=moderator_headers(),
            name="PUT /reviews/{id}/response",
        )

    @task
    def maybe_delete(self):
        if random.random() < 0.2:
            self.client.delete(
                f"/reviews/{self.state.review_id}",
                headers=customer_headers(self.state.author_id),
                name="DELETE /reviews/{id}",
            )

    @task
    def done(self):
        self.interrupt()


class ReviewerUser(HttpUser):
    """Customers writing and revising reviews."""

    tasks = [ReviewLifecycleJourney]
    wait_time = between(1, 3)


class VoteContentionUser(HttpUser):
    """Shoppers liking and disliking the same handful of reviews.

    Every user browses the same hot products, so votes land on a few reviews
    at once. After the run, each review's helpful_count must equal
    likes minus dislikes.
    """

    wait_time = constant_pacing(0.2)

    def on_start(self):
        self.state = VoterState(voter_id=user_id("lt-voter"))

    @task(2)
    def browse_product(self):
        with self.client.get(
            f"/reviews/products/{hot_product()}?sort=helpful",
            catch_response=True,
            name="GET /reviews/products/{id}",
        ) as resp:
            if resp.status_code == 200:
                self.state.seen_review_ids = [r["review_id"] for r in resp.json()]
            else:
                resp.failure(f"Browse failed: {resp.status_code}")

    @task(5)
    def vote(self):
        if not self.state.seen_review_ids:
            return
        review_id = random.choice(self.state.seen_review_ids)
        action = random.choice(["like", "dislike"])
        self.client.post(
            f"/reviews/{review_id}/{action}",
            headers=customer_headers(self.state.voter_id),
            name=f"POST /reviews/{{id}}/{action}",
        )


class RatingChurnUser(HttpUser):
    """Moderators flipping approval on reviews of the hot products.

    Approvals and unapprovals for one product overlap, so recomputations for
    that product queue behind its lock. Submits fresh reviews too, some of
    them duplicates of an earlier one by the same author.
    """

    wait_time = constant_pacing(0.5)

    def on_start(self):
        self.author_id = user_id("lt-churn")
        self.reviewed = set()

    @task(2)
    def submit_review(self):
        product_id = hot_product()
        with self.client.post(
            "/reviews",
            json=review_data(product_id=product_id),
            headers=customer_headers(self.author_id),
            catch_response=True,
            name="[CHURN] POST /reviews",
        ) as resp:
            if resp.status_code == 201:
                self.reviewed.add(product_id)
            elif is_expected_conflict(resp) and product_id in self.reviewed:
                resp.success()

    @task(3)
    def approve_from_queue(self):
        resp = self.client.get(
            "/reviews/moderation/queue",
            headers=moderator_headers(),
            name="[CHURN] GET /reviews/moderation/queue",
        )
        if resp.status_code != 200 or not resp.json():
            return
        review = random.choice(resp.json()[:20])
        self.client.put(
            f"/reviews/{review['review_id']}/approval",
            json={"approved": True},
            headers=moderator_headers(),
            name="[CHURN] PUT /reviews/{id}/approval",
        )

    @task(1)
    def unapprove_published(self):
        resp = self.client.get(
            f"/reviews/products/{hot_product()}",
            name="[CHURN] GET /reviews/products/{id}",
        )
        if resp.status_code != 200 or not resp.json():
            return
        review = random.choice(resp.json())
        self.client.put(
            f"/reviews/{review['review_id']}/approval",
            json={"approved": False},
            headers=moderator_headers(),
            name="[CHURN] PUT /reviews/{id}/approval",
        )
