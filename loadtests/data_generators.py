"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the Review aggregate's validation
rules (rating 1-5, title up to 100 chars, body up to 1000 chars, non-blank
text) and match the exact field names expected by the API's Pydantic
request schemas.
"""

import random
import uuid

from faker import Faker

fake = Faker()

# A small shared catalogue so many users pile onto the same products and
# exercise per-product recomputation under contention.
HOT_PRODUCTS = [f"LT-PROD-{i:03d}" for i in range(10)]


def user_id(prefix: str = "lt-user") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:10]}"


def moderator_headers() -> dict:
    return {"X-User-Id": user_id("lt-mod"), "X-User-Role": "Moderator"}


def customer_headers(customer_id: str) -> dict:
    return {"X-User-Id": customer_id, "X-User-Role": "Customer"}


def hot_product() -> str:
    return random.choice(HOT_PRODUCTS)


def rating() -> int:
    """Skewed towards positive reviews, like real storefronts."""
    return random.choices([1, 2, 3, 4, 5], weights=[5, 5, 15, 35, 40])[0]


def review_title() -> str:
    return fake.sentence(nb_words=6)[:100]


def review_body() -> str:
    return fake.paragraph(nb_sentences=5)[:1000]


def image_data() -> dict:
    return {
        "url": f"https://cdn.example.com/reviews/{uuid.uuid4().hex}.jpg",
        "alt_text": fake.sentence(nb_words=4)[:255],
    }


def review_data(product_id: str | None = None, is_approved: bool = False) -> dict:
    """Generate CreateReviewRequest payload matching schema field names."""
    payload = {
        "product_id": product_id or hot_product(),
        "rating": rating(),
        "title": review_title(),
        "body": review_body(),
        "is_approved": is_approved,
    }
    if random.random() < 0.3:
        payload["images"] = [image_data() for _ in range(random.randint(1, 3))]
    return payload


def response_text() -> str:
    return fake.paragraph(nb_sentences=2)
