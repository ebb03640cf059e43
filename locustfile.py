from locust import HttpUser, task, between
import os
import random

# Configurable via environment variables:
# LOCUST_HEALTH_PATH (default: /health)
# LOCUST_QUERIES (comma-separated text queries, default: mumbai,pune,bandra,jalgaon)

HEALTH_PATH = os.getenv("LOCUST_HEALTH_PATH", "/health")
QUERIES = [q.strip() for q in os.getenv("LOCUST_QUERIES", "mumbai,pune,bandra,jalgaon").split(",") if q.strip()]

# (lat, lng) points the nearby task picks from
CENTERS = [
    (19.0760, 72.8777),
    (18.5204, 73.8567),
    (21.0077, 75.5626),
]


class DiscoveryUser(HttpUser):
    wait_time = between(1, 3)

    @task(1)
    def health(self):
        self.client.get(HEALTH_PATH, name=f"GET {HEALTH_PATH}")

    @task(5)
    def nearby(self):
        lat, lng = random.choice(CENTERS)
        self.client.get(
            "/api/v1/maps/nearby",
            params={"lat": lat, "lng": lng, "radius": 25000},
            name="GET /api/v1/maps/nearby",
        )

    @task(3)
    def text_search(self):
        self.client.get("/api/v1/maps/search", params={"q": random.choice(QUERIES)}, name="GET /api/v1/maps/search")

    @task(2)
    def locate(self):
        self.client.get("/api/v1/maps/locate", params={"q": random.choice(QUERIES)}, name="GET /api/v1/maps/locate")
