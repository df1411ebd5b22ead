"""
Locust Load Test Suite

Tokens are minted locally with the shared SECRET_KEY, standing in for the
identity provider, so the target server must run with the same key.

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Race for the last seats
  locust -f locustfile.py --tags churn        # Register/cancel storm with promotion
  locust -f locustfile.py --tags throughput   # Test cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import random
import uuid
from datetime import date, timedelta

from locust import HttpUser, task, between, tag, events

from seatsync.core.security import create_access_token

# Shared state
EVENT_IDS = []
CONCURRENCY_EVENT_ID = None
CHURN_EVENT_ID = None

DEPARTMENTS = ["CSE", "IT", "ECE", "AIML"]


def student_headers(department=None):
    token = create_access_token({
        "sub": f"load-{uuid.uuid4().hex[:10]}",
        "department": department or random.choice(DEPARTMENTS),
        "role": "student",
    })
    return {"Authorization": f"Bearer {token}"}


def admin_headers():
    token = create_access_token({"sub": "load-admin", "department": "ADMIN", "role": "admin"})
    return {"Authorization": f"Bearer {token}"}


def create_event(client, title, seats, days_ahead=30, hour=None):
    body = {
        "title": title,
        "kind": random.choice(["Workshop", "Seminar"]),
        "date": (date.today() + timedelta(days=days_ahead)).isoformat(),
        "total_seats": seats,
        "target_branches": [],
    }
    if hour is not None:
        body["start_time"] = f"{hour:02d}:00:00"
        body["end_time"] = f"{hour + 1:02d}:00:00"
    resp = client.post("/api/v1/admin/events", json=body, headers=admin_headers())
    if resp.status_code == 201:
        return resp.json()["id"]
    return None


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print("SETUP: events are created lazily by the first user of each scenario")
    print("=" * 60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 100 users -> 10 seats

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM registrations WHERE event_id = X;   -- exactly 10
      SELECT available_seats FROM events WHERE id = X;          -- 0
      positions in waitlist_entries for X are unique
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        global CONCURRENCY_EVENT_ID
        self.headers = student_headers("CSE")
        self.done = False
        if not CONCURRENCY_EVENT_ID:
            CONCURRENCY_EVENT_ID = create_event(self.client, "Concurrency Test Event", 10)
            if CONCURRENCY_EVENT_ID:
                print(f"\nCreated event {CONCURRENCY_EVENT_ID} with 10 seats\n")

    @tag("concurrency")
    @task
    def register_for_limited_seats(self):
        """Everyone registers once; the overflow must land on the waitlist."""
        if not CONCURRENCY_EVENT_ID or self.done:
            return

        with self.client.post("/api/v1/registrations/",
            json={"event_id": CONCURRENCY_EVENT_ID},
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                self.done = True
                resp.success()
            elif resp.status_code == 503:
                resp.failure("Retry budget exhausted")
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ChurnUser(HttpUser):
    """
    TEST 2: Churn - register, then cancel, on a 5-seat event

    Run: locust -f locustfile.py --tags churn -u 50 -r 25 --run-time 60s

    Every cancel of a confirmed seat promotes the waitlist head, so at any
    moment available_seats + COUNT(registrations) must equal total_seats.
    """
    wait_time = between(0, 0.3)

    def on_start(self):
        global CHURN_EVENT_ID
        self.headers = student_headers("IT")
        if not CHURN_EVENT_ID:
            CHURN_EVENT_ID = create_event(self.client, "Churn Test Event", 5, hour=15)

    @tag("churn")
    @task(3)
    def register(self):
        if not CHURN_EVENT_ID:
            return
        with self.client.post("/api/v1/registrations/",
            json={"event_id": CHURN_EVENT_ID},
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()  # 409: already registered or waitlisted
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("churn")
    @task(2)
    def cancel(self):
        if not CHURN_EVENT_ID:
            return
        with self.client.delete(f"/api/v1/registrations/{CHURN_EVENT_ID}",
            headers=self.headers,
            name="/api/v1/registrations/{id}",
            catch_response=True
        ) as resp:
            if resp.status_code in (200, 404):
                resp.success()  # 404: nothing to cancel
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("churn")
    @task(1)
    def booking_state(self):
        if CHURN_EVENT_ID:
            self.client.get(f"/api/v1/events/{CHURN_EVENT_ID}/booking",
                headers=self.headers,
                name="/api/v1/events/{id}/booking")


class ThroughputUser(HttpUser):
    """
    TEST 3: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false on the server, run again

    Compare avg response time and P95/P99 latency.
    """
    wait_time = between(0.1, 0.5)

    def on_start(self):
        self.headers = student_headers()

    @tag("throughput", "read")
    @task(10)
    def list_events_cached(self):
        """Hammer the cached endpoint."""
        page = random.randint(1, 5)
        resp = self.client.get(f"/api/v1/events/?page={page}&page_size=20",
            headers=self.headers,
            name="/api/v1/events/ [cached]")
        if resp.status_code == 200:
            for event in resp.json().get("events", []):
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @tag("throughput", "read")
    @task(3)
    def get_event_detail(self):
        if EVENT_IDS:
            self.client.get(f"/api/v1/events/{random.choice(EVENT_IDS)}",
                headers=self.headers,
                name="/api/v1/events/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 4: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = student_headers()

    @tag("edge")
    @task
    def invalid_event_id(self):
        with self.client.post("/api/v1/registrations/",
            json={"event_id": 999999},
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code == 404:
                resp.success()
            else:
                resp.failure(f"Expected 404, got {resp.status_code}")

    @tag("edge")
    @task
    def non_numeric_event_id(self):
        with self.client.post("/api/v1/registrations/",
            json={"event_id": "abc"},
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code == 422:
                resp.success()
            else:
                resp.failure(f"Expected 422, got {resp.status_code}")

    @tag("edge")
    @task
    def cancel_nothing(self):
        with self.client.delete("/api/v1/registrations/999999",
            headers=self.headers,
            name="/api/v1/registrations/{id}",
            catch_response=True
        ) as resp:
            if resp.status_code == 404:
                resp.success()
            else:
                resp.failure(f"Expected 404, got {resp.status_code}")

    @tag("edge")
    @task
    def malformed_json(self):
        with self.client.post("/api/v1/registrations/",
            data="not json at all",
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code in [400, 422]:
                resp.success()
            else:
                resp.failure(f"Expected 400/422, got {resp.status_code}")

    @tag("edge")
    @task
    def student_creates_event(self):
        with self.client.post("/api/v1/admin/events",
            json={"title": "Nope", "date": date.today().isoformat(), "total_seats": 5},
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code == 403:
                resp.success()
            else:
                resp.failure(f"Expected 403, got {resp.status_code}")

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.post("/api/v1/registrations/",
            json={"event_id": 1},
            catch_response=True
        ) as resp:
            if resp.status_code == 401:
                resp.success()
            else:
                resp.failure(f"Expected 401, got {resp.status_code}")


class RealisticUser(HttpUser):
    """
    TEST 5: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Simulates real traffic:
      - Mostly browsing
      - Some registrations and cancellations
      - Rare event creation by an admin
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.headers = student_headers()
        self.booked = []

    @task(50)
    def browse_events(self):
        resp = self.client.get("/api/v1/events/?page=1&page_size=20", headers=self.headers)
        if resp.status_code == 200:
            for event in resp.json().get("events", []):
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @task(20)
    def view_event(self):
        if EVENT_IDS:
            self.client.get(f"/api/v1/events/{random.choice(EVENT_IDS)}",
                headers=self.headers,
                name="/api/v1/events/{id}")

    @task(10)
    def register(self):
        if not EVENT_IDS:
            return
        event_id = random.choice(EVENT_IDS)
        resp = self.client.post("/api/v1/registrations/",
            json={"event_id": event_id},
            headers=self.headers)
        if resp.status_code == 201:
            self.booked.append(event_id)

    @task(4)
    def cancel(self):
        if self.booked:
            event_id = self.booked.pop(random.randrange(len(self.booked)))
            self.client.delete(f"/api/v1/registrations/{event_id}",
                headers=self.headers,
                name="/api/v1/registrations/{id}")

    @task(2)
    def my_bookings(self):
        self.client.get("/api/v1/registrations/me", headers=self.headers)

    @task(1)
    def create_event(self):
        event_id = create_event(self.client,
            f"Event {random.randint(1, 10000)}",
            random.randint(10, 200),
            days_ahead=random.randint(1, 90),
            hour=random.randint(8, 18))
        if event_id:
            EVENT_IDS.append(event_id)
