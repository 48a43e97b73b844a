"""
Load Testing Scripts

Locust load tests for MindSync API endpoints.
Exercises quick chat, the session lifecycle and mood tracking.

USAGE:
    locust -f tests/load/locustfile.py --host=http://localhost:8000

Each simulated user registers its own account; free accounts hit the
weekly session quota after five sessions, so 429 on session start is
counted as expected.
"""

import random
import uuid

from locust import between, events, task
from locust.contrib.fasthttp import FastHttpUser

MESSAGES = [
    "Hoy me siento ansioso por el trabajo",
    "No puedo dormir bien últimamente",
    "Tuve una discusión con mi pareja",
    "Me siento un poco mejor que ayer",
    "¿Qué puedo hacer cuando me preocupo demasiado?",
]


class MindSyncApiUser(FastHttpUser):
    """
    Simulated MindSync user.

    Focuses on realistic chat and mood-tracking patterns.
    """

    wait_time = between(1, 5)

    def on_start(self):
        """Register an account for this simulated user."""
        self.conversation_id = None
        self.headers = {}

        payload = {
            "name": "Usuario Prueba",
            "email": f"load_{uuid.uuid4().hex[:12]}@example.com",
            "password": "loadtest123",
        }
        with self.client.post("/api/auth/register", json=payload, catch_response=True) as response:
            if response.status_code == 201:
                token = response.json()["tokens"]["accessToken"]
                self.headers = {"Authorization": f"Bearer {token}"}
                response.success()
            else:
                response.failure(f"Registration failed: {response.status_code}")

    @task(5)
    def health_check(self):
        """Health check."""
        self.client.get("/health")

    @task(10)
    def quick_chat(self):
        """Stateless chat message."""
        if not self.headers:
            return
        with self.client.post(
            "/api/chat",
            json={"message": random.choice(MESSAGES)},
            headers=self.headers,
            catch_response=True,
        ) as response:
            if response.status_code == 200 and response.json().get("response"):
                response.success()
            else:
                response.failure(f"Chat failed: {response.status_code}")

    @task(2)
    def start_session(self):
        """Start a chat session (quota gated)."""
        if not self.headers:
            return
        with self.client.post(
            "/api/chat/session/start",
            headers=self.headers,
            catch_response=True,
        ) as response:
            if response.status_code == 200:
                self.conversation_id = response.json()["conversationId"]
                response.success()
            elif response.status_code == 429:
                response.success()
            else:
                response.failure(f"Session start failed: {response.status_code}")

    @task(6)
    def send_session_message(self):
        """Send a message in the open session."""
        if not self.conversation_id:
            return
        self.client.post(
            "/api/chat/message",
            json={"conversationId": self.conversation_id, "message": random.choice(MESSAGES)},
            headers=self.headers,
        )

    @task(3)
    def record_mood(self):
        """Submit a mood sample."""
        if not self.headers:
            return
        self.client.post(
            "/api/progress",
            json={"mood": random.randint(1, 10), "note": "prueba de carga"},
            headers=self.headers,
        )

    @task(1)
    def progress_overview(self):
        """Progress dashboard."""
        if not self.headers:
            return
        self.client.get("/api/progress/overview", headers=self.headers)


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    """Log test start."""
    print("Load test starting...")


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    """Log test completion."""
    print("Load test complete.")
    print(f"Total requests: {environment.stats.total.num_requests}")
    print(f"Failures: {environment.stats.total.num_failures}")
    print(f"Avg response time: {environment.stats.total.avg_response_time:.2f}ms")
