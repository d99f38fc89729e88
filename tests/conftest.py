import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from stores import InMemoryProblemStore, InMemoryStatsStore

ADMIN_PASSWORD = "test-secret"


@pytest.fixture
def settings():
    return Settings(admin_password=ADMIN_PASSWORD, use_in_memory_backends=True)


@pytest.fixture
def problem_store():
    return InMemoryProblemStore()


@pytest.fixture
def stats_store():
    return InMemoryStatsStore()


@pytest.fixture
def client(settings, problem_store, stats_store):
    app = create_app(settings, problem_store=problem_store, stats_store=stats_store)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def two_sum():
    return {
        "title": "Two Sum",
        "description": "Return indices of the two numbers that add up to target.",
        "difficulty": "easy",
        "category": "arrays",
        "examples": [
            {"input": "nums = [2,7,11,15], target = 9", "output": "[0,1]", "explanation": "2 + 7 = 9"}
        ],
        "constraints": "2 <= nums.length <= 10^4",
        "solution": "Use a hash map of value -> index.",
        "link": "https://leetcode.com/problems/two-sum/",
    }


@pytest.fixture
def created_problem(client, two_sum):
    response = client.post("/api/problems", json=two_sum)
    return response.json()["id"]
