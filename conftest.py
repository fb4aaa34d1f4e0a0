from __future__ import annotations

import os


def _ensure_test_env() -> None:
    # Settings must not pick up a developer .env or write into ./.cache during tests
    os.environ.setdefault("DOCKER_CONTAINER", "false")
    os.environ.setdefault("ENVIRONMENT", "test")
    os.environ.setdefault("FILE_CACHE_ENABLED", "false")
    os.environ.setdefault("LOG_LEVEL", "WARNING")


_ensure_test_env()


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external services")
