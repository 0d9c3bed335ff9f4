"""
Global test configuration and fixtures
"""

import time

import pytest
import pytest_asyncio

from fable_vite.context import BuildContext
from fable_vite.project.state import ProjectState
from tests.fakes import FakeDaemonClient, FakeHostLogger
from tests.fakes.fake_project import make_context, make_fake_client

# 느린 테스트 임계값 (초)
SLOW_TEST_THRESHOLD = 5.0
WARNING_TEST_THRESHOLD = 2.0


@pytest.fixture(autouse=True)
def track_test_duration(request):
    """모든 테스트의 실행 시간을 추적하고 느린 테스트 경고"""
    start_time = time.time()

    yield

    duration = time.time() - start_time
    test_name = request.node.nodeid

    if duration > SLOW_TEST_THRESHOLD:
        print(f"\n⚠️  SLOW TEST ({duration:.2f}s): {test_name}")
    elif duration > WARNING_TEST_THRESHOLD:
        print(f"\n⏱️  Slow ({duration:.2f}s): {test_name}")


@pytest.fixture
def fake_client() -> FakeDaemonClient:
    """A/B/C project: B depends on A, C depends on B."""
    return make_fake_client()


@pytest.fixture
def host_logger() -> FakeHostLogger:
    return FakeHostLogger()


@pytest.fixture
def context(fake_client, host_logger) -> BuildContext:
    return make_context(fake_client, host_logger)


@pytest.fixture
def state(context) -> ProjectState:
    return ProjectState(context)


@pytest_asyncio.fixture
async def loaded_state(state) -> ProjectState:
    """Project state after a successful initial full recompile."""
    await state.full_recompile()
    return state


# Pytest hooks
def pytest_configure(config):
    """pytest 설정"""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests (medium speed)")
    config.addinivalue_line("markers", "slow: Slow tests (>5s)")


def pytest_collection_modifyitems(config, items):
    """테스트 수집 후 처리"""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
