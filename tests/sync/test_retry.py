"""Tests for RetryPolicy — attempts, unwrapping, non-transient errors."""

import pytest

from errors import NetworkError, ServerError
from sync.retry import RetryPolicy, Transient


@pytest.fixture
def policy():
    return RetryPolicy(max_attempts=3, min_wait=0, max_wait=0)


class TestRetryPolicy:
    def test_success_after_transient_failures(self, policy):
        calls = []

        def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise Transient(NetworkError("blip"))
            return "ok"

        assert policy.call(flaky) == "ok"
        assert len(calls) == 3

    def test_exhausted_raises_wrapped_error(self, policy):
        calls = []

        def down():
            calls.append(1)
            try:
                raise ConnectionError("refused")
            except ConnectionError as e:
                raise Transient(NetworkError("unreachable")) from e

        with pytest.raises(NetworkError, match="unreachable") as exc:
            policy.call(down)
        assert len(calls) == 3
        assert isinstance(exc.value.__cause__, ConnectionError)

    def test_other_errors_not_retried(self, policy):
        calls = []

        def rejected():
            calls.append(1)
            raise ServerError("bad request", status_code=400)

        with pytest.raises(ServerError):
            policy.call(rejected)
        assert len(calls) == 1

    def test_arguments_passed_through(self, policy):
        assert policy.call(lambda a, b=0: a + b, 2, b=3) == 5
