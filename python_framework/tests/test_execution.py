"""Tests for LoggingExecutionContext."""

from structlog.testing import capture_logs

from railway import ErrorCode, LoggingExecutionContext, Result


class TestLoggingExecutionContext:
    def test_returns_computation_result(self):
        ctx = LoggingExecutionContext(operation="PollCycle")
        with capture_logs() as logs:
            result = ctx.execute(lambda: Result.success("ok"))
        assert result.value() == "ok"
        completed = [e for e in logs if e["event"] == "execution.completed"]
        assert completed[0]["operation"] == "PollCycle"
        assert completed[0]["state"] == "SUCCESS"

    def test_logs_failure_state(self):
        ctx = LoggingExecutionContext(operation="PollCycle")
        with capture_logs() as logs:
            ctx.execute(lambda: Result.failure(ErrorCode.SCHEMA_ERROR, "bad"))
        assert logs[-1]["state"] == "FAILURE"

    def test_exception_becomes_failure(self):
        def exploding() -> Result[int]:
            raise ConnectionError("reset by peer")

        ctx = LoggingExecutionContext(operation="PollCycle")
        with capture_logs() as logs:
            result = ctx.execute(exploding)

        assert result.error().code == ErrorCode.NETWORK_ERROR
        assert isinstance(result.error().exception, ConnectionError)
        assert logs[0]["event"] == "execution.raised"
        assert logs[0]["log_level"] == "error"

    def test_unclassified_exception_is_unknown_error(self):
        def exploding() -> Result[int]:
            raise RuntimeError("bug")

        with capture_logs():
            result = LoggingExecutionContext().execute(exploding)
        assert result.error().code == ErrorCode.UNKNOWN_ERROR
