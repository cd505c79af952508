"""Tests for retry module."""

from unittest.mock import MagicMock, patch

import httpx
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from spaces_uploader.retry import (
    is_retryable_error,
    retry_attempts,
    retry_with_backoff,
    RetryExhausted,
)


def http_status_error(status_code: int) -> httpx.HTTPStatusError:
    response = MagicMock()
    response.status_code = status_code
    return httpx.HTTPStatusError("error", request=MagicMock(), response=response)


def client_error(status_code: int) -> ClientError:
    return ClientError(
        {
            "Error": {"Code": "Error", "Message": "error"},
            "ResponseMetadata": {"HTTPStatusCode": status_code},
        },
        "UploadPart",
    )


class TestIsRetryableError:
    """Tests for error classification."""

    @pytest.mark.parametrize(
        "error",
        [
            httpx.ConnectTimeout("Connection timed out"),
            httpx.ConnectError("Connection refused"),
            httpx.ReadTimeout("Read timed out"),
            EndpointConnectionError(endpoint_url="https://nyc3.digitaloceanspaces.com"),
        ],
    )
    def test_network_errors_are_retryable(self, error):
        assert is_retryable_error(error) is True

    @pytest.mark.parametrize("status_code", [429, 500, 502, 503, 504])
    def test_transient_http_status_is_retryable(self, status_code):
        assert is_retryable_error(http_status_error(status_code)) is True
        assert is_retryable_error(client_error(status_code)) is True

    @pytest.mark.parametrize("status_code", [400, 401, 403, 404])
    def test_client_http_status_is_not_retryable(self, status_code):
        assert is_retryable_error(http_status_error(status_code)) is False
        assert is_retryable_error(client_error(status_code)) is False

    def test_client_error_without_metadata_is_not_retryable(self):
        error = ClientError({"Error": {"Code": "NoSuchUpload"}}, "AbortMultipartUpload")
        assert is_retryable_error(error) is False

    def test_generic_exception_is_not_retryable(self):
        assert is_retryable_error(ValueError("Some error")) is False


class TestRetryWithBackoff:
    """Tests for retry_with_backoff function."""

    def test_success_on_first_attempt(self):
        mock_func = MagicMock(return_value="success")

        result = retry_with_backoff(mock_func, max_attempts=3, delays=[1, 2, 4])

        assert result == "success"
        assert mock_func.call_count == 1

    def test_success_after_two_retries(self):
        mock_func = MagicMock(
            side_effect=[
                httpx.ConnectError("fail1"),
                httpx.ConnectTimeout("fail2"),
                "success",
            ]
        )

        with patch("spaces_uploader.retry.time.sleep"):
            result = retry_with_backoff(mock_func, max_attempts=3, delays=[1, 2])

        assert result == "success"
        assert mock_func.call_count == 3

    def test_failure_after_max_retries_exceeded(self):
        mock_func = MagicMock(side_effect=httpx.ConnectError("Always fails"))

        with patch("spaces_uploader.retry.time.sleep"):
            with pytest.raises(RetryExhausted) as exc_info:
                retry_with_backoff(mock_func, max_attempts=3, delays=[1, 2, 4])

        assert mock_func.call_count == 3
        assert "3 attempts" in str(exc_info.value)

    def test_correct_delays_between_retries(self):
        mock_func = MagicMock(
            side_effect=[
                httpx.ConnectError("fail1"),
                httpx.ConnectError("fail2"),
                httpx.ConnectError("fail3"),
                "success",
            ]
        )

        with patch("spaces_uploader.retry.time.sleep") as sleep:
            retry_with_backoff(mock_func, max_attempts=4, delays=[0.1, 0.2])

        # The last delay repeats once the sequence runs out
        assert [c.args[0] for c in sleep.call_args_list] == [0.1, 0.2, 0.2]

    def test_non_retryable_error_raises_immediately(self):
        mock_func = MagicMock(side_effect=http_status_error(403))

        with pytest.raises(httpx.HTTPStatusError):
            retry_with_backoff(mock_func, max_attempts=3, delays=[0.01])

        assert mock_func.call_count == 1

    def test_passes_args_and_kwargs_to_function(self):
        mock_func = MagicMock(return_value="success")

        retry_with_backoff(
            mock_func,
            max_attempts=3,
            delays=[0.01],
            args=("arg1", "arg2"),
            kwargs={"key1": "value1"},
        )

        mock_func.assert_called_with("arg1", "arg2", key1="value1")

    def test_last_error_preserved_in_retry_exhausted(self):
        last_error = httpx.ConnectTimeout("Final timeout")
        mock_func = MagicMock(
            side_effect=[httpx.ConnectError("First"), last_error]
        )

        with pytest.raises(RetryExhausted) as exc_info:
            retry_with_backoff(mock_func, max_attempts=2, delays=[0])

        assert exc_info.value.last_error is last_error


class TestRetryAttempts:
    """Tests for retry_attempts function."""

    def test_success_on_first_attempt(self):
        on_failure = MagicMock()

        assert retry_attempts(lambda: "ok", max_attempts=3, on_failure=on_failure) == "ok"
        on_failure.assert_not_called()

    @pytest.mark.parametrize("max_attempts", [1, 2, 3, 7])
    def test_any_error_is_retried_up_to_limit(self, max_attempts):
        mock_func = MagicMock(side_effect=ValueError("always"))
        on_failure = MagicMock()

        with pytest.raises(RetryExhausted) as exc_info:
            retry_attempts(mock_func, max_attempts=max_attempts, on_failure=on_failure)

        assert mock_func.call_count == max_attempts
        assert exc_info.value.attempts == max_attempts
        assert isinstance(exc_info.value.last_error, ValueError)
        assert [c.args[0] for c in on_failure.call_args_list] == list(
            range(1, max_attempts + 1)
        )

    def test_success_on_last_attempt(self):
        mock_func = MagicMock(side_effect=[KeyError("a"), KeyError("b"), "ok"])
        on_failure = MagicMock()

        assert retry_attempts(mock_func, max_attempts=3, on_failure=on_failure) == "ok"
        assert on_failure.call_count == 2

    def test_no_sleep_without_delays(self):
        mock_func = MagicMock(side_effect=[ValueError("x"), "ok"])

        with patch("spaces_uploader.retry.time.sleep") as sleep:
            retry_attempts(mock_func, max_attempts=2)

        sleep.assert_not_called()

    def test_no_sleep_after_final_attempt(self):
        mock_func = MagicMock(side_effect=ValueError("x"))

        with patch("spaces_uploader.retry.time.sleep") as sleep:
            with pytest.raises(RetryExhausted):
                retry_attempts(mock_func, max_attempts=2, delays=[3])

        assert sleep.call_count == 1

    def test_invalid_max_attempts(self):
        with pytest.raises(ValueError):
            retry_attempts(lambda: None, max_attempts=0)
