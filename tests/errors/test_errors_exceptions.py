import unittest

from ddrive.errors.exceptions import (
    ApiError,
    AuthError,
    ConflictError,
    DDriveError,
    HttpErrorInfo,
    InvalidArgumentError,
    NetworkError,
    NotFoundError,
    PermissionError,
    RateLimitError,
    map_http_error,
    user_message,
)


class TestExceptions(unittest.TestCase):
    def test_base_error_keeps_details_and_cause(self) -> None:
        cause = RuntimeError("root")
        err = DDriveError("msg", details={"k": "v"}, cause=cause)
        self.assertEqual(str(err), "msg")
        self.assertEqual(err.details["k"], "v")
        self.assertIs(err.cause, cause)

    def test_details_default_to_empty_dict(self) -> None:
        err = DDriveError("msg")
        self.assertEqual(err.details, {})
        self.assertIsNone(err.cause)

    def test_map_http_error_basic(self) -> None:
        err = map_http_error(HttpErrorInfo(status_code=404, message="not found"))
        self.assertIsInstance(err, NotFoundError)

        err = map_http_error(HttpErrorInfo(status_code=400, message="bad req"))
        self.assertIsInstance(err, InvalidArgumentError)

        err = map_http_error(HttpErrorInfo(status_code=429, message="rate"))
        self.assertIsInstance(err, RateLimitError)

        err = map_http_error(HttpErrorInfo(status_code=409, message="conflict"))
        self.assertIsInstance(err, ConflictError)

        err = map_http_error(HttpErrorInfo(status_code=412, message="precondition"))
        self.assertIsInstance(err, ConflictError)

        err = map_http_error(HttpErrorInfo(status_code=401, message="auth"))
        self.assertIsInstance(err, AuthError)

        err = map_http_error(HttpErrorInfo(status_code=403, message="denied"))
        self.assertIsInstance(err, PermissionError)

    def test_map_http_error_5xx_is_api_error(self) -> None:
        err = map_http_error(HttpErrorInfo(status_code=503, message="unavail"))
        self.assertIsInstance(err, ApiError)
        self.assertEqual(err.details["status_code"], 503)

    def test_map_http_error_other_is_api_error(self) -> None:
        err = map_http_error(HttpErrorInfo(status_code=418))
        self.assertIsInstance(err, ApiError)
        self.assertEqual(str(err), "HTTP error 418")

    def test_map_http_error_merges_details(self) -> None:
        err = map_http_error(
            HttpErrorInfo(status_code=404, details={"url": "/files/x"}),
        )
        self.assertEqual(err.details["url"], "/files/x")
        self.assertEqual(err.details["status_code"], 404)


class TestUserMessage(unittest.TestCase):
    def test_conflict_without_server_text_has_distinct_wording(self) -> None:
        err = ConflictError("HTTP error 409")
        self.assertEqual(user_message(err, "Failed"), "A file with that name already exists")

    def test_server_message_wins(self) -> None:
        err = ConflictError("Name taken", details={"server_message": True})
        self.assertEqual(user_message(err, "Failed"), "Name taken")

        err = ApiError("Disk full", details={"server_message": True})
        self.assertEqual(user_message(err, "Failed"), "Disk full")

    def test_fallback_for_generic_failures(self) -> None:
        self.assertEqual(user_message(NetworkError("Network error"), "Failed"), "Failed")
        self.assertEqual(user_message(OSError("boom"), "Failed"), "Failed")


if __name__ == "__main__":
    unittest.main()
