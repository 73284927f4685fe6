from __future__ import annotations

import unittest

from utils import log_contracts


class LogContractsTests(unittest.TestCase):
    def test_rendered_event_gets_reason_code(self) -> None:
        row = log_contracts.og_request_event(
            token="vitalik.eth",
            status=200,
            kind="name",
            address="0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045",
            strategy="rpc",
            elapsed_ms=12.3456,
        )
        self.assertEqual(row["schema"], log_contracts.SCHEMA_OG_REQUEST)
        self.assertEqual(row["reason_code"], "OG_RENDERED")
        self.assertEqual(row["reason_category"], "render")
        self.assertTrue(str(row["request_id"]).startswith("og_"))
        self.assertEqual(row["elapsed_ms"], 12.35)

    def test_error_statuses_map_to_codes(self) -> None:
        self.assertEqual(log_contracts.reason_code_for_status(400), "INPUT_REJECTED")
        self.assertEqual(log_contracts.reason_code_for_status(404), "NAME_NOT_FOUND")
        self.assertEqual(log_contracts.reason_code_for_status(500), "RENDER_FAILED")
        self.assertEqual(log_contracts.reason_code_for_status(418), "UNKNOWN")

    def test_missing_token_is_empty_string(self) -> None:
        row = log_contracts.og_request_event(token=None, status=400, error_kind="input")
        self.assertEqual(row["token"], "")
        self.assertEqual(row["severity"], "INFO")
        self.assertEqual(row["error_kind"], "input")


if __name__ == "__main__":
    unittest.main()
