from __future__ import annotations

import unittest

from utils.addressing import classify_token, crop_address, is_address, is_ens_name


class AddressingTests(unittest.TestCase):
    def test_is_address_accepts_lowercase_and_valid_checksum(self) -> None:
        self.assertTrue(is_address("0x1234567890abcdef1234567890abcdef12345678"))
        self.assertTrue(is_address("0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"))

    def test_is_address_rejects_short_and_bad_checksum(self) -> None:
        self.assertFalse(is_address("0x1234"))
        self.assertFalse(is_address("0xD8dA6BF26964aF9D7eEd9e03E53415D37aA96045"))
        self.assertFalse(is_address(None))
        self.assertFalse(is_address(""))

    def test_is_address_requires_lowercase_0x_prefix(self) -> None:
        self.assertFalse(is_address("d8da6bf26964aef9d7eed9e03e53415d37aa96045"))
        self.assertFalse(is_address("0Xd8da6bf26964aef9d7eed9e03e53415d37aa96045"))
        self.assertFalse(is_address(" 0xd8da6bf26964aef9d7eed9e03e53415d37aa96045"))
        self.assertFalse(is_address("0xd8da6bf26964aef9d7eed9e03e53415d37aa9604g"))

    def test_is_address_checks_uppercase_body_against_checksum(self) -> None:
        self.assertFalse(is_address("0xD8DA6BF26964AF9D7EED9E03E53415D37AA96045"))
        self.assertTrue(is_address("0xd8da6bf26964aef9d7eed9e03e53415d37aa96045"))

    def test_ens_suffixes(self) -> None:
        self.assertTrue(is_ens_name("vitalik.eth"))
        self.assertTrue(is_ens_name("name.xyz"))
        self.assertFalse(is_ens_name("vitalik.eth.com"))
        self.assertFalse(is_ens_name("vitalik"))
        self.assertTrue(is_ens_name("shop.box", suffixes=["box"]))

    def test_classify_token(self) -> None:
        self.assertEqual(classify_token("vitalik.eth"), "name")
        self.assertEqual(classify_token("0x1234567890abcdef1234567890abcdef12345678"), "address")
        self.assertIsNone(classify_token("notanaddress"))

    def test_crop_address(self) -> None:
        self.assertEqual(crop_address("0x1234567890abcdef1234567890abcdef12345678"), "0x1234...5678")
        self.assertEqual(crop_address(None), "...")


if __name__ == "__main__":
    unittest.main()
