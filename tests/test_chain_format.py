from __future__ import annotations

import unittest

from resolver.chain import format_ether


class FormatEtherTests(unittest.TestCase):
    def test_whole_and_fractional_values(self) -> None:
        self.assertEqual(format_ether(0), "0")
        self.assertEqual(format_ether(10**18), "1")
        self.assertEqual(format_ether(1_500_000_000_000_000_000), "1.5")
        self.assertEqual(format_ether(1), "0.000000000000000001")
        self.assertEqual(format_ether(123_456_789_000_000_000_000), "123.456789")


if __name__ == "__main__":
    unittest.main()
