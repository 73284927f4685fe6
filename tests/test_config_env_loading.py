from __future__ import annotations

import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path


class ConfigEnvLoadingTests(unittest.TestCase):
    def _run(self, code: str, og_env_file: str) -> subprocess.CompletedProcess[str]:
        root = Path(__file__).resolve().parents[1]
        env = os.environ.copy()
        env["OG_ENV_FILE"] = og_env_file
        return subprocess.run(
            [sys.executable, "-c", code],
            cwd=str(root),
            env=env,
            capture_output=True,
            text=True,
        )

    def test_missing_og_env_file_fails_fast(self) -> None:
        result = self._run("import config; print('ok')", "data/__definitely_missing_env_for_test__.env")
        self.assertNotEqual(result.returncode, 0)
        details = (result.stdout + "\n" + result.stderr).lower()
        self.assertIn("og_env_file", details)
        self.assertIn("does not exist", details)

    def test_resolver_keys_are_loaded_from_env(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            env_path = Path(tmpdir) / "og.env"
            env_path.write_text(
                "\n".join(
                    [
                        "RESOLVER_STRATEGY=ensdata",
                        "ENS_SUFFIXES=.eth, box ,eth",
                        "OG_CACHE_MAX_AGE=60",
                    ]
                )
                + "\n",
                encoding="utf-8",
            )
            result = self._run(
                "import config; print(f\"{config.RESOLVER_STRATEGY}|{','.join(config.ENS_SUFFIXES)}|{config.OG_CACHE_MAX_AGE}\")",
                str(env_path),
            )
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        self.assertEqual(result.stdout.strip(), "ensdata|eth,box|60")

    def test_unknown_strategy_falls_back_to_rpc(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            env_path = Path(tmpdir) / "og.env"
            env_path.write_text("RESOLVER_STRATEGY=graph\n", encoding="utf-8")
            result = self._run("import config; print(config.RESOLVER_STRATEGY)", str(env_path))
        self.assertEqual(result.returncode, 0, msg=result.stderr)
        self.assertEqual(result.stdout.strip(), "rpc")


if __name__ == "__main__":
    unittest.main()
