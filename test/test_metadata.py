"""
Metadata module tests (resolution order across explicit values, distributions and __main__).

Conventions
- Test method names follow CamelCase per project convention.
- rich is a runtime dependency, so its distribution metadata is always installed.
"""

from __future__ import annotations

import sys
import unittest
from importlib import metadata as importlib_metadata
from unittest import TestCase, mock

from argnest.metadata import Metadata, resolve

MISSING = "argnest-surely-not-an-installed-distribution"


class TestResolve(TestCase):

    def testExplicitValuesWin(self):
        self.assertEqual(resolve("tool", "1.0", "Does things", "Someone"), Metadata("tool", "1.0", "Does things", "Someone"))

    def testExplicitNoneDisablesLookup(self):
        with mock.patch.object(sys.modules["__main__"], "__version__", "9.9", create=True):
            self.assertIsNone(resolve("tool", None).version)

    def testScriptDundersUsed(self):
        main = sys.modules["__main__"]
        with (
            mock.patch.object(main, "__prog__", "script", create=True),
            mock.patch.object(main, "__version__", "9.9", create=True),
            mock.patch.object(main, "__author__", "Script Author", create=True),
        ):
            found = resolve()
        self.assertEqual((found.name, found.version, found.author), ("script", "9.9", "Script Author"))

    def testDistributionBeatsScript(self):
        with mock.patch.object(sys.modules["__main__"], "__version__", "9.9", create=True):
            found = resolve("tool", distribution="rich")
        self.assertEqual(found.name, "tool")
        self.assertEqual(found.version, importlib_metadata.version("rich"))

    def testDistributionName(self):
        self.assertEqual(resolve(distribution="rich").name.lower(), "rich")

    def testMissingDistributionIsSkipped(self):
        self.assertEqual(resolve("tool", "1.0", distribution=MISSING), resolve("tool", "1.0"))

    def testNameFallsBackToArgv(self):
        main = sys.modules["__main__"]
        with (
            mock.patch.object(main, "__prog__", None, create=True),
            mock.patch.object(sys, "argv", ["/opt/bin/fallback-tool"]),
        ):
            self.assertEqual(resolve().name, "fallback-tool")

    def testNameFallsBackToProgram(self):
        main = sys.modules["__main__"]
        with mock.patch.object(main, "__prog__", None, create=True), mock.patch.object(sys, "argv", []):
            self.assertEqual(resolve().name, "program")


if __name__ == "__main__":
    unittest.main()
