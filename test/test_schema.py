"""
Schema module tests (declarations, compilation, raising parser).

Scope
- Validate fluent declarations and their guards.
- Validate compiled parser trees: auto help/version, global options, banners.
- Validate that the parser raises instead of printing and exiting.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from argnest import Schema, Parser, Matches, HelpRequested, VersionRequested, ParseError


class TestSchemaDeclarations(TestCase):

    def testNameIsStripped(self):
        self.assertEqual(Schema("  tool ").name, "tool")

    def testEmptyNameRejected(self):
        with self.assertRaises(ValueError):
            Schema("")
        with self.assertRaises(TypeError):
            Schema(3)

    def testFluentMethodsReturnSameSchema(self):
        schema = Schema("tool")
        self.assertIs(schema.description("d").versioned("1").authored("me").program("t"), schema)
        self.assertEqual((schema.descr, schema.version, schema.author, schema.prog), ("d", "1", "me", "t"))

    def testMissingFieldsReadAsNone(self):
        schema = Schema("tool")
        self.assertIsNone(schema.descr)
        self.assertIsNone(schema.prog)

    def testOnlyOptionsCanBeGlobal(self):
        with self.assertRaises(ValueError):
            Schema("tool").argument("path", globally=True)

    def testSubcommandMustBeSchema(self):
        with self.assertRaises(TypeError):
            Schema("tool").subcommand("child")

    def testChildrenAreCopies(self):
        schema = Schema("tool").subcommand(Schema("child"))
        schema.children.clear()
        self.assertEqual([child.name for child in schema.children], ["child"])

    def testBanner(self):
        self.assertEqual(Schema("tool").banner, "tool")
        self.assertEqual(Schema("tool", version="1.2").banner, "tool 1.2")
        self.assertEqual(Schema("tool", version="1.2", author="Someone").banner, "tool 1.2\nSomeone")

    def testPropagateReachesEveryDescendant(self):
        leaf = Schema("leaf")
        root = Schema("root").subcommand(Schema("mid").subcommand(leaf))
        root.propagate(version="2.0", author="Someone")
        self.assertEqual((leaf.version, leaf.author), ("2.0", "Someone"))
        self.assertIsNone(root.version)

    def testPropagateSkipsMissingValues(self):
        child = Schema("child", version="1.0")
        Schema("root").subcommand(child).propagate(version=None)
        self.assertEqual(child.version, "1.0")

    def testPropagateRejectsOtherFields(self):
        with self.assertRaises(TypeError):
            Schema("root").propagate(descr="nope")


class TestCompiledParser(TestCase):

    def testCompileMirrorsChildren(self):
        parser = Schema("tool").subcommand(Schema("a").subcommand(Schema("b"))).compile()
        self.assertIsInstance(parser, Parser)
        self.assertEqual(list(parser.commands), ["a"])
        self.assertEqual(list(parser.commands["a"].commands), ["b"])
        self.assertEqual(parser.commands["a"].commands["b"].prog, "tool a b")

    def testProgDefaultsToName(self):
        self.assertEqual(Schema("tool").compile().prog, "tool")
        self.assertEqual(Schema("tool").program("other").compile().prog, "other")

    def testHelpFlagRaises(self):
        parser = Schema("tool", descr="Does things").compile()
        with self.assertRaises(HelpRequested) as caught:
            parser.parse_args(["--help"])
        self.assertIn("Does things", caught.exception.message)
        self.assertEqual(caught.exception.options["prog"], "tool")

    def testVersionFlagOnlyWithVersion(self):
        with self.assertRaises(VersionRequested) as caught:
            Schema("tool", version="3.1").compile().parse_args(["-V"])
        self.assertEqual(caught.exception.message, "tool 3.1\n")
        with self.assertRaises(ParseError):
            Schema("tool").compile().parse_args(["-V"])

    def testDeclaredFlagsReplaceAutomaticOnes(self):
        parser = Schema("tool", version="1").argument("-V", "--verbose", action="store_true").compile()
        self.assertTrue(parser.parse_args(["-V"]).verbose)

    def testParseErrorCarriesUsageAndReason(self):
        parser = Schema("tool").argument("--count", type=int).compile()
        with self.assertRaises(ParseError) as caught:
            parser.parse_args(["--count", "many"])
        fault = caught.exception
        self.assertTrue(fault.message.startswith("usage: tool"))
        self.assertTrue(fault.reason.startswith("tool: error: argument --count"))
        self.assertEqual(fault.prog, "tool")

    def testHelpStartsWithBanner(self):
        parser = Schema("tool", version="1.0", author="Someone").compile()
        self.assertTrue(parser.format_help().startswith("tool 1.0\nSomeone\n\nusage: tool"))

    def testSubcommandsListedWithDescriptions(self):
        parser = Schema("tool").subcommand(Schema("build", descr="Builds it")).compile()
        help = parser.format_help()
        self.assertIn("commands:", help)
        self.assertIn("Builds it", help)


class TestGlobalOptions(TestCase):

    def parser(self):
        return (
            Schema("tool")
            .argument("-v", "--verbose", action="store_true", globally=True)
            .argument("--name", default="root")
            .subcommand(Schema("sub").subcommand(Schema("leaf")))
            .compile()
        )

    def testGlobalsAreCollected(self):
        self.assertEqual(dict(self.parser().globals), {"verbose": None})
        self.assertEqual(dict(self.parser().mandatory), {})

    def testGlobalAcceptedAtEveryLevel(self):
        parser = self.parser()
        for args in (["-v", "sub", "leaf"], ["sub", "-v", "leaf"], ["sub", "leaf", "--verbose"]):
            with self.subTest(args=args):
                matches = Matches.from_namespace(parser.parse_args(args), parser.globals)
                leaf = matches.subcommand_matches("sub").subcommand_matches("leaf")
                self.assertTrue(matches["verbose"])
                self.assertTrue(leaf["verbose"])

    def testGlobalDefaultVisibleOnEveryLevel(self):
        parser = self.parser()
        matches = Matches.from_namespace(parser.parse_args(["sub"]), parser.globals)
        self.assertFalse(matches.subcommand_matches("sub")["verbose"])

    def testLocalOptionsStayLocal(self):
        parser = self.parser()
        with self.assertRaises(ParseError):
            parser.parse_args(["sub", "--name", "x"])


class TestRequiredGlobalOptions(TestCase):

    def parser(self):
        return (
            Schema("tool")
            .argument("-e", "--env", required=True, globally=True)
            .subcommand(Schema("foo").subcommand(Schema("bar")))
            .compile()
        )

    def testRequiredGlobalRecorded(self):
        self.assertEqual(dict(self.parser().mandatory), {"env": ("-e", "--env")})

    def testRequiredGlobalGivenAtAnyLevel(self):
        parser = self.parser()
        for args in (["-e", "x", "foo", "bar"], ["foo", "-e", "x", "bar"], ["foo", "bar", "--env", "x"]):
            with self.subTest(args=args):
                matches = Matches.from_namespace(parser.parse_args(args), parser.globals)
                bar = matches.subcommand_matches("foo").subcommand_matches("bar")
                self.assertEqual(matches["env"], "x")
                self.assertEqual(bar["env"], "x")

    def testMissingRequiredGlobalReportedByDeepestLevel(self):
        with self.assertRaises(ParseError) as caught:
            self.parser().parse_args(["foo", "bar"])
        self.assertEqual(caught.exception.prog, "tool foo bar")
        self.assertIn("the following arguments are required: -e/--env", caught.exception.reason)

    def testMissingRequiredGlobalAtRoot(self):
        with self.assertRaises(ParseError) as caught:
            self.parser().parse_args([])
        self.assertEqual(caught.exception.prog, "tool")


class TestAccumulatingGlobalOptions(TestCase):

    def parser(self):
        return (
            Schema("tool")
            .argument("-v", action="count", default=0, globally=True)
            .argument("-i", "--include", action="append", globally=True)
            .argument("-n", "--name", globally=True)
            .subcommand(Schema("sub"))
            .compile()
        )

    def testCountAddsUpAcrossLevels(self):
        parser = self.parser()
        matches = Matches.from_namespace(parser.parse_args(["-v", "sub", "-v", "-v"]), parser.globals)
        self.assertEqual(matches["v"], 3)
        self.assertEqual(matches.subcommand_matches("sub")["v"], 3)

    def testAppendConcatenatesAcrossLevels(self):
        parser = self.parser()
        args = ["-i", "a", "sub", "--include", "b", "-i", "c"]
        matches = Matches.from_namespace(parser.parse_args(args), parser.globals)
        self.assertEqual(matches["include"], ["a", "b", "c"])
        self.assertEqual(matches.subcommand_matches("sub")["include"], ["a", "b", "c"])

    def testUnusedAccumulatorsKeepDefaults(self):
        parser = self.parser()
        matches = Matches.from_namespace(parser.parse_args(["sub"]), parser.globals)
        self.assertEqual(matches["v"], 0)
        self.assertIsNone(matches["include"])

    def testPlainGlobalStillDeepestWins(self):
        parser = self.parser()
        matches = Matches.from_namespace(parser.parse_args(["-n", "a", "sub", "-n", "b"]), parser.globals)
        self.assertEqual(matches["name"], "b")


class TestDeclaredRequestActions(TestCase):

    def testVersionActionRaises(self):
        parser = Schema("tool").argument("--version", action="version", version="tool 9").compile()
        with self.assertRaises(VersionRequested) as caught:
            parser.parse_args(["--version"])
        self.assertEqual(caught.exception.message, "tool 9\n")

    def testVersionActionFormatsProg(self):
        parser = Schema("tool").argument("--version", action="version", version="%(prog)s 2.0").compile()
        with self.assertRaises(VersionRequested) as caught:
            parser.parse_args(["--version"])
        self.assertEqual(caught.exception.message, "tool 2.0\n")

    def testHelpActionRaises(self):
        parser = Schema("tool").argument("-?", "--usage", action="help").compile()
        with self.assertRaises(HelpRequested) as caught:
            parser.parse_args(["-?"])
        self.assertEqual(caught.exception.message, parser.format_help())


if __name__ == "__main__":
    unittest.main()
