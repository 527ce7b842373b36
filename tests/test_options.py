from __future__ import annotations

import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import kamal_docker.options as options


class ParseArgsTests(unittest.TestCase):
    def test_empty_argv_requests_help(self) -> None:
        parsed = options.parse_args([])
        self.assertTrue(parsed.show_help)
        self.assertIsNone(parsed.route)

    def test_help_short_circuits_before_later_errors(self) -> None:
        for flag in ("-h", "--help"):
            parsed = options.parse_args([flag, "--bogus", "frobnicate"])
            self.assertTrue(parsed.show_help)
            self.assertIsNone(parsed.route)

    def test_three_value_forms_are_equivalent(self) -> None:
        forms = [
            ["-W", "/repo", "-w", "app", "-e", "TOKEN", "deploy"],
            ["-W=/repo", "-w=app", "-e=TOKEN", "deploy"],
            ["--workdir=/repo", "--kamal-workdir=app", "--env=TOKEN", "deploy"],
            ["--workdir", "/repo", "--kamal-workdir", "app", "--env", "TOKEN", "deploy"],
        ]
        results = [options.parse_args(argv) for argv in forms]
        for parsed in results:
            self.assertEqual(parsed, results[0])
        self.assertEqual(results[0].workdir, "/repo")
        self.assertEqual(results[0].kamal_workdir, "app")
        self.assertEqual(results[0].env_names, ["TOKEN"])

    def test_env_names_keep_order_and_duplicates(self) -> None:
        parsed = options.parse_args(["-e", "A", "-e", "B", "--env=A", "kamal"])
        self.assertEqual(parsed.env_names, ["A", "B", "A"])

    def test_missing_value_is_usage_error(self) -> None:
        for argv in (["-W"], ["--workdir"], ["-e"], ["-w", "--env", "X", "deploy"], ["-W", "-e", "X"]):
            with self.subTest(argv=argv):
                with self.assertRaises(options.LauncherUsageError) as ctx:
                    options.parse_args(argv)
                self.assertIn("requires a value", ctx.exception.message)
                self.assertEqual(ctx.exception.exit_code, 1)

    def test_empty_joined_value_is_usage_error(self) -> None:
        for argv in (["-W=", "deploy"], ["--kamal-workdir=", "deploy"], ["--env=", "deploy"]):
            with self.subTest(argv=argv):
                with self.assertRaises(options.LauncherUsageError) as ctx:
                    options.parse_args(argv)
                self.assertIn("requires a value", ctx.exception.message)

    def test_value_looking_like_option_is_rejected_in_every_form(self) -> None:
        for argv in (
            ["-W", "-odd", "deploy"],
            ["-W=-odd", "deploy"],
            ["--workdir=-odd", "deploy"],
            ["-e", "--env", "deploy"],
            ["-e=--env", "deploy"],
            ["--kamal-workdir=-x", "deploy"],
        ):
            with self.subTest(argv=argv):
                with self.assertRaises(options.LauncherUsageError) as ctx:
                    options.parse_args(argv)
                self.assertIn("requires a value", ctx.exception.message)

    def test_unknown_option_is_rejected(self) -> None:
        for token in ("-x", "--verbose", "--", "-", "-h=1", "--workdirx=/tmp"):
            with self.subTest(token=token):
                with self.assertRaises(options.LauncherUsageError) as ctx:
                    options.parse_args([token, "deploy"])
                self.assertEqual(ctx.exception.message, f"Invalid option: {token}")

    def test_unknown_command_names_the_token(self) -> None:
        with self.assertRaises(options.LauncherUsageError) as ctx:
            options.parse_args(["-W", "/repo", "frobnicate", "deploy"])
        self.assertEqual(ctx.exception.message, "Unknown command: frobnicate")

    def test_options_without_command_are_rejected(self) -> None:
        with self.assertRaises(options.LauncherUsageError) as ctx:
            options.parse_args(["-W", "/repo", "-e", "TOKEN"])
        self.assertIn("Missing command", ctx.exception.message)

    def test_env_value_assignment_is_rejected(self) -> None:
        with self.assertRaises(options.LauncherUsageError) as ctx:
            options.parse_args(["-e", "TOKEN=secret", "deploy"])
        self.assertIn("TOKEN=secret", ctx.exception.message)

    def test_direct_keyword_forwards_following_arguments_unparsed(self) -> None:
        parsed = options.parse_args(["-W", "/repo", "kamal", "-W", "x", "--help", "app", "logs"])
        self.assertEqual(parsed.workdir, "/repo")
        assert parsed.route is not None
        self.assertIs(parsed.route.kind, options.RouteKind.DIRECT)
        self.assertEqual(parsed.route.args, ("-W", "x", "--help", "app", "logs"))

    def test_direct_keyword_alone_forwards_nothing(self) -> None:
        parsed = options.parse_args(["kamal"])
        assert parsed.route is not None
        self.assertEqual(parsed.route.args, ())

    def test_subcommand_is_forwarded_with_its_arguments(self) -> None:
        parsed = options.parse_args(["-e", "TOKEN", "app", "exec", "--", "-e", "bash"])
        assert parsed.route is not None
        self.assertIs(parsed.route.kind, options.RouteKind.SUBCOMMAND)
        self.assertEqual(parsed.route.token, "app")
        self.assertEqual(parsed.route.args, ("app", "exec", "--", "-e", "bash"))
        self.assertEqual(parsed.env_names, ["TOKEN"])

    def test_every_known_subcommand_routes(self) -> None:
        for name in sorted(options.KAMAL_SUBCOMMANDS):
            with self.subTest(name=name):
                route = options.classify_route([name], 0)
                self.assertIs(route.kind, options.RouteKind.SUBCOMMAND)
                self.assertEqual(route.args, (name,))

    def test_classify_route_reports_unknown_token(self) -> None:
        route = options.classify_route(["deploy", "frobnicate"], 1)
        self.assertIs(route.kind, options.RouteKind.UNKNOWN)
        self.assertEqual(route.token, "frobnicate")
        self.assertEqual(route.args, ())


if __name__ == "__main__":
    unittest.main()
