"""Unified Testing CLI for Ping Pong Club.

This module provides an interactive command-line interface for generating,
validating and benchmarking simulated club tournaments.
"""

# Ping Pong Club
# Copyright (C) 2025  Ping Pong Club developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.


import argparse
import subprocess
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import NestedCompleter, WordCompleter
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.styles import Style

from pingpongclub.app import ClubApplication
from pingpongclub.exceptions import PingPongClubException
from pingpongclub.models.enums import MatchStatus, MatchType, TournamentFormat
from pingpongclub.testing.rcg import (
    RandomClubGenerator,
    RCGConfig,
    SkillDistribution,
    print_standings,
)
from pingpongclub.utils import setup_logger

logger = setup_logger(__name__)


# ANSI color codes for terminal output
class Colors:
    HEADER = "\033[95m"
    OKBLUE = "\033[94m"
    OKCYAN = "\033[96m"
    OKGREEN = "\033[92m"
    WARNING = "\033[93m"
    FAIL = "\033[91m"
    ENDC = "\033[0m"
    BOLD = "\033[1m"


MATCH_TYPES = [t.value for t in MatchType]
FORMATS = [f.value for f in TournamentFormat]
DISTRIBUTIONS = [d.value for d in SkillDistribution]
UNIT_MODULES = ["match", "pairing", "standings", "controllers", "storage", "all"]

# Command definitions with their options
COMMANDS = {
    "generate": {
        "description": "Generate and play a random club tournament (RCG)",
        "options": {
            "--players": "Number of players (default: 8)",
            "--type": "Discipline (singles/doubles/teams)",
            "--format": "Tournament format (round-robin/single-elimination/swiss)",
            "--distribution": "Skill distribution (uniform/normal/club)",
            "--seed": "Random seed for reproducibility",
            "--output": "Write the club as an export bundle (JSON)",
        },
    },
    "validate": {
        "description": "Import an export bundle and check its matches against the rules",
        "options": {
            "--file": "Export bundle to validate (JSON)",
            "--detailed": "Show every rule violation",
        },
    },
    "unit": {
        "description": "Run unit tests (pytest)",
        "options": {
            "--module": "Specific module to test (match/pairing/standings/controllers/storage/all)",
            "--verbose": "Verbose output",
        },
    },
    "benchmark": {
        "description": "Time repeated generated tournaments",
        "options": {
            "--size": "Players per tournament (default: 16)",
            "--format": "Tournament format",
            "--iterations": "Number of iterations (default: 10)",
        },
    },
    "help": {
        "description": "Show the options of a command",
        "options": {
            "<command>": "Command to describe",
        },
    },
    "exit": {"description": "Leave the console", "options": {}},
}


def print_banner():
    """Print the console banner."""
    banner = f"""
{Colors.OKBLUE}{Colors.BOLD}  Ping Pong Club :: testing console{Colors.ENDC}
{Colors.OKBLUE}  {'-' * 34}{Colors.ENDC}

  {Colors.BOLD}/help{Colors.ENDC} lists the commands, {Colors.BOLD}exit{Colors.ENDC} leaves
"""
    print(banner)


def print_commands_list():
    """List every command with its description."""
    print(f"\n{Colors.BOLD}Available Commands:{Colors.ENDC}\n")
    for cmd, info in COMMANDS.items():
        print(f"  {Colors.OKGREEN}{cmd:15}{Colors.ENDC} - {info['description']}")
    print()


def print_command_help(command: str):
    """Print the options of one command."""
    if command not in COMMANDS:
        print(f"{Colors.FAIL}Unknown command: {command}{Colors.ENDC}")
        print_commands_list()
        return

    cmd_info = COMMANDS[command]
    print(f"\n{Colors.BOLD}{Colors.OKBLUE}Command: {command}{Colors.ENDC}")
    print(f"{Colors.BOLD}Description:{Colors.ENDC} {cmd_info['description']}\n")

    if cmd_info["options"]:
        print(f"{Colors.BOLD}Options:{Colors.ENDC}")
        for option, description in cmd_info["options"].items():
            print(f"  {Colors.OKCYAN}{option:20}{Colors.ENDC} {description}")
    print()


def create_completer() -> NestedCompleter:
    """Create autocomplete completer for interactive mode.

    Every command completes both as ``command`` and ``/command``.
    """
    completions = {}
    for cmd, info in COMMANDS.items():
        options_completer = (
            WordCompleter(list(info["options"].keys())) if info["options"] else None
        )
        completions[cmd] = options_completer
        completions[f"/{cmd}"] = options_completer

    completions["/help"] = WordCompleter(list(COMMANDS))
    completions["/list"] = None

    return NestedCompleter.from_nested_dict(completions)


# ========== Commands ==========


def run_generate_command(args: argparse.Namespace) -> int:
    """Run the generate (RCG) command."""
    print(f"\n{Colors.BOLD}Generating club tournament...{Colors.ENDC}")

    config = RCGConfig(
        num_players=args.players,
        match_type=MatchType(args.type),
        tournament_format=TournamentFormat(args.format),
        skill_distribution=SkillDistribution(args.distribution),
        seed=args.seed,
    )
    result = RandomClubGenerator(config).generate_complete_tournament()
    app = result["app"]

    if args.output:
        output_path = Path(args.output)
        app.export_bundle(path=output_path)
        print(f"{Colors.OKGREEN}Club saved to: {output_path}{Colors.ENDC}")

    print(f"\n{Colors.BOLD}Tournament Generated:{Colors.ENDC}")
    print(f"  Players: {len(app.players)}")
    print(f"  Participants: {len(result['tournament'].participants)}")
    print(f"  Matches: {len(result['matches'])}\n")
    print_standings(app, result["tournament"])
    return 0


def run_validate_command(args: argparse.Namespace) -> int:
    """Import a bundle into an empty club and check every completed match."""
    file_path = Path(args.file)
    if not file_path.exists():
        print(f"{Colors.FAIL}Error: File not found: {file_path}{Colors.ENDC}")
        return 1

    print(f"\n{Colors.BOLD}Validating club export: {file_path}{Colors.ENDC}")
    app = ClubApplication()
    try:
        report = app.import_bundle(file_path)
    except PingPongClubException as e:
        print(f"{Colors.FAIL}Error: {e}{Colors.ENDC}")
        return 1

    print(f"\n{Colors.BOLD}Import:{Colors.ENDC}")
    for key, count in report.imported.items():
        print(f"  {key:12} {count}")
    for key, error in report.errors.items():
        print(f"  {Colors.FAIL}{key:12} skipped: {error}{Colors.ENDC}")

    completed = app.matches.by_status(MatchStatus.COMPLETED)
    failing = []
    for match in completed:
        violations = app.rules.validate(match).violations
        if violations:
            failing.append((match, violations))

    compliance = 100.0 if not completed else (len(completed) - len(failing)) / len(completed) * 100
    print(f"\n{Colors.BOLD}Validation Results:{Colors.ENDC}")
    print(f"  Completed matches: {len(completed)}")
    print(f"  Compliance: {compliance:.1f}%")

    if args.detailed:
        for match, violations in failing:
            for violation in violations:
                print(f"  - {match.id}: {violation}")

    return 0 if report.ok and not failing else 1


def run_unit_command(args: argparse.Namespace) -> int:
    """Run the pytest suite, or one module of it."""
    print(f"\n{Colors.BOLD}Running unit tests...{Colors.ENDC}")

    pytest_args = ["pytest"]
    if args.module and args.module != "all":
        pytest_args.append(f"tests/test_{args.module}.py")
    else:
        pytest_args.append("tests/")

    if args.verbose:
        pytest_args.append("-v")

    result = subprocess.run(pytest_args)
    return result.returncode


def run_benchmark_command(args: argparse.Namespace) -> int:
    """Time repeated generated tournaments."""
    print(f"\n{Colors.BOLD}Running performance benchmark...{Colors.ENDC}")
    print(f"Tournament size: {args.size} players, format {args.format}")
    print(f"Iterations: {args.iterations}\n")

    times: List[float] = []
    for i in range(args.iterations):
        config = RCGConfig(
            num_players=args.size,
            tournament_format=TournamentFormat(args.format),
            seed=42 + i,
        )
        generator = RandomClubGenerator(config)
        start = time.perf_counter()
        generator.generate_complete_tournament()
        elapsed = time.perf_counter() - start
        times.append(elapsed)

        print(f"  Iteration {i+1}/{args.iterations}: {elapsed*1000:.2f}ms")

    print(f"\n{Colors.BOLD}Results:{Colors.ENDC}")
    print(f"  Average: {sum(times) / len(times) * 1000:.2f}ms")
    print(f"  Min: {min(times) * 1000:.2f}ms")
    print(f"  Max: {max(times) * 1000:.2f}ms")
    return 0


# ========== Parsers ==========


def add_generate_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    parser.add_argument("--players", type=int, default=8, help="Number of players")
    parser.add_argument("--type", choices=MATCH_TYPES, default="singles", help="Discipline")
    parser.add_argument("--format", choices=FORMATS, default="round-robin", help="Tournament format")
    parser.add_argument(
        "--distribution", choices=DISTRIBUTIONS, default="normal", help="Skill distribution"
    )
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument("--output", help="Export bundle path")
    return parser


def add_validate_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    parser.add_argument("--file", required=True, help="Export bundle (JSON)")
    parser.add_argument("--detailed", action="store_true", help="Show detailed violations")
    return parser


def add_unit_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    parser.add_argument("--module", choices=UNIT_MODULES, help="Specific module")
    parser.add_argument("--verbose", action="store_true", help="Verbose output")
    return parser


def add_benchmark_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    parser.add_argument("--size", type=int, default=16, help="Tournament size")
    parser.add_argument("--format", choices=FORMATS, default="round-robin", help="Tournament format")
    parser.add_argument("--iterations", type=int, default=10, help="Number of iterations")
    return parser


COMMAND_HANDLERS = {
    "generate": (add_generate_arguments, run_generate_command),
    "validate": (add_validate_arguments, run_validate_command),
    "unit": (add_unit_arguments, run_unit_command),
    "benchmark": (add_benchmark_arguments, run_benchmark_command),
}


def create_command_parser(command: str) -> argparse.ArgumentParser:
    """Create the parser used for ``command`` in interactive mode."""
    add_arguments, _ = COMMAND_HANDLERS[command]
    return add_arguments(
        argparse.ArgumentParser(prog=command, description=COMMANDS[command]["description"])
    )


def create_main_parser() -> argparse.ArgumentParser:
    """Build the parser for non-interactive use."""
    parser = argparse.ArgumentParser(
        prog="pingpongclub-test",
        description="Unified testing CLI for Ping Pong Club",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive mode
  pingpongclub-test

  # Play a doubles knockout and export it
  pingpongclub-test generate --players 16 --type doubles --format single-elimination --output club.json

  # Check an export against the rules
  pingpongclub-test validate --file club.json --detailed

  # Benchmark performance
  pingpongclub-test benchmark --size 32 --iterations 20
        """,
    )
    parser.add_argument(
        "--interactive", "-i", action="store_true", help="Start in interactive mode"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    for command, (add_arguments, handler) in COMMAND_HANDLERS.items():
        sub = subparsers.add_parser(command, help=COMMANDS[command]["description"])
        add_arguments(sub)
        sub.set_defaults(func=handler)
    return parser


# ========== Modes ==========


def execute_line(user_input: str) -> bool:
    """Run one interactive command line.

    Returns:
        False when the user asked to leave
    """
    if user_input in ["exit", "quit", "q", "/exit"]:
        print(f"\n{Colors.OKGREEN}Goodbye!{Colors.ENDC}\n")
        return False

    if user_input in ["/help", "help", "?", "/list"]:
        print_commands_list()
        return True

    parts = user_input.split()
    command = parts[0].lstrip("/")
    args_list = parts[1:]

    if command == "help":
        print_command_help(args_list[0].lstrip("/"))
        return True

    if command not in COMMAND_HANDLERS:
        print(f"{Colors.FAIL}Unknown command: {command}{Colors.ENDC}")
        print(f"Type {Colors.BOLD}/help{Colors.ENDC} to see available commands")
        return True

    try:
        args = create_command_parser(command).parse_args(args_list)
        COMMAND_HANDLERS[command][1](args)
    except SystemExit:
        # argparse exits on bad arguments
        pass
    except PingPongClubException as e:
        print(f"{Colors.FAIL}Error: {e}{Colors.ENDC}")
        logger.exception("Command execution failed")
    return True


def run_interactive_mode() -> int:
    """Read commands from a prompt until the user leaves."""
    print_banner()

    style = Style.from_dict(
        {
            "prompt": "#00aa00 bold",
        }
    )
    session = PromptSession(
        completer=create_completer(),
        history=InMemoryHistory(),
        style=style,
    )

    while True:
        try:
            user_input = session.prompt("pingpong-test> ").strip()
            if not user_input:
                continue
            if not execute_line(user_input):
                break
        except KeyboardInterrupt:
            print(f"\n{Colors.WARNING}Use 'exit' or 'quit' to leave{Colors.ENDC}")
        except EOFError:
            print(f"\n{Colors.OKGREEN}Goodbye!{Colors.ENDC}\n")
            break
    return 0


def run_standard_mode(argv: Optional[Sequence[str]] = None) -> int:
    """Parse ``argv`` as one subcommand and run it."""
    parser = create_main_parser()
    args = parser.parse_args(argv)

    if args.interactive:
        return run_interactive_mode()

    if hasattr(args, "func"):
        return args.func(args)
    parser.print_help()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the pingpongclub-test CLI."""
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv:
        return run_interactive_mode()
    return run_standard_mode(argv)


if __name__ == "__main__":
    sys.exit(main())
