# main.py

"""Entry point for running a headless time warp over a scripted scenario."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass

from Time_Warp.clock import format_time, parse_time
from Time_Warp.config import Config, load_config
from Time_Warp.engine.baseline import load_baseline
from Time_Warp.engine.scripted import ScriptedEngine, load_scenario
from Time_Warp.jump import JumpToTime
from Time_Warp.warp import TimeWarpScreen, WarpState

EXIT_USAGE = 1

EXIT_CODES = {
    WarpState.COMPLETED: 0,
    WarpState.CANCELLED: 0,
    WarpState.HALTED: 2,
    WarpState.COMPLETED_WITH_ALERT: 3,
}


def _configure_logging() -> None:
    """Configure application logging and capture uncaught exceptions."""

    level = logging.DEBUG if Config.log_verbosity == "debug" else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    def _log_excepthook(exc_type, exc, tb) -> None:
        logging.getLogger(__name__).exception(
            "Uncaught exception", exc_info=(exc_type, exc, tb)
        )

    sys.excepthook = _log_excepthook


@dataclass
class MainService:
    """Handle CLI parsing and run one warp to completion."""

    argv: list[str] | None = None

    def run(self) -> int:
        args = self._parse_args()
        if args.config:
            load_config(args.config)
        _configure_logging()
        if args.wall_budget is not None:
            Config.wall_budget = args.wall_budget

        engine = ScriptedEngine(load_scenario(args.scenario or Config.scenario_file))
        baseline_path = args.baseline or Config.baseline_file
        baseline = load_baseline(baseline_path) if baseline_path else None

        dialog = JumpToTime(engine)
        if args.halt_delay is not None:
            try:
                dialog.choose_delay(args.halt_delay)
            except ValueError as exc:
                print(f"error: {exc}", file=sys.stderr)
                return EXIT_USAGE
            screen = dialog.jump_to_delay(baseline=baseline)
        else:
            dialog.target = (
                parse_time(args.target) if args.target else engine.end_of_day()
            )
            screen = dialog.jump_to_time(baseline=baseline)
        return self._drive(screen, args.print_every)

    def _parse_args(self) -> argparse.Namespace:
        parser = argparse.ArgumentParser(description="Run a time warp")
        parser.add_argument("--config", help="JSON or YAML config file")
        parser.add_argument("--scenario", help="Scenario YAML/JSON file")
        parser.add_argument("--baseline", help="Baseline finished-trip trace")
        parser.add_argument(
            "--target", help="Target time as HH:MM[:SS] or seconds (default: end of day)"
        )
        parser.add_argument(
            "--halt-delay",
            type=float,
            help="Warp to end of day, halting on a delay of this many seconds "
            "(one of Config.halt_limit_choices)",
        )
        parser.add_argument(
            "--wall-budget", type=float, help="Real seconds per advance"
        )
        parser.add_argument(
            "--print-every", type=int, default=30, help="Ticks between status prints"
        )
        return parser.parse_args(self.argv)

    def _drive(self, screen: TimeWarpScreen, print_every: int) -> int:
        ticks = 0
        try:
            while screen.tick() is WarpState.RUNNING:
                ticks += 1
                if print_every > 0 and ticks % print_every == 0:
                    print(" | ".join(screen.status.lines()[1:]))
        except KeyboardInterrupt:
            screen.cancel()

        state = screen.state
        if state is WarpState.COMPLETED_WITH_ALERT and screen.alert is not None:
            print(f"Alert: {screen.alert.describe()}")
        elif state is WarpState.HALTED and screen.halt is not None:
            print(f"Halted: {screen.halt.describe()}")
        else:
            print("\n".join(screen.status.lines()))
        print(f"{state.value} at {format_time(screen.now)}")
        return EXIT_CODES[state]


def main(argv: list[str] | None = None) -> int:
    """Run the CLI with the provided arguments."""

    return MainService(argv=argv).run()


if __name__ == "__main__":
    sys.exit(main())
