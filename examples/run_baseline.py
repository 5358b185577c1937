#!/usr/bin/env python3
"""Run a baseline Frontier exploration session and print results."""

from frontier.experiment.presets import baseline
from frontier.experiment.runner import ExperimentRunner


def main():
    config = baseline()

    print(f"=== Frontier: {config.experiment_name} ===")
    print(f"Seed: {config.random_seed}")
    print(f"Session ticks: {config.session_ticks}")
    print(f"Starting Exploration level: {config.starting_exploration_level}")
    print()

    result = ExperimentRunner().run_experiment(config)

    print(f"{'#':>4} {'Action':>8} {'Tick':>5} {'Cost':>5} {'Rolls':>5} "
          f"{'Result':>24} {'Luck':>5} {'Lvl':>4}")
    print("-" * 70)

    tick_after = 0
    for i, outcome in enumerate(result.outcomes):
        tick_after = outcome.tick_before + outcome.ticks_consumed
        if outcome.success:
            found = outcome.discovered_ids or [outcome.destination_area_id]
            status = found[0]
        else:
            status = outcome.failure_code.value
        luck = f"{outcome.luck.luck_delta:+d}" if outcome.luck else ""
        levels = f"+{len(outcome.level_ups)}" if outcome.level_ups else ""
        print(
            f"{i:4d} {outcome.action_type.value:>8} {tick_after:5d} "
            f"{outcome.ticks_consumed:5d} {len(outcome.rolls):5d} "
            f"{status:>24} {luck:>5} {levels:>4}"
        )

    summary = result.summary
    print()
    print(f"=== Final State (tick {result.ticks_used}, stopped: {result.stop_reason}) ===")
    print(f"Known areas: {result.known_areas}")
    print(f"Known locations: {result.known_locations}")
    print(f"Known connections: {result.known_connections}")
    print(f"Furthest distance: {result.max_distance}")
    print(f"Exploration level: {result.final_level}")
    print(f"Total luck: {result.total_luck_delta:+d}")

    print(f"\nTicks by action:")
    for action, ticks in sorted(summary["ticks_by_action"].items()):
        pct = ticks / result.ticks_used * 100 if result.ticks_used else 0.0
        print(f"  {action:10s}: {ticks:5d} ({pct:5.1f}%)")

    if summary["failures_by_code"]:
        print(f"\nFailures:")
        for code, count in sorted(summary["failures_by_code"].items()):
            print(f"  {code}: {count}")


if __name__ == "__main__":
    main()
