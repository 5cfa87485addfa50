"""
Ecovoid CLI - Command-line interface for the engine.

Usage:
    ecovoid chapters                List chapters and whether they are unlocked
    ecovoid play [options]          Run a headless, auto-played game
    ecovoid validate <rules.json>   Validate a ruleset or scenario file

Profiles are kept in memory unless ECOVOID_PROFILE_DIR is set.
"""

import argparse
import json
import sys

from .config import configure_logging, load_settings


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Ecovoid - Survival card game engine",
        prog="ecovoid",
    )
    parser.add_argument("--log-level", help="Logging level (overrides ECOVOID_LOG_LEVEL)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Chapters command
    subparsers.add_parser("chapters", help="List chapters")

    # Play command
    play_parser = subparsers.add_parser("play", help="Run an auto-played game")
    play_parser.add_argument("--scenario", help="Free-play scenario id (default, urban)")
    play_parser.add_argument("--chapter", help="Chapter id to play")
    play_parser.add_argument("--seed", type=int, help="Seed for a reproducible run")
    play_parser.add_argument("--turns", type=int, default=50, help="Maximum turns to play")
    play_parser.add_argument("--policy", default="highest", help="Eco policy: highest or random")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a ruleset file")
    validate_parser.add_argument("rules_file", help="Path to a ruleset or scenario JSON file")

    args = parser.parse_args(argv)

    settings = load_settings()
    configure_logging(args.log_level or settings.log_level)

    if args.command == "chapters":
        return cmd_chapters(args, settings)
    elif args.command == "play":
        return cmd_play(args, settings)
    elif args.command == "validate":
        return cmd_validate(args)
    else:
        parser.print_help()
        return 1


def _chapter_manager(settings):
    from .progression import ChapterManager, JsonFileKeyValueStore, ProfileStore

    backend = JsonFileKeyValueStore(settings.profile_dir) if settings.profile_dir else None
    return ChapterManager(profile_store=ProfileStore(backend))


def cmd_chapters(args, settings):
    """List chapters and lock state."""
    chapters = _chapter_manager(settings)
    profile = chapters.profile
    print(f"Total score: {profile.total_score}")
    for chapter in chapters.chapters.values():
        progress = profile.chapters_progress.get(chapter.id)
        if progress and progress.completed:
            state = f"completed (best {progress.best_score})"
        elif chapters.is_chapter_unlocked(chapter.id):
            state = "unlocked"
        else:
            state = "locked"
        print(f"  {chapter.id:<22} {chapter.name:<28} [{chapter.difficulty.value}] {state}")
    return 0


def cmd_play(args, settings):
    """Run a headless game with the autopilot playing the survivor."""
    from .session import GameLoop

    seed = args.seed if args.seed is not None else settings.seed
    loop = GameLoop(chapters=_chapter_manager(settings), seed=seed, policy=args.policy)
    if not loop.start(scenario_id=args.scenario, chapter_id=args.chapter):
        what = f"chapter {args.chapter}" if args.chapter else f"scenario {args.scenario or 'default'}"
        print(f"Error: {what} cannot be played")
        return 1

    summary = loop.auto_play(max_turns=args.turns)

    for message in loop.log.messages:
        print(f"[{message.source.value:>6}] {message.message}")

    state = loop.store.state
    print()
    if summary is None:
        print(f"Stopped after {args.turns} turns (PV {state.pv}, COR {state.sanity}, Eco HP {state.eco_hp})")
    else:
        outcome = "VICTORY" if summary.victory else "DEFEAT"
        print(f"{outcome} on turn {summary.turns} ({summary.end_cause})")
        if summary.chapter_id:
            print(f"Chapter {summary.chapter_id}: {'completed' if summary.chapter_victory else 'failed'}")
            for condition in summary.unmet_conditions:
                print(f"  - unmet: {condition}")
            for reward in summary.rewards:
                print(f"  + reward: {reward.description or reward.key}")
    print(f"Score: {loop.score.total_score} ({loop.score.performance_metrics().rating})")
    return 0


def cmd_validate(args):
    """Validate a ruleset, or the rules of a scenario file."""
    from .rules import Ruleset, RulesetValidationError, validate_ruleset

    try:
        with open(args.rules_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        print(f"Error: File not found: {args.rules_file}")
        return 1
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}")
        return 1

    node_ids = None
    if "rules" in data:
        node_ids = {n["id"] for n in data.get("nodes", []) if "id" in n}
        data = data["rules"]

    try:
        result = validate_ruleset(Ruleset.from_dict(data), node_ids=node_ids)
    except (KeyError, ValueError, TypeError) as e:
        print(f"Error: Malformed rule: {e!r}")
        return 1
    except RulesetValidationError as e:
        print(f"Error: {e}")
        return 1

    print(f"Validating: {args.rules_file}")
    if result.warnings:
        print("\nWarnings:")
        for w in result.warnings:
            print(f"  - {w}")

    if result.errors:
        print("\nErrors:")
        for e in result.errors:
            print(f"  - {e}")
        return 1

    print("Ruleset is valid")
    return 0


if __name__ == "__main__":
    sys.exit(main())
