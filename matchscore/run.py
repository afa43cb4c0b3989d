"""
Command-line runner for batch match scoring.

Scores one user against a set of candidates from a profiles file and
prints the ranked matches.

Usage:
    python -m matchscore.run --config configs/config.yaml \\
        --profiles profiles.json --user u1 [--candidates u2 u3 ...] \\
        [--event-attendees u2 u5 ...] [--limit 10] [--min-score 40] \\
        [--output matches.json] [--report report.json]

Candidate selection:
- --candidates: score against exactly these profile ids
- --event-attendees: score against an event's attendees
- neither: score against every other profile in the file
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def setup_logging(log_level: str) -> None:
    """Configure logging level from config."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.getLogger().setLevel(level)


def run_matching(
    config_path: str,
    profiles_path: str,
    user_id: str,
    candidate_ids: Optional[List[str]] = None,
    attendee_ids: Optional[List[str]] = None,
    limit: Optional[int] = None,
    min_score: Optional[float] = None,
    output_path: Optional[str] = None,
    report_path: Optional[str] = None
) -> Dict[str, Any]:
    """
    Score a user against candidates and rank the results.

    Args:
        config_path: Path to the configuration YAML file
        profiles_path: CSV or JSON file of profiles
        user_id: Profile to find matches for
        candidate_ids: Explicit candidate ids (overrides attendee_ids)
        attendee_ids: Event attendee ids
        limit: Maximum number of matches (overrides config)
        min_score: Minimum total (overrides config)
        output_path: If provided, write the matches as JSON here
        report_path: If provided, write an evaluation report as JSON here

    Returns:
        Dictionary with the batch result and an explanation per match
    """
    from .configs import load_config, validate_config
    from .data_loading import (
        ProfileStore,
        all_other_profiles,
        event_attendees,
        explicit_candidates,
        load_profiles,
    )
    from .engine import BatchOptions, create_engine_from_config
    from .evaluation import create_evaluation_report
    from .scoring.explanations import explain_match

    config = load_config(config_path)
    issues = validate_config(config)
    if issues:
        for issue in issues:
            logger.warning(f"Config issue: {issue}")

    setup_logging(config.get("global", {}).get("log_level", "INFO"))

    # Relative paths in the config resolve against the project root
    base_dir = Path(config_path).resolve().parent.parent
    engine = create_engine_from_config(config, base_dir=str(base_dir))

    store = ProfileStore(load_profiles(profiles_path))
    user = store.get(user_id)

    if candidate_ids:
        candidates = explicit_candidates(store, candidate_ids)
        selection = "explicit"
    elif attendee_ids:
        candidates = event_attendees(store, attendee_ids, user.id)
        selection = "event"
    else:
        candidates = all_other_profiles(store, user.id)
        selection = "all"
    logger.info(f"Selected {len(candidates)} candidates ({selection}) for {user.id}")

    options = BatchOptions.from_config(config)
    if limit is not None:
        options.limit = limit
    if min_score is not None:
        options.min_score = min_score

    result = engine.rank_candidates(user, candidates, options)

    explanations = {
        m.candidate_id: explain_match(m, user, store.get(m.candidate_id))
        for m in result.matches
    }

    output = result.to_dict()
    output["user_id"] = user.id
    output["selection"] = selection
    for match in output["matches"]:
        match["explanation"] = explanations[match["candidate_id"]]

    if output_path:
        with open(output_path, "w") as f:
            json.dump(output, f, indent=2)
        logger.info(f"Saved {len(result.matches)} matches to {output_path}")

    if report_path and result.matches:
        report = create_evaluation_report(f"matches for {user.id}", result.matches)
        report.save(report_path)
        logger.info("\n" + report.summary())

    return output


def _print_matches(output: Dict[str, Any]) -> None:
    print(f"Matches for {output['user_id']} ({output['scored']} scored, "
          f"{output['cache_hits']} cached, {len(output['skipped'])} skipped):")
    for rank, match in enumerate(output["matches"], start=1):
        print(f"{rank:3d}. {match['candidate_id']:<20} {match['total']:6.2f}  {match['explanation']}")


def main():
    """Main entry point for batch matching."""
    parser = argparse.ArgumentParser(
        description="Score and rank match candidates for one user"
    )
    parser.add_argument(
        "--config",
        type=str,
        default="configs/config.yaml",
        help="Path to configuration file"
    )
    parser.add_argument(
        "--profiles",
        type=str,
        required=True,
        help="CSV or JSON file of profiles"
    )
    parser.add_argument(
        "--user",
        type=str,
        required=True,
        help="Profile id to find matches for"
    )
    parser.add_argument(
        "--candidates",
        type=str,
        nargs="+",
        default=None,
        help="Explicit candidate profile ids"
    )
    parser.add_argument(
        "--event-attendees",
        type=str,
        nargs="+",
        default=None,
        help="Event attendee profile ids"
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of matches (overrides config)"
    )
    parser.add_argument(
        "--min-score",
        type=float,
        default=None,
        help="Minimum match total (overrides config)"
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write matches as JSON to this file"
    )
    parser.add_argument(
        "--report",
        type=str,
        default=None,
        help="Write an evaluation report as JSON to this file"
    )

    args = parser.parse_args()

    try:
        output = run_matching(
            args.config,
            args.profiles,
            args.user,
            candidate_ids=args.candidates,
            attendee_ids=args.event_attendees,
            limit=args.limit,
            min_score=args.min_score,
            output_path=args.output,
            report_path=args.report,
        )
    except KeyError as e:
        logger.error(f"Matching failed: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Matching failed with error: {e}")
        return 1

    _print_matches(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
