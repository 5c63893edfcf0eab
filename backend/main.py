"""
main.py
--------
LocalVibe planner pipeline entry point.
Runs one planning pass over an experience listing:
  Stage 1: Fetch result check      (ExperienceFetchResult)
  Stage 2: Filter                  (modules/filtering/filter_engine.py)
  Stage 3: Score & rank            (modules/planning/experience_scoring.py)
  Stage 4: Assemble itinerary      (modules/planning/itinerary_assembler.py)

Run:
  python main.py --city Austin --budget 25 --interest Hiking
  python main.py --city "San Francisco" --time evening --strategy trending

The CLI always uses the demo catalog unless USE_STUB_EXPERIENCES=false.
"""

from __future__ import annotations
import argparse
import logging
import sys
import uuid
from typing import Optional

from schemas.experience import ExperienceFetchResult, TimeOfDay, UserPreferences
from schemas.itinerary import GeneratedItinerary, PlanningResult
from modules.filtering import FilterCriteria, active_filters, filter_experiences
from modules.planning.experience_scoring import ScoringContext, ScoringStrategy, get_strategy, rank
from modules.planning.itinerary_assembler import ItineraryPolicy, assemble_itinerary
from modules.tool_usage.experience_tool import ExperienceFetchError, ExperienceTool
from modules.tool_usage.time_tool import Clock, SystemClock
from modules.observability.logger import StructuredLogger
import config

logger = logging.getLogger(__name__)


def run_pipeline(
    preferences: UserPreferences,
    fetch_result: ExperienceFetchResult,
    clock: Optional[Clock] = None,
    strategy: "ScoringStrategy | str | None" = None,
    time_range: str = "now",
    policy: Optional[ItineraryPolicy] = None,
    session_id: Optional[str] = None,
    structured_logger: Optional[StructuredLogger] = None,
) -> PlanningResult:
    """
    One pass of Normalizer output → filter → rank → assemble.

    Pure apart from logging: the same preferences, listing and clock always
    produce the same items, order, cost and duration.

    Raises:
        ExperienceFetchError  when fetch_result is a failure (an empty but
                              successful listing is not an error).
        UnknownMoodError      when preferences name an unknown mood preset.
        UnknownStrategyError  when *strategy* names an unknown scorer.
    """
    clock = clock or SystemClock()
    if not isinstance(strategy, ScoringStrategy):
        strategy = get_strategy(strategy)
    session_id = session_id or f"plan_{uuid.uuid4().hex[:12]}"

    def _event(event_type: str, payload: dict) -> None:
        if structured_logger is not None:
            structured_logger.log(session_id, event_type, payload)

    _event("pipeline_start", {
        "city": preferences.city,
        "strategy": strategy.NAME,
        "time_range": time_range,
        "source": fetch_result.source,
    })

    # ── Stage 1: fetch result ─────────────────────────────────────────────
    if not fetch_result.ok:
        _event("fetch_failed", {"error": fetch_result.error, "source": fetch_result.source})
        logger.error("[Pipeline] experience fetch failed: %s", fetch_result.error)
        raise ExperienceFetchError(fetch_result.error or "ERROR_FETCH_FAILED")

    # ── Stage 2: filter ───────────────────────────────────────────────────
    criteria = FilterCriteria.from_preferences(preferences)
    active = active_filters(criteria)
    matched = filter_experiences(fetch_result.experiences, criteria)
    _event("filtered", {
        "candidates": len(fetch_result.experiences),
        "matched": len(matched),
        "active_filters": active,
    })
    logger.info(
        "[Pipeline] %d/%d experiences match (%s)",
        len(matched), len(fetch_result.experiences), ", ".join(active) or "no filters",
    )

    # ── Stage 3: score & rank ─────────────────────────────────────────────
    context = ScoringContext(now=clock.now(), preferences=preferences, time_range=time_range)
    ranked = rank(matched, strategy, context)
    _event("ranked", {
        "strategy": strategy.NAME,
        "top": [{"id": s.experience.id, "score": round(s.score, 2)} for s in ranked[:5]],
    })

    # ── Stage 4: assemble ─────────────────────────────────────────────────
    itinerary = assemble_itinerary(ranked, preferences, clock=clock, policy=policy)
    _event("itinerary_built", {
        "itinerary_id": itinerary.id,
        "items": len(itinerary.items),
        "total_cost": itinerary.total_cost,
        "total_duration_hours": itinerary.total_duration_hours,
    })

    return PlanningResult(
        itinerary=itinerary,
        ranked=tuple(ranked),
        candidates=len(fetch_result.experiences),
        matched=len(matched),
        active_filters=tuple(active),
        strategy=strategy.NAME,
    )


# ═══════════════════════════════════════════════════════════════════════════
# FORMATTED ITINERARY PRINTER
# ═══════════════════════════════════════════════════════════════════════════

def _print_itinerary(itinerary: GeneratedItinerary) -> None:
    """Print a human-readable schedule with the synthetic slots."""
    width = 60
    print()
    print("═" * width)
    print(f"  {itinerary.title.upper()}  ({len(itinerary.items)} stop(s))")
    print(f"  {itinerary.description}")
    print("═" * width)

    if not itinerary.items:
        print("    (no experiences matched)")

    for it in itinerary.items:
        time_block = f"{it.start_time.strftime('%H:%M')} – {it.end_time.strftime('%H:%M')}"
        name_col = it.title[:30].ljust(30)
        price = "free" if it.cost == 0 else f"${it.cost:,.2f}"
        print(f"    {time_block}   {name_col}  {price}")
        print(f"                    {it.reason}")

    print()
    print("  Insights")
    for line in itinerary.insights:
        print(f"    • {line}")
    print("  Tips")
    for line in itinerary.recommendations:
        print(f"    • {line}")
    print("═" * width)
    print(f"  Total cost     : ${itinerary.total_cost:,.2f}")
    print(f"  Total duration : {itinerary.total_duration_hours:g} h")
    print("═" * width)
    print()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate a LocalVibe itinerary from the demo catalog.")
    parser.add_argument("--city", required=True)
    parser.add_argument("--type", dest="types", action="append", default=[],
                        help='experience type label, e.g. "Food & Drinks" (repeatable)')
    parser.add_argument("--interest", dest="interests", action="append", default=[])
    parser.add_argument("--time", dest="times", action="append", default=[],
                        choices=[t.value for t in TimeOfDay])
    parser.add_argument("--budget", type=float)
    parser.add_argument("--group-size", type=int)
    parser.add_argument("--mood")
    parser.add_argument("--search", default="")
    parser.add_argument("--strategy", default=None, help="preference | intensity | trending")
    parser.add_argument("--time-range", default="now", choices=["now", "evening", "weekend"])
    parser.add_argument("--log-session", action="store_true",
                        help=f"write the planning events to {config.LOGS_DIR}/<session>.jsonl")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    prefs = UserPreferences(
        city=args.city,
        experience_types=tuple(args.types),
        interests=tuple(args.interests),
        time_of_day=tuple(args.times),
        budget=args.budget,
        group_size=args.group_size,
        mood=args.mood,
        search=args.search,
    )
    clock = SystemClock()
    structured = StructuredLogger() if args.log_session else None

    try:
        fetch = ExperienceTool(clock=clock).fetch(city=prefs.city)
        result = run_pipeline(
            prefs, fetch, clock=clock, strategy=args.strategy,
            time_range=args.time_range, structured_logger=structured,
        )
    except (ExperienceFetchError, ValueError) as exc:
        print(f"  [Error] {exc}", file=sys.stderr)
        return 1
    finally:
        if structured is not None:
            structured.close()

    print(f"  [Pipeline] {result.matched}/{result.candidates} experiences matched "
          f"· strategy={result.strategy}")
    _print_itinerary(result.itinerary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
