"""cardwise CLI: scheduling previews, grading, study queues, settings and config."""

import json
import logging
import random
import sys
from pathlib import Path
from typing import Annotated

import typer

from cardwise.interface._common import (
    config_from_context,
    parse_ease,
    parse_now,
    reported_errors,
)

# Re-export (tests import humanize_error from here)
from cardwise.interface._common import humanize_error  # noqa: F401

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="cardwise: spaced-repetition scheduling and study queues.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Register subgroups
# ---------------------------------------------------------------------------

settings_app = typer.Typer(help="Inspect and validate deck settings.", no_args_is_help=True)
app.add_typer(settings_app, name="settings")

config_app = typer.Typer(help="Manage cardwise configuration.")
app.add_typer(config_app, name="config")


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
    tz: Annotated[
        str | None, typer.Option("--tz", help="IANA timezone for naive timestamps and 'now'.")
    ] = None,
):
    """Global settings for cardwise."""
    ctx.ensure_object(dict)
    ctx.obj["verbose_bonus"] = verbose
    ctx.obj["timezone"] = tz

    if verbose >= 2:
        logging.getLogger("cardwise").setLevel(logging.DEBUG)
    elif verbose == 1:
        logging.getLogger("cardwise").setLevel(logging.INFO)


def _apply_log_level(ctx: typer.Context, level: str) -> None:
    # -v on the command line wins over the configured level
    if not ctx.obj.get("verbose_bonus"):
        logging.getLogger("cardwise").setLevel(level)


# ---------------------------------------------------------------------------
# Scheduling commands
# ---------------------------------------------------------------------------


@app.command()
def preview(
    ctx: typer.Context,
    schedule_file: Annotated[
        Path, typer.Argument(help="YAML/JSON schedule. An empty file means a new card.")
    ],
    now: Annotated[str | None, typer.Option(help="Clock reading (ISO-8601).")] = None,
    settings: Annotated[
        Path | None, typer.Option("--settings", "-s", help="Deck settings file.")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show when the card comes back for each response."""
    from cardwise.application.review_service import ReviewService
    from cardwise.infrastructure.loaders import load_raw_settings, load_schedule

    config = config_from_context(ctx)
    _apply_log_level(ctx, config.log_level)

    with reported_errors():
        clock = parse_now(now, config)
        schedule = load_schedule(schedule_file, clock, config.tzinfo())
        raw_settings = load_raw_settings(settings) if settings else None

        service = ReviewService(config.deck_defaults_settings())
        previews = service.preview(schedule, clock, raw_settings)

    if json_output:
        typer.echo(json.dumps({ease.name.lower(): text for ease, text in previews.items()}))
        return

    for ease, text in previews.items():
        typer.echo(f"{ease.name.capitalize():<6} {text}")


@app.command()
def grade(
    ctx: typer.Context,
    schedule_file: Annotated[
        Path, typer.Argument(help="YAML/JSON schedule. An empty file means a new card.")
    ],
    ease: Annotated[str, typer.Argument(help="Response: again, hard, good, easy or 1-4.")],
    now: Annotated[str | None, typer.Option(help="Clock reading (ISO-8601).")] = None,
    settings: Annotated[
        Path | None, typer.Option("--settings", "-s", help="Deck settings file.")
    ] = None,
    learner: Annotated[str | None, typer.Option(help="Learner ID for the log entry.")] = None,
    card: Annotated[str | None, typer.Option(help="Card ID for the log entry.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Apply a response and print the next schedule."""
    from cardwise.application.review_service import ReviewService
    from cardwise.infrastructure.loaders import load_raw_settings, load_schedule

    config = config_from_context(ctx)
    _apply_log_level(ctx, config.log_level)

    with reported_errors():
        response = parse_ease(ease)
        clock = parse_now(now, config)
        schedule = load_schedule(schedule_file, clock, config.tzinfo())
        raw_settings = load_raw_settings(settings) if settings else None

        service = ReviewService(config.deck_defaults_settings())
        result = service.grade(
            schedule, response, clock, raw_settings, learner_id=learner, card_id=card
        )

    leech = None
    if result.leech is not None:
        leech = {
            "lapses": result.leech.lapses,
            "threshold": result.leech.threshold,
            "action": result.leech.action,
        }

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "schedule": result.schedule.to_dict(),
                    "final_state": result.final_state,
                    "leech": leech,
                    "log_entry": result.log_entry.to_dict(),
                },
                indent=2,
            )
        )
        return

    for key, value in result.schedule.to_dict().items():
        typer.echo(f"{key}: {value}")
    if leech is not None:
        typer.secho(
            f"Leech: {leech['lapses']} lapses (threshold {leech['threshold']}), "
            f"action: {leech['action']}",
            fg="yellow",
        )


@app.command("queue")
def queue(
    ctx: typer.Context,
    pool_file: Annotated[Path, typer.Argument(help="YAML/JSON file listing candidate cards.")],
    settings: Annotated[
        Path | None, typer.Option("--settings", "-s", help="Deck settings file.")
    ] = None,
    log: Annotated[
        Path | None, typer.Option(help="Review log used to count today's new cards and reviews.")
    ] = None,
    now: Annotated[str | None, typer.Option(help="Clock reading (ISO-8601).")] = None,
    seed: Annotated[int | None, typer.Option(help="Seed for random orderings.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Build the ordered study queue for a session.

    Cards without a schedule (or in state 'new') form the new pool; other
    cards that are due form the review pool. Suspended cards are skipped.
    """
    from cardwise.application.queue_builder import plan_study_queue
    from cardwise.application.session_planner import (
        count_new_cards_today,
        count_reviews_today,
        partition_candidates,
    )
    from cardwise.infrastructure.loaders import load_pool, load_review_log, load_settings

    config = config_from_context(ctx)
    _apply_log_level(ctx, config.log_level)
    tz = config.tzinfo()

    with reported_errors():
        clock = parse_now(now, config)
        defaults = config.deck_defaults_settings()
        deck_settings = load_settings(settings, defaults) if settings else defaults
        cards = load_pool(pool_file, clock, tz)

        new_today = reviews_today = 0
        if log:
            entries = load_review_log(log, tz)
            new_today = count_new_cards_today(entries, clock, config.day_reset_hour)
            reviews_today = count_reviews_today(entries, clock, config.day_reset_hour)

        due_pool, new_pool = partition_candidates(cards, clock)
        rng = random.Random(seed) if seed is not None else None
        result = plan_study_queue(
            due_pool,
            new_pool,
            deck_settings,
            new_cards_today=new_today,
            reviews_today=reviews_today,
            rng=rng,
        )

    ids = [card.card_id for card in result.queue]

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "queue": ids,
                    "due": result.due_count,
                    "new": result.new_count,
                    "dropped_due": result.dropped_due,
                    "dropped_new": result.dropped_new,
                    "new_cards_today": new_today,
                    "reviews_today": reviews_today,
                },
                indent=2,
            )
        )
        return

    typer.echo(f"Due: {result.due_count} (capped {result.dropped_due})")
    typer.echo(f"New: {result.new_count} (capped {result.dropped_new})")
    if not ids:
        typer.secho("Nothing to study.", fg="yellow")
        return
    for position, card_id in enumerate(ids, start=1):
        typer.echo(f"{position:>3}. {card_id}")


@app.command("day-start")
def day_start(
    ctx: typer.Context,
    now: Annotated[str | None, typer.Option(help="Clock reading (ISO-8601).")] = None,
):
    """Print when the current study day began."""
    from cardwise.application.scheduler import study_day_start

    config = config_from_context(ctx)

    with reported_errors():
        clock = parse_now(now, config)

    typer.echo(study_day_start(clock, config.day_reset_hour).isoformat())


# ---------------------------------------------------------------------------
# Settings subgroup
# ---------------------------------------------------------------------------


@settings_app.command("show")
def settings_show(
    ctx: typer.Context,
    path: Annotated[
        Path | None, typer.Argument(help="Deck settings file. Defaults only if omitted.")
    ] = None,
):
    """Display fully resolved deck settings as JSON."""
    from cardwise.infrastructure.loaders import load_settings

    config = config_from_context(ctx)

    with reported_errors():
        defaults = config.deck_defaults_settings()
        resolved = load_settings(path, defaults) if path else defaults

    typer.echo(json.dumps(resolved.model_dump(mode="json"), indent=2))


@settings_app.command("validate")
def settings_validate(
    ctx: typer.Context,
    path: Annotated[Path, typer.Argument(help="Deck settings file to check.")],
):
    """Check a deck settings file, listing every invalid field."""
    from cardwise.application.settings_resolver import validate_deck_settings
    from cardwise.infrastructure.loaders import load_raw_settings

    config = config_from_context(ctx)

    with reported_errors():
        violations = validate_deck_settings(
            load_raw_settings(path), config.deck_defaults_settings()
        )

    if violations:
        for violation in violations:
            typer.secho(str(violation), fg="red")
        raise typer.Exit(1)

    typer.secho("Settings OK", fg="green")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    from cardwise.application.config import find_config_file

    config = config_from_context(ctx)
    d = config.model_dump()
    config_file = find_config_file()
    d["config_file"] = str(config_file) if config_file else None
    typer.echo(json.dumps(d, indent=2))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
