#!/usr/bin/env python3
"""Walk a survey decision tree in the terminal.

Loads a survey from a YAML file, from the bundled ``surveys/`` catalog, or
from a running portal / preview server, then drives a
:class:`~appgram_surveys.navigator.SurveyNavigator` through it and prints
every question, the answer given, and the final submission payload.

Answers are typed in interactively by default.  ``--random`` picks them at
random instead, so repeated runs explore different branches.  Without
``--base-url`` the response is never sent anywhere: a dry-run submitter
echoes it back.

Usage::

    # Interactive walk through a bundled survey ("<" goes back)
    python scripts/walk_survey.py product-feedback

    # Random walk through a YAML file, reproducible
    python scripts/walk_survey.py surveys/nps.yaml --random --seed 7

    # Fetch from a server and submit the response to it
    python scripts/walk_survey.py product-feedback --base-url http://localhost:8090 --random

    # List bundled surveys
    python scripts/walk_survey.py --list
"""

from __future__ import annotations

import argparse
import asyncio
import json
import random
import sys
import time
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from appgram_surveys import (
    AppgramClient,
    AppgramError,
    FingerprintProvider,
    ResponseSubmitter,
    SubmissionPayload,
    SurveyCatalog,
    SurveyDefinition,
    SurveyNavigator,
    SurveyNode,
    SurveyResponse,
    fingerprint_provider,
    load_survey_file,
)
from appgram_surveys.config import configure_logging, load_settings

# Sentinel typed at any prompt to go back one question
BACK = "<"

_RANDOM_TEXT_POOL = [
    "Works well for our team",
    "The export takes too long",
    "Not sure yet",
    "More integrations, please",
    "",
]


# ---------------------------------------------------------------------------
# Dry-run submitter
# ---------------------------------------------------------------------------

class DryRunSubmitter(ResponseSubmitter):
    """Echoes the payload back as a response without sending it anywhere."""

    async def submit_response(
        self, survey_id: str, payload: SubmissionPayload
    ) -> SurveyResponse:
        return SurveyResponse(
            id=f"dry-run-{uuid.uuid4().hex[:8]}",
            survey_id=survey_id,
            fingerprint=payload.fingerprint,
            external_user_id=payload.external_user_id,
            metadata=payload.metadata or {},
        )


# ---------------------------------------------------------------------------
# Answer sources
# ---------------------------------------------------------------------------

class RandomAnswers:
    """Picks a plausible random answer for each question type."""

    def __init__(self, rng: random.Random, skip_optional: float = 0.2):
        self.rng = rng
        self.skip_optional = skip_optional

    def __call__(self, node: SurveyNode) -> Any:
        if not node.is_required and self.rng.random() < self.skip_optional:
            return None

        qtype = node.question_type
        values = node.option_values
        if qtype == "yes_no":
            return self.rng.choice([True, False])
        if qtype == "multiple_choice":
            return self.rng.choice(values) if values else None
        if qtype == "checkboxes":
            if not values:
                return None
            k = self.rng.randint(1, len(values))
            return self.rng.sample(values, k)
        if qtype == "rating":
            lo, hi = node.rating_bounds
            return self.rng.randint(lo, hi)
        text = self.rng.choice(_RANDOM_TEXT_POOL)
        if node.is_required and not text:
            text = "n/a"
        return text or None


class PromptAnswers:
    """Asks the user on the console.  Returns ``BACK`` to go back."""

    def __init__(self, console: Console):
        self.console = console

    def __call__(self, node: SurveyNode) -> Any:
        qtype = node.question_type
        suffix = "" if node.is_required else " [dim](optional, Enter to skip)[/]"
        self.console.print(f"\n[bold]{node.question}[/]{suffix}")

        if qtype == "yes_no":
            raw = Prompt.ask("  yes/no", choices=["y", "n", BACK], console=self.console)
            return raw if raw == BACK else raw == "y"

        if qtype in ("multiple_choice", "checkboxes"):
            for i, opt in enumerate(node.options, 1):
                self.console.print(f"  {i}. {opt.label}")
            hint = "number" if qtype == "multiple_choice" else "numbers, comma-separated"
            raw = Prompt.ask(f"  {hint}", default="", console=self.console).strip()
            if raw == BACK or not raw:
                return raw or None
            picked = []
            for part in raw.split(","):
                idx = int(part.strip()) - 1
                if 0 <= idx < len(node.options):
                    picked.append(node.options[idx].value)
            return picked[0] if qtype == "multiple_choice" and picked else picked

        if qtype == "rating":
            lo, hi = node.rating_bounds
            raw = Prompt.ask(f"  rating {lo}-{hi}", default="", console=self.console).strip()
            if raw == BACK or not raw:
                return raw or None
            return int(raw)

        raw = Prompt.ask("  answer", default="", console=self.console)
        return raw or None


# ---------------------------------------------------------------------------
# Walk
# ---------------------------------------------------------------------------

async def walk(
    definition: SurveyDefinition,
    submitter: ResponseSubmitter,
    answer_source: Any,
    console: Console,
    *,
    max_steps: int = 200,
    verbose: int = 0,
    fingerprint: FingerprintProvider | None = None,
) -> SurveyNavigator:
    """Drive a navigator until the survey ends or ``max_steps`` is hit.

    Without a *fingerprint* provider each walk gets a throwaway ``cli-`` id.
    """
    nav = SurveyNavigator(
        definition.nodes,
        survey_id=definition.survey.id,
        submitter=submitter,
        fingerprint=fingerprint or (lambda: f"cli-{uuid.uuid4().hex[:12]}"),
        metadata={"source": "walk_survey"},
    )

    steps = 0
    while nav.state.type in ("active", "failed") and steps < max_steps:
        steps += 1
        state = nav.state

        if state.type == "failed":
            console.print(f"  [red]Submission failed:[/] {state.error}")
            choice = Prompt.ask("  retry / back / quit", choices=["r", "b", "q"], console=console)
            if choice == "r":
                await nav.retry()
            elif choice == "b":
                nav.back()
            else:
                break
            continue

        node = nav.current_node
        if node is None:
            console.print("[red]Survey has no root node.[/]")
            break

        try:
            value = answer_source(node)
        except ValueError as exc:
            console.print(f"  [yellow]![/] {exc}")
            continue

        if value == BACK:
            if nav.can_go_back:
                nav.back()
            continue

        if value is None:
            nav.clear_answer(node.id)
        else:
            try:
                nav.answer(node.id, value)
            except ValueError as exc:
                console.print(f"  [yellow]![/] {exc}")
                continue

        if verbose >= 1 or isinstance(answer_source, RandomAnswers):
            console.print(f"  [dim]Q:[/] {node.question} ({node.id}) [{node.question_type}]")
            console.print(f"  [dim]A:[/] {value if value is not None else '(skipped)'}")

        if not nav.can_advance:
            console.print("  [yellow]![/] This question needs an answer.")
            continue
        await nav.advance()

    return nav


def print_outcome(nav: SurveyNavigator, console: Console, verbose: int) -> None:
    state = nav.state
    console.print()
    if state.type == "terminal":
        console.print(f"[bold cyan]Result:[/] {state.result_message}")
    elif state.type == "submitted":
        response_id = state.response.id if state.response else "?"
        console.print(f"[green]✓[/] {state.success_message} (response {response_id})")
    elif state.type == "failed":
        console.print(f"[red]✗[/] {state.error}")
    else:
        console.print(f"[yellow]Stopped in state '{state.type}'[/]")

    table = Table(title="Path")
    table.add_column("#", justify="right")
    table.add_column("Node")
    table.add_column("Answer")
    for i, node_id in enumerate(nav.path, 1):
        ans = nav.get_answer(node_id)
        shown = "--" if ans is None else json.dumps(
            ans.model_dump(exclude_none=True), ensure_ascii=False,
        )
        table.add_row(str(i), node_id, shown)
    console.print(table)

    if verbose >= 1:
        payload = nav.build_submission("cli-preview")
        console.print("[dim]Submission payload:[/]")
        console.print(json.dumps(payload.to_wire(), ensure_ascii=False, indent=2))


# ---------------------------------------------------------------------------
# CLI + async main
# ---------------------------------------------------------------------------

def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Walk an Appgram survey decision tree in the terminal.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "survey", nargs="?",
        help="Survey slug, or path to a survey YAML file",
    )
    parser.add_argument(
        "--list", action="store_true",
        help="List surveys in the catalog and exit",
    )
    parser.add_argument(
        "--survey-dir",
        default=None,
        help="Catalog directory (default: APPGRAM_SURVEY_DIR, or surveys/ in a checkout)",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="Fetch from and submit to this portal / preview server",
    )
    parser.add_argument(
        "--project-id",
        default="",
        help="Project id sent with survey lookups (with --base-url)",
    )
    parser.add_argument(
        "--random", action="store_true",
        help="Answer randomly instead of prompting",
    )
    parser.add_argument(
        "--seed",
        type=int, default=None,
        help="RNG seed for --random (default: current timestamp)",
    )
    parser.add_argument(
        "--max-steps",
        type=int, default=200,
        help="Safety limit on answered questions (default: 200)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count", default=0,
        help="Increase verbosity (-v for Q&A pairs and payload, -vv for debug logs)",
    )
    return parser.parse_args()


async def main() -> None:
    args = parse_args()
    console = Console()

    # APPGRAM_* env settings; -vv forces debug logs
    settings = load_settings()
    configure_logging(settings, level="DEBUG" if args.verbose >= 2 else None)

    catalog = SurveyCatalog(args.survey_dir)
    if args.list:
        catalog.load()
        table = Table(title=f"Surveys in {catalog.directory}")
        table.add_column("Slug")
        table.add_column("Name")
        table.add_column("Nodes", justify="right")
        for slug in catalog.slugs():
            d = catalog.get_by_slug(slug)
            table.add_row(slug, d.survey.name, str(len(d.nodes)))
        console.print(table)
        return

    if not args.survey:
        console.print("[red]A survey slug or YAML path is required (or --list).[/]")
        sys.exit(2)

    # --- Answer source ---
    if args.random:
        seed = args.seed if args.seed is not None else int(time.time())
        console.print(f"[dim]RNG seed: {seed}[/]")
        answer_source: Any = RandomAnswers(random.Random(seed))
    else:
        answer_source = PromptAnswers(console)

    # --- Load + walk ---
    if args.base_url:
        settings = replace(
            settings,
            base_url=args.base_url,
            project_id=args.project_id or settings.project_id,
        )
        async with AppgramClient.from_settings(settings) as client:
            try:
                definition = await client.get_public_survey(args.survey)
            except AppgramError as exc:
                console.print(f"[red]Could not fetch survey:[/] {exc.message}")
                sys.exit(1)
            console.print(f"[bold]{definition.survey.name}[/] ({args.base_url})")
            nav = await walk(
                definition, client, answer_source, console,
                max_steps=args.max_steps, verbose=args.verbose,
                fingerprint=fingerprint_provider(settings),
            )
    else:
        path = Path(args.survey)
        if path.suffix in (".yaml", ".yml"):
            definition = load_survey_file(path)
        else:
            catalog.load()
            try:
                definition = catalog.get_by_slug(args.survey)
            except KeyError:
                console.print(f"[red]Unknown survey:[/] '{args.survey}'")
                console.print(f"Available: {', '.join(catalog.slugs())}")
                sys.exit(1)
        console.print(f"[bold]{definition.survey.name}[/] [dim](dry run)[/]")
        nav = await walk(
            definition, DryRunSubmitter(), answer_source, console,
            max_steps=args.max_steps, verbose=args.verbose,
        )

    print_outcome(nav, console, args.verbose)
    if nav.state.type == "failed":
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
