"""
Command-line interface for the APA Match-Up engine.
Built with Click and Rich for terminal output.
"""

import sys
import logging
from typing import List, Optional

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from .config import get_config
from .models import CoinTossChoice, GameFormat, MatchupRecommendation, RiskLevel, Side
from .skill_levels import race_format, table_rows
from .snapshot import Snapshot, SnapshotError, load_snapshot
from .history import build_head_to_head, load_game_records, mirrored_records
from .advisor import (
    coin_toss_recommendation, match_inputs_by_side, match_state_advice, throw_recommendation
)
from .matchups import match_win_probability
from .win_probability import assess_matchup_risk

console = Console()

FORMAT_CHOICES = [f.value for f in GameFormat]
RISK_COLORS = {RiskLevel.LOW: "green", RiskLevel.MEDIUM: "yellow", RiskLevel.HIGH: "red"}


def _load(snapshot_path: str, history_path: Optional[str]) -> Snapshot:
    """Load the snapshot and merge any game history export into its head-to-head map."""
    try:
        snapshot = load_snapshot(snapshot_path)
    except SnapshotError as e:
        console.print(f"[red]{e}[/]")
        sys.exit(1)

    if history_path:
        try:
            records = load_game_records(history_path)
        except (OSError, ValueError) as e:
            console.print(f"[red]Cannot load game history: {e}[/]")
            sys.exit(1)
        # Explicit snapshot records take precedence over rebuilt ones
        rebuilt = build_head_to_head(mirrored_records(records))
        rebuilt.update(snapshot.head_to_head)
        snapshot.head_to_head = rebuilt
    return snapshot


def _resolve_format(fmt: Optional[str]) -> GameFormat:
    return GameFormat(fmt) if fmt else get_config().game_format


def _confidence_bar(confidence: float) -> str:
    bars = int(confidence * 5)
    return "[green]" + ("*" * bars) + "[/]" + ("*" * (5 - bars))


def _recommendation_table(title: str, recs: List[MatchupRecommendation]) -> Table:
    table = Table(title=title, box=box.ROUNDED, show_header=True, header_style="bold cyan")
    table.add_column("Rank", style="bold", width=4)
    table.add_column("Player", style="white", width=22)
    table.add_column("Win %", justify="right", style="green", width=7)
    table.add_column("Confidence", justify="center", width=10)
    table.add_column("Why", width=50)

    for i, rec in enumerate(recs, 1):
        style = "bold green" if i == 1 else None
        table.add_row(
            f"#{i}",
            rec.player_name,
            f"{rec.win_probability*100:.0f}%",
            _confidence_bar(rec.confidence),
            "; ".join(rec.reasoning[:2]),
            style=style,
        )
    return table


@click.group()
@click.version_option(version="1.0.0", prog_name="APA Match-Up")
def cli():
    """APA Match-Up - Pick the right player for every game."""
    config = get_config()
    problems = config.validate_config()
    for problem in problems:
        console.print(f"[yellow]Config warning:[/] {problem}")
    logging.basicConfig(level="INFO" if problems else config.log_level, format="%(message)s")


@cli.command("skill-levels")
@click.option("--format", "fmt", type=click.Choice(FORMAT_CHOICES), default=None,
              help="Game format (default: APA_MATCHUP_FORMAT or nine)")
def skill_levels(fmt: Optional[str]):
    """Show race targets for each skill level."""
    game_format = _resolve_format(fmt)
    unit = "Points" if game_format == GameFormat.NINE_BALL else "Games"

    table = Table(
        title=f"{'9-Ball' if game_format == GameFormat.NINE_BALL else '8-Ball'} Skill Levels",
        box=box.ROUNDED,
        header_style="bold cyan"
    )
    table.add_column("SL", justify="center", width=4)
    table.add_column(f"{unit} Needed", justify="right", width=13)
    table.add_column("Expected PPM", justify="right", width=12)
    table.add_column("Description", width=24)

    for level, needed, ppm, description in table_rows(game_format):
        table.add_row(str(level), str(needed), f"{ppm:g}", description)

    console.print(table)


@cli.command("coin-toss")
@click.argument("snapshot_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--history", "history_path", type=click.Path(exists=True, dir_okay=False),
              default=None, help="Game results CSV to build head-to-head records from")
@click.option("--format", "fmt", type=click.Choice(FORMAT_CHOICES), default=None)
def coin_toss(snapshot_path: str, history_path: Optional[str], fmt: Optional[str]):
    """Throw first or defer after winning the coin toss."""
    snapshot = _load(snapshot_path, history_path)
    policy = get_config().policy()
    sides = match_inputs_by_side(snapshot.live_match, snapshot.our_players, snapshot.their_players)

    decision = coin_toss_recommendation(
        sides[Side.US], sides[Side.THEM], snapshot.head_to_head,
        _resolve_format(fmt), policy
    )

    verdict = "THROW FIRST" if decision.recommendation == CoinTossChoice.THROW_FIRST else "DEFER"
    lines = [f"[bold green]{verdict}[/] (confidence {decision.confidence*100:.0f}%)", ""]
    lines.extend(f"- {r}" for r in decision.reasoning)
    if decision.suggested_first_player is not None:
        opener = snapshot.find(decision.suggested_first_player)
        if opener:
            lines.append(f"\n[cyan]Suggested opener:[/] {opener.player.name} (SL{opener.player.skill_level})")

    console.print(Panel("\n".join(lines), title="Coin Toss", border_style="cyan"))


@cli.command()
@click.argument("snapshot_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--opponent", "-o", type=int, default=None,
              help="Player id they already put up (omit to throw blind)")
@click.option("--history", "history_path", type=click.Path(exists=True, dir_okay=False), default=None)
@click.option("--format", "fmt", type=click.Choice(FORMAT_CHOICES), default=None)
@click.option("--top", "-n", default=5, help="Number of recommendations")
def throw(snapshot_path: str, opponent: Optional[int], history_path: Optional[str],
          fmt: Optional[str], top: int):
    """Rank who we should put up next."""
    snapshot = _load(snapshot_path, history_path)
    game_format = _resolve_format(fmt)
    policy = get_config().policy()
    sides = match_inputs_by_side(snapshot.live_match, snapshot.our_players, snapshot.their_players)

    their_current = None
    if opponent is not None:
        their_current = next((i for i in sides[Side.THEM] if i.player.id == opponent), None)
        if their_current is None:
            if any(i.player.id == opponent for i in snapshot.their_players):
                console.print(
                    f"[red]Player {opponent} is not available (absent or already played).[/]"
                )
            else:
                console.print(f"[red]Player {opponent} is not on their roster.[/]")
            sys.exit(1)

    if not sides[Side.US]:
        console.print("[yellow]No available players left on our side.[/]")
        return

    recs = throw_recommendation(
        sides[Side.US], sides[Side.THEM], snapshot.head_to_head,
        their_current, game_format, policy
    )[:top]

    if their_current:
        title = f"Counter-picks vs {their_current.player.name} (SL{their_current.player.skill_level})"
    else:
        title = "Blind throw (averaged over available opponents)"
    console.print(_recommendation_table(title, recs))

    if their_current and recs:
        best = snapshot.find(recs[0].player_id)
        console.print(
            f"\n[cyan]Race:[/] "
            f"{race_format(best.player.skill_level, their_current.player.skill_level, game_format)}"
        )


@cli.command()
@click.argument("snapshot_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--history", "history_path", type=click.Path(exists=True, dir_okay=False), default=None)
@click.option("--format", "fmt", type=click.Choice(FORMAT_CHOICES), default=None)
def status(snapshot_path: str, history_path: Optional[str], fmt: Optional[str]):
    """Match win probability and advice for the current score."""
    snapshot = _load(snapshot_path, history_path)
    game_format = _resolve_format(fmt)
    policy = get_config().policy()
    match = snapshot.live_match
    sides = match_inputs_by_side(match, snapshot.our_players, snapshot.their_players)

    probability = match_win_probability(
        match.our_score, match.their_score, sides[Side.US], sides[Side.THEM],
        snapshot.head_to_head, game_format, policy
    )

    lines = [
        f"Score: [bold]{match.our_score}-{match.their_score}[/]   Game {match.current_game} of {match.total_games}",
        f"Match win probability: [green]{probability*100:.0f}%[/]",
        "",
    ]
    lines.extend(f"- {a}" for a in match_state_advice(match))

    if not match.is_complete(policy.games_to_win) and sides[Side.US] and sides[Side.THEM]:
        recs = throw_recommendation(
            sides[Side.US], sides[Side.THEM], snapshot.head_to_head,
            game_format=game_format, policy=policy
        )
        top_rec = recs[0]
        risk = assess_matchup_risk(
            top_rec.win_probability, match.our_score, match.their_score,
            match.current_game, policy
        )
        color = RISK_COLORS[risk]
        lines.append(
            f"\n[cyan]Top option:[/] {top_rec.player_name} "
            f"({top_rec.win_probability*100:.0f}%, risk [{color}]{risk.value.upper()}[/])"
        )

    console.print(Panel("\n".join(lines), title="Match Status", border_style="cyan"))


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
