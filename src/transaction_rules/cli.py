import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from transaction_rules.config.settings import ConfigLoader
from transaction_rules.domain.actions import describe_action
from transaction_rules.domain.conditions import describe_condition
from transaction_rules.domain.effects import describe_effect
from transaction_rules.engine.runner import RuleSetRunner
from transaction_rules.engine.validation import validate_rule
from transaction_rules.logging_setup import configure_logging
from transaction_rules.parsers.factory import ParserFactory
from transaction_rules.parsers.rule_payload import parse_rules
from transaction_rules.services.rule_service import RuleService

app = typer.Typer(
    name="transaction-rules",
    help="Match bank transactions against rules and preview their effects",
    add_completion=False,
)

console = Console()

RULES_OPTION_HELP = "Rules JSON file (defaults to the configured rules.json)"


class State:
    verbose: bool = False


state = State()


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose output",
    )
):
    """
    Transaction Rules - validate rules and run them against statements.
    """
    if not ParserFactory.get_available_formats():
        ParserFactory.load_parsers_from_config()

    configure_logging(logging.DEBUG if verbose else None, console=Console(stderr=True))
    state.verbose = verbose


def _load_rules_document(rules_file: Optional[Path]) -> Dict[str, Any]:
    if rules_file is None:
        return ConfigLoader.load_rules_config()
    return ConfigLoader.load_file(rules_file)


def _build_service(rules_file: Optional[Path]) -> RuleService:
    rules = parse_rules(_load_rules_document(rules_file))
    return RuleService(runner=RuleSetRunner(rules=rules))


def _fail(e: Exception):
    console.print(f"[bold red]Error:[/bold red] {e}")
    if state.verbose:
        console.print_exception()
    raise typer.Exit(code=1)


def _rule_items(document: Any) -> List[Dict[str, Any]]:
    return document.get("rules", []) if isinstance(document, dict) else list(document)


@app.command(name="validate")
def validate(
    rules_file: Optional[Path] = typer.Option(
        None,
        "--rules", "-r",
        help=RULES_OPTION_HELP,
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
):
    """
    Check every rule before it is saved.

    Examples:
        transaction-rules validate
        transaction-rules validate --rules my_rules.json
    """
    try:
        items = _rule_items(_load_rules_document(rules_file))
    except Exception as e:
        _fail(e)

    table = Table(title="Rule validation")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Rule", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Problems", style="white")

    invalid = 0
    for position, item in enumerate(items, start=1):
        errors = validate_rule(item)
        name = str(item.get("name", "")) if isinstance(item, dict) else ""
        if errors:
            invalid += 1
            status = "[red]INVALID[/red]"
        else:
            status = "[green]OK[/green]"
        table.add_row(
            str(position),
            name or "[dim](unnamed)[/dim]",
            status,
            "\n".join(str(e) for e in errors),
        )

    console.print(table)

    if invalid:
        console.print(f"[bold red]✗ {invalid} of {len(items)} rules are invalid[/bold red]")
        raise typer.Exit(code=1)

    console.print(f"[bold green]✓ All {len(items)} rules are valid[/bold green]")


@app.command(name="show")
def show(
    rules_file: Optional[Path] = typer.Option(
        None,
        "--rules", "-r",
        help=RULES_OPTION_HELP,
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
):
    """
    List rules in evaluation order with their conditions and actions.
    """
    try:
        service = _build_service(rules_file)
    except Exception as e:
        _fail(e)

    table = Table(title="Rules")
    table.add_column("Priority", justify="right", style="dim")
    table.add_column("Rule", style="cyan")
    table.add_column("Applies to", style="white")
    table.add_column("Conditions", style="white")
    table.add_column("Actions", style="magenta")
    table.add_column("Flags", justify="center")

    for rule in sorted(service.rules, key=lambda r: r.priority):
        joiner = "\nAND " if rule.match_type.value == "all" else "\nOR "
        flags = []
        if not rule.active:
            flags.append("[dim]inactive[/dim]")
        if rule.auto_apply:
            flags.append("[green]auto[/green]")
        if rule.stop_on_match:
            flags.append("[yellow]stop[/yellow]")

        applies_to = rule.transaction_type.value
        if rule.account_ids:
            applies_to += f"\n{', '.join(sorted(rule.account_ids))}"

        table.add_row(
            str(rule.priority),
            rule.name,
            applies_to,
            joiner.join(describe_condition(c) for c in rule.conditions),
            "\n".join(describe_action(a) for a in rule.actions),
            " ".join(flags),
        )

    console.print(table)


@app.command(name="run")
def run(
    statement: Path = typer.Argument(
        ...,
        help="Statement file with transactions (csv or json)",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    rules_file: Optional[Path] = typer.Option(
        None,
        "--rules", "-r",
        help=RULES_OPTION_HELP,
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    auto_apply_only: bool = typer.Option(
        False,
        "--auto-apply-only",
        help="Only run rules that apply without review",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers", "-w",
        help="Number of worker threads",
        min=1,
    ),
):
    """
    Run the rule set over every transaction in a statement.

    Examples:
        transaction-rules run statement.csv
        transaction-rules run statement.csv --rules my_rules.json --auto-apply-only
    """
    try:
        service = _build_service(rules_file)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Evaluating transactions...", total=None)

            transactions = service.load_statement(statement)
            batch = service.run_many(
                transactions,
                auto_apply_only=auto_apply_only,
                max_workers=workers,
            )

            progress.update(task, completed=True)
    except Exception as e:
        _fail(e)

    names = {rule.id: rule.name for rule in service.rules}

    table = Table(title=f"Rule results ({statement.name})")
    table.add_column("Transaction", style="cyan")
    table.add_column("Description", style="white", max_width=40)
    table.add_column("Amount", justify="right")
    table.add_column("Rules", style="magenta")
    table.add_column("Effects", style="white")

    for txn, result in zip(transactions, batch.results):
        amount_color = "green" if txn.direction and txn.direction.value == "income" else "red"
        table.add_row(
            txn.id,
            txn.description[:40],
            f"[{amount_color}]${txn.amount:,.2f}[/{amount_color}]",
            "\n".join(names.get(rule_id, rule_id) for rule_id in result.matched_rule_ids)
            or "[dim]-[/dim]",
            "\n".join(describe_effect(e) for e in result.effects) or "[dim]-[/dim]",
        )

    console.print(table)
    console.print(Panel.fit(str(batch), border_style="cyan"))


@app.command(name="test")
def test_rule(
    statement: Path = typer.Argument(
        ...,
        help="Statement file with transactions (csv or json)",
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
    rule_id: str = typer.Option(
        ...,
        "--rule",
        help="Id of the rule to preview",
    ),
    rules_file: Optional[Path] = typer.Option(
        None,
        "--rules", "-r",
        help=RULES_OPTION_HELP,
        exists=True,
        file_okay=True,
        dir_okay=False,
    ),
):
    """
    Preview one rule against a statement, even if it's inactive.

    Examples:
        transaction-rules test statement.csv --rule bank-fees
    """
    try:
        service = _build_service(rules_file)
        rule = service.find_rule(rule_id)
        result = service.test_rule(rule, service.load_statement(statement))
    except KeyError as e:
        _fail(Exception(e.args[0]))
    except Exception as e:
        _fail(e)

    console.print(Panel.fit(str(result), border_style="cyan"))

    for error in result.errors:
        console.print(f"[red]❌ {error}[/red]")

    if result.matches:
        table = Table(title="Matched transactions")
        table.add_column("Transaction", style="cyan")
        table.add_column("Date", style="dim")
        table.add_column("Description", style="white", max_width=40)
        table.add_column("Amount", justify="right")
        table.add_column("Effects", style="magenta")
        for match in result.matches:
            txn = match.transaction
            table.add_row(
                txn.id,
                str(txn.date or ""),
                txn.description[:40],
                f"${txn.amount:,.2f}",
                "\n".join(describe_effect(e) for e in match.effects),
            )
        console.print(table)
    else:
        console.print("[yellow]No transactions matched[/yellow]")


def cli_main():
    """Entry point for the CLI"""
    app()


if __name__ == "__main__":
    cli_main()
