"""Rich-powered console output for bizcontext."""

from __future__ import annotations

from rich.console import Console as RichConsole
from rich.panel import Panel
from rich.table import Table

from bizcontext import __version__
from bizcontext.interpretation.models import BusinessContextProfile
from bizcontext.metrics import PrioritizationReport
from bizcontext.prioritization.models import ContextOptimizationResult
from bizcontext.tokens import TokenBudget


class Console:
    """Terminal output for bizcontext using Rich."""

    def __init__(self) -> None:
        self.console = RichConsole()

    def banner(self) -> None:
        self.console.print(
            Panel(
                f"[bold cyan]bizcontext[/bold cyan] [dim]v{__version__}[/dim]\n"
                "[dim]Business context for text-to-SQL prompts[/dim]",
                border_style="cyan",
                padding=(1, 2),
            )
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {message}")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]i[/blue] {message}")

    def show_profile(self, profile: BusinessContextProfile) -> None:
        """Display an interpreted question."""
        confidence = profile.confidence_score
        color = "green" if confidence >= 0.7 else "yellow" if confidence >= 0.4 else "red"

        lines = [
            f"[bold]Question:[/bold] {profile.original_question}",
            f"[bold]Intent:[/bold] {profile.intent.type.value} "
            f"[dim]({profile.intent.confidence:.2f})[/dim]",
            f"[bold]Domain:[/bold] {profile.domain.name} "
            f"[dim]({profile.domain.relevance:.2f})[/dim]",
            f"[bold]Confidence:[/bold] [{color}]{confidence:.1%}[/{color}]",
        ]
        if profile.time_context is not None:
            tc = profile.time_context
            lines.append(
                f"[bold]Time:[/bold] {tc.relative_expression or '-'} "
                f"[dim]({tc.granularity.value})[/dim]"
            )
        if profile.comparison_terms:
            lines.append(f"[bold]Comparison:[/bold] {', '.join(profile.comparison_terms)}")
        if profile.business_terms:
            lines.append(f"[bold]Terms:[/bold] {', '.join(profile.business_terms)}")

        self.console.print(
            Panel("\n".join(lines), title="[bold]Business Context[/bold]", border_style=color)
        )

        if profile.entities:
            table = Table(title="Entities", border_style="cyan")
            table.add_column("Name", style="bold")
            table.add_column("Type")
            table.add_column("Text", style="dim")
            table.add_column("Confidence", justify="right", style="cyan")
            for entity in profile.entities:
                table.add_row(
                    entity.name, entity.type.value, entity.original_text,
                    f"{entity.confidence:.2f}",
                )
            self.console.print(table)

        if profile.is_degraded:
            self.warning(f"Degraded signals: {', '.join(profile.degraded_signals)}")

    def show_selection(self, result: ContextOptimizationResult, show_content: bool = False) -> None:
        """Display the ordered section selection and its utilization."""
        table = Table(title="Selected Context", border_style="cyan")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Category", style="bold")
        table.add_column("Tokens", justify="right")
        table.add_column("Relevance", justify="right", style="cyan")
        table.add_column("Priority", justify="right")
        table.add_column("First line", style="dim")

        for i, section in enumerate(result.selected_sections, 1):
            first_line = section.content.splitlines()[0] if section.content else ""
            table.add_row(
                str(i), section.category.value, str(section.token_count),
                f"{section.relevance_score:.2f}", f"{section.priority_score:.3f}",
                first_line[:60],
            )
        self.console.print(table)

        if show_content:
            for section in result.selected_sections:
                self.console.print(Panel(section.content, border_style="dim"))

        style = "yellow" if result.degraded else "green"
        self.console.print(Panel(result.summary(), title="[bold]Summary[/bold]", border_style=style))

    def show_budget(self, budget: TokenBudget) -> None:
        table = Table(title=f"Token Budget ({budget.intent.value})", border_style="cyan")
        table.add_column("Allocation", style="bold")
        table.add_column("Tokens", justify="right", style="cyan")

        table.add_row("Max total", f"{budget.max_total_tokens:,}")
        table.add_row("Base prompt", f"{budget.base_prompt_tokens:,}")
        table.add_row("Reserved for response", f"{budget.reserved_response_tokens:,}")
        table.add_row("Available for context", f"{budget.available_context_tokens:,}")
        table.add_section()
        table.add_row("  schema", f"{budget.schema_budget:,}")
        table.add_row("  business", f"{budget.business_budget:,}")
        table.add_row("  examples", f"{budget.examples_budget:,}")
        table.add_row("  rules", f"{budget.rules_budget:,}")
        table.add_row("  glossary", f"{budget.glossary_budget:,}")
        self.console.print(table)

    def show_report(self, report: PrioritizationReport) -> None:
        if not report.operations:
            self.info("No operations recorded")
            return

        table = Table(title="Prioritization Metrics", border_style="cyan")
        table.add_column("Operation", style="bold")
        table.add_column("Count", justify="right")
        table.add_column("Avg ms", justify="right")
        table.add_column("Avg in", justify="right")
        table.add_column("Avg out", justify="right")
        table.add_column("Selection", justify="right", style="cyan")
        for op in report.operations:
            table.add_row(
                op.operation, str(op.total_operations), f"{op.average_duration_ms:.1f}",
                f"{op.average_input_sections:.1f}", f"{op.average_output_sections:.1f}",
                f"{op.selection_ratio:.0%}",
            )
        self.console.print(table)
