"""Command-line interface for bizcontext."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

import click

from bizcontext import __version__
from bizcontext.cache import TTLCache
from bizcontext.config import (
    ProjectConfig,
    find_project_root,
    load_config,
    save_config,
    set_config_value,
)
from bizcontext.exceptions import BizContextError
from bizcontext.interpretation.models import BusinessContextProfile, IntentType, QueryIntent
from bizcontext.ui.console import Console

console = Console()

INTENT_CHOICES = [t.value for t in IntentType]


def _get_project_root(path: str | None = None) -> Path:
    """Find the project root or error."""
    if path:
        root = Path(path).resolve()
        if not root.exists():
            console.error(f"Path does not exist: {path}")
            sys.exit(1)
        return root

    root = find_project_root()
    if root is None:
        console.error(
            "No bizcontext project found. Run 'bizcontext init' first, "
            "or specify a path with --path."
        )
        sys.exit(1)
    return root


def _load_project_config(path: str | None) -> ProjectConfig:
    """Config of the given or enclosing project, defaults when there is none."""
    root = Path(path).resolve() if path else find_project_root()
    if root is None:
        return ProjectConfig()
    if not root.exists():
        console.error(f"Path does not exist: {path}")
        sys.exit(1)
    try:
        return load_config(root)
    except BizContextError as e:
        console.error(str(e))
        sys.exit(1)


def _manual_profile(question: str, intent: str) -> BusinessContextProfile:
    return BusinessContextProfile(
        original_question=question,
        intent=QueryIntent(type=IntentType(intent), confidence=1.0),
    )


@click.group()
@click.version_option(version=__version__, prog_name="bizcontext")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(verbose: bool):
    """bizcontext - business context interpretation and prioritization for text-to-SQL."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--provider", default=None, help="LLM provider (openai, anthropic, local).")
@click.option("--model", default=None, help="LLM model name.")
def init(path: str | None, provider: str | None, model: str | None):
    """Initialize bizcontext configuration for a project."""
    root = Path(path or ".").resolve()
    if not root.exists():
        console.error(f"Path does not exist: {root}")
        sys.exit(1)

    console.banner()
    console.info(f"Initializing bizcontext for: {root}")

    config = _load_project_config(str(root))
    config.name = root.name
    config.root_path = str(root)

    if provider:
        config.llm.provider = provider
    if model:
        config.llm.model = model

    save_config(root, config)
    console.success("Configuration saved to .bizcontext/")


# =========================================================================
# Interpretation
# =========================================================================

@main.command()
@click.argument("question")
@click.option("--user", "-u", "user_id", default=None, help="User id for the cache key.")
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--offline", is_flag=True, help="Skip the LLM; only local signals are derived.")
@click.option("--json", "as_json", is_flag=True, help="Print the profile as JSON.")
def analyze(question: str, user_id: str | None, path: str | None, offline: bool, as_json: bool):
    """Interpret a business question into intent, domain, entities and time context.

    Examples:

        bizcontext analyze "Top 10 games by revenue last month"

        bizcontext analyze "Deposits vs withdrawals by country" --json
    """
    config = _load_project_config(path)
    profile = asyncio.run(_run_analysis(question, user_id, config, offline))

    if as_json:
        console.console.print_json(profile.model_dump_json())
    else:
        console.show_profile(profile)


async def _run_analysis(
    question: str, user_id: str | None, config: ProjectConfig, offline: bool
) -> BusinessContextProfile:
    from bizcontext.interpretation.analyzer import BusinessContextAnalyzer
    from bizcontext.similarity import EmbeddingSimilarity, LexicalSimilarity

    provider = None
    similarity = LexicalSimilarity()
    if not offline:
        from bizcontext.llm.factory import create_provider

        try:
            provider = create_provider(config.llm)
        except ValueError as e:
            console.error(str(e))
            sys.exit(1)
        if hasattr(provider, "embed"):
            similarity = EmbeddingSimilarity(provider)

    analyzer = BusinessContextAnalyzer(
        provider, similarity, TTLCache(), config=config.analysis,
    )
    return await analyzer.analyze(question, user_id=user_id)


# =========================================================================
# Budgeting & prioritization
# =========================================================================

@main.command()
@click.argument("question")
@click.option("--intent", "-i", type=click.Choice(INTENT_CHOICES), default="analytical",
              help="Question intent (default: analytical).")
@click.option("--max-tokens", "-m", default=None, type=int, help="Total prompt ceiling.")
@click.option("--reserved", "-r", default=None, type=int, help="Tokens kept for the response.")
@click.option("--path", "-p", default=None, help="Path to the project root.")
def budget(
    question: str, intent: str, max_tokens: int | None, reserved: int | None, path: str | None
):
    """Show how a prompt's token ceiling splits across context kinds."""
    from bizcontext.tokens import TokenBudgetManager, TokenCounter

    settings = _load_project_config(path).prioritization
    manager = TokenBudgetManager(TokenCounter())
    result = manager.create_budget(
        _manual_profile(question, intent),
        max_tokens=max_tokens if max_tokens is not None else settings.max_tokens,
        reserved_response_tokens=reserved if reserved is not None else settings.reserved_response_tokens,
    )
    console.show_budget(result)


@main.command()
@click.argument("candidates_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--question", "-q", default="", help="Question the candidates were gathered for.")
@click.option("--intent", "-i", type=click.Choice(INTENT_CHOICES), default="analytical",
              help="Question intent (default: analytical).")
@click.option("--budget", "-b", "max_tokens", default=None, type=int,
              help="Total prompt ceiling in tokens.")
@click.option(
    "--strategy", "-s",
    type=click.Choice(["balanced", "max_relevance", "max_coverage", "min_tokens"]),
    default=None,
    help="Selection strategy (default: balanced).",
)
@click.option("--show-content", is_flag=True, help="Print each selected section.")
@click.option("--metrics", "show_metrics", is_flag=True, help="Print timing and selection metrics.")
@click.option("--path", "-p", default=None, help="Path to the project root.")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
def prioritize(
    candidates_file: str, question: str, intent: str, max_tokens: int | None,
    strategy: str | None, show_content: bool, show_metrics: bool, path: str | None,
    as_json: bool,
):
    """Select and order the context sections that fit a token budget.

    CANDIDATES_FILE is a JSON object with tables, columns, business_rules,
    examples, relationships and glossary_terms lists.

    Examples:

        bizcontext prioritize candidates.json --intent aggregation --budget 2000

        bizcontext prioritize candidates.json -s max_coverage --show-content
    """
    from bizcontext.prioritization.engine import ContextPrioritizationEngine, materialize_sections
    from bizcontext.prioritization.models import CandidateSchema, OptimizationStrategy
    from bizcontext.tokens import TokenBudgetManager, TokenCounter

    settings = _load_project_config(path).prioritization
    try:
        schema = CandidateSchema.load(Path(candidates_file))
    except BizContextError as e:
        console.error(str(e))
        sys.exit(1)

    cache = TTLCache()
    counter = TokenCounter(cache)
    profile = _manual_profile(question, intent)
    token_budget = TokenBudgetManager(counter, cache).create_budget(
        profile,
        max_tokens=max_tokens if max_tokens is not None else settings.max_tokens,
        reserved_response_tokens=settings.reserved_response_tokens,
    )

    engine = ContextPrioritizationEngine(counter, cache, config=settings)
    chosen = OptimizationStrategy(strategy or settings.default_strategy)
    if chosen == OptimizationStrategy.BALANCED:
        result = engine.prioritize_detailed(schema, profile, token_budget)
    else:
        sections = materialize_sections(schema, counter, settings.relationship_relevance)
        result = engine.optimize(
            sections, profile, token_budget.available_context_tokens, chosen,
        )

    if as_json:
        console.console.print_json(result.model_dump_json())
    else:
        console.show_selection(result, show_content=show_content)
        if show_metrics:
            console.show_report(engine.report())

    if result.degraded:
        sys.exit(1)


# =========================================================================
# Config Management
# =========================================================================

@main.command("config")
@click.argument("action", type=click.Choice(["set", "get", "show"]))
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.option("--path", "-p", default=None, help="Path to the project root.")
def config_cmd(action: str, key: str | None, value: str | None, path: str | None):
    """Manage bizcontext configuration."""
    root = _get_project_root(path)
    try:
        config = load_config(root)
    except BizContextError as e:
        console.error(str(e))
        sys.exit(1)

    if action == "show":
        console.console.print_json(json.dumps(config.model_dump()))
    elif action == "get":
        if not key:
            console.error("Usage: bizcontext config get <key>")
            sys.exit(1)
        data = config.model_dump()
        for part in key.split("."):
            if isinstance(data, dict) and part in data:
                data = data[part]
            else:
                console.error(f"Unknown key: {key}")
                sys.exit(1)
        console.console.print(f"{key} = {data}")
    elif action == "set":
        if not key or value is None:
            console.error("Usage: bizcontext config set <key> <value>")
            sys.exit(1)
        # Non-string values arrive as JSON literals
        try:
            parsed_value = json.loads(value)
        except json.JSONDecodeError:
            parsed_value = value

        try:
            config = set_config_value(config, key, parsed_value)
        except KeyError:
            console.error(f"Unknown config key: {key}")
            sys.exit(1)
        except ValueError as e:
            console.error(f"Invalid value for {key}: {e}")
            sys.exit(1)
        save_config(root, config)
        console.success(f"Set {key} = {parsed_value}")


if __name__ == "__main__":
    main()
