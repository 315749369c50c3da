"""Click CLI for ragconf: index a corpus, retrieve context and score predictions."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ragconf.config.hierarchy import load_config_hierarchy
from ragconf.config.schema import EngineSettings
from ragconf.errors.exceptions import ContextValidationError
from ragconf.types import ConfidenceReport, DocumentContext, ModelPrediction, RAGContext

console = Console()
error_console = Console(stderr=True)

_LEVEL_STYLES = {"HIGH": "green", "MEDIUM": "yellow", "LOW": "red", "FAILED": "red bold"}


def _setup_logging(verbosity: int, configured: str | None = None) -> None:
    """Configure logging based on verbosity level."""
    level = logging.getLevelName(configured.upper()) if configured else logging.WARNING
    if not isinstance(level, int):
        level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_time=False, show_path=False)],
    )


def _load_settings(db: str | None, verbose: int) -> EngineSettings:
    config = load_config_hierarchy(db_path=db)
    _setup_logging(verbose, config.get("log_level"))
    try:
        return EngineSettings.from_config(config)
    except ValueError as e:
        error_console.print(f"[red]Invalid configuration:[/red] {e}")
        sys.exit(1)


def _build_engine(corpus: str | None, settings: EngineSettings) -> Any:
    from ragconf.core import RagConfidenceEngine
    from ragconf.store.documents import InMemoryDocumentStore
    from ragconf.store.sqlite import SQLiteRecordStore

    record_store = SQLiteRecordStore(settings.db_path) if settings.db_path else None
    try:
        if corpus:
            documents = InMemoryDocumentStore.from_file(Path(corpus), record_store=record_store)
        else:
            documents = InMemoryDocumentStore(record_store=record_store)
    except (OSError, ValueError, yaml.YAMLError) as e:
        error_console.print(f"[red]Cannot read corpus:[/red] {e}")
        sys.exit(1)
    return RagConfidenceEngine(documents, settings=settings, record_store=record_store)


def _load_predictions(path: Path) -> list[ModelPrediction]:
    text = path.read_text(encoding="utf-8")
    data = yaml.safe_load(text) if path.suffix.lower() in (".yaml", ".yml") else json.loads(text)
    if isinstance(data, dict):
        data = data.get("predictions", [])
    return [ModelPrediction.model_validate(item) for item in data or []]


_db_option = click.option(
    "--db", type=click.Path(dir_okay=False), default=None, help="SQLite file for persisted state."
)
_verbose_option = click.option(
    "-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)."
)


@click.group()
@click.version_option(package_name="ragconf")
def cli() -> None:
    """ragconf: retrieval-augmented confidence scoring."""


@cli.command()
@click.argument("corpus", type=click.Path(exists=True, dir_okay=False))
@click.option("--rebuild", is_flag=True, default=False, help="Re-vectorize even if records exist.")
@_db_option
@_verbose_option
def index(corpus: str, rebuild: bool, db: str | None, verbose: int) -> None:
    """Chunk and vectorize every document in CORPUS."""
    settings = _load_settings(db, verbose)
    engine = _build_engine(corpus, settings)

    async def _run() -> Any:
        try:
            return await engine.initialize(force=rebuild)
        finally:
            await engine.close()

    try:
        report = asyncio.run(_run())
    except Exception as e:
        error_console.print(f"[red]Error while indexing:[/red] {e}")
        sys.exit(1)

    source = "persisted records" if report.loaded_from_records else "corpus"
    console.print(
        f"[green]Indexed {report.documents_indexed} documents "
        f"({report.chunks_indexed} chunks) from {source}[/green]"
    )
    if report.skipped:
        error_console.print(
            f"[yellow]Skipped documents:[/yellow] {', '.join(str(i) for i in report.skipped)}"
        )


@cli.command()
@click.argument("corpus", type=click.Path(exists=True, dir_okay=False))
@click.argument("query")
@click.option("--industry", default="general", show_default=True, help="Industry filter.")
@click.option("--document-type", default=None, help="Document type filter.")
@click.option("--max-results", type=int, default=None, help="Maximum documents to return.")
@_db_option
@_verbose_option
def retrieve(
    corpus: str,
    query: str,
    industry: str,
    document_type: str | None,
    max_results: int | None,
    db: str | None,
    verbose: int,
) -> None:
    """Retrieve historical context for QUERY from CORPUS."""
    settings = _load_settings(db, verbose)
    engine = _build_engine(corpus, settings)

    async def _run() -> RAGContext:
        try:
            return await engine.retrieve(
                query, industry=industry, document_type=document_type, max_results=max_results
            )
        finally:
            await engine.close()

    context = asyncio.run(_run())
    _print_context(context)


@cli.command()
@click.argument("predictions", type=click.Path(exists=True, dir_okay=False))
@click.option("--industry", required=True, help="Industry of the scored document.")
@click.option("--document-type", required=True, help="Type of the scored document.")
@click.option("--text-quality", type=float, default=0.7, show_default=True)
@click.option("--complexity", type=float, default=0.5, show_default=True)
@click.option("--corpus", type=click.Path(exists=True, dir_okay=False), default=None)
@click.option("--query", default=None, help="Retrieve context for this query before scoring.")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the report as JSON.")
@_db_option
@_verbose_option
def score(
    predictions: str,
    industry: str,
    document_type: str,
    text_quality: float,
    complexity: float,
    corpus: str | None,
    query: str | None,
    as_json: bool,
    db: str | None,
    verbose: int,
) -> None:
    """Compute a calibrated confidence report for PREDICTIONS."""
    settings = _load_settings(db, verbose)
    try:
        preds = _load_predictions(Path(predictions))
        context = DocumentContext(
            industry=industry,
            document_type=document_type,
            text_quality=text_quality,
            processing_complexity=complexity,
        )
    except (ValueError, yaml.YAMLError) as e:
        error_console.print(f"[red]Invalid input:[/red] {e}")
        sys.exit(1)

    engine = _build_engine(corpus, settings)

    async def _run() -> tuple[RAGContext | None, ConfidenceReport]:
        try:
            if query:
                result = await engine.analyze(preds, context, query)
                return result.context, result.report
            return None, engine.compute_confidence(preds, context)
        finally:
            await engine.close()

    try:
        rag, report = asyncio.run(_run())
    except ContextValidationError as e:
        error_console.print(f"[red]Invalid document context:[/red] {e}")
        sys.exit(1)

    if as_json:
        console.print_json(report.model_dump_json())
        return
    if rag is not None:
        _print_context(rag)
    _print_report(report)


@cli.group()
def calibration() -> None:
    """Calibration table commands."""


@calibration.command("record")
@click.option("--industry", required=True)
@click.option("--document-type", required=True)
@click.option("--predicted", type=click.FloatRange(0.0, 1.0), required=True)
@click.option("--actual", type=click.FloatRange(0.0, 1.0), required=True)
@_db_option
@_verbose_option
def calibration_record(
    industry: str,
    document_type: str,
    predicted: float,
    actual: float,
    db: str | None,
    verbose: int,
) -> None:
    """Record an observed accuracy for a predicted confidence."""
    settings = _load_settings(db, verbose)
    if settings.db_path is None:
        error_console.print("[red]Error:[/red] --db (or RAGCONF_DB_PATH) is required to record")
        sys.exit(1)

    engine = _build_engine(None, settings)
    context = DocumentContext(industry=industry, document_type=document_type)
    try:
        engine.record_outcome(context, predicted, actual)
        bins = engine.confidence_engine.calibration.bins_for(context)
    finally:
        asyncio.run(engine.close())

    console.print(f"[green]Recorded outcome for {industry}/{document_type}[/green]")
    _print_bins(bins)


@calibration.command("show")
@click.option("--industry", required=True)
@click.option("--document-type", required=True)
@_db_option
@_verbose_option
def calibration_show(industry: str, document_type: str, db: str | None, verbose: int) -> None:
    """Show calibration bins and metrics for an industry and document type."""
    settings = _load_settings(db, verbose)
    engine = _build_engine(None, settings)
    context = DocumentContext(industry=industry, document_type=document_type)
    try:
        table = engine.confidence_engine.calibration
        bins = table.bins_for(context)
        metrics = table.metrics(context)
    finally:
        asyncio.run(engine.close())

    _print_bins(bins)
    summary = Table(title="Calibration Metrics", show_header=True)
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value")
    summary.add_row("Reliability", f"{metrics.reliability:.3f}")
    summary.add_row("Sharpness", f"{metrics.sharpness:.3f}")
    summary.add_row("Brier", f"{metrics.brier:.3f}")
    console.print(summary)


@cli.command()
@click.argument("corpus", type=click.Path(exists=True, dir_okay=False))
@_db_option
@_verbose_option
def status(corpus: str, db: str | None, verbose: int) -> None:
    """Build the index for CORPUS and show engine statistics."""
    settings = _load_settings(db, verbose)
    engine = _build_engine(corpus, settings)

    async def _run() -> Any:
        try:
            await engine.initialize()
            return engine.status()
        finally:
            await engine.close()

    try:
        engine_status = asyncio.run(_run())
    except Exception as e:
        error_console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    table = Table(title="Engine Status", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")

    idx = engine_status.index
    table.add_row("Documents", str(idx.documents))
    table.add_row("Chunks", str(idx.chunks))
    table.add_row("Chunks per document", f"{idx.average_chunks_per_document:.1f}")
    for industry, count in idx.industries.items():
        table.add_row(f"  {industry}", str(count))

    cal = engine_status.confidence.calibration
    table.add_row("Calibration bins", str(cal.bins))
    table.add_row("Calibrated industries", ", ".join(cal.supported_industries) or "-")
    table.add_row("Average bin reliability", f"{cal.average_reliability:.3f}")
    table.add_row("Learned patterns", str(engine_status.confidence.historical_patterns))

    if engine_status.vector_cache is not None:
        cache = engine_status.vector_cache
        table.add_row("Vector cache hit rate", f"{cache.hit_rate:.1%}")

    console.print(table)


def _print_context(context: RAGContext) -> None:
    if context.degraded:
        error_console.print(f"[yellow]{context.context_summary}[/yellow]")
        return

    table = Table(title=f"Context for '{context.query}'", show_header=True)
    table.add_column("Document", style="cyan")
    table.add_column("Industry")
    table.add_column("Type")
    table.add_column("Similarity")
    table.add_column("Reason")

    for doc in context.retrieved_documents:
        table.add_row(
            str(doc.document.id),
            doc.document.industry,
            doc.document.document_type or "-",
            f"{doc.similarity:.3f}",
            doc.reason_for_relevance,
        )

    console.print(table)
    console.print(
        f"Searched {context.total_documents_searched} documents, "
        f"average similarity {context.average_similarity:.3f}, "
        f"strategy [bold]{context.enhancement_strategy.value}[/bold]"
    )
    console.print(context.context_summary)


def _print_report(report: ConfidenceReport) -> None:
    style = _LEVEL_STYLES.get(report.level.value, "white")
    table = Table(title="Confidence Report", show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("Overall", f"[{style}]{report.overall:.3f} ({report.level.value})[/{style}]")
    table.add_row("Posterior", f"{report.posterior:.3f}")
    for name, value in report.components.items():
        table.add_row(f"  {name}", f"{value:.3f}")
    table.add_row(
        "Uncertainty",
        f"{report.uncertainty.total:.3f} "
        f"(aleatoric {report.uncertainty.aleatoric:.3f}, epistemic {report.uncertainty.epistemic:.3f})",
    )
    table.add_row("Calibrated from bin", "yes" if report.calibrated_from_bin else "no")
    if report.needs_human_review:
        table.add_row("Human review", "[yellow]Needed[/yellow]")
    if report.fallback_used:
        table.add_row("Fallback", "[red]used[/red]")
    console.print(table)

    explanation = report.explanation
    for title, items in (
        ("Primary factors", explanation.primary_factors),
        ("Uncertainty factors", explanation.uncertainty_factors),
        ("Recommendations", explanation.recommendations),
    ):
        if items:
            console.print(f"[bold]{title}[/bold]")
            for item in items:
                console.print(f"  - {item}")
    for boost in explanation.confidence_boosts:
        console.print(f"  + {boost.source} (+{boost.impact}): {boost.reason}")


def _print_bins(bins: list[Any]) -> None:
    table = Table(title="Calibration Bins", show_header=True)
    table.add_column("Range", style="cyan")
    table.add_column("Accuracy")
    table.add_column("Samples")
    table.add_column("Reliability")
    for b in bins:
        table.add_row(
            f"[{b.lower:.1f}, {b.upper:.1f})",
            f"{b.actual_accuracy:.3f}",
            str(b.sample_count),
            f"{b.reliability:.3f}",
        )
    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    cli()
