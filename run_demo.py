"""
End-to-end demo of the trigger analysis pipeline on a synthetic diary.

This script walks through:
1. Configuration loading
2. Normalizing raw food, medication and symptom rows
3. Correlation analysis with trigger and beneficial queries
4. Classification validation (sequential and concurrent) and the result cache
5. Error handling for insufficient data and malformed records

Run with: python run_demo.py
"""

import asyncio
import random
from datetime import UTC, datetime, timedelta
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from trigger_engine.config import get_config
from trigger_engine.domain.errors import InsufficientDataError
from trigger_engine.logging_config import configure_logging
from trigger_engine.services.engine import TriggerAnalysisEngine
from trigger_engine.services.normalizer import EventNormalizer

console = Console()

START = datetime(2024, 3, 1, tzinfo=UTC)


def synthetic_diary(days: int = 42, seed: int = 7) -> dict[str, list[dict[str, Any]]]:
    """
    Generate raw storage rows for a user whose bloating follows dairy.

    Dairy at breakfast raises that afternoon's bloating; magnesium citrate in the
    evening lowers it; coffee is noise.
    """
    rng = random.Random(seed)
    food_rows: list[dict[str, Any]] = []
    medication_rows: list[dict[str, Any]] = []
    symptom_rows: list[dict[str, Any]] = []

    for offset in range(days):
        day = START + timedelta(days=offset)
        had_dairy = rng.random() < 0.5
        took_magnesium = rng.random() < 0.3

        if had_dairy:
            food_rows.append(
                {
                    "timestamp": day.replace(hour=8).isoformat(),
                    "name": "Greek yogurt",
                    "category": "dairy",
                    "portion_size": "1 cup",
                }
            )
        if rng.random() < 0.6:
            food_rows.append(
                {"timestamp": day.replace(hour=9).isoformat(), "name": "Black coffee"}
            )
        if took_magnesium:
            medication_rows.append(
                {
                    "timestamp": day.replace(hour=7).isoformat(),
                    "name": "Magnesium citrate",
                    "dosage_amount": "200 mg",
                }
            )

        severity = 3 + (5 if had_dairy else 0) - (2 if took_magnesium else 0) + rng.randint(-1, 1)
        symptom_rows.append(
            {
                "timestamp": day.replace(hour=14).isoformat(),
                "outcome_id": "bloating",
                "severity": max(1, min(10, severity)),
            }
        )
        symptom_rows.append(
            {
                "timestamp": day.replace(hour=20).isoformat(),
                "outcome_id": "headache",
                "severity": rng.randint(1, 10),
            }
        )

    # one unusable row of each kind, dropped with a warning
    food_rows.append({"timestamp": "sometime tuesday", "name": "Cheese"})
    symptom_rows.append({"timestamp": START.isoformat(), "outcome_id": "bloating", "severity": 42})

    return {"food": food_rows, "medication": medication_rows, "symptoms": symptom_rows}


def demo_configuration() -> bool:
    """Show the active configuration."""

    console.print(Panel("🔧 Configuration", style="blue"))

    config = get_config()
    configure_logging(config.logging)

    table = Table(title="Analysis Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Environment", config.environment)
    table.add_row("Log level / format", f"{config.logging.level} / {config.logging.format}")
    for name, value in config.analysis.model_dump().items():
        table.add_row(name, str(value))

    console.print(table)
    return True


def demo_correlation(engine: TriggerAnalysisEngine, exposures, outcomes) -> bool:
    """Correlate every category with every symptom and summarize."""

    console.print(Panel("📊 Correlation Analysis", style="blue"))

    correlations = engine.align_and_correlate(exposures, outcomes)

    table = Table(title="Correlations (ranked by |r| x confidence)")
    table.add_column("Exposure", style="cyan")
    table.add_column("Symptom", style="magenta")
    table.add_column("r", style="green")
    table.add_column("Confidence", style="yellow")
    table.add_column("Days", style="white")
    table.add_column("Mean with / without", style="white")

    for c in correlations:
        table.add_row(
            c.exposure_category.display_name,
            c.outcome_id,
            f"{c.score:+.2f}",
            f"{c.confidence:.0%}",
            str(c.sample_size),
            f"{c.mean_with_exposure:.1f} / {c.mean_without_exposure:.1f}",
        )
    console.print(table)

    triggers = engine.top_triggers(exposures, outcomes, outcome_id="bloating")
    console.print(
        "Top bloating triggers: "
        + (", ".join(t.exposure_category.display_name for t in triggers) or "none"),
        style="red",
    )
    helpers = engine.beneficial_exposures(exposures, outcomes)
    console.print(
        "Beneficial exposures: "
        + (", ".join(b.exposure_category.display_name for b in helpers) or "none"),
        style="green",
    )

    insights = engine.correlation_insights(correlations)
    console.print(f"Risk score: {insights.risk_score:.0f}/100")
    for recommendation in insights.recommendations:
        console.print(f"  • {recommendation}")
    return True


async def demo_classification(engine: TriggerAnalysisEngine, exposures, outcomes) -> bool:
    """Validate the lag-feature scorer per symptom."""

    console.print(Panel("🧪 Classification Validation", style="blue"))

    results = await engine.validate_classification_async(exposures, outcomes)

    table = Table(title="Held-out Metrics")
    table.add_column("Symptom", style="cyan")
    table.add_column("Accuracy", style="green")
    table.add_column("Baseline", style="yellow")
    table.add_column("F1", style="green")
    table.add_column("PR-AUC", style="green")
    table.add_column("Top features", style="magenta")

    for r in results:
        table.add_row(
            r.outcome_id,
            f"{r.test_accuracy:.2f}",
            f"{r.baseline_accuracy:.2f}",
            f"{r.test_f1:.2f}",
            f"{r.pr_auc:.2f}",
            "; ".join(f.pretty_name for f in r.top_features),
        )
    console.print(table)

    cached = engine.get_cached_classification()
    console.print(
        f"✅ Cache holds {len(cached or [])} result(s) from {engine.cache.stored_at:%H:%M:%S}",
        style="green",
    )
    return True


def demo_error_handling(engine: TriggerAnalysisEngine, exposures, outcomes) -> bool:
    """A short history is refused as a whole."""

    console.print(Panel("🛡️ Error Handling", style="blue"))

    try:
        engine.validate_classification(exposures[:4], outcomes[:4])
    except InsufficientDataError as e:
        console.print(f"✅ Refused as expected: {e}", style="green")
        return True

    console.print("❌ Short history was not refused", style="red")
    return False


async def run_demo() -> None:
    """Run every demo step."""

    console.print(Panel("🍽️ Trigger Engine - Pipeline Demo", style="bold blue"))

    demo_configuration()

    raw = synthetic_diary()
    normalizer = EventNormalizer()
    exposures = normalizer.normalize_exposures(raw["food"], raw["medication"])
    outcomes = normalizer.normalize_outcomes(raw["symptoms"])
    console.print(
        f"Normalized {len(exposures)} exposures and {len(outcomes)} symptom readings",
        style="green",
    )

    engine = TriggerAnalysisEngine(get_config().analysis)
    steps = [
        ("Correlation", lambda: demo_correlation(engine, exposures, outcomes)),
        ("Error Handling", lambda: demo_error_handling(engine, exposures, outcomes)),
    ]

    results = [("Classification", await demo_classification(engine, exposures, outcomes))]
    for name, step in steps:
        console.print(f"\n{'=' * 60}")
        results.append((name, step()))

    summary_table = Table(title="Demo Summary")
    summary_table.add_column("Step", style="cyan")
    summary_table.add_column("Result", style="white")
    for name, ok in results:
        summary_table.add_row(name, "✅ OK" if ok else "❌ FAILED")
    console.print(summary_table)


if __name__ == "__main__":
    try:
        asyncio.run(run_demo())
    except KeyboardInterrupt:
        console.print("\n👋 Demo stopped by user", style="yellow")
