"""Human-readable console rendering of scanned test events."""

from __future__ import annotations

import click

from .test_line_events import FailedTest, FailureDetail, SuiteSummary, TestLineEvent


def render_event(event: TestLineEvent) -> str:
    """Return the colorized console line for ``event``."""
    if isinstance(event, FailedTest):
        return click.style(f"  ✗ {event.test_name}", fg="red")
    if isinstance(event, FailureDetail):
        return click.style(f"    {event.message}", fg="red")
    return render_summary(event)


def render_summary(summary: SuiteSummary) -> str:
    if summary.failed == 0:
        passed = click.style(f"{summary.passed} passed", fg="green")
        return f"{passed}, 0 failed, {summary.total} total"
    failed = click.style(f"{summary.failed} failed", fg="red")
    return f"\n{summary.passed} passed, {failed}, {summary.total} total"


class ConsoleProgressReporter:
    """Progress reporter writing run status and scanned events to the terminal."""

    def on_status(self, message: str) -> None:
        click.echo(message)

    def on_event(self, event: TestLineEvent) -> None:
        click.echo(render_event(event))

    def on_no_tests(self) -> None:
        click.echo(click.style("No tests found", fg="yellow"))
