"""WorkPulse authorization CLI (wpauthz)."""

from pathlib import Path
from typing import Optional

import typer

from workpulse.core.config import settings
from workpulse.core.errors import RoleTableError
from workpulse.core.logging import configure_logging

app = typer.Typer(name="wpauthz", help="WorkPulse authorization tooling")


@app.command("verify-matrix")
def verify_matrix(
    role_table: Path = typer.Option(settings.role_table_path, help="Role table JSON to verify"),
    output_dir: Path = typer.Option(settings.report_dir, help="Directory for the JSON and CSV reports"),
    use_catalog: bool = typer.Option(False, "--use-catalog", help="Expand permissions into the route catalog"),
    permission: Optional[list[str]] = typer.Option(None, "--permission", "-p", help="Limit to these permission keys"),
    workers: int = typer.Option(1, min=1, help="Evaluate combinations in a thread pool"),
):
    """Run every role × permission × relationship combination and export the matrix."""
    from workpulse.api.catalog import ENDPOINTS
    from workpulse.services.matrix_verifier import PermissionMatrixVerifier, write_csv, write_json
    from workpulse.services.role_registry import RoleRegistry

    configure_logging()
    try:
        registry = RoleRegistry.from_file(role_table)
    except RoleTableError as exc:
        typer.echo(f"Could not load role table: {exc.message}", err=True)
        raise typer.Exit(code=2)

    verifier = PermissionMatrixVerifier.from_registry(registry, max_workers=workers)
    report = verifier.run(
        permissions=permission or None,
        endpoints=ENDPOINTS if use_catalog else None,
    )

    stamp = report.generated_at.strftime("%Y%m%dT%H%M%SZ")
    json_path = write_json(report, output_dir / f"permission-matrix-{stamp}.json")
    csv_path = write_csv(report, output_dir / f"permission-matrix-{stamp}.csv")

    summary = report.summary
    typer.echo(f"Role table version       : {report.role_table_version}")
    typer.echo(f"Total combinations tested: {summary.total}")
    typer.echo(f"PASS                     : {summary.passed}")
    typer.echo(f"FAIL                     : {summary.failed}")
    typer.echo(f"Pass rate                : {summary.pass_rate:.2f}%")
    typer.echo(f"JSON report: {json_path}")
    typer.echo(f"CSV matrix : {csv_path}")

    if not report.success:
        for row in report.rows:
            if not row.passed:
                typer.echo(
                    f"  FAIL {row.role} {row.permission} {row.relationship.value}: "
                    f"got {row.decision}, expected {row.expected}",
                    err=True,
                )
        raise typer.Exit(code=1)


@app.command("check-graph")
def check_graph(
    staff_seed: Path = typer.Option(settings.staff_seed_path, help="Staff records JSON"),
):
    """Report reporting-line cycles in a staff export."""
    import json

    from workpulse.models.staff import Staff
    from workpulse.services.org_graph import OrgGraph

    raw = json.loads(staff_seed.read_text(encoding="utf-8"))
    graph = OrgGraph(Staff(**row) for row in raw)
    cycles = graph.find_cycles()
    if not cycles:
        typer.echo(f"✅ {len(graph)} staff records, no reporting cycles")
        return
    for cycle in cycles:
        typer.echo(f"❌ cycle: {' -> '.join(map(str, cycle + cycle[:1]))}", err=True)
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
