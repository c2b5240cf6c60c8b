"""AI project deployer CLI entrypoint."""
import signal
import threading
import typer
from pathlib import Path
from rich.table import Table
from typing import Optional

from aiprovisioner.bicep.generator import BicepGenerator
from aiprovisioner.console import console
from aiprovisioner.deploy.provider import AzureCliProvisioner, DryRunProvisioner
from aiprovisioner.deploy.runner import DeploymentRunner
from aiprovisioner.errors import DeploymentCancelled, DeploymentError, ProvisioningError
from aiprovisioner.manifest.parser import ManifestParser

app = typer.Typer(help="AI project deployer - plans and provisions an AI project's dependent resources")

def _print_materialized(materialized) -> None:
    if not materialized:
        console.print("[yellow]No resources were materialized.[/]")
        return
    console.print("[yellow]Resources materialized before the run stopped:[/]")
    for kind, resource in materialized.items():
        console.print(f"  [green]●[/green] {kind.value} ({resource.created_at.isoformat()})")

@app.command("plan")
def plan(
    config: str = typer.Option("infra.yaml", "--config", "-c", help="Path to the AI project YAML manifest"),
    debug: bool = typer.Option(False, "--debug", help="Print condition and dependency details")
):
    """Show the deployment plan without provisioning anything."""
    try:
        manifest = ManifestParser.load(config)
        deployment_plan = DeploymentRunner(manifest, DryRunProvisioner(manifest), debug=debug).plan()
    except (DeploymentError, FileNotFoundError) as e:
        console.print(f"[bold red]Error: {e}[/]")
        raise typer.Exit(code=1)

    table = Table(title=f"Deployment Plan - {manifest.project_name}")
    table.add_column("#", justify="right")
    table.add_column("Resource", style="cyan")
    table.add_column("Connection")
    table.add_column("Depends on")
    table.add_column("Reason")
    for index, spec in enumerate(deployment_plan, start=1):
        depends = ", ".join(k.value for k in deployment_plan.dependencies_of(spec.kind))
        table.add_row(str(index), spec.identifier, spec.connection_name or "-", depends or "-",
                      deployment_plan.conditions[spec.kind].reason)
    console.print(table)

    skipped = deployment_plan.disabled()
    if skipped:
        skipped_table = Table(title="Skipped Resources")
        skipped_table.add_column("Resource", style="dim")
        skipped_table.add_column("Reason")
        for kind, condition in skipped.items():
            skipped_table.add_row(kind.value, condition.reason)
        console.print(skipped_table)

@app.command("generate")
def generate(
    config: str = typer.Option("infra.yaml", "--config", "-c", help="Path to the AI project YAML manifest"),
    output_dir: str = typer.Option(None, "--output-dir", "-o", help="Directory for generated Bicep files"),
    debug: bool = typer.Option(False, "--debug", help="Print verbose debug information"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing Bicep files")
):
    """Generate Bicep templates for the deployment plan."""
    console.print("[bold blue]Generating Bicep files...[/]")

    try:
        manifest = ManifestParser.load(config)
        deployment_plan = DeploymentRunner(manifest, DryRunProvisioner(manifest), debug=debug).plan()
    except (DeploymentError, FileNotFoundError) as e:
        console.print(f"[bold red]Error: {e}[/]")
        raise typer.Exit(code=1)

    output_path = Path(output_dir) if output_dir else Path(config).parent
    main_bicep_path = output_path / "main.bicep"
    if main_bicep_path.exists() and not force:
        console.print(f"[bold yellow]WARNING: Bicep files already exist in {output_path}[/]")
        console.print("[yellow]Use --force to overwrite existing files.[/]")
        raise typer.Exit(code=1)

    bicep_path, params_path = BicepGenerator(manifest, deployment_plan, debug=debug).generate(str(output_path))
    console.print(f"[green]Bicep template generated at {bicep_path}[/]")
    console.print(f"[green]Parameters file generated at {params_path}[/]")

@app.command("deploy")
def deploy(
    config: str = typer.Option("infra.yaml", "--config", "-c", help="Path to the AI project YAML manifest"),
    what_if: bool = typer.Option(False, "--what-if", help="Run against placeholder outputs without calling Azure"),
    max_parallel: Optional[int] = typer.Option(None, "--max-parallel", "-p", min=1, help="Maximum concurrent resource deployments"),
    output: str = typer.Option("deployment-outputs.json", "--output", "-o", help="Path for the deployment outputs"),
    debug: bool = typer.Option(False, "--debug", help="Print verbose debug information including all Azure CLI commands")
):
    """Provision the AI project and its dependent resources."""
    console.print("[bold blue]Deploying resources...[/]")

    try:
        manifest = ManifestParser.load(config)
    except (DeploymentError, FileNotFoundError) as e:
        console.print(f"[bold red]Error: {e}[/]")
        raise typer.Exit(code=1)

    client = DryRunProvisioner(manifest) if what_if else AzureCliProvisioner(manifest, debug=debug)
    runner = DeploymentRunner(manifest, client, debug=debug)

    # Ctrl-C stops the run between resources
    cancel = threading.Event()
    previous = signal.signal(signal.SIGINT, lambda *_: cancel.set())
    try:
        result = runner.run(cancel_event=cancel, max_workers=max_parallel)
    except ProvisioningError as e:
        console.print(f"[bold red]Deployment failed: {e}[/]")
        _print_materialized(e.materialized)
        raise typer.Exit(code=1)
    except DeploymentCancelled as e:
        console.print(f"[bold yellow]{e}[/]")
        _print_materialized(e.materialized)
        raise typer.Exit(code=1)
    except DeploymentError as e:
        console.print(f"[bold red]Error: {e}[/]")
        raise typer.Exit(code=1)
    finally:
        signal.signal(signal.SIGINT, previous)

    table = Table(title="Dependent Resources")
    table.add_column("Resource", style="cyan")
    table.add_column("Output")
    table.add_column("Value")
    for key, values in result.outputs.items():
        for name, value in values.items():
            table.add_row(key, name, value or "[dim]-[/]")
    console.print(table)

    result.save(output)
    console.print(f"[green]Deployment outputs saved to {output}[/]")
    if what_if:
        console.print("\n[green]What-if run completed. No resources were modified.[/]")
    else:
        console.print("\n[green]Deployment completed successfully![/]")

if __name__ == "__main__":
    app()
