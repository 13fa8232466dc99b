"""
Command-line interface for AgentReady
"""
import dataclasses
import json
import os

import click

from core.config import settings
from core.logging import get_logger
from d1_plugins.plugins.file_size import RepositoryFile, compute_file_size_analysis

logger = get_logger(__name__)


@click.group()
@click.version_option(version=settings.app_version)
def cli():
    """AgentReady CLI - AI agent readiness assessment"""
    pass


@cli.command()
@click.option("--host", default="0.0.0.0", help="Host to bind to")
@click.option("--port", default=8000, help="Port to bind to")
@click.option("--reload", is_flag=True, help="Enable auto-reload")
def runserver(host: str, port: int, reload: bool):
    """Run the FastAPI development server"""
    import uvicorn

    click.echo(f"Starting AgentReady server on {host}:{port}")
    click.echo(f"Environment: {settings.environment}")
    click.echo(f"AI assessment: {'enabled' if settings.enable_ai_assessment else 'disabled'}")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


@cli.command("show-config")
def show_config():
    """Print the effective settings with secrets masked"""
    click.echo(json.dumps(settings.model_dump(), indent=2, default=str))


def list_repository_files(root: str) -> list:
    """Every file under root with its size, paths relative to root, .git skipped"""
    files = []
    for directory, subdirectories, names in os.walk(root):
        subdirectories[:] = sorted(d for d in subdirectories if d != ".git")
        for name in sorted(names):
            path = os.path.join(directory, name)
            if os.path.islink(path):
                continue
            relative = os.path.relpath(path, root).replace(os.sep, "/")
            files.append(RepositoryFile(path=relative, size_bytes=os.path.getsize(path)))
    return files


@cli.command("file-sizes")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
def file_sizes(path: str):
    """Score a local checkout for agent file-size limits"""
    files = list_repository_files(path)
    analysis = compute_file_size_analysis(files)
    logger.debug(f"Scored {len(files)} files under {path}: overall={analysis.agent_compatibility.overall}")
    click.echo(json.dumps(dataclasses.asdict(analysis), indent=2))


def main():
    """Main entry point"""
    cli()


if __name__ == "__main__":
    main()
