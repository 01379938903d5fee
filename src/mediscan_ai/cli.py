from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer

from .config import settings
from .errors import AnalysisError, IngestError
from .logging import get_logger
from .preprocess.ingestor import SourceFile, ingest
from .schemas import analysis_response_schema
from .services.analyze import Analyzer

app = typer.Typer(add_completion=False)
logger = get_logger("mediscan.cli")

EXTENSION_BY_MIME = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/bmp": ".bmp",
}


def _fail(message: str, code: int) -> None:
    typer.secho(f"[error] {message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code)


@app.command("ingest")
def ingest_cli(
    file: Path = typer.Argument(..., exists=True, readable=True, help="Image or PDF document"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Where to write the normalized image"),
):
    """Normalize a document into the single image that would be sent for analysis."""
    source = SourceFile.from_path(file)
    try:
        image = ingest(source)
    except IngestError as e:
        _fail(e.message, 2)

    raw = image.raw_bytes()
    typer.secho("== Ingestion Summary ==", fg=typer.colors.CYAN, bold=True)
    typer.echo(f"Source type     : {source.mime_type}")
    typer.echo(f"Source bytes    : {len(source.data)}")
    typer.echo(f"Normalized type : {image.mime_type}")
    typer.echo(f"Normalized bytes: {len(raw)}")

    if out is None:
        out = Path("normalized_" + file.stem + EXTENSION_BY_MIME.get(image.mime_type, ".img"))
    out.write_bytes(raw)
    typer.secho(f"\nSaved normalized image -> {out}", fg=typer.colors.GREEN, bold=True)


@app.command("analyze")
def analyze_cli(
    file: Path = typer.Argument(..., exists=True, readable=True),
    question: str = typer.Option("", "--question", "-q", help="Optional specific question"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result JSON"),
):
    """Full pipeline: ingest -> Gemini analysis -> structured result."""
    source = SourceFile.from_path(file)
    try:
        image = ingest(source)
    except IngestError as e:
        _fail(e.message, 2)

    try:
        result = Analyzer().analyze(image, question)
    except AnalysisError as e:
        _fail(f"{e.kind.value}: {e.message}", 1)

    if as_json:
        typer.echo(json.dumps(result.to_wire(), indent=2))
        raise typer.Exit(0)

    dx = result.potential_diagnosis
    typer.secho(f"== {result.document_type} ==", fg=typer.colors.CYAN, bold=True)
    typer.echo(result.document_summary)
    typer.secho("\n== Potential Diagnosis ==", fg=typer.colors.CYAN, bold=True)
    typer.echo(f"{dx.condition} ({dx.confidence_percent}% confidence)")
    typer.echo(dx.reasoning)

    if result.has_lab_results:
        typer.secho("\n== Lab Results ==", fg=typer.colors.CYAN, bold=True)
        for lab in result.lab_results:
            typer.echo(f"  {lab.test_name:24s} {lab.value:>12s}  [{lab.reference_range}]  {lab.interpretation}")

    if result.has_medications:
        typer.secho("\n== Medications ==", fg=typer.colors.CYAN, bold=True)
        for med in result.medications:
            typer.echo(f"  {med.name}: {med.dosage} ({med.purpose})")

    typer.secho("\n== Recommendations ==", fg=typer.colors.CYAN, bold=True)
    for i, rec in enumerate(result.recommendations, 1):
        typer.echo(f"[{i}] {rec}")


@app.command("schema")
def schema_cli():
    """Print the response schema sent with every analysis request."""
    typer.echo(json.dumps(analysis_response_schema(), indent=2))


@app.command("serve")
def serve_cli(
    host: Optional[str] = typer.Option(None, "--host", help="Defaults to API_HOST"),
    port: Optional[int] = typer.Option(None, "--port", help="Defaults to API_PORT"),
):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    host = host or settings.api_host
    port = port or settings.api_port
    logger.info("Serving API on %s:%d (model=%s)", host, port, settings.gemini_model)
    uvicorn.run("mediscan_ai.api:app", host=host, port=port)


if __name__ == "__main__":
    app()
