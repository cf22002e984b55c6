"""CLI for crowny - run ternary tasks locally or against a crowny service."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from crowny import __version__
from crowny.client import CrownyClient
from crowny.config import ClientConfig
from crowny.header import ProtocolHeader
from crowny.local import LocalInterpreter
from crowny.schemas import ConsensusResult, TaskResult
from crowny.trit import Trit

# Process exit status per result state
EXIT_CODES = {
    Trit.SUCCESS: 0,
    Trit.FAILED: 1,
    Trit.PENDING: 2,
}

SLOT_NAMES = ["state", "permission", "consensus"] + [f"reserved-{i}" for i in range(3, 9)]


@click.group()
@click.version_option(version=__version__, prog_name="crowny")
@click.option("--url", default=None, help="Base URL of the crowny service")
@click.option("--timeout", default=None, type=float, help="Per-request timeout in seconds")
@click.option("--json", "as_json", is_flag=True, help="Output raw JSON instead of formatted text")
@click.option("-v", "--verbose", is_flag=True, help="Enable info logging")
@click.pass_context
def main(ctx: click.Context, url: str | None, timeout: float | None, as_json: bool, verbose: bool) -> None:
    """crowny - balanced-ternary task client.

    Every command resolves to Success (P), Pending (O) or Failed (T).
    Exit status is 0, 2 and 1 respectively.
    """
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["url"] = url
    ctx.obj["timeout"] = timeout
    ctx.obj["json"] = as_json


def _make_client(ctx: click.Context) -> CrownyClient:
    config = ClientConfig.from_env(base_url=ctx.obj["url"], timeout=ctx.obj["timeout"])
    return CrownyClient(config=config)


def _echo_result(ctx: click.Context, result: TaskResult) -> None:
    if ctx.obj["json"]:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))
    else:
        click.echo(f"[{result.state.value}] {result.state.korean} ({result.elapsed_ms}ms)")
        if result.data is not None:
            click.echo(result.data if isinstance(result.data, str) else json.dumps(result.data, ensure_ascii=False))
    ctx.exit(EXIT_CODES[result.state])


def _echo_consensus(ctx: click.Context, result: ConsensusResult) -> None:
    if ctx.obj["json"]:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))
    else:
        click.echo(f"\n{'=' * 60}")
        click.echo(f"Consensus: {result.consensus.value} ({result.consensus.korean})")
        click.echo(f"Header: {result.header} | Elapsed: {result.elapsed_ms}ms")
        click.echo(f"{'=' * 60}\n")
        for i, entry in enumerate(result.per_source, 1):
            click.echo(f"  {i}. {entry.source}: {entry.result.state.value} ({entry.result.elapsed_ms}ms)")
    ctx.exit(EXIT_CODES[result.consensus])


@main.command()
@click.argument("source_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--local", "-l", is_flag=True, help="Evaluate with the local interpreter")
@click.pass_context
def run(ctx: click.Context, source_file: Path, local: bool) -> None:
    """Run a crowny program.

    \b
    Example:
        crowny run program.crw --local
        crowny --url http://localhost:7293 run program.crw
    """
    source = source_file.read_text(encoding="utf-8")

    if local:
        interpreter = LocalInterpreter(on_print=lambda value: click.echo(f"[crowny] {value}"))
        result = interpreter.execute(source)
    else:
        result = _make_client(ctx).run(source)

    _echo_result(ctx, result)


@main.command(name="compile")
@click.argument("source_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def compile_command(ctx: click.Context, source_file: Path) -> None:
    """Compile a crowny program on the service."""
    result = _make_client(ctx).compile(source_file.read_text(encoding="utf-8"))
    _echo_result(ctx, result)


@main.command()
@click.argument("prompt")
@click.option("--model", "-m", default=None, help="Model to ask (defaults to claude)")
@click.pass_context
def ask(ctx: click.Context, prompt: str, model: str | None) -> None:
    """Send a prompt to one language model."""
    result = _make_client(ctx).ask(prompt, model)
    _echo_result(ctx, result)


@main.command(name="consensus")
@click.argument("prompt")
@click.option("--source", "-s", "sources", multiple=True, help="Source to poll (repeatable)")
@click.pass_context
def consensus_command(ctx: click.Context, prompt: str, sources: tuple[str, ...]) -> None:
    """Ask several sources in parallel and take a ternary majority vote.

    \b
    Example:
        crowny consensus "is this safe?"
        crowny consensus "is this safe?" -s claude -s gpt4 -s gemini
    """
    result = _make_client(ctx).consensus_call(prompt, list(sources) or None)
    _echo_consensus(ctx, result)


@main.command()
@click.pass_context
def ping(ctx: click.Context) -> None:
    """Check that the crowny service is reachable."""
    result = _make_client(ctx).ping()
    _echo_result(ctx, result)


@main.command()
@click.argument("value")
@click.pass_context
def header(ctx: click.Context, value: str) -> None:
    """Decode a 9-character protocol header such as PPPOOOOOO."""
    parsed = ProtocolHeader.parse(value)
    overall = parsed.overall_state()

    if ctx.obj["json"]:
        click.echo(json.dumps({
            "header": parsed.serialize(),
            "slots": dict(zip(SLOT_NAMES, (t.value for t in parsed.trits))),
            "overall": overall.value,
        }, indent=2))
        return

    click.echo(f"Header: {parsed}")
    for name, trit in zip(SLOT_NAMES, parsed.trits):
        click.echo(f"  {name:<12} {trit.value} ({trit.korean})")
    click.echo(f"Overall: {overall.value} ({overall.korean})")


if __name__ == "__main__":
    main()
