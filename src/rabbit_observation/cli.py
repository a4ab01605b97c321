"""
rabbit-observation CLI - inspect listener observation conventions.

Commands:
    rabbit-observation describe   Show the listener observation and its key catalog
    rabbit-observation preview    Show the name and attributes for a sample message
    rabbit-observation check      Check a custom convention against the key catalog

Usage:
    rabbit-observation describe --format markdown
    rabbit-observation preview --listener-id orders-listener --source orders-queue \\
        --exchange "" --routing-key orders.created
    rabbit-observation check --convention myapp.telemetry:TenantConvention
"""

import json
from typing import Optional

import click

from rabbit_observation.compat import check_convention_compatibility
from rabbit_observation.config import ConventionResolutionError, get_config, load_convention
from rabbit_observation.context import Message, MessageProperties, RabbitMessageReceiverContext
from rabbit_observation.documentation import LISTENER_OBSERVATION
from rabbit_observation.logger import configure_logging


def _sample_options(f):
    f = click.option("--routing-key", default="", help="Received routing key")(f)
    f = click.option("--exchange", default="", help="Received exchange ('' for the default exchange)")(f)
    f = click.option("--source", default="", help="Source label (usually the queue name)")(f)
    f = click.option("--listener-id", default="", help="Listener identifier")(f)
    return f


def _sample_context(
    listener_id: str, source: str, exchange: str, routing_key: str
) -> RabbitMessageReceiverContext:
    message = Message(
        properties=MessageProperties(
            received_exchange=exchange,
            received_routing_key=routing_key,
            consumer_queue=source,
        )
    )
    return RabbitMessageReceiverContext.for_message(message, listener_id, source=source)


def _resolve(path: Optional[str]):
    try:
        custom = load_convention(path) if path else None
    except ConventionResolutionError as e:
        raise click.ClickException(str(e)) from e
    return LISTENER_OBSERVATION.resolve_convention(custom)


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default=None,
    help="Override RABBIT_OBSERVATION_LOG_LEVEL",
)
@click.option(
    "--log-format",
    type=click.Choice(["json", "text"]),
    default=None,
    help="Override RABBIT_OBSERVATION_LOG_FORMAT",
)
def main(log_level: Optional[str], log_format: Optional[str]):
    """Inspect RabbitMQ listener observation conventions."""
    config = get_config()
    configure_logging(
        level=log_level or config.log_level,
        fmt=log_format or config.log_format,
    )


@main.command()
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json", "markdown"]),
    default="text",
    help="Output format",
)
def describe(output_format: str):
    """Show the listener observation and its low-cardinality keys."""
    doc = LISTENER_OBSERVATION
    convention = doc.default_convention()

    if output_format == "json":
        click.echo(json.dumps({
            "name": doc.name,
            "prefix": doc.prefix,
            "default_convention": type(convention).__name__,
            "low_cardinality_keys": [
                {"name": key.name, "wire_name": key.as_string()}
                for key in doc.low_cardinality_key_names
            ],
            "high_cardinality_keys": list(doc.high_cardinality_key_names),
        }, indent=2))
    elif output_format == "markdown":
        click.echo(f"## {doc.name}\n")
        click.echo(f"Prefix: `{doc.prefix}`  ")
        click.echo(f"Default convention: `{type(convention).__name__}`\n")
        click.echo("| Key | Wire name |")
        click.echo("|-----|-----------|")
        for key in doc.low_cardinality_key_names:
            click.echo(f"| {key.name} | `{key.as_string()}` |")
    else:
        click.echo(f"Observation: {doc.name}")
        click.echo(f"Prefix:      {doc.prefix}")
        click.echo(f"Convention:  {type(convention).__name__}")
        click.echo("Low cardinality keys:")
        for key in doc.low_cardinality_key_names:
            click.echo(f"  {key.name:<12} {key.as_string()}")


@main.command()
@_sample_options
@click.option("--convention", "convention_path", default=None, help="Custom convention 'module:Attribute'")
def preview(listener_id, source, exchange, routing_key, convention_path):
    """Show the name and attributes produced for a sample message."""
    convention = _resolve(convention_path or get_config().convention)
    context = _sample_context(listener_id, source, exchange, routing_key)

    click.echo(json.dumps({
        "convention": type(convention).__name__,
        "name": convention.get_contextual_name(context),
        "low_cardinality": convention.get_low_cardinality_key_values(context).to_dict(),
        "high_cardinality": convention.get_high_cardinality_key_values(context).to_dict(),
    }, indent=2))


@main.command()
@_sample_options
@click.option("--convention", "convention_path", required=True, help="Custom convention 'module:Attribute'")
def check(listener_id, source, exchange, routing_key, convention_path):
    """Check a custom convention keeps the documented wire-names."""
    convention = _resolve(convention_path)
    context = _sample_context(
        listener_id or "sample-listener",
        source or "sample-queue",
        exchange,
        routing_key or "sample.key",
    )
    result = check_convention_compatibility(convention, context)

    status = "PASS" if result.passed else "FAIL"
    click.echo(f"{status}: {result.convention}")
    for key in result.missing_keys:
        click.echo(f"  missing: {key}")
    for key in result.extra_keys:
        click.echo(f"  extra:   {key}")
    if result.out_of_order:
        click.echo("  keys are not in catalog order")

    if not result.passed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
