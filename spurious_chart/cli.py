"""Command-line interface for spurious-chart."""

import logging

import click
import yaml

from spurious_chart.app import SpuriousChart
from spurious_chart.config import load_config
from spurious_chart.errors import ConfigError, InvalidInputError
from spurious_chart.geometry import ChartInput, validate_input


def _chart_options(func):
    func = click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False),
                        default=None, help="YAML file overriding sizing and fonts")(func)
    func = click.option("--sketch/--vector", default=False, help="Hand-drawn or clean vector style")(func)
    func = click.option("--start", "-s", required=True, help="Start date, e.g. 2020-01-01")(func)
    func = click.option("--value", "-v", "value", required=True, help="Current value, -20 to 100")(func)
    func = click.option("--title", "-t", default="", help="Chart title")(func)
    return func


def _build(title, value, start, config_path):
    try:
        sizing, fonts = load_config(config_path)
    except ConfigError as e:
        raise click.BadParameter(str(e), param_hint="--config") from e

    chart_input = ChartInput.from_strings(title, value, start)
    try:
        validate_input(chart_input)
    except InvalidInputError as e:
        raise click.UsageError(str(e)) from e
    return SpuriousChart(sizing, fonts), chart_input


@click.group()
@click.option("--verbose", is_flag=True, help="Log progress to stderr")
def cli(verbose: bool):
    """Render spurious correlation charts."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@_chart_options
@click.option("--output", "-o", default="chart.png", help="PNG file to write")
@click.option("--html", "html_path", default=None, help="Also write an HTML page showing the chart")
@click.option("--svg", "svg_path", default=None, help="Also write the SVG markup (vector style only)")
def generate(title, value, start, sketch, config_path, output, html_path, svg_path):
    """Render a chart to PNG."""
    chart, chart_input = _build(title, value, start, config_path)

    image = chart.generate_sync(chart_input, sketch=sketch)
    if image is None:
        raise click.ClickException("Chart rendering failed")

    png_path = image.save(output)
    click.echo(f"PNG file created: {png_path}")

    if html_path:
        chart.container.title = title or chart.container.title
        page = chart.container.save_html(html_path)
        click.echo(f"HTML file created: {page}")

    if svg_path:
        if sketch or chart.last_scene is None:
            click.echo("SVG output is only available for the vector style", err=True)
        else:
            with open(svg_path, "w", encoding="utf-8") as f:
                f.write(chart.last_scene.svg)
            click.echo(f"SVG file created: {svg_path}")


@cli.command()
@_chart_options
def plan(title, value, start, sketch, config_path):
    """Print the computed chart geometry as YAML."""
    chart, chart_input = _build(title, value, start, config_path)
    geometry = chart.plan(chart_input, sketch=sketch)
    click.echo(yaml.safe_dump(geometry.to_dict(), allow_unicode=True, sort_keys=False))


if __name__ == "__main__":
    cli()
