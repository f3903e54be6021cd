"""
Helm Template Service - Render packaged Helm charts over HTTP.
Downloads a .tgz chart, unpacks it safely and renders it with helm template.
"""

import json
from pathlib import Path
import yaml
import click
import uvicorn

from .app import create_app, __version__
from .errors import TemplateServiceError
from .pipeline import TemplateService
from .request_parser import parse_query
from .settings import Settings
from .utils import log


class KeyValueParamType(click.ParamType):
    """Custom Click parameter type for key=value pairs."""
    name = "key_value"

    def convert(self, value, param, ctx):
        if '=' not in value:
            self.fail(f'{value} is not a valid key=value pair', param, ctx)
        key, val = value.split('=', 1)
        return (key.strip(), val.strip())


def build_settings(**overrides) -> Settings:
    """Create Settings from the environment, overridden by CLI options that were given."""
    return Settings(**{key: value for key, value in overrides.items() if value is not None})


def load_values_file(path: Path) -> dict:
    """
    Load override values from a YAML file.

    Raises:
        click.ClickException: If the file is not a YAML mapping
    """
    with open(path) as f:
        values = yaml.safe_load(f)
    if values is None:
        return {}
    if not isinstance(values, dict):
        raise click.ClickException(f"Invalid values file {path}: mapping expected")
    return values


def apply_set_values(values: dict, set_values: tuple) -> dict:
    """
    Apply --set key=value pairs on top of values.

    Dotted keys create nested mappings (image.tag=1.2 -> {"image": {"tag": 1.2}}).
    Values are parsed as YAML scalars.
    """
    merged = dict(values)
    for key, raw_value in set_values:
        parts = key.split(".")
        node = merged
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[parts[-1]] = yaml.safe_load(raw_value) if raw_value else ""
    return merged


@click.group()
@click.version_option(version=__version__, prog_name='helm-template-service')
def cli():
    """Helm Template Service - Render packaged Helm charts over HTTP.

    Downloads a .tgz chart archive, extracts it into a scratch directory and
    renders it with helm template.
    """
    pass


@cli.command()
@click.option('--host', default=None, help='Interface to bind (default: 0.0.0.0)')
@click.option('--port', type=int, default=None, help='Port to listen on (default: 8080)')
@click.option(
    '--static-dir',
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help='Directory with static assets served under / (default: bundled form)'
)
@click.option('--helm', 'helm_binary', default=None, help='helm executable (default: helm)')
@click.option('--verbose', is_flag=True, help='Enable verbose output')
def serve(host, port, static_dir, helm_binary, verbose):
    """Start the HTTP server.

    Examples:

      helm-template-service serve

      helm-template-service serve --port 9000 --verbose
    """
    settings = build_settings(
        host=host,
        port=port,
        static_dir=static_dir,
        helm_binary=helm_binary,
        verbose=verbose or None,
    )
    app = create_app(settings)

    log(f"Starting server on http://{settings.host}:{settings.port}", True)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="info" if settings.verbose else "warning")


@cli.command()
@click.argument('chart_url')
@click.option(
    '--values', 'values_file',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help='YAML file with override values'
)
@click.option(
    '--set', 'set_values',
    multiple=True,
    type=KeyValueParamType(),
    help='Override a single value (use multiple times: --set image.tag=1.2 --set replicas=3)'
)
@click.option('--json', 'as_json', is_flag=True, help='Print the JSON response instead of raw manifests')
@click.option('--helm', 'helm_binary', default=None, help='helm executable (default: helm)')
@click.option('--verbose', is_flag=True, help='Enable verbose output')
def render(chart_url, values_file, set_values, as_json, helm_binary, verbose):
    """Render a chart archive once, without starting the server.

    Examples:

      helm-template-service render https://example.test/foo-1.0.0.tgz

      helm-template-service render https://example.test/foo-1.0.0.tgz --set replicaCount=2 --json
    """
    settings = build_settings(helm_binary=helm_binary, verbose=verbose or None)

    values = load_values_file(values_file) if values_file else {}
    values = apply_set_values(values, set_values)

    try:
        request = parse_query({"chartUrl": chart_url, "values": json.dumps(values)}, raw=not as_json)
        result = TemplateService(settings).render(request)
    except TemplateServiceError as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps(result.to_payload(), indent=2))
    else:
        click.echo(result.templates, nl=False)


__all__ = ["cli", "create_app", "build_settings", "TemplateService", "Settings"]
