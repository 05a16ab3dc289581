import asyncio
import dataclasses
import functools
from collections.abc import Callable, Sequence
from typing import Any

import click

from kubeloop._cogs.clients import auth, errors, watching
from kubeloop._cogs.configs import configuration
from kubeloop._cogs.helpers import loaders
from kubeloop._cogs.structs import credentials, definitions
from kubeloop._core.actions import definitions as registering
from kubeloop._core.engines import loggers
from kubeloop._core.intents import piggybacking, registries
from kubeloop._core.reactor import queueing, running


@dataclasses.dataclass()
class CLIControls:
    """ The controls which are impossible to pass via CLI (used in tests and embedding). """
    registry: registries.OperatorRegistry | None = None
    settings: configuration.OperatorSettings | None = None


class LogFormatParamType(click.Choice):

    def __init__(self) -> None:
        super().__init__(choices=[v.name.lower() for v in loggers.LogFormat])

    def convert(self, value: Any, param: Any, ctx: Any) -> loggers.LogFormat:
        if isinstance(value, loggers.LogFormat):
            return value
        name: str = super().convert(value, param, ctx)
        return loggers.LogFormat[name.upper()]


def logging_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to configure logging in all commands the same way."""
    @click.option('-v', '--verbose', is_flag=True)
    @click.option('-d', '--debug', is_flag=True)
    @click.option('-q', '--quiet', is_flag=True)
    @click.option('--log-format', type=LogFormatParamType(), default='full')
    @click.option('--log-refkey', type=str)
    @click.option('--log-prefix/--no-log-prefix', default=None)
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(verbose: bool, quiet: bool, debug: bool,
                log_format: loggers.LogFormat = loggers.LogFormat.FULL,
                log_prefix: bool | None = False,
                log_refkey: str | None = None,
                *args: Any, **kwargs: Any) -> Any:
        loggers.configure(debug=debug, verbose=verbose, quiet=quiet,
                          log_format=log_format, log_refkey=log_refkey, log_prefix=log_prefix)
        return fn(*args, **kwargs)

    return wrapper


@click.version_option(prog_name='kubeloop')
@click.group(name='kubeloop', context_settings=dict(
    auto_envvar_prefix='KUBELOOP',
))
def main() -> None:
    pass


@main.command()
@logging_options
@click.option('--reconnect-backoff', type=float, default=None)
@click.option('--queue-size', type=int, default=None)
@click.option('--halt-on-errors', is_flag=True, default=None)
@click.option('-m', '--module', 'modules', multiple=True)
@click.argument('paths', nargs=-1)
@click.make_pass_decorator(CLIControls, ensure=True)
def run(
        __controls: CLIControls,
        paths: list[str],
        modules: list[str],
        reconnect_backoff: float | None,
        queue_size: int | None,
        halt_on_errors: bool | None,
) -> None:
    """ Start an operator process and handle all the notifications. """
    settings = __controls.settings if __controls.settings is not None else configuration.OperatorSettings()
    if reconnect_backoff is not None:
        settings.watching.reconnect_backoff = reconnect_backoff
    if queue_size is not None:
        settings.queueing.max_size = queue_size
    if halt_on_errors:
        settings.queueing.error_policy = configuration.ErrorPolicy.HALT
    if __controls.registry is not None:
        registries.set_default_registry(__controls.registry)
    loaders.preload(
        paths=paths,
        modules=modules,
    )
    try:
        return running.run(
            registry=__controls.registry,
            settings=settings,
        )
    except (credentials.LoginError, watching.WatchingFatalError, queueing.HandlerFailedError) as e:
        raise click.ClickException(str(e)) from e


@main.command()
@logging_options
@click.argument('paths', nargs=-1, required=True)
def register(
        paths: list[str],
) -> None:
    """ Register the custom resource definitions from the files. """
    settings = configuration.OperatorSettings()
    try:
        infos = asyncio.run(register_definitions(paths, settings=settings))
    except (credentials.LoginError, definitions.DefinitionError, errors.APIError) as e:
        raise click.ClickException(str(e)) from e
    for info in infos:
        for version in info.version_names:
            click.echo(f'{info.group}/{version}/{info.plural}')


async def register_definitions(
        paths: Sequence[str],
        *,
        settings: configuration.OperatorSettings,
) -> list[definitions.DefinitionInfo]:
    info = piggybacking.login()
    async with auth.APIContext(info) as context:
        return [
            await registering.register_definition(path, settings=settings, context=context)
            for path in paths
        ]
