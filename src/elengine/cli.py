"""elengine CLI: evaluate expressions and render templates from the shell."""

import json
import logging
from pathlib import Path
from typing import Any, NoReturn

import click
import yaml

from elengine.builtins import register_builtins
from elengine.config import ParserOptions
from elengine.errors import ExpressionError
from elengine.evaluator import evaluate
from elengine.functions import FunctionCategory, FunctionRegistry
from elengine.lexer import TokenType, tokenize
from elengine.resolver import SimpleResolver
from elengine.template import substitute
from elengine.values import display


def _fail(message: str) -> NoReturn:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    raise SystemExit(1)


def _builtin_registry() -> FunctionRegistry:
    registry = FunctionRegistry()
    register_builtins(registry)
    return registry


def _load_variables(vars_file: Path | None, pairs: tuple[str, ...]) -> dict[str, Any]:
    """Merge variables from a YAML file and NAME=VALUE pairs (pairs win)."""
    variables: dict[str, Any] = {}

    if vars_file is not None:
        with open(vars_file) as f:
            loaded = yaml.safe_load(f)
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            _fail(f"{vars_file} must contain a mapping of variable names")
        variables.update(loaded)

    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            _fail(f"Invalid --var '{pair}', expected NAME=VALUE")
        variables[name] = value

    return variables


def _resolver(vars_file: Path | None, pairs: tuple[str, ...]) -> SimpleResolver:
    return SimpleResolver(_load_variables(vars_file, pairs), _builtin_registry())


def _options() -> ParserOptions:
    try:
        return ParserOptions.from_env()
    except ValueError as e:
        _fail(str(e))


_variable_options = [
    click.option(
        "--var",
        "pairs",
        multiple=True,
        metavar="NAME=VALUE",
        help="Define a string variable. May be repeated.",
    ),
    click.option(
        "--vars-file",
        default=None,
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        help="YAML file with a mapping of variable names to values.",
    ),
]


def variable_options(func):
    for option in reversed(_variable_options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool):
    """elengine: embeddable expression language engine."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )


@cli.command("eval")
@click.argument("expression")
@variable_options
def eval_cmd(expression: str, pairs: tuple[str, ...], vars_file: Path | None):
    """Evaluate an EXPRESSION and print the result."""
    resolver = _resolver(vars_file, pairs)
    try:
        result = evaluate(expression, resolver, _options())
    except ExpressionError as e:
        _fail(str(e))
    click.echo(display(result))


@cli.command()
@click.argument("template")
@variable_options
def render(template: str, pairs: tuple[str, ...], vars_file: Path | None):
    """Substitute every ${...} section of TEMPLATE and print the text."""
    resolver = _resolver(vars_file, pairs)
    try:
        text = substitute(template, resolver, _options())
    except ExpressionError as e:
        _fail(str(e))
    click.echo(text)


@cli.command()
@click.argument("expression")
def tokens(expression: str):
    """Print the tokens of an EXPRESSION, one per line."""
    try:
        for token in tokenize(expression):
            if token.type == TokenType.EOF:
                break
            click.echo(f"{token.position:>4}  {token.type.name:<15} {token.lexeme}")
    except ExpressionError as e:
        _fail(str(e))


@cli.command()
@click.option(
    "--category",
    type=click.Choice([c.value for c in FunctionCategory]),
    default=None,
    help="Only list functions in this category.",
)
@click.option("--json", "as_json", is_flag=True, default=False, help="Print JSON documentation.")
def functions(category: str | None, as_json: bool):
    """List the built-in fn: functions."""
    registry = _builtin_registry()

    if as_json:
        click.echo(json.dumps(registry.export_documentation(), indent=2))
        return

    if category is None:
        definitions = registry.list_all()
    else:
        definitions = registry.list_by_category(FunctionCategory(category))

    for func_def in sorted(definitions, key=lambda f: f.qualified_name):
        params = ", ".join(p.name for p in func_def.parameters)
        signature = f"{func_def.qualified_name}({params})"
        click.echo(f"  {signature:<45} {func_def.description}")
