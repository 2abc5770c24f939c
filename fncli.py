import functools
import inspect
import sys

from signature import (
    ParameterSpec,
    SignatureError,
    UnexpectedAttributeArgument,
    signature_from_function,
)
from usage import (
    INVALID_BOOL,
    exit_with_usage,
    missing_argument_message,
    parse_failure_message,
    too_many_arguments_message,
    usage_template,
)

__all__ = [
    "cli",
    "parse_value",
    "parse_arguments",
    "ParameterSpec",
    "SignatureError",
    "ArgumentError",
    "MissingArgument",
    "ArgumentParseFailure",
    "TooManyArguments",
]

# Argument errors ----------------------------------------------------------------


class ArgumentError(Exception):
    pass


class MissingArgument(ArgumentError):

    def __init__(self, parameter):
        self.parameter = parameter
        super().__init__(missing_argument_message(parameter))


class ArgumentParseFailure(ArgumentError):

    def __init__(self, parameter, error):
        self.parameter = parameter
        self.error     = error
        super().__init__(parse_failure_message(parameter, error))


class TooManyArguments(ArgumentError):

    def __init__(self, expected):
        self.expected = expected
        super().__init__(too_many_arguments_message(expected))


# Parsing ----------------------------------------------------------------


def parse_value(kind, text):
    """Convert `text` with the string parsing capability of `kind`."""
    if kind is bool:
        if text not in ("true", "false"):
            raise ValueError(INVALID_BOOL)
        return text == "true"

    return getattr(kind, "from_str", kind)(text)


def parse_arguments(parameters, argv):
    """
    Parse positional arguments, strictly in declaration order.

    Args:
        parameters: ParameterSpecs with their evaluated annotations
        argv: The arguments without the command name

    Returns:
        One value per parameter

    Raises:
        MissingArgument: argv ran out before the last parameter
        ArgumentParseFailure: a conversion raised ValueError or TypeError
        TooManyArguments: argv holds more values than parameters
    """
    rest   = iter(argv)
    values = [_parse_next(p, rest) for p in parameters]

    if next(rest, None) is not None:
        raise TooManyArguments(len(parameters))

    return values


def _parse_next(parameter, rest):
    text = next(rest, None)
    if text is None:
        raise MissingArgument(parameter)

    try:
        return parse_value(parameter.annotation, text)
    except (ValueError, TypeError) as error:
        raise ArgumentParseFailure(parameter, error) from error


# Entry points ----------------------------------------------------------------


def cli(fn = None, *args, **kwargs):
    """
    Turn a function into a command line entry point.

    The decorated function takes no arguments. Calling it parses `sys.argv`
    into the original parameters and runs the original body; on a missing,
    unparsable or surplus argument it prints the error and the usage to
    stderr and exits with status 1.

    Example:
        @cli
        def main(a: int, b: int):
            print(a + b)

        # $ python add.py 1 2
        # 3

    `@cli(helper)` is the same call as `cli(helper)`: it returns the entry
    point of `helper`, and applying that to the next function raises
    UnexpectedAttributeArgument. For a coroutine function the error is raised when the
    entry point is awaited.
    """
    if args or kwargs or (fn is not None and not callable(fn)):
        caller = inspect.currentframe().f_back
        raise UnexpectedAttributeArgument(
            filename = caller.f_code.co_filename,
            lineno   = caller.f_lineno,
            col      = 1
        )

    if fn is None:
        # @cli()
        return cli

    signature = signature_from_function(fn)
    usage     = usage_template(signature.parameters)

    def values(args, kwargs):
        if args or kwargs:
            raise UnexpectedAttributeArgument(
                "unexpected attribute argument: the entry point of `%s` takes no arguments" % fn.__name__,
                filename = signature.filename,
                lineno   = signature.lineno,
                col      = 1
            )

        argv    = list(sys.argv)
        command = argv[0] if argv else fn.__name__
        try:
            return parse_arguments(signature.parameters, argv[1:])
        except ArgumentError as e:
            exit_with_usage(str(e), usage, command)

    if signature.is_async:
        @functools.wraps(fn)
        async def entry(*args, **kwargs):
            return await fn(*values(args, kwargs))
    else:
        @functools.wraps(fn)
        def entry(*args, **kwargs):
            return fn(*values(args, kwargs))

    entry.__signature__ = inspect.signature(fn).replace(parameters = [])
    entry.signature     = signature
    entry.usage         = usage
    return entry
