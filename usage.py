import sys

USAGE_HEADER = "USAGE:\n    {command}"

MISSING_ARGUMENT   = "missing argument: %s"
PARSE_FAILURE      = "failed to parse argument: %s (%s)"
TOO_MANY_ARGUMENTS = "too many arguments (expected %d)"

INVALID_BOOL = "provided string was not `true` or `false`"


def escape_braces(text):
    return text.replace("{", "{{").replace("}", "}}")


def describe(parameter):
    return "%s: %s" % (parameter.pattern, parameter.type)


def usage_template(parameters):
    """
    Build the usage text shown on every argument failure.

    The result is a `str.format` template whose only field is `{command}`.
    Braces coming from parameter names or types are doubled so they print
    literally.

    Args:
        parameters: ParameterSpecs in declaration order

    Returns:
        The usage template
    """
    segments = [
        " <%s: %s>" % (escape_braces(p.pattern), escape_braces(p.type))
        for p in parameters
    ]
    return USAGE_HEADER + "".join(segments)


# Messages ----------------------------------------------------------------

def missing_argument_message(parameter):
    return MISSING_ARGUMENT % describe(parameter)


def parse_failure_message(parameter, error):
    return PARSE_FAILURE % (describe(parameter), error)


def too_many_arguments_message(expected):
    return TOO_MANY_ARGUMENTS % expected


# Exit routine ------------------------------------------------------------

def exit_with_usage(message, usage, command, stream = None):
    """Report `message` followed by the usage block and terminate with status 1."""
    stream = stream or sys.stderr

    stream.write(message + "\n\n")
    stream.write(usage.format(command = command) + "\n")
    stream.flush()

    sys.exit(1)
