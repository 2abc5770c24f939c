from usage import (
    INVALID_BOOL,
    MISSING_ARGUMENT,
    PARSE_FAILURE,
    TOO_MANY_ARGUMENTS,
    describe,
    usage_template,
)

PRELUDE = '''\
import sys as _fncli_sys

_fncli_argv = list(_fncli_sys.argv)
_fncli_command = _fncli_argv[0] if _fncli_argv else {name!r}
_fncli_rest = iter(_fncli_argv[1:])

def _fncli_exit(message):
    _fncli_sys.stderr.write(message + "\\n\\n")
    _fncli_sys.stderr.write({usage!r}.format(command=_fncli_command) + "\\n")
    _fncli_sys.stderr.flush()
    _fncli_sys.exit(1)

def _fncli_arg(kind, display):
    text = next(_fncli_rest, None)
    if text is None:
        _fncli_exit({missing!r} % display)
    try:
        if kind is bool:
            if text not in ("true", "false"):
                raise ValueError({invalid_bool!r})
            return text == "true"
        return getattr(kind, "from_str", kind)(text)
    except (ValueError, TypeError) as error:
        _fncli_exit({parse_failure!r} % (display, error))

{values}
if next(_fncli_rest, None) is not None:
    _fncli_exit({too_many!r} % {arity})
[{targets}] = _fncli_values
'''


def generate_parameters(parameters):
    """
    The parameter list that replaces the original one.

    Type expressions are moved into a keyword-only default so they are
    evaluated in the scope enclosing the function. Inside the body a
    parameter named like its type (`date: date`) is a local variable
    and would hide the type.
    """
    if not parameters: return "()"

    types = ", ".join(p.type for p in parameters)
    if len(parameters) == 1: types += ","

    return "(*, _fncli_types=lambda: (%s))" % types


def generate_values(parameters):
    """One `_fncli_arg` call per parameter, in declaration order."""
    if not parameters: return ["_fncli_values = []"]

    lines = ["_fncli_kinds = _fncli_types()", "_fncli_values = ["]
    for i, p in enumerate(parameters):
        lines.append("    _fncli_arg(_fncli_kinds[%d], %r)," % (i, describe(p)))
    lines.append("]")
    return lines


def generate_prelude(signature):
    """
    Generate the statements that parse `sys.argv` for a function.

    The statements only depend on the standard library. They bind every
    parameter name of the signature as a local variable, so the original
    function body can follow them unchanged. They expect the parameter
    list from `generate_parameters`.

    Args:
        signature: A validated FunctionSignature

    Returns:
        The prelude as a list of unindented source lines
    """
    parameters = signature.parameters

    prelude = PRELUDE.format(
        name          = signature.name,
        usage         = usage_template(parameters),
        missing       = MISSING_ARGUMENT,
        invalid_bool  = INVALID_BOOL,
        parse_failure = PARSE_FAILURE,
        values        = "\n".join(generate_values(parameters)),
        too_many      = TOO_MANY_ARGUMENTS,
        arity         = len(parameters),
        targets       = ", ".join(p.pattern for p in parameters),
    )

    return prelude.rstrip("\n").split("\n")
