import ast
import inspect
import re
import types
import typing
from collections import namedtuple

# Errors ----------------------------------------------------------------


class SignatureError(Exception):
    """A function signature that cannot be turned into a command line entry point."""

    default_message = "unsupported function signature"

    def __init__(self, message = None, filename = None, lineno = 0, col = 0):
        self.message  = message or self.default_message
        self.filename = filename or "<unknown>"
        self.lineno   = lineno
        self.col      = col
        super().__init__(self.format())

    def format(self):
        return "%s:%d:%d: error: %s" % (self.filename, self.lineno, self.col, self.message)


class UnexpectedAttributeArgument(SignatureError):
    default_message = "unexpected attribute argument"


class ReceiverNotAllowed(SignatureError):
    default_message = "unexpected `self` argument"


class VariadicNotAllowed(SignatureError):
    default_message = "unexpected variadic function"


class UnexpectedParameterAttribute(SignatureError):
    default_message = "unexpected parameter attribute"


class MissingParameterType(SignatureError):
    default_message = "missing type for argument"


class UnsupportedParameterType(SignatureError):
    default_message = "type cannot parse text"


class SourceSyntaxError(SignatureError):
    default_message = "invalid syntax"


# Model -----------------------------------------------------------------

# pattern and type are kept as written; annotation is only known at runtime
ParameterSpec = namedtuple("ParameterSpec", ("pattern", "type", "annotation"), defaults = (None,))


class FunctionSignature:

    def __init__(self, name, parameters, is_async = False, filename = None, lineno = 0):
        self.name       = name
        self.parameters = list(parameters)
        self.is_async   = is_async
        self.filename   = filename
        self.lineno     = lineno

    @property
    def arity(self):
        return len(self.parameters)

    def __repr__(self):
        return "FunctionSignature(%s, %r)" % (self.name, self.parameters)


_ANNOTATED = re.compile(r"^\s*(?:[\w.]+\.)?Annotated\s*\[")


def _flatten(text):
    return re.sub(r"\s*\n\s*", " ", text.strip())


# Syntax trees ----------------------------------------------------------


def signature_from_syntax(tree, function_node, decorator = None):
    """
    Validate a `function_definition` node and build its parameter model.

    The checks run in a fixed order and the first failing one is raised:
    decorator arguments, receiver, variadic parameters, then each parameter
    on its own.

    Args:
        tree: The SourceTree the node belongs to
        function_node: A tree-sitter `function_definition` node
        decorator: The `decorator` node that selected the function, if any

    Returns:
        A FunctionSignature with one ParameterSpec per declared parameter
    """
    if decorator is not None:
        _check_decorator_arguments(tree, decorator)

    name        = tree.match(function_node.child_by_field_name("name"))
    is_async    = any(child.type == "async" for child in function_node.children)
    parameters  = function_node.child_by_field_name("parameters")
    param_nodes = [n for n in parameters.named_children if n.type != "comment"]

    if _in_class_body(function_node):
        raise _syntax_error(tree, ReceiverNotAllowed, function_node.child_by_field_name("name"))

    if param_nodes and _parameter_name(tree, param_nodes[0]) == "self":
        raise _syntax_error(tree, ReceiverNotAllowed, param_nodes[0])

    for node in param_nodes:
        if _is_variadic(node):
            raise _syntax_error(tree, VariadicNotAllowed, node)

    specs = []
    for node in param_nodes:
        spec = _parameter_from_syntax(tree, node)
        if spec is not None: specs.append(spec)

    lineno, _ = tree.location(function_node)
    return FunctionSignature(name, specs, is_async = is_async, filename = tree.filename, lineno = lineno)


def _syntax_error(tree, error_cls, node, message = None):
    lineno, col = tree.location(node)
    return error_cls(message, filename = tree.filename, lineno = lineno, col = col)


def _check_decorator_arguments(tree, decorator):
    expression = [n for n in decorator.named_children if n.type != "comment"][0]
    if expression.type != "call": return

    arguments = expression.child_by_field_name("arguments")
    if arguments.type != "argument_list":
        # @cli(x for x in xs)
        raise _syntax_error(tree, UnexpectedAttributeArgument, arguments)

    for argument in arguments.named_children:
        if argument.type == "comment": continue
        raise _syntax_error(tree, UnexpectedAttributeArgument, argument)


def _in_class_body(function_node):
    parent = function_node.parent
    if parent is not None and parent.type == "decorated_definition":
        parent = parent.parent
    return (parent is not None and parent.type == "block"
                and parent.parent is not None and parent.parent.type == "class_definition")


def _parameter_name(tree, node):
    if node.type == "identifier":
        return tree.match(node)

    if node.type == "typed_parameter":
        head = node.named_children[0]
        return tree.match(head) if head.type == "identifier" else None

    if node.type in ("default_parameter", "typed_default_parameter"):
        return tree.match(node.child_by_field_name("name"))

    return None


def _is_variadic(node):
    if node.type in ("list_splat_pattern", "dictionary_splat_pattern"):
        return True
    if node.type == "typed_parameter":
        return node.named_children[0].type in ("list_splat_pattern", "dictionary_splat_pattern")
    return False


def _parameter_from_syntax(tree, node):

    if node.type == "positional_separator":
        # Everything is positional already
        return None

    if node.type == "keyword_separator":
        raise _syntax_error(tree, UnexpectedParameterAttribute, node,
                            "unexpected parameter attribute: keyword-only marker `*`")

    if node.type in ("default_parameter", "typed_default_parameter"):
        name = tree.match(node.child_by_field_name("name"))
        raise _syntax_error(tree, UnexpectedParameterAttribute, node,
                            "unexpected parameter attribute: default value for `%s`" % name)

    if node.type == "identifier":
        raise _syntax_error(tree, MissingParameterType, node,
                            "missing type for argument `%s`" % tree.match(node))

    if node.type != "typed_parameter" or node.named_children[0].type != "identifier":
        raise _syntax_error(tree, SignatureError, node,
                            "unsupported argument pattern `%s`" % _flatten(tree.match(node)))

    name      = tree.match(node.named_children[0])
    type_node = node.child_by_field_name("type")
    type_text = _flatten(tree.match(type_node))

    if _ANNOTATED.match(type_text):
        raise _syntax_error(tree, UnexpectedParameterAttribute, type_node,
                            "unexpected parameter attribute: `Annotated` metadata on `%s`" % name)

    return ParameterSpec(name, _unquote(type_node, type_text))


def _unquote(type_node, type_text):
    # Forward references: `time: "Time"` parses as `Time`
    expression = type_node.named_children[0] if type_node.named_children else None
    if expression is None or expression.type != "string":
        return type_text

    try:
        value = ast.literal_eval(type_text)
    except (ValueError, SyntaxError):
        return type_text

    return _flatten(value) if isinstance(value, str) else type_text


# Live functions --------------------------------------------------------


def signature_from_function(fn):
    """Validate a Python function object with the same rules as the syntax check."""

    code     = getattr(fn, "__code__", None)
    filename = code.co_filename if code is not None else None
    lineno   = code.co_firstlineno if code is not None else 0

    def error(error_cls, message = None):
        return error_cls(message, filename = filename, lineno = lineno, col = 1)

    signature = inspect.signature(fn, eval_str = True)
    params    = list(signature.parameters.values())

    if _is_method(fn) or (params and params[0].name == "self"):
        raise error(ReceiverNotAllowed)

    for p in params:
        if p.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            raise error(VariadicNotAllowed)

    specs = []
    for p in params:
        if p.kind == inspect.Parameter.KEYWORD_ONLY:
            raise error(UnexpectedParameterAttribute,
                            "unexpected parameter attribute: keyword-only argument `%s`" % p.name)

        if p.default is not inspect.Parameter.empty:
            raise error(UnexpectedParameterAttribute,
                            "unexpected parameter attribute: default value for `%s`" % p.name)

        if p.annotation is inspect.Parameter.empty:
            raise error(MissingParameterType, "missing type for argument `%s`" % p.name)

        if typing.get_origin(p.annotation) is typing.Annotated:
            raise error(UnexpectedParameterAttribute,
                            "unexpected parameter attribute: `Annotated` metadata on `%s`" % p.name)

        if not _parses_text(p.annotation):
            raise error(UnsupportedParameterType, "type `%s` of argument `%s` cannot parse text"
                            % (format_annotation(p.annotation), p.name))

        specs.append(ParameterSpec(p.name, format_annotation(p.annotation), p.annotation))

    return FunctionSignature(
        fn.__name__,
        specs,
        is_async = inspect.iscoroutinefunction(fn),
        filename = filename,
        lineno   = lineno
    )


def _parses_text(ann):
    if callable(getattr(ann, "from_str", None)):
        return True
    # Optional[int], int | None, Literal[...], list[int]
    if typing.get_origin(ann) is not None:
        return False
    return callable(ann)


def _is_method(fn):
    # Free functions are either top level or nested in another function
    parts = getattr(fn, "__qualname__", "").split(".")
    return len(parts) > 1 and parts[-2] != "<locals>"


def format_annotation(ann):
    """Format an annotation for display, stripping the `typing.` prefix."""
    if isinstance(ann, str):
        return ann
    if isinstance(ann, type) and not isinstance(ann, types.GenericAlias):
        return ann.__name__
    return str(ann).replace("typing.", "")
