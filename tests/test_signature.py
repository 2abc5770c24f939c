"""Tests for signature validation on syntax trees and live functions."""

import pathlib
import textwrap
from typing import Annotated

import pytest

from expand import SourceTree, expand_source
from signature import (
    MissingParameterType,
    ParameterSpec,
    ReceiverNotAllowed,
    SignatureError,
    SourceSyntaxError,
    UnexpectedAttributeArgument,
    UnexpectedParameterAttribute,
    VariadicNotAllowed,
    format_annotation,
    signature_from_function,
    signature_from_syntax,
)


def parse_signature(source):
    tree = SourceTree(textwrap.dedent(source), filename = "prog.py")
    node = tree.root.named_children[0]

    if node.type == "decorated_definition":
        definition = node.child_by_field_name("definition")
        return signature_from_syntax(tree, definition, node.named_children[0])

    return signature_from_syntax(tree, node)


def expand_error(source):
    with pytest.raises(SignatureError) as exc:
        expand_source(textwrap.dedent(source), filename = "prog.py")
    return exc.value


# Syntax trees ----------------------------------------------------------------


def test_parameters_in_declaration_order():
    signature = parse_signature("""
        @cli
        def main(a: int, b: float, c: str):
            pass
    """)

    assert signature.name == "main"
    assert signature.parameters == [
        ParameterSpec("a", "int"),
        ParameterSpec("b", "float"),
        ParameterSpec("c", "str"),
    ]
    assert signature.arity == 3
    assert not signature.is_async


def test_no_parameters():
    signature = parse_signature("""
        @cli
        def main():
            pass
    """)
    assert signature.parameters == []


def test_type_text_kept_verbatim():
    signature = parse_signature("""
        @cli
        def main(path: pathlib.Path, pair: tuple[int, int]):
            pass
    """)
    assert [p.type for p in signature.parameters] == ["pathlib.Path", "tuple[int, int]"]


def test_string_annotation_is_unquoted():
    signature = parse_signature("""
        @cli
        def main(time: "Time"):
            pass
    """)
    assert signature.parameters == [ParameterSpec("time", "Time")]


def test_positional_only_marker_is_accepted():
    signature = parse_signature("""
        @cli
        def main(a: int, /, b: str):
            pass
    """)
    assert [p.pattern for p in signature.parameters] == ["a", "b"]


def test_async_function():
    signature = parse_signature("""
        @cli
        async def main(a: int):
            pass
    """)
    assert signature.is_async


def test_empty_decorator_call_is_accepted():
    signature = parse_signature("""
        @cli()
        def main(a: int):
            pass
    """)
    assert signature.parameters == [ParameterSpec("a", "int")]


def test_attribute_argument():
    error = expand_error("""
        @cli(verbose=True)
        def main(a: int):
            pass
    """)
    assert isinstance(error, UnexpectedAttributeArgument)
    assert error.message == "unexpected attribute argument"
    assert (error.lineno, error.col) == (2, 6)


def test_self_receiver():
    error = expand_error("""
        @cli
        def main(self, a: int):
            pass
    """)
    assert isinstance(error, ReceiverNotAllowed)
    assert error.message == "unexpected `self` argument"


def test_method_is_a_receiver():
    error = expand_error("""
        class Tool:
            @cli
            def run(a: int):
                pass
    """)
    assert isinstance(error, ReceiverNotAllowed)


def test_receiver_wins_over_variadic():
    error = expand_error("""
        @cli
        def main(self, *args):
            pass
    """)
    assert isinstance(error, ReceiverNotAllowed)


@pytest.mark.parametrize("params", ["*args", "*args: str", "a: int, **kwargs", "**kwargs: int"])
def test_variadic(params):
    error = expand_error("""
        @cli
        def main(%s):
            pass
    """ % params)
    assert isinstance(error, VariadicNotAllowed)
    assert error.message == "unexpected variadic function"


def test_variadic_wins_over_default():
    error = expand_error("""
        @cli
        def main(a: int = 1, *rest: str):
            pass
    """)
    assert isinstance(error, VariadicNotAllowed)


def test_variadic_location():
    error = expand_error("""
        @cli
        def main(a: int, *rest):
            pass
    """)
    assert error.format() == "prog.py:3:18: error: unexpected variadic function"


@pytest.mark.parametrize("params, detail", [
    ("a: int = 1", "default value for `a`"),
    ("a = 1", "default value for `a`"),
    ("a: int, *, b: int", "keyword-only marker `*`"),
    ("a: Annotated[int, 'meta']", "`Annotated` metadata on `a`"),
    ("a: typing.Annotated[int, 'meta']", "`Annotated` metadata on `a`"),
])
def test_parameter_attribute(params, detail):
    error = expand_error("""
        @cli
        def main(%s):
            pass
    """ % params)
    assert isinstance(error, UnexpectedParameterAttribute)
    assert error.message == "unexpected parameter attribute: " + detail


def test_missing_type():
    error = expand_error("""
        @cli
        def main(a: int, b):
            pass
    """)
    assert isinstance(error, MissingParameterType)
    assert error.message == "missing type for argument `b`"


def test_syntax_error():
    with pytest.raises(SourceSyntaxError):
        expand_source("def main(a: int:\n    pass\n")


# Live functions ----------------------------------------------------------------


def test_function_parameters():
    def main(a: int, time: pathlib.Path) -> None:
        pass

    signature = signature_from_function(main)
    assert signature.name == "main"
    assert signature.parameters == [
        ParameterSpec("a", "int", int),
        ParameterSpec("time", "Path", pathlib.Path),
    ]


def test_function_receiver():
    class Tool:
        def run(a: int):
            pass

    def main(self, a: int):
        pass

    with pytest.raises(ReceiverNotAllowed):
        signature_from_function(Tool.run)
    with pytest.raises(ReceiverNotAllowed):
        signature_from_function(main)


def test_function_variadic():
    def main(a: int, *rest: str):
        pass

    with pytest.raises(VariadicNotAllowed):
        signature_from_function(main)


def test_function_parameter_attributes():
    def with_default(a: int = 1):
        pass

    def with_keyword(*, a: int):
        pass

    def with_metadata(a: Annotated[int, "meta"]):
        pass

    for fn in (with_default, with_keyword, with_metadata):
        with pytest.raises(UnexpectedParameterAttribute):
            signature_from_function(fn)


def test_function_missing_type():
    def main(a):
        pass

    with pytest.raises(MissingParameterType) as exc:
        signature_from_function(main)
    assert exc.value.message == "missing type for argument `a`"


def test_format_annotation():
    assert format_annotation(int) == "int"
    assert format_annotation("Time") == "Time"
    assert format_annotation(list[int]) == "list[int]"
    assert format_annotation(dict[str, int]) == "dict[str, int]"
