import sys

import tree_sitter_python
from tree_sitter import Language, Parser

from codegen import generate_parameters, generate_prelude
from fncli import cli
from signature import SignatureError, SourceSyntaxError, signature_from_syntax

PY_LANGUAGE = Language(tree_sitter_python.language())

CLI_DECORATORS = ["cli", "fncli.cli"]


def expand(program_file: str, output_file: str):
    """Expand every @cli function of a Python program into a command line entry point."""

    with open(program_file, "r") as f:
        source_code = f.read()

    try:
        expanded, count = _expand(source_code, filename = program_file)
    except SignatureError as e:
        print(e.format(), file = sys.stderr)
        sys.exit(1)

    with open(output_file, "w") as o:
        o.write(expanded)

    if count == 0:
        print("[Dbg] No @cli function in %s" % program_file)

    print("Success.")


def expand_source(source_code, filename = "<string>"):
    expanded, _ = _expand(source_code, filename = filename)
    return expanded


def _expand(source_code, filename):
    program_ast = SourceTree(source_code, filename = filename)

    expander = Expander(program_ast)
    expander.walk(program_ast.root)

    return expander.code(), expander.count

# Syntax tree ----------------------------------------------------------------


class SourceTree:

    def __init__(self, source_code, filename = "<string>"):
        self.filename = filename
        self.source   = source_code.encode("utf-8")
        self.tree     = Parser(PY_LANGUAGE).parse(self.source)
        self.root     = self.tree.root_node

        self.line_starts = [0]
        for i, byte in enumerate(self.source):
            if byte == 0x0A: self.line_starts.append(i + 1)

        if self.root.has_error:
            locator = ErrorLocator()
            locator.walk(self.root)
            raise self.error(SourceSyntaxError, locator.node or self.root, locator.message)

    def match(self, node):
        return self.source[node.start_byte:node.end_byte].decode("utf-8")

    def location(self, node):
        row, column = node.start_point
        return row + 1, column + 1

    def line_prefix(self, node):
        """The text between the start of the node's line and the node."""
        start = self.line_starts[node.start_point[0]]
        return self.source[start:node.start_byte].decode("utf-8")

    def error(self, error_cls, node, message = None):
        lineno, col = self.location(node)
        return error_cls(message, filename = self.filename, lineno = lineno, col = col)


class SyntaxVisitor:
    """Walks a tree-sitter tree calling visit_<type> and leave_<type>.

    A visit method returning False skips the children of the node.
    """

    def walk(self, node):
        if self.on_visit(node) is not False:
            for child in node.children:
                self.walk(child)
        self.on_leave(node)

    def on_visit(self, node):
        return getattr(self, "visit_%s" % node.type, self.visit)(node)

    def on_leave(self, node):
        leave = getattr(self, "leave_%s" % node.type, None)
        if leave is not None: leave(node)

    def visit(self, node):
        return True


class ErrorLocator(SyntaxVisitor):

    def __init__(self):
        self.node    = None
        self.message = None

    def visit(self, node):
        if self.node is not None: return False

        if node.type == "ERROR":
            self.node = node
            return False

        if node.is_missing:
            self.node    = node
            self.message = "invalid syntax: missing `%s`" % node.type
            return False

        return node.has_error


# Expansion ----------------------------------------------------------------


class Expander(SyntaxVisitor):

    def __init__(self, ast):
        self.ast   = ast
        self.edits = []
        self.count = 0

    def edit(self, start, end, text):
        self.edits.append((start, end, text.encode("utf-8")))

    def code(self):
        source = self.ast.source
        edits  = sorted(self.edits, key = lambda x: (x[0], x[1]))
        if len(edits) == 0: return source.decode("utf-8")

        output = []

        current_pos = 0
        for start, end, text in edits:
            assert current_pos <= start, "overlapping edits"
            output.append(source[current_pos:start])
            output.append(text)
            current_pos = end

        output.append(source[current_pos:])

        return b"".join(output).decode("utf-8")

    # Visitor functions -----------------------------

    def visit_decorated_definition(self, node):
        definition = node.child_by_field_name("definition")
        if definition.type != "function_definition": return True

        decorators = [d for d in node.children if d.type == "decorator" and self._is_cli(d)]
        if len(decorators) == 0: return True

        signature = signature_from_syntax(self.ast, definition, decorators[0])
        for decorator in decorators[1:]:
            signature_from_syntax(self.ast, definition, decorator)

        for decorator in decorators:
            self._remove_decorator(node, decorator)

        parameters = definition.child_by_field_name("parameters")
        self.edit(parameters.start_byte, parameters.end_byte,
                    generate_parameters(signature.parameters))

        self._insert_prelude(definition, generate_prelude(signature))
        self.count += 1

        # Nested @cli functions are expanded too
        return True

    def _is_cli(self, decorator):
        expression = [n for n in decorator.named_children if n.type != "comment"][0]
        if expression.type == "call":
            expression = expression.child_by_field_name("function")

        name = "".join(self.ast.match(expression).split())
        return name in CLI_DECORATORS

    def _remove_decorator(self, node, decorator):
        # Up to the next decorator or the definition, keeping the indentation of the line
        following = [c for c in node.children if c.start_byte > decorator.start_byte]
        end = next(c for c in following if c.type == "decorator" or c.type.endswith("_definition"))
        self.edit(decorator.start_byte, end.start_byte, "")

    def _insert_prelude(self, definition, lines):
        body       = definition.child_by_field_name("body")
        statements = [n for n in body.named_children if n.type != "comment"]

        def_indent = self.ast.line_prefix(definition)
        def_indent = def_indent[:len(def_indent) - len(def_indent.lstrip())]

        first = statements[0]
        if not self._starts_line(first):
            # def main(a: int): print(a)
            indent = def_indent + "    "
            self.edit(first.start_byte, first.start_byte,
                        "\n" + indent + _indent_lines(lines, indent) + "\n" + indent)
            return

        indent = self.ast.line_prefix(first)
        anchor = first

        if _is_docstring(first):
            following = statements[1] if len(statements) > 1 else None

            if following is None:
                self.edit(first.end_byte, first.end_byte,
                            "\n" + indent + _indent_lines(lines, indent))
                return

            if self._starts_line(following): anchor = following

        self.edit(anchor.start_byte, anchor.start_byte,
                    _indent_lines(lines, indent) + "\n" + indent)

    def _starts_line(self, statement):
        return self.ast.line_prefix(statement).strip() == ""


def _is_docstring(statement):
    if statement.type != "expression_statement": return False
    children = statement.named_children
    return len(children) == 1 and children[0].type in ("string", "concatenated_string")


def _indent_lines(lines, indent):
    # The first line continues at the current position
    output = [lines[0]]
    for line in lines[1:]:
        output.append(indent + line if line else "")
    return "\n".join(output)


main = cli(expand)


if __name__ == '__main__':
    main()
