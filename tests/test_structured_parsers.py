"""
Tests for the YAML/JSON/TOML/JSON5 parsers and the shared tree builder.
"""
import pytest

from treegen_lib.errors import ParseError
from treegen_lib.model import NodeKind, TreeNode
from treegen_lib.parsers import (
    build_tree,
    parse_json,
    parse_json5,
    parse_markdown,
    parse_spec,
    parse_toml,
    parse_yaml,
    parser_for,
)

YAML_DOC = """\
project:
  src:
    main.txt:
    lib.txt:
  README.md:
"""

JSON_DOC = '{"project": {"src": {"main.txt": null, "lib.txt": null}, "README.md": null}}'

TOML_DOC = 'project = { src = { "main.txt" = "", "lib.txt" = "" }, "README.md" = "" }\n'

JSON5_DOC = """\
// same layout, JSON5 flavour
{
  project: {
    src: { 'main.txt': null, 'lib.txt': null, },
    'README.md': null,
  },
}
"""


def test_structured_formats_build_identical_trees():
    trees = [
        parse_yaml(YAML_DOC),
        parse_json(JSON_DOC),
        parse_toml(TOML_DOC),
        parse_json5(JSON5_DOC),
    ]
    assert all(tree == trees[0] for tree in trees[1:])


def test_structured_tree_matches_markdown_shape():
    markdown = "project/\n├── src/\n│   ├── main.txt\n│   └── lib.txt\n└── README.md\n"
    assert parse_json(JSON_DOC) == parse_markdown(markdown)


def test_declaration_order_is_kept():
    tree = parse_yaml("zeta.txt:\nalpha:\n  b.txt:\n")
    assert [c.name for c in tree.children] == ["zeta.txt", "alpha"]


def test_disambiguation_rules():
    tree = build_tree({"empty.txt": None, "blank.txt": "", "also_file": {}, "dir": {"x": None}, "n.txt": 3})
    kinds = {c.name: c.kind for c in tree.children}
    assert kinds == {
        "empty.txt": NodeKind.FILE,
        "blank.txt": NodeKind.FILE,
        "also_file": NodeKind.FILE,
        "dir": NodeKind.DIRECTORY,
        "n.txt": NodeKind.FILE,
    }
    assert tree.children[4].content == "3"


def test_string_values_become_file_content():
    tree = parse_yaml("hello.txt: |\n  hi there\n")
    assert tree.children[0].content == "hi there\n"


def test_tagged_nodes():
    doc = """\
bin:
  type: dir
  mode: "0o755"
  children:
    run.sh:
      type: file
      mode: "0o744"
      content: "echo hi"
empty:
  type: directory
"""
    tree = parse_yaml(doc)
    bin_dir, empty = tree.children
    assert bin_dir.is_dir and bin_dir.mode == 0o755
    assert bin_dir.children == [TreeNode.file("run.sh", "echo hi", 0o744)]
    assert empty.is_dir and empty.children == []


def test_mapping_with_extra_keys_is_a_plain_directory():
    tree = build_tree({"pkg": {"type": "file", "setup.py": None}})
    pkg = tree.children[0]
    assert pkg.is_dir
    assert [c.name for c in pkg.children] == ["type", "setup.py"]


@pytest.mark.parametrize(
    "doc, message",
    [
        ({"a": {"type": "file", "children": {"x": None}}}, "cannot have children"),
        ({"a": {"type": "dir", "content": "x"}}, "cannot have content"),
        ({"a": {"type": "dir", "children": ["x"]}}, "must be a mapping"),
        ({"a": {"type": "file", "mode": "rwx"}}, "invalid mode"),
        ({"a": ["x", "y"]}, "is a list"),
    ],
)
def test_malformed_nodes(doc, message):
    with pytest.raises(ParseError, match=message):
        build_tree(doc)


def test_top_level_must_be_a_mapping():
    with pytest.raises(ParseError, match="top level"):
        parse_json('["a", "b"]')


def test_empty_yaml_gives_empty_tree():
    assert parse_yaml("").children == []


@pytest.mark.parametrize(
    "parser, text",
    [
        (parse_yaml, "a.txt:\na.txt:\n"),
        (parse_json, '{"a.txt": null, "a.txt": null}'),
        (parse_toml, '"a.txt" = ""\n"a.txt" = ""\n'),
        (parse_json5, "{'a.txt': null, 'a.txt': null}"),
    ],
)
def test_duplicate_keys_are_rejected(parser, text):
    with pytest.raises(ParseError):
        parser(text, "dup")


def test_syntax_error_carries_line_number():
    with pytest.raises(ParseError) as exc:
        parse_json('{\n  "a": null,\n  oops\n}', "bad.json")
    assert exc.value.line == 3
    assert exc.value.source == "bad.json"


def test_yaml_syntax_error_carries_line_number():
    with pytest.raises(ParseError) as exc:
        parse_yaml("a:\n  b: [\n", "bad.yaml")
    assert exc.value.line is not None


def test_json5_backtick_strings_are_dedented():
    doc = """\
{
  "main.rs": `
      fn main() {
          println!("hi");
      }
  `,
  "note.txt": "a `quoted` word",
}
"""
    tree = parse_json5(doc)
    main, note = tree.children
    assert main.content == 'fn main() {\n    println!("hi");\n}'
    assert note.content == "a `quoted` word"


@pytest.mark.parametrize(
    "path, parser",
    [
        ("a.md", parse_markdown),
        ("a.MARKDOWN", parse_markdown),
        ("a.yml", parse_yaml),
        ("a.YAML", parse_yaml),
        ("a.json", parse_json),
        ("a.toml", parse_toml),
        ("a.json5", parse_json5),
    ],
)
def test_parser_is_picked_by_extension(path, parser):
    assert parser_for(path) is parser


def test_unknown_extension():
    with pytest.raises(ParseError, match="unsupported extension '.ini'"):
        parse_spec("layout.ini", "")


@pytest.mark.parametrize(
    "parser, text",
    [
        (parse_json, '{"run.sh": {"type": "file", "mode": 755}}'),
        (parse_json5, "{'run.sh': {type: 'file', mode: 755}}"),
        (parse_yaml, "run.sh:\n  type: file\n  mode: 755\n"),
        (parse_toml, '"run.sh" = { type = "file", mode = "0o755" }\n'),
    ],
)
def test_integer_and_string_modes_are_octal(parser, text):
    assert parser(text).children[0].mode == 0o755


def test_decoded_octal_literal_needs_quoting():
    with pytest.raises(ParseError, match="invalid mode"):
        parse_toml('"run.sh" = { type = "file", mode = 0o755 }\n')
