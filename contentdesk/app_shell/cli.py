import argparse
import json
import logging
import sys
from pathlib import Path

from contentdesk.components.richtext import (
    ParseInput,
    RulesPort,
    ValidateInput,
    run_parse,
    run_validate,
    serialize_document,
)
from contentdesk.domain.document import Document
from contentdesk.rules import RulesAdapter, load_rules

logger = logging.getLogger("cli")

RULES_PATH = "rules.yaml"


def get_rules(path: str | None) -> RulesPort | None:
    """Load the rules file; without --rules, use rules.yaml only if present."""
    if path is None:
        if not Path(RULES_PATH).exists():
            return None
        path = RULES_PATH

    try:
        rules = load_rules(Path(path))
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Cannot load rules: {e}")
        sys.exit(1)
    return RulesAdapter(rules)


def read_document(path: Path, rules: RulesPort | None) -> Document:
    if not path.exists():
        logger.error(f"File {path} not found.")
        sys.exit(1)

    result = run_parse(ParseInput(html=path.read_text(encoding="utf-8")), rules=rules)
    for error in result.errors:
        logger.warning(f"{path}: {error.message}")
    assert result.document is not None
    return result.document


def handle_canonicalize(rules: RulesPort | None, args: argparse.Namespace) -> None:
    path = Path(args.file)
    html_text = serialize_document(read_document(path, rules))

    if args.write:
        path.write_text(html_text, encoding="utf-8")
        print(f"Rewrote {path}")
    else:
        print(html_text)


def handle_tree(rules: RulesPort | None, args: argparse.Namespace) -> None:
    document = read_document(Path(args.file), rules)
    print(json.dumps(document.to_dict(), indent=2))


def handle_check(rules: RulesPort | None, args: argparse.Namespace) -> None:
    path = Path(args.file)
    result = run_validate(ValidateInput(document=read_document(path, rules)), rules=rules)

    if result.is_valid:
        print(f"{path}: OK")
        return

    for error in result.errors:
        location = f" ({error.path})" if error.path else ""
        print(f"{path}: {error.code}{location}: {error.message}")
    sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO)

    parser = argparse.ArgumentParser(description="contentdesk rich content tools")
    parser.add_argument("--rules", help=f"Path to rules file (default: {RULES_PATH} if present)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # canonicalize
    canon_parser = subparsers.add_parser(
        "canonicalize", help="Rewrite stored HTML in canonical form"
    )
    canon_parser.add_argument("file", help="HTML file")
    canon_parser.add_argument("--write", action="store_true", help="Rewrite the file in place")

    # tree
    tree_parser = subparsers.add_parser("tree", help="Print the document tree as JSON")
    tree_parser.add_argument("file", help="HTML file")

    # check
    check_parser = subparsers.add_parser("check", help="Validate stored HTML")
    check_parser.add_argument("file", help="HTML file")

    args = parser.parse_args(argv)

    rules = get_rules(args.rules)

    if args.command == "canonicalize":
        handle_canonicalize(rules, args)
    elif args.command == "tree":
        handle_tree(rules, args)
    elif args.command == "check":
        handle_check(rules, args)


if __name__ == "__main__":
    main()
