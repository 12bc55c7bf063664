from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .assembler import link_diagram
from .config import UmlinkConfig
from .errors import DiagramParseError, OutputPathError, UmlinkError
from .loader import load_all
from .mermaid.document import Diagram
from .mermaid.parser import parse_mermaid
from .mermaid.serializer import serialize_diagram

logger = logging.getLogger(__name__)

FAILED_TO_LOAD_CLASSFILES = 1
FAILED_TO_LOAD_DIAGRAM = 2
FAILED_TO_WRITE_OUTPUT = 3

DEFAULT_OUTPUT_NAME = "output.mmd"


def setup_logging(verbosity: int = 0) -> None:
    """WARNING by default, -v for INFO, -vv for DEBUG. Always on stderr."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="umlink",
        description="Link Java class files into a Mermaid class diagram.",
    )
    parser.add_argument(
        "diagram",
        nargs="?",
        type=Path,
        help="Mermaid diagram to start from (front-matter and relations are kept).",
    )
    parser.add_argument(
        "-i", "--include", "-c", "--classfiles",
        dest="include",
        action="append",
        type=Path,
        default=[],
        metavar="PATH",
        help="Class file or directory searched recursively for .class files (may be repeated).",
    )
    parser.add_argument(
        "-o", "--output",
        required=True,
        type=Path,
        help="Output file, or an existing directory to write into.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML configuration file (default: ./umlink.yml if present).",
    )
    parser.add_argument("-s", "--skip", help="Fully qualified skip annotation, e.g. com.example.Skip.")
    parser.add_argument("--aggregate", help="Fully qualified aggregate annotation.")
    parser.add_argument("--compose", help="Fully qualified compose annotation.")
    parser.add_argument("--link", help="Fully qualified link annotation.")
    parser.add_argument("--navigate", help="Fully qualified navigate annotation.")
    parser.add_argument(
        "--cir-json",
        type=Path,
        metavar="FILE",
        help="Also write the extracted class graph as JSON (debugging aid).",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-v, -vv).")
    return parser.parse_args(argv)


def load_diagram(path: Optional[Path]) -> Diagram:
    """Empty document when no path is given or the file is empty."""
    if path is None:
        return Diagram()
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return Diagram()
    return parse_mermaid(text)


def resolve_output_path(output: Path, diagram: Optional[Path]) -> Path:
    """
    Existing directory -> write inside it, named after the input diagram.
    Existing file -> refuse. New path -> its parent directory must exist.
    """
    if output.exists():
        if output.is_dir():
            name = diagram.name if diagram is not None and diagram.name else DEFAULT_OUTPUT_NAME
            return output / name
        raise OutputPathError(f"Output path {output} already exists as a file. Refusing to overwrite.")

    parent = output.parent
    if str(parent) not in ("", ".") and not parent.is_dir():
        raise OutputPathError(f"Parent directory {parent} does not exist")
    return output


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    setup_logging(args.verbose)

    config = UmlinkConfig.load(args.config) or UmlinkConfig()
    merged = config.merge_with_args(args)

    # ---------- inputs ----------
    try:
        classfiles = load_all(args.include)
    except (UmlinkError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return FAILED_TO_LOAD_CLASSFILES

    try:
        diagram = load_diagram(args.diagram)
    except (DiagramParseError, OSError, UnicodeDecodeError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return FAILED_TO_LOAD_DIAGRAM

    # ---------- linking ----------
    diagram, graph = link_diagram(classfiles, diagram, merged)
    output_text = serialize_diagram(diagram)

    # ---------- outputs ----------
    try:
        output_path = resolve_output_path(args.output, args.diagram)
    except OutputPathError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return FAILED_TO_WRITE_OUTPUT

    try:
        output_path.write_text(output_text, encoding="utf-8")
        if args.cir_json is not None:
            args.cir_json.write_text(json.dumps(graph.to_debug_json(), indent=2), encoding="utf-8")
    except OSError as e:
        print(f"ERROR: Failed to write output file {output_path}: {e}", file=sys.stderr)
        return FAILED_TO_WRITE_OUTPUT

    print(f"Successfully wrote linked diagram to {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
