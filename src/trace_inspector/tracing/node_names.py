"""
Node name normalization for parser-generated observations.

Parser stages emit observations named like
``session.parser.turn_002.tool_result.web_search.4``. These helpers parse
such names, detect "container" nodes that only group more specific leaves,
rewrite them into compact display ids and render human-readable labels.

Every function is total: unmatched or empty input is returned unchanged,
or reported as None/False.
"""

import re
from typing import Optional

from ..models import ParsedNodeName


LEGACY_TOOL_RESULT_NODE_RE = re.compile(
    r"^tool\.(?P<tool_name>.+)\.result\.call_(?P<index>\d+)$"
)
PARSER_NODE_RE = re.compile(
    r"^(?:session\.)?parser\.turn_(?P<turn>\d+)(?:\.(?P<suffix>.+))?$"
)

SESSION_PARSER_NODE_RE = re.compile(r"^session\.parser\.(?P<rest>.+)$")
PARSER_TURN_TOOL_RESULT_RE = re.compile(
    r"^parser\.turn_(?P<turn>\d+)\.tool_result\.(?P<tool_name>[^.]+)\.(?P<index>\d+)$"
)
PARSER_TURN_TOOL_PRE_RE = re.compile(
    r"^parser\.turn_(?P<turn>\d+)\.pre_(?P<tool_name>[^.]+)\.(?P<index>\d+)$"
)

# Display ids produced by normalize_parser_node_name_for_graph()
TOOL_RESULT_UI_NODE_RE = re.compile(r"^parser\.(?P<tool_name>[^.]+)\.(?P<index>\d+)$")
TOOL_PRE_UI_NODE_RE = re.compile(r"^parser\.pre_(?P<tool_name>[^.]+)\.(?P<index>\d+)$")
TOOL_CALL_UI_NODE_RE = re.compile(
    r"^parser\.turn_\d+\.tool_call\.(?P<tool_name>[^.]+)\.(?P<index>\d+)$"
)
STRUCTURED_OUTPUT_UI_NODE_RE = re.compile(
    r"^parser\.turn_\d+\.(?:structured_output|strucutured_output)$"
)
SESSION_TURN_NODE_RE = re.compile(r"^session\.turn\.(?P<turn>\d+)$")

PARSER_NODE_PREFIX = "parser."

STRUCTURED_OUTPUT_KINDS = frozenset({"structured_output", "strucutured_output"})
CONTAINER_KINDS = frozenset(
    {"tool_calls", "tool_results", "tool_call", "tool_result"}
) | STRUCTURED_OUTPUT_KINDS


def parse_parser_node_name(node_name: Optional[str]) -> Optional[ParsedNodeName]:
    """Split a parser node name into its turn index and suffix segments.

    Example:
        >>> parse_parser_node_name("session.parser.turn_002.tool_result.web_search.4")
        ParsedNodeName(turn=2, suffix_segments=('tool_result', 'web_search', '4'))
    """
    if not node_name:
        return None

    match = PARSER_NODE_RE.fullmatch(node_name)
    if not match:
        return None

    suffix = match.group("suffix")
    segments = tuple(s for s in suffix.split(".") if s) if suffix else ()
    return ParsedNodeName(turn=int(match.group("turn")), suffix_segments=segments)


def is_parser_node_name(node_name: Optional[str]) -> bool:
    return parse_parser_node_name(node_name) is not None


def is_parser_container_node_name(
    node_name: Optional[str], *, keep_structured_output: bool = False
) -> bool:
    """Check whether a parser node only groups more specific leaves.

    Containers look like ``session.parser.turn_002`` or
    ``session.parser.turn_002.tool_calls``; leaves carry more segments
    (``...tool_call.web_search.4``).

    Args:
        node_name: Raw observation or node name
        keep_structured_output: Treat ``structured_output`` as a leaf. The
            graph keeps it so it can hang under its kernel node.
    """
    parsed = parse_parser_node_name(node_name)
    if parsed is None:
        return False

    if not parsed.suffix_segments:
        return True

    if len(parsed.suffix_segments) > 1:
        return False

    kind = parsed.suffix_segments[0]
    if keep_structured_output and kind in STRUCTURED_OUTPUT_KINDS:
        return False
    return kind in CONTAINER_KINDS


def normalize_tool_result_node_name(node_name: Optional[str]) -> Optional[str]:
    """Rewrite legacy ``tool.<name>.result.call_<n>`` names to ``<name>.<n>``."""
    if not node_name:
        return node_name

    match = LEGACY_TOOL_RESULT_NODE_RE.fullmatch(node_name)
    if not match:
        return node_name

    tool_name = match.group("tool_name").strip()
    if not tool_name:
        return node_name
    return f"{tool_name}.{match.group('index')}"


def normalize_parser_node_name_for_graph(node_name: Optional[str]) -> Optional[str]:
    """Normalize session-scoped parser node names for display.

    Examples:
        session.parser.turn_002.tool_result.web_search.4 -> parser.web_search.4
        session.parser.turn_002.pre_web_search.4 -> parser.pre_web_search.4
        session.parser.turn_002.tool_calls -> parser.turn_002.tool_calls

    Applying it twice gives the same result as applying it once.
    """
    if not node_name:
        return node_name

    session_match = SESSION_PARSER_NODE_RE.fullmatch(node_name)
    if not session_match:
        return node_name

    without_session = f"{PARSER_NODE_PREFIX}{session_match.group('rest')}"

    pre_match = PARSER_TURN_TOOL_PRE_RE.fullmatch(without_session)
    if pre_match:
        return f"parser.pre_{pre_match.group('tool_name')}.{pre_match.group('index')}"

    result_match = PARSER_TURN_TOOL_RESULT_RE.fullmatch(without_session)
    if result_match:
        return f"parser.{result_match.group('tool_name')}.{result_match.group('index')}"

    return without_session


def ui_node_name(node_name: Optional[str]) -> str:
    """Display name used by the tree and graph ("" for missing names)."""
    return normalize_parser_node_name_for_graph(node_name) or node_name or ""


def match_tool_result_ui_node(ui_name: str) -> Optional[str]:
    """Return the ``<tool>.<index>`` parent name of a ``parser.<tool>.<index>`` node."""
    match = TOOL_RESULT_UI_NODE_RE.fullmatch(ui_name)
    if not match:
        return None
    return f"{match.group('tool_name')}.{match.group('index')}"


def match_tool_pre_ui_node(ui_name: str) -> Optional[str]:
    """Return the ``<tool>.<index>`` announced by ``parser.pre_<tool>.<index>``."""
    match = TOOL_PRE_UI_NODE_RE.fullmatch(ui_name)
    if not match:
        return None
    return f"{match.group('tool_name')}.{match.group('index')}"


def match_tool_call_ui_node(ui_name: str) -> Optional[str]:
    """Return the ``<tool>.<index>`` parent name of a parser tool_call leaf."""
    match = TOOL_CALL_UI_NODE_RE.fullmatch(ui_name)
    if not match:
        return None
    return f"{match.group('tool_name')}.{match.group('index')}"


def is_structured_output_ui_node(ui_name: Optional[str]) -> bool:
    return bool(ui_name) and STRUCTURED_OUTPUT_UI_NODE_RE.fullmatch(ui_name) is not None


def is_session_turn_node_name(name: Optional[str]) -> bool:
    return bool(name) and SESSION_TURN_NODE_RE.fullmatch(name) is not None


def _to_title_case(value: str) -> str:
    words = re.sub(r"[_-]+", " ", value).split(" ")
    return " ".join(w[0].upper() + w[1:] for w in words if w)


def _suffix_label(segments: tuple[str, ...]) -> str:
    if not segments:
        return "Parser"

    kind = segments[0]
    second = segments[1] if len(segments) > 1 else None
    third = segments[2] if len(segments) > 2 else None

    if kind in ("tool_result", "tool_call"):
        noun = "result" if kind == "tool_result" else "call"
        if second and third and third.isdigit():
            return f"{second} {noun} #{third}"
        if second:
            return f"{second} {noun}"
        return f"Tool {noun}"

    fixed = {
        "tool_calls": "Tool calls",
        "tool_results": "Tool results",
        "input": "Input",
        "output": "Output",
        "metadata": "Metadata",
    }
    if kind in fixed:
        return fixed[kind]

    if second:
        return f"{_to_title_case(kind)}: {'.'.join(segments[1:])}"
    return _to_title_case(kind)


def format_parser_node_name(
    node_name: Optional[str], multiline: bool = True
) -> Optional[str]:
    """Render a parser node name as ``Turn N`` plus a description.

    Example:
        >>> format_parser_node_name("parser.turn_002.tool_calls", multiline=False)
        'Turn 2 - Tool calls'
    """
    parsed = parse_parser_node_name(node_name)
    if parsed is None:
        return None

    separator = "\n" if multiline else " - "
    return f"Turn {parsed.turn}{separator}{_suffix_label(parsed.suffix_segments)}"
