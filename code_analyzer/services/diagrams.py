"""
Diagram Sanitizer/Validator - Normalizes flowchart-style diagram grammar.

Two input forms:
- raw grammar text ("graph TD\\n  A --> B")
- a structured {nodes, edges} description, compiled deterministically to
  grammar before sanitizing

Validation is advisory: an invalid diagram is logged and still returned
for rendering. Repair through the completion backend is a separate path,
used only when rendering actually fails on the client.
"""

import logging
import re
from typing import List, Optional

from code_analyzer.core.exceptions import ServiceNotConfiguredError
from code_analyzer.models.schemas import DiagramValidation, StructuredDiagram
from code_analyzer.services.llm_client import LLMClient, strip_code_fences

logger = logging.getLogger(__name__)

MAX_LABEL_CHARS = 50
MAX_NODE_ID_CHARS = 30

DIAGRAM_KEYWORDS = (
    "graph",
    "flowchart",
    "sequenceDiagram",
    "classDiagram",
    "stateDiagram",
    "erDiagram",
    "gantt",
    "pie",
    "gitGraph",
)

DIRECTIONS = ("TD", "TB", "BT", "RL", "LR")

SHAPES = {
    "rect": ("[", "]"),
    "rounded": ("(", ")"),
    "circle": ("((", "))"),
    "diamond": ("{", "}"),
    "database": ("[(", ")]"),
    "cloud": ("))", "(("),
    "hexagon": ("{{", "}}"),
}

CONNECTORS = {
    "arrow": "-->",
    "dotted": "-.->",
    "thick": "==>",
    "line": "---",
}

EMPTY_DIAGRAM = 'graph TD\n  A["No content"]'

FIX_DIAGRAM_SYSTEM_PROMPT = """You are a Mermaid diagram expert. Fix the following Mermaid diagram syntax to make it valid. Return ONLY the fixed Mermaid code, no explanations or markdown code blocks.

Common fixes:
- Ensure proper graph declaration (graph TD, flowchart LR, etc.)
- Fix node syntax: A[Text] for rectangles, A(Text) for rounded, A{Text} for diamonds
- Fix edge syntax: --> for arrows, --- for lines
- Escape special characters in labels with quotes: A["Label with (special) chars"]
- Ensure consistent node naming (no spaces in IDs)
- Fix subgraph syntax if present"""

_WHITESPACE = re.compile(r"\s+")
_NON_ID_CHARS = re.compile(r"[^A-Za-z0-9_]")
_BROKEN_LABELED_ARROW = re.compile(r"-->\|([^|\n]+)\|>+")
_ANGLE_BRACKET_LABEL = re.compile(r"\[([^\]\n]*[<>][^\]\n]*)\]")
# Plain `id[label]`; shapes like [( [[ [/ [\ and already-quoted labels are left alone
_BARE_LABEL = re.compile(r"(\w+)\[(?![(\[/\\])([^\]\"\n]+)\]")
_UNSAFE_LABEL_CHARS = set(" (){}|;#&")


# =============================================================================
# LABELS AND IDS
# =============================================================================


def sanitize_label(text: Optional[str]) -> str:
    """Make text safe inside a quoted node or edge label."""
    if not text:
        return ""
    text = text.replace("<", "").replace(">", "")
    text = text.replace("`", "'").replace('"', "'")
    text = re.sub(r"[\\/]", " ", text)
    text = _WHITESPACE.sub(" ", text).strip()
    return text[:MAX_LABEL_CHARS].rstrip()


def sanitize_node_id(node_id: Optional[str], index: int = 0) -> str:
    """Restrict an id to [A-Za-z0-9_], never starting with a digit."""
    if not node_id:
        return f"node{index}"
    cleaned = _NON_ID_CHARS.sub("_", node_id)
    if cleaned[0].isdigit():
        cleaned = "_" + cleaned
    return cleaned[:MAX_NODE_ID_CHARS]


# =============================================================================
# COMPILE / SANITIZE / VALIDATE
# =============================================================================


def compile_structured(diagram: StructuredDiagram) -> str:
    """Render a node/edge description as grammar text."""
    direction = diagram.direction.upper() if diagram.direction else "TD"
    if direction not in DIRECTIONS:
        direction = "TD"

    lines: List[str] = []
    if diagram.title:
        lines.append(f"%% {sanitize_label(diagram.title)}")
    lines.append(f"graph {direction}")

    for index, node in enumerate(diagram.nodes):
        node_id = sanitize_node_id(node.id, index)
        label = sanitize_label(node.label or node.id) or node_id
        opening, closing = SHAPES.get(node.shape or "rect", SHAPES["rect"])
        lines.append(f'  {node_id}{opening}"{label}"{closing}')

    for edge in diagram.edges:
        if not edge.source or not edge.target:
            logger.warning(f"Dropping edge with a missing endpoint: {edge.source!r} -> {edge.target!r}")
            continue
        source = sanitize_node_id(edge.source)
        target = sanitize_node_id(edge.target)
        connector = CONNECTORS.get(edge.type or "arrow", CONNECTORS["arrow"])
        label = sanitize_label(edge.label)
        if label:
            lines.append(f'  {source} {connector}|"{label}"| {target}')
        else:
            lines.append(f"  {source} {connector} {target}")

    return "\n".join(lines)


def has_diagram_keyword(line: str) -> bool:
    lowered = line.strip().lower()
    return any(lowered.startswith(keyword.lower()) for keyword in DIAGRAM_KEYWORDS)


def _quote_bare_label(match: "re.Match[str]") -> str:
    node_id, label = match.group(1), match.group(2)
    if any(ch in _UNSAFE_LABEL_CHARS for ch in label):
        return f'{node_id}["{sanitize_label(label)}"]'
    return match.group(0)


def _repair_syntax(text: str) -> str:
    # A repair can join fragments into a new broken arrow; repeat until stable
    while True:
        repaired = _BROKEN_LABELED_ARROW.sub(r"-->|\1|", text)
        repaired = _ANGLE_BRACKET_LABEL.sub(lambda m: f'["{sanitize_label(m.group(1))}"]', repaired)
        repaired = _BARE_LABEL.sub(_quote_bare_label, repaired)
        if repaired == text:
            return text
        text = repaired


def sanitize_diagram(code: Optional[str]) -> str:
    """
    Normalize diagram grammar. Applying it twice gives the same output.

    Drops %% comment lines, normalizes line endings, declares a graph type
    when the first line has none, repairs `-->|label|>` arrows and quotes
    bracket labels that carry unsafe characters.
    """
    text = (code or "").replace("\r\n", "\n").replace("\r", "\n")
    text = "\n".join(
        line for line in text.split("\n")
        if not line.lstrip().startswith("%%")
    ).strip()

    if not text:
        return EMPTY_DIAGRAM

    if not has_diagram_keyword(text.split("\n", 1)[0]):
        text = "graph TD\n" + text

    return _repair_syntax(text)


def validate_diagram(code: Optional[str]) -> DiagramValidation:
    """Fail-closed structural check: non-empty, two or more lines, known type."""
    if not code or not isinstance(code, str) or not code.strip():
        return DiagramValidation(valid=False, reason="Empty or invalid code")

    lines = [line for line in code.strip().split("\n") if line.strip()]
    if len(lines) < 2:
        return DiagramValidation(valid=False, reason="Diagram too short")

    if not has_diagram_keyword(lines[0]):
        return DiagramValidation(valid=False, reason="Invalid diagram type")

    return DiagramValidation(valid=True)


def prepare_diagram(
    code: Optional[str] = None,
    diagram: Optional[StructuredDiagram] = None
) -> tuple:
    """
    Compile (if structured), sanitize and validate.

    Returns (sanitized_code, DiagramValidation). An invalid result is only
    logged; the caller renders it anyway.
    """
    source = compile_structured(diagram) if diagram is not None else code
    sanitized = sanitize_diagram(source)
    validation = validate_diagram(sanitized)
    if not validation.valid:
        logger.warning(f"Diagram failed validation ({validation.reason}); rendering anyway")
    return sanitized, validation


async def repair_diagram(llm: LLMClient, code: str) -> str:
    """
    Ask the completion backend to correct a diagram that failed to render.

    Raises:
        ServiceNotConfiguredError: no completion backend
        UpstreamError: the backend answered with an error
    """
    if not llm.is_configured:
        raise ServiceNotConfiguredError()

    sanitized = sanitize_diagram(code)
    answer = await llm.generate(
        f"Fix this Mermaid diagram:\n\n{sanitized}",
        system_prompt=FIX_DIAGRAM_SYSTEM_PROMPT,
        max_tokens=2000,
        temperature=0,
    )
    fixed = strip_code_fences(answer)
    if not fixed:
        logger.warning("Diagram repair returned nothing, keeping sanitized source")
        return sanitized
    return fixed
