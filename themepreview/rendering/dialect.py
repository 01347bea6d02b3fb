"""Translation of the platform's Liquid-style syntax into Jinja2 syntax.

Themes are written for the platform's tag language. Most of it (output
expressions, ``if``/``for``, dotted member access, filter pipes) is shared with
Jinja2; the remaining differences are rewritten here before compilation:

* ``assign``/``capture``/``unless``/``elsif``/``case``/``when``/``comment``
* ``for`` loop parameters ``limit:``, ``offset:`` and ``reversed``, and
  ``(a..b)`` ranges
* filter arguments ``| name: a, b`` and named call arguments ``fn(Key: v)``
* ``forloop.*``, ``contains`` and ``<>``
* conditions of ``if``/``elsif``/``unless``, where only nil and false are
  falsy

Assigned and captured names are stored on a namespace shared by the whole
render (``ASSIGNED_NAMESPACE``), so an ``assign`` inside a loop stays visible
after it, and included templates and layouts can read it.

``{% raw %}`` blocks are copied verbatim. The layout markers are not touched;
they are resolved by the layout engine before translation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_SEGMENT = re.compile(
    r"(?P<comment>\{%-?\s*comment\s*-?%\}.*?\{%-?\s*endcomment\s*-?%\})"
    r"|(?P<raw>\{%-?\s*raw\s*-?%\}.*?\{%-?\s*endraw\s*-?%\})"
    r"|(?P<out_open>\{\{-?)(?P<out>.*?)(?P<out_close>-?\}\})"
    r"|(?P<tag_open>\{%-?)(?P<tag>.*?)(?P<tag_close>-?%\})",
    re.S | re.I,
)
_KEYWORD = re.compile(r"\s*([A-Za-z_]\w*)(.*)", re.S)
_IDENT = re.compile(r"[A-Za-z_]\w*")
_NAMED_ARG = re.compile(r"\s*:(?!:)")
_FILTER_WITH_ARGS = re.compile(r"\|\s*([A-Za-z_]\w*)\s*:(?!:)")
_RANGE = re.compile(r"\(\s*([\w.]+)\s*\.\.\s*([\w.]+)\s*\)")
_FOR = re.compile(r"\s*([A-Za-z_]\w*)\s+in\s+(.*)", re.S)
_FOR_LIMIT = re.compile(r"\blimit\s*:\s*([\w.]+)")
_FOR_OFFSET = re.compile(r"\boffset\s*:\s*([\w.]+)")
_FOR_REVERSED = re.compile(r"\breversed\b")
_WHEN_SEPARATOR = re.compile(r"\s+or\s+|,")
_LOGICAL = re.compile(r"\s+(and|or)\s+")
_ASSIGN_TARGET = re.compile(r"\s*(?:assign|capture)\s+([A-Za-z_]\w*)", re.I)
_FOR_TARGET = re.compile(r"\s*for\s+([A-Za-z_]\w*)\s+in\b", re.I)
_TEST_POSITION = re.compile(r"(?:^|\W)is(?:\s+not)?$")

_LOOP_MEMBERS = {"rindex": "revindex", "rindex0": "revindex0"}

# Tags whose remainder is an expression in both languages.
_EXPRESSION_TAGS = frozenset({"set", "print"})

ASSIGNED_NAMESPACE = "_assigned"
TRUTHY = "_truthy"


@dataclass
class _CaseBlock:
    subject: str
    branches: int = 0


@dataclass
class _State:
    assigned: frozenset[str] = frozenset()
    cases: list[_CaseBlock] = field(default_factory=list)
    counter: int = 0


def _string_end(text: str, start: int) -> int:
    quote = text[start]
    index = start + 1
    while index < len(text):
        if text[index] == "\\":
            index += 2
            continue
        if text[index] == quote:
            return index + 1
        index += 1
    return len(text)


def translate_expression(expr: str, assigned: frozenset[str] = frozenset()) -> str:
    """Rewrite one expression (the inside of ``{{ }}`` or a tag argument).

    Bare names listed in ``assigned`` are read from the shared assignment
    namespace.
    """
    expr = _RANGE.sub(r"range(\1, \2 + 1)", expr)
    out: list[str] = []
    stack: list[str] = []  # "(", "[", "{" or "F" for converted filter arguments
    index = 0
    while index < len(expr):
        char = expr[index]
        if char in "'\"":
            end = _string_end(expr, index)
            out.append(expr[index:end])
            index = end
            continue
        if char == "|":
            if stack and stack[-1] == "F":
                stack.pop()
                out.append(")")
            match = _FILTER_WITH_ARGS.match(expr, index)
            if match:
                out.append(f"| {match.group(1)}(")
                stack.append("F")
                index = match.end()
                continue
        elif char in "([{":
            stack.append(char)
        elif char in ")]}":
            while stack and stack[-1] == "F":
                stack.pop()
                out.append(")")
            if stack:
                stack.pop()
        elif char == "<" and expr.startswith("<>", index):
            out.append("!=")
            index += 2
            continue
        elif char.isalpha() or char == "_":
            word = _IDENT.match(expr, index).group(0)
            end = index + len(word)
            preceded_by_dot = "".join(out).rstrip().endswith(".")
            named = _NAMED_ARG.match(expr, end)
            if named and stack and stack[-1] in "(F" and not preceded_by_dot:
                out.append(f"{word}=")
                index = named.end()
                continue
            if word == "forloop" and not preceded_by_dot:
                word = "loop"
            elif preceded_by_dot and "".join(out).endswith("loop."):
                word = _LOOP_MEMBERS.get(word, word)
            elif word == "contains" and not preceded_by_dot:
                word = "is contains"
            elif word in assigned and not preceded_by_dot and not _names_filter_or_test(out):
                word = f"{ASSIGNED_NAMESPACE}.{word}"
            out.append(word)
            index = end
            continue
        out.append(char)
        index += 1
    out.extend(")" for marker in reversed(stack) if marker == "F")
    return "".join(out)


def _names_filter_or_test(out: list[str]) -> bool:
    before = "".join(out).rstrip()
    return before.endswith("|") or _TEST_POSITION.search(before) is not None


def _split_condition(condition: str) -> tuple[list[str], list[str]]:
    """Split at top-level ``and``/``or``, returning operands and operators."""
    operands: list[str] = []
    operators: list[str] = []
    current: list[str] = []
    depth = 0
    index = 0
    while index < len(condition):
        char = condition[index]
        if char in "'\"":
            end = _string_end(condition, index)
            current.append(condition[index:end])
            index = end
            continue
        if char in "([":
            depth += 1
        elif char in ")]":
            depth -= 1
        elif depth == 0:
            logical = _LOGICAL.match(condition, index)
            if logical:
                operands.append("".join(current))
                operators.append(logical.group(1))
                current = []
                index = logical.end()
                continue
        current.append(char)
        index += 1
    operands.append("".join(current))
    return operands, operators


def translate_condition(condition: str, assigned: frozenset[str] = frozenset()) -> str:
    """Rewrite an ``if`` condition so only nil and false are falsy.

    Operators group from the right, so ``a and b or c`` reads as
    ``a and (b or c)``.
    """
    operands, operators = _split_condition(condition)
    terms = [f"{TRUTHY}({translate_expression(operand.strip(), assigned)})" for operand in operands]
    result = terms[-1]
    for index in range(len(terms) - 2, -1, -1):
        right = result if index == len(terms) - 2 else f"({result})"
        result = f"{terms[index]} {operators[index]} {right}"
    return result


def _assigned_names(source: str) -> frozenset[str]:
    assigned: set[str] = set()
    loop_variables: set[str] = set()
    for match in _SEGMENT.finditer(source):
        tag = match.group("tag")
        if tag is None:
            continue
        target = _ASSIGN_TARGET.match(tag)
        if target:
            assigned.add(target.group(1))
        loop = _FOR_TARGET.match(tag)
        if loop:
            loop_variables.add(loop.group(1))
    # A loop variable shadows any assignment of the same name.
    return frozenset(assigned - loop_variables)


def _split_when(values: str) -> list[str]:
    parts: list[str] = []
    current: list[str] = []
    index = 0
    while index < len(values):
        char = values[index]
        if char in "'\"":
            end = _string_end(values, index)
            current.append(values[index:end])
            index = end
            continue
        separator = _WHEN_SEPARATOR.match(values, index)
        if separator:
            parts.append("".join(current))
            current = []
            index = separator.end()
            continue
        current.append(char)
        index += 1
    parts.append("".join(current))
    return [part.strip() for part in parts if part.strip()]


def _translate_for(rest: str, assigned: frozenset[str]) -> str:
    match = _FOR.match(rest)
    if match is None:
        return f"for{rest}"
    variable, source = match.groups()
    limit = _FOR_LIMIT.search(source)
    offset = _FOR_OFFSET.search(source)
    is_reversed = _FOR_REVERSED.search(source) is not None
    for pattern in (_FOR_LIMIT, _FOR_OFFSET, _FOR_REVERSED):
        source = pattern.sub("", source)

    iterable = translate_expression(source.strip(), assigned)
    if limit or offset:
        start = translate_expression(offset.group(1), assigned) if offset else "0"
        stop = f"{start} + {translate_expression(limit.group(1), assigned)}" if limit else ""
        iterable = f"(({iterable}) | list)[{start}:{stop}]"
    if is_reversed:
        iterable = f"({iterable}) | reverse"
    return f"for {variable} in {iterable}"


def _translate_tag(body: str, state: _State) -> str | None:
    """Return the rewritten tag body, or ``None`` to drop the tag entirely."""
    match = _KEYWORD.match(body)
    if match is None:
        return body
    keyword, rest = match.group(1).lower(), match.group(2)
    assigned = state.assigned

    if keyword in ("assign", "capture"):
        return f"set {translate_expression(rest.strip(), assigned)}"
    if keyword == "endcapture":
        return "endset"
    if keyword in ("if", "elsif", "unless") and rest.strip():
        condition = translate_condition(rest.strip(), assigned)
        if keyword == "unless":
            return f"if not ({condition})"
        return f"{'if' if keyword == 'if' else 'elif'} {condition}"
    if keyword == "endunless":
        return "endif"
    if keyword == "for":
        return _translate_for(rest, assigned)
    if keyword in ("include", "render"):
        target = re.split(r"\s+with\s+|,", rest.strip(), maxsplit=1)[0]
        return f"include {target}"
    if keyword == "case":
        subject = f"_case_{state.counter}"
        state.counter += 1
        state.cases.append(_CaseBlock(subject))
        return f"set {subject} = {translate_expression(rest.strip(), assigned)}"
    if keyword == "when" and state.cases:
        case = state.cases[-1]
        condition = " or ".join(
            f"{case.subject} == {translate_expression(value, assigned)}"
            for value in _split_when(rest)
        )
        case.branches += 1
        return f"{'if' if case.branches == 1 else 'elif'} {condition or 'false'}"
    if keyword == "endcase" and state.cases:
        case = state.cases.pop()
        return "endif" if case.branches else None
    if keyword in _EXPRESSION_TAGS:
        return f"{match.group(1)} {translate_expression(rest.strip(), assigned)}"
    return body


def translate(source: str) -> str:
    """Translate a template source from the platform dialect into Jinja2."""
    state = _State(assigned=_assigned_names(source))

    def _replace(match: re.Match[str]) -> str:
        if match.group("comment") is not None:
            return ""
        if match.group("raw") is not None:
            return match.group("raw")
        if match.group("out_open") is not None:
            expr = translate_expression(match.group("out"), state.assigned)
            return f"{match.group('out_open')} {expr.strip()} {match.group('out_close')}"
        body = _translate_tag(match.group("tag"), state)
        if body is None:
            return ""
        return f"{match.group('tag_open')} {body.strip()} {match.group('tag_close')}"

    return _SEGMENT.sub(_replace, source)
