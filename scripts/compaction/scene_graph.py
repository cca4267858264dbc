"""Scene hierarchy reconstruction for flat, id-keyed engine serializations.

Editors such as Unity and Godot save a scene as a flat list of records. Each
record carries an opaque id and a type tag, and points at other records by id:
components name the object they sit on, transforms name their parent. This
module rebuilds the object tree from those pointers and renders it as an
indented outline, one object per line with its components listed inline.

The algorithm is written once. Everything dialect specific (header syntax,
field names, noise tags, display names) lives in a ``SceneFormat`` value; see
``compaction.formats`` for the shipped dialects.
"""
from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Mapping, Optional, Pattern, Set, Tuple

from .constants import PROPERTY_VALUE_MAX_LEN

PROPERTY_KEY_RE = re.compile(r"^[A-Za-z_][\w./-]*$")
HEADER_ATTR_RE = re.compile(
    r'([A-Za-z_]\w*)\s*=\s*("(?:[^"\\]|\\.)*"|\w+\([^)]*\)|\[[^\]]*\]|[^\s\]]+)'
)
UNNAMED = "(unnamed)"


@dataclass(frozen=True)
class SceneFormat:
    name: str
    summary_label: str
    header_pattern: Pattern[str]
    reference_pattern: Pattern[str]
    separator: str
    name_fields: Tuple[str, ...]
    owner_fields: Tuple[str, ...]
    parent_fields: Tuple[str, ...]
    component_fields: Tuple[str, ...]
    transform_tags: FrozenSet[str]
    property_tags: FrozenSet[str]
    blacklist: FrozenSet[str]
    type_names: Mapping[str, str]
    kind_fields: Tuple[str, ...] = ()
    id_fields: Tuple[str, ...] = ()
    reserved_prefixes: Tuple[str, ...] = ()
    reserved_keys: FrozenSet[str] = frozenset()
    labelled_tags: FrozenSet[str] = frozenset()
    fallback_label: str = "Comp#{tag}"
    root_parent_ids: FrozenSet[str] = frozenset({"", "0"})
    header_attributes: bool = False
    path_ids: bool = False
    # tag -> prefix for ids, and reference kind -> prefix, when tags share an id space
    id_namespaces: Mapping[str, str] = field(default_factory=dict)
    reference_namespaces: Mapping[str, str] = field(default_factory=dict)


@dataclass
class SceneRecord:
    id: str
    tag: str
    name: str = ""
    kind: str = ""
    owner_id: str = ""
    parent_id: str = ""
    component_ids: List[str] = field(default_factory=list)
    properties: Dict[str, str] = field(default_factory=dict)
    children: List["SceneRecord"] = field(default_factory=list)


def shorten_value(value: str, max_len: int = PROPERTY_VALUE_MAX_LEN) -> str:
    if len(value) <= max_len:
        return value
    return value[: max_len - 3] + "..."


def clean_value(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def extract_reference(fmt: SceneFormat, value: str) -> str:
    """Pull the referenced id out of a field value.

    A named ``ns`` group selects the id namespace via ``reference_namespaces``;
    the first other group that matched is the id itself.
    """
    match = fmt.reference_pattern.search(value.strip())
    if not match:
        return ""
    ns_index = fmt.reference_pattern.groupindex.get("ns")
    prefix = fmt.reference_namespaces.get(match.group("ns") or "", "") if ns_index else ""
    for index, group in enumerate(match.groups(), start=1):
        if index == ns_index or group is None:
            continue
        return prefix + group.strip()
    return ""


def parse_header_attributes(attrs: str) -> List[Tuple[str, str]]:
    return [(m.group(1), m.group(2)) for m in HEADER_ATTR_RE.finditer(attrs)]


def node_path(parent: str, name: str) -> str:
    if not parent:
        return "."
    if parent == ".":
        return name
    return f"{parent}/{name}"


def _field_value(line: str, prefixes: Tuple[str, ...]) -> Optional[str]:
    for prefix in prefixes:
        if line.startswith(prefix):
            return line[len(prefix) :].strip()
    return None


def _is_reserved(fmt: SceneFormat, key: str) -> bool:
    if key in fmt.reserved_keys:
        return True
    return any(key.startswith(prefix) for prefix in fmt.reserved_prefixes)


def parse_record(
    fmt: SceneFormat,
    tag: str,
    record_id: str,
    lines: List[str],
) -> Optional[SceneRecord]:
    """Build one record from a block's body lines.

    Missing fields stay empty. Returns None for noise tags and for records
    that end up without an id.
    """
    if tag in fmt.blacklist:
        return None
    record = SceneRecord(id=record_id, tag=tag)
    collect_properties = tag in fmt.property_tags

    for raw in lines:
        line = raw.strip()
        if not line:
            continue

        value = _field_value(line, fmt.name_fields)
        if value is not None:
            record.name = clean_value(value)
            continue
        value = _field_value(line, fmt.id_fields)
        if value is not None:
            record.id = clean_value(value)
            continue
        value = _field_value(line, fmt.owner_fields)
        if value is not None:
            record.owner_id = extract_reference(fmt, value)
            continue
        value = _field_value(line, fmt.parent_fields)
        if value is not None:
            record.parent_id = extract_reference(fmt, value)
            continue
        value = _field_value(line, fmt.component_fields)
        if value is not None:
            ref = extract_reference(fmt, value)
            if ref:
                record.component_ids.append(ref)
            continue
        value = _field_value(line, fmt.kind_fields)
        if value is not None:
            record.kind = clean_value(value)
            continue

        if collect_properties:
            sep = line.find(fmt.separator)
            if sep <= 0:
                continue
            key = line[:sep].strip()
            if not PROPERTY_KEY_RE.match(key) or _is_reserved(fmt, key):
                continue
            # Empty values open a nested map (or the record's own type line).
            value = line[sep + len(fmt.separator) :].strip()
            if value:
                record.properties[key] = value

    if record.id and tag in fmt.id_namespaces:
        record.id = fmt.id_namespaces[tag] + record.id
    if not record.id and fmt.path_ids and record.name:
        record.id = node_path(record.parent_id, record.name)
    if not record.id:
        return None
    return record


def parse_records(fmt: SceneFormat, text: str) -> Tuple[int, Dict[str, SceneRecord]]:
    """Segment ``text`` at header lines and index the parsed records by id.

    Returns the number of headers found alongside the index so callers can
    tell "not a scene at all" from "a scene with nothing useful in it".
    """
    matches = list(fmt.header_pattern.finditer(text))
    index: Dict[str, SceneRecord] = {}
    for pos, match in enumerate(matches):
        end = matches[pos + 1].start() if pos + 1 < len(matches) else len(text)
        groups = match.groupdict()
        body = text[match.end() : end].split("\n")
        lines: List[str] = []
        if fmt.header_attributes and groups.get("attrs"):
            lines.extend(
                f"{key} {fmt.separator} {value}"
                for key, value in parse_header_attributes(groups["attrs"])
            )
        lines.extend(body)
        record = parse_record(fmt, groups["tag"], groups.get("id") or "", lines)
        if record is not None:
            index[record.id] = record
    return len(matches), index


def _has_ancestor(start: SceneRecord, target: SceneRecord, index: Mapping[str, SceneRecord]) -> bool:
    seen: Set[str] = set()
    current: Optional[SceneRecord] = start
    while current is not None and current.id not in seen:
        if current is target:
            return True
        seen.add(current.id)
        current = index.get(current.parent_id) if current.parent_id else None
    return False


def build_hierarchy(fmt: SceneFormat, index: Mapping[str, SceneRecord]) -> List[SceneRecord]:
    """Link transform-like records to their parents and return the roots.

    A record whose parent id does not resolve is left out of the tree, and so
    is one whose attachment would close a reference cycle.
    """
    roots: List[SceneRecord] = []
    for record in index.values():
        if record.tag not in fmt.transform_tags:
            continue
        if record.parent_id in fmt.root_parent_ids:
            roots.append(record)
            continue
        parent = index.get(record.parent_id)
        if parent is None or _has_ancestor(parent, record, index):
            continue
        parent.children.append(record)
    return roots


def resolve_owner(record: SceneRecord, index: Mapping[str, SceneRecord]) -> Optional[SceneRecord]:
    if not record.owner_id:
        return record
    return index.get(record.owner_id)


def display_name(record: SceneRecord, index: Mapping[str, SceneRecord]) -> str:
    owner = resolve_owner(record, index)
    if owner is None or not owner.name:
        return UNNAMED
    return owner.name


def _format_properties(properties: Mapping[str, str]) -> str:
    return ", ".join(f"{key}:{shorten_value(value)}" for key, value in properties.items())


def component_label(fmt: SceneFormat, record: SceneRecord) -> str:
    label = fmt.type_names.get(record.tag) or record.kind or fmt.fallback_label.format(tag=record.tag)
    if record.tag in fmt.labelled_tags and record.name:
        label += f"({posixpath.basename(record.name)})"
    if record.tag in fmt.property_tags and record.properties:
        label += f"({_format_properties(record.properties)})"
    return label


def render_line(fmt: SceneFormat, record: SceneRecord, owner: SceneRecord, depth: int,
                index: Mapping[str, SceneRecord]) -> str:
    line = "  " * depth + (owner.name or UNNAMED)
    if owner.kind:
        line += f" ({owner.kind})"
    components: List[str] = []
    for comp_id in owner.component_ids:
        if comp_id == record.id:
            continue
        comp = index.get(comp_id)
        if comp is not None:
            components.append(component_label(fmt, comp))
    if components:
        line += f" [{', '.join(components)}]"
    if owner.tag in fmt.property_tags and owner.properties:
        line += f" {{{_format_properties(owner.properties)}}}"
    return line


def render_hierarchy(fmt: SceneFormat, roots: List[SceneRecord], index: Mapping[str, SceneRecord]) -> List[str]:
    lines: List[str] = []
    visited: Set[str] = set()

    def sort_key(record: SceneRecord) -> Tuple[str, str]:
        return (display_name(record, index), record.id)

    # Explicit stack: scene depth is not bounded by the interpreter's recursion limit.
    stack: List[Tuple[SceneRecord, int]] = [(root, 0) for root in reversed(sorted(roots, key=sort_key))]
    while stack:
        record, depth = stack.pop()
        if record.id in visited:
            continue
        visited.add(record.id)
        owner = resolve_owner(record, index)
        if owner is None:
            continue
        lines.append(render_line(fmt, record, owner, depth, index))
        for child in reversed(sorted(record.children, key=sort_key)):
            stack.append((child, depth + 1))
    return lines


def summary_text(fmt: SceneFormat, record_count: int) -> str:
    return (
        f"({fmt.summary_label}: structured hierarchy not found, returning summary)\n"
        f"Records found: {record_count}"
    )


def compact_scene(text: str, fmt: SceneFormat) -> str:
    header_count, index = parse_records(fmt, text)
    if header_count == 0:
        return text
    roots = build_hierarchy(fmt, index)
    lines = render_hierarchy(fmt, roots, index) if roots else []
    if not lines:
        return summary_text(fmt, len(index))
    return "\n".join(lines)
