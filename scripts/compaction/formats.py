from __future__ import annotations

import re
from typing import Dict, Optional

from .constants import GODOT_SCENE_EXTS, UNITY_SCENE_EXTS
from .scene_graph import SceneFormat

# Unity class ids seen in scene and prefab files.
UNITY_TYPE_NAMES: Dict[str, str] = {
    "4": "Transform",
    "224": "RectTransform",
    "20": "Camera",
    "81": "AudioListener",
    "82": "AudioSource",
    "95": "Animator",
    "114": "Script",
    "198": "ParticleSystem",
    "212": "SpriteRenderer",
    "23": "MeshRenderer",
    "137": "SkinnedMeshRenderer",
    "33": "MeshFilter",
    "65": "BoxCollider",
    "135": "SphereCollider",
    "136": "CapsuleCollider",
    "64": "MeshCollider",
    "50": "Rigidbody2D",
    "54": "Rigidbody",
    "61": "BoxCollider2D",
    "58": "CircleCollider2D",
    "223": "Canvas",
    "222": "CanvasRenderer",
    "108": "Light",
}

UNITY_YAML = SceneFormat(
    name="unity",
    summary_label="Unity YAML content",
    header_pattern=re.compile(r"^--- !u!(?P<tag>-?\d+) &(?P<id>-?\d+)", re.MULTILINE),
    reference_pattern=re.compile(r"fileID:\s*(-?\d+)"),
    separator=":",
    name_fields=("m_Name:",),
    owner_fields=("m_GameObject:",),
    parent_fields=("m_Father:",),
    component_fields=("- component:",),
    transform_tags=frozenset({"4", "224"}),
    property_tags=frozenset({"114"}),
    # LightmapSettings, NavMeshSettings, RenderSettings, OcclusionCullingSettings
    blacklist=frozenset({"157", "196", "104", "29", "850595691"}),
    type_names=UNITY_TYPE_NAMES,
    reserved_prefixes=("m_",),
    reserved_keys=frozenset({"serializedVersion"}),
)

GODOT_TEXT = SceneFormat(
    name="godot",
    summary_label="Godot text resource",
    header_pattern=re.compile(
        r"^\[(?P<tag>gd_scene|gd_resource|ext_resource|sub_resource|node|connection|editable|resource)\b"
        r"(?P<attrs>[^\n]*)\][ \t]*$",
        re.MULTILINE,
    ),
    reference_pattern=re.compile(
        r'(?P<ns>Ext|Sub)Resource\(\s*"?([^")\s]+)"?\s*\)|^"([^"]*)"$'
    ),
    separator="=",
    name_fields=("name =", "path ="),
    owner_fields=(),
    parent_fields=("parent =",),
    component_fields=("script =", "instance ="),
    kind_fields=("type =",),
    id_fields=("id =",),
    transform_tags=frozenset({"node"}),
    property_tags=frozenset({"node"}),
    blacklist=frozenset({"gd_scene", "gd_resource", "connection", "editable", "resource"}),
    type_names={},
    reserved_prefixes=("metadata/", "_"),
    reserved_keys=frozenset({"groups", "index", "owner", "unique_name_in_owner", "unique_id", "instance_placeholder", "uid"}),
    labelled_tags=frozenset({"ext_resource"}),
    fallback_label="{tag}",
    header_attributes=True,
    path_ids=True,
    # Godot 3 files number ext and sub resources independently (both start at 1).
    id_namespaces={"ext_resource": "ext:", "sub_resource": "sub:"},
    reference_namespaces={"Ext": "ext:", "Sub": "sub:"},
)

SCENE_FORMATS = (UNITY_YAML, GODOT_TEXT)


def scene_format_for_ext(ext: str) -> Optional[SceneFormat]:
    ext = ext.lower()
    if ext in UNITY_SCENE_EXTS:
        return UNITY_YAML
    if ext in GODOT_SCENE_EXTS:
        return GODOT_TEXT
    return None
