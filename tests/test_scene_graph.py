import os
import sys
import unittest

sys.path.append(os.path.join(os.path.dirname(__file__), "../scripts"))

from compaction import (
    GODOT_TEXT,
    UNITY_YAML,
    build_hierarchy,
    compact_scene,
    compact_text,
    parse_records,
    shorten_value,
)


def game_object(obj_id: int, name: str, components) -> str:
    lines = [f"--- !u!1 &{obj_id}", "GameObject:", "  m_ObjectHideFlags: 0"]
    if name:
        lines.append(f"  m_Name: {name}")
    lines.append("  m_Component:")
    lines.extend(f"  - component: {{fileID: {comp}}}" for comp in components)
    return "\n".join(lines)


def transform(tr_id: int, owner_id: int, parent_id: int) -> str:
    return "\n".join(
        [
            f"--- !u!4 &{tr_id}",
            "Transform:",
            f"  m_GameObject: {{fileID: {owner_id}}}",
            "  m_LocalPosition: {x: 0, y: 0, z: 0}",
            f"  m_Father: {{fileID: {parent_id}}}",
        ]
    )


def component(tag: int, comp_id: int, owner_id: int, *extra: str) -> str:
    lines = [f"--- !u!{tag} &{comp_id}", "Component:", f"  m_GameObject: {{fileID: {owner_id}}}"]
    lines.extend(extra)
    return "\n".join(lines)


def unity_doc(*blocks: str) -> str:
    return "%YAML 1.1\n%TAG !u! tag:unity3d.com,2011:\n" + "\n".join(blocks) + "\n"


SUMMARY_PREFIX = "(Unity YAML content: structured hierarchy not found, returning summary)"


class TestUnityScenes(unittest.TestCase):
    def test_root_with_component_and_child(self) -> None:
        text = unity_doc(
            game_object(100, "Root", [200, 300]),
            transform(200, 100, 0),
            component(20, 300, 100),
            game_object(101, "Child", [201]),
            transform(201, 101, 200),
        )
        self.assertEqual(compact_scene(text, UNITY_YAML), "Root [Camera]\n  Child")

    def test_no_headers_returns_input(self) -> None:
        text = "plain: yaml\nwithout: headers\n"
        self.assertEqual(compact_scene(text, UNITY_YAML), text)

    def test_no_roots_returns_summary(self) -> None:
        text = unity_doc(
            game_object(1, "Lonely", []),
            "--- !u!157 &2\nLightmapSettings:\n  m_GIWorkflowMode: 1",
        )
        self.assertEqual(compact_scene(text, UNITY_YAML), SUMMARY_PREFIX + "\nRecords found: 1")

    def test_blacklisted_records_are_not_counted(self) -> None:
        _, index = parse_records(UNITY_YAML, unity_doc(
            "--- !u!29 &1\nOcclusionCullingSettings:\n  serializedVersion: 2",
            "--- !u!104 &2\nRenderSettings:\n  m_Fog: 0",
            "--- !u!196 &3\nNavMeshSettings:\n  m_BuildSettings: 0",
        ))
        self.assertEqual(index, {})

    def test_script_properties_are_listed_and_truncated(self) -> None:
        text = unity_doc(
            game_object(100, "Player", [200, 400]),
            transform(200, 100, 0),
            "\n".join(
                [
                    "--- !u!114 &400",
                    "MonoBehaviour:",
                    "  m_GameObject: {fileID: 100}",
                    "  m_Enabled: 1",
                    "  m_Script: {fileID: 11500000, guid: abc, type: 3}",
                    "  serializedVersion: 2",
                    "  speed: 5",
                    "  description: This is a very long description",
                ]
            ),
        )
        self.assertEqual(
            compact_scene(text, UNITY_YAML),
            "Player [Script(speed:5, description:This is a very lo...)]",
        )

    def test_unknown_component_and_unnamed_object(self) -> None:
        text = unity_doc(
            game_object(100, "", [200, 500]),
            transform(200, 100, 0),
            component(9999, 500, 100),
        )
        self.assertEqual(compact_scene(text, UNITY_YAML), "(unnamed) [Comp#9999]")

    def test_self_parent_is_not_attached(self) -> None:
        text = unity_doc(game_object(100, "Loop", [200]), transform(200, 100, 200))
        self.assertEqual(compact_scene(text, UNITY_YAML), SUMMARY_PREFIX + "\nRecords found: 2")

    def test_mutual_parents_terminate(self) -> None:
        text = unity_doc(
            game_object(100, "Root", [200]),
            transform(200, 100, 0),
            game_object(101, "A", [201]),
            transform(201, 101, 202),
            game_object(102, "B", [202]),
            transform(202, 102, 201),
        )
        _, index = parse_records(UNITY_YAML, text)
        roots = build_hierarchy(UNITY_YAML, index)
        self.assertEqual([root.id for root in roots], ["200"])
        self.assertEqual(compact_scene(text, UNITY_YAML), "Root")

    def test_unresolved_parent_is_dropped(self) -> None:
        text = unity_doc(
            game_object(100, "Root", [200]),
            transform(200, 100, 0),
            game_object(101, "Orphan", [201]),
            transform(201, 101, 999),
        )
        self.assertEqual(compact_scene(text, UNITY_YAML), "Root")

    def test_unresolved_owner_omits_subtree(self) -> None:
        text = unity_doc(
            game_object(100, "Root", [200]),
            transform(200, 100, 0),
            transform(201, 777, 200),
            game_object(102, "Grandchild", [202]),
            transform(202, 102, 201),
        )
        self.assertEqual(compact_scene(text, UNITY_YAML), "Root")

    def test_children_are_sorted_by_name(self) -> None:
        text = unity_doc(
            game_object(100, "Root", [200]),
            transform(200, 100, 0),
            game_object(102, "Zed", [202]),
            transform(202, 102, 200),
            game_object(101, "Alpha", [201]),
            transform(201, 101, 200),
        )
        self.assertEqual(compact_scene(text, UNITY_YAML), "Root\n  Alpha\n  Zed")

    def test_routed_through_compact_text(self) -> None:
        text = unity_doc(game_object(100, "Root", [200]), transform(200, 100, 0)).replace("\n", "\r\n")
        self.assertEqual(compact_text(text, "Assets/Main.prefab", "maximum"), "Root")

    def test_deep_hierarchy_renders_without_recursion(self) -> None:
        depth = 1500
        blocks = []
        for level in range(depth):
            blocks.append(game_object(10000 + level, f"N{level}", [20000 + level]))
            blocks.append(transform(20000 + level, 10000 + level, 20000 + level - 1 if level else 0))
        lines = compact_scene(unity_doc(*blocks), UNITY_YAML).split("\n")
        self.assertEqual(len(lines), depth)
        self.assertEqual(lines[0], "N0")
        self.assertEqual(lines[-1], "  " * (depth - 1) + f"N{depth - 1}")

    def test_shorten_value(self) -> None:
        self.assertEqual(shorten_value("x" * 20), "x" * 20)
        self.assertEqual(shorten_value("x" * 21), "x" * 17 + "...")


GODOT_SCENE = """[gd_scene load_steps=3 format=3 uid="uid://b1x"]

[ext_resource type="Script" path="res://actors/player.gd" id="1_p"]

[sub_resource type="RectangleShape2D" id="2_s"]
size = Vector2(10, 20)

[node name="Main" type="Node2D"]

[node name="Player" type="CharacterBody2D" parent="."]
position = Vector2(4, 8)
script = ExtResource("1_p")

[node name="Shape" type="CollisionShape2D" parent="Player"]
shape = SubResource("2_s")

[connection signal="hit" from="Player" to="." method="_on_hit"]
"""


class TestGodotScenes(unittest.TestCase):
    def test_scene_tree(self) -> None:
        self.assertEqual(
            compact_scene(GODOT_SCENE, GODOT_TEXT),
            "\n".join(
                [
                    "Main (Node2D)",
                    "  Player (CharacterBody2D) [Script(player.gd)] {position:Vector2(4, 8)}",
                    '    Shape (CollisionShape2D) {shape:SubResource("2_s")}',
                ]
            ),
        )

    def test_node_paths_are_ids(self) -> None:
        _, index = parse_records(GODOT_TEXT, GODOT_SCENE)
        self.assertIn(".", index)
        self.assertIn("Player/Shape", index)
        self.assertIn("ext:1_p", index)
        self.assertIn("sub:2_s", index)
        self.assertEqual(index["Player"].component_ids, ["ext:1_p"])

    def test_format_2_ext_and_sub_ids_do_not_collide(self) -> None:
        text = (
            "[gd_scene load_steps=3 format=2]\n\n"
            '[ext_resource path="res://player.gd" type="Script" id=1]\n\n'
            '[sub_resource type="RectangleShape2D" id=1]\n'
            "extents = Vector2( 8, 8 )\n\n"
            '[node name="Main" type="Node2D"]\n\n'
            '[node name="Player" type="KinematicBody2D" parent="."]\n'
            "script = ExtResource( 1 )\n\n"
            '[node name="Shape" type="CollisionShape2D" parent="Player"]\n'
            "shape = SubResource( 1 )\n"
        )
        _, index = parse_records(GODOT_TEXT, text)
        self.assertIn("ext:1", index)
        self.assertIn("sub:1", index)
        self.assertEqual(index["Player"].component_ids, ["ext:1"])
        lines = compact_scene(text, GODOT_TEXT).split("\n")
        self.assertEqual(lines[0], "Main (Node2D)")
        self.assertEqual(lines[1], "  Player (KinematicBody2D) [Script(player.gd)]")
        self.assertTrue(lines[2].startswith("    Shape (CollisionShape2D)"))

    def test_resource_without_nodes_returns_summary(self) -> None:
        text = (
            '[gd_resource type="Theme" format=3]\n\n'
            '[ext_resource type="Font" path="res://font.ttf" id="1"]\n\n'
            "[resource]\ndefault_font = ExtResource(\"1\")\n"
        )
        self.assertEqual(
            compact_text(text, "ui/theme.tres", "maximum"),
            "(Godot text resource: structured hierarchy not found, returning summary)\nRecords found: 1",
        )


if __name__ == "__main__":
    unittest.main()
