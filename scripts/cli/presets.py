from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Tuple

from utils import split_csv

GODOT_IGNORED = ".godot, export_presets, .import"
WEB_IGNORED = "node_modules, dist, build, .next, .nuxt, coverage, .git, .vscode, .idea"

# name -> (extensions, ignored folders)
PRESETS: Dict[str, Tuple[str, str]] = {
    "godot": ("gd, tscn, tres, gdshader, godot", GODOT_IGNORED),
    "godot-cpp": (
        "gd, tscn, tres, gdshader, godot, gdextension, cpp, h, hpp, c, cc",
        GODOT_IGNORED + ", .scons_cache, bin, obj, build, out",
    ),
    "unity": (
        "cs, shader, cginc, json, xml, asmdef, inputactions, unity, prefab",
        "Library, Temp, obj, bin, ProjectSettings, Logs, UserSettings, .vs, .idea, Builds, Build, "
        "Fonts, StreamingAssets, TextMesh Pro, Plugins, Packages, Examples",
    ),
    "dotnet": (
        "cs, csproj, sln, xaml, config, json, cshtml, razor, sql, xml, props, targets, vb, fs",
        "bin, obj, .vs, packages, TestResults, .git, .idea, .vscode, artifacts",
    ),
    "java": (
        "java, xml, properties, fxml, gradle, groovy",
        "target, .idea, build, .settings, bin, out, .gradle",
    ),
    "python": (
        "py, requirements.txt, yaml, yml, json, toml, ini",
        "__pycache__, venv, env, .venv, .git, .idea, .vscode, build, dist, egg-info",
    ),
    "web-ts": ("ts, tsx, jsx, html, css, scss, less, json, vue, svelte", WEB_IGNORED),
    "web-js": ("js, mjs, html, css, json", WEB_IGNORED),
}


def preset_names() -> List[str]:
    return sorted(PRESETS)


def preset_settings(name: str) -> Tuple[List[str], List[str]]:
    extensions, ignored = PRESETS[name]
    return split_csv(extensions), split_csv(ignored)


def _has_file(root: Path, pattern: str) -> bool:
    try:
        return any(path.is_file() for path in root.glob(pattern))
    except OSError:
        return False


def detect_preset(root: Path) -> Optional[str]:
    """Guess the project type from marker files at the top of ``root``."""
    if not root.is_dir():
        return None

    if (root / "project.godot").exists():
        if (root / "SConstruct").exists() or _has_file(root, "*.gdextension") or _has_file(root, "*.cpp"):
            return "godot-cpp"
        return "godot"

    if (root / "Assets").is_dir() and (root / "ProjectSettings").is_dir():
        return "unity"

    if any(_has_file(root, pattern) for pattern in ("*.sln", "*.csproj", "*.vbproj", "*.fsproj")):
        return "dotnet"

    if any((root / name).exists() for name in ("pom.xml", "build.gradle", "build.gradle.kts")):
        return "java"

    if any((root / name).exists() for name in ("requirements.txt", "pyproject.toml", "setup.py")) or any(
        (root / name).is_dir() for name in ("venv", ".venv")
    ):
        return "python"

    if (root / "package.json").exists():
        if any((root / name).exists() for name in ("tsconfig.json", "vite.config.ts", "next.config.js")):
            return "web-ts"
        return "web-js"

    if _has_file(root, "*.cs"):
        return "dotnet"
    if _has_file(root, "*.py"):
        return "python"
    return None
