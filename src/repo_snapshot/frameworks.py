"""Framework catalog and detection.

Each framework is plain data: detection triggers matched against the names of
the project root's immediate entries, a priority, and a preset rule telling
which files to select by default. Specific frameworks carry a higher priority
than the generic toolchains they build upon (SvelteKit over Vite, Next.js
over Node.js) so that a specialised project is not reported as generic.
"""

from __future__ import annotations

import re
from enum import StrEnum, auto
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from repo_snapshot.fs import DEFAULT_FS
from repo_snapshot.logging import logger

if TYPE_CHECKING:
    from pathlib import Path

    from repo_snapshot.fs import DirectoryLister


class TriggerKind(StrEnum):
    LITERAL = auto()
    PATTERN = auto()


class Trigger(BaseModel):
    """A literal file name or a regular expression identifying a framework."""

    model_config = ConfigDict(frozen=True)

    kind: TriggerKind
    value: str

    def matches(self, name: str) -> bool:
        if self.kind is TriggerKind.LITERAL:
            return name.lower() == self.value.lower()
        return re.search(self.value, name) is not None


def literal(value: str) -> Trigger:
    return Trigger(kind=TriggerKind.LITERAL, value=value)


def pattern(value: str) -> Trigger:
    return Trigger(kind=TriggerKind.PATTERN, value=value)


class PresetRule(BaseModel):
    """Default selection of a framework.

    Attributes:
        include_dirs: Directory names (or root-relative paths) whose whole content is selected.
        include_files: Regular expressions selecting files by their root-relative path.
        exclude: Regular expressions deselecting a path and everything below it.
    """

    model_config = ConfigDict(frozen=True)

    include_dirs: tuple[str, ...] = ()
    include_files: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()


class FrameworkDefinition(BaseModel):
    """A framework the detector knows about."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    priority: int = Field(..., description="Higher values are tried first")
    triggers: tuple[Trigger, ...]
    preset: PresetRule

    def matches(self, names: list[str]) -> bool:
        return any(trigger.matches(name) for trigger in self.triggers for name in names)


def _framework(
    id: str,  # noqa: A002
    name: str,
    priority: int,
    triggers: list[Trigger],
    *,
    include_dirs: list[str],
    include_files: list[str],
    exclude: list[str],
) -> FrameworkDefinition:
    return FrameworkDefinition(
        id=id,
        name=name,
        priority=priority,
        triggers=tuple(triggers),
        preset=PresetRule(
            include_dirs=tuple(include_dirs),
            include_files=tuple(include_files),
            exclude=tuple(exclude),
        ),
    )


FRAMEWORKS: tuple[FrameworkDefinition, ...] = (
    _framework(
        "next", "Next.js", 100,
        [literal("next.config.js"), literal("next.config.ts"), literal("next.config.mjs")],
        include_dirs=["app", "pages", "components", "lib", "public", "styles", "utils", "hooks", "actions"],
        include_files=[r"next\.config", r"package\.json", r"tsconfig", r"\.env", r"middleware"],
        exclude=[r"\.next", r"node_modules", r"out", r"coverage"],
    ),
    _framework(
        "nuxt", "Nuxt.js", 100,
        [literal("nuxt.config.js"), literal("nuxt.config.ts")],
        include_dirs=["pages", "components", "layouts", "server", "composables", "plugins", "assets", "middleware"],
        include_files=[r"nuxt\.config", r"package\.json", r"tsconfig", r"app\.vue"],
        exclude=[r"\.nuxt", r"\.output", r"node_modules", r"dist"],
    ),
    _framework(
        "sveltekit", "SvelteKit", 95,
        [literal("svelte.config.js")],
        include_dirs=["src", "static"],
        include_files=[r"svelte\.config", r"vite\.config", r"package\.json", r"tsconfig"],
        exclude=[r"\.svelte-kit", r"node_modules", r"build"],
    ),
    _framework(
        "astro", "Astro", 95,
        [literal("astro.config.mjs"), literal("astro.config.ts")],
        include_dirs=["src", "public"],
        include_files=[r"astro\.config", r"package\.json", r"tsconfig"],
        exclude=[r"\.astro", r"dist", r"node_modules"],
    ),
    _framework(
        "remix", "Remix", 95,
        [literal("remix.config.js")],
        include_dirs=["app", "public"],
        include_files=[r"remix\.config", r"vite\.config", r"package\.json"],
        exclude=[r"build", r"\.cache", r"node_modules"],
    ),
    _framework(
        "angular", "Angular", 90,
        [literal("angular.json")],
        include_dirs=["src"],
        include_files=[r"angular\.json", r"package\.json", r"tsconfig"],
        exclude=[r"\.angular", r"node_modules", r"dist"],
    ),
    _framework(
        "nest", "NestJS", 90,
        [literal("nest-cli.json"), pattern(r"\.nest-cli")],
        include_dirs=["src", "test"],
        include_files=[r"nest-cli", r"package\.json", r"tsconfig", r"\.env"],
        exclude=[r"dist", r"node_modules"],
    ),
    _framework(
        "vite", "Vite (React/Vue)", 80,
        [literal("vite.config.js"), literal("vite.config.ts")],
        include_dirs=["src", "public", "assets", "lib"],
        include_files=[r"vite\.config", r"index\.html", r"package\.json", r"tsconfig"],
        exclude=[r"dist", r"node_modules"],
    ),
    _framework(
        "node", "Node.js Project", 10,
        [literal("package.json")],
        include_dirs=["src", "lib", "config", "routes", "controllers", "models", "utils"],
        include_files=[r"package\.json", r"\.env", r"index\.(js|ts)", r"server\.(js|ts)"],
        exclude=[r"node_modules", r"dist", r"build", r"coverage"],
    ),
    _framework(
        "flutter", "Flutter", 90,
        [literal("pubspec.yaml")],
        include_dirs=["lib", "test", "assets"],
        include_files=[r"pubspec\.yaml", r"analysis_options\.yaml"],
        exclude=[r"\.dart_tool", r"build", r"ios", r"android", r"web", r"linux", r"windows", r"macos"],
    ),
    _framework(
        "expo", "Expo", 90,
        [literal("app.json")],
        include_dirs=["app", "components", "assets", "hooks", "constants"],
        include_files=[r"app\.json", r"package\.json", r"tsconfig", r"babel\.config"],
        exclude=[r"\.expo", r"node_modules", r"web-build"],
    ),
    _framework(
        "reactnative", "React Native (CLI)", 85,
        [pattern(r"metro\.config")],
        include_dirs=["src", "app", "components"],
        include_files=[r"metro\.config", r"package\.json", r"index\.js"],
        exclude=[r"node_modules", r"ios", r"android"],
    ),
    _framework(
        "tauri", "Tauri (Rust)", 95,
        [literal("src-tauri")],
        include_dirs=["src", "src-tauri"],
        include_files=[r"package\.json", r"Cargo\.toml"],
        exclude=[r"target", r"node_modules", r"dist"],
    ),
    _framework(
        "electron", "Electron", 85,
        [pattern(r"electron-builder"), pattern(r"forge\.config")],
        include_dirs=["src", "app", "resources"],
        include_files=[r"main\.js", r"preload\.js", r"package\.json"],
        exclude=[r"dist", r"out", r"node_modules"],
    ),
    _framework(
        "django", "Django", 90,
        [literal("manage.py")],
        include_dirs=[],
        include_files=[r"manage\.py", r"requirements\.txt", r"pyproject\.toml", r"\.env"],
        exclude=[r"__pycache__", r"\.venv", r"venv", r"env", r"\.git", r"staticfiles"],
    ),
    _framework(
        "fastapi", "FastAPI / Flask", 50,
        [literal("requirements.txt"), literal("pyproject.toml"), literal("main.py"), literal("app.py")],
        include_dirs=["app", "src", "routers", "models", "api"],
        include_files=[r"\.py$", r"requirements\.txt", r"\.env"],
        exclude=[r"__pycache__", r"\.venv", r"venv", r"\.pytest_cache"],
    ),
    _framework(
        "streamlit", "Streamlit", 60,
        [pattern(r"\.streamlit"), literal("streamlit_app.py")],
        include_dirs=["pages", ".streamlit"],
        include_files=[r"\.py$", r"requirements\.txt"],
        exclude=[r"__pycache__", r"\.venv"],
    ),
    _framework(
        "laravel", "Laravel", 90,
        [literal("artisan")],
        include_dirs=["app", "routes", "config", "database", "resources", "tests"],
        include_files=[r"composer\.json", r"\.env", r"artisan"],
        exclude=[r"vendor", r"storage", r"bootstrap/cache", r"public"],
    ),
    _framework(
        "symfony", "Symfony", 90,
        [literal("symfony.lock")],
        include_dirs=["src", "config", "templates", "migrations"],
        include_files=[r"composer\.json", r"\.env"],
        exclude=[r"vendor", r"var", r"public/build"],
    ),
    _framework(
        "wordpress", "WordPress", 80,
        [literal("wp-config.php"), literal("wp-content")],
        include_dirs=["wp-content/themes", "wp-content/plugins"],
        include_files=[r"wp-config\.php", r"\.htaccess"],
        exclude=[r"wp-admin", r"wp-includes", r"node_modules"],
    ),
    _framework(
        "springboot", "Spring Boot", 95,
        [pattern(r"mvnw"), pattern(r"gradlew")],
        include_dirs=["src/main/java", "src/main/resources"],
        include_files=[r"pom\.xml", r"build\.gradle", r"\.properties$", r"\.yaml$"],
        exclude=[r"target", r"build", r"\.mvn", r"\.gradle", r"test"],
    ),
    _framework(
        "android_native", "Android (Native)", 90,
        [],
        include_dirs=["app/src/main/java", "app/src/main/res"],
        include_files=[r"build\.gradle", r"gradle\.properties"],
        exclude=[r"\.gradle", r"build", r"captures"],
    ),
    _framework(
        "unity", "Unity", 90,
        [literal("Assets"), literal("ProjectSettings")],
        include_dirs=["Assets", "Packages", "ProjectSettings"],
        include_files=[r"\.cs$", r"\.shader$"],
        exclude=[r"Library", r"Temp", r"Logs", r"Builds", r"\.sln$", r"\.csproj$"],
    ),
    _framework(
        "dotnet", ".NET / ASP.NET Core", 80,
        [pattern(r"\.csproj$"), pattern(r"\.sln$")],
        include_dirs=["Controllers", "Models", "Views", "Services", "Data", "Properties"],
        include_files=[r"Program\.cs", r"Startup\.cs", r"appsettings\.json", r"\.csproj$"],
        exclude=[r"bin", r"obj", r"\.vs", r"wwwroot/lib"],
    ),
    _framework(
        "rails", "Ruby on Rails", 90,
        [literal("Gemfile"), literal("Rakefile")],
        include_dirs=["app", "config", "db", "lib", "routes"],
        include_files=[r"Gemfile", r"config\.ru"],
        exclude=[r"tmp", r"log", r"vendor", r"public/assets"],
    ),
    _framework(
        "phoenix", "Phoenix (Elixir)", 90,
        [literal("mix.exs")],
        include_dirs=["lib", "priv", "test", "config"],
        include_files=[r"mix\.exs", r"\.formatter\.exs"],
        exclude=[r"_build", r"deps", r"assets/node_modules"],
    ),
    _framework(
        "go", "Go", 80,
        [literal("go.mod")],
        include_dirs=["cmd", "internal", "pkg", "api", "web"],
        include_files=[r"\.go$", r"go\.mod", r"go\.sum"],
        exclude=[r"vendor", r"bin"],
    ),
    _framework(
        "rust", "Rust", 80,
        [literal("Cargo.toml")],
        include_dirs=["src", "tests", "benches", "examples"],
        include_files=[r"Cargo\.toml", r"Cargo\.lock"],
        exclude=[r"target"],
    ),
)  # fmt: skip


def get_framework(framework_id: str) -> FrameworkDefinition | None:
    """Look up a catalog entry by id (case-insensitive)."""
    wanted = framework_id.lower()
    return next((f for f in FRAMEWORKS if f.id == wanted), None)


def detect_framework(
    root: str | Path,
    lister: DirectoryLister | None = None,
    catalog: tuple[FrameworkDefinition, ...] = FRAMEWORKS,
) -> FrameworkDefinition | None:
    """Detect the framework of the project at `root`.

    Only the immediate entries of `root` are inspected. Definitions are tried
    by descending priority, ties keeping catalog order, and the first one with
    a trigger matching an entry name wins.

    Args:
        root (str | Path): the project root
        lister (DirectoryLister | None): directory lister, defaults to the local filesystem
        catalog (tuple[FrameworkDefinition, ...]): the definitions to try

    Returns:
        FrameworkDefinition | None: the detected framework, or None. A root that
            cannot be listed is reported as no match.
    """
    lister = lister or DEFAULT_FS
    try:
        names = [entry.name for entry in lister.list_entries(str(root))]
    except OSError as e:
        logger.info("framework_detection_unlistable_root", root=str(root), error=str(e))
        names = []

    for framework in sorted(catalog, key=lambda f: -f.priority):
        if framework.matches(names):
            logger.info("framework_detected", root=str(root), framework=framework.id)
            return framework
    return None
