"""
Code Assembler — AdaptedCode → 最終檔案集合

路徑規則：
  react    src/components/<Name>.tsx|jsx
  vue      src/components/<Name>.vue
  angular  src/app/<kebab>.component.ts
  svelte   src/components/<Name>.svelte
  html     index.html
樣式檔一律 src/styles/<kebab>.css|scss；manifest 的設定檔與 package.json 放在根目錄。
"""

import posixpath
from dataclasses import dataclass
from html import escape
from typing import Optional, Tuple

from .markup import LexicalScanner
from .metrics import is_component_file
from .models import CodeFile, ProjectStructure, TransformConfig
from .naming import kebab, sanitize_component_name
from .stylesheet import style_extension

LANGUAGES = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".vue": "vue",
    ".svelte": "svelte",
    ".css": "css",
    ".scss": "scss",
    ".html": "html",
    ".json": "json",
}

PREVIEW_EXCERPT = 200


def detect_language(path: str) -> str:
    for ext in sorted(LANGUAGES, key=len, reverse=True):
        if path.endswith(ext):
            return LANGUAGES[ext]
    return "text"


def component_path(framework: str, name: str, typescript: bool) -> str:
    if framework == "vue":
        return f"src/components/{name}.vue"
    if framework == "angular":
        return f"src/app/{kebab(name)}.component.ts"
    if framework == "svelte":
        return f"src/components/{name}.svelte"
    if framework == "html":
        return "index.html"
    return f"src/components/{name}.{'tsx' if typescript else 'jsx'}"


def style_path(name: str, styling: str) -> str:
    return f"src/styles/{kebab(name)}.{style_extension(styling)}"


# ─── Fallback templates ─────────────────────────────────────────────────────

def fallback_component(framework: str, name: str, typescript: bool) -> str:
    slug = kebab(name)
    if framework == "vue":
        return f"""<template>
  <div class="{slug}">
    <h1>{name}</h1>
    <p>This component was generated from your Figma design.</p>
  </div>
</template>

<script>
import {{ defineComponent }} from 'vue';

export default defineComponent({{ name: '{name}' }});
</script>
"""
    if framework == "angular":
        return f"""import {{ Component }} from '@angular/core';

@Component({{
  selector: 'app-{slug}',
  template: `<div class="{slug}"><h1>{name}</h1></div>`
}})
export class {name}Component {{}}
"""
    if framework == "svelte":
        return f"""<div class="{slug}">
  <h1>{name}</h1>
  <p>This component was generated from your Figma design.</p>
</div>
"""
    if framework == "html":
        return f"""<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><title>{name}</title></head>
<body>
  <div class="{slug}"><h1>{name}</h1></div>
</body>
</html>
"""
    return f"""import React from 'react';

const {name}{': React.FC' if typescript else ''} = () => {{
  return (
    <div className="{slug}">
      <h1>{name}</h1>
      <p>This component was generated from your Figma design.</p>
    </div>
  );
}};

export default {name};
"""


def fallback_style(name: str) -> str:
    slug = kebab(name)
    return f""".{slug} {{
  padding: 20px;
  background: #f5f5f5;
  border-radius: 8px;
  font-family: Arial, sans-serif;
}}

.{slug} h1 {{
  color: #333;
  margin-bottom: 10px;
}}

.{slug} p {{
  color: #666;
  line-height: 1.5;
}}
"""


def render_preview(component_code: str) -> str:
    excerpt = escape(component_code[:PREVIEW_EXCERPT])
    return f"""<!DOCTYPE html>
<html>
<head>
    <title>Generated Component Preview</title>
    <style>
        body {{ font-family: Arial, sans-serif; padding: 20px; }}
        .preview {{ border: 1px solid #ddd; padding: 20px; border-radius: 8px; }}
    </style>
</head>
<body>
    <div class="preview">
        <h2>Component Preview</h2>
        <p>This is a preview of your generated component.</p>
        <pre><code>{excerpt}...</code></pre>
    </div>
</body>
</html>
"""


# ─── Assembler ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AssembledCode:
    files: Tuple[CodeFile, ...]
    structure: ProjectStructure
    preview: str


class CodeAssembler:

    def __init__(self, scanner: Optional[LexicalScanner] = None):
        self.scanner = scanner or LexicalScanner()

    def make_file(self, path: str, content: str) -> CodeFile:
        language = detect_language(path)
        if language in ("css", "scss", "json", "text"):
            imports, exports = [], []
        else:
            imports = self.scanner.find_imports(content)
            exports = self.scanner.find_exports(content)
        return CodeFile(
            path=path,
            name=posixpath.basename(path),
            content=content,
            language=language,
            size=len(content.encode("utf-8")),
            imports=tuple(imports),
            exports=tuple(exports),
            dependencies=tuple(dict.fromkeys(i for i in imports if not i.startswith((".", "/")))),
        )

    def assemble(self, adapted, structure: Optional[ProjectStructure], config: TransformConfig) -> AssembledCode:
        framework = getattr(adapted, "framework", None) or config.framework
        name = sanitize_component_name(config.component_name)

        component_code = getattr(adapted, "component_code", "") or ""
        if not component_code.strip():
            component_code = fallback_component(framework, name, config.typescript)
        style_code = getattr(adapted, "style_code", "") or ""
        if not style_code.strip():
            style_code = fallback_style(name)

        entries = [
            (component_path(framework, name, config.typescript), component_code),
            (style_path(name, config.styling), style_code),
        ]
        entries.extend((getattr(adapted, "additional_files", None) or {}).items())

        manifest = getattr(adapted, "manifest", None)
        if manifest is not None:
            entries.extend(manifest.config_files.items())
            if manifest.dependencies or manifest.dev_dependencies:
                entries.append(("package.json", manifest.package_json(kebab(name))))

        seen = set()
        files = []
        for path, content in entries:
            if path in seen:
                continue
            seen.add(path)
            files.append(self.make_file(path, content))

        return AssembledCode(
            files=tuple(files),
            structure=self._structure(structure, files),
            preview=render_preview(component_code),
        )

    def _structure(self, planned: Optional[ProjectStructure], files) -> ProjectStructure:
        planned = planned or ProjectStructure()
        paths = [f.path for f in files]
        tests = tuple(p for p in paths if "__tests__/" in p or ".spec." in p or ".test." in p)
        return ProjectStructure(
            root=planned.root,
            components=tuple(f.path for f in files if is_component_file(f)),
            hooks=planned.hooks,
            utils=planned.utils,
            types=planned.types,
            styles=tuple(p for p in paths if p.startswith("src/styles/")),
            tests=tests,
            assets=planned.assets,
        )
