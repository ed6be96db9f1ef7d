"""
Framework Adapter — 中立 JSX 文字 → 各框架元件

改寫規則（class / 事件 / 運算式 / 外殼）：
  react    className=      onClick=     {expr}       functional component + props interface
  vue      class= :class=  @click=      {{ expr }}   <template> + defineComponent
  angular  class= [class]= (click)=     {{ expr }}   @Component + companion NgModule
  svelte   class=          on:click=    {expr}       <script> + template
  html     class=          (移除)        (移除)        靜態 HTML 文件
未知的 framework 一律退回 react。manifest 只用於輸出說明，不會被執行。
"""

import json
import re
from dataclasses import dataclass, field
from typing import Dict, Tuple

from .models import TransformConfig
from .naming import kebab, sanitize_component_name
from .stylesheet import css_property, css_value, style_extension

# ─── Rewrite helpers ────────────────────────────────────────────────────────

_STYLE_OBJECT_RE = re.compile(r"style=\{\{\s*(.*?)\s*\}\}")
_STYLE_PAIR_RE = re.compile(r"([\w$]+|'[^']*')\s*:\s*('(?:[^'\\]|\\.)*'|[^,]+)")
_CLASS_STATIC_RE = re.compile(r"\bclassName=\"")
_CLASS_BOUND_RE = re.compile(r"\bclassName=\{([^{}]*)\}")
_EVENT_RE = re.compile(r"\bon([A-Z]\w*)=\{([^{}]*)\}")
_SPREAD_PROPS_RE = re.compile(r"\s*\{\.\.\.props\}")
_CHILDREN_SLOT_RE = re.compile(r"\{children\}")
_BOUND_ATTR_RE = re.compile(r"(\s)([A-Za-z][\w:-]*)=\{([^{}]*)\}")
_EXPRESSION_RE = re.compile(r"\{([^{}]+)\}")
_FRAGMENT_RE = re.compile(r"^\s*</?>\s*$\n?", re.MULTILINE)
_TAG_RE = re.compile(r"<[^<>/!][^<>]*>")
_CAMEL_ATTR_RE = re.compile(r"(\s)([a-z]+[A-Z]\w*)(=)")
_LITERAL_RE = re.compile(r"^(?:-?\d+(?:\.\d+)?|true|false|'[^']*'|\"[^\"]*\")$")

# SVG 原生就是 camelCase 的屬性
SVG_CAMEL_ATTRIBUTES = {
    "viewBox", "preserveAspectRatio", "gradientTransform", "gradientUnits", "patternUnits",
    "patternContentUnits", "spreadMethod", "stdDeviation", "baseFrequency", "numOctaves",
    "stitchTiles", "tableValues", "primitiveUnits", "filterUnits", "maskUnits", "filterRes",
    "markerWidth", "markerHeight", "refX", "refY", "pathLength", "textLength",
}

_EVENT_ALIASES = {
    "vue": {"change": "input"},
}


def style_object_to_css(body: str) -> str:
    """"fill: 'red', strokeWidth: 2" → "fill: red; stroke-width: 2px"."""
    declarations = []
    for key, raw in _STYLE_PAIR_RE.findall(body):
        prop = css_property(key.strip("'"))
        value = raw.strip()
        if value.startswith("'") and value.endswith("'"):
            value = value[1:-1].replace("\\'", "'")
        declarations.append(f"{prop}: {css_value(prop, value)}")
    return "; ".join(declarations)


def _svg_attribute_name(name: str) -> str:
    if name in SVG_CAMEL_ATTRIBUTES:
        return name
    if name.startswith("xlink") or name.startswith("xml"):
        prefix = "xlink" if name.startswith("xlink") else "xml"
        return f"{prefix}:{name[len(prefix):].lower()}"
    return css_property(name)


def _unquote_literal(expr: str) -> str:
    expr = expr.strip()
    if expr[:1] in ("'", '"') and expr[-1:] == expr[:1]:
        return expr[1:-1]
    return expr


def rewrite_template(jsx: str, framework: str) -> str:
    """JSX 文字 → vue / angular / svelte / html 模板語法."""
    if framework == "react":
        return jsx

    text = _STYLE_OBJECT_RE.sub(lambda m: f'style="{style_object_to_css(m.group(1))}"', jsx)

    # class
    text = _CLASS_STATIC_RE.sub('class="', text)
    bound_class = {
        "vue": lambda m: f':class="{m.group(1).strip()}"',
        "angular": lambda m: f'[class]="{m.group(1).strip()}"',
        "svelte": lambda m: f"class={{{m.group(1).strip()}}}",
        "html": lambda m: "",
    }[framework]
    text = _CLASS_BOUND_RE.sub(bound_class, text)

    # events
    def event(m: re.Match) -> str:
        name = m.group(1)[0].lower() + m.group(1)[1:]
        name = _EVENT_ALIASES.get(framework, {}).get(name, name)
        handler = m.group(2).strip()
        if framework == "vue":
            return f'@{name}="{handler}"'
        if framework == "angular":
            call = handler if handler.endswith(")") else f"{handler}($event)"
            return f'({name})="{call}"'
        if framework == "svelte":
            return f"on:{name}={{{handler}}}"
        return ""

    text = _EVENT_RE.sub(event, text)

    # props spread / children slot
    spread = {"vue": ' v-bind="$attrs"', "svelte": " {...$$restProps}"}.get(framework, "")
    text = _SPREAD_PROPS_RE.sub(spread, text)
    slot = {"vue": "<slot />", "angular": "<ng-content></ng-content>", "svelte": "<slot />"}.get(framework, "")
    text = _CHILDREN_SLOT_RE.sub(slot, text)

    # 其他 attr={...}
    def bound_attr(m: re.Match) -> str:
        lead, name, expr = m.group(1), m.group(2), m.group(3).strip()
        if _LITERAL_RE.match(expr):
            return f'{lead}{name}="{_unquote_literal(expr)}"'
        if framework == "vue":
            return f'{lead}:{name}="{expr}"'
        if framework == "angular":
            return f'{lead}[attr.{name}]="{expr}"'
        if framework == "svelte":
            return m.group(0)
        return ""

    text = _BOUND_ATTR_RE.sub(bound_attr, text)

    # 文字中的運算式
    if framework in ("vue", "angular"):
        text = _EXPRESSION_RE.sub(lambda m: f"{{{{ {m.group(1).strip()} }}}}", text)
    elif framework == "html":
        text = _EXPRESSION_RE.sub("", text)

    # JSX 的 camelCase SVG 屬性還原（class / 事件已處理過）
    def svg_attrs(m: re.Match) -> str:
        return _CAMEL_ATTR_RE.sub(lambda a: f"{a.group(1)}{_svg_attribute_name(a.group(2))}{a.group(3)}", m.group(0))

    text = _TAG_RE.sub(svg_attrs, text)

    # fragment
    if framework == "angular":
        text = text.replace("<>", "<ng-container>").replace("</>", "</ng-container>")
    else:
        text = _FRAGMENT_RE.sub("", text.replace("<></>", ""))
    return text


# ─── Manifest ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DependencyManifest:
    name: str
    extension: str
    dependencies: Tuple[str, ...] = ()
    dev_dependencies: Tuple[str, ...] = ()
    config_files: Dict[str, str] = field(default_factory=dict)

    def package_json(self, project_name: str) -> str:
        def split(spec: str) -> Tuple[str, str]:
            name, _, version = spec.rpartition("@")
            return (name, version) if name else (spec, "latest")

        return json.dumps({
            "name": project_name,
            "version": "0.1.0",
            "private": True,
            "dependencies": dict(split(d) for d in self.dependencies),
            "devDependencies": dict(split(d) for d in self.dev_dependencies),
        }, indent=2) + "\n"


@dataclass(frozen=True)
class AdaptedCode:
    framework: str
    component_code: str
    style_code: str
    additional_files: Dict[str, str] = field(default_factory=dict)
    manifest: DependencyManifest = field(default_factory=lambda: DependencyManifest("React", ".tsx"))


def _vite_config(plugin_import: str, plugin_call: str, typescript: bool) -> str:
    alias = """
  resolve: {
    alias: {
      '@': path.resolve(__dirname, './src'),
    },
  },""" if typescript else ""
    path_import = "import path from 'path'\n" if typescript else ""
    return f"""import {{ defineConfig }} from 'vite'
{path_import}{plugin_import}

export default defineConfig({{
  plugins: [{plugin_call}],{alias}
}})
"""


VUE_TSCONFIG = """{
  "extends": "@vue/tsconfig/tsconfig.web.json",
  "include": ["env.d.ts", "src/**/*", "src/**/*.vue"],
  "compilerOptions": {
    "baseUrl": ".",
    "paths": {
      "@/*": ["./src/*"]
    }
  }
}
"""

ANGULAR_JSON = """{
  "$schema": "./node_modules/@angular/cli/lib/config/schema.json",
  "version": 1,
  "newProjectRoot": "projects",
  "projects": {
    "generated-app": {
      "projectType": "application",
      "schematics": {},
      "root": "",
      "sourceRoot": "src",
      "prefix": "app",
      "architect": {
        "build": {
          "builder": "@angular-devkit/build-angular:browser",
          "options": {
            "outputPath": "dist/generated-app",
            "index": "src/index.html",
            "main": "src/main.ts",
            "polyfills": "src/polyfills.ts",
            "tsConfig": "tsconfig.app.json"
          }
        }
      }
    }
  }
}
"""

ANGULAR_TSCONFIG = """{
  "compileOnSave": false,
  "compilerOptions": {
    "baseUrl": "./",
    "outDir": "./dist/out-tsc",
    "forceConsistentCasingInFileNames": true,
    "strict": true,
    "noImplicitOverride": true,
    "noPropertyAccessFromIndexSignature": true,
    "noImplicitReturns": true,
    "noFallthroughCasesInSwitch": true,
    "sourceMap": true,
    "declaration": false,
    "downlevelIteration": true,
    "experimentalDecorators": true,
    "moduleResolution": "node",
    "importHelpers": true,
    "target": "ES2022",
    "module": "ES2022",
    "useDefineForClassFields": false,
    "lib": ["ES2022", "dom"]
  }
}
"""

SVELTE_TSCONFIG = """{
  "extends": "./.svelte-kit/tsconfig.json",
  "compilerOptions": {
    "allowJs": true,
    "checkJs": true,
    "esModuleInterop": true,
    "forceConsistentCasingInFileNames": true,
    "resolveJsonModule": true,
    "skipLibCheck": true,
    "sourceMap": true,
    "strict": true
  }
}
"""

SVELTE_VITE_CONFIG = """import { sveltekit } from '@sveltejs/kit/vite';
import { defineConfig } from 'vite';

export default defineConfig({
  plugins: [sveltekit()]
});
"""

TAILWIND_CONFIG = """/** @type {import('tailwindcss').Config} */
export default {
  content: ['./index.html', './src/**/*.{js,ts,jsx,tsx,vue,svelte,html}'],
  theme: {
    extend: {},
  },
  plugins: [],
};
"""

POSTCSS_CONFIG = """export default {
  plugins: {
    tailwindcss: {},
    autoprefixer: {},
  },
};
"""


def _svelte_config(typescript: bool) -> str:
    preprocess = """,
  preprocess: {
    typescript: true
  }""" if typescript else ""
    return f"""import adapter from '@sveltejs/adapter-auto';

const config = {{
  kit: {{
    adapter: adapter()
  }}{preprocess}
}};

export default config;
"""


def _styling_extras(styling: str) -> Tuple[tuple, tuple, dict]:
    if styling == "styled":
        return ("styled-components@^6.0.0",), (), {}
    if styling == "tailwind":
        return (), ("tailwindcss@^3.3.0", "postcss@^8.4.0", "autoprefixer@^10.4.0"), {
            "tailwind.config.js": TAILWIND_CONFIG,
            "postcss.config.js": POSTCSS_CONFIG,
        }
    if styling == "scss":
        return (), ("sass@^1.64.0",), {}
    return (), (), {}


# ─── Adapter ────────────────────────────────────────────────────────────────

class FrameworkAdapter:
    """adapt(jsx, css, config) → AdaptedCode；framework 字串不認得時退回 react."""

    SUPPORTED = ("react", "vue", "angular", "svelte", "html")

    def adapt(self, jsx: str, css: str, config: TransformConfig) -> AdaptedCode:
        framework = config.framework if config.framework in self.SUPPORTED else "react"
        name = sanitize_component_name(config.component_name)
        builder = getattr(self, f"_adapt_{framework}")
        component_code, additional, manifest = builder(jsx, css, config, name)

        deps, dev_deps, configs = _styling_extras(config.styling)
        if config.unit_tests:
            test_path, test_code, test_dev_deps = self._test_file(framework, name, config)
            if test_path:
                additional[test_path] = test_code
                dev_deps = dev_deps + test_dev_deps
        manifest = DependencyManifest(
            name=manifest.name,
            extension=manifest.extension,
            dependencies=manifest.dependencies + deps,
            dev_dependencies=manifest.dev_dependencies + dev_deps,
            config_files={**manifest.config_files, **configs},
        )
        return AdaptedCode(
            framework=framework,
            component_code=component_code,
            style_code=css,
            additional_files=additional,
            manifest=manifest,
        )

    # ─── react ───

    def _adapt_react(self, jsx, css, config, name):
        ts = config.typescript
        slug = kebab(name)
        lines = ["import React from 'react';"]
        if config.styling == "styled":
            lines.append("import styled from 'styled-components';")
        else:
            lines.append(f"import '../styles/{slug}.{style_extension(config.styling)}';")
        lines.append("")

        body = jsx
        if config.styling == "styled":
            lines.append(f"const {name}Root = styled.div`")
            lines.extend(f"  {line}" if line else "" for line in css.rstrip().split("\n"))
            lines.append("`;")
            lines.append("")
            inner = "\n".join(f"  {line}" if line else line for line in jsx.split("\n"))
            body = f"    <{name}Root className={{className}}>\n{inner}\n    </{name}Root>"

        if ts:
            lines.extend([
                f"interface {name}Props {{",
                "  className?: string;",
                "  children?: React.ReactNode;",
                "  [key: string]: any;",
                "}",
                "",
            ])
        lines.append(f"/** {name} — generated from design. */")
        signature = f"const {name}: React.FC<{name}Props> = " if ts else f"const {name} = "
        lines.append(signature + "({ className = '', children, ...props }) => {")
        lines.extend(["  return (", body, "  );", "};", ""])
        lines.append(f"export default React.memo({name});" if config.memo else f"export default {name};")
        code = "\n".join(lines) + "\n"

        manifest = DependencyManifest(
            name="React",
            extension=".tsx" if ts else ".jsx",
            dependencies=("react@^18.2.0", "react-dom@^18.2.0"),
            dev_dependencies=("@vitejs/plugin-react@^4.0.0", "vite@^4.4.0") + (
                ("@types/react@^18.2.0", "@types/react-dom@^18.2.0", "typescript@^5.0.0") if ts else ()
            ),
            config_files={"vite.config.js": _vite_config("import react from '@vitejs/plugin-react'", "react()", ts)},
        )
        return code, {}, manifest

    # ─── vue ───

    def _adapt_vue(self, jsx, css, config, name):
        ts = config.typescript
        template = _dedent(rewrite_template(jsx, "vue"), 2)
        lang = ' lang="ts"' if ts else ""
        style_lang = ' lang="scss"' if config.styling == "scss" else ""
        code = f"""<template>
{template}
</template>

<script{lang}>
// {name} — generated from design.
import {{ defineComponent }} from 'vue';

export default defineComponent({{
  name: '{name}',
  inheritAttrs: false,
  props: {{
    className: {{
      type: String,
      default: ''
    }}
  }},
  setup(props) {{
    return {{
      ...props
    }};
  }}
}});
</script>

<style scoped{style_lang}>
{css.rstrip()}
</style>
"""
        manifest = DependencyManifest(
            name="Vue",
            extension=".vue",
            dependencies=("vue@^3.3.0",),
            dev_dependencies=("@vitejs/plugin-vue@^4.0.0", "vite@^4.4.0") + (("@vue/tsconfig@^0.4.0",) if ts else ()),
            config_files={
                "vite.config.js": _vite_config("import vue from '@vitejs/plugin-vue'", "vue()", ts),
                **({"tsconfig.json": VUE_TSCONFIG} if ts else {}),
            },
        )
        return code, {}, manifest

    # ─── angular ───

    def _adapt_angular(self, jsx, css, config, name):
        slug = kebab(name)
        template = _template_literal(_dedent(rewrite_template(jsx, "angular"), 2))
        template = "\n".join(f"    {line}" if line else line for line in template.split("\n"))
        style_ext = style_extension(config.styling)
        code = f"""import {{ Component, Input }} from '@angular/core';

/**
 * {name} — generated from design.
 */
@Component({{
  selector: 'app-{slug}',
  template: `
{template}
  `,
  styleUrls: ['../styles/{slug}.{style_ext}']
}})
export class {name}Component {{
  @Input() className: string = '';
}}
"""
        module_code = f"""import {{ NgModule }} from '@angular/core';
import {{ CommonModule }} from '@angular/common';
import {{ {name}Component }} from './{slug}.component';

@NgModule({{
  declarations: [{name}Component],
  imports: [CommonModule],
  exports: [{name}Component]
}})
export class {name}Module {{}}
"""
        manifest = DependencyManifest(
            name="Angular",
            extension=".component.ts",
            dependencies=("@angular/core@^16.0.0", "@angular/common@^16.0.0"),
            dev_dependencies=("@angular/cli@^16.0.0", "typescript@^5.0.0"),
            config_files={"angular.json": ANGULAR_JSON, "tsconfig.json": ANGULAR_TSCONFIG},
        )
        return code, {f"src/app/{slug}.module.ts": module_code}, manifest

    # ─── svelte ───

    def _adapt_svelte(self, jsx, css, config, name):
        ts = config.typescript
        template = _dedent(rewrite_template(jsx, "svelte"), 4)
        lang = ' lang="ts"' if ts else ""
        style_lang = ' lang="scss"' if config.styling == "scss" else ""
        code = f"""<script{lang}>
  // {name} — generated from design.
  export let className{': string' if ts else ''} = '';
</script>

{template}

<style{style_lang}>
{css.rstrip()}
</style>
"""
        manifest = DependencyManifest(
            name="Svelte",
            extension=".svelte",
            dependencies=("svelte@^4.0.0",),
            dev_dependencies=("@sveltejs/adapter-auto@^2.0.0", "@sveltejs/kit@^1.20.0", "vite@^4.4.0") + (
                ("tslib@^2.4.1", "typescript@^5.0.0") if ts else ()
            ),
            config_files={
                "svelte.config.js": _svelte_config(ts),
                "vite.config.js": SVELTE_VITE_CONFIG,
                **({"tsconfig.json": SVELTE_TSCONFIG} if ts else {}),
            },
        )
        return code, {}, manifest

    # ─── html ───

    def _adapt_html(self, jsx, css, config, name):
        slug = kebab(name)
        markup = _dedent(rewrite_template(jsx, "html"), 4)
        tailwind = '  <script src="https://cdn.tailwindcss.com"></script>\n' if config.styling == "tailwind" else ""
        code = f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{name}</title>
  <link rel="stylesheet" href="src/styles/{slug}.{style_extension(config.styling)}">
{tailwind}</head>
<body>
  <!-- {name} generated from design -->
{_indent(markup, 2)}
</body>
</html>
"""
        return code, {}, DependencyManifest(name="HTML", extension=".html")

    # ─── tests ───

    def _test_file(self, framework: str, name: str, config: TransformConfig):
        slug = kebab(name)
        ext = "ts" if config.typescript else "js"
        if framework == "react":
            path = f"src/components/__tests__/{name}.test.{ext}x"
            code = f"""import React from 'react';
import {{ render }} from '@testing-library/react';
import {name} from '../{name}';

describe('{name}', () => {{
  it('renders without crashing', () => {{
    const {{ container }} = render(<{name} />);
    expect(container.firstChild).toBeTruthy();
  }});
}});
"""
            return path, code, ("@testing-library/react@^14.0.0", "vitest@^0.34.0", "jsdom@^22.1.0")
        if framework == "vue":
            path = f"src/components/__tests__/{name}.spec.{ext}"
            code = f"""import {{ mount }} from '@vue/test-utils';
import {name} from '../{name}.vue';

describe('{name}', () => {{
  it('renders without crashing', () => {{
    const wrapper = mount({name});
    expect(wrapper.exists()).toBe(true);
  }});
}});
"""
            return path, code, ("@vue/test-utils@^2.4.0", "vitest@^0.34.0", "jsdom@^22.1.0")
        if framework == "svelte":
            path = f"src/components/__tests__/{name}.test.{ext}"
            code = f"""import {{ render }} from '@testing-library/svelte';
import {name} from '../{name}.svelte';

describe('{name}', () => {{
  it('renders without crashing', () => {{
    const {{ container }} = render({name});
    expect(container).toBeTruthy();
  }});
}});
"""
            return path, code, ("@testing-library/svelte@^4.0.0", "vitest@^0.34.0", "jsdom@^22.1.0")
        if framework == "angular":
            path = f"src/app/{slug}.component.spec.ts"
            code = f"""import {{ ComponentFixture, TestBed }} from '@angular/core/testing';
import {{ {name}Component }} from './{slug}.component';

describe('{name}Component', () => {{
  let fixture: ComponentFixture<{name}Component>;

  beforeEach(async () => {{
    await TestBed.configureTestingModule({{
      declarations: [{name}Component]
    }}).compileComponents();
    fixture = TestBed.createComponent({name}Component);
  }});

  it('should create', () => {{
    expect(fixture.componentInstance).toBeTruthy();
  }});
}});
"""
            return path, code, ()
        return None, None, ()


def _dedent(text: str, spaces: int) -> str:
    prefix = " " * spaces
    return "\n".join(line[spaces:] if line.startswith(prefix) else line.lstrip() for line in text.split("\n"))


def _indent(text: str, spaces: int) -> str:
    pad = " " * spaces
    return "\n".join(pad + line if line else line for line in text.split("\n"))


def _template_literal(text: str) -> str:
    """放進 TS backtick 字串前的 escape：\\ ` ${."""
    return text.replace("\\", "\\\\").replace("`", "\\`").replace("${", "\\${")
