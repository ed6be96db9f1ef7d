"""
FrameworkAdapter / rewrite_template 測試
"""
import json

import pytest

from airis_codegen.assembler import style_path
from airis_codegen.frameworks import (
    DependencyManifest,
    FrameworkAdapter,
    rewrite_template,
    style_object_to_css,
)
from airis_codegen.models import TransformConfig

JSX = """    <svg className="logo" viewBox="0 0 10 10" {...props}>
      <rect fillOpacity="0.5" strokeLinecap="round" />
      <use xlinkHref="#a" />
    </svg>"""


def adapt(framework, jsx=JSX, css=".logo { fill: red; }\n", **overrides):
    config = TransformConfig(framework=framework, component_name="my button", **overrides)
    return FrameworkAdapter().adapt(jsx, css, config)


# ─── rewrite_template ───────────────────────────────────────────────────────

class TestRewriteTemplate:

    def test_react_is_unchanged(self):
        assert rewrite_template(JSX, "react") == JSX

    def test_html_uses_class_and_svg_attribute_names(self):
        html = rewrite_template(JSX, "html")
        assert 'class="logo"' in html
        assert "className" not in html
        assert 'viewBox="0 0 10 10"' in html
        assert 'fill-opacity="0.5"' in html
        assert 'stroke-linecap="round"' in html
        assert 'xlink:href="#a"' in html
        assert "props" not in html

    def test_vue_restores_svg_attributes_and_binds_attrs(self):
        vue = rewrite_template(JSX, "vue")
        assert 'fill-opacity="0.5"' in vue
        assert 'v-bind="$attrs"' in vue

    @pytest.mark.parametrize("framework,expected", [
        ("vue", '<button @click="handleClick">Go</button>'),
        ("angular", '<button (click)="handleClick($event)">Go</button>'),
        ("svelte", "<button on:click={handleClick}>Go</button>"),
    ])
    def test_events(self, framework, expected):
        assert rewrite_template("<button onClick={handleClick}>Go</button>", framework) == expected

    def test_html_drops_events(self):
        html = rewrite_template("<button onClick={handleClick}>Go</button>", "html")
        assert "click" not in html.lower()
        assert html.endswith(">Go</button>")

    def test_vue_change_event_alias(self):
        assert rewrite_template("<input onChange={update} />", "vue") == '<input @input="update" />'

    def test_style_object_becomes_css_string(self):
        vue = rewrite_template("<rect style={{ fill: 'red', strokeWidth: 2 }} />", "vue")
        assert vue == '<rect style="fill: red; stroke-width: 2px" />'

    def test_text_expressions(self):
        assert rewrite_template("<text>{label}</text>", "vue") == "<text>{{ label }}</text>"
        assert rewrite_template("<text>{label}</text>", "angular") == "<text>{{ label }}</text>"
        assert rewrite_template("<text>{label}</text>", "svelte") == "<text>{label}</text>"
        assert rewrite_template("<text>{label}</text>", "html") == "<text></text>"

    def test_bound_attributes(self):
        jsx = "<rect width={size} height={10} />"
        assert rewrite_template(jsx, "vue") == '<rect :width="size" height="10" />'
        assert rewrite_template(jsx, "angular") == '<rect [attr.width]="size" height="10" />'

    def test_bound_class(self):
        jsx = "<g className={cls}></g>"
        assert rewrite_template(jsx, "vue") == '<g :class="cls"></g>'
        assert rewrite_template(jsx, "angular") == '<g [class]="cls"></g>'
        assert rewrite_template(jsx, "svelte") == "<g class={cls}></g>"

    def test_children_slot(self):
        assert rewrite_template("<g>{children}</g>", "vue") == "<g><slot /></g>"
        assert rewrite_template("<g>{children}</g>", "angular") == "<g><ng-content></ng-content></g>"
        assert rewrite_template("<g>{children}</g>", "html") == "<g></g>"

    def test_fragments(self):
        jsx = "<>\n  <rect />\n</>"
        assert rewrite_template(jsx, "vue") == "  <rect />\n"
        assert rewrite_template(jsx, "angular") == "<ng-container>\n  <rect />\n</ng-container>"


def test_style_object_to_css_quoted_keys():
    assert style_object_to_css("'--brand': 'blue', fontSize: 12") == "--brand: blue; font-size: 12px"


# ─── DependencyManifest ─────────────────────────────────────────────────────

def test_package_json_splits_versions():
    manifest = DependencyManifest(
        "X", ".x",
        dependencies=("react@^18.2.0", "@angular/core@^16.0.0", "lodash"),
        dev_dependencies=("vite@^4.4.0",),
    )
    data = json.loads(manifest.package_json("my-app"))
    assert data["name"] == "my-app"
    assert data["private"] is True
    assert data["dependencies"] == {"react": "^18.2.0", "@angular/core": "^16.0.0", "lodash": "latest"}
    assert data["devDependencies"] == {"vite": "^4.4.0"}


# ─── FrameworkAdapter ───────────────────────────────────────────────────────

class TestReact:

    def test_typescript_component(self):
        adapted = adapt("react")
        code = adapted.component_code
        assert adapted.framework == "react"
        assert "interface MyButtonProps {" in code
        assert "const MyButton: React.FC<MyButtonProps> = " in code
        assert "import '../styles/my-button.css';" in code
        assert 'className="logo"' in code
        assert code.rstrip().endswith("export default MyButton;")
        assert adapted.manifest.extension == ".tsx"
        assert "vite.config.js" in adapted.manifest.config_files

    def test_javascript_component_has_no_interface(self):
        adapted = adapt("react", typescript=False)
        assert "interface" not in adapted.component_code
        assert "const MyButton = ({" in adapted.component_code
        assert adapted.manifest.extension == ".jsx"
        assert not any(d.startswith("typescript@") for d in adapted.manifest.dev_dependencies)

    def test_memo(self):
        assert "export default React.memo(MyButton);" in adapt("react", memo=True).component_code

    def test_scss_import(self):
        assert "import '../styles/my-button.scss';" in adapt("react", styling="scss").component_code

    def test_styled_components(self):
        adapted = adapt("react", styling="styled")
        code = adapted.component_code
        assert "import styled from 'styled-components';" in code
        assert "const MyButtonRoot = styled.div`" in code
        assert "<MyButtonRoot className={className}>" in code
        assert "styled-components@^6.0.0" in adapted.manifest.dependencies

    def test_tailwind_extras(self):
        manifest = adapt("react", styling="tailwind").manifest
        assert {"tailwind.config.js", "postcss.config.js", "vite.config.js"} <= set(manifest.config_files)
        assert "tailwindcss@^3.3.0" in manifest.dev_dependencies

    def test_unit_tests(self):
        adapted = adapt("react", unit_tests=True)
        assert "src/components/__tests__/MyButton.test.tsx" in adapted.additional_files
        assert "@testing-library/react@^14.0.0" in adapted.manifest.dev_dependencies


def test_unknown_framework_falls_back_to_react():
    adapted = adapt("solid")
    assert adapted.framework == "react"
    assert "React.FC" in adapted.component_code


def test_vue_component():
    adapted = adapt("vue")
    code = adapted.component_code
    assert code.startswith("<template>")
    assert '<script lang="ts">' in code
    assert "name: 'MyButton'" in code
    assert "<style scoped>" in code
    assert 'class="logo"' in code
    assert "tsconfig.json" in adapted.manifest.config_files


def test_vue_unit_test_path_without_typescript():
    adapted = adapt("vue", typescript=False, unit_tests=True)
    assert "src/components/__tests__/MyButton.spec.js" in adapted.additional_files
    assert "<script>" in adapted.component_code


def test_angular_component_and_module():
    adapted = adapt("angular", unit_tests=True)
    assert "selector: 'app-my-button'" in adapted.component_code
    assert "export class MyButtonComponent" in adapted.component_code
    module = adapted.additional_files["src/app/my-button.module.ts"]
    assert "export class MyButtonModule" in module
    assert "src/app/my-button.component.spec.ts" in adapted.additional_files
    assert set(adapted.manifest.config_files) == {"angular.json", "tsconfig.json"}


@pytest.mark.parametrize("typescript,expected", [
    (True, "export let className: string = '';"),
    (False, "export let className = '';"),
])
def test_svelte_component(typescript, expected):
    adapted = adapt("svelte", typescript=typescript)
    assert expected in adapted.component_code
    assert "svelte.config.js" in adapted.manifest.config_files


def test_html_document():
    adapted = adapt("html", unit_tests=True)
    code = adapted.component_code
    assert code.startswith("<!DOCTYPE html>")
    assert '<link rel="stylesheet" href="src/styles/my-button.css">' in code
    assert 'class="logo"' in code
    assert "className" not in code
    assert adapted.additional_files == {}
    assert adapted.manifest.dependencies == ()


@pytest.mark.parametrize("styling", ["css", "scss", "tailwind"])
def test_html_links_the_assembled_stylesheet(styling):
    code = adapt("html", styling=styling).component_code
    assert f'<link rel="stylesheet" href="{style_path("my button", styling)}">' in code


def test_angular_template_is_escaped_for_backtick_literal():
    jsx = r"<text>Run `npm i` in C:\app, pay ${raw</text>"
    code = adapt("angular", jsx=jsx).component_code
    assert r"<text>Run \`npm i\` in C:\\app, pay \${raw</text>" in code
    template = code.split("template: `", 1)[1].split("\n  `,", 1)[0]
    assert template.count("`") == template.count("\\`")
