#!/usr/bin/env python3
"""
AiIRIS-codegen CLI — 設計稿 / SVG → 框架元件程式碼

  airis-codegen generate --input design.json --framework vue --output ./out
  airis-codegen generate --file-key KEY --framework react --styling tailwind
  airis-codegen analyze --input icon.svg        # 列出偵測到的 UI pattern
  airis-codegen watch --input design.svg        # 檔案變更時自動重新產生
"""

import argparse
import asyncio
import json
import os
import threading
import time
from pathlib import Path

import requests
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from airis_codegen import __version__

from .config import DEFAULT_CONFIG_PATH, engine_settings_from, figma_token, load_config, transform_config_from
from .engine import CodeGenerationEngine
from .errors import CodegenError, describe_error
from .figma_reader import FigmaAPIClient, parse_file_key
from .ingestion import DocumentIngestor
from .models import FRAMEWORKS, STYLINGS
from .patterns import PatternAnalyzer
from .report import write_generated_files, write_generation_report, write_preview


def load_document(path: str):
    """.json 讀成 dict（Figma 匯出），其餘當 SVG markup 文字."""
    with open(path, "r", encoding="utf-8") as f:
        if path.lower().endswith(".json"):
            return json.load(f)
        return f.read()


def fetch_document(file_key: str, config: dict):
    """從 Figma API 讀文件；失敗時印出友善訊息並回傳 None."""
    token = figma_token(config)
    if not token:
        print(f"❌ 請設定 FIGMA_TOKEN 環境變數，或在 {DEFAULT_CONFIG_PATH} 的 figma.personalAccessToken 設定。")
        print("   取得方式：Figma → Settings → Personal access tokens → 新增")
        return None
    try:
        key = parse_file_key(file_key)
        print(f"📥 Fetching Figma file: {key}")
        return FigmaAPIClient(token).get_file(key)
    except (CodegenError, requests.RequestException) as e:
        print(f"❌ Figma API 錯誤：{describe_error(e)}")
        return None


def resolve_document(args, config: dict):
    if getattr(args, "input", None):
        try:
            return load_document(args.input)
        except (OSError, ValueError) as e:
            print(f"❌ 無法讀取 '{args.input}'：{e}")
            return None
    file_key = getattr(args, "file_key", None) or config.get("figma", {}).get("fileKey")
    if not file_key:
        print(f"❌ 請使用 --input 或 --file-key（或在 {DEFAULT_CONFIG_PATH} 的 figma.fileKey 設定）。")
        return None
    return fetch_document(file_key, config)


def _print_progress(pct: float, label: str) -> None:
    print(f"   [{pct:5.1f}%] {label}")


async def perform_generate(document, args, config: dict, engine: CodeGenerationEngine):
    """產生 + 寫檔，generate 與 watch 共用."""
    transform_config = transform_config_from(
        config,
        framework=args.framework,
        styling=args.styling,
        typescript=args.typescript,
        component_name=args.name,
        pass_props=args.pass_props or None,
        render_children=args.render_children or None,
        memo=args.memo or None,
        unit_tests=args.unit_tests or None,
    )
    print(f"🚀 Generating {transform_config.framework} component '{transform_config.component_name}'")

    try:
        result = await engine.generate(document, transform_config, on_progress=_print_progress)
    except CodegenError as e:
        print(f"   ❌ Generation failed: {describe_error(e)}")
        return None

    output_dir = args.output or config.get("export", {}).get("outputDir") or "./generated"
    written = write_generated_files(result, output_dir)
    write_preview(result, output_dir)
    report_path = write_generation_report(result, output_dir)

    print(f"   ✅ Wrote {len(written)} files to {output_dir}")
    print(f"   📊 Quality {result.quality.overall:.1f}/100 · build {result.build_status}")
    for log in result.build_logs:
        if log.level != "info":
            where = f" ({log.file})" if log.file else ""
            print(f"   ⚠️  {log.message}{where}")
    print(f"   📄 Report saved to {report_path}")
    return result


def cmd_generate(args, config: dict):
    """Generate: 讀設計文件 → 產生元件檔案."""
    document = resolve_document(args, config)
    if document is None:
        return
    engine = CodeGenerationEngine(engine_settings_from(config))

    async def run():
        try:
            return await perform_generate(document, args, config, engine)
        finally:
            if engine.worker_pool is not None:
                await engine.worker_pool.close()

    asyncio.run(run())


def cmd_analyze(args, config: dict):
    """Analyze: 只跑 ingestion + pattern 分析，列出結果."""
    document = resolve_document(args, config)
    if document is None:
        return
    settings = engine_settings_from(config)
    try:
        ingested = asyncio.run(DocumentIngestor(settings.ingestion).ingest(document))
    except CodegenError as e:
        print(f"❌ Analyze failed: {describe_error(e)}")
        return

    for warning in ingested.warnings:
        print(f"   ⚠️  {warning}")
    analysis = PatternAnalyzer(settings.patterns).analyze_design(ingested.tree, ingested.figma)
    print(f"🔎 {len(analysis.patterns)} patterns · complexity {analysis.complexity:.1f}")
    for pattern in analysis.patterns:
        label = pattern.node_name or pattern.node_id
        print(f"   • {pattern.type:<10} {pattern.confidence:.2f}  {label}")
        for insight in pattern.accessibility:
            print(f"       [{insight.severity}] {insight.message}: {insight.fix}")
    for suggestion in analysis.suggestions:
        print(f"   💡 {suggestion}")


_WATCHED_EXTENSIONS = (".svg", ".json")


class ChangeHandler(FileSystemEventHandler):
    """檔案變更事件處理器，帶 debounce 防抖。"""

    def __init__(self, callback, loop: asyncio.AbstractEventLoop, debounce: float = 1.0, target: str = None):
        self.callback = callback
        self.loop = loop
        self.last_trigger = 0.0
        self.debounce_seconds = debounce
        self.target = os.path.abspath(target) if target else None

    def on_modified(self, event):
        if event.is_directory:
            return
        if not event.src_path.endswith(_WATCHED_EXTENSIONS):
            return
        if self.target and os.path.abspath(event.src_path) != self.target:
            return
        current_time = time.time()
        if current_time - self.last_trigger < self.debounce_seconds:
            return
        self.last_trigger = current_time
        print(f"\n🔄 File changed: {event.src_path}")
        # 透過 threadsafe 把 coroutine 丟進 loop（loop 在獨立執行緒中 run_forever）
        asyncio.run_coroutine_threadsafe(self.callback(), self.loop)


def cmd_watch(args, config: dict):
    """Watch: 監聽輸入檔並自動重新產生."""
    input_path = args.input
    if not Path(input_path).exists():
        print(f"❌ 找不到輸入檔 '{input_path}'。")
        return
    watch_dir = str(Path(input_path).resolve().parent)
    print(f"👀 Watching '{input_path}' for changes...")
    print("   Press Ctrl+C to stop.")

    engine = CodeGenerationEngine(engine_settings_from(config))
    # 在獨立執行緒中運行 event loop，避免主執行緒與 coroutine_threadsafe 競爭
    loop = asyncio.new_event_loop()

    async def generate_task():
        try:
            document = load_document(input_path)
        except (OSError, ValueError) as e:
            print(f"   ❌ 無法讀取 '{input_path}'：{e}")
            return
        await perform_generate(document, args, config, engine)

    def run_loop():
        asyncio.set_event_loop(loop)
        loop.run_forever()

    loop_thread = threading.Thread(target=run_loop, daemon=True)
    loop_thread.start()

    # 初始執行一次（等待完成）
    future = asyncio.run_coroutine_threadsafe(generate_task(), loop)
    try:
        future.result(timeout=120)
    except Exception as e:
        print(f"   ⚠️  Initial generation failed: {e}")

    event_handler = ChangeHandler(generate_task, loop, target=input_path)
    observer = Observer()
    observer.schedule(event_handler, path=watch_dir, recursive=False)
    observer.start()

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\n👋 Stopping watch...")
        observer.stop()
    finally:
        observer.join()
        loop.call_soon_threadsafe(loop.stop)


def _add_source_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--input", "-i", help="Figma JSON export (.json) or SVG file")
    p.add_argument("--file-key", help="Figma file key or URL")


def _add_generation_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--framework", "-f", choices=FRAMEWORKS, help="Target framework")
    p.add_argument("--styling", "-s", choices=STYLINGS, help="Styling strategy")
    p.add_argument("--typescript", action=argparse.BooleanOptionalAction, default=None, help="Emit TypeScript")
    p.add_argument("--name", "-n", help="Component name")
    p.add_argument("--output", "-o", help="Output directory")
    p.add_argument("--pass-props", action="store_true", help="Spread extra props onto the root element")
    p.add_argument("--render-children", action="store_true", help="Render a children slot in the root element")
    p.add_argument("--memo", action="store_true", help="Wrap React components in React.memo")
    p.add_argument("--unit-tests", action="store_true", help="Emit a component test file")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="AiIRIS-codegen: Design → Framework Code",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", "-c", default=DEFAULT_CONFIG_PATH, help="Config path")
    parser.add_argument("--version", "-v", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command")

    gen_p = sub.add_parser("generate", help="Design → component files",
        epilog="Examples:\n  airis-codegen generate --input design.json --framework vue\n  airis-codegen generate --file-key ABC123 --styling tailwind --output ./out",
        formatter_class=argparse.RawDescriptionHelpFormatter)
    _add_source_args(gen_p)
    _add_generation_args(gen_p)

    analyze_p = sub.add_parser("analyze", help="Detect UI patterns",
        epilog="Examples:\n  airis-codegen analyze --input design.json\n  airis-codegen analyze --file-key ABC123",
        formatter_class=argparse.RawDescriptionHelpFormatter)
    _add_source_args(analyze_p)

    watch_p = sub.add_parser("watch", help="Regenerate when the input file changes",
        epilog="Examples:\n  airis-codegen watch --input design.svg --framework svelte",
        formatter_class=argparse.RawDescriptionHelpFormatter)
    watch_p.add_argument("--input", "-i", required=True, help="Figma JSON export (.json) or SVG file")
    _add_generation_args(watch_p)
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    config = load_config(args.config)

    if args.command == "generate":
        cmd_generate(args, config)
    elif args.command == "analyze":
        cmd_analyze(args, config)
    elif args.command == "watch":
        cmd_watch(args, config)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
