"""設定檔載入、基本驗證，以及轉成 TransformConfig / EngineSettings."""

import json
import os
from pathlib import Path
from typing import Any, Optional

from .cache import CacheSettings
from .engine import EngineSettings
from .ingestion import IngestionSettings
from .models import FRAMEWORKS, STYLINGS, OptimizationOptions, TransformConfig

DEFAULT_CONFIG_PATH = "airis-codegen.config.json"

# 已知有效的頂層欄位
_KNOWN_TOP_KEYS = {"figma", "generation", "ingestion", "cache", "worker", "export"}

# 各區塊已知欄位（用於拼字提示）
_KNOWN_SECTION_KEYS = {
    "figma": {"personalAccessToken", "fileKey"},
    "generation": {
        "framework", "typescript", "styling", "componentName", "passProps",
        "renderChildren", "memo", "unitTests", "optimization",
    },
    "ingestion": {"maxFileSize", "largeFileThreshold", "maxChunkSize"},
    "cache": {"maxSize", "ttlSeconds"},
    "worker": {"enabled", "timeoutSeconds", "workers"},
    "export": {"outputDir"},
}

_KNOWN_OPTIMIZATION_KEYS = {"treeShaking", "codeSplitting", "lazyLoading"}

_NUMERIC_KEYS = {
    "ingestion": ("maxFileSize", "largeFileThreshold", "maxChunkSize"),
    "cache": ("maxSize", "ttlSeconds"),
    "worker": ("timeoutSeconds", "workers"),
}


def _warn(msg: str) -> None:
    print(f"   ⚠️  [config] {msg}")


def _section(cfg: dict, name: str) -> dict:
    value = (cfg or {}).get(name) or {}
    return value if isinstance(value, dict) else {}


def validate_config(cfg: dict) -> None:
    """對 config 做基本欄位驗證，印出警告但不拋例外。"""
    if not cfg:
        return

    # 頂層未知欄位
    for key in cfg:
        if key not in _KNOWN_TOP_KEYS:
            known = ", ".join(sorted(_KNOWN_TOP_KEYS))
            _warn(f"未知頂層欄位 '{key}'（已知欄位：{known}）")

    # 各區塊欄位
    for section, known_keys in _KNOWN_SECTION_KEYS.items():
        section_cfg = cfg.get(section, {})
        if not isinstance(section_cfg, dict):
            continue
        for key in section_cfg:
            if key not in known_keys:
                known = ", ".join(sorted(known_keys))
                _warn(f"[{section}] 未知欄位 '{key}'（已知欄位：{known}）")

    generation = _section(cfg, "generation")

    framework = generation.get("framework")
    if framework and framework not in FRAMEWORKS:
        valid = ", ".join(FRAMEWORKS)
        _warn(f"generation.framework '{framework}' 不在已知值中（{valid}），將使用 react")

    styling = generation.get("styling")
    if styling and styling not in STYLINGS:
        valid = ", ".join(STYLINGS)
        _warn(f"generation.styling '{styling}' 不在已知值中（{valid}）")

    optimization = generation.get("optimization")
    if isinstance(optimization, dict):
        for key in optimization:
            if key not in _KNOWN_OPTIMIZATION_KEYS:
                known = ", ".join(sorted(_KNOWN_OPTIMIZATION_KEYS))
                _warn(f"[generation.optimization] 未知欄位 '{key}'（已知欄位：{known}）")

    # 數值欄位類型
    for section, keys in _NUMERIC_KEYS.items():
        section_cfg = _section(cfg, section)
        for key in keys:
            val = section_cfg.get(key)
            if val is not None and (isinstance(val, bool) or not isinstance(val, (int, float))):
                _warn(f"{section}.{key} 應為數字，目前是 {type(val).__name__}")


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> dict:
    """載入 JSON 設定檔，不存在則回傳空 dict；存在則做基本驗證。"""
    path = Path(config_path)
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        cfg: Any = json.load(f)
    if not isinstance(cfg, dict):
        print(f"   ⚠️  [config] '{config_path}' 格式錯誤，應為 JSON 物件，回傳空設定。")
        return {}
    validate_config(cfg)
    return cfg


def figma_token(cfg: dict) -> Optional[str]:
    """config 的 figma.personalAccessToken，沒有就看 FIGMA_TOKEN 環境變數."""
    return _section(cfg, "figma").get("personalAccessToken") or os.environ.get("FIGMA_TOKEN")


def transform_config_from(cfg: dict, **overrides) -> TransformConfig:
    """generation 區塊 → TransformConfig；overrides 的值為 None 時忽略（CLI 未指定的參數）."""
    generation = _section(cfg, "generation")
    optimization = generation.get("optimization") or {}
    values = {
        "framework": generation.get("framework", "react"),
        "typescript": bool(generation.get("typescript", True)),
        "styling": generation.get("styling", "css"),
        "component_name": generation.get("componentName", "GeneratedComponent"),
        "pass_props": bool(generation.get("passProps", False)),
        "render_children": generation.get("renderChildren", False),
        "memo": bool(generation.get("memo", False)),
        "unit_tests": bool(generation.get("unitTests", False)),
        "optimization": OptimizationOptions(
            tree_shaking=bool(optimization.get("treeShaking", False)),
            code_splitting=bool(optimization.get("codeSplitting", False)),
            lazy_loading=bool(optimization.get("lazyLoading", False)),
        ),
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return TransformConfig(**values)


def engine_settings_from(cfg: dict) -> EngineSettings:
    ingestion = _section(cfg, "ingestion")
    cache = _section(cfg, "cache")
    worker = _section(cfg, "worker")
    defaults = IngestionSettings()
    cache_defaults = CacheSettings()
    return EngineSettings(
        ingestion=IngestionSettings(
            max_file_size=int(ingestion.get("maxFileSize", defaults.max_file_size)),
            large_file_threshold=int(ingestion.get("largeFileThreshold", defaults.large_file_threshold)),
            max_chunk_size=int(ingestion.get("maxChunkSize", defaults.max_chunk_size)),
        ),
        cache=CacheSettings(
            max_size=int(cache.get("maxSize", cache_defaults.max_size)),
            ttl_seconds=float(cache.get("ttlSeconds", cache_defaults.ttl_seconds)),
        ),
        use_worker=bool(worker.get("enabled", False)),
        worker_timeout=float(worker.get("timeoutSeconds", 30.0)),
        workers=int(worker.get("workers", 1)),
    )
