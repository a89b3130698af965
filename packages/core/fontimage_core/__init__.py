"""Core services for FontImage settings, logging, rendering and diagnostics."""

from .config import RenderConfig, config_path, load_config, save_config
from .diagnostics import build_doctor_payload, list_fonts
from .service import GenerateResult, RenderService, ServiceResult, create_render_service

__all__ = [
    "GenerateResult",
    "RenderConfig",
    "RenderService",
    "ServiceResult",
    "build_doctor_payload",
    "config_path",
    "create_render_service",
    "list_fonts",
    "load_config",
    "save_config",
]
