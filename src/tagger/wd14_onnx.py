"""ONNX Runtime implementation of the WD14 model collaborator."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import numpy as np

from core.config.schema import TaggerSettings
from tagger.base import ProgressCallback, TagMeta
from tagger.download import fetch_file
from tagger.labels_util import load_selected_tags
from tagger.preprocess import format_for_layout, infer_input_layout, infer_spatial_dims

try:  # pragma: no cover - import is environment dependent
    import onnxruntime as ort
except ImportError as exc:  # pragma: no cover - surfaced when the model loads
    ort = None
    _IMPORT_ERROR = exc
else:
    _IMPORT_ERROR = None


ONNXRUNTIME_MISSING_MESSAGE = "onnxruntime is required. Try: pip install onnxruntime-gpu  (or onnxruntime for CPU)"
_CUDA_PROVIDER = "CUDAExecutionProvider"
_CPU_PROVIDER = "CPUExecutionProvider"

logger = logging.getLogger(__name__)


def _sigmoid(x: np.ndarray) -> np.ndarray:
    return 1.0 / (1.0 + np.exp(-x))


def ensure_onnxruntime() -> None:
    """Ensure onnxruntime is importable, raising a user-facing error otherwise."""

    if ort is None:  # pragma: no cover - runtime guard
        raise RuntimeError(ONNXRUNTIME_MISSING_MESSAGE) from _IMPORT_ERROR


def get_available_providers() -> list[str]:
    """Return the list of ONNX Runtime providers available on this system."""

    ensure_onnxruntime()
    try:
        providers = list(ort.get_available_providers())  # type: ignore[union-attr]
    except Exception as exc:  # pragma: no cover - defensive logging
        logger.warning("WD14: failed to query ONNX providers: %s", exc)
        return []
    return providers


@dataclass(frozen=True)
class WD14Model:
    """Loaded inference session together with its input geometry."""

    session: object
    input_name: str
    output_name: str
    layout: str
    input_size: int


class WD14Runtime:
    """Download, load and run the WD14 tagger through ONNX Runtime."""

    def __init__(
        self,
        settings: TaggerSettings,
        model_dir: str | Path,
        *,
        providers: Iterable[str] | None = None,
    ) -> None:
        self._settings = settings
        self._model_dir = Path(model_dir)
        self._providers = list(providers) if providers is not None else None

    @property
    def model_dir(self) -> Path:
        return self._model_dir

    def load_vocabulary(self) -> list[TagMeta]:
        path = fetch_file(
            self._settings.file_url(self._settings.tags_filename),
            self._model_dir / self._settings.tags_filename,
            timeout=self._settings.download_timeout,
        )
        labels = load_selected_tags(path)
        if not labels:
            raise ValueError(f"No labels parsed from {path}")
        logger.info("WD14: loaded %d labels from %s", len(labels), path)
        return labels

    def load_weights(self, on_progress: ProgressCallback) -> WD14Model:
        ensure_onnxruntime()
        path = fetch_file(
            self._settings.file_url(self._settings.model_filename),
            self._model_dir / self._settings.model_filename,
            on_progress=on_progress,
            timeout=self._settings.download_timeout,
        )
        session = self._create_session(path)
        model_input = session.get_inputs()[0]
        outputs = session.get_outputs()
        if len(outputs) != 1:
            raise RuntimeError(f"Expected a single output tensor from WD14 ONNX model, got {[o.name for o in outputs]}")
        layout = infer_input_layout(model_input.shape)
        height, _ = infer_spatial_dims(model_input.shape, layout)
        logger.info("WD14: input %s shape=%s layout=%s", model_input.name, model_input.shape, layout)
        return WD14Model(
            session=session,
            input_name=model_input.name,
            output_name=outputs[0].name,
            layout=layout,
            input_size=height,
        )

    def input_size(self, model: WD14Model) -> int:
        return model.input_size

    def infer(self, model: WD14Model, tensor: np.ndarray) -> np.ndarray:
        batch = format_for_layout(tensor.astype(np.float32, copy=False), model.layout)
        outputs = model.session.run([model.output_name], {model.input_name: batch})  # type: ignore[attr-defined]
        logits = np.asarray(outputs[0], dtype=np.float32)[0]
        mn, mx = float(np.min(logits)), float(np.max(logits))
        if 0.0 <= mn <= 1.0 and 0.0 <= mx <= 1.0:
            return logits
        return _sigmoid(logits).astype(np.float32, copy=False)

    def _create_session(self, model_path: Path):
        options = ort.SessionOptions()  # type: ignore[union-attr]
        options.graph_optimization_level = getattr(ort.GraphOptimizationLevel, "ORT_ENABLE_ALL", 99)  # type: ignore[union-attr]
        options.log_severity_level = 2

        available = get_available_providers()
        if available:
            logger.info("WD14: available ONNX providers: %s", ", ".join(available))
        else:
            logger.warning("WD14: no ONNX providers reported by runtime")

        attempts: list[list[str]]
        if self._providers is not None:
            attempts = [list(self._providers)]
            if _CUDA_PROVIDER in attempts[0] and _CUDA_PROVIDER not in available:
                logger.warning("WD14: %s requested but not available; falling back to %s", _CUDA_PROVIDER, _CPU_PROVIDER)
                attempts = [[_CPU_PROVIDER]]
        elif _CUDA_PROVIDER in available:
            attempts = [[_CUDA_PROVIDER], [_CPU_PROVIDER]]
        else:
            attempts = [[_CPU_PROVIDER]]

        last_error: Exception | None = None
        for provider_list in attempts:
            try:
                session = ort.InferenceSession(  # type: ignore[union-attr]
                    str(model_path),
                    sess_options=options,
                    providers=provider_list,
                )
            except Exception as exc:  # pragma: no cover - exercised with real runtimes
                last_error = exc
                logger.warning("WD14: providers %s failed: %s", provider_list, exc)
                continue
            logger.info("WD14: using providers %s", provider_list)
            return session
        raise RuntimeError("WD14: failed to initialise ONNX Runtime session") from last_error


__all__ = [
    "WD14Model",
    "WD14Runtime",
    "ensure_onnxruntime",
    "get_available_providers",
]
