"""
Pretrained image classifier backed by the OpenCV DNN module.

Any model cv2.dnn.readNet can load (ONNX, Caffe, TensorFlow, Darknet) is
accepted. Labels come from a plain-text file with one class name per line,
in model output order.
"""

import logging
import time
from pathlib import Path
from typing import Any

import cv2
import numpy as np

from .errors import ClassificationError, ModelLoadError
from .result import Classification, ClassificationResult

logger = logging.getLogger(__name__)

IMAGENET_MEAN = (0.485, 0.456, 0.406)
IMAGENET_STD = (0.229, 0.224, 0.225)


def center_crop(image: np.ndarray) -> np.ndarray:
    """Crop the largest centered square from an image."""
    height, width = image.shape[:2]
    side = min(height, width)
    y = (height - side) // 2
    x = (width - side) // 2
    return image[y : y + side, x : x + side]


def preprocess_bgr(
    image: np.ndarray,
    input_size: int = 224,
    mean: tuple[float, float, float] = IMAGENET_MEAN,
    std: tuple[float, float, float] = IMAGENET_STD,
) -> np.ndarray:
    """
    BGR image -> float32 NCHW blob (1, 3, input_size, input_size), RGB, normalized.
    """
    if image.ndim == 2:
        image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    elif image.shape[2] == 4:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)

    rgb = cv2.cvtColor(center_crop(image), cv2.COLOR_BGR2RGB)
    rgb = cv2.resize(rgb, (input_size, input_size), interpolation=cv2.INTER_AREA)

    x = rgb.astype(np.float32) / 255.0
    x = (x - np.array(mean, dtype=np.float32)) / np.array(std, dtype=np.float32)
    x = np.transpose(x, (2, 0, 1))  # CHW
    return np.expand_dims(x, 0)  # NCHW


def softmax(logits: np.ndarray) -> np.ndarray:
    """Numerically stable softmax over a 1-D vector."""
    shifted = logits - np.max(logits)
    exp = np.exp(shifted)
    return exp / np.sum(exp)


def load_labels(path: str | Path) -> list[str]:
    """Read class labels, one per non-empty line."""
    labels_path = Path(path)
    if not labels_path.is_file():
        raise ModelLoadError(f"Labels file not found: {labels_path}")
    with open(labels_path, encoding="utf-8") as f:
        labels = [line.strip() for line in f if line.strip()]
    if not labels:
        raise ModelLoadError(f"Labels file is empty: {labels_path}")
    return labels


class ImageClassifier:
    """
    Top-k image classifier.

    Usage:
        classifier = ImageClassifier(config["model"])
        result = classifier.classify(frame)
        print(result.label_text())
    """

    def __init__(
        self,
        config: dict[str, Any],
        net: Any | None = None,
        labels: list[str] | None = None,
    ):
        """
        Initialize classifier and load the model.

        Args:
            config: Model configuration dictionary with keys:
                - path: model weights file
                - config_path: optional network description file
                - labels_path: class labels text file
                - input_size: int, square input side (default 224)
                - mean / std: per-channel RGB normalization
                - apply_softmax: bool, softmax raw outputs (default True)
                - top_k: int, number of classifications returned (default 5)
            net: Pre-built network exposing setInput()/forward(); skips loading
            labels: Class labels; skips reading labels_path

        Raises:
            ModelLoadError: Model or labels could not be loaded.
        """
        self.input_size = int(config.get("input_size", 224))
        self.mean = tuple(config.get("mean", IMAGENET_MEAN))
        self.std = tuple(config.get("std", IMAGENET_STD))
        self.apply_softmax = config.get("apply_softmax", True)
        self.top_k = max(1, int(config.get("top_k", 5)))

        self.labels = labels if labels is not None else load_labels(config.get("labels_path", ""))
        self.net = net if net is not None else self._load_net(config)

        logger.info(
            f"Classifier ready: {len(self.labels)} labels, "
            f"input={self.input_size}x{self.input_size}, top_k={self.top_k}"
        )

    def _load_net(self, config: dict[str, Any]) -> Any:
        """Load the network with cv2.dnn."""
        model_path = config.get("path")
        if not model_path or not Path(model_path).is_file():
            raise ModelLoadError(f"Model file not found: {model_path}")

        config_path = config.get("config_path") or ""
        try:
            net = cv2.dnn.readNet(str(model_path), str(config_path))
        except cv2.error as e:
            raise ModelLoadError(f"Failed to load model {model_path}: {e}") from e

        if net.empty():
            raise ModelLoadError(f"Model loaded empty network: {model_path}")

        logger.info(f"Model loaded: {model_path}")
        return net

    def classify(self, image: np.ndarray, source: str = "live") -> ClassificationResult:
        """
        Classify an image.

        Args:
            image: BGR (or grayscale / BGRA) image
            source: Tag stored on the result ("live" or "static")

        Returns:
            ClassificationResult with the top_k classifications

        Raises:
            ClassificationError: Empty image, inference failure, or output
                size not matching the label count.
        """
        if image is None or image.size == 0:
            raise ClassificationError("Cannot classify an empty image")

        start_time = time.perf_counter()

        blob = preprocess_bgr(image, self.input_size, self.mean, self.std)
        try:
            self.net.setInput(blob)
            output = self.net.forward()
        except cv2.error as e:
            raise ClassificationError(f"Inference failed: {e}") from e

        scores = np.asarray(output, dtype=np.float32).reshape(-1)
        if scores.size != len(self.labels):
            raise ClassificationError(
                f"Model produced {scores.size} outputs for {len(self.labels)} labels"
            )

        if self.apply_softmax:
            scores = softmax(scores)

        order = np.argsort(scores)[::-1][: self.top_k]
        classifications = [
            Classification(identifier=self.labels[i], confidence=float(scores[i]))
            for i in order
        ]

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.debug(
            f"Classified {source} image in {elapsed_ms:.1f}ms: "
            f"{classifications[0].identifier} ({classifications[0].confidence:.2f})"
        )

        return ClassificationResult(
            classifications=classifications,
            processing_time_ms=elapsed_ms,
            source=source,
        )
