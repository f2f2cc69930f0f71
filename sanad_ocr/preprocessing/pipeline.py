"""Primary and alternative preprocessing pipelines for OCR.

Each pipeline reads the source image, applies its chain of enhancement
steps, and writes a lossless PNG beside the source. A pipeline that fails
falls back to the untouched source so extraction can still proceed.
"""

import os
import tempfile
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

import cv2
import numpy as np

from sanad_ocr.utils.config import PreprocessingConfig
from sanad_ocr.utils.logger import get_logger

from .filters import (
    adjust_brightness,
    apply_gamma,
    binarize_fixed,
    blur,
    calculate_contrast,
    calculate_sharpness,
    linear_contrast,
    normalize_contrast,
    sharpen,
    to_gray,
)

logger = get_logger(__name__)


class ImageVariant(StrEnum):
    """Which preprocessing pipeline produced an image."""

    PRIMARY = "primary"
    ALTERNATIVE = "alternative"


@dataclass
class PreparedImages:
    """Preprocessed image paths for one extraction call."""

    source: Path
    paths: dict[ImageVariant, Path] = field(default_factory=dict)

    def cleanup(self) -> None:
        """Delete derived images, never the source. Failures are logged."""
        for path in set(self.paths.values()):
            if path == self.source:
                continue
            try:
                path.unlink(missing_ok=True)
                logger.debug("Removed temporary image %s", path)
            except OSError as exc:
                logger.warning("Could not remove temporary image %s: %s", path, exc)


def _reserve_output_path(source: Path, variant: ImageVariant) -> Path:
    """Create an empty, uniquely named PNG beside the source."""
    fd, name = tempfile.mkstemp(
        dir=source.parent, prefix=f"{source.stem}_{variant.value}_", suffix=".png"
    )
    os.close(fd)
    return Path(name)


class PreprocessingPipeline:
    """Builds the primary and alternative OCR input images.

    Args:
        config: Parameters for the enhancement steps.
    """

    def __init__(self, config: PreprocessingConfig) -> None:
        self.config = config

    def enhance_primary(self, image: np.ndarray) -> np.ndarray:
        """Grayscale, normalize, sharpen, brighten, boost contrast, binarize."""
        cfg = self.config
        result = to_gray(image)
        result = normalize_contrast(result)
        result = sharpen(result, cfg.sharpen_amount)
        result = adjust_brightness(result, cfg.brightness)
        result = linear_contrast(result, cfg.linear_alpha, cfg.linear_beta)
        return binarize_fixed(result, cfg.binarize_threshold)

    def enhance_alternative(self, image: np.ndarray) -> np.ndarray:
        """Grayscale, denoise, sharpen harder, normalize, gamma, boost contrast."""
        cfg = self.config
        result = to_gray(image)
        result = blur(result, cfg.blur_kernel_size)
        result = sharpen(result, cfg.strong_sharpen_amount)
        result = normalize_contrast(result)
        result = apply_gamma(result, cfg.gamma)
        return linear_contrast(result, cfg.linear_alpha, cfg.linear_beta)

    def run(self, source: Path, variant: ImageVariant) -> Path:
        """Run one pipeline and write its output beside the source.

        Args:
            source: Path to the original image.
            variant: Which pipeline to run.

        Returns:
            Path of the derived PNG, or ``source`` if the pipeline failed.
        """
        enhance = (
            self.enhance_primary
            if variant is ImageVariant.PRIMARY
            else self.enhance_alternative
        )
        target: Path | None = None

        try:
            image = cv2.imread(str(source), cv2.IMREAD_COLOR)
            if image is None:
                raise ValueError(f"Unreadable image: {source}")

            result = enhance(image)
            target = _reserve_output_path(source, variant)
            if not cv2.imwrite(str(target), result):
                raise OSError(f"Could not write {target}")
        except Exception as exc:
            logger.warning(
                "%s preprocessing failed for %s, using original: %s",
                variant.value,
                source,
                exc,
            )
            if target is not None:
                target.unlink(missing_ok=True)
            return source

        logger.debug(
            "%s preprocessing: sharpness %.1f->%.1f, contrast %.1f->%.1f",
            variant.value,
            calculate_sharpness(image),
            calculate_sharpness(result),
            calculate_contrast(image),
            calculate_contrast(result),
        )
        return target

    def prepare(self, source: Path) -> PreparedImages:
        """Produce both variants for one extraction call.

        Args:
            source: Path to the uploaded image.

        Returns:
            Prepared image paths; call ``cleanup()`` when done with them.
        """
        prepared = PreparedImages(source=source)
        for variant in ImageVariant:
            prepared.paths[variant] = self.run(source, variant)
        logger.info("Prepared %d image variants for %s", len(prepared.paths), source)
        return prepared
