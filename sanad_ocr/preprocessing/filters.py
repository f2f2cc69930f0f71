"""Image enhancement steps for scanned ledger sheets.

Each step takes and returns a numpy image so the two preprocessing
pipelines can chain them in different orders.
"""

import cv2
import numpy as np

from sanad_ocr.utils.logger import get_logger

logger = get_logger(__name__)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert an image to grayscale if it has color channels.

    Args:
        image: Input image (BGR, BGRA or grayscale).

    Returns:
        Grayscale image.
    """
    if len(image.shape) == 3:
        code = cv2.COLOR_BGRA2GRAY if image.shape[2] == 4 else cv2.COLOR_BGR2GRAY
        return cv2.cvtColor(image, code)
    return image


def normalize_contrast(image: np.ndarray) -> np.ndarray:
    """Stretch pixel intensities to the full 0-255 range."""
    return cv2.normalize(image, None, 0, 255, cv2.NORM_MINMAX)


def sharpen(image: np.ndarray, amount: float = 1.0) -> np.ndarray:
    """Sharpen with a Laplacian-style kernel.

    Args:
        image: Grayscale image.
        amount: Weight of the edge term; larger values sharpen harder.

    Returns:
        Sharpened image.
    """
    kernel = np.array(
        [[0, -amount, 0], [-amount, 1 + 4 * amount, -amount], [0, -amount, 0]],
        dtype=np.float32,
    )
    result = cv2.filter2D(image, -1, kernel)
    logger.debug("Applied sharpen (amount=%.1f)", amount)
    return result


def adjust_brightness(image: np.ndarray, factor: float) -> np.ndarray:
    """Scale brightness by a multiplicative factor."""
    return cv2.convertScaleAbs(image, alpha=factor, beta=0)


def linear_contrast(image: np.ndarray, alpha: float, beta: float) -> np.ndarray:
    """Apply ``alpha * pixel + beta``, clipped to 0-255."""
    result = image.astype(np.float32) * alpha + beta
    return np.clip(np.rint(result), 0, 255).astype(np.uint8)


def apply_gamma(image: np.ndarray, gamma: float) -> np.ndarray:
    """Apply gamma correction through a lookup table.

    Args:
        image: 8-bit image.
        gamma: Gamma value; values above 1 brighten mid-tones.

    Returns:
        Gamma-corrected image.
    """
    inv_gamma = 1.0 / gamma
    table = np.array(
        [((i / 255.0) ** inv_gamma) * 255 for i in range(256)], dtype=np.uint8
    )
    return cv2.LUT(image, table)


def blur(image: np.ndarray, kernel_size: int = 3) -> np.ndarray:
    """Mild Gaussian blur to suppress scanner noise."""
    return cv2.GaussianBlur(image, (kernel_size, kernel_size), 0)


def binarize_fixed(image: np.ndarray, threshold: int = 128) -> np.ndarray:
    """Binarize with a fixed threshold.

    Args:
        image: Grayscale image.
        threshold: Pixels above this value become white.

    Returns:
        Binary image with pixel values 0 or 255.
    """
    _, binary = cv2.threshold(image, threshold, 255, cv2.THRESH_BINARY)
    logger.debug("Applied fixed binarization (threshold=%d)", threshold)
    return binary


def calculate_sharpness(image: np.ndarray) -> float:
    """Calculate image sharpness using Laplacian variance."""
    return float(cv2.Laplacian(to_gray(image), cv2.CV_64F).var())


def calculate_contrast(image: np.ndarray) -> float:
    """Calculate image contrast as the standard deviation of intensities."""
    return float(to_gray(image).std())
