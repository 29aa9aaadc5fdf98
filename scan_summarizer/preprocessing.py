"""
Image cleanup applied to scanned pages before OCR.

Pipeline: load -> resize -> grayscale -> denoise -> binarize.
"""

from pathlib import Path
import cv2
import numpy as np
from numpy.typing import NDArray
from cv2.typing import MatLike

DENOISE_METHODS: tuple[str, ...] = ("gaussian", "bilateral")
BINARIZE_METHODS: tuple[str, ...] = ("otsu", "adaptive")


def load_image(image_path: str | Path) -> MatLike:
    """
    Read an image from disk in BGR format.

    Raises:
        FileNotFoundError: If the image file doesn't exist
        ValueError: If the file can't be decoded as an image
    """
    if not Path(image_path).exists():
        raise FileNotFoundError(f"Image file not found: {image_path}")

    img = cv2.imread(str(image_path))
    if img is None:
        raise ValueError(f"Could not load image: {image_path}")
    return img


def resize_if_needed(img: MatLike,
                     min_dimension: int = 1000,
                     max_dimension: int = 3000) -> MatLike:
    """
    Scale a page so its sides fall within OCR-friendly bounds.

    Small phone captures are upscaled until the shorter side reaches
    min_dimension; very large scans are downscaled until the longer side
    fits max_dimension. Aspect ratio is preserved.
    """
    height, width = img.shape[:2]

    if min(height, width) < min_dimension:
        scale = min_dimension / min(height, width)
        interpolation = cv2.INTER_CUBIC
    elif max(height, width) > max_dimension:
        scale = max_dimension / max(height, width)
        interpolation = cv2.INTER_AREA
    else:
        return img

    return cv2.resize(
        img, (int(width * scale), int(height * scale)), interpolation=interpolation
    )


def grayscale(img: MatLike) -> MatLike:
    if len(img.shape) == 2:
        return img
    return cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)


def denoise(gray_img: MatLike, method: str = "bilateral") -> MatLike:
    """
    Smooth sensor noise out of a grayscale page.

    Args:
        gray_img: Grayscale input image
        method: "gaussian" (fast) or "bilateral" (keeps glyph edges sharp)

    Returns:
        Denoised image
    """
    if method == "gaussian":
        return cv2.GaussianBlur(gray_img, (5, 5), 0)
    elif method == "bilateral":
        return cv2.bilateralFilter(gray_img, 9, 75, 75)
    else:
        raise ValueError(f"Unknown denoising method: {method} (expected one of {', '.join(DENOISE_METHODS)})")


def binarize(gray_img: MatLike, method: str = "otsu", block_size: int = 11, c: int = 2) -> MatLike:
    """
    Convert a grayscale page to black text on a white background.

    Args:
        gray_img: Grayscale input image
        method: "otsu" (global threshold) or "adaptive" (uneven lighting)
        block_size: Neighbourhood size for adaptive thresholding (made odd)
        c: Constant subtracted from the local mean for adaptive thresholding

    Returns:
        Binary image
    """
    if method == "otsu":
        _, binary = cv2.threshold(gray_img, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        return binary
    elif method == "adaptive":
        if block_size % 2 == 0:
            block_size += 1
        return cv2.adaptiveThreshold(
            gray_img, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
            cv2.THRESH_BINARY, block_size, c
        )
    else:
        raise ValueError(f"Unknown binarization method: {method} (expected one of {', '.join(BINARIZE_METHODS)})")


def prepare_page(img: MatLike,
                 denoise_method: str | None = "bilateral",
                 binarize_method: str = "otsu") -> NDArray[np.uint8]:
    """
    Run the cleanup pipeline on an already loaded page.

    Args:
        img: BGR or grayscale page image
        denoise_method: Denoising method, or None to skip denoising
        binarize_method: Binarization method

    Returns:
        Binary image ready for OCR
    """
    gray: MatLike = grayscale(resize_if_needed(img))
    if denoise_method is not None:
        gray = denoise(gray, method=denoise_method)
    return np.asarray(binarize(gray, method=binarize_method), dtype=np.uint8)


def preprocess_for_ocr(image_path: str | Path,
                       denoise_method: str | None = "bilateral",
                       binarize_method: str = "otsu") -> NDArray[np.uint8]:
    """Load an image file and run the cleanup pipeline on it."""
    return prepare_page(
        load_image(image_path),
        denoise_method=denoise_method,
        binarize_method=binarize_method,
    )
