"""
Unit tests for page preprocessing and OCR wrappers using synthetic images.
"""

from pathlib import Path

import cv2
import numpy as np
import pytest
from numpy.typing import NDArray
from PIL import Image
from unittest.mock import Mock, patch

from scan_summarizer.ocr import TesseractOCR, to_pil
from scan_summarizer.preprocessing import (
    binarize,
    denoise,
    grayscale,
    load_image,
    prepare_page,
    preprocess_for_ocr,
    resize_if_needed,
)


# ============================================================================
# Test Fixtures - Synthetic Image Generation
# ============================================================================

@pytest.fixture
def clean_image() -> NDArray[np.uint8]:
    """Generate a clean synthetic page with text-like bars."""
    img = np.ones((800, 600, 3), dtype=np.uint8) * 255
    for y in range(100, 700, 80):
        cv2.rectangle(img, (50, y), (550, y + 30), (0, 0, 0), -1)
    return img


@pytest.fixture
def noisy_gray(clean_image: NDArray[np.uint8]) -> NDArray[np.uint8]:
    """Grayscale page with Gaussian sensor noise."""
    gray = cv2.cvtColor(clean_image, cv2.COLOR_BGR2GRAY).astype(np.int16)
    rng = np.random.default_rng(seed=7)
    noisy = gray + rng.normal(0, 25, gray.shape).astype(np.int16)
    return np.clip(noisy, 0, 255).astype(np.uint8)


@pytest.fixture
def image_file(tmp_path: Path, clean_image: NDArray[np.uint8]) -> Path:
    path = tmp_path / "page.png"
    cv2.imwrite(str(path), clean_image)
    return path


# ============================================================================
# Loading and Resizing Tests
# ============================================================================

def test_load_image(image_file: Path):
    """Test loading returns a BGR array."""
    assert load_image(image_file).shape == (800, 600, 3)


def test_load_image_missing():
    """Test a missing file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        load_image("/nonexistent/page.png")


def test_load_image_invalid(tmp_path: Path):
    """Test an undecodable file raises ValueError."""
    bad = tmp_path / "bad.png"
    bad.write_bytes(b"garbage")

    with pytest.raises(ValueError, match="Could not load image"):
        load_image(bad)


def test_resize_upscales_small_images():
    """Test small captures are upscaled to the minimum dimension."""
    img = np.zeros((250, 500, 3), dtype=np.uint8)

    assert resize_if_needed(img).shape[:2] == (1000, 2000)


def test_resize_downscales_large_images():
    """Test huge scans are downscaled to the maximum dimension."""
    img = np.zeros((1500, 6000), dtype=np.uint8)

    assert resize_if_needed(img).shape[:2] == (750, 3000)


def test_resize_keeps_good_sizes(clean_image: NDArray[np.uint8]):
    """Test images within bounds are returned untouched."""
    img = cv2.resize(clean_image, (1200, 1600))

    assert resize_if_needed(img) is img


# ============================================================================
# Grayscale / Denoise / Binarize Tests
# ============================================================================

def test_grayscale(clean_image: NDArray[np.uint8]):
    """Test conversion drops the channel axis."""
    assert grayscale(clean_image).shape == (800, 600)


def test_grayscale_is_noop_for_gray(noisy_gray: NDArray[np.uint8]):
    """Test grayscale input is passed through."""
    assert grayscale(noisy_gray) is noisy_gray


@pytest.mark.parametrize("method", ["gaussian", "bilateral"])
def test_denoise_reduces_noise(noisy_gray: NDArray[np.uint8], method: str):
    """Test denoising lowers pixel variation in a flat region."""
    region = (slice(20, 80), slice(20, 580))
    before = float(np.std(noisy_gray[region]))

    after = float(np.std(denoise(noisy_gray, method=method)[region]))

    assert after < before


def test_denoise_unknown_method(noisy_gray: NDArray[np.uint8]):
    """Test unknown methods are rejected with the supported choices."""
    with pytest.raises(ValueError, match=r"Unknown denoising method: median \(expected one of gaussian, bilateral\)"):
        denoise(noisy_gray, method="median")


@pytest.mark.parametrize("method", ["otsu", "adaptive"])
def test_binarize_outputs_two_levels(noisy_gray: NDArray[np.uint8], method: str):
    """Test binarization yields only black and white pixels."""
    binary = binarize(noisy_gray, method=method)

    assert set(np.unique(binary)) <= {0, 255}


def test_binarize_adaptive_even_block_size(noisy_gray: NDArray[np.uint8]):
    """Test even block sizes are made odd instead of failing."""
    assert binarize(noisy_gray, method="adaptive", block_size=12).shape == noisy_gray.shape


def test_binarize_unknown_method(noisy_gray: NDArray[np.uint8]):
    """Test unknown methods are rejected with the supported choices."""
    with pytest.raises(ValueError, match=r"Unknown binarization method: sauvola \(expected one of otsu, adaptive\)"):
        binarize(noisy_gray, method="sauvola")


# ============================================================================
# Pipeline Tests
# ============================================================================

def test_prepare_page_skips_denoise(clean_image: NDArray[np.uint8]):
    """Test denoising can be disabled."""
    page = prepare_page(clean_image, denoise_method=None)

    assert page.ndim == 2
    assert page.dtype == np.uint8


def test_preprocess_for_ocr(image_file: Path):
    """Test the full pipeline on a file."""
    page = preprocess_for_ocr(image_file, binarize_method="adaptive")

    assert page.shape == (1333, 1000)
    assert set(np.unique(page)) <= {0, 255}


# ============================================================================
# OCR Wrapper Tests
# ============================================================================

def test_to_pil_grayscale(noisy_gray: NDArray[np.uint8]):
    """Test grayscale arrays become 'L' images."""
    assert to_pil(noisy_gray).mode == "L"


def test_to_pil_color_swaps_channels():
    """Test BGR arrays become RGB images."""
    bgr = np.zeros((2, 2, 3), dtype=np.uint8)
    bgr[:, :, 0] = 255  # blue in OpenCV order

    pil = to_pil(bgr)

    assert pil.mode == "RGB"
    assert pil.getpixel((0, 0)) == (0, 0, 255)


def test_to_pil_rejects_other_shapes():
    """Test unsupported shapes are rejected."""
    with pytest.raises(ValueError, match="Unsupported image shape"):
        to_pil(np.zeros((2, 2, 2, 2), dtype=np.uint8))


@patch("scan_summarizer.ocr.pytesseract.image_to_string")
def test_tesseract_extract_text(mock_to_string: Mock, noisy_gray: NDArray[np.uint8]):
    """Test recognized text is trimmed and options forwarded."""
    mock_to_string.return_value = "  Invoice 42\n"

    text = TesseractOCR(language="deu", config="--psm 6").extract_text(noisy_gray)

    assert text == "Invoice 42"
    args, kwargs = mock_to_string.call_args
    assert isinstance(args[0], Image.Image)
    assert kwargs == {"lang": "deu", "config": "--psm 6"}


@patch("scan_summarizer.ocr.pytesseract.image_to_data")
def test_tesseract_confidence(mock_to_data: Mock, noisy_gray: NDArray[np.uint8]):
    """Test layout boxes and blank words are ignored in the confidence."""
    mock_to_data.return_value = {
        "text": ["", "Invoice", " ", "42"],
        "conf": ["-1", "90", "50", 80],
    }

    text, confidence = TesseractOCR().extract_text_with_confidence(noisy_gray)

    assert text == "Invoice 42"
    assert confidence == pytest.approx(85.0)


@patch("scan_summarizer.ocr.pytesseract.image_to_data")
def test_tesseract_confidence_no_text(mock_to_data: Mock, noisy_gray: NDArray[np.uint8]):
    """Test pages without words report zero confidence."""
    mock_to_data.return_value = {"text": [""], "conf": [-1]}

    assert TesseractOCR().extract_text_with_confidence(noisy_gray) == ("", 0.0)
