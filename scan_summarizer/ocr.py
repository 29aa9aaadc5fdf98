"""
Optical character recognition for cleaned-up page images.
"""

from abc import ABC, abstractmethod
from cv2.typing import MatLike
import cv2
import numpy as np
import pytesseract  # type: ignore[import]
from PIL import Image


class OCREngine(ABC):
    """Abstract base class for OCR engines."""

    @abstractmethod
    def extract_text(self, image: MatLike) -> str:
        """
        Recognize the text on a page image.

        Args:
            image: Preprocessed page (binary or grayscale)

        Returns:
            Recognized text
        """
        pass

    @abstractmethod
    def extract_text_with_confidence(self, image: MatLike) -> tuple[str, float]:
        """
        Recognize text and report how sure the engine is.

        Returns:
            Tuple of (text, mean word confidence from 0 to 100)
        """
        pass


class TesseractOCR(OCREngine):
    """Tesseract OCR via pytesseract."""

    def __init__(self,
                 language: str = "eng",
                 config: str = "",
                 tesseract_cmd: str | None = None):
        """
        Initialize Tesseract OCR.

        Args:
            language: Tesseract language code (default: "eng")
            config: Extra Tesseract options (e.g., "--psm 6")
            tesseract_cmd: Path to the tesseract binary (None = search PATH)
        """
        self.language = language
        self.config = config

        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

    def extract_text(self, image: MatLike) -> str:
        text = pytesseract.image_to_string(
            to_pil(image), lang=self.language, config=self.config
        )
        return str(text).strip()

    def extract_text_with_confidence(self, image: MatLike) -> tuple[str, float]:
        data = pytesseract.image_to_data(
            to_pil(image),
            lang=self.language,
            config=self.config,
            output_type=pytesseract.Output.DICT,
        )

        words: list[str] = []
        confidences: list[float] = []
        for word, conf in zip(data["text"], data["conf"]):
            confidence = float(conf)
            # Tesseract reports -1 for layout boxes without text
            if confidence < 0 or not str(word).strip():
                continue
            words.append(str(word))
            confidences.append(confidence)

        mean_confidence: float = float(np.mean(confidences)) if confidences else 0.0
        return " ".join(words), mean_confidence


def to_pil(image: MatLike) -> Image.Image:
    """Convert an OpenCV image (grayscale or BGR) to a PIL image."""
    if len(image.shape) == 2:
        return Image.fromarray(image)
    elif len(image.shape) == 3:
        return Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))
    else:
        raise ValueError(f"Unsupported image shape: {image.shape}")
