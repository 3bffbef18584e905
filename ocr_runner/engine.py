"""
engine.py

Recognition backends for the OCR runner.

Two interchangeable engines share the OCREngine interface:

1. VisionTextEngine: Google Cloud Vision document text detection.
   Returns a page -> block -> paragraph -> word -> symbol tree.
2. DocumentAIEngine: a Google Cloud Document AI processor addressed
   by its prediction endpoint. Returns a flat paragraph layout whose
   text is referenced through offsets into the document text.

Both normalize their response into a RecognitionResult. Clients are
created lazily on first use and reused for the rest of the run.
"""

import logging
import struct
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence
from urllib.parse import unquote, urlsplit

from google.api_core.client_options import ClientOptions
from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import documentai, vision

from . import config
from .geometry import to_orientation, to_rectangle, vertices_from_poly
from .schemas import Annotation, FileDescriptor, RecognitionResult, RunSettings
from .utils import ConfigError, RecognitionError

logger = logging.getLogger(__name__)


class OCREngine(ABC):
    """
    Interface for recognition backends.

    Implementations must raise RecognitionError for any failure tied to
    a single file so the batch can carry on with the next one.
    """

    name = "OCR"

    @abstractmethod
    def recognize(self, descriptor: FileDescriptor) -> RecognitionResult:
        raise NotImplementedError


def _read_content(descriptor: FileDescriptor) -> bytes:
    try:
        with open(descriptor.path, "rb") as f:
            return f.read()
    except OSError as e:
        raise RecognitionError(f"Failed to read {descriptor.path}: {e}") from e


def _single_precision(value: float) -> float:
    """
    Shortest decimal that reads back as the same 32-bit float.

    Both backends report confidence as a 32-bit float; widening it directly
    yields digits like 0.949999988079071 instead of 0.95.
    """
    packed = struct.pack("<f", value)
    single = struct.unpack("<f", packed)[0]
    for digits in range(1, 10):
        candidate = float(f"{single:.{digits}g}")
        if struct.pack("<f", candidate) == packed:
            return candidate
    return single


def _annotation(bounding_poly: Any, confidence: float, text: str) -> Annotation:
    polygon = vertices_from_poly(bounding_poly)
    return Annotation(
        bounding_box=to_rectangle(polygon),
        orientation=to_orientation(polygon),
        confidence=_single_precision(float(confidence)),
        text=text,
    )


# -----------------------------
# Vision API
# -----------------------------


class VisionTextEngine(OCREngine):
    """Wrapper around the Vision API ImageAnnotatorClient."""

    name = "Vision API"

    def __init__(self, language_hints: Optional[Sequence[str]] = None, client: Any = None):
        self.language_hints = list(
            config.LANGUAGE_HINTS if language_hints is None else language_hints
        )
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            logger.debug("Creating Vision API client")
            self._client = vision.ImageAnnotatorClient()
        return self._client

    def recognize(self, descriptor: FileDescriptor) -> RecognitionResult:
        content = _read_content(descriptor)

        try:
            response = self._get_client().document_text_detection(
                image=vision.Image(content=content),
                image_context=vision.ImageContext(language_hints=self.language_hints),
            )
        except (GoogleAPIError, GoogleAuthError) as e:
            raise RecognitionError(f"Vision API request failed: {e}") from e

        if response is None:
            raise RecognitionError("Vision API returned no response")
        if response.error.message:
            raise RecognitionError(f"Vision API error: {response.error.message}")

        try:
            return parse_text_annotation(response.full_text_annotation)
        except (AttributeError, TypeError, ValueError) as e:
            raise RecognitionError(f"Malformed Vision API response: {e}") from e


def parse_text_annotation(annotation: Any) -> RecognitionResult:
    """
    Flatten a Vision TextAnnotation into paragraph and word annotations.

    Word text is the concatenation of its symbols; paragraph text is its
    words joined with a single space. Order follows the tree traversal.
    """
    paragraphs: List[Annotation] = []
    words: List[Annotation] = []

    for page in annotation.pages:
        for block in page.blocks:
            for paragraph in block.paragraphs:
                word_texts = []
                for word in paragraph.words:
                    new_word = _annotation(
                        word.bounding_box,
                        word.confidence,
                        "".join(symbol.text for symbol in word.symbols),
                    )
                    words.append(new_word)
                    word_texts.append(new_word.text)

                new_paragraph = _annotation(
                    paragraph.bounding_box, paragraph.confidence, " ".join(word_texts)
                )
                paragraphs.append(new_paragraph)
                logger.debug(
                    "... Paragraph: %s (confidence=%.2f)",
                    new_paragraph.text,
                    new_paragraph.confidence,
                )

    return RecognitionResult(text=annotation.text, paragraphs=paragraphs, words=words)


# -----------------------------
# Document AI
# -----------------------------


def get_host_name(endpoint: str) -> str:
    """Network target for a prediction endpoint URL, defaulting the port to 443."""
    host = urlsplit(endpoint).netloc.rpartition("@")[2]
    if ":" in host:
        return host
    return f"{host}:{config.DEFAULT_ENDPOINT_PORT}"


def get_request_name(endpoint: str) -> str:
    """
    Processor resource name for a prediction endpoint URL.

    https://us-documentai.googleapis.com/v1/projects/p/locations/us/processors/x:process
    becomes projects/p/locations/us/processors/x. Paths without a
    /projects/ segment are returned unchanged.
    """
    name = unquote(urlsplit(endpoint).path)
    i = name.find(config.REQUEST_NAME_MARKER)
    if i >= 0:
        name = name[i + 1 :]
        j = name.find(":")
        if j >= 0:
            name = name[:j]
    return name


def text_from_segments(text_segments: Any, document_text: str) -> str:
    """
    Extract the text addressed by a list of text anchor segments.

    Each segment contributes document_text[start_index:end_index - 1],
    so the character just before end_index is left out.

    Raises:
        RecognitionError: If a segment falls outside the document text.
    """
    result = []
    for segment in text_segments:
        start = int(segment.start_index)
        end = int(segment.end_index) - 1
        if start < 0 or end < start or end > len(document_text):
            raise RecognitionError(
                f"Text anchor [{segment.start_index}, {segment.end_index}) out of "
                f"range for document text of length {len(document_text)}"
            )
        result.append(document_text[start:end])
    return "".join(result)


class DocumentAIEngine(OCREngine):
    """Wrapper around a Document AI processor prediction endpoint."""

    name = "Document AI"

    def __init__(self, endpoint: str, client: Any = None):
        parts = urlsplit(endpoint or "")
        if not parts.scheme or not parts.netloc:
            raise ConfigError(f"Invalid Document AI prediction endpoint: {endpoint!r}")

        self.endpoint = endpoint
        self.host = get_host_name(endpoint)
        self.request_name = get_request_name(endpoint)
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            logger.debug("Creating Document AI client for %s", self.host)
            self._client = documentai.DocumentProcessorServiceClient(
                client_options=ClientOptions(api_endpoint=self.host)
            )
        return self._client

    def recognize(self, descriptor: FileDescriptor) -> RecognitionResult:
        content = _read_content(descriptor)

        request = documentai.ProcessRequest(
            name=self.request_name,
            raw_document=documentai.RawDocument(
                content=content, mime_type=descriptor.mime_type
            ),
        )

        try:
            response = self._get_client().process_document(request=request)
        except (GoogleAPIError, GoogleAuthError) as e:
            raise RecognitionError(f"Document AI request failed: {e}") from e

        if response is None:
            raise RecognitionError("Document AI returned no response")

        try:
            return parse_document(response.document)
        except (AttributeError, TypeError, ValueError) as e:
            raise RecognitionError(f"Malformed Document AI response: {e}") from e


def parse_document(document: Any) -> RecognitionResult:
    """Convert the paragraphs of every page into annotations. No words."""
    text = document.text
    paragraphs: List[Annotation] = []

    for page in document.pages:
        for paragraph in page.paragraphs:
            layout = paragraph.layout
            new_paragraph = _annotation(
                layout.bounding_poly,
                layout.confidence,
                text_from_segments(layout.text_anchor.text_segments, text),
            )
            paragraphs.append(new_paragraph)
            logger.debug(
                "... Paragraph: %s (confidence=%.2f)",
                new_paragraph.text,
                new_paragraph.confidence,
            )

    return RecognitionResult(text=text, paragraphs=paragraphs, words=[])


def create_engine(settings: RunSettings) -> OCREngine:
    """Pick the engine for the whole run: Document AI when an endpoint is set."""
    if settings.endpoint:
        return DocumentAIEngine(settings.endpoint)
    return VisionTextEngine(language_hints=settings.language_hints)
