"""
PDF text layer command line tool.

    python scripts/pdf_text_layer.py paper.pdf                 # print text of every page
    python scripts/pdf_text_layer.py paper.pdf --page 2 --copy # copy page 2 to the clipboard
    python scripts/pdf_text_layer.py paper.pdf --page 1 --at 72 100
"""

import argparse
import logging
import os
import sys
from typing import List, Optional, Tuple

import pyperclip

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from textlayer import PipelineConfig, TextLayer, DebugBundle, run_text_layer_pipeline  # noqa: E402
from textlayer.logger import configure_logging  # noqa: E402


logger = logging.getLogger("textlayer.cli")


class PdfTextLayerReader:
    """Builds the text layers of a PDF once and answers queries on them."""

    def __init__(self, pdf_path: str, config: Optional[PipelineConfig] = None, pages: Optional[List[int]] = None):
        self.pdf_path = pdf_path
        self.config = config or PipelineConfig.default()
        self.page_numbers = pages
        self._results: Optional[List[Tuple[TextLayer, DebugBundle]]] = None
        self.extracted_text = ""

    @property
    def results(self) -> List[Tuple[TextLayer, DebugBundle]]:
        if self._results is None:
            self._results = run_text_layer_pipeline(self.pdf_path, self.config, self.page_numbers)
        return self._results

    @property
    def layers(self) -> List[TextLayer]:
        return [layer for layer, _ in self.results]

    def extract_text(self) -> str:
        """Text of all selected pages, separated by form feeds"""
        self.extracted_text = '\f'.join(layer.text for layer in self.layers)
        return self.extracted_text

    def describe_point(self, page_index: int, x: float, y: float) -> str:
        """Word, line and annotation under a point of one page"""
        layers = self.layers
        if not 0 <= page_index < len(layers):
            raise IndexError(f"Page index {page_index} out of range for {len(layers)} pages")
        layer = layers[page_index]
        parts = []

        word = layer.find_word_over(x, y)
        if word is None:
            parts.append("word: -")
        else:
            letter = word.find_letter_index_over(x, y)
            parts.append(f"word #{word.index_in_page}: {word.value!r} (letter {letter})")

        line = layer.find_line_over(x, y)
        if line is not None:
            parts.append(f"line #{line.index_in_page}: {line.text!r}")
            if line.is_interactive:
                parts.append(f"link: {line.interactive_match()}")

        annotation = layer.find_annotation_over(x, y)
        if annotation is not None:
            parts.append(f"annotation: {annotation.action_uri or annotation.content!r}")

        return "\n".join(parts)

    def copy_to_clipboard(self, text: Optional[str] = None) -> bool:
        """Copy text to clipboard"""
        if text is None:
            text = self.extracted_text
        try:
            pyperclip.copy(text)
            return True
        except pyperclip.PyperclipException as e:
            logger.error("Clipboard error: %s", e)
            return False


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Extract reading-order text from a PDF")
    parser.add_argument("pdf", help="PDF file")
    parser.add_argument("--page", type=int, action="append", help="1-indexed page (repeatable)")
    parser.add_argument("--copy", action="store_true", help="copy the text to the clipboard")
    parser.add_argument("--at", nargs=2, type=float, metavar=("X", "Y"),
                        help="describe what lies under a point of the first selected page")
    parser.add_argument("--workers", type=int, default=1, help="thread pool size")
    parser.add_argument("--debug", action="store_true", help="print pipeline statistics")
    args = parser.parse_args(argv)

    config = PipelineConfig.parallel(args.workers) if args.workers > 1 else PipelineConfig.default()
    config.debug = args.debug
    config.log_level = "DEBUG" if args.debug else "WARNING"
    configure_logging(config.log_level)

    if not os.path.exists(args.pdf):
        logger.error("File not found: %s", args.pdf)
        return 1

    reader = PdfTextLayerReader(args.pdf, config, args.page)

    if not reader.layers:
        logger.error("No pages to read in %s (pages requested: %s)", args.pdf, args.page or "all")
        return 1

    if args.at:
        print(reader.describe_point(0, args.at[0], args.at[1]))
        return 0

    text = reader.extract_text()
    print(text)

    if args.debug:
        for _, debug in reader.results:
            print(debug.summary())

    if args.copy and not reader.copy_to_clipboard():
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
