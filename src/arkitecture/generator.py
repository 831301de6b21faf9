"""
Main diagram generator module.

Combines tokenizing, parsing, validation, layout and rendering to turn
arkitecture DSL text into SVG (or PNG).
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from .layout import LayoutEngine, LayoutResult
from .models import Document, ErrorKind, ValidationError
from .parser import Parser
from .png_renderer import PNGRenderer
from .svg_renderer import SVGRenderer
from .text_measurement import (
    FontConfig,
    HeuristicTextMeasurer,
    PillowTextMeasurer,
    TextMeasurer,
)
from .tokenizer import TokenizerError, tokenize
from .tracer import RenderTrace
from .validator import validate

logger = logging.getLogger(__name__)

INTERNAL_ERROR_PREFIX = "Internal error: "

MEASURERS = {
    "heuristic": HeuristicTextMeasurer,
    "pillow": PillowTextMeasurer,
}


def is_internal_error(errors: List[ValidationError]) -> bool:
    """True when compilation failed on a bug rather than on the input."""
    return any(
        error.line == 0 and error.message.startswith(INTERNAL_ERROR_PREFIX)
        for error in errors
    )


class ArkitectureError(Exception):
    """Raised when DSL text cannot be turned into a diagram."""

    def __init__(self, errors: List[ValidationError]):
        self.errors = list(errors)
        details = "; ".join(str(error) for error in self.errors)
        super().__init__(f"{len(self.errors)} error(s): {details}")


@dataclass
class CompileResult:
    """
    Outcome of compiling DSL text.

    Attributes:
        success: True when no errors were found.
        svg: SVG markup, or None on failure or in validate-only mode.
        errors: Every error found by the stage that stopped the pipeline.
        document: Parsed document (possibly partial, empty when
            tokenizing failed), or None after an internal error.
        layout: Computed layout, or None when layout did not run.
    """

    success: bool
    svg: Optional[str] = None
    errors: List[ValidationError] = field(default_factory=list)
    document: Optional[Document] = None
    layout: Optional[LayoutResult] = None


class DiagramGenerator:
    """
    Generate SVG diagrams from arkitecture DSL text.

    Example:
        >>> generator = DiagramGenerator()
        >>> svg = generator.generate('''
        ...     api { label: "API" }
        ...     db { label: "Database" }
        ...     api --> db
        ... ''')
    """

    def __init__(
        self,
        font_size: int = 12,
        font_family: str = "Arial",
        measurer: Union[str, TextMeasurer] = "heuristic",
    ):
        """
        Initialize the diagram generator.

        Args:
            font_size: Label font size in pixels
            font_family: Font family for labels (also used to load fonts for
                PNG output and the "pillow" measurer)
            measurer: "heuristic", "pillow", or a TextMeasurer instance
        """
        self.font_config = FontConfig(family=font_family, size=font_size)
        self.font_size = font_size
        self.font_family = font_family

        if isinstance(measurer, str):
            if measurer not in MEASURERS:
                raise ValueError(
                    f"measurer must be one of {sorted(MEASURERS)}, got '{measurer}'"
                )
            self.text_measurer = MEASURERS[measurer](self.font_config)
        else:
            self.text_measurer = measurer

        self.layout_engine = LayoutEngine(self.text_measurer, font_size)
        self.svg_renderer = SVGRenderer(font_size=font_size, font_family=font_family)
        self._trace: Optional[RenderTrace] = None

    def compile(
        self, input_text: str, validate_only: bool = False, debug: bool = False
    ) -> CompileResult:
        """
        Run the whole pipeline on DSL text.

        The pipeline stops after parsing if there are syntax errors, and
        after validation if there are reference or constraint errors.

        Args:
            input_text: DSL source
            validate_only: Stop after validation (no layout, no SVG)
            debug: Record a RenderTrace, available from get_trace()

        Returns:
            CompileResult; never raises for bad input
        """
        trace = RenderTrace(input_text=input_text) if debug else None
        self._trace = trace

        try:
            return self._compile(input_text, validate_only, trace)
        except Exception as exc:
            logger.exception("Internal error while compiling diagram")
            error = ValidationError(
                0, 0, f"{INTERNAL_ERROR_PREFIX}{exc}", ErrorKind.SYNTAX
            )
            return CompileResult(success=False, errors=[error])

    def _compile(
        self, input_text: str, validate_only: bool, trace: Optional[RenderTrace]
    ) -> CompileResult:
        started = time.perf_counter()
        try:
            tokens = tokenize(input_text)
        except TokenizerError as error:
            errors = [
                ValidationError(error.line, error.column, str(error), ErrorKind.SYNTAX)
            ]
            self._record(trace, "tokenize", {"tokens": 0}, started, errors)
            logger.debug("Tokenizing failed: %s", error)
            return CompileResult(success=False, errors=errors, document=Document())
        self._record(trace, "tokenize", {"tokens": len(tokens)}, started)

        started = time.perf_counter()
        parse_result = Parser(tokens).parse()
        document = parse_result.document
        self._record(
            trace,
            "parse",
            {"nodes": len(document.nodes), "arrows": len(document.arrows)},
            started,
            parse_result.errors,
        )
        if not parse_result.success:
            logger.debug("Parsing found %d error(s)", len(parse_result.errors))
            return CompileResult(
                success=False, errors=parse_result.errors, document=document
            )

        started = time.perf_counter()
        validation_errors = validate(document)
        self._record(
            trace,
            "validate",
            {"containers": sum(1 for _ in document.iter_containers())},
            started,
            validation_errors,
        )
        if validation_errors:
            logger.debug("Validation found %d error(s)", len(validation_errors))
            return CompileResult(
                success=False, errors=validation_errors, document=document
            )

        if validate_only:
            return CompileResult(success=True, document=document)

        started = time.perf_counter()
        layout = self.layout_engine.compute_layout(document)
        self._record(
            trace,
            "layout",
            {
                "boxes": len(layout.node_boxes),
                "anchors": len(layout.anchors),
                "canvas": (layout.canvas_width, layout.canvas_height),
            },
            started,
        )

        started = time.perf_counter()
        svg = self.svg_renderer.render(document, layout)
        self._record(trace, "render", {"svg_length": len(svg)}, started)

        logger.debug(
            "Compiled %d container(s) and %d arrow(s) into a %sx%s canvas",
            len(layout.node_boxes),
            len(document.arrows),
            layout.canvas_width,
            layout.canvas_height,
        )
        return CompileResult(success=True, svg=svg, document=document, layout=layout)

    def _record(
        self,
        trace: Optional[RenderTrace],
        name: str,
        data: dict,
        started: float,
        errors: Optional[List[ValidationError]] = None,
    ) -> None:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug("Stage %s finished in %.2f ms", name, elapsed_ms)
        if trace is not None:
            trace.add_stage(name, data, errors, elapsed_ms)

    def get_trace(self) -> Optional[RenderTrace]:
        """
        Get the trace of the last compile run with debug=True.

        Returns:
            RenderTrace, or None if the last run was not in debug mode
        """
        return self._trace

    def generate(self, input_text: str) -> str:
        """
        Generate an SVG diagram from DSL text.

        Args:
            input_text: DSL source

        Returns:
            SVG markup

        Raises:
            ArkitectureError: If the text has syntax, reference or
                constraint errors
        """
        result = self.compile(input_text)
        if not result.success:
            raise ArkitectureError(result.errors)
        return result.svg

    def save_svg(self, input_text: str, filename: str) -> None:
        """
        Generate a diagram and save it as an SVG file.

        Args:
            input_text: DSL source
            filename: Output filename (should end in .svg)
        """
        svg = self.generate(input_text)
        output_path = Path(filename)
        output_path.write_text(svg, encoding="utf-8")

    def save_png(self, input_text: str, filename: str, scale: int = 2) -> None:
        """
        Generate a diagram and save it as a PNG image.

        Args:
            input_text: DSL source
            filename: Output filename (should end in .png)
            scale: Resolution multiplier for crisp output (default 2 for retina)
        """
        result = self.compile(input_text)
        if not result.success:
            raise ArkitectureError(result.errors)

        renderer = PNGRenderer(
            font_size=self.font_size, font_family=self.font_family, scale=scale
        )
        renderer.render(result.document, result.layout, str(Path(filename)))


def arkitecture_to_svg(input_text: str, **options) -> CompileResult:
    """
    Compile DSL text to SVG in one call.

    Args:
        input_text: DSL source
        **options: font_size, font_family and measurer are passed to
            DiagramGenerator; validate_only and debug to compile()

    Returns:
        CompileResult
    """
    validate_only = options.pop("validate_only", False)
    debug = options.pop("debug", False)
    generator = DiagramGenerator(**options)
    return generator.compile(input_text, validate_only=validate_only, debug=debug)


def generate_svg(
    document: Document,
    font_size: Optional[int] = None,
    font_family: Optional[str] = None,
) -> str:
    """
    Lay out and render an already-built document.

    No validation is done; arrows that cannot be placed are left out.

    Args:
        document: Parsed or hand-built document
        font_size: Label font size (default 12)
        font_family: Label font family (default Arial)

    Returns:
        SVG markup
    """
    generator = DiagramGenerator(
        font_size=font_size or 12, font_family=font_family or "Arial"
    )
    layout = generator.layout_engine.compute_layout(document)
    return generator.svg_renderer.render(document, layout)
